"""Read ``callcontract.yaml`` and the environment into a CallContractConfig.

A value is taken from the first source that sets it:

- keyword arguments to :func:`load_config`
- ``CALLCONTRACT__<SECTION>__<KEY>`` environment variables
- ``callcontract.yaml`` in the project root
- model defaults

Sources merge per key, so ``data.calls_json`` from the environment and
``data.output_dir`` from the file combine into one ``data`` section.
"""

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from callcontract.config.models import (
    CallContractConfig,
    DataConfig,
    LoggingConfig,
    RoleSchema,
)
from callcontract.core.errors import ConfigError

CONFIG_FILE_NAME = "callcontract.yaml"

# Contents of the project file for the load in progress.
_project_file: ContextVar[dict[str, Any] | None] = ContextVar(
    "callcontract_project_file", default=None
)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return loaded


class CallContractSettings(BaseSettings):
    """Settings view of CallContractConfig, e.g. CALLCONTRACT__DATA__OUTPUT_DIR=build."""

    model_config = SettingsConfigDict(
        env_prefix="CALLCONTRACT__",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    roles: RoleSchema = Field(default_factory=RoleSchema)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        project = InitSettingsSource(settings_cls, init_kwargs=_project_file.get() or {})
        return (init_settings, env_settings, project)


def load_config(project_root: Path | None = None, **kwargs: Any) -> CallContractConfig:
    """Resolve the configuration for ``project_root`` (default: cwd).

    Keyword arguments are whole sections, e.g. ``data={"calls_json": "x.json"}``.

    Raises:
        ConfigError: The project file is not valid YAML, or a value fails validation.
    """
    root = project_root or Path.cwd()
    project_file = _load_yaml(root / CONFIG_FILE_NAME)

    token = _project_file.set(project_file)
    try:
        settings = CallContractSettings(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(field, first.get("input"), first["msg"]) from e
    finally:
        _project_file.reset(token)

    return CallContractConfig(logging=settings.logging, data=settings.data, roles=settings.roles)
