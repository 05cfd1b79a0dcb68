"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CALLCONTRACT__SECTION__KEY)
3. Project YAML (callcontract.yaml)
4. Built-in defaults (this file)

Environment Variable Format:
    CALLCONTRACT__<SECTION>__<KEY>=<VALUE>

Examples:
    CALLCONTRACT__LOGGING__LEVEL=DEBUG
    CALLCONTRACT__DATA__OUTPUT_DIR=/tmp/index-output
    CALLCONTRACT__DATA__EXPERIMENTAL=true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CALLCONTRACT__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every load and check.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DataConfig(BaseModel):
    """Location of the generated graph and index documents.

    Env vars:
        CALLCONTRACT__DATA__OUTPUT_DIR: Directory holding the generated files
        CALLCONTRACT__DATA__CALLS_JSON: Call-graph file name (or absolute path)
        CALLCONTRACT__DATA__SCIP_JSON: Symbol-index file name (or absolute path)
        CALLCONTRACT__DATA__EXPERIMENTAL: Run contracts marked experimental
    """

    output_dir: str = Field(
        default="./output",
        description="Directory the index generator writes into. Relative paths "
        "resolve against the project root.",
    )
    calls_json: str = Field(default="calls.json", description="Call/value graph document.")
    scip_json: str | None = Field(
        default="index.scip.json",
        description="Symbol/occurrence index document. Optional: a missing file "
        "disables the symbol-index contracts instead of failing the run.",
    )
    experimental: bool = Field(
        default=False,
        description="Include contracts that cover experimental call kinds.",
    )

    def calls_path(self, root: Path | None = None) -> Path:
        return self._resolve(self.calls_json, root)

    def scip_path(self, root: Path | None = None) -> Path | None:
        if not self.scip_json:
            return None
        return self._resolve(self.scip_json, root)

    def _resolve(self, name: str, root: Path | None) -> Path:
        path = Path(name).expanduser()
        if path.is_absolute():
            return path
        out = Path(self.output_dir).expanduser()
        if not out.is_absolute():
            out = (root or Path.cwd()) / out
        return out / path


# SCIP SymbolRole bits, from the SCIP protocol definition.
SCIP_SYMBOL_ROLES: dict[str, int] = {
    "Definition": 0x1,
    "Import": 0x2,
    "WriteAccess": 0x4,
    "ReadAccess": 0x8,
    "Generated": 0x10,
    "Test": 0x20,
    "ForwardDefinition": 0x40,
}


class RoleSchema(BaseModel):
    """Mapping from occurrence role bits to role names.

    The numbering belongs to the producing tool; the defaults follow SCIP's
    SymbolRole enum. ``Reference`` is not a SCIP bit: an occurrence is a
    reference when any bit of ``reference_mask`` is set, or, with
    ``bare_is_reference``, when it carries neither a definition bit nor a
    reference bit.
    """

    flags: dict[str, int] = Field(default_factory=lambda: dict(SCIP_SYMBOL_ROLES))
    definition_role: str = "Definition"
    reference_mask: int = Field(
        default=SCIP_SYMBOL_ROLES["Import"]
        | SCIP_SYMBOL_ROLES["WriteAccess"]
        | SCIP_SYMBOL_ROLES["ReadAccess"],
    )
    bare_is_reference: bool = True

    @field_validator("flags")
    @classmethod
    def validate_flags(cls, v: dict[str, int]) -> dict[str, int]:
        for name, bit in v.items():
            if bit <= 0 or bit & (bit - 1):
                raise ValueError(f"Role '{name}' must map to a single bit, got {bit}")
        return v

    @model_validator(mode="after")
    def validate_definition_role(self) -> "RoleSchema":
        if self.definition_role not in self.flags:
            raise ValueError(f"Definition role '{self.definition_role}' missing from flags")
        return self

    @property
    def definition_bit(self) -> int:
        return self.flags[self.definition_role]

    def is_definition(self, roles: int) -> bool:
        return bool(roles & self.definition_bit)

    def is_reference(self, roles: int) -> bool:
        if roles & self.reference_mask:
            return True
        return self.bare_is_reference and not roles & self.definition_bit

    def names(self, roles: int) -> list[str]:
        """Decode a role bitmask into role names, in flag order."""
        names = [name for name, bit in self.flags.items() if roles & bit]
        if self.is_reference(roles):
            names.append("Reference")
        return names

    def bit(self, name: str) -> int:
        try:
            return self.flags[name]
        except KeyError:
            raise ValueError(f"Unknown role '{name}'; known: {', '.join(self.flags)}") from None


class CallContractConfig(BaseModel):
    """Root configuration model (for type hints)."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    roles: RoleSchema = Field(default_factory=RoleSchema)
