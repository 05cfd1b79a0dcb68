"""Declarative metadata for contract tests.

Each contract test is registered under its pytest node id (or any stable
identifier) with a human-readable name, what it verifies, a category and
whether it needs ``--experimental``. The table lives in a YAML file next to
the tests::

    contracts:
      tests/reference/test_parameters.py::test_order_parameter_single_value:
        name: Order parameter has one value
        description: OrderRepository::save() $order has exactly one value entry
        category: reference
      tests/callkind/test_experimental.py::test_function_call_kind:
        name: Function call kind
        description: Function calls are tracked with kind=function
        category: callkind
        experimental: true
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from callcontract.core.errors import ConfigError

ContractStatus = Literal["active", "skipped", "pending"]


class ContractTestMeta(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    description: str
    category: str = ""
    status: ContractStatus = "active"
    experimental: bool = False


class ContractCatalog:
    """Registry of contract-test metadata, keyed by test id."""

    def __init__(self, entries: dict[str, ContractTestMeta] | None = None) -> None:
        self._entries: dict[str, ContractTestMeta] = dict(entries or {})

    def register(self, test_id: str, meta: ContractTestMeta) -> ContractTestMeta:
        if test_id in self._entries:
            raise ValueError(f"Contract test already registered: {test_id}")
        self._entries[test_id] = meta
        return meta

    def get(self, test_id: str) -> ContractTestMeta | None:
        return self._entries.get(test_id)

    def by_category(self, category: str) -> dict[str, ContractTestMeta]:
        return {k: m for k, m in self._entries.items() if m.category == category}

    @property
    def categories(self) -> list[str]:
        return sorted({m.category for m in self._entries.values() if m.category})

    def experimental_ids(self) -> set[str]:
        return {k for k, m in self._entries.items() if m.experimental}

    def __contains__(self, test_id: object) -> bool:
        return test_id in self._entries

    def __iter__(self) -> Iterator[tuple[str, ContractTestMeta]]:
        return iter(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    # -- YAML -----------------------------------------------------------------

    @classmethod
    def from_yaml(cls, path: Path | str) -> ContractCatalog:
        """Load a catalog table.

        Raises:
            ConfigError: File missing, invalid YAML, or an entry that does not
                match ContractTestMeta.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError.file_not_found(str(path))
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError.parse_error(str(path), str(e)) from e
        if not isinstance(data, dict) or not isinstance(data.get("contracts", {}), dict):
            raise ConfigError.parse_error(str(path), "expected a 'contracts' mapping")

        catalog = cls()
        for test_id, raw in (data.get("contracts") or {}).items():
            try:
                meta = ContractTestMeta.model_validate(raw or {})
            except ValidationError as e:
                raise ConfigError.invalid_value(
                    f"contracts.{test_id}", raw, str(e.errors()[0]["msg"])
                ) from e
            catalog.register(str(test_id), meta)
        return catalog

    def to_dict(self) -> dict[str, Any]:
        return {
            "contracts": {
                test_id: meta.model_dump(exclude_defaults=True)
                for test_id, meta in self._entries.items()
            }
        }

    def write_yaml(self, path: Path | str) -> None:
        Path(path).write_text(yaml.safe_dump(self.to_dict(), sort_keys=False))
