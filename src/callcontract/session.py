"""Loaded contract data and the factories contract tests start from.

Usage::

    data = ContractData.from_config(load_config(project_root), project_root)

    data.in_method("App\\Repository\\OrderRepository", "save").values().kind("parameter").all()
    data.assert_argument().in_method(...).at_call("save").position(0).points_to_local("$order").verify()

    if data.has_symbol_index:
        data.scip().symbol("App\\Entity\\Order").is_class().one()
"""

from __future__ import annotations

from pathlib import Path

from callcontract.assertions import (
    ArgumentBindingAssertion,
    ChainIntegrityAssertion,
    DataIntegrityAssertion,
    IntegrityReport,
    ReferenceConsistencyAssertion,
)
from callcontract.config.models import CallContractConfig
from callcontract.core.errors import DataUnavailableError
from callcontract.graph.query import CallQuery, MethodScope, ValueQuery
from callcontract.graph.store import CallGraphStore
from callcontract.index.query import SymbolIndexQuery
from callcontract.index.store import SymbolIndexStore


class ContractData:
    """The call graph plus, when it was generated, the symbol index."""

    def __init__(self, calls: CallGraphStore, symbol_index: SymbolIndexStore | None = None) -> None:
        self.calls_store = calls
        self._symbol_index = symbol_index

    @classmethod
    def load(
        cls,
        calls_path: Path | str,
        scip_path: Path | str | None = None,
        config: CallContractConfig | None = None,
    ) -> ContractData:
        """Load calls.json (required) and the symbol index (optional).

        Raises:
            LoadError: calls.json missing or unreadable.
            ParseError: Either document malformed.
        """
        roles = config.roles if config is not None else None
        calls = CallGraphStore.load(calls_path)
        index = SymbolIndexStore.load_optional(scip_path, roles=roles)
        return cls(calls, index)

    @classmethod
    def from_config(cls, config: CallContractConfig, root: Path | None = None) -> ContractData:
        return cls.load(config.data.calls_path(root), config.data.scip_path(root), config)

    # -- symbol index ---------------------------------------------------------

    @property
    def has_symbol_index(self) -> bool:
        return self._symbol_index is not None

    @property
    def symbol_index(self) -> SymbolIndexStore | None:
        return self._symbol_index

    def scip(self) -> SymbolIndexQuery:
        """Entry point for symbol/occurrence queries.

        Raises:
            DataUnavailableError: The index was not generated.
        """
        return SymbolIndexQuery(self._symbol_index)

    def require_symbol_index(self) -> SymbolIndexQuery:
        """Like ``scip()``, but skips the calling pytest test when the index is absent."""
        if self._symbol_index is None:
            import pytest

            pytest.skip(DataUnavailableError.symbol_index().message)
        return SymbolIndexQuery(self._symbol_index)

    # -- call graph queries ---------------------------------------------------

    def values(self) -> ValueQuery:
        return ValueQuery(self.calls_store)

    def calls(self) -> CallQuery:
        return CallQuery(self.calls_store)

    def in_method(self, class_name: str, method_name: str) -> MethodScope:
        return MethodScope(self.calls_store, class_name, method_name)

    # -- assertions -----------------------------------------------------------

    def assert_reference_consistency(self) -> ReferenceConsistencyAssertion:
        return ReferenceConsistencyAssertion(self.calls_store)

    def assert_chain(self) -> ChainIntegrityAssertion:
        return ChainIntegrityAssertion(self.calls_store)

    def assert_argument(self) -> ArgumentBindingAssertion:
        return ArgumentBindingAssertion(self.calls_store)

    def assert_integrity(self) -> DataIntegrityAssertion:
        return DataIntegrityAssertion(self.calls_store)

    def integrity_report(self) -> IntegrityReport:
        """Every integrity check, collected without failing."""
        return DataIntegrityAssertion(self.calls_store).all_checks().report()

    def __repr__(self) -> str:
        return f"ContractData(calls={self.calls_store!r}, symbol_index={self._symbol_index!r})"
