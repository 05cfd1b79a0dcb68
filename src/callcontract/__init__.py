"""callcontract - contract testing for call/value graphs and SCIP indexes."""

from callcontract.assertions import (
    ArgumentBindingAssertion,
    ChainIntegrityAssertion,
    DataIntegrityAssertion,
    IntegrityReport,
    ReferenceConsistencyAssertion,
)
from callcontract.catalog import ContractCatalog, ContractTestMeta
from callcontract.graph import CallGraphStore, CallQuery, MethodScope, ValueQuery
from callcontract.index import OccurrenceQuery, SymbolIndexQuery, SymbolIndexStore, SymbolQuery
from callcontract.session import ContractData

__version__ = "0.1.0"

__all__ = [
    "ArgumentBindingAssertion",
    "ChainIntegrityAssertion",
    "DataIntegrityAssertion",
    "IntegrityReport",
    "ReferenceConsistencyAssertion",
    "ContractCatalog",
    "ContractTestMeta",
    "CallGraphStore",
    "CallQuery",
    "MethodScope",
    "ValueQuery",
    "OccurrenceQuery",
    "SymbolIndexQuery",
    "SymbolIndexStore",
    "SymbolQuery",
    "ContractData",
]
