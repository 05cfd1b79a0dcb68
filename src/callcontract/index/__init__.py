"""Optional SCIP symbol/occurrence index."""

from callcontract.index.models import Occurrence, Relationship, Symbol
from callcontract.index.query import OccurrenceQuery, SymbolIndexQuery, SymbolQuery
from callcontract.index.store import SymbolIndexStore

__all__ = [
    "Occurrence",
    "Relationship",
    "Symbol",
    "OccurrenceQuery",
    "SymbolIndexQuery",
    "SymbolQuery",
    "SymbolIndexStore",
]
