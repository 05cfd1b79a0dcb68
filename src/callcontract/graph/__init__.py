"""Call/value graph: models, store and queries."""

from callcontract.graph.models import (
    Argument,
    Call,
    CallGraphDocument,
    CallKind,
    KindType,
    Location,
    Stability,
    Value,
    ValueKind,
)
from callcontract.graph.query import CallQuery, MethodScope, ValueQuery
from callcontract.graph.store import CallGraphStore

__all__ = [
    "Argument",
    "Call",
    "CallGraphDocument",
    "CallKind",
    "KindType",
    "Location",
    "Stability",
    "Value",
    "ValueKind",
    "CallQuery",
    "MethodScope",
    "ValueQuery",
    "CallGraphStore",
]
