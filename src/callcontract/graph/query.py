"""Fluent, read-only queries over a CallGraphStore.

Every filter returns a new query; the receiver is never modified, so a
partially built query can be shared and extended in several directions.
Filters compose with AND and terminal operations keep document order.

Usage::

    scope = MethodScope(store, "App\\Repository\\OrderRepository", "save")
    params = scope.values().kind("parameter").all()
    saves = CallQuery(store).kind("method").callee_contains("save").count()
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, TypeVar

from callcontract.core.errors import AssertionViolation
from callcontract.graph import symbols
from callcontract.graph.models import Call, Value
from callcontract.graph.patterns import contains, glob_matches, in_scope
from callcontract.graph.store import CallGraphStore

T = TypeVar("T", Value, Call)
Q = TypeVar("Q", bound="_NodeQuery")  # type: ignore[type-arg]


def _text(kind: str | Enum) -> str:
    return kind.value if isinstance(kind, Enum) else kind


@dataclass(frozen=True)
class _NodeQuery(Generic[T]):
    store: CallGraphStore
    _filters: tuple[Callable[[T], bool], ...] = field(default=(), repr=False)
    _labels: tuple[str, ...] = ()

    noun = "node"

    def _items(self) -> tuple[T, ...]:
        raise NotImplementedError

    def where(self: Q, predicate: Callable[[T], bool], label: str = "where") -> Q:
        """Narrow by an arbitrary predicate."""
        return replace(self, _filters=(*self._filters, predicate), _labels=(*self._labels, label))

    # -- shared predicates ------------------------------------------------

    def kind(self: Q, kind: str | Enum) -> Q:
        wanted = _text(kind)
        return self.where(lambda n: n.kind.value == wanted, f"kind={wanted}")

    def kind_type(self: Q, kind_type: str | Enum) -> Q:
        wanted = _text(kind_type)
        return self.where(lambda n: _text(n.kind_type or "") == wanted, f"kind_type={wanted}")

    def in_file(self: Q, file: str) -> Q:
        return self.where(lambda n: contains(file, n.file), f"file~{file}")

    def at_line(self: Q, line: int) -> Q:
        return self.where(lambda n: n.line == line, f"line={line}")

    # -- terminals --------------------------------------------------------

    def _iter(self) -> Iterator[T]:
        filters = self._filters
        for item in self._items():
            if all(f(item) for f in filters):
                yield item

    def all(self) -> list[T]:
        return list(self._iter())

    def first(self) -> T | None:
        return next(self._iter(), None)

    def count(self) -> int:
        return sum(1 for _ in self._iter())

    def exists(self) -> bool:
        return self.first() is not None

    def one(self) -> T:
        """Return the single match; anything else is a violation."""
        results = self.all()
        if len(results) != 1:
            raise self._violation(
                f"Expected exactly 1 {self.noun}, found {len(results)}", count=len(results)
            )
        return results[0]

    # -- assertions: return the query so checks can be chained -----------

    def assert_count(self: Q, expected: int) -> Q:
        found = self.count()
        if found != expected:
            raise self._violation(
                f"Expected {expected} {self.noun}(s), found {found}",
                count=found,
                expected=expected,
            )
        return self

    def assert_exists(self: Q) -> Q:
        if not self.exists():
            raise self._violation(f"Expected at least 1 {self.noun}, found none", count=0)
        return self

    def assert_empty(self: Q) -> Q:
        ids = [n.id for n in self._iter()]
        if ids:
            raise self._violation(
                f"Expected no {self.noun}, found {len(ids)} (ids: {', '.join(ids)})",
                count=len(ids),
                ids=ids,
            )
        return self

    def _violation(self, message: str, **details: object) -> AssertionViolation:
        return AssertionViolation.violation(
            f"{message}. Filters applied: {self.describe_filters()}",
            filters=list(self._labels),
            **details,
        )

    def describe_filters(self) -> str:
        if not self._labels:
            return "none"
        return ", ".join(self._labels)


@dataclass(frozen=True)
class ValueQuery(_NodeQuery[Value]):
    """Query over the values of a call graph."""

    noun = "value"

    def _items(self) -> tuple[Value, ...]:
        return self.store.values

    def symbol(self, symbol: str) -> ValueQuery:
        return self.where(lambda v: v.symbol == symbol, f"symbol={symbol}")

    def symbol_contains(self, substring: str) -> ValueQuery:
        return self.where(lambda v: contains(substring, v.symbol), f"symbol~{substring}")

    def symbol_matches(self, pattern: str) -> ValueQuery:
        return self.where(lambda v: glob_matches(pattern, v.symbol), f"symbol={pattern!r}")

    def named(self, name: str) -> ValueQuery:
        wanted = symbols.normalize_variable(name)
        return self.where(lambda v: v.name == wanted, f"name={wanted}")

    def has_source_call_id(self) -> ValueQuery:
        return self.where(lambda v: v.source_call_id is not None, "has_source_call")

    def has_source_value_id(self) -> ValueQuery:
        return self.where(lambda v: v.source_value_id is not None, "has_source_value")

    def with_type(self, type_name: str) -> ValueQuery:
        return self.where(lambda v: v.type == type_name, f"type={type_name}")


@dataclass(frozen=True)
class CallQuery(_NodeQuery[Call]):
    """Query over the calls of a call graph.

    ``symbol_contains`` / ``symbol_matches`` apply to the callee, the symbol
    a call targets.
    """

    noun = "call"

    def _items(self) -> tuple[Call, ...]:
        return self.store.calls

    def caller_contains(self, substring: str) -> CallQuery:
        return self.where(lambda c: contains(substring, c.caller), f"caller~{substring}")

    def callee_contains(self, substring: str) -> CallQuery:
        return self.where(lambda c: contains(substring, c.callee), f"callee~{substring}")

    def caller_matches(self, pattern: str) -> CallQuery:
        return self.where(lambda c: glob_matches(pattern, c.caller), f"caller={pattern!r}")

    def callee_matches(self, pattern: str) -> CallQuery:
        return self.where(lambda c: glob_matches(pattern, c.callee), f"callee={pattern!r}")

    def symbol_contains(self, substring: str) -> CallQuery:
        return self.callee_contains(substring)

    def symbol_matches(self, pattern: str) -> CallQuery:
        return self.callee_matches(pattern)

    def with_receiver_value_id(self, value_id: str) -> CallQuery:
        return self.where(lambda c: c.receiver_value_id == value_id, f"receiver={value_id}")

    def has_receiver(self) -> CallQuery:
        return self.where(lambda c: c.receiver_value_id is not None, "has_receiver")

    def caller_in_scope(self, fragment: str) -> CallQuery:
        """Calls made from the ``Class#method()`` named by ``fragment``."""
        return self.where(lambda c: in_scope(fragment, c.caller), f"caller in {fragment}")

    def in_method(self, class_name: str, method_name: str) -> CallQuery:
        return self.caller_in_scope(symbols.scope_pattern(class_name, method_name))

    def all_share_receiver(self) -> bool:
        """True when every match with a receiver uses the same receiver value."""
        receivers = {c.receiver_value_id for c in self._iter() if c.receiver_value_id}
        return len(receivers) <= 1

    def assert_all_share_receiver(self) -> CallQuery:
        receivers = sorted({c.receiver_value_id for c in self._iter() if c.receiver_value_id})
        if len(receivers) > 1:
            raise self._violation(
                f"Expected one shared receiver, found {len(receivers)} "
                f"({', '.join(receivers)})",
                receivers=receivers,
            )
        return self


class MethodScope:
    """Queries pre-scoped to one method.

    Usage::

        scope = MethodScope(store, "App\\Service\\OrderService", "createOrder")
        locals_ = scope.values().kind("local").all()
        calls = scope.calls().kind("method").all()
    """

    def __init__(self, store: CallGraphStore, class_name: str, method_name: str) -> None:
        self.store = store
        self.class_name = class_name.lstrip("\\")
        self.method_name = method_name
        self.scope_pattern = symbols.scope_pattern(class_name, method_name)

    def calls(self) -> CallQuery:
        """Calls whose caller is this method."""
        return CallQuery(self.store).caller_in_scope(self.scope_pattern)

    def values(self) -> ValueQuery:
        """Values declared in this method, or produced by a call made from it."""
        pattern = self.scope_pattern
        store = self.store

        def declared_here(value: Value) -> bool:
            if value.symbol is not None:
                return in_scope(pattern, value.symbol)
            call = store.source_call_of(value)
            return call is not None and in_scope(pattern, call.caller)

        return ValueQuery(store).where(declared_here, f"scope={pattern}")

    def parameter(self, name: str) -> ValueQuery:
        return self.values().kind("parameter").named(name)

    def local(self, name: str) -> ValueQuery:
        return self.values().kind("local").named(name)

    def encloses(self, symbol: str | None) -> bool:
        return in_scope(self.scope_pattern, symbol)

    @property
    def label(self) -> str:
        return f"{self.class_name}::{self.method_name}"

    def __repr__(self) -> str:
        return f"MethodScope({self.label})"
