"""Fluent, read-only queries over the SCIP symbol index.

All entry points require a loaded SymbolIndexStore. The index is optional,
so passing ``None`` raises DataUnavailableError instead of failing later on
an attribute access; callers that cannot be sure the index was produced
check ``ContractData.has_symbol_index`` first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import Generic, TypeVar

from callcontract.core.errors import AssertionViolation, DataUnavailableError
from callcontract.graph.patterns import contains, glob_matches
from callcontract.graph.symbols import normalize_class
from callcontract.index.models import Occurrence, Relationship, Symbol
from callcontract.index.store import SymbolIndexStore

T = TypeVar("T", Symbol, Occurrence)
Q = TypeVar("Q", bound="_IndexQuery")  # type: ignore[type-arg]


def _require(store: SymbolIndexStore | None) -> SymbolIndexStore:
    if store is None:
        raise DataUnavailableError.symbol_index()
    return store


@dataclass(frozen=True)
class _IndexQuery(Generic[T]):
    store: SymbolIndexStore | None
    _filters: tuple[Callable[[T], bool], ...] = field(default=(), repr=False)
    _labels: tuple[str, ...] = ()

    noun = "entry"

    def __post_init__(self) -> None:
        _require(self.store)

    @property
    def index(self) -> SymbolIndexStore:
        return _require(self.store)

    def _items(self) -> Iterable[T]:
        raise NotImplementedError

    def where(self: Q, predicate: Callable[[T], bool], label: str = "where") -> Q:
        return replace(self, _filters=(*self._filters, predicate), _labels=(*self._labels, label))

    def _iter(self) -> Iterator[T]:
        for item in self._items():
            if all(f(item) for f in self._filters):
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
        results = self.all()
        if len(results) != 1:
            raise self._violation(
                f"Expected exactly 1 {self.noun}, found {len(results)}", count=len(results)
            )
        return results[0]

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
        found = self.count()
        if found:
            raise self._violation(f"Expected no {self.noun}, found {found}", count=found)
        return self

    def _violation(self, message: str, **details: object) -> AssertionViolation:
        return AssertionViolation.violation(
            f"{message}. Filters applied: {self.describe_filters()}",
            filters=list(self._labels),
            **details,
        )

    def describe_filters(self) -> str:
        return ", ".join(self._labels) or "none"


@dataclass(frozen=True)
class SymbolQuery(_IndexQuery[Symbol]):
    """Query over indexed symbols."""

    noun = "symbol"

    def _items(self) -> Iterable[Symbol]:
        return self.index.symbols.values()

    def symbol(self, name: str) -> SymbolQuery:
        return self.where(lambda s: s.name == name, f"symbol={name}")

    def symbol_contains(self, substring: str) -> SymbolQuery:
        return self.where(lambda s: substring in s.name, f"symbol~{substring}")

    def symbol_matches(self, pattern: str) -> SymbolQuery:
        return self.where(lambda s: glob_matches(pattern, s.name), f"symbol={pattern!r}")

    def of_kind(self, kind: str) -> SymbolQuery:
        wanted = kind.lower()
        return self.where(lambda s: s.kind == wanted, f"kind={wanted}")

    def is_class(self) -> SymbolQuery:
        return self.where(lambda s: s.is_class, "is_class")

    def is_method(self) -> SymbolQuery:
        return self.where(
            lambda s: s.kind == "method" if s.kind else _descriptor(s.name).endswith("()."),
            "is_method",
        )

    def is_property(self) -> SymbolQuery:
        return self.where(
            lambda s: s.kind == "property" if s.kind else "#$" in _descriptor(s.name),
            "is_property",
        )

    def has_documentation(self) -> SymbolQuery:
        return self.where(lambda s: any(d for d in s.documentation), "has_documentation")

    def has_relationships(self) -> SymbolQuery:
        return self.where(lambda s: bool(s.relationships), "has_relationships")

    def has_relationship_kind(self, kind: str) -> SymbolQuery:
        """``kind``: implementation, type_definition, reference or definition."""
        return self.where(
            lambda s: any(r.has_kind(kind) for r in s.relationships), f"relationship={kind}"
        )

    def names(self) -> list[str]:
        return [s.name for s in self._iter()]

    def occurrences(self) -> OccurrenceQuery:
        """Occurrences of every matched symbol."""
        return OccurrenceQuery(self.store).for_symbols(self.names())

    def relationships(self) -> list[Relationship]:
        return [r for s in self._iter() for r in s.relationships]


def _descriptor(name: str) -> str:
    return name.split()[-1] if name else name


@dataclass(frozen=True)
class OccurrenceQuery(_IndexQuery[Occurrence]):
    """Query over symbol occurrences.

    Line arguments are 1-indexed; stored ranges are 0-indexed and converted
    through ``Occurrence.line``.
    """

    _symbols: tuple[str, ...] | None = None

    noun = "occurrence"

    def _items(self) -> Iterable[Occurrence]:
        if self._symbols is None:
            return self.index.occurrences
        return [occ for name in self._symbols for occ in self.index.occurrences_for(name)]

    def for_symbol(self, symbol: str) -> OccurrenceQuery:
        return replace(self, _symbols=(symbol,), _labels=(*self._labels, f"symbol={symbol}"))

    def for_symbols(self, symbols: Iterable[str]) -> OccurrenceQuery:
        names = tuple(symbols)
        return replace(self, _symbols=names, _labels=(*self._labels, f"symbols[{len(names)}]"))

    def symbol_contains(self, substring: str) -> OccurrenceQuery:
        return self.where(lambda o: substring in o.symbol, f"symbol~{substring}")

    def symbol_matches(self, pattern: str) -> OccurrenceQuery:
        return self.where(lambda o: glob_matches(pattern, o.symbol), f"symbol={pattern!r}")

    def in_file(self, file: str) -> OccurrenceQuery:
        return self.where(lambda o: contains(file, o.file), f"file~{file}")

    def at_line(self, line: int) -> OccurrenceQuery:
        return self.where(lambda o: o.line == line, f"line={line}")

    def between_lines(self, low: int, high: int) -> OccurrenceQuery:
        return self.where(lambda o: low <= o.line <= high, f"lines={low}..{high}")

    def is_definition(self) -> OccurrenceQuery:
        roles = self.index.roles
        return self.where(lambda o: roles.is_definition(o.roles), "definition")

    def is_reference(self) -> OccurrenceQuery:
        roles = self.index.roles
        return self.where(lambda o: roles.is_reference(o.roles), "reference")

    def has_role(self, name: str) -> OccurrenceQuery:
        bit = self.index.roles.bit(name)
        return self.where(lambda o: bool(o.roles & bit), f"role={name}")

    def is_import(self) -> OccurrenceQuery:
        return self.has_role("Import")

    def is_write_access(self) -> OccurrenceQuery:
        return self.has_role("WriteAccess")

    def is_read_access(self) -> OccurrenceQuery:
        return self.has_role("ReadAccess")

    def role_names(self, occurrence: Occurrence) -> list[str]:
        """Decode an occurrence's role bitmask with this index's role schema."""
        return self.index.roles.names(occurrence.roles)

    def files(self) -> list[str]:
        """Distinct files among the matches, in first-seen order."""
        return list(dict.fromkeys(o.file for o in self._iter()))


class SymbolIndexQuery:
    """Entry point for querying the symbol index."""

    def __init__(self, store: SymbolIndexStore | None) -> None:
        self.store = _require(store)

    def symbols(self) -> SymbolQuery:
        return SymbolQuery(self.store)

    def occurrences(self) -> OccurrenceQuery:
        return OccurrenceQuery(self.store)

    def symbol(self, name_or_pattern: str) -> SymbolQuery:
        """Symbols by name or glob pattern.

        A PHP class name (``App\\Service\\OrderService``) is converted to the
        SCIP descriptor form first.
        """
        normalized = name_or_pattern
        if "/" not in normalized and "#" not in normalized:
            normalized = normalize_class(normalized)
        if "*" in normalized or "?" in normalized:
            return self.symbols().symbol_matches(normalized)
        return self.symbols().symbol_contains(normalized)

    def occurrence_at(self, file: str, line: int) -> OccurrenceQuery:
        return self.occurrences().in_file(file).at_line(line)

    def role_names(self, occurrence: Occurrence) -> list[str]:
        return self.store.roles.names(occurrence.roles)
