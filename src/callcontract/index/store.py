"""In-memory view of the optional SCIP symbol/occurrence index."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from callcontract.config.models import RoleSchema
from callcontract.core.errors import ParseError
from callcontract.core.logging import get_logger
from callcontract.graph.store import read_json_document
from callcontract.index.models import Occurrence, Symbol

log = get_logger(__name__)


class SymbolIndexStore:
    """Symbols by name plus their occurrences, indexed by symbol and by file.

    Usage::

        index = SymbolIndexStore.load_optional(Path("output/index.scip.json"))
        if index is not None:
            defs = index.occurrences_for("scip-php composer app 1.0 App/Entity/Order#")
    """

    def __init__(
        self,
        symbols: dict[str, Symbol],
        occurrences: list[Occurrence],
        roles: RoleSchema | None = None,
        source: str = "<memory>",
    ) -> None:
        self._symbols = MappingProxyType(dict(symbols))
        self._occurrences = tuple(occurrences)
        self._roles = roles or RoleSchema()
        self._source = source

        by_symbol: dict[str, list[Occurrence]] = defaultdict(list)
        by_file: dict[str, list[Occurrence]] = defaultdict(list)
        for occ in self._occurrences:
            by_symbol[occ.symbol].append(occ)
            by_file[occ.file].append(occ)
        self._by_symbol = {k: tuple(v) for k, v in by_symbol.items()}
        self._by_file = {k: tuple(v) for k, v in by_file.items()}

    @classmethod
    def load(cls, path: Path | str, roles: RoleSchema | None = None) -> SymbolIndexStore:
        """Load the index document.

        Raises:
            LoadError: Path missing or unreadable.
            ParseError: Malformed JSON or unrecognized document shape.
        """
        path = Path(path)
        data = read_json_document(path, "symbol index")
        store = cls.from_document(data, roles=roles, source=str(path))
        log.info(
            "symbol_index_loaded",
            path=str(path),
            symbols=len(store.symbols),
            occurrences=len(store.occurrences),
            files=len(store.file_paths),
        )
        return store

    @classmethod
    def load_optional(
        cls, path: Path | str | None, roles: RoleSchema | None = None
    ) -> SymbolIndexStore | None:
        """Load the index if it was produced; ``None`` when the file is absent.

        A present but malformed file still raises ParseError.
        """
        if path is None or not Path(path).exists():
            log.warning("symbol_index_unavailable", path=str(path) if path else None)
            return None
        return cls.load(path, roles=roles)

    @classmethod
    def from_document(
        cls, data: Any, roles: RoleSchema | None = None, source: str = "<memory>"
    ) -> SymbolIndexStore:
        if not isinstance(data, dict):
            raise ParseError.schema_mismatch(source, "<root>", "document must be a JSON object")
        if "documents" in data:
            symbols, occurrences = _parse_scip_export(data, source)
        else:
            symbols, occurrences = _parse_flat(data, source)
        return cls(symbols, occurrences, roles=roles, source=source)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def source(self) -> str:
        return self._source

    @property
    def roles(self) -> RoleSchema:
        return self._roles

    @property
    def symbols(self) -> Mapping[str, Symbol]:
        return self._symbols

    @property
    def occurrences(self) -> tuple[Occurrence, ...]:
        return self._occurrences

    @property
    def file_paths(self) -> list[str]:
        return list(self._by_file)

    def get_symbol(self, name: str) -> Symbol | None:
        return self._symbols.get(name)

    def has_symbol(self, name: str) -> bool:
        return name in self._symbols

    def occurrences_for(self, symbol: str) -> tuple[Occurrence, ...]:
        return self._by_symbol.get(symbol, ())

    def occurrences_in_file(self, path: str) -> tuple[Occurrence, ...]:
        return self._by_file.get(path, ())

    def __repr__(self) -> str:
        return (
            f"SymbolIndexStore(source={self._source!r}, symbols={len(self._symbols)}, "
            f"occurrences={len(self._occurrences)})"
        )


def _parse_flat(data: dict[str, Any], source: str) -> tuple[dict[str, Symbol], list[Occurrence]]:
    raw_symbols = data.get("symbols", {})
    raw_occurrences = data.get("occurrences", [])
    if not isinstance(raw_symbols, dict):
        raise ParseError.schema_mismatch(source, "symbols", "must be an object keyed by symbol name")
    if not isinstance(raw_occurrences, list):
        raise ParseError.schema_mismatch(source, "occurrences", "must be a list")

    symbols: dict[str, Symbol] = {}
    for name, info in raw_symbols.items():
        symbols[name] = _symbol(name, info or {}, source, f"symbols.{name}")

    occurrences = [
        _occurrence(raw, None, source, f"occurrences.{i}") for i, raw in enumerate(raw_occurrences)
    ]
    return symbols, occurrences


def _parse_scip_export(
    data: dict[str, Any], source: str
) -> tuple[dict[str, Symbol], list[Occurrence]]:
    documents = data.get("documents")
    if not isinstance(documents, list):
        raise ParseError.schema_mismatch(source, "documents", "must be a list")

    symbols: dict[str, Symbol] = {}
    occurrences: list[Occurrence] = []
    for d, document in enumerate(documents):
        if not isinstance(document, dict):
            raise ParseError.schema_mismatch(source, f"documents.{d}", "must be an object")
        path = document.get("relativePath", document.get("relative_path", ""))
        for s, info in enumerate(document.get("symbols", [])):
            name = info.get("symbol") if isinstance(info, dict) else None
            if not name:
                continue
            symbols.setdefault(name, _symbol(name, info, source, f"documents.{d}.symbols.{s}"))
        for o, raw in enumerate(document.get("occurrences", [])):
            occurrences.append(_occurrence(raw, path, source, f"documents.{d}.occurrences.{o}"))

    external = data.get("externalSymbols", data.get("external_symbols", []))
    for s, info in enumerate(external):
        name = info.get("symbol") if isinstance(info, dict) else None
        if name:
            symbols.setdefault(name, _symbol(name, info, source, f"externalSymbols.{s}"))
    return symbols, occurrences


def _symbol(name: str, info: Any, source: str, location: str) -> Symbol:
    if not isinstance(info, dict):
        raise ParseError.schema_mismatch(source, location, "symbol info must be an object")
    try:
        return Symbol.model_validate(
            {
                "name": name,
                "kind": info.get("kind"),
                "documentation": info.get("documentation"),
                "relationships": info.get("relationships") or [],
            }
        )
    except ValidationError as e:
        raise ParseError.schema_mismatch(source, location, str(e.errors()[0]["msg"])) from e


def _occurrence(raw: Any, file: str | None, source: str, location: str) -> Occurrence:
    if not isinstance(raw, dict):
        raise ParseError.schema_mismatch(source, location, "occurrence must be an object")
    try:
        return Occurrence.from_raw(raw, file)
    except ValueError as e:
        raise ParseError.schema_mismatch(source, location, str(e)) from e
