"""In-memory, id-indexed view of a call/value graph document.

Usage::

    store = CallGraphStore.load(Path("output/calls.json"))

    value = store.get_value("src/Service/OrderService.php:42:8")
    if value is not None and store.has_call(value.source_call_id or ""):
        ...
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from callcontract.core.errors import LoadError, ParseError
from callcontract.core.logging import get_logger
from callcontract.graph.models import Call, CallGraphDocument, Value

log = get_logger(__name__)


def read_json_document(path: Path, what: str) -> Any:
    """Read and decode a JSON file, mapping failures onto LoadError/ParseError."""
    if not path.exists():
        raise LoadError.not_found(str(path), what)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError.unreadable(str(path), str(e)) from e
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError.invalid_json(str(path), str(e)) from e


def schema_error(source: str, error: ValidationError) -> ParseError:
    err = error.errors()[0]
    location = ".".join(str(loc) for loc in err["loc"]) or "<root>"
    return ParseError.schema_mismatch(source, location, err["msg"])


class CallGraphStore:
    """Immutable wrapper around a parsed calls.json with indexed lookups.

    Lookups by id are O(1). When the document repeats an id, the first entry
    wins in the id maps; the ordered lists keep every entry so integrity
    checks can still see the duplicates.
    """

    def __init__(self, document: CallGraphDocument, source: str = "<memory>") -> None:
        self._document = document
        self._source = source
        self._values_by_id = MappingProxyType(_index(document.values, "value", source))
        self._calls_by_id = MappingProxyType(_index(document.calls, "call", source))

    @classmethod
    def load(cls, path: Path | str) -> CallGraphStore:
        """Load calls.json from disk.

        Raises:
            LoadError: Path missing or unreadable.
            ParseError: Malformed JSON or a document that does not match the schema.
        """
        path = Path(path)
        data = read_json_document(path, "calls.json")
        store = cls.from_document(data, source=str(path))
        log.info(
            "call_graph_loaded",
            path=str(path),
            version=store.version,
            values=store.value_count,
            calls=store.call_count,
        )
        return store

    @classmethod
    def from_document(cls, data: Any, source: str = "<memory>") -> CallGraphStore:
        if not isinstance(data, dict):
            raise ParseError.schema_mismatch(source, "<root>", "document must be a JSON object")
        try:
            document = CallGraphDocument.model_validate(data)
        except ValidationError as e:
            raise schema_error(source, e) from e
        return cls(document, source)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def source(self) -> str:
        return self._source

    @property
    def version(self) -> str:
        """Schema version string; informational only."""
        return self._document.version

    @property
    def values(self) -> tuple[Value, ...]:
        return self._document.values

    @property
    def calls(self) -> tuple[Call, ...]:
        return self._document.calls

    @property
    def value_count(self) -> int:
        return len(self._document.values)

    @property
    def call_count(self) -> int:
        return len(self._document.calls)

    @property
    def values_by_id(self) -> Mapping[str, Value]:
        return self._values_by_id

    @property
    def calls_by_id(self) -> Mapping[str, Call]:
        return self._calls_by_id

    def get_value(self, value_id: str) -> Value | None:
        return self._values_by_id.get(value_id)

    def get_call(self, call_id: str) -> Call | None:
        return self._calls_by_id.get(call_id)

    def has_value(self, value_id: str) -> bool:
        return value_id in self._values_by_id

    def has_call(self, call_id: str) -> bool:
        return call_id in self._calls_by_id

    def result_of(self, call: Call) -> Value | None:
        """The value a call produces.

        ``result_value_id`` when the document carries one; otherwise the
        producer's convention of giving the result value the call's own id.
        """
        if call.result_value_id is not None:
            return self.get_value(call.result_value_id)
        value = self.get_value(call.id)
        if value is not None and value.source_call_id in (None, call.id):
            return value
        return None

    def source_call_of(self, value: Value) -> Call | None:
        if value.source_call_id is None:
            return None
        return self.get_call(value.source_call_id)

    def __repr__(self) -> str:
        return (
            f"CallGraphStore(source={self._source!r}, version={self.version!r}, "
            f"values={self.value_count}, calls={self.call_count})"
        )


def _index(items: tuple[Any, ...], what: str, source: str) -> dict[str, Any]:
    by_id: dict[str, Any] = {}
    duplicates = 0
    for item in items:
        if item.id in by_id:
            duplicates += 1
            continue
        by_id[item.id] = item
    if duplicates:
        log.warning("duplicate_ids", source=source, kind=what, count=duplicates)
    return by_id
