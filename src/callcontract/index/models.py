"""Models for the SCIP symbol/occurrence index (index.scip.json).

Two document shapes are accepted:

- the flattened form: ``{"symbols": {name: {"kind": ...}}, "occurrences": [...]}``
  where every occurrence carries its own ``_file``;
- the raw SCIP JSON export: ``{"documents": [{"relativePath", "symbols",
  "occurrences"}], "externalSymbols": [...]}``.

Both are normalized into Symbol and Occurrence records.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from callcontract.config.models import RoleSchema


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Relationship(_Frozen):
    """A SCIP relationship from one symbol to another."""

    symbol: str
    is_reference: bool = Field(default=False, validation_alias=AliasChoices("is_reference", "isReference"))
    is_implementation: bool = Field(
        default=False, validation_alias=AliasChoices("is_implementation", "isImplementation")
    )
    is_type_definition: bool = Field(
        default=False, validation_alias=AliasChoices("is_type_definition", "isTypeDefinition")
    )
    is_definition: bool = Field(
        default=False, validation_alias=AliasChoices("is_definition", "isDefinition")
    )

    def has_kind(self, kind: str) -> bool:
        """``kind`` is one of implementation, type_definition, reference, definition."""
        return bool(getattr(self, f"is_{kind}", False))


class Symbol(_Frozen):
    """A named program entity tracked by the index."""

    name: str
    kind: str | None = None
    documentation: tuple[str, ...] = ()
    relationships: tuple[Relationship, ...] = ()

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, v: Any) -> str | None:
        # Numeric SCIP kinds carry no stable name here; treat them as untagged.
        if isinstance(v, str) and v:
            return v.lower()
        return None

    @field_validator("documentation", mode="before")
    @classmethod
    def _as_list(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v] if v else []
        return v or []

    @property
    def is_class(self) -> bool:
        if self.kind is not None:
            return self.kind == "class"
        return self.name.endswith("#")


class Occurrence(_Frozen):
    """A location where a symbol is defined or referenced.

    ``start_line``/``end_line`` keep the producer's 0-indexed convention;
    ``line`` is the 1-indexed view used for every comparison with source lines.
    """

    symbol: str
    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    roles: int = 0

    @classmethod
    def from_raw(cls, raw: dict[str, Any], file: str | None = None) -> Occurrence:
        """Build from a raw occurrence record.

        SCIP ranges are ``[startLine, startCol, endLine, endCol]`` or, for
        single-line occurrences, ``[startLine, startCol, endCol]``.
        """
        rng = raw.get("range")
        if not isinstance(rng, list) or len(rng) not in (3, 4):
            raise ValueError(f"range must have 3 or 4 elements, got {rng!r}")
        if len(rng) == 3:
            start_line, start_col, end_col = rng
            end_line = start_line
        else:
            start_line, start_col, end_line, end_col = rng
        roles = raw.get("symbolRoles", raw.get("symbol_roles", 0)) or 0
        return cls(
            symbol=raw.get("symbol", ""),
            file=file if file is not None else raw.get("_file", ""),
            start_line=start_line,
            start_col=start_col,
            end_line=end_line,
            end_col=end_col,
            roles=roles,
        )

    @property
    def range(self) -> tuple[int, int, int, int]:
        return (self.start_line, self.start_col, self.end_line, self.end_col)

    @property
    def line(self) -> int:
        return self.start_line + 1

    def role_names(self, schema: RoleSchema | None = None) -> list[str]:
        return (schema or RoleSchema()).names(self.roles)
