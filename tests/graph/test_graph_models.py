"""Tests for call-graph models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from callcontract.graph.models import (
    Argument,
    Call,
    CallKind,
    KindType,
    Stability,
    Value,
    ValueKind,
)

P = "scip-php composer app 1.0 "


class TestKinds:
    """Closed kind enumerations and their groupings."""

    @pytest.mark.parametrize(
        ("kind", "kind_type"),
        [
            (CallKind.METHOD, KindType.INVOCATION),
            (CallKind.CONSTRUCTOR, KindType.INVOCATION),
            (CallKind.FUNCTION, KindType.INVOCATION),
            (CallKind.ACCESS_ARRAY, KindType.ACCESS),
            (CallKind.ACCESS_NULLSAFE, KindType.ACCESS),
            (CallKind.COALESCE, KindType.OPERATOR),
            (CallKind.MATCH, KindType.OPERATOR),
        ],
    )
    def test_call_kind_type(self, kind: CallKind, kind_type: KindType) -> None:
        assert kind.kind_type is kind_type

    def test_stability(self) -> None:
        assert CallKind.METHOD.stability is Stability.STABLE
        assert CallKind.METHOD_NULLSAFE.stability is Stability.DEPRECATED
        assert CallKind.FUNCTION.stability is Stability.EXPERIMENTAL

    def test_value_kind_groupings(self) -> None:
        assert ValueKind.ACCESS.default_kind_type == "access"
        assert ValueKind.LOCAL.default_kind_type == "value"
        assert ValueKind.PARAMETER.is_variable
        assert not ValueKind.RESULT.is_variable


class TestValue:
    def test_camel_case_fields_accepted(self) -> None:
        value = Value.model_validate(
            {"id": "v1", "kind": "result", "kindType": "value", "sourceCallId": "c1"}
        )
        assert value.source_call_id == "c1"
        assert value.kind_type == "value"

    def test_missing_kind_type_filled(self) -> None:
        assert Value.model_validate({"id": "v1", "kind": "access"}).kind_type == "access"

    def test_flat_location_fields_lifted(self) -> None:
        value = Value.model_validate(
            {"id": "v1", "kind": "literal", "file": "src/A.php", "line": 12, "col": 4}
        )
        assert value.file == "src/A.php"
        assert value.line == 12

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Value.model_validate({"id": "v1", "kind": "closure"})

    def test_local_derived_fields(self) -> None:
        value = Value.model_validate(
            {
                "id": "v1",
                "kind": "local",
                "symbol": P + "App/Service/OrderService#createOrder().local$order@25",
                "location": {"file": "src/Service/OrderService.php", "line": 26},
            }
        )
        assert value.name == "$order"
        assert value.scope == P + "App/Service/OrderService#createOrder()"
        assert value.declaration_line == 25

    def test_declaration_line_falls_back_to_location(self) -> None:
        value = Value.model_validate(
            {"id": "v1", "kind": "parameter", "symbol": P + "A#f().($x)", "file": "a.php", "line": 7}
        )
        assert value.declaration_line == 7

    def test_frozen(self) -> None:
        value = Value.model_validate({"id": "v1", "kind": "literal"})
        with pytest.raises(ValidationError):
            value.id = "v2"  # type: ignore[misc]


class TestArgument:
    @pytest.mark.parametrize(
        ("fields", "well_formed"),
        [
            ({"value_id": "v1"}, True),
            ({"value_expr": "$a->b"}, True),
            ({"value_id": "v1", "value_expr": "$a"}, False),
            ({}, False),
            ({"value_expr": ""}, False),
        ],
    )
    def test_well_formed(self, fields: dict[str, Any], well_formed: bool) -> None:
        assert Argument.model_validate({"position": 0, **fields}).is_well_formed is well_formed

    def test_negative_position_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Argument.model_validate({"position": -1, "value_id": "v1"})


class TestCall:
    def _call(self, **fields: Any) -> Call:
        return Call.model_validate(
            {"id": "c1", "kind": "method", "caller": P + "A#f().", "callee": P + "B#g().", **fields}
        )

    def test_kind_type_filled_from_kind(self) -> None:
        assert self._call().kind_type is KindType.INVOCATION

    def test_invalid_kind_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            self._call(kind_type="expression")

    def test_duplicate_positions_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicate argument position"):
            self._call(
                arguments=[{"position": 0, "value_id": "a"}, {"position": 0, "value_id": "b"}]
            )

    def test_argument_lookup(self) -> None:
        call = self._call(
            arguments=[{"position": 1, "value_id": "b"}, {"position": 0, "value_id": "a"}]
        )
        assert call.argument_at(0).value_id == "a"  # type: ignore[union-attr]
        assert call.argument_at(2) is None
        assert call.positions == [1, 0]

    def test_scope_from_caller(self) -> None:
        assert self._call().scope == P + "A#f()"
