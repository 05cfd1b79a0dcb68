"""Tests for ReferenceConsistencyAssertion."""

from __future__ import annotations

from typing import Any

import pytest

from callcontract.assertions import ReferenceConsistencyAssertion
from callcontract.core.errors import AssertionViolation
from callcontract.graph.store import CallGraphStore

SVC = "src/Service/OrderService.php"
REPO = "src/Repository/OrderRepository.php"
SERVICE = "App\\Service\\OrderService"
REPOSITORY = "App\\Repository\\OrderRepository"


def _local(document: dict[str, Any], value_id: str, line: int) -> None:
    template = next(v for v in document["values"] if v["kind"] == "local")
    document["values"].append(
        {
            **template,
            "id": value_id,
            "symbol": template["symbol"].rsplit("@", 1)[0] + f"@{line}",
            "location": {**template["location"], "line": line},
        }
    )


class TestParameters:
    """Parameters: exactly one declaration, every use points at it."""

    def test_single_parameter_passes(self, store: CallGraphStore) -> None:
        result = (
            ReferenceConsistencyAssertion(store)
            .in_method(REPOSITORY, "save")
            .for_parameter("$order")
            .verify()
        )

        assert result.value_id == f"{REPO}:20:22"
        assert result.value_count == 1
        assert result.reference_count == 1
        assert "verified" in result.message

    def test_name_without_dollar(self, store: CallGraphStore) -> None:
        result = (
            ReferenceConsistencyAssertion(store).in_method(SERVICE, "createOrder").for_parameter("input").verify()
        )
        assert result.value_id == f"{SVC}:30:30"

    def test_given_duplicate_parameter_when_verify_then_both_ids_reported(
        self, calls_document: dict[str, Any]
    ) -> None:
        # Given
        original = next(v for v in calls_document["values"] if v["id"] == f"{REPO}:20:22")
        calls_document["values"].append({**original, "id": f"{REPO}:20:40"})
        store = CallGraphStore.from_document(calls_document)

        # When / Then
        with pytest.raises(AssertionViolation) as exc_info:
            ReferenceConsistencyAssertion(store).in_method(REPOSITORY, "save").for_parameter("$order").verify()
        message = exc_info.value.message
        assert "found 2" in message
        assert f"{REPO}:20:22" in message
        assert f"{REPO}:20:40" in message

    def test_missing_parameter(self, store: CallGraphStore) -> None:
        with pytest.raises(AssertionViolation, match="No value entry found for parameter \\$missing"):
            ReferenceConsistencyAssertion(store).in_method(REPOSITORY, "save").for_parameter("$missing").verify()

    def test_parameter_of_other_method_not_matched(self, store: CallGraphStore) -> None:
        with pytest.raises(AssertionViolation):
            ReferenceConsistencyAssertion(store).in_method(SERVICE, "createOrder").for_parameter("$order").verify()


class TestLocals:
    """Locals: one value per assignment line."""

    def test_local_references_counted(self, store: CallGraphStore) -> None:
        result = (
            ReferenceConsistencyAssertion(store)
            .in_method(SERVICE, "createOrder")
            .for_local("$processedOrder")
            .verify()
        )

        assert result.value_id == f"{SVC}:33:8"
        assert result.reference_count == 2

    def test_reassigned_local_passes_and_reports_earliest(
        self, calls_document: dict[str, Any]
    ) -> None:
        _local(calls_document, f"{SVC}:40:8", 40)
        store = CallGraphStore.from_document(calls_document)

        result = (
            ReferenceConsistencyAssertion(store)
            .in_method(SERVICE, "createOrder")
            .for_local("$processedOrder")
            .verify()
        )

        assert result.value_count == 2
        assert result.value_id == f"{SVC}:33:8"

    def test_declared_at_selects_assignment(self, calls_document: dict[str, Any]) -> None:
        _local(calls_document, f"{SVC}:40:8", 40)
        store = CallGraphStore.from_document(calls_document)

        result = (
            ReferenceConsistencyAssertion(store)
            .in_method(SERVICE, "createOrder")
            .for_local("$processedOrder")
            .declared_at(40)
            .verify()
        )

        assert result.value_id == f"{SVC}:40:8"
        assert result.value_count == 1

    def test_two_values_on_same_line_fail(self, calls_document: dict[str, Any]) -> None:
        _local(calls_document, f"{SVC}:33:9", 33)
        store = CallGraphStore.from_document(calls_document)

        with pytest.raises(AssertionViolation, match="at line 33, found 2"):
            ReferenceConsistencyAssertion(store).in_method(SERVICE, "createOrder").for_local(
                "$processedOrder"
            ).verify()

    def test_unbound_expression_use_fails(self, calls_document: dict[str, Any]) -> None:
        # Given
        sprintf = next(c for c in calls_document["calls"] if c["id"] == f"{SVC}:37:8")
        sprintf["arguments"][1]["value_expr"] = "$processedOrder"
        store = CallGraphStore.from_document(calls_document)

        # When / Then
        with pytest.raises(AssertionViolation, match="unbound expression") as exc_info:
            ReferenceConsistencyAssertion(store).in_method(SERVICE, "createOrder").for_local(
                "$processedOrder"
            ).verify()
        assert exc_info.value.details["position"] == 1


class TestScopes:
    """Declarations and uses are matched to exactly one method."""

    def test_given_use_of_same_name_from_other_method_when_verify_then_fails(
        self, calls_document: dict[str, Any]
    ) -> None:
        # Given
        _local(calls_document, f"{SVC}:50:8", 50)
        foreign = calls_document["values"][-1]
        foreign["symbol"] = foreign["symbol"].replace("#createOrder()", "#cancelOrder()")
        access = next(c for c in calls_document["calls"] if c["id"] == f"{SVC}:38:40")
        access["receiver_value_id"] = f"{SVC}:50:8"
        store = CallGraphStore.from_document(calls_document)

        # When / Then
        with pytest.raises(AssertionViolation, match="cancelOrder") as exc_info:
            ReferenceConsistencyAssertion(store).in_method(SERVICE, "createOrder").for_local(
                "$processedOrder"
            ).verify()
        assert exc_info.value.details["actual"] == f"{SVC}:50:8"
        assert exc_info.value.details["slot"] == "receiver"

    def test_class_name_suffix_does_not_widen_scope(self, calls_document: dict[str, Any]) -> None:
        # Given
        _local(calls_document, f"{SVC}:33:9", 33)
        twin = calls_document["values"][-1]
        twin["symbol"] = twin["symbol"].replace("/OrderService#", "/SpecialOrderService#")
        store = CallGraphStore.from_document(calls_document)

        # When
        result = (
            ReferenceConsistencyAssertion(store)
            .in_method("OrderService", "createOrder")
            .for_local("$processedOrder")
            .verify()
        )

        # Then
        assert result.value_count == 1
        assert result.value_id == f"{SVC}:33:8"


class TestConfiguration:
    def test_verify_without_method(self, store: CallGraphStore) -> None:
        with pytest.raises(ValueError, match="in_method"):
            ReferenceConsistencyAssertion(store).for_parameter("$order").verify()

    def test_verify_without_variable(self, store: CallGraphStore) -> None:
        with pytest.raises(ValueError, match="for_parameter"):
            ReferenceConsistencyAssertion(store).in_method(REPOSITORY, "save").verify()

    def test_builder_is_immutable(self, store: CallGraphStore) -> None:
        base = ReferenceConsistencyAssertion(store).in_method(REPOSITORY, "save")
        base.for_parameter("$order")
        assert base.variable is None
