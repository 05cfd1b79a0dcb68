"""Tests for DataIntegrityAssertion and the individual checks."""

from __future__ import annotations

from typing import Any

import pytest

from callcontract.assertions import DataIntegrityAssertion
from callcontract.assertions.integrity import CHECKS, find_malformed_arguments
from callcontract.assertions.report import CHECK_NAMES
from callcontract.core.errors import ErrorCode, IntegrityViolationError, InternalError
from callcontract.graph.store import CallGraphStore

SVC = "src/Service/OrderService.php"
REPO = "src/Repository/OrderRepository.php"


def _find(items: list[dict[str, Any]], item_id: str) -> dict[str, Any]:
    return next(i for i in items if i["id"] == item_id)


class TestCleanDocument:
    """A consistent document passes everything."""

    def test_all_checks_pass(self, store: CallGraphStore) -> None:
        report = DataIntegrityAssertion(store).all_checks().verify()

        assert not report.has_issues
        assert report.enabled_checks == list(CHECK_NAMES)
        assert report.summary() == "No issues found"

    def test_every_check_is_registered(self) -> None:
        assert set(CHECKS) == set(CHECK_NAMES)

    def test_only_enabled_checks_run(self, store: CallGraphStore) -> None:
        report = DataIntegrityAssertion(store).no_parameter_duplicates().report()

        assert report.enabled_checks == ["no_parameter_duplicates"]
        assert not report["result_value_types_match"].enabled


class TestDuplicates:
    """Duplicate symbol checks."""

    def test_given_duplicate_parameter_when_reported_then_one_check_lists_both(
        self, calls_document: dict[str, Any]
    ) -> None:
        # Given
        original = _find(calls_document["values"], f"{REPO}:20:22")
        calls_document["values"].append({**original, "id": f"{REPO}:20:40"})
        store = CallGraphStore.from_document(calls_document)

        # When
        report = DataIntegrityAssertion(store).all_checks().report()

        # Then
        assert report.violated_checks == ["no_parameter_duplicates"]
        assert report["no_parameter_duplicates"].offending_ids == [f"{REPO}:20:22", f"{REPO}:20:40"]
        for name in CHECK_NAMES[1:]:
            assert report.count(name) == 0
        assert report.summary() == "1 duplicate parameter symbols"

    def test_same_name_in_different_methods_is_fine(self, calls_document: dict[str, Any]) -> None:
        original = _find(calls_document["values"], f"{REPO}:20:22")
        calls_document["values"].append(
            {**original, "id": f"{SVC}:30:50", "symbol": original["symbol"].replace("#save()", "#find()")}
        )
        store = CallGraphStore.from_document(calls_document)

        assert DataIntegrityAssertion(store).no_parameter_duplicates().report().count(
            "no_parameter_duplicates"
        ) == 0

    def test_local_duplicates_are_per_line(self, calls_document: dict[str, Any]) -> None:
        local = _find(calls_document["values"], f"{SVC}:33:8")
        calls_document["values"].append(
            {**local, "id": f"{SVC}:40:8", "symbol": local["symbol"].replace("@33", "@40")}
        )
        calls_document["values"].append({**local, "id": f"{SVC}:33:9"})
        store = CallGraphStore.from_document(calls_document)

        check = DataIntegrityAssertion(store).no_local_duplicates_per_line().report()[
            "no_local_duplicates_per_line"
        ]

        assert check.offending_ids == [f"{SVC}:33:8", f"{SVC}:33:9"]
        assert "@33" in check.violations[0].message


class TestReferences:
    """Dangling id checks."""

    def test_orphaned_receiver(self, calls_document: dict[str, Any]) -> None:
        _find(calls_document["calls"], f"{REPO}:22:15")["receiver_value_id"] = "ghost"
        store = CallGraphStore.from_document(calls_document)

        report = DataIntegrityAssertion(store).all_receiver_value_ids_exist().report()

        assert report["all_receiver_value_ids_exist"].offending_ids == [f"{REPO}:22:15"]
        assert "ghost" in report.issues[0]

    def test_orphaned_argument(self, calls_document: dict[str, Any]) -> None:
        _find(calls_document["calls"], f"{SVC}:38:8")["arguments"][0]["value_id"] = "ghost"
        store = CallGraphStore.from_document(calls_document)

        report = DataIntegrityAssertion(store).all_argument_value_ids_exist().report()

        assert report.count("all_argument_value_ids_exist") == 1
        check = report["all_argument_value_ids_exist"]
        assert check.offending_ids == [f"{SVC}:38:8"]
        assert check.violations[0].missing_id == "ghost"

    def test_orphaned_source_links(self, calls_document: dict[str, Any]) -> None:
        _find(calls_document["values"], f"{SVC}:37:8")["source_call_id"] = "ghost-call"
        _find(calls_document["values"], f"{SVC}:33:8")["source_value_id"] = "ghost-value"
        store = CallGraphStore.from_document(calls_document)

        report = (
            DataIntegrityAssertion(store).all_source_call_ids_exist().all_source_value_ids_exist().report()
        )

        assert report["all_source_call_ids_exist"].offending_ids == [f"{SVC}:37:8"]
        assert report["all_source_value_ids_exist"].offending_ids == [f"{SVC}:33:8"]

    def test_given_dangling_receiver_when_serialized_then_missing_id_kept_apart(
        self, calls_document: dict[str, Any]
    ) -> None:
        # Given
        _find(calls_document["calls"], f"{REPO}:22:15")["receiver_value_id"] = "ghost"
        store = CallGraphStore.from_document(calls_document)

        # When
        data = DataIntegrityAssertion(store).all_checks().report().to_dict()

        # Then
        (violation,) = data["checks"]["all_receiver_value_ids_exist"]["violations"]
        assert violation["ids"] == [f"{REPO}:22:15"]
        assert violation["missing_id"] == "ghost"


class TestResults:
    """Result value presence and typing."""

    def test_missing_result_value(self, calls_document: dict[str, Any]) -> None:
        calls_document["values"] = [v for v in calls_document["values"] if v["id"] != f"{REPO}:22:15"]
        store = CallGraphStore.from_document(calls_document)

        report = DataIntegrityAssertion(store).every_call_has_result_value().report()

        assert report["every_call_has_result_value"].offending_ids == [f"{REPO}:22:15"]

    def test_result_value_id_pointing_nowhere(self, calls_document: dict[str, Any]) -> None:
        _find(calls_document["calls"], f"{SVC}:37:8")["result_value_id"] = "ghost"
        store = CallGraphStore.from_document(calls_document)

        report = DataIntegrityAssertion(store).every_call_has_result_value().report()

        assert "result_value_id references non-existent value ghost" in report.issues[0]

    def test_type_mismatch(self, calls_document: dict[str, Any]) -> None:
        _find(calls_document["calls"], f"{REPO}:22:15")["return_type"] = "string"
        store = CallGraphStore.from_document(calls_document)

        report = DataIntegrityAssertion(store).result_value_types_match().report()

        assert report.issues == [
            f"Call {REPO}:22:15 returns string but result value {REPO}:22:15 has type int"
        ]

    def test_unknown_types_are_not_compared(self, calls_document: dict[str, Any]) -> None:
        _find(calls_document["calls"], f"{REPO}:22:15")["return_type"] = None
        _find(calls_document["values"], f"{SVC}:38:8")["type"] = None
        store = CallGraphStore.from_document(calls_document)

        assert not DataIntegrityAssertion(store).result_value_types_match().report().has_issues


class TestArguments:
    def test_malformed_argument(self, calls_document: dict[str, Any]) -> None:
        _find(calls_document["calls"], f"{SVC}:37:8")["arguments"][0]["value_expr"] = "'x'"
        store = CallGraphStore.from_document(calls_document)

        violations = find_malformed_arguments(store)

        assert len(violations) == 1
        assert "has both value_id and value_expr" in violations[0].message


class TestVerify:
    """verify() runs everything before raising once."""

    def test_given_several_defects_when_verify_then_single_error_with_report(
        self, calls_document: dict[str, Any]
    ) -> None:
        # Given
        _find(calls_document["calls"], f"{REPO}:22:15")["receiver_value_id"] = "ghost"
        _find(calls_document["calls"], f"{REPO}:22:15")["return_type"] = "string"
        store = CallGraphStore.from_document(calls_document)

        # When
        with pytest.raises(IntegrityViolationError) as exc_info:
            DataIntegrityAssertion(store).all_checks().verify()

        # Then
        error = exc_info.value
        assert error.code == ErrorCode.INTEGRITY_VIOLATION
        assert isinstance(error, AssertionError)
        assert "1 orphaned receiver_value_id, 1 type mismatches" in error.message
        assert error.details["report"]["total_issues"] == 2

    def test_builder_is_immutable(self, store: CallGraphStore) -> None:
        base = DataIntegrityAssertion(store)
        base.all_checks()
        assert base.enabled == frozenset()


class TestCheckSelection:
    def test_every_check_name_has_a_builder(self, store: CallGraphStore) -> None:
        enabled = DataIntegrityAssertion(store).all_checks().enabled
        assert enabled == frozenset(CHECKS) == frozenset(CHECK_NAMES)

    def test_unknown_check_is_internal_error(self, store: CallGraphStore) -> None:
        with pytest.raises(InternalError) as exc_info:
            DataIntegrityAssertion(store)._with("no_cycles")
        assert exc_info.value.code == ErrorCode.INTERNAL_ERROR
        assert exc_info.value.details == {"check": "no_cycles"}
