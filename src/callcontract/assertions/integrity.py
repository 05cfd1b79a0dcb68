"""Store-wide integrity scans.

Unlike the fast-fail assertions, every enabled check runs to completion and
its findings are accumulated into an IntegrityReport; ``verify()`` raises
once, after all of them ran.

Usage::

    DataIntegrityAssertion(store) \\
        .no_parameter_duplicates() \\
        .all_receiver_value_ids_exist() \\
        .verify()
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, replace

from callcontract.assertions.report import CHECK_NAMES, CheckResult, IntegrityReport, Violation
from callcontract.core.errors import IntegrityViolationError, InternalError
from callcontract.core.logging import get_logger
from callcontract.graph.models import Value, ValueKind
from callcontract.graph.store import CallGraphStore

log = get_logger(__name__)

Check = Callable[[CallGraphStore], list[Violation]]


# ============================================================================
# CHECKS
# ============================================================================


def _duplicates(
    store: CallGraphStore, kind: ValueKind, key: Callable[[Value], tuple[object, ...]]
) -> dict[tuple[object, ...], list[str]]:
    groups: dict[tuple[object, ...], list[str]] = defaultdict(list)
    for value in store.values:
        if value.kind is not kind or value.scope is None or value.name is None:
            continue
        groups[key(value)].append(value.id)
    return {k: ids for k, ids in groups.items() if len(ids) > 1}


def find_parameter_duplicates(store: CallGraphStore) -> list[Violation]:
    dupes = _duplicates(store, ValueKind.PARAMETER, lambda v: (v.scope, v.name))
    return [
        Violation(tuple(ids), f"Duplicate parameter {name} in {scope} (ids: {', '.join(ids)})")
        for (scope, name), ids in dupes.items()
    ]


def find_local_duplicates(store: CallGraphStore) -> list[Violation]:
    dupes = _duplicates(
        store, ValueKind.LOCAL, lambda v: (v.scope, v.name, v.declaration_line)
    )
    return [
        Violation(
            tuple(ids),
            f"Duplicate local {name}@{line} in {scope} (ids: {', '.join(ids)})",
        )
        for (scope, name, line), ids in dupes.items()
    ]


def find_orphaned_receivers(store: CallGraphStore) -> list[Violation]:
    return [
        Violation(
            (call.id,),
            f"Orphaned receiver_value_id: call {call.id} references non-existent "
            f"value {call.receiver_value_id}",
            missing_id=call.receiver_value_id,
        )
        for call in store.calls
        if call.receiver_value_id is not None and not store.has_value(call.receiver_value_id)
    ]


def find_orphaned_arguments(store: CallGraphStore) -> list[Violation]:
    found = []
    for call in store.calls:
        for arg in call.arguments:
            if arg.value_id is not None and not store.has_value(arg.value_id):
                found.append(
                    Violation(
                        (call.id,),
                        f"Orphaned argument value_id: call {call.id} arg {arg.position} "
                        f"references non-existent value {arg.value_id}",
                        missing_id=arg.value_id,
                    )
                )
    return found


def find_orphaned_source_calls(store: CallGraphStore) -> list[Violation]:
    return [
        Violation(
            (value.id,),
            f"Orphaned source_call_id: value {value.id} references non-existent "
            f"call {value.source_call_id}",
            missing_id=value.source_call_id,
        )
        for value in store.values
        if value.source_call_id is not None and not store.has_call(value.source_call_id)
    ]


def find_orphaned_source_values(store: CallGraphStore) -> list[Violation]:
    return [
        Violation(
            (value.id,),
            f"Orphaned source_value_id: value {value.id} references non-existent "
            f"value {value.source_value_id}",
            missing_id=value.source_value_id,
        )
        for value in store.values
        if value.source_value_id is not None and not store.has_value(value.source_value_id)
    ]


def find_missing_results(store: CallGraphStore) -> list[Violation]:
    found = []
    for call in store.calls:
        if store.result_of(call) is not None:
            continue
        if call.result_value_id is not None:
            message = (
                f"Call {call.id} result_value_id references non-existent "
                f"value {call.result_value_id}"
            )
        else:
            message = f"Call {call.id} ({call.kind.value} {call.callee or '?'}) has no result value"
        found.append(Violation((call.id,), message, missing_id=call.result_value_id))
    return found


def find_type_mismatches(store: CallGraphStore) -> list[Violation]:
    found = []
    for call in store.calls:
        if call.return_type is None:
            continue
        result = store.result_of(call)
        if result is None or result.type is None or result.type == call.return_type:
            continue
        found.append(
            Violation(
                (call.id, result.id),
                f"Call {call.id} returns {call.return_type} but result value "
                f"{result.id} has type {result.type}",
            )
        )
    return found


def find_malformed_arguments(store: CallGraphStore) -> list[Violation]:
    found = []
    for call in store.calls:
        for arg in call.arguments:
            if arg.is_well_formed:
                continue
            state = "both" if arg.value_id is not None else "neither"
            found.append(
                Violation(
                    (call.id,),
                    f"Call {call.id} arg {arg.position} has {state} value_id and value_expr",
                )
            )
    return found


CHECKS: dict[str, Check] = {
    "no_parameter_duplicates": find_parameter_duplicates,
    "no_local_duplicates_per_line": find_local_duplicates,
    "all_receiver_value_ids_exist": find_orphaned_receivers,
    "all_argument_value_ids_exist": find_orphaned_arguments,
    "all_source_call_ids_exist": find_orphaned_source_calls,
    "all_source_value_ids_exist": find_orphaned_source_values,
    "every_call_has_result_value": find_missing_results,
    "result_value_types_match": find_type_mismatches,
    "arguments_well_formed": find_malformed_arguments,
}


# ============================================================================
# BUILDER
# ============================================================================


@dataclass(frozen=True)
class DataIntegrityAssertion:
    """Composable battery of integrity checks over one CallGraphStore."""

    store: CallGraphStore
    enabled: frozenset[str] = frozenset()

    def _with(self, name: str) -> DataIntegrityAssertion:
        if name not in CHECKS:
            raise InternalError.unexpected(f"no integrity check named {name!r}", check=name)
        return replace(self, enabled=self.enabled | {name})

    def no_parameter_duplicates(self) -> DataIntegrityAssertion:
        """No two parameter values share a name within one method."""
        return self._with("no_parameter_duplicates")

    def no_local_duplicates_per_line(self) -> DataIntegrityAssertion:
        """No two local values share a name and declaration line within one method."""
        return self._with("no_local_duplicates_per_line")

    def all_receiver_value_ids_exist(self) -> DataIntegrityAssertion:
        return self._with("all_receiver_value_ids_exist")

    def all_argument_value_ids_exist(self) -> DataIntegrityAssertion:
        return self._with("all_argument_value_ids_exist")

    def all_source_call_ids_exist(self) -> DataIntegrityAssertion:
        return self._with("all_source_call_ids_exist")

    def all_source_value_ids_exist(self) -> DataIntegrityAssertion:
        return self._with("all_source_value_ids_exist")

    def every_call_has_result_value(self) -> DataIntegrityAssertion:
        return self._with("every_call_has_result_value")

    def result_value_types_match(self) -> DataIntegrityAssertion:
        """A call's return type equals its result value's type, when both are known."""
        return self._with("result_value_types_match")

    def arguments_well_formed(self) -> DataIntegrityAssertion:
        """Each argument carries exactly one of value_id / non-empty value_expr."""
        return self._with("arguments_well_formed")

    def all_checks(self) -> DataIntegrityAssertion:
        return replace(self, enabled=frozenset(CHECK_NAMES))

    def report(self) -> IntegrityReport:
        """Run every enabled check and collect the results. Never raises on findings."""
        results = []
        for name in CHECK_NAMES:
            if name in self.enabled:
                results.append(CheckResult(name, True, tuple(CHECKS[name](self.store))))
            else:
                results.append(CheckResult(name))
        report = IntegrityReport(tuple(results))
        log.info(
            "integrity_report",
            source=self.store.source,
            checks=len(self.enabled),
            violated=report.violated_checks,
            total_issues=report.total_issues,
        )
        return report

    def verify(self) -> IntegrityReport:
        """Run every enabled check, then raise once if any of them found something.

        Raises:
            IntegrityViolationError: Carries the full report in ``details``.
        """
        report = self.report()
        if report.has_issues:
            raise IntegrityViolationError.from_report(report)
        return report
