"""Accumulated results of a batched integrity run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Order of the checks in reports, summaries and JSON output.
CHECK_NAMES: tuple[str, ...] = (
    "no_parameter_duplicates",
    "no_local_duplicates_per_line",
    "all_receiver_value_ids_exist",
    "all_argument_value_ids_exist",
    "all_source_call_ids_exist",
    "all_source_value_ids_exist",
    "every_call_has_result_value",
    "result_value_types_match",
    "arguments_well_formed",
)

_SUMMARY_LABELS: dict[str, str] = {
    "no_parameter_duplicates": "duplicate parameter symbols",
    "no_local_duplicates_per_line": "duplicate local symbols",
    "all_receiver_value_ids_exist": "orphaned receiver_value_id",
    "all_argument_value_ids_exist": "orphaned argument value_id",
    "all_source_call_ids_exist": "orphaned source_call_id",
    "all_source_value_ids_exist": "orphaned source_value_id",
    "every_call_has_result_value": "missing result values",
    "result_value_types_match": "type mismatches",
    "arguments_well_formed": "malformed arguments",
}


@dataclass(frozen=True)
class Violation:
    """One defect: the entity ids involved and what is wrong with them.

    ``ids`` only name entities present in the store. A dangling reference
    names its holder in ``ids`` and the id it points at in ``missing_id``.
    """

    ids: tuple[str, ...]
    message: str
    missing_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ids": list(self.ids), "message": self.message}
        if self.missing_id is not None:
            data["missing_id"] = self.missing_id
        return data


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check. Disabled checks carry no violations."""

    name: str
    enabled: bool = False
    violations: tuple[Violation, ...] = ()

    @property
    def count(self) -> int:
        return len(self.violations)

    @property
    def passed(self) -> bool:
        return not self.violations

    @property
    def offending_ids(self) -> list[str]:
        """Every id named by a violation, first-seen order, no repeats."""
        return list(dict.fromkeys(i for v in self.violations for i in v.ids))

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "count": self.count,
            "violations": [v.to_dict() for v in self.violations],
        }


@dataclass(frozen=True)
class IntegrityReport:
    """One CheckResult per known check, in ``CHECK_NAMES`` order.

    Usage::

        report = DataIntegrityAssertion(store).all_checks().report()
        if report.has_issues:
            for name in report.violated_checks:
                print(name, report[name].offending_ids)
    """

    checks: tuple[CheckResult, ...] = field(
        default_factory=lambda: tuple(CheckResult(name) for name in CHECK_NAMES)
    )

    def __getitem__(self, name: str) -> CheckResult:
        for check in self.checks:
            if check.name == name:
                return check
        raise KeyError(name)

    def count(self, name: str) -> int:
        return self[name].count

    @property
    def violated_checks(self) -> list[str]:
        return [c.name for c in self.checks if c.violations]

    @property
    def enabled_checks(self) -> list[str]:
        return [c.name for c in self.checks if c.enabled]

    @property
    def has_issues(self) -> bool:
        return any(c.violations for c in self.checks)

    @property
    def total_issues(self) -> int:
        return sum(c.count for c in self.checks)

    @property
    def issues(self) -> list[str]:
        """Flat list of every violation message."""
        return [v.message for c in self.checks for v in c.violations]

    def summary(self) -> str:
        parts = [f"{c.count} {_SUMMARY_LABELS[c.name]}" for c in self.checks if c.violations]
        return ", ".join(parts) if parts else "No issues found"

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_issues": self.has_issues,
            "total_issues": self.total_issues,
            "summary": self.summary(),
            "checks": {c.name: c.to_dict() for c in self.checks},
        }
