"""Argument -> value binding checks.

Usage::

    ArgumentBindingAssertion(store) \\
        .in_method("App\\Service\\OrderService", "createOrder") \\
        .at_call("save") \\
        .position(0) \\
        .points_to_local("$processedOrder") \\
        .verify()
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from callcontract.core.errors import AssertionViolation
from callcontract.graph import symbols
from callcontract.graph.models import Call, Value, ValueKind
from callcontract.graph.patterns import glob_matches
from callcontract.graph.query import MethodScope
from callcontract.graph.store import CallGraphStore


@dataclass(frozen=True)
class ArgumentBindingAssertion:
    store: CallGraphStore
    class_name: str | None = None
    method_name: str | None = None
    callee: str | None = None
    line: int | None = None
    argument_position: int | None = None
    expected_kind: ValueKind | None = None
    expected_name: str | None = None
    result_kind: str | None = None
    result_callee: str | None = None

    # -- selection ----------------------------------------------------------

    def in_method(self, class_name: str, method_name: str) -> ArgumentBindingAssertion:
        return replace(self, class_name=class_name.lstrip("\\"), method_name=method_name)

    def at_call(self, callee_substring: str) -> ArgumentBindingAssertion:
        return replace(self, callee=callee_substring)

    def at_line(self, line: int) -> ArgumentBindingAssertion:
        return replace(self, line=line)

    def position(self, position: int) -> ArgumentBindingAssertion:
        return replace(self, argument_position=position)

    # -- expectation --------------------------------------------------------

    def points_to_local(self, name: str) -> ArgumentBindingAssertion:
        return self._expect(ValueKind.LOCAL, symbols.normalize_variable(name))

    def points_to_parameter(self, name: str) -> ArgumentBindingAssertion:
        return self._expect(ValueKind.PARAMETER, symbols.normalize_variable(name))

    def points_to_literal(self) -> ArgumentBindingAssertion:
        return self._expect(ValueKind.LITERAL, None)

    def points_to_result_of(self, kind: str, callee_substring: str) -> ArgumentBindingAssertion:
        """The argument is the result of a ``kind`` call whose callee contains ``callee_substring``.

        ``callee_substring`` may also be a glob (``*#email.``).
        """
        return replace(
            self._expect(ValueKind.RESULT, None),
            result_kind=kind,
            result_callee=callee_substring,
        )

    def _expect(self, kind: ValueKind, name: str | None) -> ArgumentBindingAssertion:
        return replace(
            self, expected_kind=kind, expected_name=name, result_kind=None, result_callee=None
        )

    # -- terminal -----------------------------------------------------------

    def verify(self) -> Value:
        """Resolve the argument and check it; returns the bound value.

        Raises:
            ValueError: Incomplete configuration.
            AssertionViolation: Call, argument or value missing, or the value
                does not satisfy the expectation.
        """
        expected = self._validate()
        scope = MethodScope(self.store, self.class_name or "", self.method_name or "")
        position = self.argument_position

        call = self._find_call(scope)
        if call is None:
            raise self._violation(scope, None, self._call_not_found(scope))

        if not call.arguments:
            raise self._violation(
                scope, call, f"call has no arguments, expected one at position {position}"
            )
        argument = call.argument_at(position or 0)
        if argument is None:
            available = ", ".join(str(p) for p in call.positions)
            raise self._violation(
                scope, call, f"no argument at position {position}. Available positions: {available}"
            )
        if argument.value_id is None:
            raise self._violation(
                scope,
                call,
                f"argument at position {position} has no value_id "
                f"(value_expr={argument.value_expr!r})",
            )

        value = self.store.get_value(argument.value_id)
        if value is None:
            raise self._violation(
                scope, call, f"argument value_id {argument.value_id} does not exist in values"
            )
        self._check_value(scope, call, value, expected)
        return value

    def _validate(self) -> ValueKind:
        """Fail on incomplete configuration; returns the expected kind."""
        if self.class_name is None or self.method_name is None:
            raise ValueError("Must call in_method() before verify()")
        if self.callee is None and self.line is None:
            raise ValueError("Must call at_call() or at_line() before verify()")
        if self.argument_position is None:
            raise ValueError("Must call position() before verify()")
        if self.expected_kind is None:
            raise ValueError(
                "Must call points_to_parameter(), points_to_local(), points_to_literal() "
                "or points_to_result_of() before verify()"
            )
        return self.expected_kind

    def _find_call(self, scope: MethodScope) -> Call | None:
        query = scope.calls()
        if self.callee is not None:
            query = query.callee_contains(self.callee)
        if self.line is not None:
            query = query.at_line(self.line)
        return query.first()

    def _call_not_found(self, scope: MethodScope) -> str:
        parts = [f"could not find call in {scope.label}"]
        if self.callee is not None:
            parts.append(f'callee containing "{self.callee}"')
        if self.line is not None:
            parts.append(f"at line {self.line}")
        return " with ".join(parts)

    def _check_value(
        self, scope: MethodScope, call: Call, value: Value, expected: ValueKind
    ) -> None:
        position = self.argument_position

        if value.kind is not expected:
            raise self._violation(
                scope,
                call,
                f"argument at position {position} points to {value.kind.value} value "
                f"(id={value.id}, {value.name or value.expr or value.symbol}), "
                f"expected {expected.value}",
                value_id=value.id,
                actual_kind=value.kind.value,
            )

        if self.expected_name is not None and value.name != self.expected_name:
            raise self._violation(
                scope,
                call,
                f"argument at position {position} points to {expected.value} "
                f"{value.name} (symbol {value.symbol!r}), expected {self.expected_name}",
                value_id=value.id,
                actual_name=value.name,
            )

        if expected is ValueKind.RESULT and self.result_callee is not None:
            source = self.store.source_call_of(value)
            if source is None:
                raise self._violation(
                    scope,
                    call,
                    f"result value {value.id} has no resolvable source call "
                    f"(source_call_id={value.source_call_id})",
                    value_id=value.id,
                )
            if self.result_kind is not None and source.kind.value != self.result_kind:
                raise self._violation(
                    scope,
                    call,
                    f"source call kind mismatch: expected {self.result_kind}, "
                    f"got {source.kind.value} ({source.describe()})",
                    value_id=value.id,
                )
            if not _callee_matches(self.result_callee, source.callee or ""):
                raise self._violation(
                    scope,
                    call,
                    f'source call callee "{source.callee}" does not contain '
                    f'expected pattern "{self.result_callee}"',
                    value_id=value.id,
                )

    def _violation(
        self, scope: MethodScope, call: Call | None, reason: str, **details: object
    ) -> AssertionViolation:
        where = scope.label
        if call is not None:
            where = f"{where}, {call.describe()}"
        return AssertionViolation.violation(
            f"Argument binding failed in {where}, position {self.argument_position}: {reason}",
            scope=scope.label,
            call_id=call.id if call else None,
            position=self.argument_position,
            **details,
        )


def _callee_matches(pattern: str, callee: str) -> bool:
    if "*" in pattern or "?" in pattern:
        return glob_matches(pattern, callee)
    return pattern in callee
