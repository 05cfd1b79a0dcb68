"""One value per declaration, and every use of the variable points at it.

Usage::

    ReferenceConsistencyAssertion(store) \\
        .in_method("App\\Repository\\OrderRepository", "save") \\
        .for_parameter("$order") \\
        .verify()
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from callcontract.core.errors import AssertionViolation
from callcontract.graph import symbols
from callcontract.graph.models import Value, ValueKind
from callcontract.graph.query import MethodScope, ValueQuery
from callcontract.graph.store import CallGraphStore


@dataclass(frozen=True)
class ReferenceVerification:
    value_id: str
    value_count: int
    reference_count: int
    message: str


@dataclass(frozen=True)
class ReferenceConsistencyAssertion:
    store: CallGraphStore
    class_name: str | None = None
    method_name: str | None = None
    variable: str | None = None
    variable_kind: ValueKind = ValueKind.PARAMETER
    line: int | None = None

    def in_method(self, class_name: str, method_name: str) -> ReferenceConsistencyAssertion:
        return replace(self, class_name=class_name.lstrip("\\"), method_name=method_name)

    def for_parameter(self, name: str) -> ReferenceConsistencyAssertion:
        return replace(
            self, variable=symbols.normalize_variable(name), variable_kind=ValueKind.PARAMETER
        )

    def for_local(self, name: str) -> ReferenceConsistencyAssertion:
        return replace(
            self, variable=symbols.normalize_variable(name), variable_kind=ValueKind.LOCAL
        )

    def declared_at(self, line: int) -> ReferenceConsistencyAssertion:
        """Pick the assignment of a re-assigned local declared on ``line``."""
        return replace(self, line=line)

    def verify(self) -> ReferenceVerification:
        """Check declarations, then every receiver/argument use in the method.

        Parameters must have exactly one value. A local may be re-assigned,
        so without ``declared_at`` each assignment line must carry exactly one
        value and the earliest one is reported.
        A receiver or argument in the method that points at a same-named
        variable declared in another method also fails.

        Raises:
            ValueError: ``in_method`` or ``for_parameter``/``for_local`` missing.
            AssertionViolation: First inconsistency found.
        """
        if self.class_name is None or self.method_name is None:
            raise ValueError("Must call in_method() before verify()")
        if self.variable is None:
            raise ValueError("Must call for_parameter() or for_local() before verify()")

        scope = MethodScope(self.store, self.class_name, self.method_name)
        kind = self.variable_kind.value
        declarations = self._declarations(scope)
        where = f"{kind} {self.variable} in {scope.label}"

        if not declarations:
            raise AssertionViolation.violation(
                f"No value entry found for {where}. Symbol pattern: {self._fragment(scope)}",
                scope=scope.label,
                variable=self.variable,
            )
        self._check_single_declaration(declarations, where)

        declared_ids = {v.id for v in declarations}
        reference_count = self._check_references(scope, declared_ids, where)

        value_id = declarations[0].id
        return ReferenceVerification(
            value_id=value_id,
            value_count=len(declarations),
            reference_count=reference_count,
            message=(
                f"Reference consistency verified for {where}: {len(declarations)} value "
                f"entry (id={value_id}), {reference_count} references"
            ),
        )

    def _fragment(self, scope: MethodScope) -> str:
        if self.variable_kind is ValueKind.PARAMETER:
            return symbols.parameter_fragment(scope.scope_pattern, self.variable or "")
        return symbols.local_fragment(scope.scope_pattern, self.variable or "")

    def _declarations(self, scope: MethodScope) -> list[Value]:
        query = (
            ValueQuery(self.store)
            .kind(self.variable_kind)
            .symbol_contains(self._fragment(scope))
            .where(lambda v: scope.encloses(v.symbol), f"scope={scope.label}")
            .named(self.variable or "")
        )
        if self.line is not None:
            line = self.line
            query = query.where(lambda v: v.declaration_line == line, f"declared_at={line}")
        return sorted(query.all(), key=lambda v: v.declaration_line or 0)

    def _check_single_declaration(self, declarations: list[Value], where: str) -> None:
        if self.variable_kind is ValueKind.PARAMETER or self.line is not None:
            if len(declarations) != 1:
                ids = [v.id for v in declarations]
                raise AssertionViolation.violation(
                    f"Expected exactly 1 value entry for {where}, found {len(declarations)} "
                    f"(ids: {', '.join(ids)})",
                    ids=ids,
                )
            return
        by_line: dict[int | None, list[str]] = {}
        for value in declarations:
            by_line.setdefault(value.declaration_line, []).append(value.id)
        for line, ids in by_line.items():
            if len(ids) > 1:
                raise AssertionViolation.violation(
                    f"Expected exactly 1 value entry for {where} at line {line}, "
                    f"found {len(ids)} (ids: {', '.join(ids)})",
                    ids=ids,
                    line=line,
                )

    def _check_references(self, scope: MethodScope, declared_ids: set[str], where: str) -> int:
        count = 0
        for call in scope.calls().all():
            refs = [("receiver", call.receiver_value_id)]
            refs += [(f"argument {a.position}", a.value_id) for a in call.arguments]
            for slot, value_id in refs:
                if value_id is None:
                    continue
                if value_id in declared_ids:
                    count += 1
                    continue
                other = self.store.get_value(value_id)
                if (
                    other is not None
                    and other.kind is self.variable_kind
                    and other.name == self.variable
                    and other.symbol is not None
                    and not scope.encloses(other.symbol)
                ):
                    raise AssertionViolation.violation(
                        f"{slot.capitalize()} of {call.describe()} in {scope.label} references "
                        f"{other.id}, declared in {other.scope}, instead of {where} "
                        f"({', '.join(sorted(declared_ids))})",
                        call_id=call.id,
                        slot=slot,
                        expected=sorted(declared_ids),
                        actual=other.id,
                    )
            for arg in call.arguments:
                if arg.value_id is None and arg.value_expr == self.variable:
                    raise AssertionViolation.violation(
                        f"Argument {arg.position} of {call.describe()} in {scope.label} uses "
                        f"{self.variable} as an unbound expression instead of referencing "
                        f"its value",
                        call_id=call.id,
                        position=arg.position,
                    )
        return count
