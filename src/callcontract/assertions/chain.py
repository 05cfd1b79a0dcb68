"""Value -> Call -> Value chain verification.

Two ways to describe a chain:

- backward, from a known value id, following ``source_value_id`` /
  ``source_call_id`` and the call's receiver until a value with no source::

      ChainIntegrityAssertion(store).starting_at(value_id).ending_at_kind("parameter").verify()

- forward, from a variable, naming each access or method hop::

      ChainIntegrityAssertion(store) \\
          .starting_from("App\\Service\\OrderService", "createOrder", "$this") \\
          .through_access("orderRepository") \\
          .through_method("save") \\
          .verify()

Both produce a ChainVerificationResult whose steps run from the root value
to the final value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from callcontract.core.errors import AssertionViolation
from callcontract.graph.models import Call, CallKind, Value, ValueKind
from callcontract.graph.query import CallQuery, MethodScope
from callcontract.graph.store import CallGraphStore


@dataclass(frozen=True)
class ChainStep:
    type: Literal["value", "call"]
    node: Value | Call

    def describe(self) -> str:
        return self.node.describe()


@dataclass(frozen=True)
class ChainVerificationResult:
    steps: tuple[ChainStep, ...]
    root_value: Value
    final_value: Value
    step_count: int

    @property
    def final_type(self) -> str | None:
        return self.final_value.type

    @property
    def call_steps(self) -> list[Call]:
        return [s.node for s in self.steps if isinstance(s.node, Call)]

    @property
    def value_steps(self) -> list[Value]:
        return [s.node for s in self.steps if isinstance(s.node, Value)]

    def get_step(self, index: int) -> ChainStep | None:
        if 0 <= index < len(self.steps):
            return self.steps[index]
        return None

    def describe(self) -> str:
        return " -> ".join(s.describe() for s in self.steps)


def _trace(steps: list[ChainStep]) -> str:
    return " -> ".join(s.describe() for s in steps) or "(empty)"


def _fail(message: str, **details: object) -> AssertionViolation:
    return AssertionViolation.violation(message, **details)


@dataclass(frozen=True)
class ChainIntegrityAssertion:
    store: CallGraphStore
    start_value_id: str | None = None
    end_kind: ValueKind | None = None
    length: int | None = None
    class_name: str | None = None
    method_name: str | None = None
    start_variable: str | None = None
    hops: tuple[tuple[CallKind, str], ...] = ()

    # -- backward mode ------------------------------------------------------

    def starting_at(self, value_id: str) -> ChainIntegrityAssertion:
        return replace(self, start_value_id=value_id, start_variable=None, hops=())

    def ending_at_kind(self, kind: str | ValueKind) -> ChainIntegrityAssertion:
        """Require the chain's root value to be of ``kind``."""
        return replace(self, end_kind=ValueKind(kind))

    def with_length(self, calls: int) -> ChainIntegrityAssertion:
        """Require exactly ``calls`` call steps."""
        return replace(self, length=calls)

    # -- forward mode -------------------------------------------------------

    def starting_from(
        self, class_name: str, method_name: str, variable: str
    ) -> ChainIntegrityAssertion:
        return replace(
            self,
            class_name=class_name.lstrip("\\"),
            method_name=method_name,
            start_variable=variable,
            start_value_id=None,
        )

    def through_access(self, property_name: str) -> ChainIntegrityAssertion:
        return replace(self, hops=(*self.hops, (CallKind.ACCESS, property_name)))

    def through_method(self, method_name: str) -> ChainIntegrityAssertion:
        return replace(self, hops=(*self.hops, (CallKind.METHOD, method_name)))

    # -- terminal -----------------------------------------------------------

    def verify(self) -> ChainVerificationResult:
        """Walk the chain and return it.

        Raises:
            ValueError: Neither ``starting_at`` nor ``starting_from`` (with at
                least one hop) was configured.
            AssertionViolation: Dangling link, broken back-link, missing hop,
                or an end condition that does not hold.
        """
        if self.start_value_id is not None:
            result = self._walk_backward(self.start_value_id)
        elif self.start_variable is not None:
            if not self.hops:
                raise ValueError(
                    "Must add at least one step with through_access() or through_method()"
                )
            result = self._walk_forward()
        else:
            raise ValueError("Must call starting_at() or starting_from() before verify()")

        if self.end_kind is not None and result.root_value.kind is not self.end_kind:
            raise _fail(
                f"Chain from {result.final_value.id} ends at {result.root_value.describe()}, "
                f"expected kind {self.end_kind.value}. Chain: {result.describe()}",
                root_value_id=result.root_value.id,
            )
        if self.length is not None and result.step_count != self.length:
            raise _fail(
                f"Chain has {result.step_count} call steps, expected {self.length}. "
                f"Chain: {result.describe()}",
                step_count=result.step_count,
            )
        return result

    def _sources(self, value: Value) -> tuple[Value | None, Call | None]:
        """Resolve ``value``'s source links, failing on any that dangle."""
        source: Value | None = None
        call: Call | None = None
        if value.source_value_id is not None:
            source = self.store.get_value(value.source_value_id)
            if source is None:
                raise _fail(
                    f"Dangling source_value_id: value {value.id} references non-existent "
                    f"value {value.source_value_id}",
                    value_id=value.id,
                    missing_id=value.source_value_id,
                )
        if value.source_call_id is not None:
            call = self.store.get_call(value.source_call_id)
            if call is None:
                raise _fail(
                    f"Dangling source_call_id: value {value.id} references non-existent "
                    f"call {value.source_call_id}",
                    value_id=value.id,
                    missing_id=value.source_call_id,
                )
        return source, call

    def _walk_backward(self, value_id: str) -> ChainVerificationResult:
        store = self.store
        start = store.get_value(value_id)
        if start is None:
            raise _fail(f"Chain start value {value_id} does not exist", value_id=value_id)

        # Built from the start back to the root, reversed at the end.
        trail: list[ChainStep] = [ChainStep("value", start)]
        seen = {start.id}
        current: Value | None = start
        while current is not None:
            value = current
            current = None
            # Both links are checked even though only one is followed.
            source, call = self._sources(value)
            if source is not None:
                current = source
            elif call is not None:
                result = store.result_of(call)
                if result is None or result.id != value.id:
                    raise _fail(
                        f"Broken back-link: value {value.id} claims call {call.id} as its source, "
                        f"but the call's result is {result.id if result else 'missing'}",
                        value_id=value.id,
                        call_id=call.id,
                    )
                trail.append(ChainStep("call", call))
                if call.receiver_value_id is not None:
                    receiver = store.get_value(call.receiver_value_id)
                    if receiver is None:
                        raise _fail(
                            f"Dangling receiver_value_id: call {call.id} references "
                            f"non-existent value {call.receiver_value_id}",
                            call_id=call.id,
                            missing_id=call.receiver_value_id,
                        )
                    current = receiver

            if current is not None:
                if current.id in seen:
                    raise _fail(
                        f"Chain from {start.id} loops back to value {current.id}",
                        value_id=current.id,
                    )
                seen.add(current.id)
                trail.append(ChainStep("value", current))

        steps = tuple(reversed(trail))
        values = [s.node for s in steps if isinstance(s.node, Value)]
        return ChainVerificationResult(
            steps=steps,
            root_value=values[0],
            final_value=start,
            step_count=sum(1 for s in steps if s.type == "call"),
        )

    def _walk_forward(self) -> ChainVerificationResult:
        scope = MethodScope(self.store, self.class_name or "", self.method_name or "")
        start = self._find_start(scope)
        if start is None:
            raise _fail(
                f"Could not find starting value for {self.start_variable} in {scope.label}",
                scope=scope.label,
                variable=self.start_variable,
            )

        steps: list[ChainStep] = [ChainStep("value", start)]
        current = start
        for kind, name in self.hops:
            call = (
                CallQuery(self.store)
                .caller_in_scope(scope.scope_pattern)
                .with_receiver_value_id(current.id)
                .kind(kind)
                .callee_contains(name)
                .first()
            )
            if call is None:
                raise _fail(
                    f'Could not find {kind.value} call to "{name}" with '
                    f"receiver_value_id={current.id} in {scope.label}. "
                    f"Chain trace so far: {_trace(steps)}",
                    receiver_value_id=current.id,
                    hop=name,
                )
            steps.append(ChainStep("call", call))
            result = self.store.result_of(call)
            if result is None:
                raise _fail(
                    f"Could not find result value for call id={call.id} ({kind.value} to {name})",
                    call_id=call.id,
                )
            if result.kind is not ValueKind.RESULT:
                raise _fail(
                    f"Expected result value for call id={call.id}, got kind={result.kind.value}",
                    call_id=call.id,
                    value_id=result.id,
                )
            steps.append(ChainStep("value", result))
            current = result

        return ChainVerificationResult(
            steps=tuple(steps),
            root_value=start,
            final_value=current,
            step_count=len(self.hops),
        )

    def _find_start(self, scope: MethodScope) -> Value | None:
        variable = self.start_variable or ""
        if variable == "$this":
            # $this has no declaration; take the receiver of the method's first property access.
            access = scope.calls().kind(CallKind.ACCESS).has_receiver().first()
            if access is not None and access.receiver_value_id is not None:
                return self.store.get_value(access.receiver_value_id)
            return None
        return scope.parameter(variable).first() or scope.local(variable).first()
