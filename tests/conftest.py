"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides a small but complete calls.json / index.scip.json pair modelled on
an order-processing service:

- ``OrderService::createOrder($input)`` processes the input into
  ``$processedOrder``, saves it through ``$this->orderRepository->save()``,
  formats a literal with ``sprintf()`` and sends ``$processedOrder->customerEmail``
  with ``EmailSender::send()``.
- ``OrderRepository::save($order)`` calls ``$order->getId()``.
"""

from __future__ import annotations

import copy
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local callcontract package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

pytest_plugins = ["pytester"]

P = "scip-php composer app 1.0 "
SVC = "src/Service/OrderService.php"
REPO = "src/Repository/OrderRepository.php"
CREATE = P + "App/Service/OrderService#createOrder()."
SAVE = P + "App/Repository/OrderRepository#save()."


def _call(
    call_id: str,
    kind: str,
    caller: str,
    callee: str,
    line: int,
    *,
    receiver: str | None = None,
    return_type: str | None = None,
    arguments: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    file, _, col = call_id.rsplit(":", 2)
    return {
        "id": call_id,
        "kind": kind,
        "caller": caller,
        "callee": callee,
        "return_type": return_type,
        "receiver_value_id": receiver,
        "location": {"file": file, "line": line, "col": int(col)},
        "arguments": arguments or [],
    }


def _value(value_id: str, kind: str, line: int, **fields: Any) -> dict[str, Any]:
    file, _, col = value_id.rsplit(":", 2)
    return {
        "id": value_id,
        "kind": kind,
        "location": {"file": file, "line": line, "col": int(col)},
        **fields,
    }


def order_document() -> dict[str, Any]:
    """A consistent call graph; every integrity check passes on it."""
    values = [
        _value(
            f"{SVC}:30:30",
            "parameter",
            30,
            symbol=CREATE[:-1] + ".($input)",
            type="App\\Dto\\CreateOrderInput",
        ),
        _value(
            f"{SVC}:30:0",
            "parameter",
            30,
            symbol=CREATE[:-1] + ".($this)",
            type="App\\Service\\OrderService",
        ),
        _value(
            f"{SVC}:33:27",
            "result",
            33,
            type="App\\Entity\\Order",
            source_call_id=f"{SVC}:33:27",
        ),
        _value(
            f"{SVC}:33:8",
            "local",
            33,
            symbol=CREATE[:-1] + ".local$processedOrder@33",
            type="App\\Entity\\Order",
            source_value_id=f"{SVC}:33:27",
        ),
        _value(
            f"{SVC}:36:15",
            "result",
            36,
            type="App\\Repository\\OrderRepository",
            source_call_id=f"{SVC}:36:15",
        ),
        _value(f"{SVC}:36:8", "result", 36, type="void", source_call_id=f"{SVC}:36:8"),
        _value(f"{SVC}:37:24", "literal", 37, expr="'Order %d created'", type="string"),
        _value(f"{SVC}:37:8", "result", 37, type="string", source_call_id=f"{SVC}:37:8"),
        _value(f"{SVC}:38:40", "result", 38, type="string", source_call_id=f"{SVC}:38:40"),
        _value(f"{SVC}:38:8", "result", 38, type="bool", source_call_id=f"{SVC}:38:8"),
        _value(
            f"{REPO}:20:22",
            "parameter",
            20,
            symbol=SAVE[:-1] + ".($order)",
            type="App\\Entity\\Order",
        ),
        _value(f"{REPO}:22:15", "result", 22, type="int", source_call_id=f"{REPO}:22:15"),
    ]
    calls = [
        _call(
            f"{SVC}:33:27",
            "method",
            CREATE,
            P + "App/Service/OrderService#process().",
            33,
            receiver=f"{SVC}:30:0",
            return_type="App\\Entity\\Order",
            arguments=[{"position": 0, "parameter": "$input", "value_id": f"{SVC}:30:30"}],
        ),
        _call(
            f"{SVC}:36:15",
            "access",
            CREATE,
            P + "App/Service/OrderService#$orderRepository.",
            36,
            receiver=f"{SVC}:30:0",
            return_type="App\\Repository\\OrderRepository",
        ),
        _call(
            f"{SVC}:36:8",
            "method",
            CREATE,
            SAVE,
            36,
            receiver=f"{SVC}:36:15",
            return_type="void",
            arguments=[{"position": 0, "parameter": "$order", "value_id": f"{SVC}:33:8"}],
        ),
        _call(
            f"{SVC}:37:8",
            "function",
            CREATE,
            P + "sprintf().",
            37,
            return_type="string",
            arguments=[
                {"position": 0, "parameter": "$format", "value_id": f"{SVC}:37:24"},
                {"position": 1, "parameter": "$values", "value_expr": "$processedOrder->id"},
            ],
        ),
        _call(
            f"{SVC}:38:40",
            "access",
            CREATE,
            P + "App/Entity/Order#$customerEmail.",
            38,
            receiver=f"{SVC}:33:8",
            return_type="string",
        ),
        _call(
            f"{SVC}:38:8",
            "method_static",
            CREATE,
            P + "App/Component/EmailSender#send().",
            38,
            return_type="bool",
            arguments=[{"position": 0, "parameter": "$to", "value_id": f"{SVC}:38:40"}],
        ),
        _call(
            f"{REPO}:22:15",
            "method",
            SAVE,
            P + "App/Entity/Order#getId().",
            22,
            receiver=f"{REPO}:20:22",
            return_type="int",
        ),
    ]
    return {"version": "3.2", "values": values, "calls": calls}


def scip_document() -> dict[str, Any]:
    """Flattened symbol index for the same project."""
    return {
        "symbols": {
            P + "App/Entity/Order#": {"kind": "class", "documentation": ["class Order"]},
            P + "App/Entity/Order#getId().": {"kind": "method"},
            P + "App/Entity/Order#$customerEmail.": {"kind": "property"},
            P + "App/Service/OrderService#": {"kind": "class"},
            P + "App/Service/OrderService#createOrder().": {"kind": "method"},
            P + "App/Component/EmailSender#": {
                "kind": "class",
                "relationships": [
                    {
                        "symbol": P + "App/Component/EmailSenderInterface#",
                        "isImplementation": True,
                    }
                ],
            },
            P + "App/Component/EmailSenderInterface#": {"kind": "interface"},
        },
        "occurrences": [
            {"symbol": P + "App/Entity/Order#", "_file": "src/Entity/Order.php",
             "range": [7, 13, 7, 18], "symbolRoles": 1},
            {"symbol": P + "App/Entity/Order#", "_file": SVC,
             "range": [5, 4, 5, 20], "symbolRoles": 2},
            {"symbol": P + "App/Entity/Order#", "_file": REPO,
             "range": [19, 20, 25], "symbolRoles": 0},
            {"symbol": P + "App/Entity/Order#getId().", "_file": "src/Entity/Order.php",
             "range": [20, 20, 20, 25], "symbolRoles": 1},
            {"symbol": P + "App/Entity/Order#getId().", "_file": REPO,
             "range": [21, 15, 21, 20], "symbolRoles": 8},
            {"symbol": P + "App/Entity/Order#$customerEmail.", "_file": "src/Entity/Order.php",
             "range": [12, 4, 12, 18], "symbolRoles": 5},
            {"symbol": P + "App/Entity/Order#$customerEmail.", "_file": SVC,
             "range": [37, 20, 37, 34], "symbolRoles": 8},
            {"symbol": P + "App/Service/OrderService#createOrder().", "_file": SVC,
             "range": [29, 20, 29, 31], "symbolRoles": 1},
            {"symbol": P + "App/Component/EmailSender#", "_file": "src/Component/EmailSender.php",
             "range": [6, 13, 6, 24], "symbolRoles": 1},
        ],
    }


@pytest.fixture
def calls_document() -> dict[str, Any]:
    return copy.deepcopy(order_document())


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write a JSON document under tmp_path and return its path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def store(calls_document: dict[str, Any]) -> Any:
    from callcontract.graph.store import CallGraphStore

    return CallGraphStore.from_document(calls_document, source="order.json")


@pytest.fixture
def symbol_index() -> Any:
    from callcontract.index.store import SymbolIndexStore

    return SymbolIndexStore.from_document(scip_document(), source="order.scip.json")


@pytest.fixture
def scip_payload() -> dict[str, Any]:
    return scip_document()
