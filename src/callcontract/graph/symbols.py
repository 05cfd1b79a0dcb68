"""Helpers for the SCIP symbol strings carried by values and calls.

The producer writes symbols such as::

    scip-php composer app 1.0 App/Repository/OrderRepository#save().($order)
    scip-php composer app 1.0 App/Service/OrderService#create().local$order@25
    scip-php composer app 1.0 App/Service/OrderService#create().

The part up to ``Class#method()`` is the scope; the suffix names the
variable and, for locals, the line of the assignment.
"""

from __future__ import annotations

import re

_PARAMETER_RE = re.compile(r"^(?P<scope>.*)\.\((?P<name>\$?[^()]+)\)$")
_LOCAL_RE = re.compile(r"^(?P<scope>.*)\.local(?P<name>\$[^@]+)(?:@(?P<line>\d+))?$")
_METHOD_RE = re.compile(r"^(?P<scope>.*#[^#]*\(\))\.?$")


def normalize_class(class_name: str) -> str:
    """``\\App\\Service\\OrderService`` -> ``App/Service/OrderService``."""
    return class_name.lstrip("\\").replace("\\", "/")


def scope_pattern(class_name: str, method_name: str) -> str:
    """Enclosing-method fragment matched against callers and value symbols."""
    return f"{normalize_class(class_name)}#{method_name}()"


def normalize_variable(name: str) -> str:
    return name if name.startswith("$") else f"${name}"


def parameter_fragment(scope: str, name: str) -> str:
    return f"{scope}.({normalize_variable(name)})"


def local_fragment(scope: str, name: str) -> str:
    return f"{scope}.local{normalize_variable(name)}"


def variable_name(symbol: str | None) -> str | None:
    """Variable name (with ``$``) encoded in a parameter or local symbol."""
    if not symbol:
        return None
    if m := _PARAMETER_RE.match(symbol):
        return normalize_variable(m["name"])
    if m := _LOCAL_RE.match(symbol):
        return m["name"]
    return None


def symbol_scope(symbol: str | None) -> str | None:
    """Enclosing-method part of a parameter, local or method symbol."""
    if not symbol:
        return None
    for regex in (_PARAMETER_RE, _LOCAL_RE, _METHOD_RE):
        if m := regex.match(symbol):
            return m["scope"]
    return None


def declaration_line(symbol: str | None) -> int | None:
    """The ``@N`` suffix of a local symbol."""
    if symbol and (m := _LOCAL_RE.match(symbol)) and m["line"]:
        return int(m["line"])
    return None


def short_name(symbol: str) -> str:
    """Last descriptor of a symbol: ``...Order#$customerEmail.`` -> ``$customerEmail``."""
    tail = symbol.split()[-1] if " " in symbol else symbol
    tail = tail.rstrip(".#")
    for sep in ("#", "/"):
        tail = tail.rsplit(sep, 1)[-1]
    return tail.removesuffix("()")
