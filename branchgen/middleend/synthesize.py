"""Branch value synthesis: the values that drive each outcome of a condition.

Rules are deterministic and never consult runtime state.

| Kind    | make_value | array form      | make_not_value | array form      |
|---------|------------|-----------------|----------------|-----------------|
| number  | 2          | [3, 4, 5]       | 0              | []              |
| boolean | True       | [False, True]   | False          | [False, False]  |
| string  | 'abc'      | ['de', 'fg']    | None           | []              |
| other   | None       | [None, None]    | None           | [None, None]    |

Placeholder types (binary file handles, bytes) get an ObjectStub instead.
"""

from __future__ import annotations

import logging
import math

from ..config import PLACEHOLDER_TYPES
from ..frontend.resolve import resolve_operand
from ..frontend.syntax import BooleanLit, NumericLit, StringLit
from ..ir import ArrayOf, Boolean, Condition, Null, Number, ObjectStub, Property, Text, Value

logger = logging.getLogger(__name__)

TRUE_FALSE: tuple[Value, Value] = (Boolean(True), Boolean(False))

_STREAM_TYPES = frozenset({"BinaryIO", "BytesIO", "IO"})


def make_value(prop: Property) -> Value:
    """Base value for a property: used for arguments and construction."""
    match prop.type:
        case "number":
            return ArrayOf((Number(3), Number(4), Number(5))) if prop.is_array else Number(2)
        case "boolean":
            return ArrayOf((Boolean(False), Boolean(True))) if prop.is_array else Boolean(True)
        case "string":
            return ArrayOf((Text("de"), Text("fg"))) if prop.is_array else Text("abc")
    if prop.type_name in PLACEHOLDER_TYPES:
        return _placeholder(prop)
    return ArrayOf((Null(), Null())) if prop.is_array else Null()


def make_not_value(prop: Property) -> Value:
    """Negative (falsy or empty) value for a property."""
    match prop.type:
        case "number":
            return ArrayOf() if prop.is_array else Number(0)
        case "boolean":
            return ArrayOf((Boolean(False), Boolean(False))) if prop.is_array else Boolean(False)
        case "string":
            return ArrayOf() if prop.is_array else Null()
    if prop.type_name in PLACEHOLDER_TYPES:
        return _placeholder(prop)
    return ArrayOf((Null(), Null())) if prop.is_array else Null()


def _placeholder(prop: Property) -> Value:
    stub = ObjectStub(prop.type_name or "")
    return ArrayOf((stub,)) if prop.is_array else stub


def literal_target(cond: Condition) -> tuple[Property, Property, bool]:
    """Split a binary condition into (symbol, target, found).

    The right side is preferred as the literal target; the other side is
    the symbol under test.
    """
    left = resolve_operand(cond.left)
    right = resolve_operand(cond.right)
    if right.is_literal:
        return left, right, True
    if left.is_literal:
        return right, left, True
    return right, left, False


def literal_value(prop: Property) -> Value:
    """Value of a literal property; falls back to make_value without a constant node."""
    match prop.node:
        case BooleanLit(value=value):
            return Boolean(value)
        case NumericLit(value=value):
            return Number(value)
        case StringLit(value=value):
            return Text(value)
    return make_value(prop)


def invert_value(prop: Property, value: Value) -> Value | None:
    """Complement of a literal value; None when the type has no rule."""
    if prop.is_array:
        return make_not_value(prop)
    match value:
        case Boolean(value=b):
            return Boolean(not b)
        case Number(value=n):
            return Number(n + 1)
        case Text(value=s):
            return Text("not_" + s)
    return None


def call_values(cond: Condition) -> list[Value]:
    """Values realizing every outcome of the condition.

    Two values for a literal comparison (satisfying, complement), or one
    when the complement is unsupported; (True, False) otherwise.
    """
    if cond.left is not None and cond.right is not None:
        _, target, found = literal_target(cond)
        if found:
            value = literal_value(target)
            inverted = invert_value(target, value)
            if inverted is None:
                logger.debug("no complement for %r in %r", value, cond.text)
                return [value]
            return [value, inverted]
    return list(TRUE_FALSE)


def value_source(value: Value) -> str:
    """Python source text for a value."""
    match value:
        case Boolean(value=b):
            return "True" if b else "False"
        case Number(value=n):
            if isinstance(n, float) and not math.isfinite(n):
                return f"float('{n}')"
            return repr(n)
        case Text(value=s):
            return repr(s)
        case ArrayOf(items=items):
            return "[" + ", ".join(value_source(item) for item in items) + "]"
        case Null():
            return "None"
        case ObjectStub(type_name=name):
            if name in _STREAM_TYPES:
                return "io.BytesIO(b'fakedata')"
            if name == "bytearray":
                return "bytearray(b'fakedata')"
            if name == "bytes":
                return "b'fakedata'"
            return name + "()"
    raise TypeError(f"unknown value {value!r}")


def needs_io(value: Value) -> bool:
    """Whether rendering the value requires `import io`."""
    match value:
        case ObjectStub(type_name=name):
            return name in _STREAM_TYPES
        case ArrayOf(items=items):
            return any(needs_io(item) for item in items)
    return False
