"""Serialization of syntax nodes, IR and suites to JSON-compatible dicts."""

from __future__ import annotations

import json
from dataclasses import fields

from .backend.pytest_suite import call_source
from .frontend.syntax import (
    BooleanLit,
    Identifier,
    MemberAccess,
    Node,
    NoneLit,
    NumericLit,
    StringLit,
)
from .ir import (
    Block,
    Branch,
    Class,
    Condition,
    FieldAssign,
    Method,
    MethodTests,
    Program,
    Property,
    Scenario,
    Stub,
    Suite,
    Value,
)
from .middleend.synthesize import value_source


def serialize(obj: object) -> object:
    """Recursively serialize an object to a JSON-compatible structure."""
    if obj is None:
        return None
    if isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [serialize(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): serialize(v) for k, v in obj.items()}
    return _ir_serialize(obj)


def _ir_serialize(obj: object) -> object:
    """Serialize IR types via isinstance dispatch."""
    if isinstance(obj, Node):
        return _serialize_node(obj)
    if isinstance(obj, Program):
        return {"classes": serialize(obj.classes)}
    if isinstance(obj, Class):
        return {
            "_type": "Class",
            "name": obj.name,
            "module": obj.module,
            "properties": serialize(obj.properties),
            "constructor": serialize(obj.constructor),
            "methods": serialize(obj.methods),
        }
    if isinstance(obj, Method):
        return {
            "_type": "Method",
            "name": obj.name,
            "parameters": serialize(obj.parameters),
            "returns": obj.returns,
            "is_public": obj.is_public,
            "is_static": obj.is_static,
            "is_async": obj.is_async,
            "accessor": obj.accessor,
            "body": serialize(obj.body),
        }
    if isinstance(obj, Block):
        return {"_type": "Block", "branches": serialize(obj.branches)}
    if isinstance(obj, Branch):
        return {
            "_type": "Branch",
            "kind": obj.kind,
            "conditions": serialize(obj.conditions),
            "if_blocks": serialize(obj.if_blocks),
            "else_block": serialize(obj.else_block),
        }
    if isinstance(obj, Condition):
        return {
            "_type": "Condition",
            "left": describe(obj.left),
            "operator": obj.operator,
            "right": describe(obj.right),
            "unary": obj.is_unary,
            "text": obj.text,
        }
    if isinstance(obj, Property):
        return {
            "_type": "Property",
            "name": obj.name,
            "type": obj.type,
            "type_name": obj.type_name,
            "is_array": obj.is_array,
            "is_literal": obj.is_literal,
            "kw_only": obj.kw_only,
        }
    if isinstance(obj, Value):
        return value_source(obj)
    if isinstance(obj, Suite):
        return suite_to_dict(obj)
    if isinstance(obj, Stub):
        return {
            "_type": "Stub",
            "class_name": obj.class_name,
            "type_name": obj.type_name,
            "members": [
                {"name": m.name, "callable": m.is_callable, "arity": m.arity} for m in obj.members
            ],
        }
    if isinstance(obj, MethodTests):
        return {
            "name": obj.method.name,
            "scenarios": serialize(obj.scenarios),
            "error": obj.error,
        }
    if isinstance(obj, Scenario):
        return {
            "label": obj.label,
            "assignments": serialize(obj.assignments),
            "call": call_source(obj.invocation),
            "comment": obj.comment,
        }
    if isinstance(obj, FieldAssign):
        return {"name": obj.name, "value": value_source(obj.value)}
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def _serialize_node(node: Node) -> dict[str, object]:
    result: dict[str, object] = {"_type": node.kind}
    for f in fields(node):
        if f.name == "loc":
            continue
        result[f.name] = serialize(getattr(node, f.name))
    result["line"] = node.loc.line
    return result


def describe(node: Node | None) -> str | None:
    """Short text for a condition operand: names, dotted paths and literals."""
    match node:
        case None:
            return None
        case Identifier(name=name):
            return name
        case MemberAccess(target=target, name=name):
            return f"{describe(target)}.{name}"
        case StringLit(value=value):
            return repr(value)
        case NumericLit(value=value):
            return repr(value)
        case BooleanLit(value=value):
            return "True" if value else "False"
        case NoneLit():
            return "None"
    return node.kind


def suite_to_dict(suite: Suite) -> dict[str, object]:
    return {
        "class": suite.cls.name,
        "imports": serialize(suite.imports),
        "stubs": serialize(suite.stubs),
        "construction": call_source(suite.construction) if suite.construction else None,
        "wiring": {w.attr: w.stub for w in suite.wiring},
        "methods": serialize(suite.methods),
    }


def to_json(obj: object) -> str:
    """Serialize object to pretty-printed JSON."""
    return json.dumps(serialize(obj), indent=2)
