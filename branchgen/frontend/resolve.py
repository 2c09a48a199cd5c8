"""Type and literal resolution for declarations and expressions."""

from __future__ import annotations

import logging

from ..ir import Property, TypeKind
from .syntax import (
    ArrayType,
    BooleanLit,
    KeywordType,
    Node,
    NumericLit,
    ParamDecl,
    PropertyDecl,
    REFERENCE_NODES,
    StringLit,
    TypeRef,
    find_all,
)

logger = logging.getLogger(__name__)


def basic_type(node: Node | None) -> TypeKind | None:
    """Primitive kind of a literal constant or builtin annotation, else None."""
    match node:
        case NumericLit() | KeywordType(name="number"):
            return "number"
        case StringLit() | KeywordType(name="string"):
            return "string"
        case BooleanLit() | KeywordType(name="boolean"):
            return "boolean"
    return None


def initializer(node: Node) -> Node | None:
    if isinstance(node, PropertyDecl):
        return node.value
    if isinstance(node, ParamDecl):
        return node.default
    return None


def annotation(node: Node) -> Node | None:
    if isinstance(node, (PropertyDecl, ParamDecl)):
        return node.annotation
    return None


class Resolver:
    """Resolves nodes of one module to Properties.

    Name references in initializers are looked up among the declarations of
    the enclosing class first, then the whole module. Only one level of
    indirection is followed.
    """

    def __init__(self, module: Node | None = None) -> None:
        self.module = module

    def resolve(self, node: Node, scope: Node | None = None, follow: bool = True) -> Property:
        """Property describing the node's name, type and literal-ness. Never raises."""
        prop = Property(name=getattr(node, "name", None), node=node)
        kind = basic_type(node)
        if kind is not None:
            prop.type = kind
            prop.is_literal = True
            return prop
        referenced: Property | None = None
        init = initializer(node)
        if init is not None:
            kind = basic_type(init)
            if kind is not None:
                prop.type = kind
                prop.is_literal = True
                prop.node = init
                return prop
            if follow and isinstance(init, REFERENCE_NODES):
                decl = self.lookup(init.name, scope, exclude=node)
                if decl is not None:
                    referenced = self.resolve(decl, scope, follow=False)
                    if referenced.is_literal:
                        _adopt(prop, referenced)
                        return prop
                else:
                    logger.debug("unresolved reference %r in initializer of %r", init.name, prop.name)
        ann = annotation(node)
        if ann is not None:
            self.apply_annotation(prop, ann)
            if not prop.is_unknown:
                return prop
        if referenced is not None:
            _adopt(prop, referenced)
        return prop

    def apply_annotation(self, prop: Property, ann: Node) -> None:
        """Read a declared type annotation into prop."""
        match ann:
            case ArrayType(element=element):
                self.apply_annotation(prop, element)
                prop.is_array = True
            case KeywordType(name="any"):
                pass
            case KeywordType():
                prop.type = basic_type(ann)
            case TypeRef(name=name):
                prop.type = "object"
                prop.type_name = name

    def lookup(self, name: str, scope: Node | None, exclude: Node | None = None) -> Node | None:
        """Declaration of name: enclosing scope first, then the module."""
        roots = [r for r in (scope, self.module) if r is not None]
        for root in roots:
            for decl in find_all(root, (PropertyDecl, ParamDecl)):
                if decl is not exclude and decl.name == name:
                    return decl
        return None


def _adopt(prop: Property, other: Property) -> None:
    prop.type = other.type
    prop.type_name = other.type_name
    prop.is_array = other.is_array
    prop.is_literal = other.is_literal
    if other.is_literal:
        prop.node = other.node


def resolve_operand(node: Node | None) -> Property:
    """Resolve one side of a condition. References resolve to their name only."""
    if node is None:
        return Property()
    return Resolver().resolve(node)
