"""branchgen IR - classes, methods, branches and the scenarios composed from them.

This module defines the complete IR type system. Each node's docstring
documents its semantics and invariants.

Architecture:
    Source -> Syntax adapter -> IR Builder -> [IR] -> Synthesizer/Composer -> [Suite] -> Emitter -> Text

The IR Builder produces IR once per class; everything downstream only reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .frontend.syntax import Node


TypeKind = Literal["number", "string", "boolean", "object"]
"""Resolved type category of a Property.

| Kind    | Python annotations              | Base value | Negative value |
|---------|---------------------------------|------------|----------------|
| number  | int, float                      | 2          | 0              |
| string  | str                             | 'abc'      | None           |
| boolean | bool                            | True       | False          |
| object  | any other named type (TypeRef)  | None       | None           |
"""

ReturnKind = Literal["string", "number", "boolean", "object"]

AccessorKind = Literal["get", "set", "delete"]

PRIMITIVE_KINDS: tuple[str, ...] = ("number", "string", "boolean")


# ============================================================
# PROGRAM STRUCTURE
# ============================================================


@dataclass(eq=False)
class Program:
    """Root of one analysis run.

    Invariants:
    - classes are in discovery order (file order, then source order)
    """

    classes: list[Class] = field(default_factory=list)


@dataclass(eq=False)
class Class:
    """A class declaration.

    Invariants:
    - name is unique within its source file
    - properties hold fields only (is_class_var=True), in declaration order
    - constructor is None when the class declares no __init__
    """

    name: str
    module: str = ""
    properties: list[Property] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)
    constructor: Method | None = None
    node: Node | None = field(default=None, repr=False)
    owner: Program | None = field(default=None, repr=False)

    def find_property(self, name: str | None) -> Property | None:
        """Field declared under this name, if any."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


@dataclass(eq=False)
class Method:
    """Method or constructor.

    Visibility follows Python naming: a leading underscore clears is_public.
    returns is None when the method carries no return annotation.
    receiver is the name bound to the instance (or class), None for static
    methods. accessor marks @property getters, setters and deleters, which
    are exercised through attribute access rather than a call.
    """

    name: str
    parameters: list[Property] = field(default_factory=list)
    body: Block | None = None
    returns: ReturnKind | None = None
    is_public: bool = True
    is_static: bool = False
    is_async: bool = False
    is_constructor: bool = False
    receiver: str | None = None
    accessor: AccessorKind | None = None
    node: Node | None = field(default=None, repr=False)
    owner: Class | None = field(default=None, repr=False)

    def find_parameter(self, name: str | None) -> Property | None:
        """Parameter declared under this name, if any."""
        for param in self.parameters:
            if param.name == name:
                return param
        return None


@dataclass(eq=False)
class Block:
    """One reachable code region: method body, if-arm, case body.

    Holds only the branches found in the region; other statements are
    not represented.
    """

    branches: list[Branch] = field(default_factory=list)
    node: Node | None = field(default=None, repr=False)
    owner: Method | Branch | None = field(default=None, repr=False)


@dataclass(eq=False)
class Branch:
    """A control-flow decision point.

    | Kind    | conditions        | if_blocks                | else_block     |
    |---------|-------------------|--------------------------|----------------|
    | if      | 1                 | 0 or 1 (then-arm block)  | else-arm block |
    | switch  | 1 per case clause | 1 per case clause        | default clause |
    | ternary | 1                 | 0                        | None           |

    Invariants:
    - kind == "switch" implies len(if_blocks) == len(conditions)
    - if_blocks[i] is the block controlled by conditions[i]
    """

    kind: Literal["if", "switch", "ternary"]
    conditions: list[Condition] = field(default_factory=list)
    if_blocks: list[Block] = field(default_factory=list)
    else_block: Block | None = None
    node: Node | None = field(default=None, repr=False)
    owner: Block | Method | None = field(default=None, repr=False)


@dataclass(eq=False)
class Condition:
    """One comparison or boolean test.

    Semantics:
    - left is None: unary condition, evaluated directly as truthy/falsy
    - otherwise: left <operator> right

    operator holds Python operator text ("==", "<", "is not", "in", ...).
    text is the source text of the test, for diagnostics.
    """

    left: Node | None = None
    right: Node | None = None
    operator: str | None = None
    text: str = ""
    node: Node | None = field(default=None, repr=False)
    owner: Branch | None = field(default=None, repr=False)

    @property
    def is_unary(self) -> bool:
        return self.left is None


@dataclass(eq=False)
class Property:
    """A field, a parameter, or the resolved type of an expression.

    Invariants:
    - is_literal implies type in PRIMITIVE_KINDS
    - type == "object" with type_name set: reference to a declared type,
      stubbed rather than faked
    - type is None and type_name is None: unknown, synthesized as None
    """

    name: str | None = None
    type: TypeKind | None = None
    type_name: str | None = None
    is_array: bool = False
    is_literal: bool = False
    is_class_var: bool = False
    kw_only: bool = False
    node: Node | None = field(default=None, repr=False)
    owner: Method | Class | Branch | None = field(default=None, repr=False)

    @property
    def is_unknown(self) -> bool:
        return self.type is None and self.type_name is None


# ============================================================
# VALUES
#
# Synthesized values. Closed sum type; every synthesis rule and the
# renderer match on all six variants.
# ============================================================


@dataclass(frozen=True)
class Value:
    """Base for all synthesized values. Abstract."""


@dataclass(frozen=True)
class Number(Value):
    value: int | float


@dataclass(frozen=True)
class Text(Value):
    value: str


@dataclass(frozen=True)
class Boolean(Value):
    value: bool


@dataclass(frozen=True)
class ArrayOf(Value):
    items: tuple[Value, ...] = ()


@dataclass(frozen=True)
class Null(Value):
    """Generic placeholder for unknown and unsupported types."""


@dataclass(frozen=True)
class ObjectStub(Value):
    """Constructed placeholder instance.

    | type_name             | Rendered as               |
    |-----------------------|---------------------------|
    | BinaryIO, BytesIO, IO | io.BytesIO(b'fakedata')   |
    | bytes                 | b'fakedata'               |
    | bytearray             | bytearray(b'fakedata')    |
    | generated stub class  | StubService()             |
    """

    type_name: str


# ============================================================
# SCENARIOS
# ============================================================


@dataclass
class FieldAssign:
    """Preparatory step: set a field directly on the target instance."""

    name: str
    value: Value


@dataclass
class Argument:
    """One argument of an invocation. keyword=True passes it as name=value."""

    name: str
    value: Value
    keyword: bool = False


@dataclass
class Invocation:
    """A call of the method under test (or of the constructor).

    receiver is "target" for instance methods, the class name for static
    methods and constructors. access other than "call" reads, assigns or
    deletes the attribute; "set" passes the first argument as the new value.
    """

    receiver: str
    method: str
    args: list[Argument] = field(default_factory=list)
    is_async: bool = False
    access: Literal["call"] | AccessorKind = "call"

    @property
    def awaited(self) -> bool:
        """Whether the emitted expression yields a coroutine to run."""
        return self.is_async and self.access in ("call", "get")


@dataclass
class Scenario:
    """One isolated test case.

    Invariants:
    - label is unique within its method
    - assignments run before invocation
    """

    label: str
    invocation: Invocation
    assignments: list[FieldAssign] = field(default_factory=list)
    comment: str | None = None


# ============================================================
# SUITES
# ============================================================


@dataclass
class StubMember:
    """Member of a stubbed type that the analyzed source actually uses."""

    name: str
    is_callable: bool = False
    arity: int = 0
    has_keywords: bool = False


@dataclass
class Stub:
    """Placeholder class for a referenced type whose internals are unknown."""

    class_name: str
    type_name: str
    members: list[StubMember] = field(default_factory=list)


@dataclass
class Wiring:
    """After construction, replace a field with a fresh stub instance."""

    attr: str
    stub: str


@dataclass
class MethodTests:
    """Scenarios for one method. error is set when composition failed."""

    method: Method
    scenarios: list[Scenario] = field(default_factory=list)
    error: str | None = None


@dataclass
class Suite:
    """Everything needed to emit one test module for one class."""

    cls: Class
    imports: dict[str, list[str]] = field(default_factory=dict)
    stubs: list[Stub] = field(default_factory=list)
    construction: Invocation | None = None
    wiring: list[Wiring] = field(default_factory=list)
    methods: list[MethodTests] = field(default_factory=list)
    source_name: str = ""
