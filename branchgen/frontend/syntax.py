"""Syntax adapter: Python source -> closed set of tagged syntax nodes.

The IR builder never reads `ast` directly. Everything it needs is expressed
through the node variants below, each carrying a source location. Constructs
without a dedicated variant become Compound nodes that only keep their
children, so traversal still reaches branches nested inside them.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field, fields
from typing import Iterator, Literal

from ..errors import ParseError


@dataclass(frozen=True)
class Loc:
    """Source location.

    Invariants:
    - line >= 1 for valid locations (0 indicates unknown)
    - col >= 0 (0-indexed within line)
    """

    line: int  # 1-indexed, 0 = unknown
    col: int  # 0-indexed
    end_line: int
    end_col: int


def loc_unknown() -> Loc:
    return Loc(0, 0, 0, 0)


def _loc(node: ast.AST) -> Loc:
    line = getattr(node, "lineno", 0) or 0
    col = getattr(node, "col_offset", 0) or 0
    end_line = getattr(node, "end_lineno", None) or line
    end_col = getattr(node, "end_col_offset", None)
    if end_col is None:
        end_col = col
    return Loc(line, col, end_line, end_col)


# ============================================================
# NODES
# ============================================================


@dataclass(kw_only=True, eq=False)
class Node:
    """Base for all syntax nodes. Abstract."""

    loc: Loc = field(default_factory=loc_unknown)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def children(self) -> Iterator[Node]:
        """Direct child nodes in source order."""
        for f in fields(self):
            if f.name == "loc":
                continue
            value = getattr(self, f.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item


@dataclass(eq=False)
class Module(Node):
    body: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class ClassDecl(Node):
    """Class declaration. body keeps fields, constructor and methods in source order."""

    name: str
    body: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class PropertyDecl(Node):
    """Field declaration: class-level assignment or self.<name> in __init__."""

    name: str
    annotation: Node | None = None
    value: Node | None = None


@dataclass(eq=False)
class ParamDecl(Node):
    name: str
    annotation: Node | None = None
    default: Node | None = None
    kw_only: bool = False


@dataclass(eq=False)
class MethodDecl(Node):
    """Method declaration.

    returns_text is the annotation's source text; modifiers are decorator names.
    receiver is the dropped self/cls parameter name, None for static methods.
    """

    name: str
    params: list[ParamDecl] = field(default_factory=list)
    body: Block | None = None
    returns: Node | None = None
    returns_text: str | None = None
    modifiers: list[str] = field(default_factory=list)
    is_async: bool = False
    receiver: str | None = None


@dataclass(eq=False)
class Constructor(MethodDecl):
    name: str = "__init__"


@dataclass(eq=False)
class Block(Node):
    statements: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class IfStmt(Node):
    """if/elif/else. An elif chain is an orelse Block holding one IfStmt."""

    test: Node
    then: Node
    orelse: Node | None = None


@dataclass(eq=False)
class CaseClause(Node):
    test: Node
    body: Block


@dataclass(eq=False)
class DefaultClause(Node):
    body: Block


@dataclass(eq=False)
class SwitchStmt(Node):
    subject: Node
    clauses: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class Conditional(Node):
    """Conditional expression: body if test else orelse."""

    test: Node
    body: Node
    orelse: Node


@dataclass(eq=False)
class Binary(Node):
    """Single comparison. operator is Python operator text."""

    left: Node
    operator: str
    right: Node


@dataclass(eq=False)
class Unary(Node):
    operator: str
    operand: Node


@dataclass(eq=False)
class Identifier(Node):
    name: str


@dataclass(eq=False)
class MemberAccess(Node):
    """Attribute access target.name."""

    target: Node
    name: str


@dataclass(eq=False)
class Call(Node):
    """Call. keyword_names is aligned with keywords; None marks **mapping."""

    func: Node
    args: list[Node] = field(default_factory=list)
    keywords: list[Node] = field(default_factory=list)
    keyword_names: list[str | None] = field(default_factory=list)


@dataclass(eq=False)
class NumericLit(Node):
    value: int | float


@dataclass(eq=False)
class StringLit(Node):
    value: str


@dataclass(eq=False)
class BooleanLit(Node):
    value: bool


@dataclass(eq=False)
class NoneLit(Node):
    pass


@dataclass(eq=False)
class KeywordType(Node):
    """Builtin annotation. "any" covers Any, object and other opaque builtins."""

    name: Literal["number", "string", "boolean", "any"]


@dataclass(eq=False)
class ArrayType(Node):
    element: Node


@dataclass(eq=False)
class TypeRef(Node):
    name: str


@dataclass(eq=False)
class Compound(Node):
    """Any other statement or expression. label is the ast class name."""

    label: str
    items: list[Node] = field(default_factory=list)


LITERAL_NODES = (NumericLit, StringLit, BooleanLit)
REFERENCE_NODES = (Identifier, MemberAccess)


# ============================================================
# TRAVERSAL
# ============================================================


NodeKind = type[Node] | tuple[type[Node], ...]


def find_first(root: Node, kind: NodeKind, name: str | None = None) -> Node | None:
    """First node of the given kind (and name, when given), pre-order."""
    if isinstance(root, kind) and (name is None or getattr(root, "name", None) == name):
        return root
    for child in root.children():
        found = find_first(child, kind, name)
        if found is not None:
            return found
    return None


def find_all(root: Node, kind: NodeKind) -> list[Node]:
    """Every node of the given kind, pre-order."""
    result: list[Node] = []
    _collect(root, kind, result)
    return result


def _collect(node: Node, kind: NodeKind, out: list[Node]) -> None:
    if isinstance(node, kind):
        out.append(node)
    for child in node.children():
        _collect(child, kind, out)


def walk_with_parent(root: Node, parent: Node | None = None) -> Iterator[tuple[Node, Node | None]]:
    """Yield (node, parent) pairs, pre-order."""
    yield root, parent
    for child in root.children():
        yield from walk_with_parent(child, root)


def source_text(source: str, node: Node) -> str:
    """Exact source segment of a node, collapsed to one line."""
    loc = node.loc
    if loc.line == 0:
        return ""
    lines = source.split("\n")
    if loc.line > len(lines):
        return ""
    if loc.end_line == loc.line:
        segment = lines[loc.line - 1][loc.col : loc.end_col]
    else:
        parts = [lines[loc.line - 1][loc.col :]]
        parts.extend(lines[loc.line : loc.end_line - 1])
        if loc.end_line <= len(lines):
            parts.append(lines[loc.end_line - 1][: loc.end_col])
        segment = " ".join(p.strip() for p in parts)
    return " ".join(segment.split())


def statement_text(source: str, node: Node) -> str:
    """Text from the node's position to the end of its first line, stripped."""
    loc = node.loc
    lines = source.split("\n")
    if loc.line == 0 or loc.line > len(lines):
        return ""
    return lines[loc.line - 1][loc.col :].strip()


# ============================================================
# ADAPTER
# ============================================================

_NUMBER_NAMES = frozenset({"int", "float"})
_ARRAY_NAMES = frozenset(
    {
        "list",
        "List",
        "Sequence",
        "MutableSequence",
        "Iterable",
        "Iterator",
        "Collection",
        "set",
        "Set",
        "frozenset",
        "FrozenSet",
        "AbstractSet",
        "tuple",
        "Tuple",
    }
)
_OPAQUE_NAMES = frozenset(
    {
        "Any",
        "object",
        "dict",
        "Dict",
        "Mapping",
        "MutableMapping",
        "Callable",
        "type",
        "Type",
        "None",
        "complex",
    }
)
_COMPARE_OPS: dict[type, str] = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
    ast.Is: "is",
    ast.IsNot: "is not",
    ast.In: "in",
    ast.NotIn: "not in",
}
_UNARY_OPS: dict[type, str] = {
    ast.Not: "not",
    ast.USub: "-",
    ast.UAdd: "+",
    ast.Invert: "~",
}


def adapt(source: str, filename: str = "<unknown>") -> Module:
    """Parse Python source and convert it to syntax nodes."""
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise ParseError(e.msg or "invalid syntax", e.lineno or 0, (e.offset or 1) - 1) from e
    return _Adapter(source).module(tree)


class _Adapter:
    """Converts one parsed module."""

    def __init__(self, source: str) -> None:
        self.source = source

    def module(self, tree: ast.Module) -> Module:
        body: list[Node] = []
        for stmt in tree.body:
            decls = self.declarations(stmt)
            if decls is not None:
                body.extend(decls)
            else:
                body.append(self.stmt(stmt))
        return Module(body=body, loc=loc_unknown())

    # --- declarations ---

    def declarations(self, stmt: ast.stmt) -> list[PropertyDecl] | None:
        """Name bindings of a module- or class-level assignment, else None."""
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            return [
                PropertyDecl(
                    name=stmt.target.id,
                    annotation=self.annotation(stmt.annotation),
                    value=self.expr(stmt.value) if stmt.value is not None else None,
                    loc=_loc(stmt),
                )
            ]
        if isinstance(stmt, ast.Assign) and any(isinstance(t, ast.Name) for t in stmt.targets):
            value = self.expr(stmt.value)
            return [
                PropertyDecl(name=t.id, value=value, loc=_loc(stmt))
                for t in stmt.targets
                if isinstance(t, ast.Name)
            ]
        return None

    def class_decl(self, node: ast.ClassDef) -> ClassDecl:
        body: list[Node] = []
        declared: set[str] = set()
        init: ast.FunctionDef | ast.AsyncFunctionDef | None = None
        for stmt in node.body:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                declared.add(stmt.target.id)
            elif isinstance(stmt, ast.Assign):
                for target in stmt.targets:
                    if isinstance(target, ast.Name):
                        declared.add(target.id)
            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)) and stmt.name == "__init__":
                if init is None:
                    init = stmt
        for stmt in node.body:
            decls = self.declarations(stmt)
            if decls is not None:
                body.extend(decls)
            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                if stmt is init:
                    body.extend(self.instance_fields(stmt, declared))
                    body.append(self.method(stmt, Constructor))
                elif stmt.name == "__init__":
                    # redefinition: only the first __init__ is the constructor
                    body.append(self.compound(stmt))
                else:
                    body.append(self.method(stmt, MethodDecl))
            else:
                body.append(self.stmt(stmt))
        return ClassDecl(name=node.name, body=body, loc=_loc(node))

    def instance_fields(
        self, init: ast.FunctionDef | ast.AsyncFunctionDef, declared: set[str]
    ) -> list[PropertyDecl]:
        """self.<name> assignments in __init__, first occurrence per name."""
        if not init.args.args:
            return []
        receiver = init.args.args[0].arg
        assigns = [n for n in ast.walk(init) if isinstance(n, (ast.Assign, ast.AnnAssign))]
        assigns.sort(key=lambda n: (n.lineno, n.col_offset))
        result: list[PropertyDecl] = []
        seen = set(declared)
        for node in assigns:
            if isinstance(node, ast.Assign):
                targets = node.targets
                annotation = None
            else:
                targets = [node.target]
                annotation = node.annotation
            for target in targets:
                if (
                    isinstance(target, ast.Attribute)
                    and isinstance(target.value, ast.Name)
                    and target.value.id == receiver
                    and target.attr not in seen
                ):
                    seen.add(target.attr)
                    result.append(
                        PropertyDecl(
                            name=target.attr,
                            annotation=self.annotation(annotation) if annotation is not None else None,
                            value=self.expr(node.value) if node.value is not None else None,
                            loc=_loc(node),
                        )
                    )
        return result

    def method(
        self,
        node: ast.FunctionDef | ast.AsyncFunctionDef,
        cls: type[MethodDecl],
        in_class: bool = True,
    ) -> MethodDecl:
        modifiers = [_decorator_name(d) for d in node.decorator_list]
        has_receiver = in_class and "staticmethod" not in modifiers
        params = self.params(node.args, has_receiver)
        positional = list(node.args.posonlyargs) + list(node.args.args)
        receiver = positional[0].arg if has_receiver and positional else None
        returns_text = None
        if node.returns is not None:
            returns_text = ast.get_source_segment(self.source, node.returns) or ast.unparse(node.returns)
        decl = cls(
            name=node.name,
            params=params,
            body=self.block(node.body, node),
            returns=self.annotation(node.returns) if node.returns is not None else None,
            returns_text=returns_text,
            modifiers=modifiers,
            is_async=isinstance(node, ast.AsyncFunctionDef),
            receiver=receiver,
            loc=_loc(node),
        )
        return decl

    def params(self, args: ast.arguments, has_receiver: bool) -> list[ParamDecl]:
        positional = list(args.posonlyargs) + list(args.args)
        defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults))
        defaults.extend(args.defaults)
        result: list[ParamDecl] = []
        for i, arg in enumerate(positional):
            if i == 0 and has_receiver:
                continue
            result.append(self.param(arg, defaults[i], False))
        for arg, default in zip(args.kwonlyargs, args.kw_defaults):
            result.append(self.param(arg, default, True))
        return result

    def param(self, arg: ast.arg, default: ast.expr | None, kw_only: bool) -> ParamDecl:
        return ParamDecl(
            name=arg.arg,
            annotation=self.annotation(arg.annotation) if arg.annotation is not None else None,
            default=self.expr(default) if default is not None else None,
            kw_only=kw_only,
            loc=_loc(arg),
        )

    # --- annotations ---

    def annotation(self, node: ast.expr) -> Node:
        loc = _loc(node)
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            try:
                parsed = ast.parse(node.value, mode="eval").body
            except SyntaxError:
                return KeywordType(name="any", loc=loc)
            inner = self.annotation(parsed)
            inner.loc = loc
            return inner
        if isinstance(node, ast.Constant) and node.value is None:
            return KeywordType(name="any", loc=loc)
        if isinstance(node, (ast.Name, ast.Attribute)):
            name = node.id if isinstance(node, ast.Name) else node.attr
            return self.named_type(name, loc)
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            members = [m for m in _union_members(node) if not _is_none(m)]
            if len(members) == 1:
                return self.annotation(members[0])
            return KeywordType(name="any", loc=loc)
        if isinstance(node, ast.Subscript):
            base = node.value
            base_name = base.id if isinstance(base, ast.Name) else base.attr if isinstance(base, ast.Attribute) else ""
            args = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
            if base_name == "Optional" and args:
                return self.annotation(args[0])
            if base_name == "Union":
                members = [m for m in args if not _is_none(m)]
                if len(members) == 1:
                    return self.annotation(members[0])
                return KeywordType(name="any", loc=loc)
            if base_name in ("Annotated", "Final", "ClassVar") and args:
                return self.annotation(args[0])
            if base_name in _ARRAY_NAMES:
                if not args:
                    return ArrayType(element=KeywordType(name="any", loc=loc), loc=loc)
                return ArrayType(element=self.annotation(args[0]), loc=loc)
            if base_name in _OPAQUE_NAMES or base_name == "Literal":
                return KeywordType(name="any", loc=loc)
            return self.named_type(base_name, loc)
        return KeywordType(name="any", loc=loc)

    def named_type(self, name: str, loc: Loc) -> Node:
        if name in _NUMBER_NAMES:
            return KeywordType(name="number", loc=loc)
        if name == "str":
            return KeywordType(name="string", loc=loc)
        if name == "bool":
            return KeywordType(name="boolean", loc=loc)
        if name in _ARRAY_NAMES:
            return ArrayType(element=KeywordType(name="any", loc=loc), loc=loc)
        if name in _OPAQUE_NAMES:
            return KeywordType(name="any", loc=loc)
        return TypeRef(name=name, loc=loc)

    # --- statements ---

    def block(self, stmts: list[ast.stmt], owner: ast.AST) -> Block:
        loc = _loc(stmts[0]) if stmts else _loc(owner)
        return Block(statements=[self.stmt(s) for s in stmts], loc=loc)

    def stmt(self, node: ast.stmt) -> Node:
        match node:
            case ast.ClassDef():
                return self.class_decl(node)
            case ast.FunctionDef() | ast.AsyncFunctionDef():
                return self.method(node, MethodDecl, in_class=False)
            case ast.If(test=test, body=body, orelse=orelse):
                then = self.block(body, node)
                other = self.block(orelse, orelse[0]) if orelse else None
                return IfStmt(test=self.expr(test), then=then, orelse=other, loc=_loc(node))
            case ast.Match(subject=subject, cases=cases):
                return self.switch(subject, cases, node)
            case ast.Expr(value=value):
                return self.expr(value)
        return self.compound(node)

    def switch(self, subject: ast.expr, cases: list[ast.match_case], node: ast.Match) -> SwitchStmt:
        clauses: list[Node] = []
        has_default = False
        for case in cases:
            body = self.block(case.body, case)
            for test in self.patterns(case.pattern):
                if test is None:
                    if not has_default:
                        has_default = True
                        clauses.append(DefaultClause(body=body, loc=_loc(case.pattern)))
                else:
                    clauses.append(CaseClause(test=test, body=body, loc=_loc(case.pattern)))
        return SwitchStmt(subject=self.expr(subject), clauses=clauses, loc=_loc(node))

    def patterns(self, pattern: ast.pattern) -> list[Node | None]:
        """Case tests for one pattern; None marks an irrefutable pattern."""
        match pattern:
            case ast.MatchValue(value=value):
                return [self.expr(value)]
            case ast.MatchSingleton(value=value):
                return [self.constant(value, _loc(pattern))]
            case ast.MatchOr(patterns=alternatives):
                result: list[Node | None] = []
                for alt in alternatives:
                    result.extend(self.patterns(alt))
                return result
            case ast.MatchAs(pattern=None):
                return [None]
            case ast.MatchAs(pattern=inner):
                return self.patterns(inner)
        return [Compound(label=type(pattern).__name__, loc=_loc(pattern))]

    def compound(self, node: ast.AST) -> Compound:
        items: list[Node] = []
        for name, value in ast.iter_fields(node):
            if isinstance(value, list) and value and all(isinstance(v, ast.stmt) for v in value):
                items.append(self.block(value, node))
            elif isinstance(value, list):
                items.extend(self.any(v) for v in value if isinstance(v, ast.AST))
            elif isinstance(value, ast.AST):
                items.append(self.any(value))
        return Compound(label=type(node).__name__, items=items, loc=_loc(node))

    def any(self, node: ast.AST) -> Node:
        if isinstance(node, ast.stmt):
            return self.stmt(node)
        if isinstance(node, ast.expr):
            return self.expr(node)
        return self.compound(node)

    # --- expressions ---

    def expr(self, node: ast.expr) -> Node:
        loc = _loc(node)
        match node:
            case ast.Constant(value=value):
                return self.constant(value, loc)
            case ast.Name(id=name):
                return Identifier(name=name, loc=loc)
            case ast.Attribute(value=target, attr=attr):
                return MemberAccess(target=self.expr(target), name=attr, loc=loc)
            case ast.Compare(left=left, ops=[op], comparators=[right]):
                return Binary(
                    left=self.expr(left), operator=_COMPARE_OPS[type(op)], right=self.expr(right), loc=loc
                )
            case ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=value)) if _is_number(value):
                return NumericLit(value=-value, loc=loc)
            case ast.UnaryOp(op=op, operand=operand):
                return Unary(operator=_UNARY_OPS[type(op)], operand=self.expr(operand), loc=loc)
            case ast.IfExp(test=test, body=body, orelse=orelse):
                return Conditional(test=self.expr(test), body=self.expr(body), orelse=self.expr(orelse), loc=loc)
            case ast.Call(func=func, args=args, keywords=keywords):
                return Call(
                    func=self.expr(func),
                    args=[self.expr(a) for a in args],
                    keywords=[self.expr(k.value) for k in keywords],
                    keyword_names=[k.arg for k in keywords],
                    loc=loc,
                )
        return self.compound(node)

    def constant(self, value: object, loc: Loc) -> Node:
        if isinstance(value, bool):
            return BooleanLit(value=value, loc=loc)
        if _is_number(value):
            return NumericLit(value=value, loc=loc)
        if isinstance(value, str):
            return StringLit(value=value, loc=loc)
        if value is None:
            return NoneLit(loc=loc)
        return Compound(label="Constant", loc=loc)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_none(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is None or (
        isinstance(node, ast.Name) and node.id == "None"
    )


def _union_members(node: ast.expr) -> list[ast.expr]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _union_members(node.left) + _union_members(node.right)
    return [node]


def _decorator_name(node: ast.expr) -> str:
    if isinstance(node, ast.Call):
        node = node.func
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ast.unparse(node)
