"""IR builder: syntax nodes -> Program/Class/Method/Block/Branch IR."""

from __future__ import annotations

import logging

from ..ir import AccessorKind, Block, Branch, Class, Condition, Method, Program, ReturnKind
from . import syntax
from .resolve import Resolver
from .syntax import (
    Binary,
    ClassDecl,
    Compound,
    Conditional,
    Constructor,
    DefaultClause,
    IfStmt,
    MethodDecl,
    Node,
    SwitchStmt,
)

logger = logging.getLogger(__name__)

STATIC_MODIFIERS = frozenset({"staticmethod", "classmethod"})
ACCESSOR_MODIFIERS: dict[str, AccessorKind] = {
    "property": "get",
    "cached_property": "get",
    "setter": "set",
    "deleter": "delete",
}


def return_kind(text: str | None) -> ReturnKind | None:
    """Return category from annotation text, by substring match."""
    if text is None:
        return None
    if "str" in text:
        return "string"
    if "int" in text or "float" in text:
        return "number"
    if "bool" in text:
        return "boolean"
    return "object"


def is_public_name(name: str) -> bool:
    """Protected (_x) and private (__x) names are not public; dunders are."""
    if name.startswith("__") and name.endswith("__"):
        return True
    return not name.startswith("_")


class Builder:
    """Builds IR for the classes of one module."""

    def __init__(self, module: syntax.Module, source: str, module_name: str = "") -> None:
        self.module = module
        self.source = source
        self.module_name = module_name
        self.resolver = Resolver(module)

    def build(self, program: Program | None = None) -> Program:
        """Append every top-level class of the module to program."""
        if program is None:
            program = Program()
        for node in self.module.body:
            if isinstance(node, ClassDecl):
                cls = self.build_class(node)
                cls.owner = program
                program.classes.append(cls)
        return program

    def build_class(self, node: ClassDecl) -> Class:
        cls = Class(name=node.name, module=self.module_name, node=node)
        for member in node.body:
            if isinstance(member, syntax.PropertyDecl):
                prop = self.resolver.resolve(member, node)
                prop.is_class_var = True
                prop.owner = cls
                cls.properties.append(prop)
            elif isinstance(member, Constructor):
                if cls.constructor is None:
                    cls.constructor = self.build_method(member, cls, node)
            elif isinstance(member, MethodDecl):
                cls.methods.append(self.build_method(member, cls, node))
        return cls

    def build_method(self, node: MethodDecl, cls: Class, scope: ClassDecl) -> Method:
        method = Method(
            name=node.name,
            returns=return_kind(node.returns_text),
            is_public=is_public_name(node.name),
            is_async=node.is_async,
            is_constructor=isinstance(node, Constructor),
            receiver=node.receiver,
            node=node,
            owner=cls,
        )
        for modifier in node.modifiers:
            if modifier in STATIC_MODIFIERS:
                method.is_static = True
            elif modifier in ACCESSOR_MODIFIERS:
                method.accessor = ACCESSOR_MODIFIERS[modifier]
            else:
                logger.debug("untreated modifier @%s on %s.%s", modifier, cls.name, node.name)
        for param in node.params:
            prop = self.resolver.resolve(param, scope)
            prop.kw_only = param.kw_only
            prop.owner = method
            method.parameters.append(prop)
        method.body = self.build_block(node.body, method)
        return method

    def build_block(self, node: Node | None, owner: Method | Branch) -> Block:
        block = Block(node=node, owner=owner)
        if node is not None:
            for branch in self.visit(node):
                branch.owner = block
                block.branches.append(branch)
        return block

    # --- statement walk ---

    def visit(self, node: Node) -> list[Branch]:
        """Branches found at node. Blocks flatten; other nodes stop at the first hit."""
        match node:
            case syntax.Block(statements=statements):
                result: list[Branch] = []
                for stmt in statements:
                    result.extend(self.visit(stmt))
                return result
            case IfStmt():
                return [self.visit_if(node)]
            case SwitchStmt():
                return [self.visit_switch(node)]
            case Conditional():
                return [self.visit_conditional(node)]
        if isinstance(node, Compound) and node.label not in _QUIET_LABELS:
            logger.debug(
                "descending into unhandled %s at line %d: %s",
                node.label,
                node.loc.line,
                syntax.statement_text(self.source, node),
            )
        for child in node.children():
            found = self.visit(child)
            if found:
                return found
        return []

    def visit_if(self, node: IfStmt) -> Branch:
        branch = Branch(kind="if", node=node)
        branch.conditions.append(self.condition(node.test, branch))
        if isinstance(node.then, syntax.Block):
            branch.if_blocks.append(self.build_block(node.then, branch))
        if isinstance(node.orelse, syntax.Block):
            branch.else_block = self.build_block(node.orelse, branch)
        return branch

    def visit_switch(self, node: SwitchStmt) -> Branch:
        branch = Branch(kind="switch", node=node)
        for clause in node.clauses:
            if isinstance(clause, DefaultClause):
                branch.else_block = self.build_block(clause.body, branch)
            elif isinstance(clause, syntax.CaseClause):
                cond = Condition(
                    left=node.subject,
                    right=clause.test,
                    operator="==",
                    text=syntax.source_text(self.source, node.subject)
                    + " == "
                    + syntax.source_text(self.source, clause.test),
                    node=clause,
                    owner=branch,
                )
                branch.conditions.append(cond)
                branch.if_blocks.append(self.build_block(clause.body, branch))
        return branch

    def visit_conditional(self, node: Conditional) -> Branch:
        branch = Branch(kind="ternary", node=node)
        branch.conditions.append(self.condition(node.test, branch))
        return branch

    def condition(self, test: Node, branch: Branch) -> Condition:
        cond = Condition(text=syntax.source_text(self.source, test), node=test, owner=branch)
        if isinstance(test, Binary):
            cond.left = test.left
            cond.right = test.right
            cond.operator = test.operator
        return cond


# Statement kinds that routinely hold no branches; not worth a debug line.
_QUIET_LABELS = frozenset({"Assign", "AugAssign", "Return", "Pass", "Import", "ImportFrom", "Raise"})
