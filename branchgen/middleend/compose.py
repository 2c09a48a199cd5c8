"""Scenario composition: one isolated test scenario per branch outcome.

Branches are walked depth-first. For every condition and every value that
drives it, the nested blocks are composed first, then the scenario for the
controlling condition itself. Labels carry a per-method counter, so they
stay unique across nested branches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import Options
from ..frontend.syntax import REFERENCE_NODES, Identifier, MemberAccess, Node, Unary
from ..ir import (
    Argument,
    Block,
    Branch,
    Class,
    Condition,
    FieldAssign,
    Invocation,
    Method,
    Property,
    Scenario,
    Value,
)
from .synthesize import call_values, literal_target, make_value, value_source

logger = logging.getLogger(__name__)


@dataclass
class ComposeContext:
    """Mutable state for composing one method. Never shared between methods.

    overrides persist across the method's scenarios: a later scenario sees
    the values set by earlier ones unless it overwrites them.
    """

    counter: int = 1
    overrides: dict[str, Value] = field(default_factory=dict)


def mangle(name: str, cls: Class | None) -> str:
    """Attribute name as stored on instances of cls: __x becomes _Cls__x.

    Emitted code runs inside the test class body, which would otherwise
    mangle __x against the test class.
    """
    if cls is None or not name.startswith("__") or name.endswith("__"):
        return name
    owner = cls.name.lstrip("_")
    if not owner:
        return name
    return "_" + owner + name


def call_name(method: Method) -> str:
    """Attribute name to invoke, with private names mangled."""
    return mangle(method.name, method.owner)


def receiver(method: Method, options: Options) -> str:
    if method.is_static and method.owner is not None:
        return method.owner.name
    return options.target_name


def base_arguments(params: list[Property], overrides: dict[str, Value] | None = None) -> list[Argument]:
    """Arguments for a call: overrides merged over base-synthesized values."""
    args: list[Argument] = []
    for param in params:
        name = param.name or ""
        if overrides is not None and name in overrides:
            value = overrides[name]
        else:
            value = make_value(param)
        args.append(Argument(name=name, value=value, keyword=param.kw_only))
    return args


class Composer:
    """Composes the scenarios of one method."""

    def __init__(self, method: Method, options: Options | None = None) -> None:
        self.method = method
        self.options = options if options is not None else Options()
        self.ctx = ComposeContext()
        self.scenarios: list[Scenario] = []

    def compose(self) -> list[Scenario]:
        body = self.method.body
        if body is None or not body.branches:
            return [Scenario(label=self.method.name, invocation=self.invocation())]
        self.compose_block(body)
        return self.scenarios

    def compose_block(self, block: Block) -> None:
        for branch in block.branches:
            self.compose_branch(branch)

    def compose_branch(self, branch: Branch) -> None:
        for cond in branch.conditions:
            for value in call_values(cond):
                for nested in branch.if_blocks:
                    self.compose_block(nested)
                if branch.else_block is not None:
                    self.compose_block(branch.else_block)
                assignments = self.prepare(cond, value)
                self.scenarios.append(self.scenario(cond, value, assignments))

    def prepare(self, cond: Condition, value: Value) -> list[FieldAssign]:
        """Route the driving value to a parameter override or a field assignment.

        An attribute of the receiver (self.x) is always a field; a bare name is
        a parameter when one is declared under it.
        """
        ref = driving_reference(cond)
        if ref is None:
            return []
        symbol = ref.name
        is_field = is_receiver_access(ref, self.method.receiver)
        if not is_field and self.method.find_parameter(symbol) is not None:
            self.ctx.overrides[symbol] = value
            return []
        cls = self.method.owner
        if cls is not None and cls.find_property(symbol) is not None:
            return [FieldAssign(name=mangle(symbol, cls), value=value)]
        logger.debug("%s: %r is neither a parameter nor a field", self.method.name, symbol)
        return []

    def scenario(self, cond: Condition, value: Value, assignments: list[FieldAssign]) -> Scenario:
        label = f"{self.method.name} ({self.ctx.counter})"
        self.ctx.counter += 1
        comment = f"Test case: {cond.text}, with value {value_source(value)}"
        return Scenario(label=label, invocation=self.invocation(), assignments=assignments, comment=comment)

    def invocation(self) -> Invocation:
        return Invocation(
            receiver=receiver(self.method, self.options),
            method=call_name(self.method),
            args=base_arguments(self.method.parameters, self.ctx.overrides),
            is_async=self.method.is_async,
            access=self.method.accessor or "call",
        )


def driving_reference(cond: Condition) -> Node | None:
    """Reference whose value decides the condition.

    Comparisons are driven only when one side is a literal. A bare
    reference (or its negation) drives a unary test directly.
    """
    if cond.left is not None and cond.right is not None:
        symbol, _, found = literal_target(cond)
        if found and isinstance(symbol.node, REFERENCE_NODES):
            return symbol.node
        return None
    test = cond.node
    if isinstance(test, Unary) and test.operator == "not":
        test = test.operand
    if isinstance(test, REFERENCE_NODES):
        return test
    return None


def is_receiver_access(node: Node, receiver: str | None) -> bool:
    """Whether node is <receiver>.<name>, an attribute of the instance or class."""
    return (
        receiver is not None
        and isinstance(node, MemberAccess)
        and isinstance(node.target, Identifier)
        and node.target.name == receiver
    )


def compose_method(method: Method, options: Options | None = None) -> list[Scenario]:
    """Scenarios for one method, with a fresh counter and override map."""
    return Composer(method, options).compose()
