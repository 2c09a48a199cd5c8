"""Stub collection for referenced types whose internals are unknown.

Field types become Fake classes, constructor parameter types become Stub
classes. A stub only exposes the members the analyzed class actually
touches through a property of that type.
"""

from __future__ import annotations

from ..config import Options
from ..frontend.syntax import REFERENCE_NODES, Call, MemberAccess, Node, walk_with_parent
from ..ir import Class, Property, Stub, StubMember


def used_members(root: Node | None, name: str | None) -> list[StubMember]:
    """Members accessed on references named `name`, first occurrence wins."""
    members: dict[str, StubMember] = {}
    if root is None or not name:
        return []
    for node, parent in walk_with_parent(root):
        if not isinstance(node, MemberAccess):
            continue
        target = node.target
        if not isinstance(target, REFERENCE_NODES) or target.name != name:
            continue
        if node.name in members:
            continue
        if isinstance(parent, Call) and parent.func is node:
            members[node.name] = StubMember(
                name=node.name,
                is_callable=True,
                arity=len(parent.args),
                has_keywords=len(parent.keywords) > 0,
            )
        else:
            members[node.name] = StubMember(name=node.name)
    return list(members.values())


def _stubs_for(props: list[Property], prefix: str, root: Node | None, options: Options) -> list[Stub]:
    stubs: dict[str, Stub] = {}
    for prop in props:
        type_name = prop.type_name
        if prop.type != "object" or not options.stubbable(type_name):
            continue
        stub = stubs.get(type_name)
        if stub is None:
            stub = Stub(class_name=prefix + type_name, type_name=type_name)
            stubs[type_name] = stub
        known = {m.name for m in stub.members}
        for member in used_members(root, prop.name):
            if member.name not in known:
                known.add(member.name)
                stub.members.append(member)
    return list(stubs.values())


def collect_fakes(cls: Class, options: Options) -> list[Stub]:
    """One Fake per distinct field type."""
    return _stubs_for(cls.properties, options.fake_prefix, cls.node, options)


def collect_injected(cls: Class, options: Options) -> list[Stub]:
    """One Stub per distinct constructor parameter type."""
    if cls.constructor is None:
        return []
    return _stubs_for(cls.constructor.parameters, options.stub_prefix, cls.node, options)
