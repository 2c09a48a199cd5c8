"""Suite planning: everything the emitter needs for one class."""

from __future__ import annotations

import logging

from ..config import Options
from ..ir import Argument, Class, Invocation, MethodTests, ObjectStub, Stub, Suite, Wiring
from .compose import base_arguments, compose_method, mangle
from .stubs import collect_fakes, collect_injected
from .synthesize import needs_io

logger = logging.getLogger(__name__)


def construction(cls: Class, injected: list[Stub]) -> Invocation:
    """Instantiation of the class under test: base values, stubs for injected types."""
    if cls.constructor is None:
        return Invocation(receiver=cls.name, method="")
    stubs = {s.type_name: s.class_name for s in injected}
    args: list[Argument] = []
    for param, arg in zip(cls.constructor.parameters, base_arguments(cls.constructor.parameters)):
        if param.type == "object" and not param.is_array and param.type_name in stubs:
            arg.value = ObjectStub(stubs[param.type_name])
        args.append(arg)
    return Invocation(receiver=cls.name, method="", args=args)


def wiring(cls: Class, fakes: list[Stub], injected_params: set[str], options: Options) -> list[Wiring]:
    """Fields replaced by fresh fakes once the target is constructed.

    Fields fed by an injected constructor parameter of the same name already
    hold a stub and are left alone.
    """
    if not options.wire_fakes:
        return []
    by_type = {s.type_name: s.class_name for s in fakes}
    result: list[Wiring] = []
    for prop in cls.properties:
        if prop.type != "object" or prop.is_array or prop.type_name not in by_type:
            continue
        if prop.name in injected_params or prop.name is None:
            continue
        result.append(Wiring(attr=mangle(prop.name, cls), stub=by_type[prop.type_name]))
    return result


def plan_methods(cls: Class, options: Options) -> list[MethodTests]:
    """Scenarios per method; a failing method is recorded, not raised."""
    result: list[MethodTests] = []
    for method in cls.methods:
        tests = MethodTests(method=method)
        try:
            tests.scenarios = compose_method(method, options)
        except Exception as e:
            logger.exception("cannot compose scenarios for %s.%s", cls.name, method.name)
            tests.error = f"{type(e).__name__}: {e}"
        result.append(tests)
    return result


def plan_suite(cls: Class, options: Options | None = None, source_name: str = "") -> Suite:
    """Plan the test module of one class."""
    if options is None:
        options = Options()
    fakes = collect_fakes(cls, options)
    injected = collect_injected(cls, options)
    suite = Suite(cls=cls, source_name=source_name)
    suite.stubs = fakes + injected
    suite.construction = construction(cls, injected)
    injected_types = {s.type_name for s in injected}
    injected_params: set[str] = set()
    if cls.constructor is not None:
        injected_params = {
            p.name for p in cls.constructor.parameters if p.name and p.type_name in injected_types
        }
    suite.wiring = wiring(cls, fakes, injected_params, options)
    suite.methods = plan_methods(cls, options)
    suite.imports = imports(suite)
    return suite


def imports(suite: Suite) -> dict[str, list[str]]:
    """Module -> imported names. An empty list means a plain `import module`."""
    values = [a.value for a in suite.construction.args] if suite.construction else []
    uses_async = False
    for tests in suite.methods:
        for scenario in tests.scenarios:
            values.extend(a.value for a in scenario.invocation.args)
            values.extend(f.value for f in scenario.assignments)
            if scenario.invocation.awaited:
                uses_async = True
    result: dict[str, list[str]] = {}
    if uses_async:
        result["asyncio"] = []
    if any(needs_io(v) for v in values):
        result["io"] = []
    result["pytest"] = []
    module = suite.cls.module or "module"
    result.setdefault(module, [])
    if suite.cls.name not in result[module]:
        result[module].append(suite.cls.name)
    return result
