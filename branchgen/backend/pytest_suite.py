"""Pytest backend: Suite -> test module source."""

from __future__ import annotations

from ..config import Options
from ..ir import Invocation, MethodTests, Scenario, Stub, Suite
from ..middleend.synthesize import value_source
from .util import Emitter, escape_string


class PytestBackend(Emitter):
    """Emit one pytest module per planned suite."""

    def __init__(self, options: Options | None = None) -> None:
        self.options = options if options is not None else Options()
        super().__init__(self.options.indent)

    def emit(self, suite: Suite) -> str:
        self.indent = 0
        self.lines = []
        self._emit_module(suite)
        return self.output()

    def _emit_module(self, suite: Suite) -> None:
        doc = f"Generated tests for {suite.cls.name}"
        if suite.source_name:
            doc += f" ({suite.source_name})"
        self.line(f'"""{doc}."""')
        self.line()
        self._emit_imports(suite.imports)
        for stub in suite.stubs:
            self.line()
            self.line()
            self._emit_stub(stub)
        self.line()
        self.line()
        self.line(f"class Test{suite.cls.name}:")
        self.indent += 1
        self._emit_fixture(suite)
        self.line()
        self.line(f"def test_should_create(self, {self.options.target_name}):")
        self.indent += 1
        self.line(f"assert {self.options.target_name}")
        self.indent -= 1
        seen: set[str] = {"test_should_create"}
        for tests in suite.methods:
            self.line()
            self._emit_method(tests, seen)
        self.indent -= 1

    def _emit_imports(self, imports: dict[str, list[str]]) -> None:
        plain = [m for m, names in imports.items() if not names and m != "pytest"]
        for module in plain:
            self.line(f"import {module}")
        if plain:
            self.line()
        if "pytest" in imports:
            self.line("import pytest")
            self.line()
        for module, names in imports.items():
            if names:
                self.line(f"from {module} import {', '.join(names)}")

    def _emit_stub(self, stub: Stub) -> None:
        self.line(f"class {stub.class_name}:")
        self.indent += 1
        self.line(f'"""Stands in for {stub.type_name}."""')
        fields = [m for m in stub.members if not m.is_callable]
        methods = [m for m in stub.members if m.is_callable]
        if fields:
            self.line()
        for member in fields:
            self.line(f"{member.name} = None")
        for member in methods:
            params = ["self"] + [f"arg{i}" for i in range(1, member.arity + 1)]
            if member.has_keywords:
                params.append("**kwargs")
            self.line()
            self.line(f"def {member.name}({', '.join(params)}):")
            self.indent += 1
            self.line("return None")
            self.indent -= 1
        self.indent -= 1

    def _emit_fixture(self, suite: Suite) -> None:
        target = self.options.target_name
        self.line("@pytest.fixture")
        self.line(f"def {target}(self):")
        self.indent += 1
        construction = suite.construction or Invocation(receiver=suite.cls.name, method="")
        self.line(f"{target} = {call_source(construction)}")
        for wire in suite.wiring:
            self.line(f"{target}.{wire.attr} = {wire.stub}()")
        self.line(f"return {target}")
        self.indent -= 1

    def _emit_method(self, tests: MethodTests, seen: set[str]) -> None:
        target = self.options.target_name
        name = _test_name(tests.method.name, seen)
        self.line(f"def {name}(self, {target}):")
        self.indent += 1
        if tests.error is not None:
            self.line(f"# no scenarios: {tests.error}")
        for scenario in tests.scenarios:
            self._emit_scenario(scenario)
        self.line(f"assert {target}")
        self.indent -= 1

    def _emit_scenario(self, scenario: Scenario) -> None:
        target = self.options.target_name
        self.line("try:")
        self.indent += 1
        if scenario.comment:
            self.line(f"# {scenario.comment}")
        for assign in scenario.assignments:
            self.line(f"{target}.{assign.name} = {value_source(assign.value)}")
        call = call_source(scenario.invocation)
        if scenario.invocation.awaited:
            call = f"asyncio.run({call})"
        self.line(call)
        self.indent -= 1
        self.line("except Exception as err:")
        self.indent += 1
        self.line(f'print("Error in {escape_string(scenario.label)}: " + str(err))')
        self.indent -= 1


def call_source(invocation: Invocation) -> str:
    """Python source of an invocation, or of the attribute access it stands for."""
    args: list[str] = []
    for arg in invocation.args:
        text = value_source(arg.value)
        args.append(f"{arg.name}={text}" if arg.keyword else text)
    func = invocation.receiver
    if invocation.method:
        func += "." + invocation.method
    match invocation.access:
        case "get":
            return func
        case "set":
            value = value_source(invocation.args[0].value) if invocation.args else "None"
            return f"{func} = {value}"
        case "delete":
            return f"del {func}"
    return f"{func}({', '.join(args)})"


def _test_name(method: str, seen: set[str]) -> str:
    base = "test_" + (method.strip("_") or "method")
    name = base
    n = 2
    while name in seen:
        name = f"{base}_{n}"
        n += 1
    seen.add(name)
    return name


def emit_pytest(suite: Suite, options: Options | None = None) -> str:
    """Render a planned suite as a pytest module."""
    return PytestBackend(options).emit(suite)
