"""Scenario composition and suite planning tests.

Test cases live in 05_scenarios/*.tests files; assertions are dotpaths
into the list of serialized suites.
"""

from pathlib import Path

from harness import check_expected, parametrize_dir

from branchgen.config import Options
from branchgen.frontend import build_program
from branchgen.ir import FieldAssign, Number
from branchgen.middleend import compose_method, plan_suite
from branchgen.middleend.compose import call_name, mangle
from branchgen.middleend.stubs import used_members
from branchgen.pipeline import run_phase

SCENARIOS_DIR = Path(__file__).parent / "05_scenarios"


def pytest_generate_tests(metafunc):
    """Parametrize tests over scenario test files."""
    parametrize_dir(metafunc, "scenarios", SCENARIOS_DIR)


def test_scenarios(scenarios_input: str, scenarios_expected: str):
    """Verify planned suites match the expected shape."""
    check_expected(lambda src: run_phase(src, "scenarios"), scenarios_input, scenarios_expected)


def only_class(source: str):
    return build_program(source).classes[0]


def test_labels_unique_within_method():
    cls = only_class(
        "class A:\n"
        "    def f(self, a, b):\n"
        "        if a == 1:\n"
        "            if b == 2:\n"
        "                pass\n"
        "        match a:\n"
        "            case 3:\n"
        "                pass\n"
    )
    labels = [s.label for s in compose_method(cls.methods[0])]
    assert len(labels) == len(set(labels))
    assert labels == [f"f ({n})" for n in range(1, len(labels) + 1)]


def test_field_assignment_values():
    cls = only_class("class A:\n    size = 1\n    def f(self):\n        if self.size == 4:\n            pass\n")
    scenarios = compose_method(cls.methods[0])
    assert scenarios[0].assignments == [FieldAssign(name="size", value=Number(4))]
    assert scenarios[1].assignments == [FieldAssign(name="size", value=Number(5))]


def test_parameter_shadows_field():
    cls = only_class("class A:\n    x = 1\n    def f(self, x: int):\n        if x == 4:\n            pass\n")
    scenarios = compose_method(cls.methods[0])
    assert scenarios[0].assignments == []
    assert scenarios[0].invocation.args[0].value == Number(4)


def test_receiver_field_beats_parameter():
    cls = only_class("class A:\n    x = 1\n    def put(self, x: int):\n        if self.x == 5:\n            pass\n")
    scenarios = compose_method(cls.methods[0])
    assert scenarios[0].assignments == [FieldAssign(name="x", value=Number(5))]
    assert scenarios[0].invocation.args[0].value != Number(5)
    assert scenarios[1].assignments == [FieldAssign(name="x", value=Number(6))]


def test_receiver_access_without_field_prepares_nothing():
    cls = only_class("class A:\n    def put(self, x: int):\n        if self.x == 5:\n            pass\n")
    scenarios = compose_method(cls.methods[0])
    assert scenarios[0].assignments == []
    assert scenarios[0].invocation.args[0].value == Number(2)


def test_private_field_assignment_is_mangled():
    cls = only_class(
        "class _Gate:\n"
        "    def __init__(self):\n"
        "        self.__mode = 0\n"
        "    def open(self):\n"
        "        if self.__mode == 7:\n"
        "            pass\n"
    )
    scenarios = compose_method(cls.methods[0])
    assert scenarios[0].assignments == [FieldAssign(name="_Gate__mode", value=Number(7))]


def test_mangle():
    cls = only_class("class __Odd:\n    pass\n")
    assert mangle("__x", cls) == "_Odd__x"
    assert mangle("__x__", cls) == "__x__"
    assert mangle("_x", cls) == "_x"
    assert mangle("__x", None) == "__x"


def test_stub_exceptions_skip_types():
    cls = only_class("class A:\n    repo: Repository = None\n    clock: Clock = None\n")
    suite = plan_suite(cls, Options(stub_exceptions=["Clock"]))
    assert [s.class_name for s in suite.stubs] == ["FakeRepository"]


def test_custom_prefixes():
    cls = only_class("class A:\n    def __init__(self, repo: Repository):\n        pass\n")
    suite = plan_suite(cls, Options(stub_prefix="Mock"))
    assert [s.class_name for s in suite.stubs] == ["MockRepository"]


def test_wiring_can_be_disabled():
    cls = only_class("class A:\n    repo: Repository = None\n")
    assert plan_suite(cls, Options(wire_fakes=False)).wiring == []


def test_used_members_first_occurrence_wins():
    cls = only_class(
        "class A:\n"
        "    def f(self):\n"
        "        self.repo.save(1)\n"
        "        self.repo.save(1, 2, 3)\n"
        "        self.other.load()\n"
    )
    members = used_members(cls.node, "repo")
    assert [(m.name, m.arity) for m in members] == [("save", 1)]


def test_used_members_keywords():
    cls = only_class("class A:\n    def f(self, repo):\n        repo.save(force=True)\n")
    (member,) = used_members(cls.node, "repo")
    assert member.is_callable
    assert member.arity == 0
    assert member.has_keywords


def test_call_name_mangling():
    cls = only_class("class _Hidden:\n    def __run(self):\n        pass\n    def __call__(self):\n        pass\n")
    assert call_name(cls.methods[0]) == "_Hidden__run"
    assert call_name(cls.methods[1]) == "__call__"


def test_failing_method_is_isolated(monkeypatch):
    import branchgen.middleend.suite as suite_module

    real = suite_module.compose_method

    def flaky(method, options=None):
        if method.name == "bad":
            raise ValueError("boom")
        return real(method, options)

    monkeypatch.setattr(suite_module, "compose_method", flaky)
    cls = only_class("class A:\n    def bad(self):\n        pass\n    def good(self):\n        pass\n")
    suite = plan_suite(cls)
    assert suite.methods[0].error == "ValueError: boom"
    assert suite.methods[0].scenarios == []
    assert suite.methods[1].error is None
    assert [s.label for s in suite.methods[1].scenarios] == ["good"]
