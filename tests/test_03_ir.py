"""IR builder tests.

Test cases live in 03_ir/*.tests files; assertions are dotpaths into the
serialized Program.
"""

from pathlib import Path

from harness import check_expected, parametrize_dir

from branchgen.frontend import build_program
from branchgen.frontend.builder import is_public_name, return_kind
from branchgen.pipeline import run_phase

IR_DIR = Path(__file__).parent / "03_ir"


def pytest_generate_tests(metafunc):
    """Parametrize tests over IR test files."""
    parametrize_dir(metafunc, "ir", IR_DIR)


def test_ir(ir_input: str, ir_expected: str):
    """Verify the built IR matches the expected shape."""
    check_expected(lambda src: run_phase(src, "ir"), ir_input, ir_expected)


def test_return_kind_substring_match():
    assert return_kind("str") == "string"
    assert return_kind("Optional[str]") == "string"
    assert return_kind("int") == "number"
    assert return_kind("float") == "number"
    assert return_kind("bool") == "boolean"
    assert return_kind("Response") == "object"
    assert return_kind(None) is None


def test_public_names():
    assert is_public_name("run")
    assert is_public_name("__eq__")
    assert not is_public_name("_run")
    assert not is_public_name("__run")


def test_owner_links():
    program = build_program("class A:\n    x = 1\n    def f(self, a):\n        if a == 1:\n            pass\n")
    cls = program.classes[0]
    method = cls.methods[0]
    branch = method.body.branches[0]
    assert cls.owner is program
    assert method.owner is cls
    assert method.parameters[0].owner is method
    assert cls.properties[0].owner is cls
    assert branch.owner is method.body
    assert branch.conditions[0].owner is branch
    assert method.body.owner is method


def test_build_program_appends_across_sources():
    program = build_program("class A:\n    pass\n", "pkg.a")
    build_program("class B:\n    pass\n", "pkg.b", program=program)
    assert [(c.name, c.module) for c in program.classes] == [("A", "pkg.a"), ("B", "pkg.b")]
