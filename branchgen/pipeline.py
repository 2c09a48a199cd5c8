"""Phase orchestration: source -> syntax -> IR -> suites -> test modules."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from .backend.pytest_suite import emit_pytest
from .backend.util import to_snake
from .config import Options
from .errors import ParseError
from .frontend.builder import Builder
from .frontend.syntax import adapt
from .ir import Program, Suite
from .middleend.suite import plan_suite
from .serialize import serialize, to_json

logger = logging.getLogger(__name__)

PHASES: list[str] = ["syntax", "ir", "scenarios"]


@dataclass
class GeneratedTest:
    """One emitted test module."""

    class_name: str
    filename: str
    text: str


def output_filename(class_name: str) -> str:
    """Test module name for a class: test_<snake_case>.py."""
    return "test_" + to_snake(class_name) + ".py"


def should_skip_file(source: str) -> bool:
    """Check if file has a branchgen: skip directive in first 5 lines."""
    for line in source.split("\n", 5)[:5]:
        if "branchgen: skip" in line:
            return True
    return False


def plan(
    source: str,
    module_name: str = "module",
    options: Options | None = None,
    filename: str = "<unknown>",
    source_name: str = "",
) -> list[Suite]:
    """Suites for every class in the source. Raises ParseError."""
    if options is None:
        options = Options()
    module = adapt(source, filename)
    program = Builder(module, source, module_name).build()
    return [plan_suite(cls, options, source_name) for cls in program.classes]


def generate(
    source: str,
    module: str = "module",
    options: Options | None = None,
    filename: str = "<unknown>",
    source_name: str = "",
) -> list[GeneratedTest]:
    """Test modules for every class in the source. Raises ParseError."""
    if options is None:
        options = Options()
    result: list[GeneratedTest] = []
    for suite in plan(source, module, options, filename, source_name):
        text = emit_pytest(suite, options)
        result.append(GeneratedTest(suite.cls.name, output_filename(suite.cls.name), text))
    return result


def run_phase(
    source: str,
    stop_at: str,
    module_name: str = "module",
    options: Options | None = None,
    filename: str = "<unknown>",
) -> object:
    """Run up to stop_at and return the serialized result of that phase."""
    module = adapt(source, filename)
    if stop_at == "syntax":
        return serialize(module)
    program = Builder(module, source, module_name).build(Program())
    if stop_at == "ir":
        return serialize(program)
    if options is None:
        options = Options()
    return serialize([plan_suite(cls, options) for cls in program.classes])


def run_pipeline(
    source: str,
    module_name: str,
    stop_at: str | None,
    options: Options | None = None,
    filename: str = "<stdin>",
) -> tuple[int, str]:
    """Run the generation pipeline on one source. Returns (exit_code, output)."""
    try:
        if stop_at is not None:
            return (0, to_json(run_phase(source, stop_at, module_name, options, filename)))
        generated = generate(source, module_name, options, filename)
    except ParseError as e:
        print("error:" + str(e.lineno) + ":" + str(e.col) + ": " + e.msg, file=sys.stderr)
        return (1, "")
    if not generated:
        logger.info("%s: no classes found", filename)
    return (0, "\n\n".join(g.text for g in generated))
