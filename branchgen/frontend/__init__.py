"""Frontend package - converts Python source to IR."""

from __future__ import annotations

from ..errors import ParseError
from ..ir import Program
from .builder import Builder
from .resolve import Resolver, resolve_operand
from .syntax import adapt


def build_program(
    source: str,
    module_name: str = "module",
    filename: str = "<unknown>",
    program: Program | None = None,
) -> Program:
    """Frontend pipeline: source -> syntax nodes -> IR Program."""
    module = adapt(source, filename)
    return Builder(module, source, module_name).build(program)


__all__ = [
    "Builder",
    "ParseError",
    "Resolver",
    "adapt",
    "build_program",
    "resolve_operand",
]
