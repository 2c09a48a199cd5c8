"""branchgen - branch-covering pytest scaffolding for Python classes."""

from .config import Options
from .errors import BranchgenError, ParseError
from .frontend import build_program
from .pipeline import GeneratedTest, generate

__all__ = [
    "BranchgenError",
    "GeneratedTest",
    "Options",
    "ParseError",
    "build_program",
    "generate",
]
