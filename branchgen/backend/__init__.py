"""Backend package - renders planned suites as test modules."""

from .pytest_suite import PytestBackend, call_source, emit_pytest
from .util import Emitter, to_snake

__all__ = ["Emitter", "PytestBackend", "call_source", "emit_pytest", "to_snake"]
