"""Middleend package - value synthesis, scenario composition, suite planning."""

from .compose import ComposeContext, Composer, compose_method
from .stubs import collect_fakes, collect_injected
from .suite import plan_suite
from .synthesize import call_values, make_not_value, make_value

__all__ = [
    "ComposeContext",
    "Composer",
    "call_values",
    "collect_fakes",
    "collect_injected",
    "compose_method",
    "make_not_value",
    "make_value",
    "plan_suite",
]
