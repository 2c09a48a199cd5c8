"""Exceptions raised by branchgen."""

from __future__ import annotations


class BranchgenError(Exception):
    """Base for all branchgen errors."""


class ParseError(BranchgenError):
    """Parse error with location info."""

    def __init__(self, msg: str, lineno: int, col: int):
        self.msg: str = msg
        self.lineno: int = lineno
        self.col: int = col
        super().__init__(msg)

