"""Generation options."""

from __future__ import annotations

from dataclasses import dataclass, field

# Types handled by placeholder values instead of stub classes.
PLACEHOLDER_TYPES: frozenset[str] = frozenset({"BinaryIO", "BytesIO", "IO", "bytes", "bytearray"})


@dataclass
class Options:
    """Knobs for suite planning and emission.

    stub_exceptions: type names that never get a stub class (the real type is
    expected to be importable and cheap to construct).
    wire_fakes: assign fresh Fake instances to typed fields after construction.
    """

    stub_exceptions: list[str] = field(default_factory=list)
    fake_prefix: str = "Fake"
    stub_prefix: str = "Stub"
    target_name: str = "target"
    indent: str = "    "
    wire_fakes: bool = True

    def stubbable(self, type_name: str | None) -> bool:
        """Whether a referenced type gets a generated stub class."""
        if not type_name:
            return False
        return type_name not in self.stub_exceptions and type_name not in PLACEHOLDER_TYPES
