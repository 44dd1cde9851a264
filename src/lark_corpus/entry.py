"""In-memory form of a corpus fixture: named groups of named examples."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from typing_extensions import TypeAlias


@dataclass(frozen=True)
class Example:
    """Leaf case: source bytes plus the S-expression the parser must produce."""

    name: str
    input: bytes
    output: str


@dataclass(frozen=True)
class Group:
    name: str
    children: Tuple[TestEntry, ...] = field(default_factory=tuple)


TestEntry: TypeAlias = Example | Group
