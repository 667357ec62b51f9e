"""
Mediation sequence domain objects for apibundle.
"""

from dataclasses import dataclass
from enum import Enum


class SequenceDirection(Enum):
    """Message flow a sequence applies to."""
    IN = "in"
    OUT = "out"
    FAULT = "fault"

    @property
    def folder(self) -> str:
        """Archive folder name for this direction (e.g. ``in-sequence``)."""
        return f"{self.value}-sequence"


@dataclass(frozen=True)
class Sequence:
    """
    A named, directioned configuration fragment.

    ``config`` is the raw markup and is round-tripped byte-for-byte.
    """
    name: str
    direction: SequenceDirection
    config: bytes

    def __repr__(self) -> str:
        return f"Sequence(name={self.name!r}, direction={self.direction.value!r})"
