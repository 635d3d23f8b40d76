"""Three-part version value object"""

from dataclasses import dataclass
from typing import Optional

from ..constants import VERSION_PATTERN

COMPARISON_OPERATORS = ("==", "<", "<=", ">", ">=")


@dataclass(frozen=True, eq=False)
class Version:
    """Immutable ``major.minor.patch`` version.

    Equality and hashing use the raw string; ordering uses the numeric
    ``(major, minor, patch)`` tuple. Build instances through :meth:`parse`.
    """

    raw: str
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, raw) -> Optional['Version']:
        """Parse a version string, returning None when it is malformed"""
        if not isinstance(raw, str):
            return None

        match = VERSION_PATTERN.fullmatch(raw)
        if not match:
            return None

        return cls(
            raw=raw,
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
        )

    @classmethod
    def from_parts(cls, major: int, minor: int, patch: int) -> 'Version':
        """Build a version from its numeric parts"""
        if min(major, minor, patch) < 0:
            raise ValueError("Version parts must be non-negative")
        return cls(raw=f"{major}.{minor}.{patch}", major=major, minor=minor, patch=patch)

    @property
    def key(self) -> tuple:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return self.raw

    def __eq__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.raw == other.raw

    def __hash__(self) -> int:
        return hash(self.raw)

    def __lt__(self, other: 'Version') -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key < other.key

    def __le__(self, other: 'Version') -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key <= other.key

    def __gt__(self, other: 'Version') -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key > other.key

    def __ge__(self, other: 'Version') -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key >= other.key


def compare(a: Version, op: str, b: Version) -> bool:
    """Compare two versions with one of ``==, <, <=, >, >=``"""
    if op == "==":
        return a.raw == b.raw
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    raise ValueError(f"Unknown comparison operator: {op}")
