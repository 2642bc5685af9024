"""Semantic version parsing, ordering, and compatibility.

Purpose
-------
Provide the single source of truth for comparing versions found in the
lockfile and in registry responses. String comparison is never used.

Contents
--------
* :class:`Version` - Parsed ``MAJOR.MINOR.PATCH[-PRE][+BUILD]`` value
* :func:`compare` - Three-way comparison following SemVer 2.0 precedence
* :func:`is_compatible` - Cargo's breaking-change boundary predicate

System Role
-----------
Leaf of the pipeline. The lockfile model parses pinned versions with it and
the outdated resolver uses it to rank published candidates.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from .errors import InvalidVersion

_RE_VERSION = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_RE_NUMERIC = re.compile(r"^\d+$")


def _validate_prerelease(text: str, identifiers: tuple[str, ...]) -> None:
    """Reject numeric pre-release identifiers with leading zeros."""
    for ident in identifiers:
        if _RE_NUMERIC.match(ident) and len(ident) > 1 and ident.startswith("0"):
            raise InvalidVersion(text, f"pre-release identifier '{ident}' has a leading zero")


def _compare_identifier(left: str, right: str) -> int:
    left_numeric = bool(_RE_NUMERIC.match(left))
    right_numeric = bool(_RE_NUMERIC.match(right))
    if left_numeric and right_numeric:
        a, b = int(left), int(right)
        return (a > b) - (a < b)
    # numeric identifiers always have lower precedence than alphanumeric ones
    if left_numeric != right_numeric:
        return -1 if left_numeric else 1
    return (left > right) - (left < right)


def _compare_prerelease(left: tuple[str, ...], right: tuple[str, ...]) -> int:
    if left == right:
        return 0
    # a release outranks any of its pre-releases
    if not left:
        return 1
    if not right:
        return -1
    for a, b in zip(left, right):
        result = _compare_identifier(a, b)
        if result:
            return result
    return (len(left) > len(right)) - (len(left) < len(right))


@dataclass(frozen=True, slots=True, eq=False)
class Version:
    """A parsed semantic version.

    Equality and ordering follow SemVer precedence: build metadata is kept
    for display but ignored when comparing.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        prerelease: Dot-separated pre-release identifiers, empty for releases.
        build: Dot-separated build metadata identifiers.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a version string like ``1.2.3-beta.1+build.5``.

        Args:
            text: The version string. Surrounding whitespace is ignored.

        Returns:
            Parsed version.

        Raises:
            InvalidVersion: If the string does not follow the SemVer grammar.
        """
        return _parse_cached(text.strip())

    @property
    def is_prerelease(self) -> bool:
        """Whether this version carries pre-release identifiers."""
        return bool(self.prerelease)

    def _key(self) -> tuple[int, int, int, tuple[str, ...]]:
        return (self.major, self.minor, self.patch, self.prerelease)

    def __str__(self) -> str:
        """Return the canonical version text."""
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def __repr__(self) -> str:
        return f"Version('{self}')"

    def __hash__(self) -> int:
        return hash(self._key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        """Compare versions by precedence."""
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) < 0

    def __le__(self, other: object) -> bool:
        """Compare versions by precedence."""
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) <= 0

    def __gt__(self, other: object) -> bool:
        """Compare versions by precedence."""
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) > 0

    def __ge__(self, other: object) -> bool:
        """Compare versions by precedence."""
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) >= 0


@lru_cache(maxsize=4096)
def _parse_cached(text: str) -> Version:
    match = _RE_VERSION.match(text)
    if not match:
        raise InvalidVersion(text, "expected MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]")

    pre = match.group("pre")
    build = match.group("build")
    prerelease = tuple(pre.split(".")) if pre else ()
    _validate_prerelease(text, prerelease)

    return Version(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=prerelease,
        build=tuple(build.split(".")) if build else (),
    )


def compare(a: Version, b: Version) -> int:
    """Three-way comparison of two versions.

    Args:
        a: Left-hand version.
        b: Right-hand version.

    Returns:
        -1 if ``a`` precedes ``b``, 0 if they are equal, 1 otherwise.

    Example:
        >>> compare(Version.parse("1.0.0-rc.1"), Version.parse("1.0.0"))
        -1
    """
    left = (a.major, a.minor, a.patch)
    right = (b.major, b.minor, b.patch)
    if left != right:
        return -1 if left < right else 1
    return _compare_prerelease(a.prerelease, b.prerelease)


def is_compatible(candidate: Version, baseline: Version) -> bool:
    """Check whether ``candidate`` stays within ``baseline``'s breaking boundary.

    For ``1.x`` and above the major number must match. For ``0.x`` the minor
    number marks breaking changes, so both major and minor must match.

    Example:
        >>> is_compatible(Version.parse("1.9.0"), Version.parse("1.2.0"))
        True
        >>> is_compatible(Version.parse("0.4.0"), Version.parse("0.3.1"))
        False
    """
    if candidate.major != baseline.major:
        return False
    if baseline.major == 0:
        return candidate.minor == baseline.minor
    return True


__all__ = [
    "Version",
    "compare",
    "is_compatible",
]
