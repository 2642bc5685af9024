"""Exception hierarchy for the outdated-dependency pipeline.

Two tiers of failure exist:

* Structural errors (:class:`LockfileParseError`, :class:`DanglingDependency`,
  :class:`UnknownPackage`, :class:`ManifestError`, and :class:`InvalidVersion`
  for a pinned version) abort the run before any registry query is issued.
* :class:`RegistryUnavailable` is raised by registry adapters for a single
  package. The resolver catches it and records a per-package failure so
  results already computed for other packages are kept.
"""

from __future__ import annotations


class CargoOutdatedError(Exception):
    """Base class for every error raised by this package."""


class InvalidVersion(CargoOutdatedError, ValueError):
    """A version string does not follow ``MAJOR.MINOR.PATCH[-PRE][+BUILD]``."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid version {text!r}{detail}")


class LockfileParseError(CargoOutdatedError):
    """The lockfile is malformed or violates its own uniqueness rules."""


class DanglingDependency(LockfileParseError):
    """A dependency edge points at a package that is not in the lockfile."""

    def __init__(self, parent: str, reference: str) -> None:
        self.parent = parent
        self.reference = reference
        super().__init__(f"Package '{parent}' depends on '{reference}', which is not present in the lockfile")


class UnknownPackage(CargoOutdatedError):
    """A requested root or package filter is absent from the dependency graph."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Package '{name}' was not found in the lockfile")


class ManifestError(CargoOutdatedError):
    """The manifest could not be read or does not name any package."""


class RegistryUnavailable(CargoOutdatedError):
    """The registry could not report the published versions of a package."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Could not fetch versions for '{name}': {reason}")


__all__ = [
    "CargoOutdatedError",
    "DanglingDependency",
    "InvalidVersion",
    "LockfileParseError",
    "ManifestError",
    "RegistryUnavailable",
    "UnknownPackage",
]
