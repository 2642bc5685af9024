"""Domain models for outdated-dependency analysis (dataclasses).

Purpose
-------
Define core data structures for the analysis domain layer.
These are pure dataclasses used for internal business logic.

For external data serialization, use the Pydantic schemas in schemas.py.

Contents
--------
* :class:`PackageId` - Name and pinned version of one resolved package
* :class:`LockfileEntry` - One ``[[package]]`` block with resolved edges
* :class:`DependencyGraph` - Read-only graph built from the lockfile
* :class:`OutdatedRecord` - A package with at least one newer version
* :class:`PackageFailure` - A package whose registry query failed
* :class:`OutdatedReport` - Result set plus per-package failures

Data Flow Pattern
-----------------
Cargo.lock → Pydantic (validate) → Dataclass (domain) → Pydantic (serialize) → Output
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .semver import Version

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True, slots=True)
class PackageId:
    """Uniquely identifies one resolved dependency.

    Attributes:
        name: The crate name as written in the lockfile.
        version: The exact pinned version.
    """

    name: str
    version: Version

    def __str__(self) -> str:
        """Return identity as ``name version``, matching lockfile notation."""
        return f"{self.name} {self.version}"


def _empty_id_tuple() -> tuple[PackageId, ...]:
    """Return an empty PackageId tuple for dataclass defaults."""
    return ()


@dataclass(frozen=True, slots=True)
class LockfileEntry:
    """A package block as recorded in the lockfile.

    Attributes:
        name: The crate name.
        version: The pinned version.
        source: Where the package comes from (``registry+...``, ``git+...``),
            or None for local path packages.
        checksum: The recorded checksum, if any.
        dependencies: Exact identities of the packages this one depends on,
            in lockfile order.
    """

    name: str
    version: Version
    source: str | None = None
    checksum: str | None = None
    dependencies: tuple[PackageId, ...] = field(default_factory=_empty_id_tuple)

    @property
    def id(self) -> PackageId:
        """The identity of this entry."""
        return PackageId(self.name, self.version)

    @property
    def is_local(self) -> bool:
        """Whether the package is a path dependency or workspace member."""
        return self.source is None

    @property
    def is_git(self) -> bool:
        """Whether the package is fetched from a git repository."""
        return self.source is not None and self.source.startswith("git+")


class DependencyGraph:
    """Read-only set of lockfile entries with a name index.

    A crate name may be present at several versions; :meth:`by_name` returns
    all of them in lockfile order.
    """

    __slots__ = ("_by_id", "_by_name")

    def __init__(self, entries: dict[PackageId, LockfileEntry], by_name: dict[str, list[LockfileEntry]]) -> None:
        self._by_id = dict(entries)
        self._by_name = {name: tuple(items) for name, items in by_name.items()}

    def get(self, package_id: PackageId) -> LockfileEntry | None:
        """Return the entry for ``package_id`` or None."""
        return self._by_id.get(package_id)

    def by_name(self, name: str) -> tuple[LockfileEntry, ...]:
        """Return every entry named ``name`` (empty if absent)."""
        return self._by_name.get(name, ())

    def dependencies_of(self, entry: LockfileEntry) -> list[LockfileEntry]:
        """Return the entries ``entry`` depends on, in lockfile order."""
        return [self._by_id[dep] for dep in entry.dependencies]

    @property
    def names(self) -> list[str]:
        """All distinct package names in first-seen order."""
        return list(self._by_name)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, PackageId):
            return item in self._by_id
        if isinstance(item, str):
            return item in self._by_name
        return False

    def __iter__(self) -> Iterator[LockfileEntry]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __repr__(self) -> str:
        return f"DependencyGraph(packages={len(self._by_id)})"


@dataclass(frozen=True, slots=True)
class OutdatedRecord:
    """A package for which the registry publishes a newer version.

    Attributes:
        name: The crate name.
        project_ver: The version pinned in the lockfile.
        semver_ver: Highest newer version compatible with ``project_ver``, or
            None when no compatible update exists.
        latest_ver: Highest newer version overall. Always set for emitted
            records; typed optional to mirror the output columns.
    """

    name: str
    project_ver: Version
    semver_ver: Version | None
    latest_ver: Version | None


@dataclass(frozen=True, slots=True)
class PackageFailure:
    """A package that could not be checked against the registry."""

    name: str
    version: Version
    reason: str


def _empty_record_map() -> dict[PackageId, OutdatedRecord]:
    """Return an empty record map for dataclass defaults."""
    return {}


def _empty_failure_list() -> list[PackageFailure]:
    """Return an empty failure list for dataclass defaults."""
    return []


@dataclass(slots=True)
class OutdatedReport:
    """Complete outcome of an outdated check.

    Partial success is represented explicitly: ``records`` holds every
    outdated package that could be evaluated and ``failures`` lists the
    packages whose registry lookup failed.

    Attributes:
        records: Outdated packages keyed by identity, in traversal order.
        failures: Packages that could not be checked.
        checked: Number of packages evaluated, including failures.
    """

    records: dict[PackageId, OutdatedRecord] = field(default_factory=_empty_record_map)
    failures: list[PackageFailure] = field(default_factory=_empty_failure_list)
    checked: int = 0

    @property
    def is_up_to_date(self) -> bool:
        """True when no outdated package was found."""
        return not self.records

    @property
    def has_failures(self) -> bool:
        """True when at least one package could not be checked."""
        return bool(self.failures)


__all__ = [
    "DependencyGraph",
    "LockfileEntry",
    "OutdatedRecord",
    "OutdatedReport",
    "PackageFailure",
    "PackageId",
]
