"""Outdated resolver: compare pinned versions against published ones.

Purpose
-------
For each package selected by the walker, fetch the published versions from
the registry and work out the newest compatible and the newest overall
update.

Contents
--------
* :func:`compute_updates` - Pure version arithmetic for one package
* :func:`evaluate` - Build an :class:`OutdatedRecord` when an update exists
* :class:`OutdatedResolver` - Concurrent per-package evaluation

System Role
-----------
Produces the :class:`OutdatedReport` handed to the presentation layer.
Registry failures are isolated per package and never discard results
already computed for others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import InvalidVersion, RegistryUnavailable
from .models import OutdatedRecord, OutdatedReport, PackageFailure
from .semver import Version, is_compatible

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import LockfileEntry
    from .registry import Registry

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10


def _parse_candidates(published: Iterable[str]) -> list[Version]:
    """Parse published version strings, dropping the unparseable ones."""
    candidates: list[Version] = []
    for text in published:
        try:
            candidates.append(Version.parse(text))
        except InvalidVersion as exc:
            logger.debug("Skipping published version: %s", exc)
    return candidates


def compute_updates(project_ver: Version, published: Iterable[str]) -> tuple[Version | None, Version | None]:
    """Find the newest compatible and newest overall versions above ``project_ver``.

    Pre-releases are only considered when ``project_ver`` is itself a
    pre-release.

    Args:
        project_ver: The pinned version.
        published: Version strings reported by the registry.

    Returns:
        Tuple of (semver_ver, latest_ver); either is None when no newer
        candidate qualifies.

    Example:
        >>> semver_ver, latest_ver = compute_updates(Version.parse("0.3.1"), ["0.3.2", "0.4.0"])
        >>> str(semver_ver), str(latest_ver)
        ('0.3.2', '0.4.0')
    """
    allow_prerelease = project_ver.is_prerelease
    newer = [
        candidate
        for candidate in _parse_candidates(published)
        if candidate > project_ver and (allow_prerelease or not candidate.is_prerelease)
    ]
    if not newer:
        return None, None

    compatible = [candidate for candidate in newer if is_compatible(candidate, project_ver)]
    semver_ver = max(compatible) if compatible else None
    return semver_ver, max(newer)


def evaluate(entry: LockfileEntry, published: Iterable[str]) -> OutdatedRecord | None:
    """Return an :class:`OutdatedRecord` for ``entry``, or None if up to date."""
    semver_ver, latest_ver = compute_updates(entry.version, published)
    if latest_ver is None:
        return None
    return OutdatedRecord(
        name=entry.name,
        project_ver=entry.version,
        semver_ver=semver_ver,
        latest_ver=latest_ver,
    )


@dataclass(frozen=True, slots=True)
class _Lookup:
    """Outcome of one registry query."""

    versions: frozenset[str] | None = None
    error: str | None = None


@dataclass
class OutdatedResolver:
    """Evaluates lockfile entries against a registry.

    Queries are issued once per distinct crate name and run concurrently
    inside one registry session, bounded by ``concurrency``. Results are
    merged in input order once every query has finished.

    Attributes:
        registry: Source of published versions.
        concurrency: Maximum number of simultaneous registry queries.
    """

    registry: Registry
    concurrency: int = DEFAULT_CONCURRENCY

    def __post_init__(self) -> None:
        if self.concurrency <= 0:
            raise ValueError(f"concurrency must be positive, got {self.concurrency}")

    async def _lookup(self, name: str, semaphore: asyncio.Semaphore) -> _Lookup:
        async with semaphore:
            try:
                return _Lookup(versions=await self.registry.list_versions(name))
            except RegistryUnavailable as exc:
                logger.warning("%s", exc)
                return _Lookup(error=exc.reason)
            except Exception as exc:
                reason = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
                logger.warning("Could not fetch versions for '%s': %s", name, reason)
                return _Lookup(error=reason)

    async def resolve_async(self, entries: Sequence[LockfileEntry]) -> OutdatedReport:
        """Evaluate ``entries`` and collect outdated records and failures.

        Args:
            entries: Packages to evaluate, typically in walker order.

        Returns:
            The report; records and failures follow the order of ``entries``.
        """
        names = list(dict.fromkeys(entry.name for entry in entries))
        logger.info("Checking %d package(s) against the registry", len(names))

        semaphore = asyncio.Semaphore(self.concurrency)
        async with self.registry.session():
            lookups = await asyncio.gather(*(self._lookup(name, semaphore) for name in names))
        by_name = dict(zip(names, lookups))

        report = OutdatedReport(checked=len(entries))
        for entry in entries:
            lookup = by_name[entry.name]
            if lookup.versions is None:
                report.failures.append(PackageFailure(entry.name, entry.version, lookup.error or "unknown error"))
                continue
            record = evaluate(entry, lookup.versions)
            if record is not None:
                report.records[entry.id] = record

        logger.info(
            "Found %d outdated package(s), %d could not be checked",
            len(report.records),
            len(report.failures),
        )
        return report

    def resolve(self, entries: Sequence[LockfileEntry]) -> OutdatedReport:
        """Synchronous wrapper for :meth:`resolve_async`."""
        return asyncio.run(self.resolve_async(entries))


__all__ = [
    "DEFAULT_CONCURRENCY",
    "OutdatedResolver",
    "compute_updates",
    "evaluate",
]
