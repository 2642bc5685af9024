"""Core analyzer that finds outdated dependencies of a Cargo project.

Purpose
-------
Orchestrate the pipeline: parse the Cargo.lock, pick the traversal roots,
walk the dependency graph, and compare every visited package against the
registry.

Contents
--------
* :func:`check_outdated` - Main API function returning an OutdatedReport
* :func:`select_targets` - Decide which lockfile entries get evaluated
* :class:`Analyzer` - Stateful analyzer owning the registry client and cache
* :func:`write_outdated_json` - Serialize a report to disk

System Role
-----------
The central component that coordinates all other modules to produce the
final report. This is the main entry point for the library.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .lockfile import load_lockfile
from .manifest import ManifestInfo, load_manifest
from .registry import DEFAULT_INDEX_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, CratesIndexRegistry
from .resolver import DEFAULT_CONCURRENCY, OutdatedResolver
from .schemas import OutdatedRecordSchema, OutdatedReportSchema, PackageFailureSchema
from .walker import select_roots, walk

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import DependencyGraph, LockfileEntry, OutdatedRecord, OutdatedReport, PackageId
    from .registry import Registry

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "Cargo.toml"
LOCKFILE_FILENAME = "Cargo.lock"


def default_roots(graph: DependencyGraph, manifest: ManifestInfo) -> list[str]:
    """Return the names of the project's own packages.

    A manifest with a ``[package]`` table yields that package. A virtual
    workspace yields every local (source-less) package in the lockfile.
    """
    if manifest.package_name:
        return [manifest.package_name]
    return list(dict.fromkeys(entry.name for entry in graph if entry.is_local))


def missing_dependencies(graph: DependencyGraph, manifest: ManifestInfo) -> list[str]:
    """Return the manifest's direct dependencies that the lockfile lacks.

    A non-empty result means Cargo.lock was not regenerated after Cargo.toml
    changed, so the report would miss those packages.
    """
    return [name for name in manifest.dependencies if name not in graph]


def select_targets(
    graph: DependencyGraph,
    *,
    packages: Sequence[str] = (),
    roots: Sequence[str] = (),
    depth: int | None = None,
    root_deps_only: bool = False,
) -> list[LockfileEntry]:
    """Decide which lockfile entries are checked against the registry.

    With explicit ``packages`` the walk starts at those packages and includes
    them (depth 0 checks only them). Otherwise the walk starts at the project
    package(s) named by ``roots``, which are never checked themselves, so
    depth 1 covers exactly their direct dependencies.

    ``root_deps_only`` checks the direct dependencies of the starting
    packages and never the starting packages themselves, whichever way they
    were chosen.

    Packages fetched from git are not published to the registry and are
    skipped. Local path packages are skipped unless explicitly requested.

    Args:
        graph: The parsed lockfile.
        packages: Explicit packages to inspect.
        roots: Project packages to start from when ``packages`` is empty.
        depth: Maximum traversal depth; None for the whole closure.
        root_deps_only: Check only the direct dependencies of the starting
            packages. Cannot be combined with a depth other than 1.

    Returns:
        Entries in traversal order.

    Raises:
        UnknownPackage: If a requested package or root is absent.
        ValueError: If ``root_deps_only`` conflicts with ``depth``.
    """
    if root_deps_only:
        if depth not in (None, 1):
            raise ValueError(f"root_deps_only cannot be combined with depth {depth}")
        depth = 1

    if packages:
        start_entries = select_roots(graph, packages)
        include_start = not root_deps_only
    else:
        start_entries = select_roots(graph, roots)
        include_start = False

    start_ids = {entry.id for entry in start_entries}
    requested: set[PackageId] = start_ids if include_start else set()
    steps = walk(graph, start_entries, depth, include_roots=include_start)

    targets: list[LockfileEntry] = []
    for step in steps:
        entry = step.entry
        if not include_start and entry.id in start_ids:
            continue
        if entry.is_git:
            logger.debug("Skipping git package %s", entry.id)
            continue
        if entry.is_local and entry.id not in requested:
            logger.debug("Skipping local package %s", entry.id)
            continue
        targets.append(entry)
    return targets


def _resolve_paths(
    manifest_path: Path | str | None,
    lockfile_path: Path | str | None,
) -> tuple[Path, Path]:
    manifest = Path(manifest_path) if manifest_path else Path.cwd() / MANIFEST_FILENAME
    lockfile = Path(lockfile_path) if lockfile_path else manifest.parent / LOCKFILE_FILENAME
    return manifest, lockfile


@dataclass
class Analyzer:
    """Stateful analyzer for Cargo projects.

    The registry client, and with it the response cache, lives as long as
    the analyzer, so repeated checks in one process reuse earlier answers.

    Attributes:
        index_url: Sparse index base URL.
        timeout: Request timeout in seconds.
        concurrency: Maximum concurrent registry requests.
        user_agent: User-Agent header for registry requests.
        registry: Registry to query; defaults to a crates.io index client.
    """

    index_url: str = DEFAULT_INDEX_URL
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY
    user_agent: str = DEFAULT_USER_AGENT
    registry: Registry | None = None
    resolver: OutdatedResolver = field(init=False)

    def __post_init__(self) -> None:
        """Initialize and validate the analyzer configuration."""
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.concurrency <= 0:
            raise ValueError(f"concurrency must be positive, got {self.concurrency}")

        if self.registry is None:
            self.registry = CratesIndexRegistry(
                index_url=self.index_url,
                timeout=self.timeout,
                user_agent=self.user_agent,
            )
        self.resolver = OutdatedResolver(registry=self.registry, concurrency=self.concurrency)

    async def check_async(
        self,
        *,
        manifest_path: Path | str | None = None,
        lockfile_path: Path | str | None = None,
        packages: Sequence[str] = (),
        root: str | None = None,
        depth: int | None = None,
        root_deps_only: bool = False,
    ) -> OutdatedReport:
        """Check a Cargo project for outdated dependencies.

        The manifest is only read when neither ``packages`` nor ``root`` is
        given.

        Raises:
            LockfileParseError: If the lockfile is malformed.
            UnknownPackage: If a requested package or root is absent.
            ManifestError: If the manifest is needed but unusable.
        """
        manifest_file, lockfile_file = _resolve_paths(manifest_path, lockfile_path)
        graph = load_lockfile(lockfile_file)
        logger.info("Lockfile lists %d packages", len(graph))

        roots: list[str] = []
        if not packages:
            if root:
                roots = [root]
            else:
                manifest = load_manifest(manifest_file)
                if missing := missing_dependencies(graph, manifest):
                    logger.warning(
                        "%s does not list %s declared in %s; regenerate it with `cargo update`",
                        lockfile_file,
                        ", ".join(missing),
                        manifest_file,
                    )
                roots = default_roots(graph, manifest)
            logger.debug("Traversal roots: %s", roots)

        targets = select_targets(
            graph,
            packages=packages,
            roots=roots,
            depth=depth,
            root_deps_only=root_deps_only,
        )
        logger.info("Selected %d package(s) to check", len(targets))
        return await self.resolver.resolve_async(targets)

    def check(
        self,
        *,
        manifest_path: Path | str | None = None,
        lockfile_path: Path | str | None = None,
        packages: Sequence[str] = (),
        root: str | None = None,
        depth: int | None = None,
        root_deps_only: bool = False,
    ) -> OutdatedReport:
        """Synchronous wrapper for check_async."""
        return asyncio.run(
            self.check_async(
                manifest_path=manifest_path,
                lockfile_path=lockfile_path,
                packages=packages,
                root=root,
                depth=depth,
                root_deps_only=root_deps_only,
            )
        )


def check_outdated(
    *,
    manifest_path: Path | str | None = None,
    lockfile_path: Path | str | None = None,
    packages: Sequence[str] = (),
    root: str | None = None,
    depth: int | None = None,
    root_deps_only: bool = False,
    registry: Registry | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> OutdatedReport:
    """Check a Cargo project and return the outdated report.

    This is the main API function for the library.

    Example:
        >>> report = check_outdated(manifest_path="Cargo.toml", depth=1)  # doctest: +SKIP
        >>> for record in report.records.values():  # doctest: +SKIP
        ...     print(f"{record.name}: {record.project_ver} -> {record.latest_ver}")  # doctest: +SKIP
    """
    analyzer = Analyzer(registry=registry, concurrency=concurrency)
    return analyzer.check(
        manifest_path=manifest_path,
        lockfile_path=lockfile_path,
        packages=packages,
        root=root,
        depth=depth,
        root_deps_only=root_deps_only,
    )


def _optional_str(value: object | None) -> str | None:
    return None if value is None else str(value)


def _record_schema(record: OutdatedRecord) -> OutdatedRecordSchema:
    return OutdatedRecordSchema(
        name=record.name,
        project_ver=str(record.project_ver),
        semver_ver=_optional_str(record.semver_ver),
        latest_ver=_optional_str(record.latest_ver),
    )


def record_to_dict(record: OutdatedRecord) -> dict[str, str | None]:
    """Convert an OutdatedRecord to a dictionary for JSON serialization."""
    return _record_schema(record).model_dump()


def report_to_dict(report: OutdatedReport) -> dict[str, Any]:
    """Convert a full report, including failures, to a serializable dict."""
    schema = OutdatedReportSchema(
        outdated=[_record_schema(record) for record in report.records.values()],
        failures=[
            PackageFailureSchema(name=f.name, version=str(f.version), reason=f.reason) for f in report.failures
        ],
        checked=report.checked,
    )
    return schema.model_dump()


def write_outdated_json(report: OutdatedReport, output_path: Path | str) -> None:
    """Write a report to a JSON file.

    Raises:
        ValueError: If output_path is a directory.
    """
    path = Path(output_path).resolve()

    if path.is_dir():
        raise ValueError(f"Output path must be a file, not a directory: {path}")

    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(report_to_dict(report), f, indent=2)

    logger.info("Wrote %d outdated record(s) to %s", len(report.records), path)


__all__ = [
    "Analyzer",
    "LOCKFILE_FILENAME",
    "MANIFEST_FILENAME",
    "check_outdated",
    "default_roots",
    "missing_dependencies",
    "record_to_dict",
    "report_to_dict",
    "select_targets",
    "write_outdated_json",
]
