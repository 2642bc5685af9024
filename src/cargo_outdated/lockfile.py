"""Parser turning a Cargo.lock into a dependency graph.

Purpose
-------
Read the ``[[package]]`` blocks of a Cargo.lock, validate them, and link each
package to the exact entries its ``dependencies`` list references.

Contents
--------
* :func:`parse_lockfile` - Build a :class:`DependencyGraph` from lockfile text
* :func:`load_lockfile` - Read a lockfile from disk and parse it
* :func:`parse_dependency_reference` - Split a dependency string into parts

System Role
-----------
The first stage of the analysis pipeline. Any structural problem found here
aborts the run before a single registry query is made.
"""

from __future__ import annotations

import logging
import re
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import DanglingDependency, LockfileParseError
from .models import DependencyGraph, LockfileEntry, PackageId
from .schemas import CargoLockSchema, LockPackageSchema
from .semver import Version

logger = logging.getLogger(__name__)

# "name", "name version" or "name version (source)"
_RE_DEPENDENCY = re.compile(r"^(?P<name>[^\s()]+)(?:\s+(?P<version>[^\s()]+))?(?:\s+\((?P<source>[^)]+)\))?$")


def parse_dependency_reference(reference: str) -> tuple[str, str | None, str | None]:
    """Split a lockfile dependency string into name, version and source.

    Args:
        reference: A string like ``"serde 1.0.188 (registry+https://...)"``.

    Returns:
        Tuple of (name, version or None, source or None).

    Raises:
        LockfileParseError: If the string does not follow the lockfile format.

    Example:
        >>> parse_dependency_reference("libc 0.2.147")
        ('libc', '0.2.147', None)
    """
    match = _RE_DEPENDENCY.match(reference.strip())
    if not match:
        msg = f"Malformed dependency reference: {reference!r}"
        raise LockfileParseError(msg)
    return match.group("name"), match.group("version"), match.group("source")


def _validation_reason(exc: ValidationError) -> str:
    """Render the first pydantic error as ``location: message``."""
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def _decode(text: str) -> CargoLockSchema:
    try:
        data: dict[str, Any] = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Lockfile is not valid TOML: {exc}"
        raise LockfileParseError(msg) from exc

    try:
        return CargoLockSchema.model_validate(data)
    except ValidationError as exc:
        msg = f"Lockfile has an invalid structure ({_validation_reason(exc)})"
        raise LockfileParseError(msg) from exc


def _source_label(source: str | None) -> str:
    return source or "local"


def _collect_blocks(lock: CargoLockSchema) -> list[LockPackageSchema]:
    blocks = list(lock.package)
    if lock.root is not None:
        blocks.insert(0, lock.root)
    return blocks


def _resolve_reference(
    parent: LockPackageSchema,
    reference: str,
    by_name: dict[str, list[LockfileEntry]],
) -> PackageId:
    """Resolve one dependency string to the exact entry it names."""
    name, version_text, _source = parse_dependency_reference(reference)
    candidates = by_name.get(name, [])
    parent_label = f"{parent.name} {parent.version}"

    if version_text is None:
        if not candidates:
            raise DanglingDependency(parent_label, reference)
        if len(candidates) > 1:
            msg = (
                f"Package '{parent_label}' references '{name}' without a version, "
                f"but the lockfile contains {len(candidates)} versions of it"
            )
            raise LockfileParseError(msg)
        return candidates[0].id

    wanted = Version.parse(version_text)
    for candidate in candidates:
        if candidate.version == wanted:
            return candidate.id
    raise DanglingDependency(parent_label, reference)


def parse_lockfile(text: str) -> DependencyGraph:
    """Parse Cargo.lock content into a dependency graph.

    Package blocks are indexed in one pass; dependency edges are linked once
    every block is known, so forward references are allowed.

    Args:
        text: Raw lockfile content.

    Returns:
        The read-only dependency graph.

    Raises:
        LockfileParseError: If the content is malformed or contains a
            duplicate name and version pair.
        DanglingDependency: If an edge references an absent package.
        InvalidVersion: If a pinned version is not a valid semantic version.
    """
    lock = _decode(text)
    blocks = _collect_blocks(lock)

    by_name: dict[str, list[LockfileEntry]] = {}
    unlinked: dict[PackageId, tuple[LockfileEntry, LockPackageSchema]] = {}
    for block in blocks:
        entry = LockfileEntry(
            name=block.name,
            version=Version.parse(block.version),
            source=block.source,
            checksum=block.checksum,
        )
        if entry.id in unlinked:
            first = unlinked[entry.id][0]
            msg = (
                f"Package '{entry.id}' is listed more than once "
                f"(sources: {_source_label(first.source)}, {_source_label(entry.source)})"
            )
            raise LockfileParseError(msg)
        unlinked[entry.id] = (entry, block)
        by_name.setdefault(entry.name, []).append(entry)

    entries: dict[PackageId, LockfileEntry] = {}
    linked_by_name: dict[str, list[LockfileEntry]] = {}
    for package_id, (entry, block) in unlinked.items():
        dependencies = tuple(_resolve_reference(block, ref, by_name) for ref in block.dependencies)
        linked = replace(entry, dependencies=dependencies)
        entries[package_id] = linked
        linked_by_name.setdefault(linked.name, []).append(linked)

    logger.debug("Parsed lockfile (format v%s) with %d packages", lock.version or 1, len(entries))
    return DependencyGraph(entries, linked_by_name)


def load_lockfile(path: Path | str) -> DependencyGraph:
    """Read and parse a Cargo.lock file.

    Args:
        path: Path to the lockfile.

    Returns:
        The parsed dependency graph.

    Raises:
        FileNotFoundError: If the file does not exist.
        LockfileParseError: If the content is invalid.
    """
    path = Path(path)
    logger.info("Parsing %s", path)
    return parse_lockfile(path.read_text(encoding="utf-8"))


__all__ = [
    "load_lockfile",
    "parse_dependency_reference",
    "parse_lockfile",
]
