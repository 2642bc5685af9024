"""Public package surface for checking Cargo dependencies for updates.

This package reads a project's Cargo.lock, walks the dependency graph it
encodes, and reports which packages have newer versions on the registry,
separating semver-compatible updates from breaking ones.

Main API
--------
* :func:`check_outdated` - Check a Cargo project and return an OutdatedReport
* :class:`Analyzer` - Stateful analyzer with a registry response cache
* :func:`parse_lockfile` - Build the dependency graph from Cargo.lock text
* :func:`walk` - Depth-limited traversal of the graph
* :class:`Version` - Semantic version model
"""

from __future__ import annotations

from .__init__conf__ import print_info
from .analyzer import Analyzer, check_outdated, select_targets, write_outdated_json
from .config import get_config
from .errors import (
    CargoOutdatedError,
    DanglingDependency,
    InvalidVersion,
    LockfileParseError,
    ManifestError,
    RegistryUnavailable,
    UnknownPackage,
)
from .lockfile import load_lockfile, parse_lockfile
from .models import (
    DependencyGraph,
    LockfileEntry,
    OutdatedRecord,
    OutdatedReport,
    PackageFailure,
    PackageId,
)
from .registry import CratesIndexRegistry, Registry
from .resolver import OutdatedResolver, compute_updates
from .semver import Version, compare, is_compatible
from .walker import WalkStep, select_roots, walk

__all__ = [
    "Analyzer",
    "CargoOutdatedError",
    "CratesIndexRegistry",
    "DanglingDependency",
    "DependencyGraph",
    "InvalidVersion",
    "LockfileEntry",
    "LockfileParseError",
    "ManifestError",
    "OutdatedRecord",
    "OutdatedReport",
    "OutdatedResolver",
    "PackageFailure",
    "PackageId",
    "Registry",
    "RegistryUnavailable",
    "UnknownPackage",
    "Version",
    "WalkStep",
    "check_outdated",
    "compare",
    "compute_updates",
    "get_config",
    "is_compatible",
    "load_lockfile",
    "parse_lockfile",
    "print_info",
    "select_roots",
    "select_targets",
    "walk",
    "write_outdated_json",
]
