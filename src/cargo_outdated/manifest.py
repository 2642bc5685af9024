"""Reader for the parts of Cargo.toml that select traversal roots.

Purpose
-------
Extract the project package name and its declared direct dependencies from
every dependency section of a Cargo.toml (normal, dev, build, and
platform-specific target tables).

Contents
--------
* :func:`load_manifest` - Load a Cargo.toml and return :class:`ManifestInfo`
* :func:`extract_manifest_info` - Same, from already parsed TOML data

System Role
-----------
Supplies the default roots when the user does not request specific packages,
and the declared dependencies used to detect a stale Cargo.lock.
Version requirements are ignored; the lockfile already pins exact versions.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import ManifestError
from .schemas import CargoManifestSchema

logger = logging.getLogger(__name__)


def _empty_str_list() -> list[str]:
    """Return an empty string list for dataclass defaults."""
    return []


@dataclass(frozen=True, slots=True)
class ManifestInfo:
    """Root-selection data extracted from a manifest.

    Attributes:
        package_name: The ``[package].name``, or None for a virtual workspace.
        dependencies: Crate names of all direct dependencies, de-duplicated in
            declaration order. Renamed dependencies report the real crate name.
    """

    package_name: str | None
    dependencies: list[str] = field(default_factory=_empty_str_list)


def _crate_name(key: str, spec: Any) -> str:
    """Return the real crate name of a dependency declaration.

    ``foo = { package = "bar", version = "1" }`` declares a dependency on
    crate ``bar`` under the local name ``foo``.
    """
    if isinstance(spec, dict):
        renamed = spec.get("package")
        if isinstance(renamed, str) and renamed:
            return renamed
    return key


def _names_from_table(table: dict[str, Any]) -> list[str]:
    return [_crate_name(key, spec) for key, spec in table.items()]


def _collect_dependency_names(manifest: CargoManifestSchema) -> list[str]:
    names: list[str] = []
    names.extend(_names_from_table(manifest.dependencies))
    names.extend(_names_from_table(manifest.dev_dependencies))
    names.extend(_names_from_table(manifest.build_dependencies))
    for target in manifest.target.values():
        names.extend(_names_from_table(target.dependencies))
        names.extend(_names_from_table(target.dev_dependencies))
        names.extend(_names_from_table(target.build_dependencies))
    return list(dict.fromkeys(names))


def extract_manifest_info(data: dict[str, Any]) -> ManifestInfo:
    """Extract root-selection data from parsed Cargo.toml content.

    Args:
        data: Parsed TOML content.

    Returns:
        The package name and direct dependency names.

    Raises:
        ManifestError: If the manifest has neither ``[package]`` nor
            ``[workspace]``, or a section has the wrong shape.
    """
    try:
        manifest = CargoManifestSchema.model_validate(data)
    except ValidationError as exc:
        msg = f"Manifest has an invalid structure: {exc.errors()[0]['msg']}"
        raise ManifestError(msg) from exc

    if manifest.package is None and manifest.workspace is None:
        msg = "Manifest declares neither [package] nor [workspace]"
        raise ManifestError(msg)

    dependencies = _collect_dependency_names(manifest)
    logger.debug("Extracted %d direct dependencies from manifest", len(dependencies))
    return ManifestInfo(
        package_name=manifest.package.name if manifest.package else None,
        dependencies=dependencies,
    )


def load_manifest(path: Path | str) -> ManifestInfo:
    """Load and inspect a Cargo.toml file.

    Args:
        path: Path to the Cargo.toml file.

    Returns:
        The extracted manifest information.

    Raises:
        FileNotFoundError: If the file does not exist.
        ManifestError: If the file is not valid TOML or has no package.
    """
    path = Path(path)
    with path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Manifest {path} is not valid TOML: {exc}"
            raise ManifestError(msg) from exc
    return extract_manifest_info(data)


__all__ = [
    "ManifestInfo",
    "extract_manifest_info",
    "load_manifest",
]
