"""Pydantic schemas for external data boundaries.

Purpose
-------
Define Pydantic models for data that crosses system boundaries:
- Input: Cargo.lock and Cargo.toml structures, sparse index records
- Output: JSON serialization of outdated reports

These models handle validation, coercion, and serialization at the edges
while internal business logic uses lightweight dataclasses.

Data Flow Pattern
-----------------
External Input → Pydantic (validate) → Dataclass (domain) → Pydantic (serialize) → External Output
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _empty_str_list() -> list[str]:
    """Return empty string list for default factory."""
    return []


def _empty_dict() -> dict[str, Any]:
    """Return empty dict for default factory."""
    return {}


class LockPackageSchema(BaseModel):
    """One ``[[package]]`` (or legacy ``[root]``) block of a Cargo.lock."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1, description="The crate name")
    version: str = Field(min_length=1, description="The pinned version")
    source: str | None = Field(default=None, description="Registry or git source")
    checksum: str | None = None
    dependencies: list[str] = Field(default_factory=_empty_str_list)


class CargoLockSchema(BaseModel):
    """Top-level structure of a Cargo.lock file.

    ``version`` is absent in lockfiles written before format v3; ``root`` is
    only present in the oldest format.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    version: int | None = None
    root: LockPackageSchema | None = None
    package: list[LockPackageSchema] = Field(default_factory=list)


class ManifestPackageSchema(BaseModel):
    """The ``[package]`` table of a Cargo.toml."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    # a string, or {workspace = true} when inherited
    version: str | dict[str, Any] | None = None


class ManifestTargetSchema(BaseModel):
    """A ``[target.'cfg(...)']`` table holding platform specific dependencies."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    dependencies: dict[str, Any] = Field(default_factory=_empty_dict)
    dev_dependencies: dict[str, Any] = Field(default_factory=_empty_dict, alias="dev-dependencies")
    build_dependencies: dict[str, Any] = Field(default_factory=_empty_dict, alias="build-dependencies")


class CargoManifestSchema(BaseModel):
    """The parts of a Cargo.toml needed to pick traversal roots."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    package: ManifestPackageSchema | None = None
    workspace: dict[str, Any] | None = None
    dependencies: dict[str, Any] = Field(default_factory=_empty_dict)
    dev_dependencies: dict[str, Any] = Field(default_factory=_empty_dict, alias="dev-dependencies")
    build_dependencies: dict[str, Any] = Field(default_factory=_empty_dict, alias="build-dependencies")
    target: dict[str, ManifestTargetSchema] = Field(default_factory=dict)


class IndexRecordSchema(BaseModel):
    """One line of a crates.io sparse index file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    vers: str = Field(min_length=1)
    yanked: bool = False


class OutdatedRecordSchema(BaseModel):
    """Pydantic schema for serializing an outdated package to JSON."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The crate name")
    project_ver: str = Field(description="Version pinned in Cargo.lock")
    semver_ver: str | None = Field(description="Highest semver compatible version")
    latest_ver: str | None = Field(description="Highest published version")


class PackageFailureSchema(BaseModel):
    """Pydantic schema for a package that could not be checked."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    reason: str


def _empty_record_list() -> list[OutdatedRecordSchema]:
    """Return empty list for default factory."""
    return []


def _empty_failure_list() -> list[PackageFailureSchema]:
    """Return empty list for default factory."""
    return []


class OutdatedReportSchema(BaseModel):
    """Pydantic schema for complete report serialization."""

    model_config = ConfigDict(frozen=True)

    outdated: list[OutdatedRecordSchema] = Field(default_factory=_empty_record_list)
    failures: list[PackageFailureSchema] = Field(default_factory=_empty_failure_list)
    checked: int = 0


__all__ = [
    "CargoLockSchema",
    "CargoManifestSchema",
    "IndexRecordSchema",
    "LockPackageSchema",
    "ManifestPackageSchema",
    "ManifestTargetSchema",
    "OutdatedRecordSchema",
    "OutdatedReportSchema",
    "PackageFailureSchema",
]
