"""Analyzer stories: from Cargo.lock to a report of outdated dependencies.

The analyzer loads the lockfile, chooses roots from the manifest or from
explicit requests, walks the graph, and asks the registry about each
package. Registry answers come from a pre-filled cache or a mock transport.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx
import pytest

from cargo_outdated.analyzer import (
    Analyzer,
    check_outdated,
    default_roots,
    missing_dependencies,
    record_to_dict,
    report_to_dict,
    select_targets,
    write_outdated_json,
)
from cargo_outdated.errors import DanglingDependency, ManifestError, UnknownPackage
from cargo_outdated.lockfile import load_lockfile, parse_lockfile
from cargo_outdated.manifest import ManifestInfo
from cargo_outdated.models import OutdatedRecord, OutdatedReport, PackageFailure, PackageId
from cargo_outdated.registry import CratesIndexRegistry
from cargo_outdated.semver import Version

TESTDATA_DIR = Path(__file__).parent / "testdata"
PROJECT_DIR = TESTDATA_DIR / "project"
WORKSPACE_DIR = TESTDATA_DIR / "workspace"

APP_MANIFEST = '[package]\nname = "app"\nversion = "1.0.0"\n\n[dependencies]\nlib = "1.0"\n'
APP_LOCKFILE = """version = 3

[[package]]
name = "app"
version = "1.0.0"
dependencies = ["lib"]

[[package]]
name = "lib"
version = "1.0.0"
source = "registry+https://github.com/rust-lang/crates.io-index"
"""

CHAIN_LOCKFILE = """version = 3

[[package]]
name = "app"
version = "1.0.0"
dependencies = ["lib"]

[[package]]
name = "lib"
version = "1.0.0"
source = "registry+https://github.com/rust-lang/crates.io-index"
dependencies = ["leaf"]

[[package]]
name = "leaf"
version = "0.1.0"
source = "registry+https://github.com/rust-lang/crates.io-index"
"""


def v(text: str) -> Version:
    return Version.parse(text)


def _registry(**published: list[str]) -> CratesIndexRegistry:
    registry = CratesIndexRegistry(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    for name, versions in published.items():
        registry.cache[name] = frozenset(versions)
    return registry


def _project_registry() -> CratesIndexRegistry:
    return _registry(
        rand=["0.7.3", "0.8.5"],
        serde=["1.0.100", "1.0.188"],
        tempfile=["3.1.0"],
        libc=["0.2.60", "0.2.147"],
        rand_core=["0.5.1", "0.6.4"],
        **{"cfg-if": ["0.1.10", "1.0.0"]},
    )


@pytest.fixture
def app_project(tmp_path: Path) -> Path:
    (tmp_path / "Cargo.toml").write_text(APP_MANIFEST, encoding="utf-8")
    (tmp_path / "Cargo.lock").write_text(APP_LOCKFILE, encoding="utf-8")
    return tmp_path


# ════════════════════════════════════════════════════════════════════════════
# End to end: the canonical app -> lib example
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_app_depending_on_outdated_lib_reports_lib_only(app_project: Path) -> None:
    analyzer = Analyzer(registry=_registry(lib=["1.0.0", "1.1.0", "2.0.0"]))

    report = analyzer.check(manifest_path=app_project / "Cargo.toml")

    assert list(report.records.values()) == [
        OutdatedRecord(name="lib", project_ver=v("1.0.0"), semver_ver=v("1.1.0"), latest_ver=v("2.0.0")),
    ]


@pytest.mark.os_agnostic
def test_up_to_date_project_yields_empty_report(app_project: Path) -> None:
    analyzer = Analyzer(registry=_registry(lib=["0.9.0", "1.0.0"]))

    report = analyzer.check(manifest_path=app_project / "Cargo.toml")

    assert report.is_up_to_date
    assert report.checked == 1


@pytest.mark.os_agnostic
def test_check_outdated_api_returns_report(app_project: Path) -> None:
    report = check_outdated(
        manifest_path=app_project / "Cargo.toml",
        registry=_registry(lib=["1.0.0", "1.0.1"]),
    )

    assert [record.name for record in report.records.values()] == ["lib"]


@pytest.mark.os_agnostic
def test_lockfile_defaults_to_manifest_directory(app_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(app_project)
    analyzer = Analyzer(registry=_registry(lib=["1.0.0", "1.0.1"]))

    report = analyzer.check()

    assert len(report.records) == 1


# ════════════════════════════════════════════════════════════════════════════
# Analyzer: Depth, roots and package requests on the fixture project
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_full_walk_reports_every_outdated_package_in_walk_order() -> None:
    analyzer = Analyzer(registry=_project_registry())

    report = analyzer.check(manifest_path=PROJECT_DIR / "Cargo.toml")

    assert [record.name for record in report.records.values()] == ["rand", "serde", "libc", "rand_core", "cfg-if"]
    assert report.checked == 6


@pytest.mark.os_agnostic
def test_depth_one_checks_only_direct_dependencies() -> None:
    analyzer = Analyzer(registry=_project_registry())

    report = analyzer.check(manifest_path=PROJECT_DIR / "Cargo.toml", depth=1)

    assert [record.name for record in report.records.values()] == ["rand", "serde"]
    assert report.checked == 3


@pytest.mark.os_agnostic
def test_explicit_packages_are_checked_themselves_at_depth_zero() -> None:
    analyzer = Analyzer(registry=_project_registry())

    report = analyzer.check(manifest_path=PROJECT_DIR / "Cargo.toml", packages=["libc"], depth=0)

    assert list(report.records) == [PackageId("libc", v("0.2.60"))]


@pytest.mark.os_agnostic
def test_explicit_packages_do_not_need_a_manifest(tmp_path: Path) -> None:
    analyzer = Analyzer(registry=_project_registry())

    report = analyzer.check(
        manifest_path=tmp_path / "missing" / "Cargo.toml",
        lockfile_path=PROJECT_DIR / "Cargo.lock",
        packages=["serde"],
    )

    assert [record.name for record in report.records.values()] == ["serde"]


@pytest.mark.os_agnostic
def test_root_override_changes_the_starting_package() -> None:
    analyzer = Analyzer(registry=_project_registry())

    report = analyzer.check(lockfile_path=PROJECT_DIR / "Cargo.lock", root="rand", depth=1)

    assert [record.name for record in report.records.values()] == ["libc", "rand_core"]


@pytest.mark.os_agnostic
def test_unknown_package_request_aborts() -> None:
    analyzer = Analyzer(registry=_project_registry())

    with pytest.raises(UnknownPackage, match="tokio"):
        analyzer.check(manifest_path=PROJECT_DIR / "Cargo.toml", packages=["tokio"])


@pytest.mark.os_agnostic
def test_manifest_package_missing_from_lockfile_aborts(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "other"\n', encoding="utf-8")
    (tmp_path / "Cargo.lock").write_text(APP_LOCKFILE, encoding="utf-8")

    with pytest.raises(UnknownPackage, match="other"):
        Analyzer(registry=_registry()).check(manifest_path=tmp_path / "Cargo.toml")


@pytest.mark.os_agnostic
def test_dangling_lockfile_aborts_before_any_query(tmp_path: Path) -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(404)

    (tmp_path / "Cargo.toml").write_text(APP_MANIFEST, encoding="utf-8")
    (tmp_path / "Cargo.lock").write_text(
        '[[package]]\nname = "app"\nversion = "1.0.0"\ndependencies = ["ghost"]\n', encoding="utf-8"
    )
    analyzer = Analyzer(registry=CratesIndexRegistry(transport=httpx.MockTransport(handler)))

    with pytest.raises(DanglingDependency):
        analyzer.check(manifest_path=tmp_path / "Cargo.toml")
    assert calls == []


@pytest.mark.os_agnostic
def test_manifest_without_package_table_is_reported(tmp_path: Path) -> None:
    (tmp_path / "Cargo.lock").write_text(APP_LOCKFILE, encoding="utf-8")
    (tmp_path / "Cargo.toml").write_text("[lib]\n", encoding="utf-8")

    with pytest.raises(ManifestError):
        Analyzer(registry=_registry()).check(manifest_path=tmp_path / "Cargo.toml")


@pytest.mark.os_agnostic
def test_registry_failures_are_reported_alongside_results() -> None:
    registry = _project_registry()
    del registry.cache["serde"]
    analyzer = Analyzer(registry=registry)

    report = analyzer.check(manifest_path=PROJECT_DIR / "Cargo.toml", depth=1)

    assert [record.name for record in report.records.values()] == ["rand"]
    assert [failure.name for failure in report.failures] == ["serde"]


# ════════════════════════════════════════════════════════════════════════════
# Root dependencies only
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_root_deps_only_skips_explicitly_requested_packages() -> None:
    graph = parse_lockfile(CHAIN_LOCKFILE)

    targets = select_targets(graph, packages=["lib"], root_deps_only=True)

    assert [entry.name for entry in targets] == ["leaf"]


@pytest.mark.os_agnostic
def test_depth_one_with_explicit_packages_still_checks_them() -> None:
    graph = parse_lockfile(CHAIN_LOCKFILE)

    targets = select_targets(graph, packages=["lib"], depth=1)

    assert [entry.name for entry in targets] == ["lib", "leaf"]


@pytest.mark.os_agnostic
def test_root_deps_only_from_project_root_checks_direct_dependencies() -> None:
    graph = parse_lockfile(CHAIN_LOCKFILE)

    targets = select_targets(graph, roots=["app"], root_deps_only=True)

    assert [entry.name for entry in targets] == ["lib"]


@pytest.mark.os_agnostic
def test_root_deps_only_conflicts_with_deeper_depth() -> None:
    graph = parse_lockfile(CHAIN_LOCKFILE)

    with pytest.raises(ValueError, match="root_deps_only"):
        select_targets(graph, packages=["lib"], depth=2, root_deps_only=True)


@pytest.mark.os_agnostic
def test_analyzer_root_deps_only_reports_dependencies_of_requested_package(tmp_path: Path) -> None:
    (tmp_path / "Cargo.lock").write_text(CHAIN_LOCKFILE, encoding="utf-8")
    analyzer = Analyzer(registry=_registry(lib=["1.0.0", "1.5.0"], leaf=["0.1.0", "0.1.4"]))

    report = analyzer.check(lockfile_path=tmp_path / "Cargo.lock", packages=["lib"], root_deps_only=True)

    assert [record.name for record in report.records.values()] == ["leaf"]
    assert report.checked == 1


# ════════════════════════════════════════════════════════════════════════════
# Stale lockfile detection
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_missing_dependencies_lists_declared_crates_absent_from_lockfile() -> None:
    graph = parse_lockfile(APP_LOCKFILE)

    missing = missing_dependencies(graph, ManifestInfo(package_name="app", dependencies=["lib", "serde"]))

    assert missing == ["serde"]


@pytest.mark.os_agnostic
def test_stale_lockfile_is_reported_as_warning(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    (tmp_path / "Cargo.toml").write_text(APP_MANIFEST + 'serde = "1"\n', encoding="utf-8")
    (tmp_path / "Cargo.lock").write_text(APP_LOCKFILE, encoding="utf-8")
    analyzer = Analyzer(registry=_registry(lib=["1.0.0"]))

    with caplog.at_level(logging.WARNING, logger="cargo_outdated.analyzer"):
        analyzer.check(manifest_path=tmp_path / "Cargo.toml")

    assert "serde" in caplog.text
    assert "cargo update" in caplog.text


@pytest.mark.os_agnostic
def test_current_lockfile_raises_no_warning(caplog: pytest.LogCaptureFixture) -> None:
    analyzer = Analyzer(registry=_project_registry())

    with caplog.at_level(logging.WARNING, logger="cargo_outdated.analyzer"):
        analyzer.check(manifest_path=PROJECT_DIR / "Cargo.toml", depth=1)

    assert caplog.text == ""


# ════════════════════════════════════════════════════════════════════════════
# Workspaces and non-registry packages
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_virtual_workspace_roots_are_local_members() -> None:
    graph = load_lockfile(WORKSPACE_DIR / "Cargo.lock")

    roots = default_roots(graph, ManifestInfo(package_name=None))

    assert roots == ["ws-cli", "ws-core"]


@pytest.mark.os_agnostic
def test_workspace_members_and_git_packages_are_not_checked() -> None:
    graph = load_lockfile(WORKSPACE_DIR / "Cargo.lock")

    targets = select_targets(graph, roots=["ws-cli", "ws-core"])

    assert [entry.name for entry in targets] == ["clap", "log"]


@pytest.mark.os_agnostic
def test_local_dependencies_of_a_root_are_not_checked() -> None:
    graph = load_lockfile(WORKSPACE_DIR / "Cargo.lock")

    targets = select_targets(graph, roots=["ws-cli"])

    assert [entry.name for entry in targets] == ["clap", "log"]


@pytest.mark.os_agnostic
def test_explicitly_requested_local_package_is_checked() -> None:
    graph = load_lockfile(WORKSPACE_DIR / "Cargo.lock")

    targets = select_targets(graph, packages=["ws-core"], depth=0)

    assert [entry.name for entry in targets] == ["ws-core"]


@pytest.mark.os_agnostic
def test_workspace_check_reports_registry_dependencies() -> None:
    analyzer = Analyzer(registry=_registry(clap=["2.33.0", "2.34.0", "4.4.0"], log=["0.4.8"]))

    report = analyzer.check(manifest_path=WORKSPACE_DIR / "Cargo.toml")

    record = report.records[PackageId("clap", v("2.33.0"))]
    assert record.semver_ver == v("2.34.0")
    assert record.latest_ver == v("4.4.0")


@pytest.mark.os_agnostic
def test_default_roots_prefers_manifest_package() -> None:
    graph = load_lockfile(PROJECT_DIR / "Cargo.lock")

    assert default_roots(graph, ManifestInfo(package_name="myapp")) == ["myapp"]


# ════════════════════════════════════════════════════════════════════════════
# Analyzer: Configuration validation
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_analyzer_validates_positive_timeout() -> None:
    with pytest.raises(ValueError, match="timeout must be positive"):
        Analyzer(timeout=0)


@pytest.mark.os_agnostic
def test_analyzer_validates_positive_concurrency() -> None:
    with pytest.raises(ValueError, match="concurrency must be positive"):
        Analyzer(concurrency=0)


@pytest.mark.os_agnostic
def test_analyzer_builds_index_client_from_settings() -> None:
    analyzer = Analyzer(index_url="https://mirror.example", timeout=5.0)

    assert isinstance(analyzer.registry, CratesIndexRegistry)
    assert analyzer.registry.index_url == "https://mirror.example"
    assert analyzer.registry.timeout == 5.0


# ════════════════════════════════════════════════════════════════════════════
# JSON output
# ════════════════════════════════════════════════════════════════════════════


def _sample_report() -> OutdatedReport:
    report = OutdatedReport(checked=3)
    report.records[PackageId("lib", v("1.0.0"))] = OutdatedRecord("lib", v("1.0.0"), None, v("2.0.0"))
    report.failures.append(PackageFailure("gone", v("0.1.0"), "crate not found in registry"))
    return report


@pytest.mark.os_agnostic
def test_record_to_dict_renders_versions_as_strings() -> None:
    data = record_to_dict(OutdatedRecord("lib", v("1.0.0"), v("1.2.0"), v("2.0.0")))

    assert data == {"name": "lib", "project_ver": "1.0.0", "semver_ver": "1.2.0", "latest_ver": "2.0.0"}


@pytest.mark.os_agnostic
def test_report_to_dict_includes_failures() -> None:
    data = report_to_dict(_sample_report())

    assert data["outdated"][0]["semver_ver"] is None
    assert data["failures"] == [{"name": "gone", "version": "0.1.0", "reason": "crate not found in registry"}]
    assert data["checked"] == 3


@pytest.mark.os_agnostic
def test_write_outdated_json_creates_parent_directories(tmp_path: Path) -> None:
    output_path = tmp_path / "nested" / "outdated.json"

    write_outdated_json(_sample_report(), output_path)

    assert json.loads(output_path.read_text(encoding="utf-8"))["outdated"][0]["name"] == "lib"


@pytest.mark.os_agnostic
def test_write_outdated_json_rejects_directory_path(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="must be a file"):
        write_outdated_json(_sample_report(), tmp_path)
