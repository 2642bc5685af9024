"""Walker stories: each package is visited once, at its shortest distance.

The walker traverses the dependency graph breadth-first from all roots,
bounded by a depth, and never expands a package identity twice.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cargo_outdated.errors import UnknownPackage
from cargo_outdated.lockfile import load_lockfile, parse_lockfile
from cargo_outdated.models import DependencyGraph
from cargo_outdated.walker import select_roots, walk

TESTDATA_DIR = Path(__file__).parent / "testdata"


def _graph(*packages: tuple[str, str, list[str]]) -> DependencyGraph:
    blocks = []
    for name, version, deps in packages:
        dep_list = ", ".join(f'"{dep}"' for dep in deps)
        blocks.append(f'[[package]]\nname = "{name}"\nversion = "{version}"\ndependencies = [{dep_list}]\n')
    return parse_lockfile("\n".join(blocks))


def _names(graph: DependencyGraph, roots: list[str], depth: int | None, **kwargs: bool) -> list[str]:
    steps = walk(graph, select_roots(graph, roots), depth, **kwargs)
    return [step.entry.name for step in steps]


@pytest.fixture
def project_graph() -> DependencyGraph:
    return load_lockfile(TESTDATA_DIR / "project" / "Cargo.lock")


@pytest.fixture
def diamond() -> DependencyGraph:
    return _graph(
        ("app", "1.0.0", ["a", "b"]),
        ("a", "1.0.0", ["c"]),
        ("b", "1.0.0", ["c"]),
        ("c", "1.0.0", []),
    )


# ════════════════════════════════════════════════════════════════════════════
# walk: Depth limits
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_depth_zero_returns_exactly_the_roots(project_graph: DependencyGraph) -> None:
    assert _names(project_graph, ["tempfile", "serde"], 0) == ["tempfile", "serde"]


@pytest.mark.os_agnostic
def test_depth_one_without_roots_returns_direct_dependencies(project_graph: DependencyGraph) -> None:
    assert _names(project_graph, ["myapp"], 1, include_roots=False) == ["rand", "serde", "tempfile"]


@pytest.mark.os_agnostic
def test_depth_one_with_roots_lists_root_first(project_graph: DependencyGraph) -> None:
    assert _names(project_graph, ["myapp"], 1) == ["myapp", "rand", "serde", "tempfile"]


@pytest.mark.os_agnostic
def test_unbounded_walk_visits_the_full_closure_layer_by_layer(project_graph: DependencyGraph) -> None:
    names = _names(project_graph, ["myapp"], None, include_roots=False)

    assert names == ["rand", "serde", "tempfile", "libc", "rand_core", "cfg-if"]


@pytest.mark.os_agnostic
def test_unreachable_packages_are_not_visited(project_graph: DependencyGraph) -> None:
    names = _names(project_graph, ["myapp"], None)

    assert "wasi" not in names


@pytest.mark.os_agnostic
def test_step_depth_is_the_minimum_distance() -> None:
    # app -> x -> y -> z and app -> z: z is one edge away
    graph = _graph(
        ("app", "1.0.0", ["x", "z"]),
        ("x", "1.0.0", ["y"]),
        ("y", "1.0.0", ["z"]),
        ("z", "1.0.0", []),
    )

    steps = walk(graph, select_roots(graph, ["app"]), 1)

    assert {step.entry.name: step.depth for step in steps} == {"app": 0, "x": 1, "z": 1}


@pytest.mark.os_agnostic
def test_negative_depth_is_rejected(diamond: DependencyGraph) -> None:
    with pytest.raises(ValueError, match="must not be negative"):
        walk(diamond, select_roots(diamond, ["app"]), -1)


# ════════════════════════════════════════════════════════════════════════════
# walk: Each identity exactly once
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_diamond_dependency_is_visited_once(diamond: DependencyGraph) -> None:
    assert _names(diamond, ["app"], None) == ["app", "a", "b", "c"]


@pytest.mark.os_agnostic
def test_cycles_terminate() -> None:
    graph = _graph(
        ("a", "1.0.0", ["b"]),
        ("b", "1.0.0", ["a"]),
    )

    assert _names(graph, ["a"], None) == ["a", "b"]


@pytest.mark.os_agnostic
def test_roots_reachable_from_each_other_appear_once_at_depth_zero(diamond: DependencyGraph) -> None:
    steps = walk(diamond, select_roots(diamond, ["a", "c"]), None)

    assert [(step.entry.name, step.depth) for step in steps] == [("a", 0), ("c", 0)]


@pytest.mark.os_agnostic
def test_two_versions_of_one_name_are_distinct_identities(project_graph: DependencyGraph) -> None:
    steps = walk(project_graph, select_roots(project_graph, ["cfg-if"]), 0)

    assert [str(step.entry.version) for step in steps] == ["0.1.10", "1.0.0"]


# ════════════════════════════════════════════════════════════════════════════
# select_roots: Naming the starting points
# ════════════════════════════════════════════════════════════════════════════


@pytest.mark.os_agnostic
def test_select_roots_keeps_request_order(project_graph: DependencyGraph) -> None:
    roots = select_roots(project_graph, ["serde", "libc"])

    assert [root.name for root in roots] == ["serde", "libc"]


@pytest.mark.os_agnostic
def test_select_roots_rejects_unknown_names(project_graph: DependencyGraph) -> None:
    with pytest.raises(UnknownPackage, match="tokio"):
        select_roots(project_graph, ["serde", "tokio"])
