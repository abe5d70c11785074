"""Tests for brut.graph."""

from __future__ import annotations

import pytest
import tomlkit

from brut.errors import PackageNotInGraph
from brut.graph import DependencyGraph, parse_dependency, parse_lockfile
from brut.models import LockedPackage, Package, PackageId

from tests._fixtures.cargo import REGISTRY, member


def pid(name: str, version: str = "0.1.0") -> PackageId:
    return PackageId(name=name, version=version)


def local(name: str, *deps: str, version: str = "0.1.0") -> LockedPackage:
    return LockedPackage(id=pid(name, version), dependencies=deps)


def registry(name: str, *deps: str, version: str = "1.0.0") -> LockedPackage:
    return LockedPackage(id=pid(name, version), source=REGISTRY, dependencies=deps)


class TestParseDependency:
    def test_name_only(self) -> None:
        assert parse_dependency("serde") == ("serde", None, None)

    def test_name_and_version(self) -> None:
        assert parse_dependency("syn 1.0.109") == ("syn", "1.0.109", None)

    def test_name_version_and_source(self) -> None:
        assert parse_dependency(f"rand 0.8.5 ({REGISTRY})") == (
            "rand",
            "0.8.5",
            REGISTRY,
        )


class TestParseLockfile:
    def test_reads_entries(self) -> None:
        doc = tomlkit.parse(
            f"""\
version = 3

[[package]]
name = "app"
version = "0.2.0"
dependencies = ["log"]

[[package]]
name = "log"
version = "0.4.21"
source = "{REGISTRY}"
"""
        )
        app, log = parse_lockfile(doc)
        assert app.id == pid("app", "0.2.0")
        assert app.is_local
        assert app.dependencies == ("log",)
        assert log.source == REGISTRY
        assert not log.is_local
        assert log.dependencies == ()

    def test_empty_lockfile(self) -> None:
        assert parse_lockfile(tomlkit.parse("version = 4\n")) == []


class TestBuild:
    def test_edges_follow_lock(self) -> None:
        graph = DependencyGraph.build(
            [local("a", "b"), local("b", "c"), local("c")], []
        )
        assert graph.dependencies(pid("a")) == {pid("b")}
        assert graph.dependents(pid("c")) == {pid("b")}
        assert len(graph) == 3
        assert pid("a") in graph

    def test_version_disambiguates(self) -> None:
        graph = DependencyGraph.build(
            [
                local("app", "syn 1.0.109", "syn 2.0.48"),
                registry("syn", version="1.0.109"),
                registry("syn", version="2.0.48"),
            ],
            [],
        )
        assert graph.dependencies(pid("app")) == {
            pid("syn", "1.0.109"),
            pid("syn", "2.0.48"),
        }

    def test_source_disambiguates(self) -> None:
        graph = DependencyGraph.build(
            [
                local("app", f"log 0.4.21 ({REGISTRY})"),
                registry("log", version="0.4.21"),
            ],
            [],
        )
        assert graph.dependencies(pid("app")) == {pid("log", "0.4.21")}

    def test_same_version_from_two_sources_shares_a_node(self) -> None:
        fork = "git+https://github.com/x/log?branch=main#abc"
        graph = DependencyGraph.build(
            [
                local("app", f"log 0.4.21 ({fork})"),
                local("tool", f"log 0.4.21 ({REGISTRY})"),
                registry("log", "cfg-if", version="0.4.21"),
                LockedPackage(
                    id=pid("log", "0.4.21"), source=fork, dependencies=("value-bag",)
                ),
                registry("cfg-if"),
                registry("value-bag"),
            ],
            [],
        )
        log = pid("log", "0.4.21")
        assert len(graph) == 5
        assert graph.dependencies(pid("app")) == {log}
        assert graph.dependents(log) == {pid("app"), pid("tool")}
        assert graph.dependencies(log) == {pid("cfg-if"), pid("value-bag")}
        assert graph.reverse_dependents(pid("value-bag")) == {"app", "tool"}

    def test_local_duplicate_makes_node_local(self) -> None:
        graph = DependencyGraph.build(
            [registry("shim", version="0.1.0"), local("shim")], []
        )
        assert graph.is_local(pid("shim"))

    def test_dangling_dependency_raises(self) -> None:
        with pytest.raises(PackageNotInGraph, match="missing"):
            DependencyGraph.build([local("a", "missing")], [])

    def test_ambiguous_name_only_dependency_raises(self) -> None:
        with pytest.raises(PackageNotInGraph):
            DependencyGraph.build(
                [
                    local("a", "syn"),
                    registry("syn", version="1.0.0"),
                    registry("syn", version="2.0.0"),
                ],
                [],
            )


class TestReverseDependents:
    def test_linear_chain(self, ws_graph: DependencyGraph) -> None:
        assert ws_graph.reverse_dependents(pid("core")) == {"api", "cli"}
        assert ws_graph.reverse_dependents(pid("api")) == {"cli"}
        assert ws_graph.reverse_dependents(pid("cli")) == set()

    def test_diamond(self) -> None:
        graph = DependencyGraph.build(
            [
                local("top", "left", "right"),
                local("left", "bottom"),
                local("right", "bottom"),
                local("bottom"),
            ],
            [],
        )
        assert graph.reverse_dependents(pid("bottom")) == {"left", "right", "top"}

    def test_registry_packages_not_reported(self, ws_graph: DependencyGraph) -> None:
        # serde's dependents are all local; serde itself is never reported
        assert ws_graph.reverse_dependents(pid("serde", "1.0.200")) == {
            "core",
            "api",
            "cli",
        }
        assert not ws_graph.is_local(pid("serde", "1.0.200"))

    def test_traverses_through_registry_intermediates(self) -> None:
        graph = DependencyGraph.build(
            [local("core"), registry("ext", "core"), local("app", "ext 1.0.0")],
            [],
        )
        assert graph.reverse_dependents(pid("core")) == {"app"}

    def test_path_dependency_reported(self) -> None:
        """A local package that is not a member is still a build target."""
        graph = DependencyGraph.build(
            [local("core"), local("vendored-helper", "core")],
            [member("core", "/ws/core")],
        )
        assert graph.reverse_dependents(pid("core")) == {"vendored-helper"}

    def test_member_with_source_is_reported(self) -> None:
        graph = DependencyGraph.build(
            [local("core"), registry("odd", "core", version="0.1.0")],
            [member("odd", "/ws/odd")],
        )
        assert graph.reverse_dependents(pid("core")) == {"odd"}

    def test_terminates_on_external_cycle(self) -> None:
        graph = DependencyGraph.build(
            [
                local("core"),
                registry("ext-a", "core", "ext-b"),
                registry("ext-b", "ext-a"),
                local("app", "ext-b"),
            ],
            [],
        )
        assert graph.reverse_dependents(pid("core")) == {"app"}

    def test_start_node_not_reported_on_cycle(self) -> None:
        graph = DependencyGraph.build([local("a", "b"), local("b", "a")], [])
        assert graph.reverse_dependents(pid("a")) == {"b"}

    def test_unknown_package_raises(self, ws_graph: DependencyGraph) -> None:
        with pytest.raises(PackageNotInGraph, match="ghost@0.1.0"):
            ws_graph.reverse_dependents(pid("ghost"))

    def test_closure_has_backward_paths(self, ws_graph: DependencyGraph) -> None:
        """Every reported package reaches the seed through depends-on edges."""
        seed = pid("core")
        for name in ws_graph.reverse_dependents(seed):
            frontier = {pid(name)}
            seen: set[PackageId] = set()
            while frontier and seed not in frontier:
                seen |= frontier
                frontier = {
                    dep for node in frontier for dep in ws_graph.dependencies(node)
                } - seen
            assert seed in frontier


def test_members_only_graph_is_local(ws_members: list[Package]) -> None:
    graph = DependencyGraph.build([local("core"), local("api", "core")], ws_members)
    assert graph.is_local(pid("api"))
