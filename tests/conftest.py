"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from brut.graph import DependencyGraph, parse_lockfile
from brut.models import Package
from tests._fixtures.cargo import LOCKFILE, member, write_crate


@pytest.fixture
def cargo_workspace(tmp_path: Path) -> Path:
    """A workspace with core ← api ← cli under crates/, plus an unowned docs/."""
    root = tmp_path / "ws"
    root.mkdir()
    (root / "Cargo.toml").write_text(
        '[workspace]\nmembers = ["crates/*"]\nresolver = "2"\n'
    )
    (root / "Cargo.lock").write_text(LOCKFILE)
    for name in ("core", "api", "cli"):
        write_crate(root, f"crates/{name}", name)
    (root / "docs").mkdir()
    (root / "docs" / "readme.md").write_text("# docs\n")
    return root


@pytest.fixture
def ws_members() -> list[Package]:
    """core, api and cli rooted directly under /ws."""
    return [
        member("core", "/ws/core"),
        member("api", "/ws/api"),
        member("cli", "/ws/cli"),
    ]


@pytest.fixture
def ws_graph(ws_members: list[Package]) -> DependencyGraph:
    return DependencyGraph.build(parse_lockfile(tomlkit.parse(LOCKFILE)), ws_members)
