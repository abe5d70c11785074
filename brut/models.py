"""Data models for brut.

These Pydantic models represent the packages, lock entries, configuration
and dispatch results passed between the selection stages. Everything that
crosses a stage boundary is frozen so it can be hashed and shared.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PackageId(BaseModel):
    """Identity of one node in the lock graph.

    Cargo.lock holds at most one entry per (name, version) pair, so the pair
    is stable within one invocation.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


class Package(BaseModel):
    """A workspace member.

    Attributes:
        id: Lock graph identity of the member.
        name: Cargo package name, passed to ``cargo -p``.
        root: Absolute, normalized directory holding the member's Cargo.toml.
    """

    model_config = ConfigDict(frozen=True)

    id: PackageId
    name: str
    root: Path


class LockedPackage(BaseModel):
    """One ``[[package]]`` entry of Cargo.lock.

    Attributes:
        id: Name and version of the entry.
        source: Registry or git source URL. None for workspace members and
                path dependencies.
        dependencies: Raw lock dependency strings, e.g. ``"serde"``,
                      ``"syn 2.0.48"`` or ``"rand 0.8.5 (registry+...)"``.
    """

    model_config = ConfigDict(frozen=True)

    id: PackageId
    source: str | None = None
    dependencies: tuple[str, ...] = ()

    @property
    def is_local(self) -> bool:
        return self.source is None


class BrutConfig(BaseModel):
    """Settings read from brut.toml or ``[workspace.metadata.brut.config]``.

    Attributes:
        global_dependencies: Glob patterns; a changed file matching any of
                             them marks every workspace member affected.
    """

    global_dependencies: list[str] = Field(default_factory=list)


class Command(str, Enum):
    """Cargo subcommands brut can scope to the affected packages."""

    BUILD = "build"
    CHECK = "check"
    CLIPPY = "clippy"
    RUN = "run"
    TEST = "test"


class DispatchResult(BaseModel):
    """Outcome of handing the affected set to cargo.

    Attributes:
        status: ``skipped`` when nothing was affected, ``dry-run`` when the
                invocation was only rendered, ``ran`` when cargo was run.
        argv: The cargo invocation (empty when skipped).
        returncode: Exit status of cargo, only set when it ran.
    """

    status: Literal["skipped", "dry-run", "ran"]
    argv: list[str] = Field(default_factory=list)
    returncode: int | None = None
