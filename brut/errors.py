"""Error kinds raised by brut.

Every error is fatal to the invocation. Library code raises these, and the
CLI turns them into a non-zero exit with the message printed to stderr.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class BrutError(Exception):
    """Base class for all brut failures."""


class RepositoryNotFound(BrutError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No git repository found at or above {path}")


class RevisionNotFound(BrutError):
    def __init__(self, revision: str) -> None:
        self.revision = revision
        super().__init__(f"Could not resolve git revision '{revision}'")


class LockFileMissing(BrutError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No Cargo.lock found at or above {path}")


class PackageNotInGraph(BrutError):
    """A package id (or lock dependency entry) has no node in the lock graph.

    Usually means Cargo.lock is stale relative to the manifests.
    """

    def __init__(self, package: str) -> None:
        self.package = package
        super().__init__(
            f"Package {package} is not in Cargo.lock (is the lock file stale?)"
        )


class ConfigurationConflict(BrutError):
    def __init__(self, sources: Sequence[str]) -> None:
        self.sources = list(sources)
        super().__init__(
            "Configuration found in more than one place, only one is allowed: "
            + ", ".join(self.sources)
        )


class ExternalCommandFailure(BrutError):
    def __init__(
        self, argv: Sequence[str], returncode: int | None, reason: str = ""
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        detail = reason or f"exited with status {returncode}"
        super().__init__(f"Command `{' '.join(self.argv)}` failed: {detail}")
