"""Change detection: which files differ between two revisions.

Wraps ``git diff`` between a base revision and either a head revision or the
working tree. Paths are reported relative to the repository root.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import ExternalCommandFailure, RepositoryNotFound, RevisionNotFound
from .shell import git

DEFAULT_BASE = "main"


def find_repo_root(cwd: Path) -> Path:
    """Return the top-level directory of the git repository containing cwd.

    Raises:
        RepositoryNotFound: If cwd is not inside a git work tree.
    """
    try:
        top = git("rev-parse", "--show-toplevel", cwd=cwd)
    except subprocess.CalledProcessError as exc:
        raise RepositoryNotFound(cwd) from exc
    except FileNotFoundError as exc:
        raise ExternalCommandFailure(
            ["git", "rev-parse", "--show-toplevel"], None, "git executable not found"
        ) from exc
    if not top:
        # Inside .git itself there is no work tree
        raise RepositoryNotFound(cwd)
    return Path(top)


def resolve_revision(repo_root: Path, revision: str) -> str:
    """Resolve a branch, tag or other revision expression to a commit SHA.

    Raises:
        RevisionNotFound: If git cannot resolve the revision to a commit.
    """
    argv = ("rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}")
    try:
        sha = git(*argv, cwd=repo_root, check=False)
    except FileNotFoundError as exc:
        raise ExternalCommandFailure(
            ["git", *argv], None, "git executable not found"
        ) from exc
    if not sha:
        raise RevisionNotFound(revision)
    return sha


def parse_name_status(output: str) -> set[str]:
    """Collect paths from ``git diff --name-status -z`` output.

    Added, modified and type-changed entries contribute their path, deleted
    entries their old path, and renamed or copied entries both the old and
    the new path, since either location may belong to a different package.
    """
    tokens = output.split("\0")
    files: set[str] = set()
    i = 0
    while i < len(tokens):
        status = tokens[i]
        if not status:
            i += 1
            continue
        if status[0] in ("R", "C"):
            files.update(tokens[i + 1 : i + 3])
            i += 3
        else:
            files.add(tokens[i + 1])
            i += 2
    files.discard("")
    return files


def get_changed_files(
    repo_root: Path, base: str = DEFAULT_BASE, head: str | None = None
) -> set[str]:
    """Return the repo-relative paths that differ between base and head.

    Args:
        repo_root: Top-level directory of the repository.
        base: Revision to compare against.
        head: Revision to compare to. When None, the working tree (including
              staged changes) is compared instead. Untracked files are not
              reported.

    Raises:
        RevisionNotFound: If base or head cannot be resolved.
    """
    revisions = [resolve_revision(repo_root, base)]
    if head is not None:
        revisions.append(resolve_revision(repo_root, head))

    output = git(
        "diff", "--name-status", "-z", "-M", "--no-color", *revisions, "--",
        cwd=repo_root,
    )
    return parse_name_status(output)
