"""Hands the affected set to cargo."""

from __future__ import annotations

import shutil
from collections.abc import Iterable, Sequence
from pathlib import Path

from .errors import ExternalCommandFailure
from .models import Command, DispatchResult
from .shell import run


def build_invocation(
    command: Command, affected: Iterable[str], extra_args: Sequence[str] = ()
) -> list[str]:
    """Render the cargo command line for the affected packages.

    Example:
        build_invocation(Command.TEST, {"b", "a"}, ["--nocapture"])
        → ["cargo", "test", "-p", "a", "-p", "b", "--", "--nocapture"]
    """
    argv = ["cargo", command.value]
    for name in sorted(affected):
        argv.extend(["-p", name])
    if extra_args:
        argv.append("--")
        argv.extend(extra_args)
    return argv


def dispatch(
    workspace_root: Path,
    command: Command,
    affected: Iterable[str],
    dry_run: bool,
    extra_args: Sequence[str] = (),
) -> DispatchResult:
    """Run one cargo invocation scoped to the affected packages.

    Nothing is run when the affected set is empty or when dry_run is set;
    the would-be command line is returned instead.

    Raises:
        ExternalCommandFailure: If cargo is not installed or exits non-zero.
    """
    affected = set(affected)
    if not affected:
        return DispatchResult(status="skipped")

    argv = build_invocation(command, affected, extra_args)
    if dry_run:
        return DispatchResult(status="dry-run", argv=argv)

    cargo = shutil.which("cargo")
    if cargo is None:
        raise ExternalCommandFailure(argv, None, "cargo executable not found on PATH")

    result = run(cargo, *argv[1:], cwd=workspace_root, check=False)
    if result.returncode != 0:
        raise ExternalCommandFailure(argv, result.returncode)
    return DispatchResult(status="ran", argv=argv, returncode=result.returncode)
