"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running git and cargo,
plus output formatting helpers. Progress output goes to stderr so that the
results brut prints on stdout stay machine-readable.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "diff", "--name-status").
        cwd: Directory to run git in. Defaults to the process directory.
        check: If True (default), raise CalledProcessError on non-zero exit.

    Returns:
        Stdout with trailing newlines removed. NUL separators are kept.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.rstrip("\n")


def run(
    *args: str, cwd: Path | None = None, check: bool = True
) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary command.

    Unlike git(), this doesn't capture output - it streams directly to
    the terminal so users can see build progress.
    """
    return subprocess.run(args, cwd=cwd, check=check)


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}", file=sys.stderr)


def info(msg: str) -> None:
    print(f"  {msg}", file=sys.stderr)


def warn(msg: str) -> None:
    print(f"WARNING: {msg}", file=sys.stderr)
