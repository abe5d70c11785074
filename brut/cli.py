"""CLI entry point for brut."""

from __future__ import annotations

import json
import shlex
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click

from .dispatch import dispatch
from .errors import BrutError
from .git import DEFAULT_BASE
from .models import Command
from .pipeline import Selection, select_affected


@dataclass(frozen=True)
class Settings:
    cwd: Path
    verbose: bool


def _label(text: str) -> str:
    return click.style(text, fg="green", bold=True)


def selection_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the --base/--head options shared by every selecting command."""
    func = click.option(
        "--head",
        default=None,
        help="Git revision to compare to. Defaults to the working tree.",
    )(func)
    func = click.option(
        "--base",
        default=DEFAULT_BASE,
        show_default=True,
        help="Git revision to compare against.",
    )(func)
    return func


def _select(settings: Settings, base: str, head: str | None) -> Selection:
    try:
        return select_affected(settings.cwd, base, head, verbose=settings.verbose)
    except BrutError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="brut")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to run in instead of the current one.",
)
@click.option("-v", "--verbose", is_flag=True, help="Print progress for each stage.")
@click.pass_context
def cli(ctx: click.Context, cwd: Path | None, verbose: bool) -> None:
    """Run cargo only on the workspace packages affected by your changes."""
    ctx.obj = Settings(cwd=(cwd or Path.cwd()).resolve(), verbose=verbose)


def _cargo_command(command: Command) -> click.Command:
    @click.command(
        name=command.value,
        help=f"Run `cargo {command.value}` on the affected packages.",
    )
    @selection_options
    @click.option(
        "--dry-run", is_flag=True, help="Print the cargo command instead of running it."
    )
    @click.argument("cargo_args", nargs=-1, type=click.UNPROCESSED)
    @click.pass_obj
    def run_cargo(
        settings: Settings,
        base: str,
        head: str | None,
        dry_run: bool,
        cargo_args: tuple[str, ...],
    ) -> None:
        selection = _select(settings, base, head)

        if dry_run:
            changed = ", ".join(sorted(selection.changed_files)) or "<none>"
            affected = ", ".join(sorted(selection.affected)) or "<none>"
            click.echo(f"{_label('Changed files:')} {changed}")
            click.echo(f"{_label('Affected packages:')} {affected}")

        if not selection.affected:
            click.echo(
                click.style("No affected packages, skipping", fg="blue", bold=True)
            )
            return

        try:
            result = dispatch(
                selection.workspace_root,
                command,
                selection.affected,
                dry_run,
                cargo_args,
            )
        except BrutError as exc:
            raise click.ClickException(str(exc)) from exc

        if result.status == "dry-run":
            click.echo(f"{_label('Command:')} {shlex.join(result.argv)}")

    return run_cargo


for _command in Command:
    cli.add_command(_cargo_command(_command))


@cli.command()
@selection_options
@click.option("--json", "as_json", is_flag=True, help="Print a JSON array.")
@click.pass_obj
def affected(settings: Settings, base: str, head: str | None, as_json: bool) -> None:
    """List the affected packages, one per line."""
    names = sorted(_select(settings, base, head).affected)
    if as_json:
        click.echo(json.dumps(names))
        return
    for name in names:
        click.echo(name)
