"""Configuration loading.

brut reads its settings from exactly one of two places:

1. ``brut.toml`` in the working directory
2. ``[workspace.metadata.brut.config]`` in the workspace's root Cargo.toml

Each place is tried by a provider. A provider that finds nothing, or finds
something it cannot parse, counts as absent. If both providers succeed the
configuration is ambiguous and loading fails; if neither does, the defaults
apply.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigurationConflict
from .models import BrutConfig
from .shell import warn
from .toml import MANIFEST_NAME, get_table, load_toml

CONFIG_FILE_NAME = "brut.toml"
METADATA_KEYS = ("workspace", "metadata", "brut", "config")


class ConfigNotFound(Exception):
    """Raised by a provider whose source does not exist or is unusable."""


ConfigProvider = Callable[[], BrutConfig]


def config_from_file(cwd: Path) -> BrutConfig:
    """Load brut.toml from cwd."""
    path = cwd / CONFIG_FILE_NAME
    if not path.is_file():
        raise ConfigNotFound(f"{path} does not exist")
    try:
        return BrutConfig.model_validate(load_toml(path).unwrap())
    except (TOMLKitError, ValidationError) as exc:
        warn(f"Ignoring {path}: {exc}")
        raise ConfigNotFound(str(path)) from exc


def config_from_workspace(manifest: tomlkit.TOMLDocument) -> BrutConfig:
    """Load the [workspace.metadata.brut.config] table of the root manifest."""
    table = get_table(manifest, *METADATA_KEYS)
    if table is None:
        raise ConfigNotFound(f"no [{'.'.join(METADATA_KEYS)}] in {MANIFEST_NAME}")
    try:
        return BrutConfig.model_validate(table.unwrap())
    except ValidationError as exc:
        warn(f"Ignoring [{'.'.join(METADATA_KEYS)}] in {MANIFEST_NAME}: {exc}")
        raise ConfigNotFound(MANIFEST_NAME) from exc


def resolve_providers(providers: Sequence[tuple[str, ConfigProvider]]) -> BrutConfig:
    """Evaluate every provider and return the single successful result.

    Args:
        providers: (source description, provider) pairs.

    Raises:
        ConfigurationConflict: If more than one provider succeeds.
    """
    found: list[tuple[str, BrutConfig]] = []
    for source, provider in providers:
        try:
            found.append((source, provider()))
        except ConfigNotFound:
            continue

    if len(found) > 1:
        raise ConfigurationConflict([source for source, _ in found])
    if found:
        return found[0][1]
    return BrutConfig()


def load_config(cwd: Path, manifest: tomlkit.TOMLDocument) -> BrutConfig:
    """Load brut's configuration for a run started in cwd."""
    return resolve_providers(
        [
            (str(cwd / CONFIG_FILE_NAME), lambda: config_from_file(cwd)),
            (
                f"[{'.'.join(METADATA_KEYS)}] in {MANIFEST_NAME}",
                lambda: config_from_workspace(manifest),
            ),
        ]
    )
