"""
Configuration loader — reads build.yml into a Workspace model.

This is the primary entry point for loading workspace configuration.
It reads YAML, validates against Pydantic schemas, and returns typed
domain objects.  Structural problems in the graph (duplicates, dangling
references, cycles) are NOT rejected here; they are the composer's job.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from depcompose.core.models.workspace import Workspace

logger = logging.getLogger(__name__)

# Config filenames, in lookup order
BUILD_CONFIG_FILES = ("build.yml", "build.yaml")

# Extra strict keys from the environment (comma separated)
STRICT_KEYS_ENV = "DEPCOMPOSE_STRICT_KEYS"


class ConfigError(Exception):
    """Raised when workspace configuration is invalid or missing."""


def find_build_file(start_dir: Path | None = None) -> Path | None:
    """Search for build.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the build file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        for filename in BUILD_CONFIG_FILES:
            candidate = current / filename
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_workspace(path: Path | None = None) -> Workspace:
    """Load and validate workspace configuration.

    Args:
        path: Explicit path to build.yml. If None, searches upward.

    Returns:
        Validated Workspace model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_build_file()

    if path is None:
        raise ConfigError(
            f"No {BUILD_CONFIG_FILES[0]} found. "
            "Create one in the workspace root, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading workspace config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "workspace" key or be flat
    workspace_data = data.get("workspace") if "workspace" in data else data
    if not isinstance(workspace_data, dict):
        raise ConfigError(f"'workspace' in {path} must be a mapping")

    # Merge top-level keys that sit alongside "workspace"
    for key in ("version", "strict_keys", "bundles", "modules"):
        if key in data and key not in workspace_data:
            workspace_data[key] = data[key]

    try:
        workspace = Workspace.model_validate(workspace_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid workspace configuration: {e}") from e

    logger.info(
        "Loaded workspace '%s' with %d modules and %d bundles",
        workspace.name, len(workspace.modules), len(workspace.bundles),
    )
    return workspace


def strict_keys_from_env() -> list[str]:
    """Strict keys named in DEPCOMPOSE_STRICT_KEYS."""
    raw = os.environ.get(STRICT_KEYS_ENV, "")
    return [key.strip() for key in raw.split(",") if key.strip()]


def effective_strict_keys(workspace: Workspace, extra: list[str] | None = None) -> list[str]:
    """Workspace strict keys + environment + caller extras, deduplicated."""
    keys = [*workspace.strict_keys, *strict_keys_from_env(), *(extra or [])]
    return list(dict.fromkeys(keys))


def workspace_root(config_path: Path) -> Path:
    """Get the workspace root directory from a config file path."""
    return config_path.parent.resolve()
