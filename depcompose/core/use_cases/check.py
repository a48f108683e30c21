"""
Check use case — validate build.yml and report every problem at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from depcompose.core.config.loader import (
    ConfigError,
    effective_strict_keys,
    find_build_file,
    load_workspace,
)
from depcompose.core.engine.composer import compose
from depcompose.core.graph.errors import CompositionError
from depcompose.core.models.workspace import Workspace


@dataclass
class CheckResult:
    """Result of workspace validation."""

    valid: bool = False
    workspace: Workspace | None = None
    config_path: Path | None = None
    strict_keys: list[str] = field(default_factory=list)
    error: str | None = None
    errors: list[CompositionError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "error": self.error,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "workspace_name": self.workspace.name if self.workspace else None,
            "module_count": len(self.workspace.modules) if self.workspace else 0,
            "bundle_count": len(self.workspace.bundles) if self.workspace else 0,
            "strict_keys": self.strict_keys,
        }


def check_workspace(
    config_path: Path | None = None,
    extra_strict_keys: list[str] | None = None,
) -> CheckResult:
    """Validate workspace configuration and report issues.

    Args:
        config_path: Optional explicit path to build.yml.
        extra_strict_keys: Strict keys to add to the workspace's own.

    Returns:
        CheckResult with validation status and any issues.
    """
    result = CheckResult()

    # Find and load config
    if config_path is None:
        config_path = find_build_file()
    if config_path is None:
        result.error = "No build.yml found."
        return result
    result.config_path = config_path

    try:
        workspace = load_workspace(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.workspace = workspace

    # Compose (strict mode) to surface every structural error
    result.strict_keys = effective_strict_keys(workspace, extra_strict_keys)
    composition = compose(workspace, strict_keys=result.strict_keys)
    result.errors = composition.errors

    # Non-fatal findings
    if not workspace.modules:
        result.warnings.append("No modules defined. There is nothing to build.")

    referenced = workspace.referenced_bundles()
    for bundle in workspace.bundles:
        if bundle.name not in referenced:
            result.warnings.append(f"Bundle '{bundle.name}' is not used by any module")

    defined_keys = {key for bundle in workspace.bundles for key in bundle.options}
    for key in result.strict_keys:
        if key not in defined_keys:
            result.warnings.append(f"Strict key '{key}' is not set by any bundle")

    root = config_path.parent
    for mod in workspace.modules:
        if mod.path and not (root / mod.path).exists():
            result.warnings.append(f"Module '{mod.name}' path does not exist: {mod.path}")

    result.valid = not result.errors
    return result
