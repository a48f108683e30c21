"""
Plan use case — compose the build plan and hand it to the executor.

The full vertical slice: load config, compose, write the plan file for
the external build executor, and record the run in the audit ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from depcompose.core.config.loader import (
    ConfigError,
    effective_strict_keys,
    find_build_file,
    load_workspace,
    workspace_root,
)
from depcompose.core.engine.composer import CompositionResult, compose, generate_operation_id
from depcompose.core.models.workspace import Workspace
from depcompose.core.persistence.audit import AuditEntry, AuditWriter
from depcompose.core.persistence.plan_file import default_plan_path, save_plan

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Result of composing a workspace."""

    composition: CompositionResult | None = None
    workspace: Workspace | None = None
    workspace_root: Path | None = None
    plan_path: Path | None = None
    operation_id: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.composition is not None and self.composition.ok

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["operation_id"] = self.operation_id
        result["workspace_root"] = str(self.workspace_root)
        result["plan_path"] = str(self.plan_path) if self.plan_path else None
        if self.composition:
            result.update(self.composition.to_dict())
        return result


def compose_workspace(
    config_path: Path | None = None,
    best_effort: bool = False,
    extra_strict_keys: list[str] | None = None,
    output: Path | None = None,
    save: bool = True,
    audit: bool = True,
) -> PlanResult:
    """Compose the build plan for a workspace.

    Args:
        config_path: Optional explicit path to build.yml.
        best_effort: Drop failing modules instead of failing the run.
        extra_strict_keys: Strict keys to add to the workspace's own.
        output: Plan file path (default: .state/plan.json in the root).
        save: Write the plan file when composition succeeds.
        audit: Append an entry to the audit ledger.

    Returns:
        PlanResult with the composition outcome.
    """
    result = PlanResult()

    # ── Load workspace config ────────────────────────────────────
    try:
        if config_path is None:
            config_path = find_build_file()
        if config_path is None:
            result.error = "No build.yml found."
            return result

        workspace = load_workspace(config_path)
        result.workspace = workspace
        result.workspace_root = workspace_root(config_path)

    except ConfigError as e:
        result.error = str(e)
        return result

    root = result.workspace_root
    assert root is not None

    # ── Compose ──────────────────────────────────────────────────
    result.operation_id = generate_operation_id()
    strict = effective_strict_keys(workspace, extra_strict_keys)
    composition = compose(workspace, strict_keys=strict, best_effort=best_effort)
    result.composition = composition

    # ── Persist plan ─────────────────────────────────────────────
    if save and composition.plan is not None:
        plan_path = output or default_plan_path(root)
        try:
            save_plan(composition.plan, plan_path)
        except OSError as e:
            result.error = f"Cannot write plan file {plan_path}: {e}"
            return result
        result.plan_path = plan_path
        logger.debug("Plan written to %s", plan_path)

    # ── Write audit log ──────────────────────────────────────────
    if audit:
        write_audit_entry(result, AuditWriter(workspace_root=root))

    return result


def write_audit_entry(result: PlanResult, audit_writer: AuditWriter) -> None:
    """Record a composition run in the audit ledger."""
    composition = result.composition
    assert composition is not None

    plan = composition.plan
    entry = AuditEntry(
        operation_id=result.operation_id,
        operation_type="plan",
        workspace=composition.workspace,
        status=composition.status,
        best_effort=composition.best_effort,
        modules_total=plan.module_count if plan else 0,
        batches_total=plan.batch_count if plan else 0,
        modules_dropped=composition.dropped,
        strict_keys=composition.strict_keys,
        errors=[e.message for e in composition.errors],
        context={"plan_path": str(result.plan_path)} if result.plan_path else {},
    )
    audit_writer.write(entry)
