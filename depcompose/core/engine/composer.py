"""
Composer — the composition pipeline.

Takes a workspace declaration and produces a BuildPlan, or the full
list of reasons it cannot.

Flow:
    declarations → registry → graph → validate → schedule + resolve → plan

Every stage collects its errors instead of raising, and any error
aborts scheduling and resolution for the run.  With ``best_effort``
the failing modules (and everything that depends on them) are dropped
and composition re-runs on what is left.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from depcompose.core.graph.builder import BuildGraph, build_graph
from depcompose.core.graph.errors import CompositionError
from depcompose.core.graph.registry import ModuleRegistry
from depcompose.core.graph.scheduler import schedule
from depcompose.core.graph.settings import resolve_all
from depcompose.core.graph.validator import validate
from depcompose.core.models.plan import BuildPlan
from depcompose.core.models.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class CompositionResult:
    """Outcome of one composition run."""

    workspace: str = ""
    plan: BuildPlan | None = None
    errors: list[CompositionError] = field(default_factory=list)
    strict_keys: list[str] = field(default_factory=list)

    # best-effort bookkeeping
    best_effort: bool = False
    dropped: list[str] = field(default_factory=list)
    dropped_for: list[CompositionError] = field(default_factory=list)

    graph: BuildGraph | None = None

    @property
    def ok(self) -> bool:
        return not self.errors and self.plan is not None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def errors_of(self, kind: type[CompositionError]) -> list[CompositionError]:
        """Errors of one kind, in reported order."""
        return [e for e in self.errors if isinstance(e, kind)]

    @property
    def status(self) -> str:
        if self.errors:
            return "failed"
        if self.dropped:
            return "partial"
        return "ok"

    def to_dict(self) -> dict:
        result: dict = {
            "workspace": self.workspace,
            "status": self.status,
            "strict_keys": self.strict_keys,
            "errors": [e.to_dict() for e in self.errors],
        }
        if self.best_effort:
            result["dropped"] = self.dropped
            result["dropped_for"] = [e.to_dict() for e in self.dropped_for]
        if self.plan is not None:
            result["plan"] = self.plan.to_dict()
        return result


def populate_registry(workspace: Workspace) -> tuple[ModuleRegistry, list[CompositionError]]:
    """Register every bundle and module declared by the workspace.

    Registration failures (duplicate names) are collected; the first
    declaration of a name wins.  The returned registry is closed.
    """
    registry = ModuleRegistry()
    errors: list[CompositionError] = []

    for bundle in workspace.bundles:
        try:
            registry.register_bundle(bundle)
        except CompositionError as e:
            errors.append(e)

    for decl in workspace.modules:
        try:
            registry.register(
                decl.name,
                source_path=decl.path,
                dependency_names=decl.depends_on,
                settings_bundle_refs=decl.settings,
                description=decl.description,
            )
        except CompositionError as e:
            errors.append(e)

    registry.close()
    return registry, errors


def compose_registry(
    registry: ModuleRegistry,
    strict_keys: Iterable[str] = (),
    workspace: str = "",
) -> CompositionResult:
    """Run one composition pass over a populated registry.

    Broken references and cycles are both reported in the same pass;
    settings are only resolved once the graph is known to be sound.
    """
    strict = sorted(set(strict_keys))
    result = CompositionResult(workspace=workspace, strict_keys=strict)

    graph, errors = build_graph(registry)
    result.graph = graph
    result.errors.extend(errors)
    result.errors.extend(validate(graph))
    if result.errors:
        logger.info("Composition of %s failed: %d error(s)", workspace or "workspace", len(result.errors))
        return result

    batches = schedule(graph)
    order = [name for batch in batches for name in batch]
    settings, conflicts = resolve_all(graph, strict, order=order)
    if conflicts:
        result.errors.extend(conflicts)
        logger.info("Composition of %s failed: %d pin conflict(s)", workspace or "workspace", len(conflicts))
        return result

    result.plan = BuildPlan(workspace=workspace, batches=batches, settings=settings)
    logger.info(
        "Composed %s: %d modules in %d batches",
        workspace or "workspace", result.plan.module_count, result.plan.batch_count,
    )
    return result


def compose(
    workspace: Workspace,
    strict_keys: Iterable[str] | None = None,
    best_effort: bool = False,
) -> CompositionResult:
    """Compose a build plan for a workspace.

    Args:
        workspace: The declared modules and bundles.
        strict_keys: Strict settings keys; defaults to the workspace's own.
        best_effort: Drop failing modules and their dependents, then
            retry, instead of failing the whole run.

    Returns:
        CompositionResult.  ``plan`` is set only when the (possibly
        reduced) module set composed without errors.
    """
    strict = list(workspace.strict_keys if strict_keys is None else strict_keys)

    registry, registration_errors = populate_registry(workspace)
    result = compose_registry(registry, strict, workspace=workspace.name)
    result.errors[:0] = registration_errors
    if result.errors:
        result.plan = None

    if not best_effort:
        return result

    # Errors not tied to a module (a duplicate bundle) cannot be fixed by
    # dropping modules; they stay on every pass.
    unfixable = [e for e in registration_errors if not e.modules]
    dropped: list[str] = []
    dropped_for: list[CompositionError] = []

    while True:
        failing = {m for e in result.errors for m in e.modules if m in registry}
        if not failing:
            break

        assert result.graph is not None
        doomed = set(failing)
        for name in failing:
            doomed.update(result.graph.transitive_dependents(name))

        logger.info(
            "Best-effort: dropping %d module(s): %s",
            len(doomed), ", ".join(sorted(doomed)),
        )
        dropped.extend(sorted(doomed))
        dropped_for.extend(e for e in result.errors if e.modules)

        registry = registry.without(doomed)
        registry.close()
        result = compose_registry(registry, strict, workspace=workspace.name)
        if unfixable:
            result.errors[:0] = unfixable
            result.plan = None

    result.best_effort = True
    result.dropped = dropped
    result.dropped_for = dropped_for
    return result


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
