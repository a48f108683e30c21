"""
Explain use case — where one module sits in the graph and why its
settings are what they are.

Also provides the whole-graph view used by ``depcompose graph``.  Both
work on a broken workspace: they only need the graph to be built, not
validated.  The batch index is reported only when the graph is acyclic.
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
from depcompose.core.engine.composer import populate_registry
from depcompose.core.graph.builder import BuildGraph, DependencyEdge, build_graph
from depcompose.core.graph.errors import CompositionError, UnknownModuleError
from depcompose.core.graph.scheduler import batch_indices, schedule
from depcompose.core.graph.settings import resolve
from depcompose.core.graph.validator import validate
from depcompose.core.models.module import Module
from depcompose.core.models.plan import ResolvedSettings
from depcompose.core.models.workspace import Workspace


@dataclass
class ExplainResult:
    """Graph position and resolved settings of one module."""

    module: Module | None = None
    dependencies: list[str] = field(default_factory=list)
    transitive_dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    transitive_dependents: list[str] = field(default_factory=list)
    batch_index: int | None = None
    settings: ResolvedSettings | None = None
    conflicts: list[CompositionError] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        assert self.module is not None
        result["module"] = self.module.model_dump(mode="json")
        result["dependencies"] = self.dependencies
        result["transitive_dependencies"] = self.transitive_dependencies
        result["dependents"] = self.dependents
        result["transitive_dependents"] = self.transitive_dependents
        result["batch_index"] = self.batch_index
        result["settings"] = self.settings.model_dump(mode="json") if self.settings else None
        result["conflicts"] = [c.to_dict() for c in self.conflicts]
        return result


@dataclass
class GraphResult:
    """Every module and edge of the workspace graph."""

    workspace: Workspace | None = None
    graph: BuildGraph | None = None
    batches: list[list[str]] | None = None
    errors: list[CompositionError] = field(default_factory=list)
    error: str | None = None

    @property
    def edges(self) -> list[DependencyEdge]:
        return self.graph.edges() if self.graph else []

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        assert self.graph is not None
        result["workspace"] = self.workspace.name if self.workspace else ""
        result["modules"] = {
            name: {
                "dependencies": self.graph.dependencies_of(name),
                "dependents": self.graph.dependents_of(name),
            }
            for name in self.graph.names
        }
        result["edges"] = [list(edge) for edge in self.edges]
        result["batches"] = self.batches
        result["errors"] = [e.to_dict() for e in self.errors]
        return result


def _load(config_path: Path | None) -> Workspace:
    if config_path is None:
        config_path = find_build_file()
    if config_path is None:
        raise ConfigError("No build.yml found.")
    return load_workspace(config_path)


def explain_module(
    name: str,
    config_path: Path | None = None,
    extra_strict_keys: list[str] | None = None,
) -> ExplainResult:
    """Explain one module's dependencies, dependents and settings.

    Args:
        name: Module to explain.
        config_path: Optional explicit path to build.yml.
        extra_strict_keys: Strict keys to add to the workspace's own.
    """
    result = ExplainResult()

    try:
        workspace = _load(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    registry, _ = populate_registry(workspace)
    graph, _ = build_graph(registry)

    try:
        result.module = graph.module(name)
    except UnknownModuleError as e:
        result.error = e.message
        return result

    result.dependencies = graph.dependencies_of(name)
    result.transitive_dependencies = graph.transitive_dependencies(name)
    result.dependents = graph.dependents_of(name)
    result.transitive_dependents = graph.transitive_dependents(name)

    if not validate(graph):
        result.batch_index = batch_indices(schedule(graph)).get(name)

    strict = effective_strict_keys(workspace, extra_strict_keys)
    result.settings, conflicts = resolve(name, graph, strict)
    result.conflicts = list(conflicts)
    return result


def describe_graph(config_path: Path | None = None) -> GraphResult:
    """Build the workspace graph and list its modules and edges."""
    result = GraphResult()

    try:
        workspace = _load(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.workspace = workspace

    registry, registration_errors = populate_registry(workspace)
    graph, errors = build_graph(registry)
    cycles = validate(graph)

    result.graph = graph
    result.errors = [*registration_errors, *errors, *cycles]
    if not cycles:
        result.batches = schedule(graph)
    return result
