"""
Dependency graph builder — registry → BuildGraph.

Edges are derived from each module's ``dependency_names`` and are never
stored anywhere else; a new BuildGraph is built for every composition
run.  Resolution failures do not stop the build: every broken reference
across every module is collected so the caller sees them all at once.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from depcompose.core.graph.errors import (
    CompositionError,
    UnknownBundleError,
    UnresolvedDependencyError,
)
from depcompose.core.graph.registry import ModuleRegistry
from depcompose.core.models.module import Module, SettingsBundle

logger = logging.getLogger(__name__)


class DependencyEdge(NamedTuple):
    """``source`` requires ``target`` to be built first."""

    source: str
    target: str


class BuildGraph:
    """Registered modules plus their resolved dependency edges.

    Only edges whose target is registered are present.  Whether the
    graph is acyclic is the validator's concern, not this class's.
    """

    def __init__(self, registry: ModuleRegistry) -> None:
        self._registry = registry
        self._deps: dict[str, list[str]] = {m.name: [] for m in registry}
        self._rdeps: dict[str, list[str]] = {m.name: [] for m in registry}

    def _add_edge(self, source: str, target: str) -> None:
        self._deps[source].append(target)
        self._rdeps[target].append(source)

    # ── Nodes ───────────────────────────────────────────────────

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def names(self) -> list[str]:
        return list(self._deps)

    def module(self, name: str) -> Module:
        return self._registry.lookup(name)

    def bundle(self, name: str) -> SettingsBundle:
        return self._registry.bundle(name)

    def __len__(self) -> int:
        return len(self._deps)

    def __contains__(self, name: object) -> bool:
        return name in self._deps

    # ── Edges ───────────────────────────────────────────────────

    def dependencies_of(self, name: str) -> list[str]:
        """Direct dependencies of *name*, in declared order."""
        return list(self._deps[name])

    def dependents_of(self, name: str) -> list[str]:
        """Modules that directly depend on *name*, sorted by name."""
        return sorted(self._rdeps[name])

    def edges(self) -> list[DependencyEdge]:
        return [
            DependencyEdge(source, target)
            for source, targets in self._deps.items()
            for target in targets
        ]

    @property
    def edge_count(self) -> int:
        return sum(len(t) for t in self._deps.values())

    def transitive_dependencies(self, name: str) -> list[str]:
        """Everything *name* needs, depth-first in declared order."""
        return self._walk(name, self._deps)

    def transitive_dependents(self, name: str) -> list[str]:
        """Everything that needs *name*, directly or indirectly."""
        return sorted(self._walk(name, self._rdeps))

    @staticmethod
    def _walk(start: str, adjacency: dict[str, list[str]]) -> list[str]:
        seen: list[str] = []
        visited = {start}
        stack = list(reversed(adjacency[start]))
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            seen.append(current)
            stack.extend(reversed(adjacency[current]))
        return seen


def build_graph(registry: ModuleRegistry) -> tuple[BuildGraph, list[CompositionError]]:
    """Build the dependency graph for every registered module.

    Args:
        registry: The (closed) module registry.

    Returns:
        The graph and a list of errors: one UnresolvedDependencyError per
        dependency name that does not resolve, and one UnknownBundleError
        per settings ref that names no bundle.  An empty list means every
        reference resolved.
    """
    graph = BuildGraph(registry)
    errors: list[CompositionError] = []

    for module in registry:
        seen: set[str] = set()
        for dep_name in module.dependency_names:
            if dep_name in seen:
                logger.warning(
                    "Module '%s' lists dependency '%s' more than once",
                    module.name, dep_name,
                )
                continue
            seen.add(dep_name)

            if dep_name not in registry:
                errors.append(UnresolvedDependencyError(module.name, dep_name))
                continue
            graph._add_edge(module.name, dep_name)

        for ref in module.settings_refs:
            if not registry.has_bundle(ref):
                errors.append(UnknownBundleError(ref, module=module.name))

    logger.debug(
        "Built graph: %d modules, %d edges, %d unresolved references",
        len(graph), graph.edge_count, len(errors),
    )
    return graph, errors
