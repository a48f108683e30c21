"""
Graph core — registry, graph building, validation, scheduling, settings.

    from depcompose.core.graph import ModuleRegistry, build_graph, validate, schedule
"""

from depcompose.core.graph.builder import BuildGraph, DependencyEdge, build_graph
from depcompose.core.graph.errors import (
    CompositionError,
    ConflictingPinError,
    CyclicDependencyError,
    DuplicateBundleError,
    DuplicateModuleError,
    RegistryClosedError,
    UnknownBundleError,
    UnknownModuleError,
    UnresolvedDependencyError,
)
from depcompose.core.graph.registry import ModuleRegistry
from depcompose.core.graph.scheduler import batch_indices, schedule
from depcompose.core.graph.settings import bundle_chain, resolve, resolve_all
from depcompose.core.graph.validator import is_acyclic, validate

__all__ = [
    "BuildGraph",
    "CompositionError",
    "ConflictingPinError",
    "CyclicDependencyError",
    "DependencyEdge",
    "DuplicateBundleError",
    "DuplicateModuleError",
    "ModuleRegistry",
    "RegistryClosedError",
    "UnknownBundleError",
    "UnknownModuleError",
    "UnresolvedDependencyError",
    "batch_indices",
    "build_graph",
    "bundle_chain",
    "is_acyclic",
    "resolve",
    "resolve_all",
    "schedule",
    "validate",
]
