"""
Settings resolver — merge settings bundles across a dependency closure.

Precedence (first match wins per key):

    1. the module's own bundles, in ``settings_refs`` order
    2. each dependency in ``dependency_names`` order, recursively:
       that dependency's own bundles, then its dependencies

Every module in the closure is visited once, at its first (highest
precedence) position.  So for ``D -> [B, C]`` with both B and C
depending on A, the merge order is D, B, A, C.

Keys listed as *strict* are not allowed to be silently shadowed: if the
closure carries more than one distinct value for a strict key (values of
different types, such as ``1`` and ``True``, are distinct), a
ConflictingPinError is reported.  All other keys just take the winning
value.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from typing import Any

from depcompose.core.graph.builder import BuildGraph
from depcompose.core.graph.errors import ConflictingPinError
from depcompose.core.models.module import Module, SettingsBundle, thaw
from depcompose.core.models.plan import ResolvedSettings

logger = logging.getLogger(__name__)


def bundle_chain(module: str, graph: BuildGraph) -> list[tuple[str, SettingsBundle]]:
    """Every ``(owner module, bundle)`` pair in the closure, in precedence order.

    Settings refs that name no registered bundle are skipped; the graph
    builder has already reported them.
    """
    chain: list[tuple[str, SettingsBundle]] = []
    visited: set[str] = set()
    stack = [module]

    while stack:
        name = stack.pop()
        if name in visited:
            continue
        visited.add(name)

        owner = graph.module(name)
        for ref in owner.settings_refs:
            if graph.registry.has_bundle(ref):
                chain.append((name, graph.bundle(ref)))
        stack.extend(reversed(graph.dependencies_of(name)))

    return chain


def resolve(
    module: str | Module,
    graph: BuildGraph,
    strict_keys: Collection[str] = (),
) -> tuple[ResolvedSettings, list[ConflictingPinError]]:
    """Resolve the effective settings of one module.

    Args:
        module: Module (or module name) to resolve.
        graph: The dependency graph it belongs to.
        strict_keys: Keys whose values must agree across the closure.

    Returns:
        The merged settings, and one ConflictingPinError per strict key
        whose values diverge (empty when there is no conflict).

    Raises:
        UnknownModuleError: The module is not in the graph.
    """
    name = module.name if isinstance(module, Module) else module
    chain = bundle_chain(name, graph)

    resolved = ResolvedSettings(module=name)
    candidates: dict[str, list[Any]] = {}

    for owner, bundle in chain:
        resolved.bundle_chain.append(f"{owner}:{bundle.name}")
        for key, value in bundle.options.items():
            if key not in resolved.values:
                # bundles are shared; the plan gets its own copy
                resolved.values[key] = thaw(value)
                resolved.sources[key] = bundle.name
            if key in strict_keys:
                seen = candidates.setdefault(key, [])
                if not any(_same_pin(value, other) for other in seen):
                    seen.append(value)

    errors = [
        ConflictingPinError(key, [thaw(v) for v in values], module=name)
        for key, values in candidates.items()
        if len(values) > 1
    ]
    if errors:
        logger.debug(
            "Module %s has conflicting strict keys: %s",
            name, [e.key for e in errors],
        )
    return resolved, errors


def resolve_all(
    graph: BuildGraph,
    strict_keys: Collection[str] = (),
    order: list[str] | None = None,
) -> tuple[dict[str, ResolvedSettings], list[ConflictingPinError]]:
    """Resolve settings for every module.

    A conflict that a module merely inherits unchanged from one of its
    dependencies is reported only for that dependency.
    """
    settings: dict[str, ResolvedSettings] = {}
    errors: list[ConflictingPinError] = []
    signatures: dict[str, set[tuple[str, tuple[str, ...]]]] = {}

    for name in order if order is not None else graph.names:
        resolved, conflicts = resolve(name, graph, strict_keys)
        settings[name] = resolved
        signatures[name] = {_signature(c) for c in conflicts}

        inherited: set[tuple[str, tuple[str, ...]]] = set()
        for dep in graph.transitive_dependencies(name):
            if dep not in signatures:
                signatures[dep] = {
                    _signature(c) for c in resolve(dep, graph, strict_keys)[1]
                }
            inherited |= signatures[dep]

        errors.extend(c for c in conflicts if _signature(c) not in inherited)

    return settings, errors


def _signature(conflict: ConflictingPinError) -> tuple[str, tuple[str, ...]]:
    return conflict.key, tuple(sorted(repr(v) for v in conflict.values))


def _same_pin(a: Any, b: Any) -> bool:
    """Strict-key equality: ``1``, ``1.0``, ``True`` and ``"1"`` all differ."""
    if type(a) is not type(b):
        return False
    if isinstance(a, tuple):
        return len(a) == len(b) and all(_same_pin(x, y) for x, y in zip(a, b))
    if isinstance(a, Mapping):
        return a.keys() == b.keys() and all(_same_pin(a[k], b[k]) for k in a)
    return a == b
