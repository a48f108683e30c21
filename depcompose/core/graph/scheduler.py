"""
Topological scheduler — batch-based build order.

Batch 0 holds every module with no dependencies.  Batch k holds every
module whose dependencies all sit in batches below k, with at least one
in batch k-1.  Modules within a batch have no edges between them, so an
executor may build a whole batch in parallel.  Batches are sorted by
name so the same input always gives the same plan.

Precondition: the graph has passed ``validate``.  Modules on a cycle
never reach a zero in-degree and are silently left out; cycle detection
is not repeated here.
"""

from __future__ import annotations

import logging

from depcompose.core.graph.builder import BuildGraph

logger = logging.getLogger(__name__)


def schedule(graph: BuildGraph) -> list[list[str]]:
    """Group modules into ordered build batches.

    Args:
        graph: A validated, acyclic graph.

    Returns:
        Ordered batches of module names, each sorted ascending.
    """
    pending = {name: len(graph.dependencies_of(name)) for name in graph.names}
    current = sorted(name for name, count in pending.items() if count == 0)
    batches: list[list[str]] = []

    while current:
        batches.append(current)
        ready: list[str] = []
        for name in current:
            for dependent in graph.dependents_of(name):
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    ready.append(dependent)
        current = sorted(ready)

    logger.debug(
        "Scheduled %d modules into %d batches",
        sum(len(b) for b in batches), len(batches),
    )
    return batches


def batch_indices(batches: list[list[str]]) -> dict[str, int]:
    """Map each module name to its batch index."""
    return {name: index for index, batch in enumerate(batches) for name in batch}
