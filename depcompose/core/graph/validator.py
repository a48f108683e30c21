"""
Cycle & validity checker.

Two passes over the dependency edges:

1. Tarjan's algorithm splits the graph into strongly connected
   components.  A module can only sit on a cycle if its component has
   more than one member, or if it depends on itself.
2. Inside each such component, every elementary cycle is enumerated
   once, starting from its earliest-registered module and following
   dependencies in declared order.

Because each cycle is reported from a single fixed starting module,
rotations of the same cycle never show up twice.  Acyclic graphs stop
after the first pass, in time linear in modules plus edges.

Both walks are iterative so long dependency chains do not hit the
interpreter recursion limit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from depcompose.core.graph.builder import BuildGraph
from depcompose.core.graph.errors import CyclicDependencyError

logger = logging.getLogger(__name__)


def validate(graph: BuildGraph) -> list[CyclicDependencyError]:
    """Check the graph for dependency cycles.

    Args:
        graph: A graph from ``build_graph``.

    Returns:
        One CyclicDependencyError per elementary cycle.  Cycles are
        grouped by their earliest-registered module (registry order),
        then in the order a declared-order walk finds them.  An empty
        list means the graph is acyclic.
    """
    components = strongly_connected_components(graph)
    component_of = {name: comp for comp in components for name in comp}
    position = {name: i for i, name in enumerate(graph.names)}

    errors: list[CyclicDependencyError] = []
    for start in graph.names:
        members = component_of[start]
        if len(members) == 1 and start not in graph.dependencies_of(start):
            continue
        for cycle in _cycles_from(start, graph, members, position):
            errors.append(CyclicDependencyError(cycle))
            logger.debug("Cycle found: %s", " → ".join(cycle))

    if errors:
        logger.info("Validation found %d dependency cycle(s)", len(errors))
    return errors


def is_acyclic(graph: BuildGraph) -> bool:
    return not validate(graph)


def strongly_connected_components(graph: BuildGraph) -> list[frozenset[str]]:
    """Tarjan's strongly connected components, iteratively.

    Components come out in reverse topological order: a component is
    emitted only after every component it depends on.
    """
    index: dict[str, int] = {}
    low: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[frozenset[str]] = []

    def visit(name: str) -> None:
        index[name] = low[name] = len(index)
        stack.append(name)
        on_stack.add(name)

    for root in graph.names:
        if root in index:
            continue

        visit(root)
        work: list[tuple[str, Iterator[str]]] = [(root, iter(graph.dependencies_of(root)))]
        while work:
            node, pending = work[-1]
            for dep in pending:
                if dep not in index:
                    visit(dep)
                    work.append((dep, iter(graph.dependencies_of(dep))))
                    break
                if dep in on_stack:
                    low[node] = min(low[node], index[dep])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    low[parent] = min(low[parent], low[node])
                if low[node] == index[node]:
                    members: set[str] = set()
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        members.add(member)
                        if member == node:
                            break
                    components.append(frozenset(members))

    return components


def _cycles_from(
    start: str,
    graph: BuildGraph,
    members: frozenset[str],
    position: dict[str, int],
) -> Iterator[list[str]]:
    """Elementary cycles through ``start`` whose other modules come later in registry order."""
    path = [start]
    on_path = {start}
    pending: list[Iterator[str]] = [iter(graph.dependencies_of(start))]

    while pending:
        for dep in pending[-1]:
            if dep not in members or position[dep] < position[start]:
                continue
            if dep == start:
                yield [*path, start]
            elif dep not in on_path:
                path.append(dep)
                on_path.add(dep)
                pending.append(iter(graph.dependencies_of(dep)))
                break
        else:
            pending.pop()
            on_path.discard(path.pop())
