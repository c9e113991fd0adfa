"""Dependency-ordered activation for the live service graph."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from graphlib import CycleError, TopologicalSorter

from packages.fleet_core.services.node import ServiceNode
from packages.fleet_shared.logging import fields, get_logger, log_context

_LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ActivationOrder:
    """Outcome of ordering the graph reachable from one root service.

    ``services`` lists every reachable node with each dependency ahead of its
    dependents. When the graph holds a cycle, ``services`` is empty and
    ``cycle`` carries the node path that closes the loop.
    """

    services: tuple[ServiceNode, ...]
    cycle: tuple[ServiceNode, ...] | None = None

    @property
    def is_cyclic(self) -> bool:
        """Return True when ordering was rejected because of a cycle."""
        return self.cycle is not None

    def names(self) -> tuple[str, ...]:
        """Return service names in activation order."""
        return tuple(node.name for node in self.services)

    def __iter__(self) -> Iterator[ServiceNode]:
        return iter(self.services)

    def __len__(self) -> int:
        return len(self.services)


def snapshot_graph(root: ServiceNode) -> dict[ServiceNode, tuple[ServiceNode, ...]]:
    """Copy the dependency edges of every node reachable from ``root``.

    Each node's edge set is copied once under that node's lock, so concurrent
    edge mutation never tears the structure being ordered.
    """
    graph: dict[ServiceNode, tuple[ServiceNode, ...]] = {}
    pending = [root]
    while pending:
        node = pending.pop()
        if node in graph:
            continue
        dependencies = tuple(node.dependencies_snapshot())
        graph[node] = dependencies
        pending.extend(dep for dep in dependencies if dep not in graph)
    return graph


def resolve_activation_order(root: ServiceNode) -> ActivationOrder:
    """Order every service reachable from ``root`` so dependencies come first.

    The walk is repeated on every call. Any cycle anywhere in the reachable
    graph rejects the whole ordering.
    """
    graph = snapshot_graph(root)
    try:
        ordered = tuple(TopologicalSorter(graph).static_order())
    except CycleError as exc:
        cycle = tuple(exc.args[1]) if len(exc.args) > 1 else (root,)
        with log_context(
            {
                fields.EVENT: fields.DEPENDENCY_CYCLE_EVENT,
                fields.SERVICE_NAME: root.name,
                fields.CYCLE: " -> ".join(node.name for node in cycle),
            }
        ):
            _LOGGER.error("Dependency cycle detected; no activation order available")
        return ActivationOrder(services=tuple(), cycle=cycle)
    return ActivationOrder(services=ordered)


def ordered_dependencies(root: ServiceNode) -> tuple[ServiceNode, ...]:
    """Return the activation order from ``root``; empty when a cycle exists."""
    return resolve_activation_order(root).services
