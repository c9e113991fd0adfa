"""Live service nodes and their mutable dependency edges."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from threading import RLock

import semver


class LifecycleState(str, Enum):
    """Lifecycle states a service moves through."""

    NEW = "NEW"
    INSTALLED = "INSTALLED"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    FINISHED = "FINISHED"
    ERRORED = "ERRORED"
    BROKEN = "BROKEN"


class DependencyType(str, Enum):
    """Whether a dependent restarts when its dependency does."""

    HARD = "HARD"
    SOFT = "SOFT"


@dataclass(frozen=True, slots=True)
class DependencyInfo:
    """Edge attributes from a dependent to one dependency."""

    start_when: LifecycleState = LifecycleState.RUNNING
    is_hard: bool = False

    @property
    def dependency_type(self) -> DependencyType:
        """Return the HARD/SOFT classification of this edge."""
        return DependencyType.HARD if self.is_hard else DependencyType.SOFT


class ServiceNode:
    """One running or runnable service in the activation graph.

    Nodes compare by identity. Edges point from this node to the services it
    depends on and may be added or removed at any time by any thread.
    """

    def __init__(
        self,
        name: str,
        *,
        version: semver.Version | str | None = None,
        builtin: bool = False,
        state: LifecycleState = LifecycleState.NEW,
    ) -> None:
        if not name:
            raise ValueError("service name must not be empty")
        self._name = name
        self._version = (
            semver.Version.parse(version) if isinstance(version, str) else version
        )
        self._builtin = builtin
        self.state = state
        self._dependencies: dict[ServiceNode, DependencyInfo] = {}
        self._lock = RLock()

    @property
    def name(self) -> str:
        """Return the service name."""
        return self._name

    @property
    def version(self) -> semver.Version | None:
        """Return the component version this service runs, if known."""
        return self._version

    @property
    def builtin(self) -> bool:
        """Return True for in-process services with no on-disk recipe."""
        return self._builtin

    def add_or_update_dependency(
        self,
        dependency: ServiceNode,
        start_when: LifecycleState = LifecycleState.RUNNING,
        is_hard: bool = False,
    ) -> None:
        """Add one dependency edge or replace the attributes of an existing one."""
        with self._lock:
            self._dependencies[dependency] = DependencyInfo(
                start_when=start_when, is_hard=is_hard
            )

    def remove_dependency(self, dependency: ServiceNode) -> bool:
        """Remove one dependency edge and return whether it existed."""
        with self._lock:
            return self._dependencies.pop(dependency, None) is not None

    def dependencies_snapshot(self) -> dict[ServiceNode, DependencyInfo]:
        """Return a point-in-time copy of this node's dependency edges."""
        with self._lock:
            return dict(self._dependencies)

    def dependency_names(self) -> tuple[str, ...]:
        """Return names of current dependencies in insertion order."""
        return tuple(node.name for node in self.dependencies_snapshot())

    def for_all_dependencies(
        self, visitor: Callable[[ServiceNode, DependencyInfo], None]
    ) -> None:
        """Call ``visitor`` once per dependency edge over a snapshot."""
        for node, info in self.dependencies_snapshot().items():
            visitor(node, info)

    def __repr__(self) -> str:
        return f"ServiceNode(name={self._name!r}, version={self._version})"
