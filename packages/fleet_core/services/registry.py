"""Explicit registry of service definitions, type factories, and live nodes.

A registry is created once per orchestrator process and handed to every
collaborator that needs it. Service types are resolved only through the
registration table populated at startup; an unknown tag is a load error.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from threading import RLock

import semver

from packages.fleet_core.services.errors import (
    ServiceLoadError,
    ServiceRegistrationError,
)
from packages.fleet_core.services.graph import (
    ActivationOrder,
    ordered_dependencies,
    resolve_activation_order,
)
from packages.fleet_core.services.node import (
    DependencyInfo,
    DependencyType,
    LifecycleState,
    ServiceNode,
)
from packages.fleet_shared.logging import get_logger

_LOGGER = get_logger(__name__)

DEFAULT_MAIN_SERVICE = "main"


@dataclass(frozen=True, slots=True)
class ServiceDefinition:
    """Declared system-model entry for one service.

    ``dependencies`` entries are service names, optionally suffixed with
    ``:HARD`` or ``:SOFT`` (default SOFT).
    """

    type: str | None = None
    version: str | None = None
    dependencies: tuple[str, ...] = tuple()


ServiceFactory = Callable[[str, ServiceDefinition], ServiceNode]


@dataclass(slots=True)
class ServiceRegistry:
    """Locate-or-create registry for the services of one orchestrator."""

    main_service_name: str = DEFAULT_MAIN_SERVICE
    _definitions: dict[str, ServiceDefinition] = field(default_factory=dict)
    _factories: dict[str, ServiceFactory] = field(default_factory=dict)
    _services: dict[str, ServiceNode] = field(default_factory=dict)
    _lock: RLock = field(default_factory=RLock)

    def register_type(self, tag: str, factory: ServiceFactory) -> None:
        """Register one constructor function under a declared type tag."""
        if not tag:
            raise ServiceRegistrationError("service type tag must not be empty")
        with self._lock:
            existing = self._factories.get(tag)
            if existing is not None and existing is not factory:
                raise ServiceRegistrationError(
                    f"service type tag '{tag}' is already registered"
                )
            self._factories[tag] = factory

    def define(self, name: str, definition: ServiceDefinition | None = None) -> None:
        """Declare or replace one service definition in the system model."""
        if not name:
            raise ServiceRegistrationError("service name must not be empty")
        with self._lock:
            self._definitions[name] = definition or ServiceDefinition()

    def define_all(self, definitions: Iterable[tuple[str, ServiceDefinition]]) -> None:
        """Declare several service definitions at once."""
        for name, definition in definitions:
            self.define(name, definition)

    def register(self, node: ServiceNode) -> ServiceNode:
        """Register an already-built node, such as a builtin service."""
        with self._lock:
            existing = self._services.get(node.name)
            if existing is not None and existing is not node:
                raise ServiceRegistrationError(
                    f"service '{node.name}' is already registered"
                )
            self._services[node.name] = node
            self._definitions.setdefault(
                node.name,
                ServiceDefinition(
                    version=str(node.version) if node.version is not None else None
                ),
            )
        return node

    def get(self, name: str) -> ServiceNode | None:
        """Return an already-located node without creating one."""
        with self._lock:
            return self._services.get(name)

    def has_definition(self, name: str) -> bool:
        """Return True when ``locate`` has something to build ``name`` from."""
        with self._lock:
            return (
                name in self._definitions
                or name in self._services
                or name in self._factories
            )

    def locate(self, name: str) -> ServiceNode:
        """Return the node for ``name``, building it and its dependencies if needed."""
        with self._lock:
            existing = self._services.get(name)
            if existing is not None:
                return existing

            definition = self._definitions.get(name)
            if definition is None and name in self._factories:
                # A registered type tag doubles as the definition of its own name.
                definition = ServiceDefinition(type=name)
            if definition is None:
                raise ServiceLoadError(
                    f"No matching definition in system model for: {name}"
                )

            node = self._build(name, definition)
            # Registered before wiring so definitions that loop back resolve to it.
            self._services[name] = node
            try:
                for raw_dependency in definition.dependencies:
                    dependency_name, is_hard = _parse_dependency(raw_dependency)
                    node.add_or_update_dependency(
                        self.locate(dependency_name),
                        LifecycleState.RUNNING,
                        is_hard,
                    )
            except ServiceLoadError:
                self._services.pop(name, None)
                raise
            _LOGGER.debug("Located service %s (type=%s)", name, definition.type)
            return node

    def find_active(self, name: str) -> semver.Version | None:
        """Return the version of the active service ``name``, if any."""
        if not self.has_definition(name):
            return None
        try:
            node = self.locate(name)
        except ServiceLoadError:
            _LOGGER.debug(
                "Didn't find an active service for component %s", name, exc_info=True
            )
            return None
        return node.version

    def is_builtin(self, node: ServiceNode) -> bool:
        """Return True when ``node`` is an in-process service without a recipe."""
        return node.builtin

    def dependencies_of(self, node: ServiceNode) -> list[tuple[str, DependencyInfo]]:
        """Return ``(name, edge)`` pairs for the node's current dependencies."""
        return [(dep.name, info) for dep, info in node.dependencies_snapshot().items()]

    def services(self) -> tuple[ServiceNode, ...]:
        """Return all located services sorted by name."""
        with self._lock:
            return tuple(
                node for _, node in sorted(self._services.items(), key=lambda item: item[0])
            )

    def main(self) -> ServiceNode:
        """Return the root service every activation order starts from."""
        return self.locate(self.main_service_name)

    def ordered_dependencies(self) -> tuple[ServiceNode, ...]:
        """Return the activation order from main; empty when a cycle exists."""
        return ordered_dependencies(self.main())

    def activation_order(self) -> ActivationOrder:
        """Return the activation order from main with an explicit cycle signal."""
        return resolve_activation_order(self.main())

    def _build(self, name: str, definition: ServiceDefinition) -> ServiceNode:
        if definition.type is None:
            try:
                return ServiceNode(name, version=definition.version)
            except ValueError as exc:
                raise ServiceLoadError(
                    f"invalid version '{definition.version}' for service '{name}'"
                ) from exc
        factory = self._factories.get(definition.type)
        if factory is None:
            raise ServiceLoadError(
                f"No registered service type for tag '{definition.type}' (service '{name}')"
            )
        node = factory(name, definition)
        if not isinstance(node, ServiceNode):
            raise ServiceLoadError(
                f"factory for type '{definition.type}' did not return a ServiceNode"
            )
        return node


def _parse_dependency(raw: str) -> tuple[str, bool]:
    """Split ``name[:HARD|:SOFT]`` into the service name and hardness flag."""
    name, separator, kind = raw.partition(":")
    name = name.strip()
    if not name:
        raise ServiceLoadError(f"invalid dependency declaration '{raw}'")
    if not separator:
        return name, False
    try:
        return name, DependencyType(kind.strip().upper()) is DependencyType.HARD
    except ValueError as exc:
        raise ServiceLoadError(
            f"invalid dependency type '{kind}' in declaration '{raw}'"
        ) from exc
