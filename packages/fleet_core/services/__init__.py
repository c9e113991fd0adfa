"""Public API for the live service registry and activation ordering."""

from packages.fleet_core.services.errors import (
    ServiceError,
    ServiceLoadError,
    ServiceRegistrationError,
)
from packages.fleet_core.services.graph import (
    ActivationOrder,
    ordered_dependencies,
    resolve_activation_order,
    snapshot_graph,
)
from packages.fleet_core.services.node import (
    DependencyInfo,
    DependencyType,
    LifecycleState,
    ServiceNode,
)
from packages.fleet_core.services.registry import (
    DEFAULT_MAIN_SERVICE,
    ServiceDefinition,
    ServiceFactory,
    ServiceRegistry,
)

__all__ = [
    "ActivationOrder",
    "DEFAULT_MAIN_SERVICE",
    "DependencyInfo",
    "DependencyType",
    "LifecycleState",
    "ServiceDefinition",
    "ServiceError",
    "ServiceFactory",
    "ServiceLoadError",
    "ServiceNode",
    "ServiceRegistrationError",
    "ServiceRegistry",
    "ordered_dependencies",
    "resolve_activation_order",
    "snapshot_graph",
]
