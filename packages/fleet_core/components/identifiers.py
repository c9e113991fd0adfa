"""Value types identifying component versions and their dependency metadata."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

import semver

from packages.fleet_core.components.requirements import VersionRequirement


class Scope(str, Enum):
    """Visibility scope of one component identifier."""

    PRIVATE = "PRIVATE"
    PUBLIC = "PUBLIC"


_SCOPE_ORDER = {Scope.PRIVATE: 0, Scope.PUBLIC: 1}


@dataclass(frozen=True, slots=True)
class ComponentIdentifier:
    """Immutable ``(name, version, scope)`` key for one component version."""

    name: str
    version: semver.Version
    scope: Scope = Scope.PRIVATE

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("component name must not be empty")
        if not isinstance(self.version, semver.Version):
            raise TypeError("component version must be a semver.Version")

    @classmethod
    def of(
        cls, name: str, version: str, scope: Scope | str = Scope.PRIVATE
    ) -> ComponentIdentifier:
        """Build an identifier from a textual semantic version."""
        return cls(name=name, version=semver.Version.parse(version), scope=Scope(scope))

    def _sort_key(self) -> tuple[str, semver.Version, int]:
        return (self.name, self.version, _SCOPE_ORDER[self.scope])

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ComponentIdentifier):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ComponentIdentifier):
            return NotImplemented
        return self._sort_key() <= other._sort_key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ComponentIdentifier):
            return NotImplemented
        return self._sort_key() > other._sort_key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ComponentIdentifier):
            return NotImplemented
        return self._sort_key() >= other._sort_key()

    def __str__(self) -> str:
        return f"{self.name}-{self.version}"


@dataclass(frozen=True, slots=True)
class ComponentMetadata:
    """Identifier plus the dependency requirements it declares."""

    identifier: ComponentIdentifier
    dependencies: Mapping[str, VersionRequirement] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "dependencies", MappingProxyType(dict(self.dependencies))
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentMetadata):
            return NotImplemented
        return self.identifier == other.identifier and dict(self.dependencies) == dict(
            other.dependencies
        )

    def __hash__(self) -> int:
        return hash((self.identifier, frozenset(self.dependencies.items())))
