"""Candidate version listing for component dependency resolution."""

from __future__ import annotations

from typing import Protocol

import semver

from packages.fleet_core.components.catalog import ComponentCatalog
from packages.fleet_core.components.errors import PackagingError
from packages.fleet_core.components.identifiers import (
    ComponentIdentifier,
    ComponentMetadata,
    Scope,
)
from packages.fleet_core.components.requirements import VersionRequirement
from packages.fleet_core.components.store import ComponentStore
from packages.fleet_core.services import DependencyInfo, ServiceLoadError, ServiceNode
from packages.fleet_shared.http import HttpError
from packages.fleet_shared.logging import fields, get_logger, log_context

_LOGGER = get_logger(__name__)


class ActiveServices(Protocol):
    """Subset of the service registry the resolver consults."""

    def find_active(self, name: str) -> semver.Version | None:
        """Return the running version of ``name``, if any."""

    def locate(self, name: str) -> ServiceNode:
        """Return the live node for ``name``."""

    def is_builtin(self, node: ServiceNode) -> bool:
        """Return True for in-process services without an on-disk recipe."""

    def dependencies_of(self, node: ServiceNode) -> list[tuple[str, DependencyInfo]]:
        """Return the node's current dependency names and edges."""


class VersionResolver:
    """List candidate versions: active first, then local, then remote."""

    def __init__(
        self,
        *,
        services: ActiveServices,
        store: ComponentStore,
        catalog: ComponentCatalog,
    ) -> None:
        self._services = services
        self._store = store
        self._catalog = catalog

    def list_candidates(
        self, name: str, requirement: VersionRequirement
    ) -> list[ComponentMetadata]:
        """Return satisfying metadata ordered by preference, without duplicates.

        Raises ``PackagingError`` only when the active version satisfies the
        requirement but its metadata cannot be produced from any source.
        """
        active = self._active_and_satisfied(name, requirement)

        candidates = list(self._store.list_versions(name, requirement))
        if active is not None:
            with log_context(
                {
                    fields.COMPONENT: name,
                    fields.COMPONENT_VERSION: active.identifier.version,
                }
            ):
                _LOGGER.debug(
                    "Active version satisfies requirement; placing it first"
                )
            candidates = [
                item
                for item in candidates
                if _version_key(item) != _version_key(active)
            ]
            candidates.insert(0, active)

        seen = {_version_key(item) for item in candidates}
        try:
            remote = self._catalog.list_versions(name, requirement)
        except (PackagingError, HttpError) as exc:
            with log_context({fields.EVENT: fields.LIST_VERSIONS_EVENT, fields.COMPONENT: name}):
                _LOGGER.info(
                    "Failed to list available versions from the catalog",
                    exc_info=exc,
                )
            remote = []
        for item in remote:
            if _version_key(item) in seen:
                continue
            seen.add(_version_key(item))
            candidates.append(item)

        with log_context({fields.COMPONENT: name, fields.CANDIDATES: len(candidates)}):
            _LOGGER.debug(
                "Found possible versions: %s",
                ", ".join(str(item.identifier) for item in candidates),
            )
        return candidates

    def _active_and_satisfied(
        self, name: str, requirement: VersionRequirement
    ) -> ComponentMetadata | None:
        version = self._services.find_active(name)
        if version is None or not requirement.satisfied_by(version):
            return None

        identifier = ComponentIdentifier(name=name, version=version)
        try:
            return self._store.get_metadata(identifier)
        except PackagingError:
            builtin = self._builtin_metadata(name, version)
            if builtin is not None:
                return builtin
            raise

    def _builtin_metadata(
        self, name: str, version: semver.Version
    ) -> ComponentMetadata | None:
        """Synthesize metadata for a builtin service from its live edges."""
        try:
            node = self._services.locate(name)
        except ServiceLoadError:
            return None
        if not self._services.is_builtin(node):
            return None
        return ComponentMetadata(
            identifier=ComponentIdentifier(name=name, version=version, scope=Scope.PUBLIC),
            dependencies={
                dependency_name: VersionRequirement.any()
                for dependency_name, _ in self._services.dependencies_of(node)
            },
        )


def _version_key(metadata: ComponentMetadata) -> tuple[str, semver.Version]:
    """Key candidates by name and version so scope never yields duplicates."""
    return (metadata.identifier.name, metadata.identifier.version)
