"""Wiring of component packaging collaborators from runtime settings."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from types import TracebackType

from packages.fleet_core.components.artifacts import ArtifactPreparer
from packages.fleet_core.components.catalog import HttpComponentCatalog
from packages.fleet_core.components.config import (
    ComponentManagerSettings,
    resolve_component_manager_settings,
    resolve_service_registry_settings,
)
from packages.fleet_core.components.downloaders import (
    GREENGRASS_SCHEME,
    S3_SCHEME,
    DownloaderRegistry,
    RepositoryDownloader,
    S3Downloader,
)
from packages.fleet_core.components.identifiers import (
    ComponentIdentifier,
    ComponentMetadata,
)
from packages.fleet_core.components.materializer import RecipeMaterializer
from packages.fleet_core.components.preparation import (
    PreparationHandle,
    PreparationOrchestrator,
)
from packages.fleet_core.components.recipe import ComponentArtifact, Recipe
from packages.fleet_core.components.requirements import VersionRequirement
from packages.fleet_core.components.resolver import ActiveServices, VersionResolver
from packages.fleet_core.components.store import LocalComponentStore
from packages.fleet_core.components.unarchiver import Unarchiver
from packages.fleet_core.services import ServiceRegistry
from packages.fleet_shared.config import FleetSettings
from packages.fleet_shared.http import HttpClient


def build_service_registry(settings: FleetSettings) -> ServiceRegistry:
    """Create the process service registry rooted at the configured main service."""
    registry_settings = resolve_service_registry_settings(settings)
    return ServiceRegistry(main_service_name=registry_settings.main_service)


class ComponentManager:
    """Facade over resolution and preparation for one orchestrator process."""

    def __init__(
        self,
        *,
        store: LocalComponentStore,
        resolver: VersionResolver,
        materializer: RecipeMaterializer,
        artifacts: ArtifactPreparer,
        orchestrator: PreparationOrchestrator,
        client: HttpClient | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._materializer = materializer
        self._artifacts = artifacts
        self._orchestrator = orchestrator
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: FleetSettings,
        registry: ActiveServices,
        *,
        client: HttpClient | None = None,
    ) -> ComponentManager:
        """Build a manager and all of its collaborators from ``settings``.

        When ``client`` is omitted an HTTP client for the catalog is created and
        owned by the manager; ``close`` releases it.
        """
        manager_settings = resolve_component_manager_settings(settings)
        owned_client = None
        if client is None:
            client = owned_client = HttpClient(
                base_url=manager_settings.catalog_url,
                timeout_seconds=manager_settings.request_timeout_seconds,
            )
        return cls.from_parts(
            manager_settings,
            registry,
            client=client,
            owned_client=owned_client,
        )

    @classmethod
    def from_parts(
        cls,
        manager_settings: ComponentManagerSettings,
        registry: ActiveServices,
        *,
        client: HttpClient,
        owned_client: HttpClient | None = None,
    ) -> ComponentManager:
        """Build a manager from already-resolved settings and an HTTP client."""
        store = LocalComponentStore(
            root=manager_settings.cache_root,
            fsync_writes=manager_settings.fsync_writes,
        )
        catalog = HttpComponentCatalog(client=client)

        downloaders = DownloaderRegistry()
        downloaders.register(
            S3_SCHEME,
            S3Downloader(
                client=client,
                endpoint_template=manager_settings.s3_endpoint_template,
                chunk_bytes=manager_settings.download_chunk_bytes,
            ),
        )
        downloaders.register(
            GREENGRASS_SCHEME,
            RepositoryDownloader(
                catalog=catalog,
                client=client,
                chunk_bytes=manager_settings.download_chunk_bytes,
            ),
        )

        materializer = RecipeMaterializer(store=store, catalog=catalog)
        artifacts = ArtifactPreparer(
            store=store,
            downloaders=downloaders,
            unarchiver=Unarchiver(),
            skip_present_artifacts=manager_settings.skip_present_artifacts,
        )
        return cls(
            store=store,
            resolver=VersionResolver(services=registry, store=store, catalog=catalog),
            materializer=materializer,
            artifacts=artifacts,
            orchestrator=PreparationOrchestrator(
                materializer=materializer,
                artifacts=artifacts,
                worker_count=manager_settings.worker_count,
            ),
            client=owned_client,
        )

    @property
    def store(self) -> LocalComponentStore:
        """Return the local component store."""
        return self._store

    def list_candidates(
        self, name: str, requirement: VersionRequirement | str
    ) -> list[ComponentMetadata]:
        """List candidate versions of ``name`` in preference order."""
        if isinstance(requirement, str):
            requirement = VersionRequirement(requirement)
        return self._resolver.list_candidates(name, requirement)

    def prepare(self, identifiers: Iterable[ComponentIdentifier]) -> PreparationHandle:
        """Start asynchronous preparation of ``identifiers`` in order."""
        return self._orchestrator.prepare(identifiers)

    def ensure_recipe(self, identifier: ComponentIdentifier) -> Recipe:
        """Return the local recipe, downloading it when missing or corrupt."""
        return self._materializer.ensure_recipe(identifier)

    def ensure_artifacts(
        self,
        identifier: ComponentIdentifier,
        artifacts: Sequence[ComponentArtifact] | None,
    ) -> None:
        """Download and unpack the declared artifacts of one component."""
        self._artifacts.ensure_artifacts(identifier, artifacts)

    def close(self) -> None:
        """Shut down the worker pool and any owned HTTP client."""
        self._orchestrator.shutdown()
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> ComponentManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
