"""Public API for component version resolution and preparation."""

from packages.fleet_core.components.artifacts import ArtifactPreparer
from packages.fleet_core.components.catalog import (
    ComponentCatalog,
    HttpComponentCatalog,
)
from packages.fleet_core.components.config import (
    ComponentManagerSettings,
    ServiceRegistrySettings,
    resolve_component_manager_settings,
    resolve_service_registry_settings,
)
from packages.fleet_core.components.downloaders import (
    GREENGRASS_SCHEME,
    S3_SCHEME,
    ArtifactDownloader,
    DownloaderRegistry,
    RepositoryDownloader,
    S3Downloader,
)
from packages.fleet_core.components.errors import (
    InvalidArtifactUriError,
    PackageDownloadError,
    PackageLoadingError,
    PackagingError,
    packaging_error_detail,
)
from packages.fleet_core.components.identifiers import (
    ComponentIdentifier,
    ComponentMetadata,
    Scope,
)
from packages.fleet_core.components.manager import (
    ComponentManager,
    build_service_registry,
)
from packages.fleet_core.components.materializer import RecipeMaterializer
from packages.fleet_core.components.preparation import (
    PreparationHandle,
    PreparationOrchestrator,
)
from packages.fleet_core.components.recipe import (
    ComponentArtifact,
    Recipe,
    RecipeDependency,
    Unarchive,
    parse_recipe,
)
from packages.fleet_core.components.requirements import (
    ANY_VERSION,
    VersionRequirement,
)
from packages.fleet_core.components.resolver import ActiveServices, VersionResolver
from packages.fleet_core.components.store import (
    ComponentStore,
    LocalComponentStore,
    RecipeLookup,
)
from packages.fleet_core.components.unarchiver import Unarchiver

__all__ = [
    "ANY_VERSION",
    "ActiveServices",
    "ArtifactDownloader",
    "ArtifactPreparer",
    "ComponentArtifact",
    "ComponentCatalog",
    "ComponentIdentifier",
    "ComponentManager",
    "ComponentManagerSettings",
    "ComponentMetadata",
    "ComponentStore",
    "DownloaderRegistry",
    "GREENGRASS_SCHEME",
    "HttpComponentCatalog",
    "InvalidArtifactUriError",
    "LocalComponentStore",
    "PackageDownloadError",
    "PackageLoadingError",
    "PackagingError",
    "PreparationHandle",
    "PreparationOrchestrator",
    "Recipe",
    "RecipeDependency",
    "RecipeLookup",
    "RecipeMaterializer",
    "RepositoryDownloader",
    "S3Downloader",
    "S3_SCHEME",
    "Scope",
    "ServiceRegistrySettings",
    "Unarchive",
    "Unarchiver",
    "VersionRequirement",
    "VersionResolver",
    "build_service_registry",
    "packaging_error_detail",
    "parse_recipe",
    "resolve_component_manager_settings",
    "resolve_service_registry_settings",
]
