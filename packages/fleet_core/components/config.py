"""Pydantic settings for the component manager and service registry."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from packages.fleet_core.services import DEFAULT_MAIN_SERVICE
from packages.fleet_shared.config import FleetSettings, resolve_component_settings

COMPONENT_MANAGER_ID = "component_manager"
SERVICE_REGISTRY_ID = "service_registry"


class ComponentManagerSettings(BaseModel):
    """Runtime settings for recipe, artifact, and catalog handling."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cache_root: Path = Path.home() / ".local" / "share" / "fleet" / "packages"
    catalog_url: str = "http://127.0.0.1:8443"
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    worker_count: int = Field(default=1, gt=0)
    s3_endpoint_template: str = "https://{bucket}.s3.amazonaws.com/{key}"
    download_chunk_bytes: int = Field(default=64 * 1024, ge=1)
    skip_present_artifacts: bool = False
    fsync_writes: bool = False


class ServiceRegistrySettings(BaseModel):
    """Runtime settings for the live service registry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    main_service: str = Field(default=DEFAULT_MAIN_SERVICE, min_length=1)


def resolve_component_manager_settings(
    settings: FleetSettings,
) -> ComponentManagerSettings:
    """Resolve manager settings from ``components.component_manager``."""
    return resolve_component_settings(
        settings=settings,
        component_id=COMPONENT_MANAGER_ID,
        model=ComponentManagerSettings,
    )


def resolve_service_registry_settings(
    settings: FleetSettings,
) -> ServiceRegistrySettings:
    """Resolve registry settings from ``components.service_registry``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_REGISTRY_ID,
        model=ServiceRegistrySettings,
    )
