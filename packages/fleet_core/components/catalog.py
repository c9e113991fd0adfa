"""Remote component catalog client.

The catalog exposes three read endpoints relative to its base URL:

- ``GET /components/{name}/versions`` returns a JSON list of
  ``{"name", "version", "scope"?, "dependencies": {name: requirement}}``
- ``GET /components/{name}/versions/{version}/recipe`` returns recipe text
- ``GET /components/{name}/versions/{version}/artifacts?uri=...`` returns
  ``{"url": "<pre-signed download url>"}``
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import quote

from packages.fleet_core.components.errors import PackageDownloadError
from packages.fleet_core.components.identifiers import (
    ComponentIdentifier,
    ComponentMetadata,
    Scope,
)
from packages.fleet_core.components.recipe import ComponentArtifact
from packages.fleet_core.components.requirements import VersionRequirement
from packages.fleet_shared.http import HttpClient, HttpError
from packages.fleet_shared.logging import get_logger

_LOGGER = get_logger(__name__)


class ComponentCatalog(Protocol):
    """Protocol for the network-backed component catalog."""

    def list_versions(
        self, name: str, requirement: VersionRequirement
    ) -> list[ComponentMetadata]:
        """List remotely available versions of ``name`` satisfying ``requirement``."""

    def fetch_recipe_text(self, identifier: ComponentIdentifier) -> str:
        """Return the raw recipe document for one identifier."""


class HttpComponentCatalog(ComponentCatalog):
    """Component catalog backed by the shared HTTP client."""

    def __init__(self, *, client: HttpClient) -> None:
        self._client = client

    def list_versions(
        self, name: str, requirement: VersionRequirement
    ) -> list[ComponentMetadata]:
        """List satisfying remote versions, filtering client-side."""
        url = f"/components/{quote(name, safe='')}/versions"
        try:
            payload = self._client.get_json(
                url, params={"requirement": requirement.expression}
            )
        except HttpError as exc:
            raise PackageDownloadError(
                f"Failed to list versions for component {name}"
            ) from exc

        if not isinstance(payload, list):
            raise PackageDownloadError(
                f"Catalog returned a malformed version list for component {name}"
            )

        listed: list[ComponentMetadata] = []
        for entry in payload:
            metadata = _metadata_from_entry(entry, name=name)
            if metadata is None:
                continue
            if requirement.satisfied_by(metadata.identifier.version):
                listed.append(metadata)
        return listed

    def fetch_recipe_text(self, identifier: ComponentIdentifier) -> str:
        """Download one recipe document as text."""
        try:
            return self._client.get_text(_version_path(identifier) + "/recipe")
        except HttpError as exc:
            raise PackageDownloadError(
                f"Failed to download recipe for component {identifier}"
            ) from exc

    def artifact_url(
        self, identifier: ComponentIdentifier, artifact: ComponentArtifact
    ) -> str:
        """Return a pre-signed download URL for one catalog-hosted artifact."""
        try:
            payload = self._client.get_json(
                _version_path(identifier) + "/artifacts",
                params={"uri": artifact.uri},
            )
        except HttpError as exc:
            raise PackageDownloadError(
                f"Failed to resolve download url for component {identifier} artifact {artifact.uri}"
            ) from exc

        url = payload.get("url") if isinstance(payload, Mapping) else None
        if not isinstance(url, str) or not url:
            raise PackageDownloadError(
                f"Catalog returned no download url for component {identifier} artifact {artifact.uri}"
            )
        return url


def _version_path(identifier: ComponentIdentifier) -> str:
    return (
        f"/components/{quote(identifier.name, safe='')}"
        f"/versions/{quote(str(identifier.version), safe='')}"
    )


def _metadata_from_entry(entry: Any, *, name: str) -> ComponentMetadata | None:
    """Convert one catalog list entry, dropping malformed ones with a warning."""
    if not isinstance(entry, Mapping):
        _LOGGER.warning("Ignoring malformed catalog entry for component %s", name)
        return None
    try:
        dependencies = entry.get("dependencies") or {}
        return ComponentMetadata(
            identifier=ComponentIdentifier.of(
                str(entry.get("name", name)),
                str(entry["version"]),
                Scope(str(entry.get("scope", Scope.PUBLIC.value)).upper()),
            ),
            dependencies={
                str(dep_name): VersionRequirement(str(dep_requirement))
                for dep_name, dep_requirement in dict(dependencies).items()
            },
        )
    except (KeyError, TypeError, ValueError) as exc:
        _LOGGER.warning(
            "Ignoring malformed catalog entry for component %s",
            name,
            exc_info=exc,
        )
        return None
