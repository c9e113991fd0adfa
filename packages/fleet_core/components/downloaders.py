"""Artifact downloaders and URI-scheme dispatch."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol
from urllib.parse import quote, urlsplit

from packages.fleet_core.components.catalog import HttpComponentCatalog
from packages.fleet_core.components.errors import InvalidArtifactUriError
from packages.fleet_core.components.identifiers import ComponentIdentifier
from packages.fleet_core.components.recipe import ComponentArtifact
from packages.fleet_shared.http import HttpClient
from packages.fleet_shared.logging import get_logger

_LOGGER = get_logger(__name__)

S3_SCHEME = "S3"
GREENGRASS_SCHEME = "GREENGRASS"


class ArtifactDownloader(Protocol):
    """Place one artifact under a destination directory."""

    def download(
        self,
        identifier: ComponentIdentifier,
        artifact: ComponentArtifact,
        destination_dir: Path,
    ) -> Path | None:
        """Download one artifact and return the written file, if any."""


class S3Downloader(ArtifactDownloader):
    """Download ``s3://bucket/key`` artifacts through an HTTPS object endpoint."""

    def __init__(
        self,
        *,
        client: HttpClient,
        endpoint_template: str = "https://{bucket}.s3.amazonaws.com/{key}",
        chunk_bytes: int = 64 * 1024,
    ) -> None:
        self._client = client
        self._endpoint_template = endpoint_template
        self._chunk_bytes = chunk_bytes

    def object_url(self, artifact: ComponentArtifact) -> str:
        """Map one ``s3://`` URI onto the configured HTTPS endpoint."""
        parts = urlsplit(artifact.uri)
        bucket = parts.netloc
        key = parts.path.lstrip("/")
        if not bucket or not key:
            raise InvalidArtifactUriError(
                f"artifact URI {artifact.uri} must name a bucket and key",
                scheme=artifact.scheme,
            )
        return self._endpoint_template.format(bucket=bucket, key=quote(key))

    def download(
        self,
        identifier: ComponentIdentifier,
        artifact: ComponentArtifact,
        destination_dir: Path,
    ) -> Path | None:
        """Stream the object to ``destination_dir/<key basename>``."""
        url = self.object_url(artifact)
        _LOGGER.debug("Downloading S3 artifact for %s from %s", identifier, url)
        return self._client.stream_to_file(
            url,
            destination_dir / artifact.file_name,
            chunk_bytes=self._chunk_bytes,
        )


class RepositoryDownloader(ArtifactDownloader):
    """Download catalog-hosted artifacts via a pre-signed URL from the catalog."""

    def __init__(
        self,
        *,
        catalog: HttpComponentCatalog,
        client: HttpClient,
        chunk_bytes: int = 64 * 1024,
    ) -> None:
        self._catalog = catalog
        self._client = client
        self._chunk_bytes = chunk_bytes

    def download(
        self,
        identifier: ComponentIdentifier,
        artifact: ComponentArtifact,
        destination_dir: Path,
    ) -> Path | None:
        """Resolve the pre-signed URL and stream the artifact into place."""
        url = self._catalog.artifact_url(identifier, artifact)
        _LOGGER.debug("Downloading repository artifact for %s", identifier)
        return self._client.stream_to_file(
            url,
            destination_dir / artifact.file_name,
            chunk_bytes=self._chunk_bytes,
        )


class DownloaderRegistry:
    """Extensible table mapping upper-cased URI schemes to downloaders."""

    def __init__(self) -> None:
        self._downloaders: dict[str, ArtifactDownloader] = {}

    def register(self, scheme: str, downloader: ArtifactDownloader) -> None:
        """Register or replace the downloader for one scheme."""
        normalized = scheme.strip().upper()
        if not normalized:
            raise ValueError("scheme must not be empty")
        self._downloaders[normalized] = downloader

    @property
    def schemes(self) -> tuple[str, ...]:
        """Return supported schemes, sorted."""
        return tuple(sorted(self._downloaders))

    def select(self, artifact: ComponentArtifact) -> ArtifactDownloader:
        """Return the downloader for the artifact's scheme, case-insensitively."""
        scheme = artifact.scheme
        downloader = self._downloaders.get(scheme) if scheme is not None else None
        if downloader is None:
            raise InvalidArtifactUriError(
                f"artifact URI scheme {scheme} is not supported yet",
                scheme=scheme,
            )
        return downloader
