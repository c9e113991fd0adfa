"""Artifact acquisition: download and unpack every declared artifact."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from packages.fleet_core.components.downloaders import DownloaderRegistry
from packages.fleet_core.components.errors import (
    PackageDownloadError,
    PackageLoadingError,
)
from packages.fleet_core.components.identifiers import ComponentIdentifier
from packages.fleet_core.components.recipe import ComponentArtifact, Unarchive
from packages.fleet_core.components.store import ComponentStore
from packages.fleet_core.components.unarchiver import Unarchiver
from packages.fleet_shared.http import HttpError
from packages.fleet_shared.logging import fields, get_logger, log_context

_LOGGER = get_logger(__name__)


class ArtifactPreparer:
    """Guarantee declared artifacts exist in the local artifact cache."""

    def __init__(
        self,
        *,
        store: ComponentStore,
        downloaders: DownloaderRegistry,
        unarchiver: Unarchiver,
        skip_present_artifacts: bool = False,
    ) -> None:
        self._store = store
        self._downloaders = downloaders
        self._unarchiver = unarchiver
        self._skip_present_artifacts = skip_present_artifacts

    def ensure_artifacts(
        self,
        identifier: ComponentIdentifier,
        artifacts: Sequence[ComponentArtifact] | None,
    ) -> None:
        """Download, and unpack where declared, every artifact that needs it.

        Fails fast on the first unrecoverable artifact. Files already written
        for earlier artifacts stay in place.
        """
        if artifacts is None:
            with log_context({fields.COMPONENT: identifier}):
                _LOGGER.warning("Artifact list was null, expected non-null and non-empty")
            return

        artifact_dir = self._store.resolve_artifact_dir(identifier)
        try:
            artifact_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackageLoadingError(
                f"Failed to create component artifact cache directory {artifact_dir}"
            ) from exc

        pending = self.artifacts_to_download(artifact_dir, artifacts)
        with log_context(
            {fields.EVENT: fields.DOWNLOAD_ARTIFACTS_EVENT, fields.COMPONENT: identifier}
        ):
            _LOGGER.debug(
                "Artifacts needing download: %s",
                ", ".join(artifact.uri for artifact in pending) or "none",
            )

        for artifact in pending:
            with log_context({fields.COMPONENT: identifier, fields.ARTIFACT_URI: artifact.uri}):
                self._acquire(identifier, artifact, artifact_dir)

    def artifacts_to_download(
        self, artifact_dir: Path, artifacts: Sequence[ComponentArtifact]
    ) -> list[ComponentArtifact]:
        """Return the declared artifacts that still need downloading.

        Without ``skip_present_artifacts`` every declared artifact is returned.
        With it, artifacts whose target file already exists are skipped.
        """
        if not self._skip_present_artifacts:
            return list(artifacts)
        return [
            artifact
            for artifact in artifacts
            if not artifact.file_name or not (artifact_dir / artifact.file_name).is_file()
        ]

    def _acquire(
        self,
        identifier: ComponentIdentifier,
        artifact: ComponentArtifact,
        artifact_dir: Path,
    ) -> None:
        downloader = self._downloaders.select(artifact)
        try:
            downloaded = downloader.download(identifier, artifact, artifact_dir)
        except (OSError, HttpError) as exc:
            raise PackageDownloadError(
                f"Failed to download component {identifier} artifact {artifact.uri}"
            ) from exc

        if downloaded is None or artifact.unarchive == Unarchive.NONE:
            return

        unpack_dir = self._store.resolve_unpack_dir(identifier) / _strip_extension(
            downloaded.name
        )
        try:
            unpack_dir.mkdir(parents=True, exist_ok=True)
            self._unarchiver.extract(artifact.unarchive, downloaded, unpack_dir)
        except OSError as exc:
            raise PackageDownloadError(
                f"Failed to unarchive component {identifier} artifact {artifact.uri}"
            ) from exc


def _strip_extension(file_name: str) -> str:
    """Drop the last extension; names with a single leading dot keep their name."""
    if file_name.find(".") > 0:
        return file_name[: file_name.rfind(".")]
    return file_name
