"""Tests for the artifact acquisition pipeline."""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from packages.fleet_core.components.artifacts import ArtifactPreparer
from packages.fleet_core.components.downloaders import (
    ArtifactDownloader,
    DownloaderRegistry,
    S3Downloader,
)
from packages.fleet_core.components.errors import (
    InvalidArtifactUriError,
    PackageDownloadError,
    PackageLoadingError,
)
from packages.fleet_core.components.identifiers import ComponentIdentifier
from packages.fleet_core.components.recipe import ComponentArtifact
from packages.fleet_core.components.store import LocalComponentStore
from packages.fleet_core.components.unarchiver import Unarchiver
from packages.fleet_shared.http import HttpClient, HttpRequestError, HttpStatusError

IDENTIFIER = ComponentIdentifier.of("web", "1.0.0")


def _zip_bytes(tmp_path: Path) -> bytes:
    archive = tmp_path / "source.zip"
    with zipfile.ZipFile(archive, "w") as bundle:
        bundle.writestr("site/index.html", "<h1>hi</h1>")
    return archive.read_bytes()


@dataclass
class _FakeDownloader:
    payload: bytes = b"data"
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    def download(
        self,
        identifier: ComponentIdentifier,
        artifact: ComponentArtifact,
        destination_dir: Path,
    ) -> Path | None:
        self.calls.append(artifact.uri)
        if self.error is not None:
            raise self.error
        target = destination_dir / artifact.file_name
        target.write_bytes(self.payload)
        return target


def _preparer(
    tmp_path: Path,
    downloader: ArtifactDownloader,
    *,
    skip_present_artifacts: bool = False,
) -> tuple[ArtifactPreparer, LocalComponentStore]:
    store = LocalComponentStore(root=tmp_path / "cache")
    registry = DownloaderRegistry()
    registry.register("s3", downloader)
    registry.register("greengrass", downloader)
    preparer = ArtifactPreparer(
        store=store,
        downloaders=registry,
        unarchiver=Unarchiver(),
        skip_present_artifacts=skip_present_artifacts,
    )
    return preparer, store


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        str(path.relative_to(root)): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


def test_null_artifact_list_has_no_side_effects(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """A null artifact list should warn and leave the cache untouched."""
    downloader = _FakeDownloader()
    preparer, store = _preparer(tmp_path, downloader)

    with caplog.at_level(logging.WARNING):
        preparer.ensure_artifacts(IDENTIFIER, None)

    assert not store.root.exists()
    assert downloader.calls == []
    assert any("Artifact list was null" in message for message in caplog.messages)


def test_empty_artifact_list_only_creates_artifact_directory(tmp_path: Path) -> None:
    """An empty list should succeed and create just the artifact directory."""
    preparer, store = _preparer(tmp_path, _FakeDownloader())

    preparer.ensure_artifacts(IDENTIFIER, [])

    assert store.resolve_artifact_dir(IDENTIFIER).is_dir()
    assert _snapshot(store.root) == {}


def test_artifacts_download_and_unpack_by_scheme(tmp_path: Path) -> None:
    """Archives should be unpacked under a directory named without extension."""
    downloader = _FakeDownloader(payload=_zip_bytes(tmp_path))
    preparer, store = _preparer(tmp_path, downloader)

    preparer.ensure_artifacts(
        IDENTIFIER,
        [
            ComponentArtifact(uri="S3://bucket/releases/site.zip", unarchive="ZIP"),
            ComponentArtifact(uri="GreenGrass:config.bin"),
        ],
    )

    unpacked = store.resolve_unpack_dir(IDENTIFIER) / "site" / "site" / "index.html"
    assert downloader.calls == ["S3://bucket/releases/site.zip", "GreenGrass:config.bin"]
    assert (store.resolve_artifact_dir(IDENTIFIER) / "site.zip").is_file()
    assert (store.resolve_artifact_dir(IDENTIFIER) / "config.bin").is_file()
    assert unpacked.read_text(encoding="utf-8") == "<h1>hi</h1>"


def test_ensure_artifacts_is_idempotent(tmp_path: Path) -> None:
    """Running twice should leave the same cache contents as running once."""
    downloader = _FakeDownloader(payload=_zip_bytes(tmp_path))
    preparer, store = _preparer(tmp_path, downloader)
    artifacts = [ComponentArtifact(uri="s3://bucket/site.zip", unarchive="ZIP")]

    preparer.ensure_artifacts(IDENTIFIER, artifacts)
    once = _snapshot(store.root)
    preparer.ensure_artifacts(IDENTIFIER, artifacts)

    assert _snapshot(store.root) == once


def test_unsupported_scheme_fails_with_loading_error_naming_scheme(tmp_path: Path) -> None:
    """An ftp artifact should fail as a loading error that names FTP."""
    downloader = _FakeDownloader()
    preparer, _ = _preparer(tmp_path, downloader)

    with pytest.raises(PackageLoadingError, match="FTP") as exc_info:
        preparer.ensure_artifacts(
            IDENTIFIER, [ComponentArtifact(uri="ftp://host/file.bin")]
        )

    assert isinstance(exc_info.value, InvalidArtifactUriError)
    assert downloader.calls == []


def test_download_failure_stops_remaining_artifacts(tmp_path: Path) -> None:
    """The first failed download should abort the rest and name the artifact."""
    failing = _FakeDownloader(
        error=HttpRequestError(
            message="boom", method="GET", url="https://x", retryable=True, cause=None
        )
    )
    preparer, _ = _preparer(tmp_path, failing)

    with pytest.raises(PackageDownloadError) as exc_info:
        preparer.ensure_artifacts(
            IDENTIFIER,
            [
                ComponentArtifact(uri="s3://bucket/one.bin"),
                ComponentArtifact(uri="s3://bucket/two.bin"),
            ],
        )

    assert str(exc_info.value) == (
        "Failed to download component web-1.0.0 artifact s3://bucket/one.bin"
    )
    assert failing.calls == ["s3://bucket/one.bin"]


def test_corrupt_archive_fails_as_download_error(tmp_path: Path) -> None:
    """An archive that cannot be extracted should raise a download error."""
    preparer, store = _preparer(tmp_path, _FakeDownloader(payload=b"not a zip"))

    with pytest.raises(PackageDownloadError, match="unarchive"):
        preparer.ensure_artifacts(
            IDENTIFIER, [ComponentArtifact(uri="s3://bucket/site.zip", unarchive="ZIP")]
        )

    assert (store.resolve_artifact_dir(IDENTIFIER) / "site.zip").is_file()


def test_skip_present_artifacts_skips_existing_files(tmp_path: Path) -> None:
    """With the existence policy enabled, cached files are not downloaded again."""
    downloader = _FakeDownloader()
    preparer, store = _preparer(tmp_path, downloader, skip_present_artifacts=True)
    artifacts = [
        ComponentArtifact(uri="s3://bucket/cached.bin"),
        ComponentArtifact(uri="s3://bucket/fresh.bin"),
    ]
    artifact_dir = store.resolve_artifact_dir(IDENTIFIER)
    artifact_dir.mkdir(parents=True)
    (artifact_dir / "cached.bin").write_bytes(b"old")

    preparer.ensure_artifacts(IDENTIFIER, artifacts)

    assert downloader.calls == ["s3://bucket/fresh.bin"]
    assert (artifact_dir / "cached.bin").read_bytes() == b"old"


def test_artifact_directory_creation_failure_is_loading_error(tmp_path: Path) -> None:
    """A blocked artifact directory should raise a loading error."""
    preparer, store = _preparer(tmp_path, _FakeDownloader())
    store.root.mkdir(parents=True)
    (store.root / "artifacts").write_text("not a directory", encoding="utf-8")

    with pytest.raises(PackageLoadingError, match="artifact cache directory"):
        preparer.ensure_artifacts(IDENTIFIER, [ComponentArtifact(uri="s3://b/k.bin")])


def test_http_status_failure_from_s3_is_download_error(tmp_path: Path) -> None:
    """A 404 from the object endpoint should surface as a download error."""
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(404, text="missing", request=request)

    client = HttpClient(transport=httpx.MockTransport(handler))
    downloader = S3Downloader(
        client=client, endpoint_template="https://objects.example.test/{bucket}/{key}"
    )
    preparer, store = _preparer(tmp_path, downloader)
    try:
        with pytest.raises(PackageDownloadError) as exc_info:
            preparer.ensure_artifacts(IDENTIFIER, [ComponentArtifact(uri="s3://bucket/app.zip")])
    finally:
        client.close()

    cause = exc_info.value.__cause__
    assert isinstance(cause, HttpStatusError)
    assert cause.status_code == 404
    assert requested == ["https://objects.example.test/bucket/app.zip"]
    assert list(store.resolve_artifact_dir(IDENTIFIER).iterdir()) == []
