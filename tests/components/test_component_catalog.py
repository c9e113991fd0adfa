"""Tests for the HTTP-backed component catalog client."""

from __future__ import annotations

import httpx
import pytest

from packages.fleet_core.components.catalog import HttpComponentCatalog
from packages.fleet_core.components.errors import PackageDownloadError
from packages.fleet_core.components.identifiers import ComponentIdentifier, Scope
from packages.fleet_core.components.recipe import ComponentArtifact
from packages.fleet_core.components.requirements import VersionRequirement
from packages.fleet_shared.http import HttpClient


def _catalog(handler) -> HttpComponentCatalog:
    client = HttpClient(
        base_url="https://catalog.example.test",
        transport=httpx.MockTransport(handler),
    )
    return HttpComponentCatalog(client=client)


def test_list_versions_filters_entries_and_skips_malformed_ones() -> None:
    """Remote listings should honor the requirement and drop bad entries."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"name": "web", "version": "1.5.0", "dependencies": {"runtime": "^2.0.0"}},
                {"name": "web", "version": "2.0.0"},
                {"name": "web", "version": "1.1.0", "scope": "private"},
                {"name": "web"},
                "garbage",
            ],
            request=request,
        )

    listed = _catalog(handler).list_versions("web", VersionRequirement("^1.0.0"))

    assert seen[0].url.path == "/components/web/versions"
    assert seen[0].url.params["requirement"] == "^1.0.0"
    assert [str(item.identifier) for item in listed] == ["web-1.5.0", "web-1.1.0"]
    assert listed[0].identifier.scope == Scope.PUBLIC
    assert listed[1].identifier.scope == Scope.PRIVATE
    assert listed[0].dependencies["runtime"].satisfied_by("2.3.0") is True


def test_list_versions_wraps_http_failures() -> None:
    """Transport and status failures should become download errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="down", request=request)

    with pytest.raises(PackageDownloadError, match="Failed to list versions"):
        _catalog(handler).list_versions("web", VersionRequirement.any())


def test_list_versions_rejects_non_list_payload() -> None:
    """A catalog answer that is not a list should be a download error."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"versions": []}, request=request)

    with pytest.raises(PackageDownloadError, match="malformed"):
        _catalog(handler).list_versions("web", VersionRequirement.any())


def test_fetch_recipe_text_returns_body_verbatim() -> None:
    """Recipe text should be returned exactly as served."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/components/web/versions/1.0.0/recipe"
        return httpx.Response(200, text="ComponentName: web\n", request=request)

    text = _catalog(handler).fetch_recipe_text(ComponentIdentifier.of("web", "1.0.0"))

    assert text == "ComponentName: web\n"


def test_artifact_url_requires_url_field() -> None:
    """Pre-signed URL lookups should return the url or raise a download error."""
    identifier = ComponentIdentifier.of("web", "1.0.0")
    artifact = ComponentArtifact(uri="greengrass:site.zip")

    def good(request: httpx.Request) -> httpx.Response:
        assert request.url.params["uri"] == "greengrass:site.zip"
        return httpx.Response(200, json={"url": "https://cdn.example.test/x"}, request=request)

    def empty(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={}, request=request)

    assert _catalog(good).artifact_url(identifier, artifact) == "https://cdn.example.test/x"
    with pytest.raises(PackageDownloadError, match="no download url"):
        _catalog(empty).artifact_url(identifier, artifact)
