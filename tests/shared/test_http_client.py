"""Unit tests for shared HTTP client wrappers."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from packages.fleet_shared.http import (
    HttpClient,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)


def test_http_client_get_json_returns_decoded_payload() -> None:
    """HttpClient.get_json should decode and return JSON content."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True}, request=request)

    client = HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )
    try:
        assert client.get_json("/health") == {"ok": True}
    finally:
        client.close()


def test_http_client_maps_status_failure_to_typed_error() -> None:
    """HttpClient should raise HttpStatusError on non-2xx status codes."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable", request=request)

    client = HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )
    try:
        with pytest.raises(HttpStatusError) as exc_info:
            client.get("/health")
    finally:
        client.close()

    error = exc_info.value
    assert error.method == "GET"
    assert error.status_code == 503
    assert error.retryable is True
    assert error.response_body == "unavailable"


def test_http_client_maps_transport_failure_to_typed_error() -> None:
    """HttpClient should raise HttpRequestError on transport failures."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection failed", request=request)

    client = HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )
    try:
        with pytest.raises(HttpRequestError) as exc_info:
            client.get("/health")
    finally:
        client.close()

    error = exc_info.value
    assert error.method == "GET"
    assert error.url == "https://example.test/health"
    assert error.retryable is True
    assert isinstance(error.cause, httpx.ConnectError)


def test_http_client_maps_invalid_json_to_typed_error() -> None:
    """HttpClient.get_json should raise HttpJsonDecodeError for bad payloads."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not-json", request=request)

    with HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    ) as client:
        with pytest.raises(HttpJsonDecodeError) as exc_info:
            client.get_json("/recipe")

    assert exc_info.value.status_code == 200
    assert exc_info.value.retryable is False


def test_stream_to_file_writes_body_atomically(tmp_path: Path) -> None:
    """Streaming should create parent dirs and leave only the final file."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"artifact-bytes" * 100, request=request)

    destination = tmp_path / "nested" / "artifact.bin"
    with HttpClient(transport=httpx.MockTransport(handler)) as client:
        written = client.stream_to_file(
            "https://objects.example.test/artifact.bin",
            destination,
            chunk_bytes=16,
        )

    assert written == destination
    assert destination.read_bytes() == b"artifact-bytes" * 100
    assert sorted(path.name for path in destination.parent.iterdir()) == ["artifact.bin"]


def test_stream_to_file_leaves_no_partial_file_on_status_error(tmp_path: Path) -> None:
    """A failed download should raise and leave the destination untouched."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing", request=request)

    destination = tmp_path / "artifact.bin"
    with HttpClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            client.stream_to_file("https://objects.example.test/artifact.bin", destination)

    assert exc_info.value.status_code == 404
    assert exc_info.value.retryable is False
    assert list(tmp_path.iterdir()) == []
