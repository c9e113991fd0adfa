"""Minimal shared HTTP client wrapper over httpx."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import httpx

from .errors import HttpJsonDecodeError, HttpRequestError, HttpStatusError


def _response_text(response: httpx.Response) -> str:
    """Return response text without raising secondary decode errors."""
    try:
        return response.text
    except Exception:  # noqa: BLE001
        return ""


def _status_error(response: httpx.Response) -> HttpStatusError:
    """Build a typed status error from one HTTP response."""
    status_code = response.status_code
    retryable = status_code >= 500 or status_code == 429
    return HttpStatusError(
        message=f"HTTP {status_code} for {response.request.method} {response.request.url}",
        method=response.request.method,
        url=str(response.request.url),
        retryable=retryable,
        status_code=status_code,
        response_body=_response_text(response),
        response_headers=dict(response.headers.items()),
    )


def _request_error(exc: httpx.RequestError, *, method: str, url: str) -> HttpRequestError:
    """Build a typed transport error from one httpx request failure."""
    try:
        request = exc.request
    except RuntimeError:
        request = None
    request_url = str(request.url) if request is not None else url
    request_method = request.method if request is not None else method.upper()
    return HttpRequestError(
        message=f"HTTP request failed for {request_method} {request_url}",
        method=request_method,
        url=request_url,
        retryable=True,
        cause=exc,
    )


class HttpClient:
    """Thin synchronous wrapper over ``httpx.Client``."""

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = True,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Create a new shared HTTP client wrapper."""
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    def close(self) -> None:
        """Close underlying transport resources when owned."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpClient:
        """Enter context manager scope."""
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context manager scope and close client."""
        self.close()

    def request(
        self,
        method: str,
        url: str,
        *,
        raise_for_status: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Issue one request and map transport/status failures to typed errors."""
        try:
            response = self._client.request(method=method, url=url, **kwargs)
        except httpx.RequestError as exc:
            raise _request_error(exc, method=method, url=url) from exc

        if raise_for_status and response.is_error:
            raise _status_error(response)
        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one GET request."""
        return self.request("GET", url, **kwargs)

    def get_text(self, url: str, **kwargs: Any) -> str:
        """Issue one GET request and return the decoded response body."""
        return self.get(url, **kwargs).text

    def get_json(self, url: str, **kwargs: Any) -> Any:
        """Issue one GET request and decode JSON from a successful response."""
        response = self.get(url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise HttpJsonDecodeError(
                message=f"Invalid JSON response for {response.request.method} {response.request.url}",
                method=response.request.method,
                url=str(response.request.url),
                retryable=False,
                status_code=response.status_code,
                response_body=_response_text(response),
                cause=exc,
            ) from exc

    def stream_to_file(
        self,
        url: str,
        destination: Path,
        *,
        chunk_bytes: int = 64 * 1024,
        **kwargs: Any,
    ) -> Path:
        """Stream one GET response body into ``destination`` atomically.

        The body is written to a sibling temp file and moved into place only
        after the full payload has been received.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        failure: HttpStatusError | None = None
        try:
            with self._client.stream("GET", url, **kwargs) as response:
                if response.is_error:
                    response.read()
                    failure = _status_error(response)
                else:
                    with NamedTemporaryFile(
                        mode="wb",
                        prefix=f".{destination.name}-",
                        suffix=".part",
                        dir=destination.parent,
                        delete=False,
                    ) as handle:
                        tmp_path = Path(handle.name)
                        for chunk in response.iter_bytes(chunk_size=chunk_bytes):
                            handle.write(chunk)
            # Typed errors are frozen, so they are raised only after the stream context exits.
            if failure is not None:
                raise failure
            os.replace(tmp_path, destination)
            return destination
        except httpx.RequestError as exc:
            raise _request_error(exc, method="GET", url=url) from exc
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink(missing_ok=True)
