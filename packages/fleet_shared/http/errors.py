"""Typed errors for the shared outbound HTTP client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class HttpError(Exception):
    """Base error type for shared HTTP helper failures."""

    message: str
    method: str
    url: str
    retryable: bool = False

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


@dataclass(frozen=True)
class HttpRequestError(HttpError):
    """HTTP client transport-level failure."""

    cause: Exception | None = None


@dataclass(frozen=True)
class HttpStatusError(HttpError):
    """HTTP client non-success status code failure."""

    status_code: int = 0
    response_body: str = ""
    response_headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HttpJsonDecodeError(HttpError):
    """HTTP client JSON decode failure for a successful response."""

    status_code: int = 0
    response_body: str = ""
    cause: Exception | None = None
