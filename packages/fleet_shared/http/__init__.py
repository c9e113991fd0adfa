"""Public shared HTTP API for internal Fleet packages."""

from .client import HttpClient
from .errors import (
    HttpError,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpJsonDecodeError",
    "HttpRequestError",
    "HttpStatusError",
]
