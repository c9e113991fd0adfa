"""Factory helpers for creating consistent shared errors."""

from __future__ import annotations

from typing import Mapping

from .types import ErrorCategory, ErrorDetail


def validation_error(
    message: str,
    *,
    code: str,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Create a validation-category error."""
    return _detail(message, code, ErrorCategory.VALIDATION, False, metadata)


def not_found_error(
    message: str,
    *,
    code: str,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Create a not-found-category error."""
    return _detail(message, code, ErrorCategory.NOT_FOUND, False, metadata)


def dependency_error(
    message: str,
    *,
    code: str,
    retryable: bool = True,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Create a dependency-category error; retryable unless told otherwise."""
    return _detail(message, code, ErrorCategory.DEPENDENCY, retryable, metadata)


def internal_error(
    message: str,
    *,
    code: str,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Create an internal-category error."""
    return _detail(message, code, ErrorCategory.INTERNAL, False, metadata)


def _detail(
    message: str,
    code: str,
    category: ErrorCategory,
    retryable: bool,
    metadata: Mapping[str, str] | None,
) -> ErrorDetail:
    return ErrorDetail(
        code=code,
        message=message,
        category=category,
        retryable=retryable,
        metadata={} if metadata is None else dict(metadata),
    )
