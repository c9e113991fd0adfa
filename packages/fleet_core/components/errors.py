"""Errors for component packaging, resolution, and preparation."""

from __future__ import annotations

from packages.fleet_shared.errors import (
    ErrorDetail,
    dependency_error,
    exception_to_error,
    internal_error,
    validation_error,
)

# Component packaging error codes.
COMPONENT_LOAD_FAILED = "COMPONENT_LOAD_FAILED"
COMPONENT_DOWNLOAD_FAILED = "COMPONENT_DOWNLOAD_FAILED"
ARTIFACT_URI_UNSUPPORTED = "ARTIFACT_URI_UNSUPPORTED"
COMPONENT_RESOLUTION_FAILED = "COMPONENT_RESOLUTION_FAILED"


class PackagingError(RuntimeError):
    """Base error for version resolution and component preparation failures."""


class PackageLoadingError(PackagingError):
    """Raised when local component state is missing, corrupt, or unusable."""


class InvalidArtifactUriError(PackageLoadingError):
    """Raised when an artifact URI has no scheme or an unsupported one."""

    def __init__(self, message: str, *, scheme: str | None) -> None:
        super().__init__(message)
        self.scheme = scheme


class PackageDownloadError(PackagingError):
    """Raised when a required remote catalog or artifact interaction fails."""


def packaging_error_detail(exc: BaseException) -> ErrorDetail:
    """Normalize packaging exceptions before the generic shared fallback."""
    metadata = {"exception_type": type(exc).__name__}
    if isinstance(exc, InvalidArtifactUriError):
        return validation_error(str(exc), code=ARTIFACT_URI_UNSUPPORTED, metadata=metadata)
    if isinstance(exc, PackageDownloadError):
        return dependency_error(str(exc), code=COMPONENT_DOWNLOAD_FAILED, metadata=metadata)
    if isinstance(exc, PackageLoadingError):
        return internal_error(str(exc), code=COMPONENT_LOAD_FAILED, metadata=metadata)
    if isinstance(exc, PackagingError):
        return internal_error(str(exc), code=COMPONENT_RESOLUTION_FAILED, metadata=metadata)
    return exception_to_error(exc)
