"""Errors for the service registry."""

from __future__ import annotations


class ServiceError(RuntimeError):
    """Base error for service registry failures."""


class ServiceLoadError(ServiceError):
    """Raised when a service cannot be located or constructed."""


class ServiceRegistrationError(ServiceError):
    """Raised when a type tag or service definition is registered inconsistently."""
