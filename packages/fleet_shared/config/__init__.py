"""Public API for shared Fleet configuration utilities."""

from .loader import load_config, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    FleetSettings,
    LoggingSettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "FleetSettings",
    "LoggingSettings",
    "load_config",
    "load_settings",
    "resolve_component_settings",
]
