"""Typed configuration models for Fleet runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "fleet" / "fleet.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration shared by Fleet components."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "fleet"
    environment: str = "dev"


class ComponentsSettings(BaseModel):
    """Typed ``components`` subtree holding component-local setting mappings."""

    model_config = ConfigDict(extra="allow")

    component_manager: dict[str, object] = Field(default_factory=dict)
    service_registry: dict[str, object] = Field(default_factory=dict)


class FleetSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="FLEET_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply Fleet precedence: init > env > yaml > model defaults."""
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        ]
        return tuple(sources)


TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


def resolve_component_settings(
    *,
    settings: FleetSettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Resolve one component settings object from ``components.<component_id>``."""
    raw_components = settings.components.model_dump(mode="python")
    resolved = raw_components.get(component_id, {})
    if resolved is None:
        resolved = {}
    if not isinstance(resolved, dict):
        raise TypeError(f"components.{component_id} must resolve to an object mapping")
    return model.model_validate(resolved)
