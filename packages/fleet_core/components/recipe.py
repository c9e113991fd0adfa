"""Component recipe models and the YAML recipe parser."""

from __future__ import annotations

from enum import Enum
from typing import Any
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packages.fleet_core.components.errors import PackageLoadingError
from packages.fleet_core.components.identifiers import (
    ComponentIdentifier,
    ComponentMetadata,
    Scope,
)
from packages.fleet_core.components.requirements import ANY_VERSION, VersionRequirement


class Unarchive(str, Enum):
    """How a downloaded artifact is unpacked into the unarchived cache."""

    NONE = "NONE"
    ZIP = "ZIP"
    JAR = "JAR"


class ComponentArtifact(BaseModel):
    """One artifact declared by a recipe."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    uri: str = Field(alias="Uri")
    unarchive: Unarchive = Field(default=Unarchive.NONE, alias="Unarchive")

    @field_validator("uri")
    @classmethod
    def _validate_uri(cls, value: str) -> str:
        """Require a non-blank artifact URI."""
        normalized = value.strip()
        if normalized == "":
            raise ValueError("artifact uri is required")
        return normalized

    @field_validator("unarchive", mode="before")
    @classmethod
    def _coerce_unarchive(cls, value: object) -> object:
        """Treat a missing unarchive mode as NONE and accept any letter case."""
        if value is None:
            return Unarchive.NONE
        if isinstance(value, str):
            return value.strip().upper() or Unarchive.NONE
        return value

    @property
    def scheme(self) -> str | None:
        """Return the upper-cased URI scheme, or None when absent."""
        scheme = urlsplit(self.uri).scheme
        return scheme.upper() if scheme else None

    @property
    def file_name(self) -> str:
        """Return the last path segment of the artifact URI."""
        parts = urlsplit(self.uri)
        path = parts.path or parts.netloc
        return path.rstrip("/").rsplit("/", 1)[-1]


class RecipeDependency(BaseModel):
    """One dependency declaration inside a recipe."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    version_requirement: str = Field(default=ANY_VERSION, alias="VersionRequirement")
    dependency_type: str = Field(default="HARD", alias="DependencyType")


class Recipe(BaseModel):
    """Full component manifest as persisted in the local component store."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str = Field(alias="ComponentName")
    version: str = Field(alias="ComponentVersion")
    description: str = Field(default="", alias="ComponentDescription")
    publisher: str = Field(default="", alias="ComponentPublisher")
    dependencies: dict[str, RecipeDependency] = Field(
        default_factory=dict, alias="ComponentDependencies"
    )
    artifacts: list[ComponentArtifact] | None = Field(default=None, alias="Artifacts")
    lifecycle: dict[str, Any] = Field(default_factory=dict, alias="Lifecycle")

    @field_validator("dependencies", mode="before")
    @classmethod
    def _coerce_dependencies(cls, value: object) -> object:
        """Accept ``None`` for an empty dependency block."""
        return {} if value is None else value

    def identifier(self, scope: Scope = Scope.PRIVATE) -> ComponentIdentifier:
        """Return the identifier this recipe describes."""
        return ComponentIdentifier.of(self.name, self.version, scope)

    def metadata(self, scope: Scope = Scope.PRIVATE) -> ComponentMetadata:
        """Return identifier and parsed dependency requirements."""
        return ComponentMetadata(
            identifier=self.identifier(scope),
            dependencies={
                name: VersionRequirement(dependency.version_requirement)
                for name, dependency in self.dependencies.items()
            },
        )


def parse_recipe(text: str, *, source: str = "<recipe>") -> Recipe:
    """Parse YAML (or JSON) recipe text into a validated ``Recipe``."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise PackageLoadingError(f"recipe {source} is not valid YAML") from exc

    if not isinstance(document, dict):
        raise PackageLoadingError(f"recipe {source} must contain a top-level mapping")

    try:
        recipe = Recipe.model_validate(document)
        recipe.metadata()
    except (ValidationError, ValueError) as exc:
        raise PackageLoadingError(f"recipe {source} is invalid: {exc}") from exc
    return recipe
