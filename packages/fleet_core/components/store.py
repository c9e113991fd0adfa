"""Local filesystem component store for recipes and artifacts.

Layout under the configured cache root::

    recipes/<name>/<version>.yaml
    artifacts/<name>/<version>/
    artifacts-unarchived/<name>/<version>/

One identifier maps to exactly one recipe path, and a stored recipe must
describe the identifier it is filed under.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Protocol

import semver

from packages.fleet_core.components.errors import PackageLoadingError
from packages.fleet_core.components.identifiers import (
    ComponentIdentifier,
    ComponentMetadata,
)
from packages.fleet_core.components.recipe import Recipe, parse_recipe
from packages.fleet_core.components.requirements import VersionRequirement
from packages.fleet_shared.logging import get_logger

_LOGGER = get_logger(__name__)

RECIPE_DIRECTORY = "recipes"
ARTIFACT_DIRECTORY = "artifacts"
ARTIFACTS_UNARCHIVED_DIRECTORY = "artifacts-unarchived"
RECIPE_SUFFIX = ".yaml"


@dataclass(frozen=True, slots=True)
class RecipeLookup:
    """Explicit found/not-found outcome of one local recipe lookup."""

    identifier: ComponentIdentifier
    recipe: Recipe | None

    @property
    def found(self) -> bool:
        """Return True when a recipe exists locally for the identifier."""
        return self.recipe is not None


class ComponentStore(Protocol):
    """Protocol for local recipe/artifact cache operations."""

    def find_recipe(self, identifier: ComponentIdentifier) -> RecipeLookup:
        """Look up one recipe; raise ``PackageLoadingError`` if present but unreadable."""

    def save_recipe(self, identifier: ComponentIdentifier, text: str) -> Path:
        """Persist recipe text verbatim for one identifier."""

    def get_recipe(self, identifier: ComponentIdentifier) -> Recipe:
        """Load one recipe or raise ``PackageLoadingError``."""

    def list_versions(
        self, name: str, requirement: VersionRequirement
    ) -> list[ComponentMetadata]:
        """List local metadata for versions of ``name`` satisfying ``requirement``."""

    def get_metadata(self, identifier: ComponentIdentifier) -> ComponentMetadata:
        """Return metadata for one locally stored recipe."""

    def resolve_artifact_dir(self, identifier: ComponentIdentifier) -> Path:
        """Return the artifact cache directory path for one identifier."""

    def resolve_unpack_dir(self, identifier: ComponentIdentifier) -> Path:
        """Return, creating if needed, the unarchived artifact directory."""


class LocalComponentStore(ComponentStore):
    """Persist and load component recipes and artifacts under one root."""

    def __init__(self, *, root: Path, fsync_writes: bool = False) -> None:
        self._root = Path(root).expanduser()
        self._fsync_writes = fsync_writes

    @property
    def root(self) -> Path:
        """Return the store root directory."""
        return self._root

    def recipe_path(self, identifier: ComponentIdentifier) -> Path:
        """Return the deterministic recipe path for one identifier."""
        return (
            self._root
            / RECIPE_DIRECTORY
            / identifier.name
            / f"{identifier.version}{RECIPE_SUFFIX}"
        )

    def find_recipe(self, identifier: ComponentIdentifier) -> RecipeLookup:
        """Look up one recipe; absent files are a normal not-found outcome."""
        path = self.recipe_path(identifier)
        if not path.is_file():
            return RecipeLookup(identifier=identifier, recipe=None)
        recipe = self._load(path)
        described = recipe.identifier(identifier.scope)
        if described != identifier:
            raise PackageLoadingError(
                f"recipe {path} describes {described}, expected {identifier}"
            )
        return RecipeLookup(identifier=identifier, recipe=recipe)

    def save_recipe(self, identifier: ComponentIdentifier, text: str) -> Path:
        """Write recipe text atomically and return the final path."""
        path = self.recipe_path(identifier)
        tmp_path: Path | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                prefix=".recipe-",
                suffix=".tmp",
                dir=path.parent,
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(text)
                handle.flush()
                if self._fsync_writes:
                    os.fsync(handle.fileno())
            os.replace(tmp_path, path)
            return path
        except OSError as exc:
            raise PackageLoadingError(f"Failed to save recipe {path}") from exc
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink(missing_ok=True)

    def get_recipe(self, identifier: ComponentIdentifier) -> Recipe:
        """Load one recipe or raise when it is missing or invalid."""
        lookup = self.find_recipe(identifier)
        if lookup.recipe is None:
            raise PackageLoadingError(f"recipe not found in local store: {identifier}")
        return lookup.recipe

    def list_versions(
        self, name: str, requirement: VersionRequirement
    ) -> list[ComponentMetadata]:
        """Return satisfying local versions, newest first."""
        recipe_dir = self._root / RECIPE_DIRECTORY / name
        if not recipe_dir.is_dir():
            return []

        found: list[ComponentMetadata] = []
        for path in recipe_dir.glob(f"*{RECIPE_SUFFIX}"):
            try:
                version = semver.Version.parse(path.stem)
            except ValueError:
                continue
            if not requirement.satisfied_by(version):
                continue
            try:
                recipe = self._load(path)
            except PackageLoadingError as exc:
                _LOGGER.warning(
                    "Skipping unreadable local recipe: path=%s", path, exc_info=exc
                )
                continue
            if recipe.name != name or recipe.identifier().version != version:
                _LOGGER.warning(
                    "Skipping local recipe filed under the wrong identifier: path=%s", path
                )
                continue
            found.append(recipe.metadata())
        found.sort(key=lambda item: item.identifier.version, reverse=True)
        return found

    def get_metadata(self, identifier: ComponentIdentifier) -> ComponentMetadata:
        """Return metadata parsed from one stored recipe."""
        return self.get_recipe(identifier).metadata(identifier.scope)

    def resolve_artifact_dir(self, identifier: ComponentIdentifier) -> Path:
        """Return the artifact directory path; creation is left to callers."""
        return (
            self._root / ARTIFACT_DIRECTORY / identifier.name / str(identifier.version)
        )

    def resolve_unpack_dir(self, identifier: ComponentIdentifier) -> Path:
        """Return the unarchived artifact directory, creating it idempotently."""
        path = (
            self._root
            / ARTIFACTS_UNARCHIVED_DIRECTORY
            / identifier.name
            / str(identifier.version)
        )
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PackageLoadingError(
                f"Failed to create unarchive directory {path}"
            ) from exc
        return path

    def _load(self, path: Path) -> Recipe:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PackageLoadingError(f"failed to read recipe {path}") from exc
        return parse_recipe(text, source=str(path))
