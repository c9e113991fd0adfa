"""Tests for component identifiers, metadata, and recipe parsing."""

from __future__ import annotations

import pytest

from packages.fleet_core.components.errors import PackageLoadingError
from packages.fleet_core.components.identifiers import (
    ComponentIdentifier,
    ComponentMetadata,
    Scope,
)
from packages.fleet_core.components.recipe import ComponentArtifact, Unarchive, parse_recipe
from packages.fleet_core.components.requirements import VersionRequirement

RECIPE_TEXT = """
ComponentName: web
ComponentVersion: 1.2.0
ComponentDescription: Edge web frontend
ComponentDependencies:
  runtime:
    VersionRequirement: ">=2.0.0 <3.0.0"
  logger:
    DependencyType: SOFT
Artifacts:
  - Uri: s3://bucket/web/site.zip
    Unarchive: zip
  - Uri: greengrass:web-config.json
Lifecycle:
  run: ./serve
"""


def test_identifier_orders_by_name_then_version_then_scope() -> None:
    """Identifiers should sort by name, semantic version, and scope."""
    ordered = sorted(
        [
            ComponentIdentifier.of("web", "1.10.0"),
            ComponentIdentifier.of("web", "1.2.0", Scope.PUBLIC),
            ComponentIdentifier.of("api", "9.0.0"),
            ComponentIdentifier.of("web", "1.2.0"),
        ]
    )

    assert [(str(item), item.scope) for item in ordered] == [
        ("api-9.0.0", Scope.PRIVATE),
        ("web-1.2.0", Scope.PRIVATE),
        ("web-1.2.0", Scope.PUBLIC),
        ("web-1.10.0", Scope.PRIVATE),
    ]


def test_identifier_rejects_empty_name_and_bad_version() -> None:
    """Identifiers require a name and a valid semantic version."""
    with pytest.raises(ValueError):
        ComponentIdentifier.of("", "1.0.0")
    with pytest.raises(ValueError):
        ComponentIdentifier.of("web", "not-semver")


def test_metadata_is_hashable_and_immutable() -> None:
    """Metadata should compare by value and refuse mutation."""
    identifier = ComponentIdentifier.of("web", "1.0.0")
    first = ComponentMetadata(identifier, {"runtime": VersionRequirement("^2.0.0")})
    second = ComponentMetadata(identifier, {"runtime": VersionRequirement("^2.0.0")})

    assert first == second
    assert len({first, second}) == 1
    with pytest.raises(TypeError):
        first.dependencies["other"] = VersionRequirement.any()  # type: ignore[index]


def test_parse_recipe_reads_dependencies_and_artifacts() -> None:
    """A full recipe should parse into typed dependencies and artifacts."""
    recipe = parse_recipe(RECIPE_TEXT)
    metadata = recipe.metadata()

    assert recipe.identifier() == ComponentIdentifier.of("web", "1.2.0")
    assert metadata.dependencies["runtime"].satisfied_by("2.4.0") is True
    assert metadata.dependencies["logger"] == VersionRequirement.any()
    assert recipe.dependencies["logger"].dependency_type == "SOFT"
    assert recipe.artifacts is not None
    assert [artifact.unarchive for artifact in recipe.artifacts] == [
        Unarchive.ZIP,
        Unarchive.NONE,
    ]
    assert recipe.lifecycle == {"run": "./serve"}


def test_parse_recipe_distinguishes_absent_and_empty_artifacts() -> None:
    """An absent artifact list should stay None while an empty one stays empty."""
    absent = parse_recipe("ComponentName: a\nComponentVersion: 1.0.0\n")
    empty = parse_recipe("ComponentName: a\nComponentVersion: 1.0.0\nArtifacts: []\n")

    assert absent.artifacts is None
    assert empty.artifacts == []
    assert absent.dependencies == {}


@pytest.mark.parametrize(
    "text",
    [
        "ComponentName: [unclosed",
        "- not\n- a mapping\n",
        "ComponentName: web\n",
        "ComponentName: web\nComponentVersion: one\n",
        "ComponentName: web\nComponentVersion: 1.0.0\nComponentDependencies:\n"
        "  runtime:\n    VersionRequirement: '>>1'\n",
    ],
)
def test_parse_recipe_rejects_invalid_documents(text: str) -> None:
    """Unusable recipe documents should raise a loading error."""
    with pytest.raises(PackageLoadingError):
        parse_recipe(text, source="test")


def test_artifact_scheme_and_file_name_derive_from_uri() -> None:
    """Artifact helpers should expose the upper-cased scheme and file name."""
    s3 = ComponentArtifact(uri="s3://bucket/path/to/tool.jar", unarchive="jar")
    repository = ComponentArtifact(Uri="greengrass:settings.json")
    bare = ComponentArtifact(uri="relative/file.txt")

    assert (s3.scheme, s3.file_name, s3.unarchive) == ("S3", "tool.jar", Unarchive.JAR)
    assert (repository.scheme, repository.file_name) == ("GREENGRASS", "settings.json")
    assert bare.scheme is None
