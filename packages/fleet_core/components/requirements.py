"""Semantic-version requirement expressions.

Expressions follow npm range semantics:

- comparators ``<``, ``<=``, ``>``, ``>=``, ``=``, ``==``, ``!=``
- caret ``^1.2.3`` and tilde ``~1.2.3`` shorthands
- ``x``/``X``/``*`` wildcards and partial versions (``1.2`` means ``1.2.x``)
- hyphen ranges ``1.2.3 - 2.0.0``
- whitespace joins comparators with AND, ``||`` joins alternatives with OR

A pre-release version only satisfies an alternative when one of that
alternative's comparators names a pre-release on the same ``major.minor.patch``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final

import semver

ANY_VERSION: Final[str] = "*"

_OPERATORS: Final[tuple[str, ...]] = ("<=", ">=", "==", "!=", "<", ">", "=", "^", "~")
_WILDCARDS: Final[frozenset[str]] = frozenset({"x", "X", "*"})
_PARTIAL_RE: Final[re.Pattern[str]] = re.compile(
    r"^v?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*]))?"
    r"(?:\.(?P<patch>\d+|[xX*]))?"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


@dataclass(frozen=True, slots=True)
class _Comparator:
    operator: str
    version: semver.Version

    def test(self, version: semver.Version) -> bool:
        outcome = version.compare(self.version)
        if self.operator == "<":
            return outcome < 0
        if self.operator == "<=":
            return outcome <= 0
        if self.operator == ">":
            return outcome > 0
        if self.operator == ">=":
            return outcome >= 0
        if self.operator == "!=":
            return outcome != 0
        return outcome == 0


@dataclass(frozen=True, slots=True)
class _Partial:
    major: int | None
    minor: int | None
    patch: int | None
    prerelease: str | None

    def floor(self) -> semver.Version:
        return semver.Version(
            self.major or 0, self.minor or 0, self.patch or 0, self.prerelease
        )


@dataclass(frozen=True)
class VersionRequirement:
    """Pure predicate over semantic versions parsed from one range expression."""

    expression: str = ANY_VERSION
    _alternatives: tuple[tuple[_Comparator, ...], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        normalized = " ".join(str(self.expression).split()) or ANY_VERSION
        object.__setattr__(self, "expression", normalized)
        object.__setattr__(self, "_alternatives", _parse_expression(normalized))

    @classmethod
    def any(cls) -> VersionRequirement:
        """Return the requirement satisfied by every release version."""
        return cls(ANY_VERSION)

    def satisfied_by(self, version: semver.Version | str) -> bool:
        """Return True when ``version`` satisfies this requirement."""
        candidate = (
            version
            if isinstance(version, semver.Version)
            else semver.Version.parse(str(version))
        )
        return any(
            _alternative_matches(alternative, candidate)
            for alternative in self._alternatives
        )

    def __str__(self) -> str:
        return self.expression


def _alternative_matches(
    comparators: tuple[_Comparator, ...], version: semver.Version
) -> bool:
    if not all(comparator.test(version) for comparator in comparators):
        return False
    if not version.prerelease:
        return True
    core = (version.major, version.minor, version.patch)
    return any(
        comparator.version.prerelease
        and (comparator.version.major, comparator.version.minor, comparator.version.patch)
        == core
        for comparator in comparators
    )


def _parse_expression(expression: str) -> tuple[tuple[_Comparator, ...], ...]:
    alternatives: list[tuple[_Comparator, ...]] = []
    for raw_alternative in expression.split("||"):
        tokens = _tokenize(raw_alternative)
        if not tokens:
            alternatives.append(tuple())
            continue
        alternatives.append(tuple(_parse_alternative(tokens, expression)))
    return tuple(alternatives)


def _tokenize(raw: str) -> list[str]:
    """Split one alternative and glue detached operators to their versions."""
    tokens: list[str] = []
    pending_operator = ""
    for token in raw.split():
        if token in _OPERATORS:
            pending_operator += token
            continue
        tokens.append(pending_operator + token)
        pending_operator = ""
    if pending_operator:
        raise ValueError(f"dangling operator '{pending_operator}' in '{raw.strip()}'")
    return tokens


def _parse_alternative(tokens: list[str], expression: str) -> list[_Comparator]:
    if len(tokens) == 3 and tokens[1] == "-":
        low = _parse_partial(tokens[0], expression)
        high = _parse_partial(tokens[2], expression)
        return _expand(">=", low) + _expand("<=", high)
    if "-" in tokens:
        raise ValueError(f"invalid hyphen range in '{expression}'")

    comparators: list[_Comparator] = []
    for token in tokens:
        operator = next((op for op in _OPERATORS if token.startswith(op)), "")
        partial = _parse_partial(token[len(operator) :], expression)
        comparators.extend(_expand(operator, partial))
    return comparators


def _parse_partial(text: str, expression: str) -> _Partial:
    match = _PARTIAL_RE.match(text)
    if match is None:
        raise ValueError(f"invalid version '{text}' in requirement '{expression}'")

    parts: list[int | None] = []
    wildcard_seen = False
    for key in ("major", "minor", "patch"):
        raw = match.group(key)
        if raw is None or raw in _WILDCARDS or wildcard_seen:
            wildcard_seen = True
            parts.append(None)
            continue
        parts.append(int(raw))
    prerelease = match.group("prerelease") if parts[2] is not None else None
    return _Partial(parts[0], parts[1], parts[2], prerelease)


def _expand(operator: str, partial: _Partial) -> list[_Comparator]:
    """Translate one operator and partial version into primitive comparators."""
    major, minor, patch = partial.major, partial.minor, partial.patch
    floor = partial.floor()

    if operator == "^":
        if major is None:
            return []
        if major > 0 or minor is None:
            ceiling = semver.Version(major + 1, 0, 0)
        elif minor > 0 or patch is None:
            ceiling = semver.Version(0, minor + 1, 0)
        else:
            ceiling = semver.Version(0, 0, patch + 1)
        return [_Comparator(">=", floor), _Comparator("<", ceiling)]

    if operator == "~":
        if major is None:
            return []
        if minor is None:
            ceiling = semver.Version(major + 1, 0, 0)
        else:
            ceiling = semver.Version(major, minor + 1, 0)
        return [_Comparator(">=", floor), _Comparator("<", ceiling)]

    if major is None:
        # ``*`` with any operator except ``<``/``!=`` matches everything.
        if operator == "<":
            return [_Comparator("<", semver.Version(0, 0, 0))]
        return []

    exact = patch is not None
    next_up = (
        semver.Version(major + 1, 0, 0)
        if minor is None
        else semver.Version(major, minor + 1, 0)
    )

    if operator in ("", "=", "=="):
        if exact:
            return [_Comparator("=", floor)]
        return [_Comparator(">=", floor), _Comparator("<", next_up)]
    if operator == "!=":
        if exact:
            return [_Comparator("!=", floor)]
        raise ValueError("'!=' requires a full version")
    if operator == ">":
        return [_Comparator(">", floor)] if exact else [_Comparator(">=", next_up)]
    if operator == ">=":
        return [_Comparator(">=", floor)]
    if operator == "<":
        return [_Comparator("<", floor)]
    if operator == "<=":
        return [_Comparator("<=", floor)] if exact else [_Comparator("<", next_up)]
    raise ValueError(f"unsupported operator '{operator}'")
