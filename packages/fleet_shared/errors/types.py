"""Canonical shared error types for Fleet runtime packages.

This module defines a transport-agnostic error taxonomy used when failures are
reported outside the raising component, for example in batch failure logs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """High-level error categories shared across component boundaries."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error object describing one normalized failure."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
