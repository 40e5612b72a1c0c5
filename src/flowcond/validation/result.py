# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""Validation outcome: exactly one of `Valid()` or `Invalid(reason)`."""

from dataclasses import dataclass
from typing import Any, Union

__all__ = ["Invalid", "Valid", "ValidationResult"]


@dataclass(frozen=True)
class Valid:
    valid = True
    error = None

    def __bool__(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"valid": True}


@dataclass(frozen=True)
class Invalid:
    """Rejected expression; `reason` is a user-facing, non-empty message."""

    reason: str
    valid = False

    def __post_init__(self) -> None:
        if not isinstance(self.reason, str) or not self.reason:
            raise ValueError("Invalid.reason must be a non-empty string")

    @property
    def error(self) -> str:
        return self.reason

    def __bool__(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"valid": False, "error": self.reason}


ValidationResult = Union[Valid, Invalid]
