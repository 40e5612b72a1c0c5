from __future__ import annotations

"""
flowcond.core.config
====================

Strongly-typed configuration for the condition validator.
- No external deps; plain frozen dataclass.
- Validation knobs are programmatic only (no file/env lookup): the same
  expression must be accepted or rejected identically in every process.

Logging is configured separately via `flowcond.core.log.configure_from_env()`.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..validation.grammar import DEFAULT_MAX_DEPTH
from ..validation.rules import METHOD_WHITELIST

__all__ = ["ValidatorConfig"]


@dataclass(frozen=True)
class ValidatorConfig:
    """Limits and whitelist used by `ConditionValidator`."""

    # ---- Limits
    max_length: int = 10_000
    max_index_digits: int = 4
    max_depth: int = DEFAULT_MAX_DEPTH

    # ---- Whitelist
    method_whitelist: frozenset[str] = field(default_factory=lambda: METHOD_WHITELIST)

    # ---- Methods ------------------------------------------------------------

    def __post_init__(self) -> None:
        if not isinstance(self.max_length, int) or self.max_length <= 0:
            raise ValueError("max_length must be a positive integer")
        if not isinstance(self.max_index_digits, int) or self.max_index_digits <= 0:
            raise ValueError("max_index_digits must be a positive integer")
        if not isinstance(self.max_depth, int) or self.max_depth <= 0:
            raise ValueError("max_depth must be a positive integer")
        if isinstance(self.method_whitelist, str) or not isinstance(self.method_whitelist, Iterable):
            raise ValueError("method_whitelist must be a collection of method names")
        names = frozenset(self.method_whitelist)
        if not names or not all(isinstance(x, str) and x.isidentifier() for x in names):
            raise ValueError("method_whitelist must be a non-empty set of identifiers")
        # frozen: bypass __setattr__ to normalize lists/sets into a frozenset
        object.__setattr__(self, "method_whitelist", names)

    # Loader
    @classmethod
    def load(cls, overrides: Mapping[str, Any] | None = None) -> ValidatorConfig:
        """
        Build a config from defaults plus explicit overrides.
        Unknown keys raise TypeError, as with the constructor.
        """
        data: dict[str, Any] = {}
        if overrides:
            data.update(overrides)
        return cls(**data)
