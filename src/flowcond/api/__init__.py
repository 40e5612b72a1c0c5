# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Public exception-style API.

Import from here rather than from internal modules:

    from flowcond.api import compile_condition, ensure_valid, ConditionError
"""

from .expr import ConditionError, Expr, compile_condition, ensure_valid

__all__ = ["ConditionError", "Expr", "compile_condition", "ensure_valid"]
