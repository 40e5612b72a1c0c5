# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Branch-condition validation building blocks: rule tables, result type and
grammar. The two-phase validator lives in `flowcond.validation.validator`.
"""

from .grammar import Expr, parse_condition
from .result import Invalid, Valid, ValidationResult
from .rules import METHOD_WHITELIST, Rule, is_workflow_var

__all__ = [
    "METHOD_WHITELIST",
    "Expr",
    "Invalid",
    "Rule",
    "Valid",
    "ValidationResult",
    "is_workflow_var",
    "parse_condition",
]
