# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Public condition surface for code that prefers exceptions.

`compile_condition` returns the AST of an accepted expression so callers can
inspect which workflow variables and methods it uses before handing it to the
evaluator. Both helpers raise `ConditionError`; the result-returning
functions in `flowcond.validation` never raise.
"""

from ..core.errors import ConditionError
from ..validation.grammar import Expr
from ..validation.validator import ConditionValidator

__all__ = ["ConditionError", "Expr", "compile_condition", "ensure_valid"]


def compile_condition(text: str, *, validator: ConditionValidator | None = None) -> Expr:
    """Run authoritative validation and return the parsed AST."""
    return (validator or ConditionValidator()).parse(text)


def ensure_valid(text: str, *, validator: ConditionValidator | None = None) -> str:
    """Return `text` unchanged when it passes validation, raise ConditionError otherwise."""
    result = (validator or ConditionValidator()).validate(text)
    if not result.valid:
        raise ConditionError(result.error)
    return text
