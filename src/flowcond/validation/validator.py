# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Two-phase validation of branch-node conditions.

1) `pre_validate`  - raw text, advisory keyword scan for instant editor feedback.
2) `validate`      - substituted text (`__vN` references), the security gate.

The authoritative pipeline runs in a fixed order and stops at the first
failure:

    empty -> length -> denylist -> parentheses -> brackets
          -> method whitelist -> identifiers -> grammar

The denylist runs before the method whitelist, so `__v0.map(x => x)` is
reported as disallowed syntax (the arrow contains `=`) rather than as a
forbidden method. The grammar step comes last and rejects anything the scans
do not name explicitly.

Both entry points are pure: no I/O, no shared mutable state, never raise.
"""

from typing import Any

from ..core.config import ValidatorConfig
from ..core.errors import ConditionError
from ..core.log import get_logger
from .checks import (
    check_brackets,
    check_dangerous_syntax,
    check_identifiers,
    check_method_calls,
    check_parentheses,
)
from .grammar import Expr, parse_condition
from .result import Invalid, Valid, ValidationResult
from .rules import PRE_VALIDATION_RULES

__all__ = [
    "ConditionValidator",
    "pre_validate_condition_expression",
    "validate_condition_expression",
]

EMPTY_INPUT = "Condition must be a non-empty string"
EMPTY_EXPRESSION = "Condition expression cannot be empty"

log = get_logger("validator")


class ConditionValidator:
    """Stateless validator bound to a (frozen) configuration."""

    def __init__(self, config: ValidatorConfig | None = None) -> None:
        self.config = config or ValidatorConfig()

    # ---- phase 1

    def pre_validate(self, raw: Any) -> ValidationResult:
        if not isinstance(raw, str) or not raw:
            log.debug(
                "condition pre-check rejected",
                event="cond.prevalidate.rejected",
                step="input",
                length=len(raw) if isinstance(raw, str) else None,
            )
            return Invalid(EMPTY_INPUT)
        for rule in PRE_VALIDATION_RULES:
            if rule.matches(raw):
                log.debug(
                    "condition pre-check rejected",
                    event="cond.prevalidate.rejected",
                    step="keywords",
                    code=rule.code,
                    length=len(raw),
                )
                return Invalid(rule.message)
        return Valid()

    # ---- phase 2

    def validate(self, expression: Any) -> ValidationResult:
        try:
            self.parse(expression)
        except ConditionError as e:
            return Invalid(e.reason)
        return Valid()

    def parse(self, expression: Any) -> Expr:
        """
        Run the authoritative pipeline and return the AST of an accepted
        expression. Raises ConditionError with the first failing reason.
        """
        if not isinstance(expression, str) or not expression.strip():
            raise ConditionError(EMPTY_EXPRESSION)
        expr = expression.strip()
        cfg = self.config

        if len(expr) > cfg.max_length:
            self._reject("length", len(expr))
            raise ConditionError(f"Condition expression is too long (max {cfg.max_length} characters)")

        rule = check_dangerous_syntax(expr)
        if rule is not None:
            self._reject("denylist", len(expr), code=rule.code)
            raise ConditionError(rule.message)

        for step, reason in (
            ("parentheses", lambda: check_parentheses(expr)),
            ("brackets", lambda: check_brackets(expr, max_index_digits=cfg.max_index_digits)),
            ("methods", lambda: check_method_calls(expr, allowed=cfg.method_whitelist)),
            ("identifiers", lambda: check_identifiers(expr)),
        ):
            message = reason()
            if message is not None:
                self._reject(step, len(expr))
                raise ConditionError(message)

        try:
            return parse_condition(expr, methods=cfg.method_whitelist, max_depth=cfg.max_depth)
        except ConditionError as e:
            self._reject("grammar", len(expr))
            raise ConditionError(f"Invalid condition syntax: {e.reason}") from e
        except RecursionError as e:
            # max_depth set above what the interpreter stack allows
            self._reject("grammar", len(expr))
            raise ConditionError("Invalid condition syntax: expression is nested too deeply") from e

    @staticmethod
    def _reject(step: str, length: int, *, code: str | None = None) -> None:
        # expression text is user data; only its shape is logged
        log.debug("condition rejected", event="cond.validate.rejected", step=step, code=code, length=length)


_default = ConditionValidator()


def pre_validate_condition_expression(raw: Any) -> ValidationResult:
    """Advisory check on raw editor text, before binding substitution."""
    return _default.pre_validate(raw)


def validate_condition_expression(expression: Any) -> ValidationResult:
    """Authoritative check on the substituted expression. Nothing is stored or evaluated unless this is Valid."""
    return _default.validate(expression)
