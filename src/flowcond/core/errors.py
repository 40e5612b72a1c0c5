# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Error taxonomy for condition handling.

The boundary functions (`validate_condition_expression` and friends) never raise;
they return `Invalid(reason)`. These exceptions exist for internal control flow
(the grammar) and for callers that prefer exceptions (`ensure_valid`,
`compile_condition`, pydantic models).
"""


class FlowcondError(Exception):
    """Base class for all flowcond public errors."""

    ...


class ConditionError(FlowcondError, ValueError):
    """
    User-facing condition rejection. `reason` is safe to show (after
    `sanitize_for_display`) and never contains internals.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ConditionSyntaxError(ConditionError):
    """The expression does not fit the restricted condition grammar."""

    ...
