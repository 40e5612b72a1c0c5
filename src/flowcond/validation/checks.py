# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Individual scan-based checks of the authoritative pipeline.

Each check returns a user-facing reason string on failure and None when the
expression passes. Checks that look at syntax outside string literals work on
a masked copy of the text (see `mask_strings`) so quoted data like
`'a [b] c'` is never mistaken for code. All patterns are module-level
compiled objects used through `search`/`finditer`, which start from scratch
on every call.
"""

import re
from typing import Final

from .rules import DANGEROUS_RULES, RESERVED_LITERALS, Rule, is_workflow_var

__all__ = [
    "check_brackets",
    "check_dangerous_syntax",
    "check_identifiers",
    "check_method_calls",
    "check_parentheses",
    "mask_strings",
]

_BRACKET_RE: Final[re.Pattern[str]] = re.compile(r"[\[\]]")
_BASE_RE: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_$]+$")
_METHOD_CALL_RE: Final[re.Pattern[str]] = re.compile(r"\.\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*\(")
_WORD_RE: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_QUOTED_KEY_RE: Final[re.Pattern[str]] = re.compile(r"'[^'\\]*'|\"[^\"\\]*\"")


def mask_strings(text: str) -> str:
    """
    Return `text` with the contents of quoted string literals replaced by
    spaces. Quotes stay in place and offsets are preserved. An unterminated
    literal is masked to the end of the text.
    """
    out: list[str] = []
    quote: str | None = None
    escaped = False
    for ch in text:
        if quote is None:
            out.append(ch)
            if ch in ("'", '"'):
                quote = ch
            continue
        if escaped:
            escaped = False
            out.append(" ")
        elif ch == "\\":
            escaped = True
            out.append(" ")
        elif ch == quote:
            quote = None
            out.append(ch)
        else:
            out.append(" ")
    return "".join(out)


def check_dangerous_syntax(expr: str, rules: tuple[Rule, ...] = DANGEROUS_RULES) -> Rule | None:
    """Return the first denylist rule matching the raw expression, if any."""
    for rule in rules:
        if rule.matches(expr):
            return rule
    return None


def check_parentheses(expr: str) -> str | None:
    if expr.count("(") != expr.count(")"):
        return "Unbalanced parentheses"
    return None


def check_brackets(expr: str, *, max_index_digits: int) -> str | None:
    """
    Indexing is allowed only as `__vN[<int>]` or `__vN['key']`.
    Nested or chained indexing is rejected.
    """
    masked = mask_strings(expr)
    index_re = re.compile(rf"[0-9]{{1,{max_index_digits}}}")
    open_at: int | None = None
    for m in _BRACKET_RE.finditer(masked):
        pos = m.start()
        if m.group() == "[":
            if open_at is not None:
                return "Invalid bracket content: nested brackets are not allowed"
            head = masked[:pos].rstrip()
            base = _BASE_RE.search(head)
            if base is None or not is_workflow_var(base.group()) or head[: base.start()].rstrip().endswith("."):
                return "Bracket notation is only allowed on workflow variables"
            open_at = pos
            continue
        if open_at is None:
            return "Unbalanced brackets"
        content = expr[open_at + 1 : pos].strip()
        open_at = None
        if index_re.fullmatch(content) is None and _QUOTED_KEY_RE.fullmatch(content) is None:
            return "Invalid bracket content: only integer indexes or quoted string keys are allowed"
    if open_at is not None:
        return "Unbalanced brackets"
    return None


def check_method_calls(expr: str, *, allowed: frozenset[str]) -> str | None:
    masked = mask_strings(expr)
    for m in _METHOD_CALL_RE.finditer(masked):
        name = m.group(1)
        if name not in allowed:
            return f'Method "{name}" is not allowed'
    return None


def check_identifiers(expr: str) -> str | None:
    """
    Every bare word must be a reserved literal or a workflow variable.
    Words right after a dot are property/method names; words glued to a
    digit belong to a numeric literal (`1e5`) and are left to the grammar.
    """
    masked = mask_strings(expr)
    for m in _WORD_RE.finditer(masked):
        name = m.group()
        start = m.start()
        if start > 0 and masked[start - 1] in "0123456789":
            continue
        if masked[:start].rstrip().endswith("."):
            continue
        if name in RESERVED_LITERALS or is_workflow_var(name):
            continue
        return f'Unknown identifier "{name}"'
    return None
