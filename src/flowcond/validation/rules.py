# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Rule tables for branch-condition validation.

Pure data: denylist rules, the advisory keyword list, the method whitelist and
the workflow-variable naming rule. All patterns are compiled once at import;
`re.Pattern` objects keep no scan position between calls, so sharing them is safe.
"""

import re
from dataclasses import dataclass
from typing import Final

__all__ = [
    "DANGEROUS_RULES",
    "METHOD_WHITELIST",
    "PRE_VALIDATION_RULES",
    "RESERVED_LITERALS",
    "Rule",
    "WORKFLOW_VAR_RE",
    "is_workflow_var",
]


@dataclass(frozen=True)
class Rule:
    """Immutable (pattern, message) pair; `code` is a stable id for logs."""

    code: str
    pattern: re.Pattern[str]
    message: str

    @classmethod
    def of(cls, code: str, pattern: str, message: str) -> Rule:
        return cls(code=code, pattern=re.compile(pattern, re.IGNORECASE), message=message)

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


# `__v` followed by the positional index assigned by the binding resolver.
WORKFLOW_VAR_RE: Final[re.Pattern[str]] = re.compile(r"__v[0-9]+")

RESERVED_LITERALS: Final[frozenset[str]] = frozenset({"true", "false", "null", "undefined"})

# Read-only inspection methods only: no mutation, no I/O, no reflection.
METHOD_WHITELIST: Final[frozenset[str]] = frozenset(
    {
        "includes",
        "startsWith",
        "endsWith",
        "indexOf",
        "toString",
        "toLowerCase",
        "toUpperCase",
        "trim",
    }
)


def is_workflow_var(name: str) -> bool:
    return WORKFLOW_VAR_RE.fullmatch(name) is not None


# ---- advisory keywords (raw text, before binding substitution)

_PRE_KEYWORDS: Final[tuple[str, ...]] = (
    "eval",
    "Function",
    "import",
    "require",
    "process",
    "global",
    "window",
    "document",
    "__proto__",
    "constructor",
    "prototype",
)

def _keyword_pattern(kw: str) -> str:
    # dunder names are matched anywhere, `\b` would miss `x__proto__`
    if kw.startswith("_"):
        return re.escape(kw)
    return rf"\b{re.escape(kw)}\b"


PRE_VALIDATION_RULES: Final[tuple[Rule, ...]] = tuple(
    Rule.of(f"kw.{kw.lower()}", _keyword_pattern(kw), f'Expression contains disallowed keyword "{kw}"')
    for kw in _PRE_KEYWORDS
)


# ---- authoritative denylist (order matters only for which message is reported)

_SYNTAX = "Expression contains disallowed syntax"

DANGEROUS_RULES: Final[tuple[Rule, ...]] = (
    # `=` not part of ==, ===, !=, !==, <=, >=; catches +=, &&=, ??= and the arrow `=>`
    Rule.of("assign", r"(?<![=!<>])=(?!=)", f"{_SYNTAX}: assignment"),
    Rule.of("exec.eval", r"\beval\b", f"{_SYNTAX}: eval"),
    Rule.of("exec.function", r"\bFunction\b", f"{_SYNTAX}: Function constructor"),
    Rule.of("exec.import", r"\bimport\b", f"{_SYNTAX}: import"),
    Rule.of("exec.require", r"\brequire\b", f"{_SYNTAX}: require"),
    Rule.of("exec.new", r"\bnew\b", f"{_SYNTAX}: new"),
    Rule.of(
        "flow",
        r"\b(?:while|for|do|switch|try|catch|finally|throw|return)\b",
        f"{_SYNTAX}: control flow keyword",
    ),
    Rule.of(
        "global",
        r"\b(?:process|global|globalThis|window|document)\b",
        f"{_SYNTAX}: global object access",
    ),
    Rule.of("proto", r"__proto__|\bconstructor\b|\bprototype\b", f"{_SYNTAX}: prototype access"),
    Rule.of("incdec", r"\+\+|--", f"{_SYNTAX}: increment/decrement"),
    Rule.of("shift", r"<<|>>", f"{_SYNTAX}: bitwise shift"),
    Rule.of("semicolon", r";", f"{_SYNTAX}: statement separator"),
    Rule.of("object", r"[{}]", f"{_SYNTAX}: object literal or block"),
    Rule.of("comma", r",", f"{_SYNTAX}: comma or array literal"),
    Rule.of("template", r"`", f"{_SYNTAX}: template literal"),
)
