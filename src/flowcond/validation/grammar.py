# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

r"""
Restricted grammar for branch conditions.

Supported grammar (EBNF-ish):
  expr      := or_expr
  or_expr   := and_expr { "||" and_expr }*
  and_expr  := equality { "&&" equality }*
  equality  := relation { ("===" | "!==" | "==" | "!=") relation }*
  relation  := unary { ("<" | ">" | "<=" | ">=") unary }*
  unary     := "!" unary | "-" number | postfix
  postfix   := primary { "." name [ "(" [expr] ")" ] | "[" (integer | string) "]" }*
  primary   := literal | var | "(" expr ")"
  literal   := "true" | "false" | "null" | "undefined" | number | string
  var       := "__v" digits

Anything outside this grammar is rejected: arithmetic, ternaries, bitwise
operators, free identifiers, calls on non-whitelisted members, indexing on
anything but a bare workflow variable.

The parser only builds an AST; it never evaluates. Evaluation happens in the
runtime that consumes validated conditions.
"""

import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ..core.errors import ConditionSyntaxError
from .rules import METHOD_WHITELIST, RESERVED_LITERALS, is_workflow_var

__all__ = ["DEFAULT_MAX_DEPTH", "Expr", "parse_condition"]

# max nesting of "(", "!" and call arguments
DEFAULT_MAX_DEPTH = 64


# ---- tokenizer

_TOKEN_SPEC = [
    ("WS", r"[ \t\r\n]+"),
    ("NUMBER", r"(?:[0-9]+\.[0-9]+|[0-9]+)"),
    ("STRING", r"'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\""),
    ("SEQ", r"==="),
    ("SNE", r"!=="),
    ("EQ", r"=="),
    ("NE", r"!="),
    ("AND", r"&&"),
    ("OR", r"\|\|"),
    ("NOT", r"!"),
    ("GE", r">="),
    ("LE", r"<="),
    ("GT", r">"),
    ("LT", r"<"),
    ("MINUS", r"-"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LBRACK", r"\["),
    ("RBRACK", r"\]"),
    ("DOT", r"\."),
    ("IDENT", r"[A-Za-z_$][A-Za-z0-9_$]*"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))
_UNESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

_EQUALITY_OPS = {"SEQ": "===", "SNE": "!==", "EQ": "==", "NE": "!="}
_RELATION_OPS = {"GT": ">", "LT": "<", "GE": ">=", "LE": "<="}
_LITERAL_VALUES: dict[str, Any] = {"true": True, "false": False, "null": None, "undefined": None}


class _Tok:
    def __init__(self, kind: str, value: Any = None, pos: int = 0):
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"{self.kind}:{self.value!r}@{self.pos}"


def _lex(s: str) -> list[_Tok]:
    out: list[_Tok] = []
    pos = 0
    while pos < len(s):
        m = _TOKEN_RE.match(s, pos)
        if not m:
            if s[pos] in "'\"":
                raise ConditionSyntaxError(f"unterminated string literal at position {pos}")
            raise ConditionSyntaxError(f"unexpected character at position {pos}")
        kind = m.lastgroup or ""
        text = m.group(kind)
        start, pos = pos, m.end()
        if kind == "WS":
            continue
        if kind == "NUMBER":
            out.append(_Tok(kind, float(text) if "." in text else int(text), start))
        elif kind == "STRING":
            out.append(_Tok(kind, _UNESCAPE_RE.sub(r"\1", text[1:-1]), start))
        else:
            out.append(_Tok(kind, text, start))
    return out


# ---- AST


@dataclass(frozen=True)
class Expr:
    """Immutable AST node for a validated condition."""

    kind: str
    value: Any = None
    children: tuple[Expr, ...] = ()

    def collect_variables(self) -> set[int]:
        """Indexes of workflow variables referenced (`__v3` -> 3)."""
        acc: set[int] = set()
        self._walk(self, lambda n: acc.add(n.value) if n.kind == "VAR" else None)
        return acc

    def collect_methods(self) -> set[str]:
        """Names of methods called anywhere in the expression."""
        acc: set[str] = set()
        self._walk(self, lambda n: acc.add(n.value) if n.kind == "CALL" else None)
        return acc

    def _walk(self, node: Expr, visit) -> None:
        # explicit stack: long `&&`/`||` chains build left-deep trees
        stack = [node]
        while stack:
            cur = stack.pop()
            visit(cur)
            stack.extend(cur.children)


# ---- recursive descent parser


class _Parser:
    def __init__(self, tokens: list[_Tok], methods: frozenset[str], max_depth: int = DEFAULT_MAX_DEPTH):
        self.toks = tokens
        self.methods = methods
        self.max_depth = max_depth
        self.depth = 0
        self.i = 0

    @contextmanager
    def nested(self):
        if self.depth >= self.max_depth:
            raise ConditionSyntaxError(f"expression is nested too deeply (max {self.max_depth} levels)")
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def peek(self) -> _Tok:
        if self.i >= len(self.toks):
            return _Tok("EOF")
        return self.toks[self.i]

    def eat(self, kind: str | None = None) -> _Tok:
        t = self.peek()
        if kind and t.kind != kind:
            raise ConditionSyntaxError(f"expected {kind}, got {t.kind}")
        self.i += 1
        return t

    def parse(self) -> Expr:
        node = self.parse_or()
        if self.peek().kind != "EOF":
            raise ConditionSyntaxError("unexpected tokens after expression")
        return node

    def parse_or(self) -> Expr:
        node = self.parse_and()
        while self.peek().kind == "OR":
            self.eat("OR")
            node = Expr("||", children=(node, self.parse_and()))
        return node

    def parse_and(self) -> Expr:
        node = self.parse_equality()
        while self.peek().kind == "AND":
            self.eat("AND")
            node = Expr("&&", children=(node, self.parse_equality()))
        return node

    def parse_equality(self) -> Expr:
        node = self.parse_relation()
        while self.peek().kind in _EQUALITY_OPS:
            op = _EQUALITY_OPS[self.eat().kind]
            node = Expr(op, children=(node, self.parse_relation()))
        return node

    def parse_relation(self) -> Expr:
        node = self.parse_unary()
        while self.peek().kind in _RELATION_OPS:
            op = _RELATION_OPS[self.eat().kind]
            node = Expr(op, children=(node, self.parse_unary()))
        return node

    def parse_unary(self) -> Expr:
        t = self.peek()
        if t.kind == "NOT":
            self.eat("NOT")
            with self.nested():
                return Expr("!", children=(self.parse_unary(),))
        if t.kind == "MINUS":
            # only negative number literals; no arithmetic
            self.eat("MINUS")
            num = self.eat("NUMBER")
            return Expr("LIT", -num.value)
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        node = self.parse_primary()
        while True:
            kind = self.peek().kind
            if kind == "DOT":
                self.eat("DOT")
                name = self.eat("IDENT").value
                if name.startswith("__"):
                    raise ConditionSyntaxError(f'property "{name}" is not allowed')
                if self.peek().kind == "LPAREN":
                    node = self.parse_call(node, name)
                else:
                    node = Expr("MEMBER", name, (node,))
            elif kind == "LBRACK":
                if node.kind != "VAR":
                    raise ConditionSyntaxError("indexing is only allowed directly on workflow variables")
                self.eat("LBRACK")
                key = self.peek()
                if key.kind not in {"NUMBER", "STRING"} or isinstance(key.value, float):
                    raise ConditionSyntaxError("index must be an integer or a string literal")
                self.eat()
                self.eat("RBRACK")
                node = Expr("INDEX", key.value, (node,))
            else:
                return node

    def parse_call(self, target: Expr, name: str) -> Expr:
        if name not in self.methods:
            raise ConditionSyntaxError(f'method "{name}" is not allowed')
        self.eat("LPAREN")
        args: tuple[Expr, ...] = ()
        if self.peek().kind != "RPAREN":
            with self.nested():
                args = (self.parse_or(),)
        self.eat("RPAREN")
        return Expr("CALL", name, (target, *args))

    def parse_primary(self) -> Expr:
        t = self.peek()
        if t.kind == "LPAREN":
            self.eat("LPAREN")
            with self.nested():
                node = self.parse_or()
            self.eat("RPAREN")
            return node
        if t.kind in {"NUMBER", "STRING"}:
            self.eat()
            return Expr("LIT", t.value)
        if t.kind == "IDENT":
            self.eat("IDENT")
            if t.value in RESERVED_LITERALS:
                return Expr("LIT", _LITERAL_VALUES[t.value])
            if is_workflow_var(t.value):
                return Expr("VAR", int(t.value[3:]))
            raise ConditionSyntaxError(f'unknown identifier "{t.value}"')
        if t.kind == "EOF":
            raise ConditionSyntaxError("unexpected end of expression")
        raise ConditionSyntaxError(f"unexpected token {t.kind} at position {t.pos}")


def parse_condition(
    text: str, *, methods: frozenset[str] = METHOD_WHITELIST, max_depth: int = DEFAULT_MAX_DEPTH
) -> Expr:
    """Parse a substituted condition into an AST, raising ConditionSyntaxError on invalid syntax."""
    tokens = _lex(text)
    return _Parser(tokens, methods, max_depth).parse()
