from __future__ import annotations

import pytest

from flowcond.core.errors import ConditionSyntaxError
from flowcond.validation.grammar import Expr, parse_condition

pytestmark = [pytest.mark.unit, pytest.mark.validation]


def test_parse_comparison():
    assert parse_condition("__v0 === 'a'") == Expr("===", children=(Expr("VAR", 0), Expr("LIT", "a")))


def test_literals():
    assert parse_condition("true") == Expr("LIT", True)
    assert parse_condition("null") == Expr("LIT", None)
    assert parse_condition("undefined") == Expr("LIT", None)
    assert parse_condition("-5") == Expr("LIT", -5)
    assert parse_condition("2.5") == Expr("LIT", 2.5)
    assert parse_condition("'it\\'s'") == Expr("LIT", "it's")


def test_precedence_and_over_or():
    ast = parse_condition("__v0 || __v1 && __v2")
    assert ast.kind == "||"
    assert ast.children[1].kind == "&&"


def test_precedence_not_binds_tighter_than_comparison():
    ast = parse_condition("!__v0 === true")
    assert ast.kind == "==="
    assert ast.children[0] == Expr("!", children=(Expr("VAR", 0),))


def test_relation_binds_tighter_than_equality():
    ast = parse_condition("__v0 > 1 === true")
    assert ast.kind == "==="
    assert ast.children[0].kind == ">"


def test_member_call_and_index_nodes():
    ast = parse_condition("__v3['name'].trim().includes(__v1)")
    assert ast.kind == "CALL" and ast.value == "includes"
    trim = ast.children[0]
    assert trim.kind == "CALL" and trim.value == "trim"
    assert trim.children[0] == Expr("INDEX", "name", (Expr("VAR", 3),))
    assert ast.children[1] == Expr("VAR", 1)


def test_collect_helpers():
    ast = parse_condition("(__v0.includes('a') || __v2[1] > __v0.length) && !__v7.trim()")
    assert ast.collect_variables() == {0, 2, 7}
    assert ast.collect_methods() == {"includes", "trim"}


def test_custom_method_set():
    with pytest.raises(ConditionSyntaxError):
        parse_condition("__v0.trim()", methods=frozenset({"includes"}))
    assert parse_condition("__v0.includes('x')", methods=frozenset({"includes"})).kind == "CALL"


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("foo", 'unknown identifier "foo"'),
        ("__v0.map()", 'method "map" is not allowed'),
        ("__v0.__proto__", 'property "__proto__" is not allowed'),
        ("'x'[0]", "indexing is only allowed directly on workflow variables"),
        ("__v0[0][1]", "indexing is only allowed directly on workflow variables"),
        ("__v0[1.5]", "index must be an integer or a string literal"),
        ("__v0 + 1", "unexpected character at position 5"),
        ("'abc", "unterminated string literal at position 0"),
        ("(__v0", "expected RPAREN, got EOF"),
        ("__v0 __v1", "unexpected tokens after expression"),
        ("", "unexpected end of expression"),
    ],
)
def test_syntax_errors(text, fragment):
    with pytest.raises(ConditionSyntaxError) as ei:
        parse_condition(text)
    assert fragment in ei.value.reason


def test_ast_is_immutable():
    ast = parse_condition("__v0")
    with pytest.raises(AttributeError):
        ast.kind = "LIT"  # type: ignore[misc]


def test_nesting_limit():
    assert parse_condition("((__v0))", max_depth=2) == Expr("VAR", 0)
    with pytest.raises(ConditionSyntaxError, match="nested too deeply"):
        parse_condition("(((__v0)))", max_depth=2)
    with pytest.raises(ConditionSyntaxError, match="nested too deeply"):
        parse_condition("!!!__v0", max_depth=2)


def test_nesting_limit_counts_open_levels_only():
    # siblings do not add up: depth returns to zero after each group
    parse_condition(" && ".join(["(!(__v0))"] * 50), max_depth=3)


def test_collect_variables_on_long_chain():
    text = " || ".join(f"__v{i} === 1" for i in range(2000))
    assert parse_condition(text).collect_variables() == set(range(2000))


@pytest.mark.parametrize("text", ["__v0 === ٥", "__v0 === 2²"])
def test_number_token_is_ascii_only(text):
    with pytest.raises(ConditionSyntaxError, match="unexpected character"):
        parse_condition(text)
