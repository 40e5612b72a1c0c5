from __future__ import annotations

import pytest

from flowcond import Invalid, Valid, pre_validate_condition_expression, validate_condition_expression

pytestmark = [pytest.mark.unit, pytest.mark.validation]

KEYWORDS = [
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
]


@pytest.mark.parametrize("raw", ["", None, 42, 3.14, b"__v0", ["__v0"]])
def test_rejects_non_string_or_empty(raw):
    assert pre_validate_condition_expression(raw) == Invalid("Condition must be a non-empty string")


def test_accepts_raw_template_tokens():
    assert pre_validate_condition_expression("{{@node1:Label.field}} === 'test'") == Valid()


def test_is_advisory_only():
    # raw text with unresolved tokens passes the pre-check but not the gate
    raw = "{{@node1:Label.field}} === 'test'"
    assert pre_validate_condition_expression(raw).valid
    assert not validate_condition_expression(raw).valid


@pytest.mark.parametrize("keyword", KEYWORDS)
def test_detects_each_keyword(keyword):
    result = pre_validate_condition_expression(f"{keyword}('test')")
    assert isinstance(result, Invalid)
    assert "disallowed keyword" in result.reason
    assert keyword in result.reason


@pytest.mark.parametrize("keyword", KEYWORDS)
@pytest.mark.parametrize("casing", [str.lower, str.upper, str.title])
def test_keywords_rejected_in_any_casing_by_both_phases(keyword, casing):
    text = f"{casing(keyword)}('x')"
    assert not pre_validate_condition_expression(text).valid
    assert not validate_condition_expression(text).valid


def test_case_insensitive_examples():
    assert not pre_validate_condition_expression("EVAL()").valid
    assert not pre_validate_condition_expression("Process.env").valid
    assert not pre_validate_condition_expression("WINDOW.alert").valid


def test_proto_is_matched_inside_identifiers():
    assert not pre_validate_condition_expression("x__proto__").valid


def test_rejection_is_logged_without_expression_text(rejected_records):
    raw = "window.secret_token_value"
    pre_validate_condition_expression(raw)
    recs = rejected_records("cond.prevalidate.rejected")
    assert recs
    rec = recs[-1]
    assert rec.code == "kw.window"
    assert rec.length == len(raw)
    assert raw not in rec.getMessage()


@pytest.mark.parametrize("raw", ["", None, 42])
def test_input_rejection_is_logged(rejected_records, raw):
    pre_validate_condition_expression(raw)
    rec = rejected_records("cond.prevalidate.rejected")[-1]
    assert rec.step == "input"
    assert rec.length == (0 if raw == "" else None)
