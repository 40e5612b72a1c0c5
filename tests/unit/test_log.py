from __future__ import annotations

import json
import logging

import pytest

from flowcond import validate_condition_expression
from flowcond.core.log import HumanFormatter, JsonFormatter, get_logger, log_context, set_level

pytestmark = [pytest.mark.unit]


def _record(**extra) -> logging.LogRecord:
    rec = logging.LogRecord("flowcond.validator", logging.DEBUG, __file__, 1, "condition rejected", None, None)
    rec.__dict__.update(extra)
    return rec


def test_rejections_are_logged_with_step(rejected_records):
    validate_condition_expression("__v0.map()")
    validate_condition_expression("eval('x')")
    recs = rejected_records()
    assert [r.step for r in recs[-2:]] == ["methods", "denylist"]
    assert recs[-1].code == "exec.eval"
    assert recs[-2].code is None


def test_grammar_rejection_logged(rejected_records):
    validate_condition_expression("__v0 * 2")
    assert rejected_records()[-1].step == "grammar"


def test_valid_expressions_are_not_logged(rejected_records):
    before = len(rejected_records())
    validate_condition_expression("__v0 === 1")
    assert len(rejected_records()) == before


def test_json_formatter_merges_context_and_extras():
    with log_context(workflow_id="wf-1", node_id="branch-2"):
        out = json.loads(JsonFormatter().format(_record(event="cond.validate.rejected", step="brackets")))
    assert out["level"] == "DEBUG"
    assert out["logger"] == "flowcond.validator"
    assert out["message"] == "condition rejected"
    assert out["workflow_id"] == "wf-1"
    assert out["node_id"] == "branch-2"
    assert out["step"] == "brackets"


def test_human_formatter_shows_selected_fields():
    line = HumanFormatter().format(_record(event="cond.validate.rejected", step="identifiers"))
    assert "condition rejected" in line
    assert "step=identifiers" in line


def test_adapter_moves_keywords_into_extra(caplog):
    caplog.set_level("DEBUG", logger="flowcond")
    get_logger("adapter").info("hello", event="adapter.event", module="clash")
    rec = next(r for r in caplog.records if getattr(r, "event", "") == "adapter.event")
    assert rec.field_module == "clash"
    assert rec.name == "flowcond.adapter"


def test_set_level_rejects_unknown_names():
    with pytest.raises(ValueError):
        set_level("LOUD")
