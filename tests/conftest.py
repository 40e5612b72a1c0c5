# conftest.py
from __future__ import annotations

import os
import uuid

import pytest

from flowcond.core.log import (
    bind_context,
    configure_from_env,
    enable_stdout_logging,
    get_logger,
    log_context,
    set_level,
)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, pure unit tests")
    config.addinivalue_line("markers", "validation: condition validation pipeline")
    config.addinivalue_line("markers", "security: display escaping and denylist behavior")
    config.addinivalue_line("markers", "api: exception-style public helpers and models")


def pytest_addoption(parser):
    parser.addoption(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit flowcond logs in JSON format during tests",
    )


@pytest.fixture(scope="session", autouse=True)
def _configure_flowcond_logging(request):
    configure_from_env()
    prefer_json = request.config.getoption("--log-json")
    # unless enabled via env, log human-readable debug output to captured stdout
    if os.getenv("FLOWCOND_LOG_STDOUT", "").lower() not in ("1", "true", "yes", "on"):
        set_level("DEBUG")
        enable_stdout_logging(level="DEBUG", json_output=prefer_json, pretty=not prefer_json)
    bind_context(role="pytest")


@pytest.fixture(scope="session")
def session_run_id():
    return uuid.uuid4().hex[:8]


@pytest.fixture(autouse=True)
def _test_log_context(request, session_run_id):
    log = get_logger("test")
    with log_context(pytest_nodeid=request.node.nodeid, test_run=session_run_id):
        log.debug("pytest.test.start", event="pytest.test.start")
        yield


@pytest.fixture
def rejected_records(caplog):
    """Return a callable listing `cond.*.rejected` records captured so far."""
    caplog.set_level("DEBUG", logger="flowcond")

    def _records(event: str = "cond.validate.rejected"):
        return [r for r in caplog.records if getattr(r, "event", "") == event]

    return _records
