from __future__ import annotations

"""
flowcond.core.log
=================

Structured logging helper shared by the validator and its callers:
- Context propagation via contextvars (workflow_id, node_id, ...).
- JSON formatter for production; human formatter for local debugging.
- LoggerAdapter that accepts arbitrary keyword fields.
- Library is silent by default (NullHandler); apps/tests opt in.
"""

import contextvars
import json
import logging
import os
import sys
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, ClassVar, Final

__all__ = [
    "bind_context",
    "configure_from_env",
    "disable_stdout_logging",
    "enable_stdout_logging",
    "get_logger",
    "log_context",
    "set_level",
]

# ---------- Context ----------

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar("flowcond_log_ctx", default=None)


def _ctx_copy() -> dict[str, Any]:
    ctx = _log_context.get()
    return dict(ctx) if ctx else {}


def bind_context(**fields: Any) -> None:
    """
    Merge fields into the current structured log context.
    None values are dropped.
    """
    ctx = _ctx_copy()
    ctx.update({k: v for k, v in fields.items() if v is not None})
    _log_context.set(ctx)


@contextmanager
def log_context(**fields: Any):
    """
    Temporarily add fields to the structured log context (e.g. the branch
    node being saved). Restores the previous context on exit.
    """
    token = _log_context.set({**_ctx_copy(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _log_context.reset(token)


# ---------- Formatters ----------

_STD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "asctime",
        "taskName",
    }
)


def _iso_utc_ms(ts: float) -> str:
    dt = datetime.fromtimestamp(ts, tz=UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record: ts, level, logger, message, context fields,
    keyword extras and a compact error block when exc_info is set.
    """

    def __init__(self, *, include_stack: bool = False) -> None:
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": _iso_utc_ms(record.created),
            "level": record.levelname,
            "logger": record.name,
        }
        msg = record.getMessage()
        if msg:
            out["message"] = msg

        ctx = _log_context.get()
        if ctx:
            out.update(ctx)

        for k, v in record.__dict__.items():
            if k in _STD_ATTRS or k in out:
                continue
            out[k] = v

        if record.exc_info:
            exc_type = record.exc_info[0].__name__ if record.exc_info[0] else "Exception"
            error: dict[str, Any] = {
                "type": exc_type,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }
            if self.include_stack:
                error["stack"] = self.formatException(record.exc_info)
            out["error"] = error

        return json.dumps(out, ensure_ascii=False, separators=(",", ":"), default=str)


class HumanFormatter(logging.Formatter):
    """Compact single-line formatter for local debugging."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    _shown: ClassVar[tuple[str, ...]] = ("event", "step", "code", "workflow_id", "node_id")

    def format(self, record: logging.LogRecord) -> str:
        s = f"{self.formatTime(record)} {record.levelname:<5} {record.name}: {record.getMessage()}"
        fields = {**_ctx_copy(), **record.__dict__}
        compact = {k: fields[k] for k in self._shown if fields.get(k) is not None}
        if compact:
            s += "  [" + ", ".join(f"{k}={v}" for k, v in compact.items()) + "]"
        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)
        return s


# ---------- Filters / adapter ----------


class ContextFilter(logging.Filter):
    """Copy contextvars onto the record so handlers can route on them."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _log_context.get()
        if ctx:
            for k, v in ctx.items():
                if k not in record.__dict__:
                    record.__dict__[k] = v
        return True


class _KwExtraAdapter(logging.LoggerAdapter):
    """
    Moves unknown kwargs into `extra={...}` so callers can write
        log.debug("rejected", event="cond.validate.rejected", step="denylist")
    Keys clashing with LogRecord attributes are prefixed with `field_`.
    """

    _allowed_passthrough: ClassVar[frozenset[str]] = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})

    def process(self, msg, kwargs):
        extra = kwargs.get("extra")
        if not isinstance(extra, dict):
            extra = {}
        for k in [k for k in kwargs if k not in self._allowed_passthrough]:
            v = kwargs.pop(k)
            key = f"field_{k}" if k in _STD_ATTRS else k
            extra.setdefault(key, v)
        kwargs["extra"] = extra
        return msg, kwargs


# ---------- Public configuration API ----------

_LOGGER_NAME = "flowcond"
_configured = False
_stdout_handler_key = "_flowcond_stdout_handler"


def get_logger(name: str | None = None) -> logging.LoggerAdapter:
    """Namespaced logger adapter accepting keyword fields. Silent until configured."""
    _bootstrap_minimal()
    base = logging.getLogger(_LOGGER_NAME)
    target = base.getChild(name) if name else base
    return _KwExtraAdapter(target, {})


def _bootstrap_minimal() -> None:
    global _configured
    if _configured:
        return
    lg = logging.getLogger(_LOGGER_NAME)
    if not any(isinstance(h, logging.NullHandler) for h in lg.handlers):
        lg.addHandler(logging.NullHandler())
    if not any(isinstance(f, ContextFilter) for f in lg.filters):
        lg.addFilter(ContextFilter())
    _configured = True


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Invalid level name: {level!r}")
    return resolved


def set_level(level: int | str) -> None:
    """Change the library logger level at runtime (affects children)."""
    logging.getLogger(_LOGGER_NAME).setLevel(_resolve_level(level))


def enable_stdout_logging(
    *,
    level: int | str = logging.DEBUG,
    json_output: bool = True,
    include_stack: bool = False,
    pretty: bool = False,
) -> None:
    """
    Attach a stdout handler (replacing a previous one).
    - pretty=True -> HumanFormatter, else JsonFormatter when json_output=True
    """
    lvl = _resolve_level(level)
    _bootstrap_minimal()
    lg = logging.getLogger(_LOGGER_NAME)
    disable_stdout_logging()

    fmt: logging.Formatter
    if pretty:
        fmt = HumanFormatter()
    elif json_output:
        fmt = JsonFormatter(include_stack=include_stack)
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    h = logging.StreamHandler(sys.stdout)
    h.set_name(_stdout_handler_key)
    h.setLevel(lvl)
    h.setFormatter(fmt)
    lg.addHandler(h)


def disable_stdout_logging() -> None:
    lg = logging.getLogger(_LOGGER_NAME)
    for h in list(lg.handlers):
        if h.get_name() == _stdout_handler_key:
            lg.removeHandler(h)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes", "on")


def configure_from_env() -> None:
    """
    Call once in application entrypoints/tests.
    Honors:
      - FLOWCOND_LOG_STDOUT=1|true -> enable stdout
      - FLOWCOND_LOG_LEVEL=DEBUG|INFO|... (default WARNING)
      - FLOWCOND_LOG_PRETTY=1 -> human formatter instead of JSON
      - FLOWCOND_LOG_STACK=1 -> include stack in JSON logs
    """
    level = os.getenv("FLOWCOND_LOG_LEVEL", "WARNING")
    _bootstrap_minimal()
    set_level(level)

    if _env_flag("FLOWCOND_LOG_STDOUT"):
        pretty = _env_flag("FLOWCOND_LOG_PRETTY")
        enable_stdout_logging(
            level=level, json_output=not pretty, include_stack=_env_flag("FLOWCOND_LOG_STACK"), pretty=pretty
        )
    else:
        disable_stdout_logging()


_bootstrap_minimal()
