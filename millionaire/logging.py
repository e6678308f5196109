"""
millionaire.logging — structured logs for deploys and tests
===========================================================

Standard-library logging with two formatters (newline-delimited JSON, or a
human single-line format) and contextual fields that can be *bound* per test,
per deploy script or per section.

Quick start
-----------
    from millionaire.logging import setup_logging, context, get_logger

    setup_logging(fmt="plain")
    with context(network="hardhat", script="00_deploy_mocks"):
        get_logger("millionaire.deployments").info("Local network detected! Deploying mocks...")

Environment variables
---------------------
MILLIONAIRE_LOG_LEVEL  : DEBUG|INFO|WARNING|ERROR (default: INFO)
MILLIONAIRE_LOG_FORMAT : json|plain (default: plain)
MILLIONAIRE_LOG_FILE   : path to a log file (in addition to stderr)

Extras passed to logger calls (via ``extra={...}``) are merged into JSON output.
"""

from __future__ import annotations

import contextlib
import contextvars
import functools
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

__all__ = [
    "setup_logging",
    "get_logger",
    "bind",
    "unbind",
    "context",
    "log_duration",
    "JsonFormatter",
    "PlainFormatter",
]

F = TypeVar("F", bound=Callable[..., Any])

# ------------------------------------------------------------------------------
# Context handling (contextvars)
# ------------------------------------------------------------------------------

_CTX: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("_MILLIONAIRE_LOG_CTX", default={})


def _ctx_copy() -> Dict[str, Any]:
    d = _CTX.get()
    return dict(d) if d else {}


def bind(**fields: Any) -> None:
    """Bind additional fields into the contextual log dictionary."""
    d = _ctx_copy()
    d.update({k: v for k, v in fields.items() if v is not None})
    _CTX.set(d)


def unbind(*keys: str) -> None:
    """Remove fields from the contextual log dictionary."""
    if not keys:
        return
    d = _ctx_copy()
    for k in keys:
        d.pop(k, None)
    _CTX.set(d)


@contextlib.contextmanager
def context(**fields: Any) -> Iterator[None]:
    """Temporarily bind fields for the duration of the block."""
    token = _CTX.set({**_ctx_copy(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _CTX.reset(token)


# ------------------------------------------------------------------------------
# Formatters
# ------------------------------------------------------------------------------


def _iso_utc(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


_DEFAULT_KEYS = set(
    logging.LogRecord(
        name="x", level=logging.INFO, pathname=__file__, lineno=1, msg="m", args=(), exc_info=None
    ).__dict__
) | {"message", "asctime", "ctx"}


class _ContextFilter(logging.Filter):
    """Attach the bound contextvars payload to each record as `ctx`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.ctx = _ctx_copy()
        return True


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        base: Dict[str, Any] = {
            "ts": _iso_utc(record.created),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        ctx = getattr(record, "ctx", None)
        if ctx:
            base["ctx"] = ctx
        for k, v in record.__dict__.items():
            if k in _DEFAULT_KEYS or k.startswith("_"):
                continue
            base[k] = v
        if record.exc_info:
            base["exc"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stack": self.formatException(record.exc_info),
            }
        return json.dumps(base, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-friendly single-line formatter."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = getattr(record, "ctx", None)
        ctx_str = f" ctx={json.dumps(ctx, default=str, sort_keys=True)}" if ctx else ""
        line = f"{_iso_utc(record.created)} | {record.levelname:<7} | {record.name} | {record.getMessage()}{ctx_str}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ------------------------------------------------------------------------------
# Setup
# ------------------------------------------------------------------------------

_LOGGER_ROOT = "millionaire"
_configured = False


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    file: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the `millionaire` logger tree once (or again with force=True).

    Handlers are attached to the package logger rather than the root logger so
    host applications (and pytest's log capture) keep their own configuration;
    records still propagate to the root.
    """
    global _configured
    logger = logging.getLogger(_LOGGER_ROOT)
    if _configured and not force:
        return logger

    env_level = (level or os.getenv("MILLIONAIRE_LOG_LEVEL") or "INFO").upper()
    env_fmt = (fmt or os.getenv("MILLIONAIRE_LOG_FORMAT") or "plain").lower()
    log_file = file or os.getenv("MILLIONAIRE_LOG_FILE")

    logger.setLevel(getattr(logging, env_level, logging.INFO))
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    formatter: logging.Formatter = JsonFormatter() if env_fmt == "json" else PlainFormatter()

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.addFilter(_ContextFilter())
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.addFilter(_ContextFilter())
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    """Fetch a named logger; names outside the package are nested under it."""
    if name != _LOGGER_ROOT and not name.startswith(_LOGGER_ROOT + "."):
        name = f"{_LOGGER_ROOT}.{name}"
    return logging.getLogger(name)


# ------------------------------------------------------------------------------
# Duration logging
# ------------------------------------------------------------------------------


def log_duration(event: str = "call", level: int = logging.INFO) -> Callable[[F], F]:
    """
    Log start/finish (or error) of the wrapped call with wall time in ms.

        @log_duration("deploy_script")
        def run(...): ...
    """

    def _wrap(fn: F) -> F:
        log = get_logger(fn.__module__)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log.log(level, "%s: start", event, extra={"event": event, "phase": "start"})
            t0 = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                ms = (time.perf_counter() - t0) * 1000.0
                log.error(
                    "%s: error after %.2fms",
                    event,
                    ms,
                    extra={"event": event, "phase": "error", "ms": round(ms, 3), "error": str(e)},
                )
                raise
            ms = (time.perf_counter() - t0) * 1000.0
            log.log(
                level,
                "%s: finish in %.2fms",
                event,
                ms,
                extra={"event": event, "phase": "finish", "ms": round(ms, 3)},
            )
            return result

        return wrapper  # type: ignore[return-value]

    return _wrap
