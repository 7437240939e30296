# FILE: nctl/logging.py
from __future__ import annotations

import contextvars
import datetime as _dt
import json
import logging
import os
import sys
import traceback
from typing import Any, Dict, Optional, Set

# ---------- Module-level config (env-driven, safe defaults) ----------
_LOG_SCHEMA = os.environ.get("NCTL_LOG_SCHEMA", "nctl.log.v1")
_LOG_SERVICE = os.environ.get("NCTL_SERVICE", "nctl")

# Max chars per field (truncate to keep JSON small)
try:
    _MAX_FIELD = max(512, int(os.environ.get("NCTL_LOG_MAX_FIELD", "8192")))
except ValueError:
    _MAX_FIELD = 8192

_PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Standard LogRecord attributes that are not treated as dynamic meta
_LOG_RECORD_STD_ATTRS: Set[str] = {
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
    "taskName",
    "message",
}

# Envelope fields picked from the bound context or record extras
_PICK_FIELDS = (
    "net_id",
    "node_id",
    "command",
    "rpc_url",
    "method",
    "endpoint",
    "status",
    "latency_ms",
    "config_hash",
)

# ---------- Context management ----------
_log_ctx: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "nctl_log_ctx", default={}
)


def bind(**fields: Any) -> None:
    """Merge fields into the current logging context."""
    cur = dict(_log_ctx.get())
    for k, v in fields.items():
        if v is None:
            continue
        cur[str(k)] = v
    _log_ctx.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_log_ctx.get())
    for k in keys:
        cur.pop(k, None)
    _log_ctx.set(cur)


def reset() -> None:
    _log_ctx.set({})


def context() -> Dict[str, Any]:
    return dict(_log_ctx.get())


# ---------- Helpers ----------
def _ts_iso() -> str:
    # RFC3339 with milliseconds, UTC Z
    now = _dt.datetime.now(_dt.timezone.utc)
    ms = int(now.microsecond / 1000)
    base = now.replace(microsecond=0).isoformat().replace("+00:00", "")
    return f"{base}.{ms:03d}Z"


def _compact_json(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=str)


def _truncate(v: Any) -> Any:
    if isinstance(v, str) and len(v) > _MAX_FIELD:
        return v[:_MAX_FIELD] + "...<truncated>"
    return v


def _meta_from_record(
    record: logging.LogRecord, evt_keys: Set[str]
) -> Optional[Dict[str, Any]]:
    """
    Collect extras that are neither standard LogRecord attributes nor
    already lifted into the envelope.
    """
    meta: Dict[str, Any] = {}
    for k, v in record.__dict__.items():
        if k in _LOG_RECORD_STD_ATTRS or k in evt_keys or k.startswith("_"):
            continue
        meta[k] = _truncate(v)
    return meta or None


# ---------- JSON formatter ----------
class JSONFormatter(logging.Formatter):
    """
    One-line JSON formatter with a stable envelope.

    Core envelope fields:
      - schema, service, ts, lvl, logger, msg
      - net_id, node_id, command, rpc_url, method, endpoint
      - status, latency_ms, config_hash
    Anything else passed via ``extra=`` lands under ``meta``.
    """

    def __init__(self, *, include_stack: bool = True):
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        ctx = context()

        evt: Dict[str, Any] = {
            "schema": _LOG_SCHEMA,
            "service": _LOG_SERVICE,
            "ts": _ts_iso(),
            "lvl": record.levelname,
            "logger": record.name,
            "msg": _truncate(str(record.getMessage())),
        }

        # Prefer record extras over bound context
        for name in _PICK_FIELDS:
            v = getattr(record, name, None)
            if v is None:
                v = ctx.get(name)
            if v is not None:
                evt[name] = _truncate(v)

        if record.exc_info and self.include_stack:
            exc_type, exc_val, exc_tb = record.exc_info
            evt["exc_type"] = getattr(exc_type, "__name__", str(exc_type))
            evt["exc_message"] = str(exc_val)[:_MAX_FIELD]
            evt["stack"] = "".join(
                traceback.format_exception(exc_type, exc_val, exc_tb)
            )[:_MAX_FIELD]

        meta = _meta_from_record(record, set(evt.keys()))
        if meta:
            evt["meta"] = meta

        return _compact_json(evt)


# ---------- Root integration ----------
def _clear_handlers(logger: logging.Logger) -> None:
    for h in list(logger.handlers):
        logger.removeHandler(h)


def configure_logging(
    level: str = "WARNING",
    *,
    json_output: bool = True,
    stream: Any = None,
    include_stack: bool = True,
) -> logging.Logger:
    """
    Configure the root logger. Records go to stderr by default so stdout
    stays reserved for rendered output.
    """
    lvl = getattr(logging, (level or "WARNING").upper(), logging.WARNING)
    stream = stream or sys.stderr

    h = logging.StreamHandler(stream=stream)
    if json_output:
        h.setFormatter(JSONFormatter(include_stack=include_stack))
    else:
        h.setFormatter(logging.Formatter(_PLAIN_FORMAT))
    h.setLevel(lvl)

    root = logging.getLogger()
    root.setLevel(lvl)
    _clear_handlers(root)
    root.addHandler(h)

    # httpx logs every request at INFO; keep it at our level or quieter
    logging.getLogger("httpx").setLevel(max(lvl, logging.WARNING))

    return root


def get_logger(name: str = "nctl") -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "bind",
    "unbind",
    "reset",
    "context",
    "configure_logging",
    "get_logger",
    "JSONFormatter",
]
