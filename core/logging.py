# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core - Structured logging with connection context
# PURPOSE: Tag every log line of an open attempt with its driver and target
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging

Every open() runs inside a log context carrying the driver name, attempt id
and target (host, user, database). Formatters read the context of the
calling thread, so pool threads opening connections in parallel never mix
their fields.

Checkpoints are single INFO records with a fixed name that mark lifecycle
events of the connector:

    registry_built      trust bundle loaded, driver registered
    connection_opened   handshake finished
    connection_failed   open aborted (carries the state it failed in)

Fields named like secrets (password, token, secret_key, ...) are masked by
both formatters before they are written.

Usage:
    from core.logging import configure_logging, log_context, log_checkpoint

    configure_logging(level="DEBUG", json_output=True)

    with log_context(driver="mysql-aws-iam", attempt_id="3f2a9c"):
        log_checkpoint("connection_opened", {"token_minted": True})
"""

import json
import logging
import os
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional, TextIO, Union

MASK = "***"
_SECRET_KEYS = frozenset({"password", "passwd", "token", "auth_token", "secret_key", "session_token"})

# Third-party loggers that are chatty below INFO
_QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "sqlalchemy.pool")


class ComponentType(str, Enum):
    """Top-level areas a logger can be tagged with."""
    CLI = "cli"
    CONNECTOR = "connector"
    POOL = "pool"


@dataclass(frozen=True)
class LogContext:
    """Fields attached to log records emitted inside log_context()."""
    driver: Optional[str] = None
    attempt_id: Optional[str] = None
    host: Optional[str] = None
    user: Optional[str] = None
    database: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merged(self, **kwargs: Any) -> "LogContext":
        """Child context: known fields override, anything else goes to extra."""
        known = {f.name for f in fields(self)} - {"extra"}
        updates = {k: v for k, v in kwargs.items() if k in known and v is not None}
        extra = {**self.extra, **{k: v for k, v in kwargs.items() if k not in known}}
        return replace(self, extra=extra, **updates)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only, extra flattened in."""
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) not in (None, "")
        }
        result.update(self.extra)
        return result


_local = threading.local()
_EMPTY = LogContext()


def get_current_context() -> LogContext:
    """Innermost context of the calling thread."""
    stack = getattr(_local, "stack", None)
    return stack[-1] if stack else _EMPTY


@contextmanager
def log_context(**kwargs: Any) -> Iterator[LogContext]:
    """
    Push a context for the duration of the block.

    Nested contexts inherit the outer fields. A field passed as None keeps
    the outer value.

    Example:
        with log_context(driver="mysql-aws-iam", attempt_id=attempt.attempt_id):
            with log_context(host="db.example.com:3306", user="iam_user"):
                logger.info("Minting token")
    """
    context = get_current_context().merged(**kwargs)
    if not hasattr(_local, "stack"):
        _local.stack = []
    _local.stack.append(context)
    try:
        yield context
    finally:
        _local.stack.pop()


def mask_secrets(data: Any) -> Any:
    """Copy of `data` with secret-named keys replaced by MASK, recursively."""
    if isinstance(data, dict):
        return {
            key: MASK if str(key).lower() in _SECRET_KEYS else mask_secrets(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [mask_secrets(item) for item in data]
    return data


def _record_data(record: logging.LogRecord) -> Dict[str, Any]:
    data = getattr(record, "data", None)
    return mask_secrets(data) if data else {}


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        component = getattr(record, "component", None)
        if component:
            entry["component"] = component

        context = get_current_context().to_dict()
        if context:
            entry["context"] = mask_secrets(context)

        data = _record_data(record)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line text with the connection context inline."""

    _INLINE = ("driver", "attempt_id", "host", "user")

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        inline = [
            f"{name}={getattr(context, name)}"
            for name in self._INLINE
            if getattr(context, name)
        ]
        line = (
            f"{_timestamp(record)[:19].replace('T', ' ')} {record.levelname:<8} {record.name}"
            f"{' [' + ' '.join(inline) + ']' if inline else ''}: {record.getMessage()}"
        )

        data = _record_data(record)
        if data:
            line += f" {data}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter stamping records with a component name."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("component", self.extra.get("component"))
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """Logger for `name`, tagged with `component` in structured output."""
    return ContextLogger(logging.getLogger(name), {"component": component.value if component else None})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Install a single root handler.

    Args:
        level: Root log level name or number.
        json_output: JSON lines instead of text (also LOG_FORMAT=json).
        stream: Output stream (default: stdout).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    use_json = json_output or os.getenv("LOG_FORMAT", "").lower() == "json"

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StructuredFormatter() if use_json else HumanFormatter())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


# ============================================================================
# CHECKPOINTS
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Emit a named lifecycle checkpoint.

    The record carries `checkpoint`, the current context and `data` in its
    `data` attribute; formatters mask secret-named keys.
    """
    payload: Dict[str, Any] = {"checkpoint": name}
    payload.update(get_current_context().to_dict())
    if data:
        payload.update(data)
    (logger or logging.getLogger("checkpoint")).info(f"CHECKPOINT: {name}", extra={"data": payload})


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
    "mask_secrets",
    "MASK",
]
