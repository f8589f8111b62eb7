from __future__ import annotations

import json
import logging
import sys
import time
import uuid
import datetime as dt
from typing import Any, Optional

LOGGER_NAME = "todo_backend"

# attributes every LogRecord carries; anything else came in through `extra=`
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, msg plus any extra fields."""

    def __init__(self, time_format: str = ""):
        super().__init__()
        self.time_format = time_format

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        ts = dt.datetime.fromtimestamp(record.created, dt.timezone.utc)
        if self.time_format:
            return ts.strftime(self.time_format)
        return ts.isoformat()

    def format(self, record: logging.LogRecord) -> str:
        rec: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k, v in vars(record).items():
            if k not in _RECORD_ATTRS and not k.startswith("_"):
                rec[k] = v
        if record.exc_info:
            rec["error"] = self.formatException(record.exc_info)
        return json.dumps(rec, ensure_ascii=False, default=str)


class _BelowError(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def setup_logger(level: str = "info", time_format: str = "", name: str = LOGGER_NAME,
                 stdout=None, stderr=None) -> logging.Logger:
    """
    Build the service logger. Called once by whoever assembles the app and then
    passed down explicitly; re-running it replaces the handlers instead of stacking them.
    Records below ERROR go to stdout, ERROR and above to stderr.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)

    formatter = JsonFormatter(time_format)
    infos = logging.StreamHandler(stdout or sys.stdout)
    infos.addFilter(_BelowError())
    infos.setFormatter(formatter)
    errors = logging.StreamHandler(stderr or sys.stderr)
    errors.setLevel(logging.ERROR)
    errors.setFormatter(formatter)
    logger.addHandler(infos)
    logger.addHandler(errors)

    if not time_format:
        logger.warning("Time format for logger is not provided - use ISO 8601 default")
    return logger


class RequestLogContext:
    """Start/end bookkeeping for one inbound call."""

    def __init__(self, logger: logging.Logger, fields: Optional[dict[str, Any]] = None):
        self.logger = logger
        self.request_id = str(uuid.uuid4())
        self.fields = {"request-id": self.request_id, **(fields or {})}
        self.start = time.perf_counter()

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.start) * 1000.0

    def started(self):
        self.logger.debug("request started", extra=self.fields)

    def completed(self, status: int):
        self.logger.debug(
            "request completed",
            extra={**self.fields, "status": status, "elapsed-ms": round(self.elapsed_ms(), 3)},
        )

    def failed(self, err: BaseException):
        self.logger.error(
            "request failed",
            extra={**self.fields, "error": str(err), "elapsed-ms": round(self.elapsed_ms(), 3)},
        )
