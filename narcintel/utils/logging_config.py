"""
Logging and flow metrics for the Narcotics Intelligence Platform.

Production writes one JSON object per line (stdout and logs/narcintel.log);
development writes readable single lines. Every record emitted while a
request is being served carries that request's id.
"""

import json
import logging
import sys
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Dict, List, Optional

from narcintel.config import settings


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "sqlalchemy.engine", "watchdog")


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with request id and keyword context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "env": settings.environment,
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": "".join(traceback.format_exception(exc_type, exc, tb)),
            }

        return json.dumps(entry, default=str, ensure_ascii=False)


class StructuredLogger:
    """
    Logger taking keyword context instead of formatted strings.

        logger = StructuredLogger(__name__)
        logger.info("Analysis saved", doc_id=doc_id, risk_level="High")
        logger.error("Error saving flagged post", error=str(e), exc_info=True)

    Callers pass identifiers and levels, never raw emails.
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info: bool = False, **context):
        if self._logger.isEnabledFor(level):
            self._logger.log(level, message, exc_info=exc_info, extra={"context": context})

    def info(self, message: str, **context):
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, exc_info: bool = False, **context):
        self._log(logging.ERROR, message, exc_info=exc_info, **context)


def setup_logging(level: str = "INFO", json_format: bool = True, log_file: Optional[str] = None):
    """
    Replace the root logger's handlers.

    Args:
        level: Log level name for the root logger and its handlers
        json_format: JSON lines on stdout instead of the readable format
        log_file: Also append JSON lines to this file, creating its directory
    """
    numeric_level = getattr(logging, level.upper())
    handlers: List[logging.Handler] = []

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JSONFormatter() if json_format else logging.Formatter(DEV_FORMAT))
    handlers.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def init_logging():
    """Configure logging from settings: JSON plus a log file in production."""
    if settings.is_production:
        setup_logging(level="INFO", json_format=True, log_file="logs/narcintel.log")
    else:
        setup_logging(level="DEBUG", json_format=False)


# ============== FLOW METRICS ==============


class MetricsCollector:
    """
    Per-flow call counts, failures and latencies, reported on /status.

    Latencies keep a sliding window per flow so a long-running process does
    not grow without bound.
    """

    WINDOW = 500

    def __init__(self):
        self._calls: Dict[str, int] = {}
        self._failures: Dict[str, int] = {}
        self._latencies: Dict[str, List[float]] = {}
        self._started = time.time()

    def record(self, flow: str, seconds: float, ok: bool):
        self._calls[flow] = self._calls.get(flow, 0) + 1
        if not ok:
            self._failures[flow] = self._failures.get(flow, 0) + 1
            return
        window = self._latencies.setdefault(flow, [])
        window.append(seconds)
        del window[:-self.WINDOW]

    def get_stats(self) -> Dict[str, Any]:
        flows = {}
        for flow, calls in self._calls.items():
            latencies = sorted(self._latencies.get(flow, []))
            flows[flow] = {
                "calls": calls,
                "failures": self._failures.get(flow, 0),
                "latency_p50": latencies[len(latencies) // 2] if latencies else None,
                "latency_max": latencies[-1] if latencies else None,
            }
        return {"uptime_seconds": round(time.time() - self._started, 1), "flows": flows}


metrics = MetricsCollector()


def track_flow(name: str):
    """Record every call of the wrapped AI flow under `name`."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                metrics.record(name, time.perf_counter() - start, ok=False)
                raise
            metrics.record(name, time.perf_counter() - start, ok=True)
            return result

        return wrapper

    return decorator
