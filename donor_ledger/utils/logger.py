"""
Logging setup for the donor ledger.

Provides:
- A formatter with millisecond timestamps and aligned levels
- One-call configuration of the root logger and noisy third-party loggers
- A timing context manager for dashboard operations
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Optional


class MillisecondsFormatter(logging.Formatter):
    """Formatter that appends milliseconds to the timestamp."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - must match parent class method name
        ct = datetime.fromtimestamp(record.created)
        if datefmt:
            return ct.strftime(datefmt) + f",{int(record.msecs):03d}"
        return ct.strftime("%Y-%m-%d %H:%M:%S") + f",{int(record.msecs):03d}"


def build_format(component: Optional[str] = None) -> str:
    """Log line format, optionally tagged with a component name (e.g. "fraud")."""
    if component:
        return f"%(asctime)s | %(levelname)-8s | {component} | %(name)s:%(lineno)d | %(message)s"
    return "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def configure_global_logging(log_level: str = "INFO", component: Optional[str] = None, stream=None) -> None:
    """
    Configure the root logger with the unified format.

    Call this once at CLI startup. Library modules only ever use
    ``logging.getLogger(__name__)``.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        component: Optional tag added to every line
        stream: Output stream (defaults to stderr so report output stays clean)
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    formatter = MillisecondsFormatter(build_format(component), datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # LiteLLM logs every request at INFO
    for lib_name in ["LiteLLM", "litellm", "httpx", "httpcore", "urllib3"]:
        lib_logger = logging.getLogger(lib_name)
        lib_logger.handlers.clear()
        lib_logger.propagate = True
        lib_logger.setLevel(max(level, logging.WARNING))


@contextmanager
def log_timing(logger: logging.Logger, operation: str, **context):
    """
    Time an operation and log its outcome.

    Usage:
        with log_timing(logger, "fraud assessment", donors=12):
            ...
    """
    details = " ".join(f"{k}={v}" for k, v in context.items())
    suffix = f" [{details}]" if details else ""
    start = time.monotonic()
    logger.debug(f"Starting {operation}{suffix}")
    try:
        yield
    except Exception as e:
        duration = time.monotonic() - start
        logger.error(f"Failed {operation} after {duration:.2f}s{suffix}: {e}")
        raise
    duration = time.monotonic() - start
    logger.info(f"Completed {operation} in {duration:.2f}s{suffix}")
