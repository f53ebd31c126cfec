# flashcards/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)

The seed run is a one-shot process, so nothing is scraped; metrics are written
in the node_exporter textfile format when the CLI is given --metrics-file.
"""

import os
import logging
import time
from typing import Optional

import sentry_sdk
from prometheus_client import Counter, Histogram, REGISTRY, write_to_textfile
from pythonjsonlogger.json import JsonFormatter

_TRUTHY = ("1", "true", "yes")


# --- ENV flags, read on each call so a .env loaded after import still applies
def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in _TRUTHY


def prometheus_enabled() -> bool:
    return _flag("PROMETHEUS_ENABLED", "true")


def log_as_json() -> bool:
    return _flag("LOG_AS_JSON", "true")


# --- Logger setup
def setup_logger(name: str = "flashcards", level: Optional[int] = None) -> logging.Logger:
    """
    Configure the package logger. Safe to call again after the environment
    changes: the level and the formatter are re-applied to the existing handler.
    """
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        # stderr; stdout carries the report
        logger.addHandler(logging.StreamHandler())
    for handler in logger.handlers:
        if log_as_json():
            handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        else:
            handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    return logger


logger = setup_logger()


def init_sentry() -> bool:
    """Initialise Sentry when SENTRY_DSN is configured. Returns True if enabled."""
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return False
    sentry_sdk.init(dsn=dsn, environment=os.getenv("ENVIRONMENT", "development"))
    logger.info("Sentry initialized")
    return True


# --- Prometheus metrics
RECORDS_WRITTEN = Counter(
    "flashcards_records_written_total",
    "Flashcards inserted",
)

RECORDS_READ = Counter(
    "flashcards_records_read_total",
    "Flashcards returned by reads",
)

STEP_FAILURES = Counter(
    "flashcards_step_failures_total",
    "Pipeline step failures",
    ["step"],
)

TEARDOWN_TIMEOUTS = Counter(
    "flashcards_teardown_timeouts_total",
    "Connection releases abandoned after the bounded wait",
)

STEP_LATENCY = Histogram(
    "flashcards_step_latency_seconds",
    "Pipeline step latency in seconds",
    ["step"],
)


# --- Helper wrappers (never crash the run)
def observe_step(start_ts: float, step: str):
    try:
        STEP_LATENCY.labels(step=step).observe(time.time() - start_ts)
    except Exception:
        pass


def inc_written(n: int = 1):
    try:
        RECORDS_WRITTEN.inc(n)
    except Exception:
        pass


def inc_read(n: int):
    try:
        RECORDS_READ.inc(n)
    except Exception:
        pass


def inc_step_failure(step: str):
    try:
        STEP_FAILURES.labels(step=step).inc()
    except Exception:
        pass


def inc_teardown_timeout():
    try:
        TEARDOWN_TIMEOUTS.inc()
    except Exception:
        pass


def write_metrics(path: str) -> bool:
    """Write the registry to `path` in textfile-collector format. Returns False if skipped."""
    if not prometheus_enabled():
        return False
    try:
        write_to_textfile(path, REGISTRY)
        return True
    except Exception:
        logger.warning("Could not write metrics file", extra={"path": path}, exc_info=True)
        return False
