# flashcards/errors.py
"""
Error taxonomy for the seed pipeline.

Every error carries an `error_code` (E_*) and the pipeline `step` it came from,
so the CLI can tell the user which step failed.
"""

from typing import Optional

# Error codes
E_CONFIG = "E_CONFIG"
E_CONNECT = "E_CONNECT"
E_WRITE = "E_WRITE"
E_READ = "E_READ"
E_TEARDOWN = "E_TEARDOWN"
E_TEARDOWN_TIMEOUT = "E_TEARDOWN_TIMEOUT"


class FlashcardsError(Exception):
    """Root of all errors raised by the flashcards package."""

    error_code = "E_INTERNAL"
    step = "run"

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if step is not None:
            self.step = step

    def __str__(self) -> str:
        return self.message


class ConfigError(FlashcardsError):
    """Store configuration is missing or invalid."""

    error_code = E_CONFIG
    step = "config"


class ConnectivityError(FlashcardsError):
    """Store unreachable or connection setup failed."""

    error_code = E_CONNECT
    step = "connect"


class WriteError(FlashcardsError):
    """Insert rejected by the store."""

    error_code = E_WRITE
    step = "write"


class ReadError(FlashcardsError):
    """Query rejected or connection lost mid-read."""

    error_code = E_READ
    step = "read"


class TeardownError(FlashcardsError):
    """Connection release failed."""

    error_code = E_TEARDOWN
    step = "teardown"


class TeardownTimeout(TeardownError):
    """Connection release did not finish within the configured bound."""

    error_code = E_TEARDOWN_TIMEOUT
