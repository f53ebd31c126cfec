# flashcards/config.py
"""
Store configuration.

Env vars (all optional):
- DATABASE_URL — full SQLAlchemy URL; wins over the discrete fields below
- DB_DRIVER (default: postgresql+psycopg2)
- DB_HOST, DB_PORT — store address (default: driver default, i.e. localhost)
- DB_NAME (default: flashcards)
- DB_USER, DB_PASSWORD — credentials
- FLASHCARDS_COLLECTION (default: flashcards)
- TEARDOWN_TIMEOUT (default: 5 seconds)
- CREATE_COLLECTION (default: false) — create the table if it is missing
"""

import math
import os
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError, field_validator
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from flashcards.errors import ConfigError

DEFAULT_DRIVER = "postgresql+psycopg2"
DEFAULT_DATABASE = "flashcards"
DEFAULT_COLLECTION = "flashcards"
DEFAULT_TEARDOWN_TIMEOUT = 5.0

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TRUTHY = ("1", "true", "yes")


class StoreConfig(BaseModel):
    database_url: Optional[str] = None
    drivername: str = DEFAULT_DRIVER
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    database: str = DEFAULT_DATABASE
    collection: str = DEFAULT_COLLECTION
    teardown_timeout: float = DEFAULT_TEARDOWN_TIMEOUT
    create_collection: bool = False

    @field_validator("collection")
    @classmethod
    def collection_must_be_identifier(cls, v):
        if not _IDENTIFIER.match(v):
            raise ValueError("collection must be a plain SQL identifier")
        return v

    @field_validator("teardown_timeout")
    @classmethod
    def timeout_must_be_positive(cls, v):
        if not math.isfinite(v) or v <= 0:
            raise ValueError("teardown_timeout must be a finite number > 0")
        return v

    def url(self) -> URL:
        if self.database_url:
            try:
                return make_url(self.database_url)
            except ArgumentError as e:
                raise ConfigError(f"Invalid database URL: {e}") from e
        return URL.create(
            drivername=self.drivername,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    def safe_url(self) -> str:
        """URL rendered for logs, with the password masked."""
        return self.url().render_as_string(hide_password=True)

    @classmethod
    def from_env(cls, **overrides: Any) -> "StoreConfig":
        """
        Build a config from the environment. Overrides that are not None win
        over the corresponding env var. Raises ConfigError on invalid values.
        """
        values: Dict[str, Any] = {
            "database_url": os.getenv("DATABASE_URL") or None,
            "drivername": os.getenv("DB_DRIVER") or None,
            "host": os.getenv("DB_HOST") or None,
            "port": os.getenv("DB_PORT") or None,
            "username": os.getenv("DB_USER") or None,
            "password": os.getenv("DB_PASSWORD") or None,
            "database": os.getenv("DB_NAME") or None,
            "collection": os.getenv("FLASHCARDS_COLLECTION") or None,
            "teardown_timeout": os.getenv("TEARDOWN_TIMEOUT") or None,
        }
        create = os.getenv("CREATE_COLLECTION")
        if create is not None:
            values["create_collection"] = create.lower() in _TRUTHY
        for key, val in overrides.items():
            if val is not None:
                values[key] = val
        # unset fields fall back to the model defaults
        values = {k: v for k, v in values.items() if v is not None}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid store configuration: {e}") from e
