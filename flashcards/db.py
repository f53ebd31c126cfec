# flashcards/db.py
"""
Connection manager, writer and reader for the flashcards collection.

    with ConnectionManager(StoreConfig.from_env()) as manager:
        new_id = insert_flashcard(manager, "how big is a football stadium")
        cards = get_flashcards(manager)

One connection per manager, opened on enter and released on exit with a
bounded wait (StoreConfig.teardown_timeout).
"""

import threading
import time
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import MetaData, Table, create_engine, insert, select, update
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from flashcards import monitoring
from flashcards.config import StoreConfig
from flashcards.errors import (
    ConnectivityError,
    ReadError,
    TeardownError,
    TeardownTimeout,
    WriteError,
)
from flashcards.models import flashcards_table
from flashcards.schemas import Flashcard


def _make_engine(url: URL) -> Engine:
    # teardown closes the connection from a worker thread
    connect_args = {"check_same_thread": False} if url.get_backend_name() == "sqlite" else {}
    return create_engine(url, connect_args=connect_args, poolclass=NullPool)


class ConnectionManager:
    def __init__(self, config: Optional[StoreConfig] = None):
        self.config = config or StoreConfig()
        self.teardown_timed_out = False
        self._engine: Optional[Engine] = None
        self._conn: Optional[Connection] = None
        self._metadata = MetaData()
        self._table: Optional[Table] = None

    def __enter__(self) -> "ConnectionManager":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.release()
        except TeardownTimeout as e:
            # work is already done; exit instead of hanging on the driver
            self.teardown_timed_out = True
            monitoring.logger.warning(
                "Teardown abandoned",
                extra={"timeout": self.config.teardown_timeout, "error": str(e)},
            )
        return False

    @property
    def connected(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise ConnectivityError("Connection is not open")
        return self._conn

    def connect(self) -> Connection:
        """Open the single connection. Raises ConnectivityError; no retry."""
        if self._conn is not None:
            return self._conn
        url = self.config.url()
        safe_url = url.render_as_string(hide_password=True)
        start = time.time()
        try:
            self._engine = _make_engine(url)
            self._conn = self._engine.connect()
        except SQLAlchemyError as e:
            monitoring.inc_step_failure("connect")
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
            raise ConnectivityError(f"Could not connect to {safe_url}: {e}") from e
        monitoring.observe_step(start, "connect")
        monitoring.logger.info(
            "Connected to store",
            extra={"store_url": safe_url, "collection": self.config.collection},
        )
        return self._conn

    def collection(self) -> Table:
        """
        Return the collection table. It is reflected from the store so every
        stored column is read, or declared and created when create_collection
        is set. Raises SQLAlchemyError (NoSuchTableError) if it does not exist.
        """
        if self._table is None:
            conn = self.connection
            name = self.config.collection
            if self.config.create_collection:
                table = flashcards_table(name, self._metadata)
                self._metadata.create_all(conn, tables=[table], checkfirst=True)
                conn.commit()
            else:
                table = Table(name, self._metadata, autoload_with=conn)
            self._table = table
        return self._table

    def release(self) -> None:
        """
        Close the connection and dispose the engine, waiting at most
        teardown_timeout seconds. Raises TeardownTimeout when the wait is
        exceeded (the worker thread is a daemon and is left behind) and
        TeardownError when the driver fails to close.
        Calling release() again is a no-op.
        """
        conn, engine = self._conn, self._engine
        if conn is None and engine is None:
            return
        self._conn = None
        self._engine = None
        self._table = None
        errors: List[BaseException] = []

        def _close():
            try:
                if conn is not None:
                    conn.close()
                if engine is not None:
                    engine.dispose()
            except Exception as e:
                errors.append(e)

        timeout = self.config.teardown_timeout
        start = time.time()
        worker = threading.Thread(target=_close, name="flashcards-teardown", daemon=True)
        worker.start()
        worker.join(timeout)
        monitoring.observe_step(start, "teardown")
        if worker.is_alive():
            monitoring.inc_teardown_timeout()
            raise TeardownTimeout(f"Connection release did not finish within {timeout}s")
        if errors:
            monitoring.inc_step_failure("teardown")
            raise TeardownError(f"Connection release failed: {errors[0]}") from errors[0]
        monitoring.logger.debug("Connection released")


def _execute_insert(conn: Connection, table: Table, values: dict) -> Optional[int]:
    """Run the insert and return the new id, or None if the store gave none back."""
    stmt = insert(table).values(**values)
    if len(table.primary_key.columns):
        key = conn.execute(stmt).inserted_primary_key
        return key[0] if key else None
    # no primary key constraint, e.g. a bare serial column
    if "id" in table.c and conn.dialect.insert_returning:
        return conn.execute(stmt.returning(table.c.id)).scalar_one_or_none()
    conn.execute(stmt)
    return None


def insert_flashcard(manager: ConnectionManager, prompt: str, answer: Optional[str] = None) -> int:
    """
    Append one flashcard with `prompt` (and `answer`, when given) as bound
    parameters. Returns the store-assigned id. The row is only committed once
    the id is known. Raises WriteError; nothing is retried.
    """
    if not isinstance(prompt, str):
        monitoring.inc_step_failure("write")
        raise WriteError(f"prompt must be a string, got {type(prompt).__name__}")
    if answer is not None and not isinstance(answer, str):
        monitoring.inc_step_failure("write")
        raise WriteError(f"answer must be a string, got {type(answer).__name__}")
    values = {"prompt": prompt}
    if answer is not None:
        values["answer"] = answer
    start = time.time()
    try:
        table = manager.collection()
        conn = manager.connection
        new_id = _execute_insert(conn, table, values)
        if new_id is None:
            conn.rollback()
            monitoring.inc_step_failure("write")
            raise WriteError(f"Insert into {manager.config.collection} returned no id; rolled back")
        conn.commit()
    except SQLAlchemyError as e:
        monitoring.inc_step_failure("write")
        raise WriteError(f"Insert into {manager.config.collection} failed: {e}") from e
    monitoring.observe_step(start, "write")
    monitoring.inc_written()
    monitoring.logger.info(
        "Inserted flashcard",
        extra={"flashcard_id": new_id, "prompt_preview": prompt[:200], "has_answer": answer is not None},
    )
    return new_id


def update_answer(manager: ConnectionManager, flashcard_id: int, answer: str) -> int:
    """Set the answer of one flashcard. Returns the number of rows updated (0 or 1)."""
    if not isinstance(answer, str):
        monitoring.inc_step_failure("write")
        raise WriteError(f"answer must be a string, got {type(answer).__name__}")
    try:
        table = manager.collection()
        conn = manager.connection
        result = conn.execute(
            update(table).where(table.c.id == flashcard_id).values(answer=answer)
        )
        conn.commit()
    except SQLAlchemyError as e:
        monitoring.inc_step_failure("write")
        raise WriteError(f"Update of {manager.config.collection} id={flashcard_id} failed: {e}") from e
    monitoring.logger.info("Updated answer", extra={"flashcard_id": flashcard_id, "rows": result.rowcount})
    return result.rowcount


def get_flashcards(manager: ConnectionManager) -> List[Flashcard]:
    """
    Return every flashcard in the store's natural order (no ORDER BY),
    fully materialized. Raises ReadError.
    """
    start = time.time()
    try:
        table = manager.collection()
        rows = manager.connection.execute(select(table)).mappings().all()
        records = [Flashcard(**dict(row)) for row in rows]
    except (SQLAlchemyError, ValidationError) as e:
        monitoring.inc_step_failure("read")
        raise ReadError(f"Query on {manager.config.collection} failed: {e}") from e
    monitoring.observe_step(start, "read")
    monitoring.inc_read(len(records))
    monitoring.logger.info("Read flashcards", extra={"count": len(records)})
    return records
