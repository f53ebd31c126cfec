# tests/test_db.py
"""
Connection manager, writer and reader against a disposable SQLite database.
"""
import threading
import time

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from flashcards.config import StoreConfig
from flashcards.db import ConnectionManager, get_flashcards, insert_flashcard, update_answer
from flashcards.errors import ConnectivityError, ReadError, TeardownError, TeardownTimeout, WriteError


@pytest.fixture
def manager(sqlite_config):
    with ConnectionManager(sqlite_config) as m:
        yield m


def test_insert_then_read_returns_exactly_one_new_record(manager):
    assert get_flashcards(manager) == []
    new_id = insert_flashcard(manager, "how big is a football stadium")
    cards = get_flashcards(manager)
    assert len(cards) == 1
    assert cards[0].id == new_id == 1
    assert cards[0].prompt == "how big is a football stadium"


def test_each_insert_gets_a_fresh_id(manager):
    seen = set()
    for prompt in ("a", "b", "c"):
        before = {c.id for c in get_flashcards(manager)}
        new_id = insert_flashcard(manager, prompt)
        after = get_flashcards(manager)
        assert len(after) == len(before) + 1
        assert new_id not in before
        assert new_id not in seen
        seen.add(new_id)
        assert [c.prompt for c in after if c.id == new_id] == [prompt]


def test_read_twice_returns_same_records(manager):
    insert_flashcard(manager, "one")
    insert_flashcard(manager, "two")
    first = get_flashcards(manager)
    second = get_flashcards(manager)
    assert sorted((c.id, c.prompt) for c in first) == sorted((c.id, c.prompt) for c in second)


def test_command_syntax_in_prompt_is_stored_verbatim(manager, db_url):
    payload = '"); DROP TABLE flashcards; --'
    insert_flashcard(manager, payload)
    insert_flashcard(manager, "'; DELETE FROM flashcards WHERE '1'='1")
    cards = get_flashcards(manager)
    assert [c.prompt for c in cards] == [payload, "'; DELETE FROM flashcards WHERE '1'='1"]
    engine = create_engine(db_url)
    try:
        assert inspect(engine).has_table("flashcards")
    finally:
        engine.dispose()


def test_empty_and_unicode_prompts_round_trip(manager):
    insert_flashcard(manager, "")
    insert_flashcard(manager, "¿cuánto mide un estadio? ⚽")
    assert [c.prompt for c in get_flashcards(manager)] == ["", "¿cuánto mide un estadio? ⚽"]


def test_non_string_prompt_is_rejected(manager):
    with pytest.raises(WriteError):
        insert_flashcard(manager, 42)
    assert get_flashcards(manager) == []


def test_missing_collection_fails_the_write(db_url):
    cfg = StoreConfig(database_url=db_url)
    with ConnectionManager(cfg) as m:
        with pytest.raises(WriteError) as ei:
            insert_flashcard(m, "x")
    assert isinstance(ei.value.__cause__, NoSuchTableError)
    assert ei.value.step == "write"


def test_missing_collection_fails_the_read(db_url):
    cfg = StoreConfig(database_url=db_url, collection="nope")
    with ConnectionManager(cfg) as m:
        with pytest.raises(ReadError):
            get_flashcards(m)


def test_reflected_collection_keeps_extra_columns(db_url):
    engine = create_engine(db_url)
    md = MetaData()
    Table(
        "flashcards", md,
        Column("id", Integer, primary_key=True),
        Column("prompt", Text),
        Column("topic", String(64), server_default="sports"),
    )
    md.create_all(engine)
    engine.dispose()

    with ConnectionManager(StoreConfig(database_url=db_url)) as m:
        insert_flashcard(m, "how big is a football stadium")
        cards = get_flashcards(m)
    assert cards[0].prompt == "how big is a football stadium"
    assert cards[0].model_extra["topic"] == "sports"


def test_unreachable_store_raises_connectivity_error(tmp_path):
    cfg = StoreConfig(database_url=f"sqlite:///{tmp_path / 'missing' / 'dir' / 'cards.db'}")
    entered = []
    with pytest.raises(ConnectivityError) as ei:
        with ConnectionManager(cfg):
            entered.append(True)
    assert entered == []
    assert ei.value.error_code == "E_CONNECT"
    assert not (tmp_path / "missing").exists()


def test_connection_is_released_on_exit(sqlite_config):
    m = ConnectionManager(sqlite_config)
    with m:
        assert m.connected
    assert not m.connected
    with pytest.raises(ConnectivityError):
        m.connection


def test_connection_is_released_when_body_fails(sqlite_config):
    m = ConnectionManager(sqlite_config)
    with pytest.raises(RuntimeError, match="boom"):
        with m:
            raise RuntimeError("boom")
    assert not m.connected
    assert m.teardown_timed_out is False


def test_release_is_idempotent(sqlite_config):
    m = ConnectionManager(sqlite_config)
    m.connect()
    m.release()
    m.release()
    assert not m.connected


def test_stalled_teardown_is_abandoned_within_bound(monkeypatch, db_url):
    blocker = threading.Event()

    def stalled_dispose(self, close=True):
        blocker.wait(10)

    monkeypatch.setattr(Engine, "dispose", stalled_dispose)
    cfg = StoreConfig(database_url=db_url, create_collection=True, teardown_timeout=0.2)
    m = ConnectionManager(cfg)
    try:
        start = time.monotonic()
        with m:
            insert_flashcard(m, "still written")
        elapsed = time.monotonic() - start
    finally:
        blocker.set()
    assert m.teardown_timed_out is True
    assert not m.connected
    assert elapsed < 2.0


def test_release_raises_teardown_timeout_when_called_directly(monkeypatch, sqlite_config):
    blocker = threading.Event()
    monkeypatch.setattr(Engine, "dispose", lambda self, close=True: blocker.wait(10))
    m = ConnectionManager(sqlite_config.model_copy(update={"teardown_timeout": 0.1}))
    m.connect()
    try:
        with pytest.raises(TeardownTimeout) as ei:
            m.release()
    finally:
        blocker.set()
    assert ei.value.error_code == "E_TEARDOWN_TIMEOUT"


def _create_table(db_url, *columns):
    engine = create_engine(db_url)
    md = MetaData()
    Table("flashcards", md, *columns)
    md.create_all(engine)
    engine.dispose()


def test_insert_without_store_assigned_id_is_rolled_back(db_url):
    # id column present but no primary key constraint, so nothing assigns it
    _create_table(db_url, Column("id", Integer), Column("prompt", Text))
    with ConnectionManager(StoreConfig(database_url=db_url)) as m:
        with pytest.raises(WriteError) as ei:
            insert_flashcard(m, "x")
    assert ei.value.step == "write"
    engine = create_engine(db_url)
    try:
        with engine.connect() as conn:
            assert conn.exec_driver_sql("SELECT COUNT(*) FROM flashcards").scalar() == 0
    finally:
        engine.dispose()


def test_answer_is_stored_with_prompt(manager):
    new_id = insert_flashcard(manager, "how big is a football stadium", answer="about 100 meters")
    insert_flashcard(manager, "no answer yet")
    cards = {c.id: c for c in get_flashcards(manager)}
    assert cards[new_id].answer == "about 100 meters"
    assert [c.answer for c in cards.values() if c.id != new_id] == [None]


def test_non_string_answer_is_rejected(manager):
    with pytest.raises(WriteError):
        insert_flashcard(manager, "p", answer=3)
    assert get_flashcards(manager) == []


def test_answer_needs_an_answer_column(db_url):
    _create_table(db_url, Column("id", Integer, primary_key=True), Column("prompt", Text))
    with ConnectionManager(StoreConfig(database_url=db_url)) as m:
        with pytest.raises(WriteError):
            insert_flashcard(m, "p", answer="a")
        # prompt-only inserts still work on the two-column collection
        new_id = insert_flashcard(m, "p")
        assert [(c.id, c.answer) for c in get_flashcards(m)] == [(new_id, None)]


def test_update_answer_sets_answer_by_id(manager):
    new_id = insert_flashcard(manager, "what is a touchdown")
    assert update_answer(manager, new_id, "six points") == 1
    assert get_flashcards(manager)[0].answer == "six points"


def test_update_answer_unknown_id_updates_nothing(manager):
    insert_flashcard(manager, "p")
    assert update_answer(manager, 999, "a") == 0
    assert get_flashcards(manager)[0].answer is None


def test_update_answer_rejects_non_string(manager):
    new_id = insert_flashcard(manager, "p")
    with pytest.raises(WriteError):
        update_answer(manager, new_id, None)


def test_driver_failure_on_release_is_a_teardown_error(monkeypatch, sqlite_config):
    def broken_dispose(self, close=True):
        raise SQLAlchemyError("driver gone")

    monkeypatch.setattr(Engine, "dispose", broken_dispose)
    m = ConnectionManager(sqlite_config)
    with pytest.raises(TeardownError) as ei:
        with m:
            insert_flashcard(m, "p")
    assert ei.value.error_code == "E_TEARDOWN"
    assert ei.value.step == "teardown"
    assert isinstance(ei.value.__cause__, SQLAlchemyError)
    assert m.teardown_timed_out is False
    assert not m.connected
