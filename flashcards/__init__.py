"""
flashcards — seed one flashcard into a relational store and dump the collection.

Public API
──────────
StoreConfig        — explicit connection configuration
ConnectionManager  — one connection, released with a bounded wait
insert_flashcard   — parameterized single-row insert
update_answer      — set the answer of one card by id
get_flashcards     — read every row
report             — render rows to a stream
run                — the whole connect/write/read/report/teardown sequence
"""

from flashcards.config import StoreConfig
from flashcards.db import ConnectionManager, get_flashcards, insert_flashcard, update_answer
from flashcards.reporter import report
from flashcards.schemas import Flashcard
from flashcards.seed import DEFAULT_PROMPT, SeedResult, run

__all__ = [
    "StoreConfig",
    "ConnectionManager",
    "insert_flashcard",
    "get_flashcards",
    "update_answer",
    "report",
    "Flashcard",
    "DEFAULT_PROMPT",
    "SeedResult",
    "run",
]
