# flashcards/seed.py
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from flashcards import monitoring
from flashcards.config import StoreConfig
from flashcards.db import ConnectionManager, get_flashcards, insert_flashcard
from flashcards.reporter import report
from flashcards.schemas import Flashcard

DEFAULT_PROMPT = "how big is a football stadium"


@dataclass
class SeedResult:
    inserted_id: int
    records: List[Flashcard] = field(default_factory=list)
    teardown_timed_out: bool = False


def run(
    config: Optional[StoreConfig] = None,
    prompt: str = DEFAULT_PROMPT,
    answer: Optional[str] = None,
    stream: Optional[TextIO] = None,
    fmt: str = "text",
) -> SeedResult:
    """
    connect -> write -> read -> report -> teardown, in that order.
    The first failing step raises; teardown still runs.
    """
    config = config or StoreConfig()
    manager = ConnectionManager(config)
    with manager:
        inserted_id = insert_flashcard(manager, prompt, answer=answer)
        records = get_flashcards(manager)
        report(records, stream=stream, fmt=fmt)
    monitoring.logger.info(
        "Seed run finished",
        extra={"inserted_id": inserted_id, "count": len(records), "teardown_timed_out": manager.teardown_timed_out},
    )
    return SeedResult(
        inserted_id=inserted_id,
        records=records,
        teardown_timed_out=manager.teardown_timed_out,
    )
