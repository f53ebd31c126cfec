# flashcards/schemas.py
from typing import Optional
from pydantic import BaseModel, ConfigDict


class Flashcard(BaseModel):
    model_config = ConfigDict(extra="allow")

    # store-assigned on insert
    id: int
    # opaque payload; stored verbatim
    prompt: Optional[str] = None
    # filled in later; absent on collections without the column
    answer: Optional[str] = None
