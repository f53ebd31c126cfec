# flashcards/models.py
from sqlalchemy import Column, Integer, MetaData, Table, Text


def flashcards_table(name: str, metadata: MetaData) -> Table:
    """Declared shape of the collection: store-assigned id, text prompt, optional answer."""
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("prompt", Text, nullable=True),
        Column("answer", Text, nullable=True),
    )
