# flashcards/reporter.py
import json
import sys
from typing import Sequence, TextIO, Optional

from flashcards.schemas import Flashcard

FORMATS = ("text", "json")


def report(records: Sequence[Flashcard], stream: Optional[TextIO] = None, fmt: str = "text") -> None:
    """
    Render flashcards to `stream` (default: stdout).

    text: one line per card (plus an indented answer line when set),
          then a count line
    json: list of card dicts, including any extra stored columns
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown report format: {fmt!r}")
    out = stream if stream is not None else sys.stdout

    if fmt == "json":
        payload = [r.model_dump(mode="json") for r in records]
        print(json.dumps(payload, indent=2, default=str), file=out)
        return

    if not records:
        print("0 flashcards found.", file=out)
        return
    for rec in records:
        prompt = rec.prompt if rec.prompt is not None else "<null>"
        print(f"[{rec.id:>4}]  {prompt}", file=out)
        if rec.answer is not None:
            print(f"        answer: {rec.answer}", file=out)
    noun = "flashcard" if len(records) == 1 else "flashcards"
    print(f"{len(records)} {noun} found.", file=out)
