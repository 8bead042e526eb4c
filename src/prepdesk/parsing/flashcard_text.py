"""Turn alternating title/description lines into flashcards."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TextFlashcard:
    title: str
    description: str


def parse_flashcard_lines(text: str) -> list[TextFlashcard]:
    """Pair non-blank lines as (title, description); a trailing odd line is dropped."""

    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return [
        TextFlashcard(title=lines[idx], description=lines[idx + 1])
        for idx in range(0, len(lines) - 1, 2)
    ]
