"""Plain-text parsers for pasted questions and flashcards."""

from .flashcard_text import TextFlashcard, parse_flashcard_lines
from .mcq_text import (
    AnswerKeyResult,
    ParsedQuestion,
    QuestionBlocksResult,
    SkippedInput,
    attach_answers,
    parse_answer_key,
    parse_answered_blocks,
    parse_question_blocks,
    questions_to_import_rows,
)

__all__ = [
    "AnswerKeyResult",
    "ParsedQuestion",
    "QuestionBlocksResult",
    "SkippedInput",
    "TextFlashcard",
    "attach_answers",
    "parse_answer_key",
    "parse_answered_blocks",
    "parse_flashcard_lines",
    "parse_question_blocks",
    "questions_to_import_rows",
]
