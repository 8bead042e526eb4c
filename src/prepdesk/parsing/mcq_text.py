"""Parsers for multiple-choice questions pasted as plain text.

Two layouts are understood:

* numbered blocks (``1. Question`` followed by ``(a)``..``(d)`` option lines)
  paired with a separate answer key such as ``1 c`` or ``1. c, 2. b``;
* self-contained blocks whose options start with ``a)``..``d)`` and which end
  with an ``Answer: <letter>`` line.

Blocks that do not fit are left out of the parsed questions, and each is
listed in ``skipped`` with a reason so callers can show what was ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Iterable

from prepdesk.imports.kinds import ANSWER_LETTERS

logger = logging.getLogger(__name__)

_BLOCK_SPLIT_RE = re.compile(r"\n[ \t]*\n")
_NUMBERED_LINE_RE = re.compile(r"^(\d+)\.\s*(.*)$")
_ANSWER_NUMBER_RE = re.compile(r"^(\d+)\.?$")
_ANSWER_ENTRY_SPLIT_RE = re.compile(r"[\n,;]")
_LETTERED_OPTION_RE = re.compile(r"^([a-d])\)\s*(.*)$", re.IGNORECASE)
_ANSWER_LINE_RE = re.compile(r"^answer:\s*([a-d])", re.IGNORECASE)

NUMBERED_BLOCK_MIN_LINES = 5
ANSWERED_BLOCK_MIN_LINES = 6


@dataclass(slots=True)
class ParsedQuestion:
    number: int
    question: str
    options: tuple[str, str, str, str]
    answer: str = ""


@dataclass(slots=True)
class SkippedInput:
    position: int
    text: str
    reason: str


@dataclass(slots=True)
class QuestionBlocksResult:
    questions: list[ParsedQuestion] = field(default_factory=list)
    skipped: list[SkippedInput] = field(default_factory=list)


@dataclass(slots=True)
class AnswerKeyResult:
    answers: dict[int, str] = field(default_factory=dict)
    skipped: list[SkippedInput] = field(default_factory=list)


def _split_blocks(text: str) -> list[str]:
    normalized = text.replace("\r\n", "\n").strip()
    if not normalized:
        return []
    return [block.strip() for block in _BLOCK_SPLIT_RE.split(normalized) if block.strip()]


def _block_lines(block: str) -> list[str]:
    return [line.strip() for line in block.split("\n") if line.strip()]


def _strip_option_prefix(line: str, letter: str) -> str:
    prefix = f"({letter})"
    if line.startswith(prefix):
        return line[len(prefix):].lstrip()
    return line


def _parse_numbered_block(block: str) -> ParsedQuestion | str:
    lines = _block_lines(block)
    if len(lines) < NUMBERED_BLOCK_MIN_LINES:
        return f"expected at least {NUMBERED_BLOCK_MIN_LINES} non-blank lines, found {len(lines)}"

    match = _NUMBERED_LINE_RE.match(lines[0])
    if not match:
        return "first line does not start with '<number>.'"

    options = tuple(
        _strip_option_prefix(lines[offset], letter)
        for offset, letter in enumerate(ANSWER_LETTERS, start=1)
    )
    return ParsedQuestion(number=int(match.group(1)), question=match.group(2).strip(), options=options)


def parse_question_blocks(text: str) -> QuestionBlocksResult:
    """Parse numbered question blocks separated by blank lines."""

    result = QuestionBlocksResult()
    for position, block in enumerate(_split_blocks(text), start=1):
        parsed = _parse_numbered_block(block)
        if isinstance(parsed, ParsedQuestion):
            result.questions.append(parsed)
        else:
            result.skipped.append(SkippedInput(position=position, text=block, reason=parsed))

    if result.skipped:
        logger.warning("Skipped %d malformed question block(s)", len(result.skipped))
    return result


def parse_answer_key(text: str) -> AnswerKeyResult:
    """Parse ``<number> <letter>`` entries, one per line or comma separated."""

    result = AnswerKeyResult()
    entries = [entry.strip() for entry in _ANSWER_ENTRY_SPLIT_RE.split(text)]
    position = 0
    for entry in entries:
        if not entry:
            continue
        position += 1

        tokens = entry.split()
        if len(tokens) < 2:
            result.skipped.append(SkippedInput(position, entry, "missing answer letter"))
            continue

        number_match = _ANSWER_NUMBER_RE.match(tokens[0])
        if not number_match:
            result.skipped.append(SkippedInput(position, entry, "question number is not an integer"))
            continue

        letter = tokens[1].strip(".)").lower()
        if letter not in ANSWER_LETTERS:
            result.skipped.append(SkippedInput(position, entry, "answer must be a, b, c, or d"))
            continue

        result.answers[int(number_match.group(1))] = letter

    if result.skipped:
        logger.warning("Skipped %d malformed answer key entr(ies)", len(result.skipped))
    return result


def attach_answers(questions: Iterable[ParsedQuestion], answers: dict[int, str]) -> list[ParsedQuestion]:
    """Return copies of ``questions`` with answers filled from the key."""

    return [
        ParsedQuestion(
            number=question.number,
            question=question.question,
            options=question.options,
            answer=answers.get(question.number, ""),
        )
        for question in questions
    ]


def _parse_answered_block(block: str, number: int) -> ParsedQuestion | str:
    lines = _block_lines(block)
    if len(lines) < ANSWERED_BLOCK_MIN_LINES:
        return f"expected at least {ANSWERED_BLOCK_MIN_LINES} non-blank lines, found {len(lines)}"

    option_index = next(
        (idx for idx, line in enumerate(lines) if line[:2].lower() == "a)"),
        -1,
    )
    if option_index < 1:
        return "no question text before an 'a)' option line"

    options: list[str] = []
    for offset in range(len(ANSWER_LETTERS)):
        idx = option_index + offset
        line = lines[idx] if idx < len(lines) else ""
        match = _LETTERED_OPTION_RE.match(line)
        options.append(match.group(2).strip() if match else "")

    answer_line = next((line for line in lines if line.lower().startswith("answer:")), None)
    if answer_line is None:
        return "missing 'Answer:' line"
    answer_match = _ANSWER_LINE_RE.match(answer_line)
    if not answer_match:
        return "answer must be a, b, c, or d"

    return ParsedQuestion(
        number=number,
        question=" ".join(lines[:option_index]),
        options=(options[0], options[1], options[2], options[3]),
        answer=answer_match.group(1).lower(),
    )


def parse_answered_blocks(text: str) -> QuestionBlocksResult:
    """Parse blocks that carry their own ``Answer:`` line; numbers follow parse order."""

    result = QuestionBlocksResult()
    for position, block in enumerate(_split_blocks(text), start=1):
        parsed = _parse_answered_block(block, number=len(result.questions) + 1)
        if isinstance(parsed, ParsedQuestion):
            result.questions.append(parsed)
        else:
            result.skipped.append(SkippedInput(position=position, text=block, reason=parsed))

    if result.skipped:
        logger.warning("Skipped %d malformed question block(s)", len(result.skipped))
    return result


def questions_to_import_rows(
    questions: Iterable[ParsedQuestion],
    *,
    subject: str,
    chapter: str,
) -> list[dict[str, str]]:
    """Lay parsed questions out as rows accepted by the MCQ spreadsheet import."""

    subject_name = subject.strip()
    chapter_name = chapter.strip()
    if not subject_name or not chapter_name:
        raise ValueError("Please provide both subject and chapter name.")

    return [
        {
            "subject": subject_name,
            "chapter": chapter_name,
            "question": question.question,
            "option1": question.options[0],
            "option2": question.options[1],
            "option3": question.options[2],
            "option4": question.options[3],
            "answer": question.answer,
            "explanation": "",
        }
        for question in questions
    ]
