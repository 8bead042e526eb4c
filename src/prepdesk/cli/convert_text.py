"""CLI entrypoint converting pasted questions or flashcards into files."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from prepdesk.imports.kinds import MCQ_KIND
from prepdesk.parsing.flashcard_text import parse_flashcard_lines
from prepdesk.parsing.mcq_text import (
    SkippedInput,
    attach_answers,
    parse_answer_key,
    parse_answered_blocks,
    parse_question_blocks,
    questions_to_import_rows,
)
from prepdesk.spreadsheet.writer import write_flashcards_csv, write_parsed_questions, write_rows


def _skipped_payload(entries: list[SkippedInput]) -> list[dict[str, object]]:
    return [{"position": entry.position, "reason": entry.reason, "text": entry.text} for entry in entries]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Convert pasted text into a spreadsheet")
    parser.add_argument(
        "--format",
        required=True,
        choices=("numbered", "answered", "flashcards"),
        help="numbered: '1. Q' + (a)-(d) lines with --answers key; answered: a)-d) + 'Answer:' line; "
        "flashcards: alternating title/description lines",
    )
    parser.add_argument("--input", required=True, help="Text file with the pasted content")
    parser.add_argument("--answers", default=None, help="Answer key text file for the numbered format")
    parser.add_argument("--subject", default="", help="Subject written into MCQ import rows (answered format)")
    parser.add_argument("--chapter", default="", help="Chapter written into MCQ import rows (answered format)")
    parser.add_argument("--output", required=True, help="Target .xlsx (or .csv for flashcards)")
    args = parser.parse_args(argv)

    text = Path(args.input).read_text(encoding="utf-8")
    payload: dict[str, object] = {"format": args.format, "output": args.output}

    if args.format == "flashcards":
        cards = parse_flashcard_lines(text)
        write_flashcards_csv(args.output, cards)
        payload["converted"] = len(cards)
        print(json.dumps(payload, ensure_ascii=True, indent=2))
        return 0

    if args.format == "numbered":
        blocks = parse_question_blocks(text)
        skipped = list(blocks.skipped)
        answers: dict[int, str] = {}
        if args.answers:
            key = parse_answer_key(Path(args.answers).read_text(encoding="utf-8"))
            answers = key.answers
            payload["skipped_answers"] = _skipped_payload(key.skipped)
        questions = attach_answers(blocks.questions, answers)
        write_parsed_questions(args.output, questions)
    else:
        blocks = parse_answered_blocks(text)
        skipped = list(blocks.skipped)
        questions = blocks.questions
        if not questions:
            payload["error"] = "Please provide at least one valid question in the correct format."
            print(json.dumps(payload, ensure_ascii=True, indent=2))
            return 1
        try:
            rows = questions_to_import_rows(questions, subject=args.subject, chapter=args.chapter)
        except ValueError as exc:
            parser.error(str(exc))
        columns = MCQ_KIND.columns
        write_rows(args.output, columns, ([row[column] for column in columns] for row in rows))

    payload["converted"] = len(questions)
    payload["skipped_blocks"] = _skipped_payload(skipped)
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
