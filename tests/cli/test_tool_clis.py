from __future__ import annotations

import json
from pathlib import Path

from openpyxl import load_workbook
import pytest

from prepdesk.cli.convert_text import main as convert_text_main
from prepdesk.cli.export_mcqs import main as export_mcqs_main
from prepdesk.cli.sync_stores import main as sync_stores_main
from prepdesk.spreadsheet.reader import read_import_rows
from prepdesk.store.sqlite_store import SQLiteRecordStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PREPDESK_DB_PATH", "PREPDESK_CASEFOLD_NAMES", "PREPDESK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_convert_numbered_questions_with_answer_key(tmp_path: Path, capsys: object) -> None:
    questions = tmp_path / "questions.txt"
    questions.write_text(
        "1. First?\n(a) one\n(b) two\n(c) three\n(d) four\n\n2. Second?\n(a) w\n(b) x\n(c) y\n(d) z\n",
        encoding="utf-8",
    )
    answers = tmp_path / "answers.txt"
    answers.write_text("1 d, 2 a, three b", encoding="utf-8")
    output = tmp_path / "parsed.xlsx"

    exit_code = convert_text_main(
        ["--format", "numbered", "--input", str(questions), "--answers", str(answers), "--output", str(output)]
    )
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["converted"] == 2
    assert payload["skipped_blocks"] == []
    assert [entry["reason"] for entry in payload["skipped_answers"]] == ["question number is not an integer"]

    workbook = load_workbook(output)
    try:
        rows = list(workbook.active.iter_rows(values_only=True))
    finally:
        workbook.close()
    assert rows[1] == (1, "First?", "one", "two", "three", "four", "d")
    assert rows[2][-1] == "a"


def test_convert_answered_questions_into_importable_rows(tmp_path: Path, capsys: object) -> None:
    source = tmp_path / "answered.txt"
    source.write_text("Capital of India?\na) Mumbai\nb) Delhi\nc) Kolkata\nd) Chennai\nAnswer: b\n", encoding="utf-8")
    output = tmp_path / "mcqs.xlsx"

    exit_code = convert_text_main(
        [
            "--format",
            "answered",
            "--input",
            str(source),
            "--subject",
            "Geography",
            "--chapter",
            "Capitals",
            "--output",
            str(output),
        ]
    )

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["converted"] == 1
    rows = read_import_rows(output)
    assert rows == [
        {
            "subject": "Geography",
            "chapter": "Capitals",
            "question": "Capital of India?",
            "option1": "Mumbai",
            "option2": "Delhi",
            "option3": "Kolkata",
            "option4": "Chennai",
            "answer": "b",
        }
    ]


def test_convert_answered_without_valid_blocks_fails(tmp_path: Path, capsys: object) -> None:
    source = tmp_path / "answered.txt"
    source.write_text("just a line\n", encoding="utf-8")

    exit_code = convert_text_main(
        ["--format", "answered", "--input", str(source), "--output", str(tmp_path / "out.xlsx")]
    )

    assert exit_code == 1
    assert "at least one valid question" in json.loads(capsys.readouterr().out)["error"]


def test_convert_flashcard_lines_to_csv(tmp_path: Path, capsys: object) -> None:
    source = tmp_path / "cards.txt"
    source.write_text("Charter Act\nEnded monopoly\nRevolt of 1857\nMeerut\n", encoding="utf-8")
    output = tmp_path / "cards.csv"

    assert convert_text_main(["--format", "flashcards", "--input", str(source), "--output", str(output)]) == 0
    assert json.loads(capsys.readouterr().out)["converted"] == 2
    assert read_import_rows(output)[1] == {"Title": "Revolt of 1857", "Description": "Meerut"}


def test_export_cli_names_file_after_single_subject(
    tmp_path: Path, capsys: object, monkeypatch: pytest.MonkeyPatch
) -> None:
    db_path = tmp_path / "prep.db"
    with SQLiteRecordStore(db_path) as store:
        subject_id = store.create("mcq_subjects", {"title": "Modern History"})
        store.create("mcqs", {"subject_id": subject_id, "question": "Q?", "answer": "a"})
    monkeypatch.chdir(tmp_path)

    exit_code = export_mcqs_main(["--db-path", str(db_path), "--subject-id", subject_id])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["path"] == "Modern_History_mcqs.xlsx"
    assert payload["sheets"] == ["Modern History"]
    assert (tmp_path / "Modern_History_mcqs.xlsx").is_file()


def test_export_cli_reports_empty_selection(tmp_path: Path, capsys: object) -> None:
    db_path = tmp_path / "prep.db"
    with SQLiteRecordStore(db_path) as store:
        subject_id = store.create("mcq_subjects", {"title": "Empty"})

    exit_code = export_mcqs_main(
        ["--db-path", str(db_path), "--subject-id", subject_id, "--output", str(tmp_path / "out.xlsx")]
    )

    assert exit_code == 1
    assert json.loads(capsys.readouterr().out)["error"] == "No MCQs found for the selected subjects."


def test_sync_cli_copies_collections(tmp_path: Path, capsys: object) -> None:
    source_path = tmp_path / "remote.db"
    destination_path = tmp_path / "backup.db"
    with SQLiteRecordStore(source_path) as source:
        record_id = source.create("subjects", {"subject_name": "History"})
        source.create("chapters", {"chapter_name": "Modern India"})

    exit_code = sync_stores_main(
        ["--source", str(source_path), "--destination", str(destination_path), "--collection", "subjects"]
    )
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["created"] == 1
    assert payload["collections"] == {"subjects": 1}
    with SQLiteRecordStore(destination_path) as destination:
        assert destination.get("subjects", record_id) is not None
        assert destination.list_collections() == ["subjects"]


def test_sync_cli_rejects_missing_or_identical_stores(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        sync_stores_main(["--source", str(tmp_path / "missing.db"), "--destination", str(tmp_path / "b.db")])

    same = tmp_path / "same.db"
    SQLiteRecordStore(same).close()
    with pytest.raises(SystemExit):
        sync_stores_main(["--source", str(same), "--destination", str(same)])


def test_sync_cli_exits_nonzero_on_id_conflicts(tmp_path: Path, capsys: object) -> None:
    source_path = tmp_path / "remote.db"
    destination_path = tmp_path / "backup.db"
    with SQLiteRecordStore(source_path) as source, SQLiteRecordStore(destination_path) as destination:
        source.upsert("flashcards", "abc", {"title": "Charter Act"})
        destination.upsert("subjects", "abc", {"subject_name": "History"})

    exit_code = sync_stores_main(["--source", str(source_path), "--destination", str(destination_path)])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 1
    assert payload["created"] == 0
    assert payload["conflicts"] == [{"id": "abc", "collection": "flashcards", "existing_collection": "subjects"}]
    with SQLiteRecordStore(destination_path) as destination:
        assert destination.list_collections() == ["subjects"]
