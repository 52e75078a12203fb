"""
CLI tools: default question bank and shell recalculation.
"""

from __future__ import annotations

import json

from backend_journal.database import repositories
from backend_journal.tools import populate_questions, recalculate_sentiments

from conftest import USER_ID


def test_default_question_bank_shape():
    questions = populate_questions.build_default_questions()
    counts: dict[str, int] = {}
    for q in questions:
        counts[q["timeframe"]] = counts.get(q["timeframe"], 0) + 1
    assert counts == {"DAILY": 30, "H1": 23, "M15": 29}

    for timeframe in counts:
        orders = [q["order_index"] for q in questions if q["timeframe"] == timeframe]
        assert orders == list(range(1, len(orders) + 1))

    first = questions[0]
    assert (first["timeframe"], first["question_type"], first["order_index"]) == ("DAILY", "ANNOUNCEMENTS", 1)
    assert all(q["question_type"] == "TEXT" for q in questions if q["options"] is None and q is not first)
    assert all(q["question_type"] == "MULTIPLE_CHOICE" for q in questions if q["options"])


def test_populate_dry_run(capsys):
    assert populate_questions.main(["--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "DAILY: 30 questions" in out


def test_populate_is_idempotent(journal_db):
    assert populate_questions.main([]) == 0
    assert populate_questions.main([]) == 0
    assert len(repositories.list_active_questions()) == 82


def test_recalculate_tool(journal_db, questions, capsys):
    created = repositories.create_analysis(USER_ID, "EURUSD", selected_timeframes=["DAILY"])
    repositories.upsert_answers(
        created["id"], [{"question_id": questions[("DAILY", "Daily Trend")], "answer_text": "Bearish"}]
    )
    code = recalculate_sentiments.main(["--analysis-id", created["id"], "--user-id", USER_ID])
    assert code == 0
    out = capsys.readouterr().out
    # the report is the indented JSON block printed last
    data = json.loads(out[out.index("{\n"):])
    assert data["updatedTimeframes"][0]["sentiment"] == "BEARISH"
    assert data["overallMetrics"]["overall_probability"] == 30.0


def test_recalculate_tool_unknown_analysis(journal_db, capsys):
    code = recalculate_sentiments.main(["--analysis-id", "missing", "--user-id", USER_ID])
    assert code == 1
    assert "Analysis not found" in capsys.readouterr().out
