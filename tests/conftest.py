"""
Pytest fixtures for journal tests. Uses a temporary SQLite DB per test.
"""

from __future__ import annotations

import pytest

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def journal_db(tmp_path, monkeypatch):
    """
    Point the journal at a temporary SQLite DB and create tables.
    Resets engine and settings caches so each test gets a fresh DB. Unset URLs
    and the market data key so we use SQLite and no network.
    """
    monkeypatch.delenv("JOURNAL_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("ALPHA_VANTAGE_API_KEY", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "journal.db"))

    from backend_journal.config import get_settings
    from backend_journal.database import session as db

    get_settings.cache_clear()
    db.reset_engine_for_test()
    db.init_db()
    yield db
    db.reset_engine_for_test()
    get_settings.cache_clear()


@pytest.fixture
def anon_client(journal_db):
    """FastAPI TestClient without a user header."""
    from fastapi.testclient import TestClient

    from backend_journal.api_server.server import app

    return TestClient(app)


@pytest.fixture
def client(anon_client):
    """FastAPI TestClient authenticated as USER_ID."""
    anon_client.headers.update({"X-User-Id": USER_ID})
    return anon_client


@pytest.fixture
def questions(journal_db):
    """Small question bank: one DAILY trend question and four H4 questions, one per scored type."""
    from backend_journal.database import repositories

    stored = repositories.upsert_questions(
        [
            {"timeframe": "DAILY", "question_text": "Daily Trend", "question_type": "MULTIPLE_CHOICE",
             "options": ["Bullish", "Bearish", "Sideways"], "order_index": 1},
            {"timeframe": "H4", "question_text": "H4 Trend", "question_type": "MULTIPLE_CHOICE",
             "options": ["Bullish", "Bearish", "Sideways"], "order_index": 1},
            {"timeframe": "H4", "question_text": "Setup Quality", "question_type": "RATING", "order_index": 2},
            {"timeframe": "H4", "question_text": "Above Pivot", "question_type": "BOOLEAN", "order_index": 3},
            {"timeframe": "H4", "question_text": "Notes", "question_type": "TEXT", "order_index": 4},
        ]
    )
    return {(q["timeframe"], q["question_text"]): q["id"] for q in stored}
