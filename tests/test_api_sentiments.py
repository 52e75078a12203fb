"""
Pytest tests for the scoring endpoints: fix-sentiments, complete, enhanced-analysis.

Uses temporary SQLite DB via conftest fixtures. Market data is patched; no network.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest

from backend_journal.analysis_engine import MarketSnapshot
from backend_journal.core.exceptions import PersistenceError
from backend_journal.database import repositories
from backend_journal.services import recalculate_sentiments

from conftest import OTHER_USER_ID, USER_ID


def _snapshot(current: float, previous: float = 1.0) -> MarketSnapshot:
    return MarketSnapshot(
        currency_pair="EURUSD",
        current_price=current,
        previous_price=previous,
        high=1.01,
        low=0.99,
        volume=0,
        target_date="2024-01-10",
        data_source="historical",
    )


@pytest.fixture
def analysis(questions):
    """
    DAILY: bullish trend (score 70).
    H4: bearish trend and a failed pivot check (score 18).
    """
    created = repositories.create_analysis(USER_ID, "EURUSD", selected_timeframes=["DAILY", "H4"])
    repositories.upsert_answers(
        created["id"],
        [
            {"question_id": questions[("DAILY", "Daily Trend")], "answer_text": "Bullish"},
            {"question_id": questions[("H4", "H4 Trend")], "answer_text": "Bearish"},
            {"question_id": questions[("H4", "Above Pivot")], "answer_value": False},
        ],
    )
    return created


def test_fix_sentiments(client, analysis):
    r = client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["message"] == "Sentiments recalculated successfully"
    assert data["failedTimeframes"] == []

    by_tf = {t["timeframe"]: t for t in data["updatedTimeframes"]}
    assert by_tf["DAILY"]["score"] == 70.0
    assert by_tf["DAILY"]["sentiment"] == "BULLISH"
    assert by_tf["DAILY"]["strength"] == 70.0
    assert by_tf["H4"]["score"] == 18.0
    assert by_tf["H4"]["sentiment"] == "BEARISH"
    assert by_tf["H4"]["strength"] == 82.0

    # (0.35*70 + 0.20*18) / 0.55; one bullish, one bearish
    metrics = data["overallMetrics"]
    assert metrics["overall_probability"] == pytest.approx(51.1)
    assert metrics["confidence_level"] == pytest.approx(66.1)
    assert metrics["risk_level"] == "MEDIUM"


def test_fix_sentiments_persists_results(client, analysis):
    client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})

    rows = {row["timeframe"]: row for row in repositories.list_timeframe_analyses(analysis["id"])}
    assert rows["H4"]["timeframe_probability"] == 18.0
    assert rows["H4"]["timeframe_sentiment"] == "BEARISH"
    assert rows["H4"]["analysis_data"]["ai_reasoning"].startswith("Strong bearish signal from H4 Trend")
    assert "recalculated_at" in rows["H4"]["analysis_data"]

    stored = repositories.get_analysis(analysis["id"], USER_ID)
    assert stored["overall_probability"] == pytest.approx(51.1)
    assert stored["risk_level"] == "MEDIUM"
    assert stored["status"] == "DRAFT"
    assert repositories.list_history(analysis["id"])[-1]["action"] == "RECALCULATED"


def test_fix_sentiments_keeps_existing_analysis_data(client, analysis):
    repositories.upsert_timeframe_analyses(
        analysis["id"], [{"timeframe": "DAILY", "analysis_data": {"notes": "keep me"}}]
    )
    client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})
    rows = {row["timeframe"]: row for row in repositories.list_timeframe_analyses(analysis["id"])}
    assert rows["DAILY"]["analysis_data"]["notes"] == "keep me"
    assert rows["DAILY"]["timeframe_sentiment"] == "BULLISH"


def test_fix_sentiments_requires_analysis_id(client):
    r = client.post("/api/tda/fix-sentiments", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Analysis ID is required"}


def test_fix_sentiments_unknown_or_foreign(client, analysis):
    r = client.post("/api/tda/fix-sentiments", json={"analysisId": "nope"})
    assert r.status_code == 404
    assert r.json() == {"error": "Analysis not found"}
    client.headers.update({"X-User-Id": OTHER_USER_ID})
    r = client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})
    assert r.status_code == 404


def test_fix_sentiments_requires_user(anon_client, analysis):
    r = anon_client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})
    assert r.status_code == 401


def test_fix_sentiments_partial_failure(client, analysis):
    """A failed write for one timeframe is reported; the others are still saved and aggregated."""
    real_save = repositories.save_timeframe_result

    def flaky_save(analysis_id, result):
        if result.timeframe == "H4":
            raise PersistenceError("disk full")
        return real_save(analysis_id, result)

    with patch("backend_journal.database.repositories.save_timeframe_result", side_effect=flaky_save):
        r = client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})

    assert r.status_code == 200
    data = r.json()
    assert [t["timeframe"] for t in data["updatedTimeframes"]] == ["DAILY"]
    assert data["failedTimeframes"] == [{"timeframe": "H4", "error": "disk full"}]
    assert data["overallMetrics"] == {"overall_probability": 70.0, "confidence_level": 100.0, "risk_level": "MEDIUM"}
    saved = [row["timeframe"] for row in repositories.list_timeframe_analyses(analysis["id"])]
    assert saved == ["DAILY"]


def test_fix_sentiments_without_selected_timeframes(client, journal_db):
    created = repositories.create_analysis(USER_ID, "EURUSD")
    r = client.post("/api/tda/fix-sentiments", json={"analysisId": created["id"]})
    assert r.status_code == 200
    data = r.json()
    assert data["updatedTimeframes"] == []
    assert data["overallMetrics"] == {"overall_probability": 50.0, "confidence_level": 50.0, "risk_level": "HIGH"}


def test_recalculate_uses_market_trend(questions):
    """A neutral H4 (moderate rating) is pulled toward the market trend."""
    created = repositories.create_analysis(USER_ID, "EURUSD", selected_timeframes=["H4"])
    repositories.upsert_answers(created["id"], [{"question_id": questions[("H4", "Setup Quality")], "answer_text": "3"}])
    calls = []

    def fetcher(pair, on_date):
        calls.append((pair, on_date))
        return _snapshot(1.002)

    run = recalculate_sentiments(created["id"], USER_ID, market_fetcher=fetcher)

    assert calls == [("EURUSD", None)]
    assert run.market is not None
    result = run.updated_timeframes[0]
    assert result.score == 53.0
    assert result.sentiment.value == "BULLISH"
    assert "Market trend: bullish (historical data from 2024-01-10)" in result.reasoning


def test_recalculate_looks_up_completion_date(analysis):
    repositories.update_analysis(analysis["id"], USER_ID, {"status": "COMPLETED"})
    completed_on = repositories.get_analysis(analysis["id"], USER_ID)["completed_at"][:10]
    seen = []

    def fetcher(pair, on_date):
        seen.append(on_date)
        return None

    recalculate_sentiments(analysis["id"], USER_ID, market_fetcher=fetcher)
    assert seen == [date.fromisoformat(completed_on)]


def test_complete_analysis(client, analysis):
    r = client.post(f"/api/tda/{analysis['id']}/complete")
    assert r.status_code == 200
    data = r.json()
    completed = data["analysis"]
    assert completed["status"] == "COMPLETED"
    assert completed["completed_at"] is not None
    assert completed["overall_probability"] == pytest.approx(51.1)
    # 51.1 is between 45 and 60
    assert completed["trade_recommendation"] == "NEUTRAL"
    assert completed["ai_summary"].startswith("Top Down Analysis for EURUSD shows a 51.1% probability")
    assert completed["ai_reasoning"].startswith("Analysis breakdown: Daily timeframe (70.0% probability, bullish)")
    assert set(data["timeframe_breakdown"]) == {"DAILY", "H4"}
    assert repositories.list_history(analysis["id"])[-1]["action"] == "COMPLETED"


def test_complete_scores_answered_timeframes_when_none_selected(client, questions):
    created = repositories.create_analysis(USER_ID, "GBPUSD")
    repositories.upsert_answers(
        created["id"], [{"question_id": questions[("DAILY", "Daily Trend")], "answer_text": "Bullish"}]
    )
    data = client.post(f"/api/tda/{created['id']}/complete").json()
    assert list(data["timeframe_breakdown"]) == ["DAILY"]
    # 70% with DAILY bullish
    assert data["analysis"]["trade_recommendation"] == "LONG"


def test_complete_unknown_analysis(client, journal_db):
    assert client.post("/api/tda/missing/complete").status_code == 404


def test_enhanced_analysis(client, analysis):
    client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})
    with patch(
        "backend_journal.services.analysis_service.fetch_latest_snapshot",
        return_value=_snapshot(1.0005),
    ) as mock_fetch:
        r = client.post(
            "/api/tda/enhanced-analysis",
            json={"analysisId": analysis["id"], "currencyPair": "EURUSD"},
        )
    assert r.status_code == 200
    mock_fetch.assert_called_once_with("EURUSD")
    data = r.json()
    assert {e["timeframe"] for e in data["enhancedReasoning"]} == {"DAILY", "H4"}
    # one bullish, one bearish against a bullish market: alignment 0.3, no probability change
    assert data["updatedMetrics"]["overall_probability"] == pytest.approx(51.1)
    # 0.05% move: low volatility
    assert data["updatedMetrics"]["confidence_level"] == pytest.approx(76.1)
    assert data["updatedMetrics"]["risk_level"] == "LOW"
    assert data["marketData"]["market_trend"] == "BULLISH"
    assert data["marketData"]["strength"] == "weak"


def test_enhanced_analysis_without_market(client, analysis):
    client.post("/api/tda/fix-sentiments", json={"analysisId": analysis["id"]})
    with patch("backend_journal.services.analysis_service.fetch_latest_snapshot", return_value=None):
        data = client.post(
            "/api/tda/enhanced-analysis",
            json={"analysisId": analysis["id"], "currencyPair": "EURUSD"},
        ).json()
    assert data["marketData"] is None
    assert data["updatedMetrics"] == {"overall_probability": 51.1, "confidence_level": 66.1, "risk_level": "MEDIUM"}


def test_enhanced_analysis_validation(client, analysis):
    r = client.post("/api/tda/enhanced-analysis", json={"analysisId": analysis["id"]})
    assert r.status_code == 400
    assert r.json() == {"error": "Analysis ID and currency pair are required"}
    r = client.post("/api/tda/enhanced-analysis", json={"analysisId": "missing", "currencyPair": "EURUSD"})
    assert r.status_code == 404
