"""
Journal logging imports cleanly and binds analysis context.
"""

from __future__ import annotations

import structlog


def test_logging_import():
    from backend_journal.journal_logging import get_logger

    logger = get_logger("test")
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    logger.info("timeframe_scored", analysis_id="analysis-1", timeframe="H4", score=62.0)


def test_bind_analysis_logger():
    from backend_journal.journal_logging import bind_analysis

    log = bind_analysis("analysis-123")
    context = structlog.get_context(log)
    assert context["analysis_id"] == "analysis-123"
    assert context["logger"] == "backend_journal"
    log.info("sentiments_recalculated", timeframe="H4")
