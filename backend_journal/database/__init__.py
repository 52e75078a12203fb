"""
Database layer: SQLAlchemy models, engine/session management and
repository functions for analyses, questions, answers and timeframe results.

SQLite by default; PostgreSQL via JOURNAL_DB_URL / DATABASE_URL.
"""

from backend_journal.database.models import (
    Base,
    TDAAnalysisHistory,
    TDAAnswer,
    TDAQuestion,
    TDATimeframeAnalysis,
    TopDownAnalysis,
)
from backend_journal.database.session import (
    get_engine,
    init_db,
    reset_engine_for_test,
    session_scope,
)

__all__ = [
    "Base",
    "TDAAnalysisHistory",
    "TDAAnswer",
    "TDAQuestion",
    "TDATimeframeAnalysis",
    "TopDownAnalysis",
    "get_engine",
    "init_db",
    "reset_engine_for_test",
    "session_scope",
]
