"""
Core utilities: domain exceptions shared by the analysis engine,
database layer, API server and CLI tools.
"""

from backend_journal.core.exceptions import (
    AnalysisNotFoundError,
    JournalError,
    MarketDataError,
    PersistenceError,
)

__all__ = [
    "AnalysisNotFoundError",
    "JournalError",
    "MarketDataError",
    "PersistenceError",
]
