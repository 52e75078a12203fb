"""
Application-level exceptions.

Domain errors raised by the service and data layers; the API server maps
them to HTTP status codes and the CLI tools to exit codes.
"""

from __future__ import annotations


class JournalError(Exception):
    """Base class for all journal backend errors."""


class AnalysisNotFoundError(JournalError):
    """Analysis does not exist or is not owned by the requesting user."""

    def __init__(self, analysis_id: str) -> None:
        super().__init__(f"Analysis not found: {analysis_id}")
        self.analysis_id = analysis_id


class MarketDataError(JournalError):
    """External market data could not be fetched or parsed."""


class PersistenceError(JournalError):
    """A database write failed."""
