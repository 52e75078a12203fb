"""
HTTP middleware: one structured log line per request with timing.
"""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable

from backend_journal.journal_logging import get_logger

logger = get_logger(__name__)


async def log_requests(request: Any, call_next: Callable[[Any], Awaitable[Any]]) -> Any:
    start = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=status,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
