"""
FastAPI server for the Trader's Journal backend.

Mounts the /api/tda router, creates tables on startup and renders every error
as {"error": "..."}. Config via env (see backend_journal.config).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from backend_journal import __version__
from backend_journal.api_server.middleware import log_requests
from backend_journal.api_server.routes import router as tda_router
from backend_journal.config import get_settings
from backend_journal.database import init_db
from backend_journal.journal_logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    init_db()
    logger.info("api_started", market_data_enabled=get_settings().market_data_enabled)
    yield
    logger.info("api_stopped")


app = FastAPI(
    title="Trader's Journal API",
    description="Top-down analysis journal with timeframe sentiment scoring.",
    version=__version__,
    lifespan=lifespan,
)

app.middleware("http")(log_requests)
app.include_router(tda_router)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Any, exc: RequestValidationError) -> JSONResponse:
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": message or "Invalid request body"})


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Any, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
