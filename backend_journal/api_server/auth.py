"""
Caller identity for API routes.

The hosted deployment sits behind an auth proxy that forwards the signed-in
user id in X-User-Id; requests without it are rejected.
"""

from __future__ import annotations

from fastapi import Header, HTTPException

USER_HEADER = "X-User-Id"


def get_current_user(x_user_id: str | None = Header(None, alias=USER_HEADER)) -> str:
    """FastAPI dependency: return the caller's user id or raise 401."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id
