"""FastAPI dependency injection: session access."""

from __future__ import annotations

from fastapi import HTTPException, Request

from .sessions import Session


def get_session(request: Request) -> Session:
    """Get the session opened by SessionMiddleware."""
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=500,
            detail={"error": "Session unavailable", "message": "SessionMiddleware is not installed"},
        )
    return session


def destroy_session(request: Request) -> None:
    """Mark the session for destruction (logout)."""
    session = get_session(request)
    session.destroy()
    session.values.clear()
