"""Shared route dependencies."""

from typing import Optional

from fastapi import Header, HTTPException, Request

from services.session_registry import DriveSession, SessionRegistry


def get_session_registry(request: Request) -> SessionRegistry:
    """Retrieve the shared session registry from the app state."""
    registry = getattr(request.app.state, "session_registry", None)
    if registry is None:
        raise HTTPException(status_code=500, detail="Session registry not initialized.")
    return registry


def require_session(request: Request, authorization: Optional[str] = Header(None)) -> DriveSession:
    """Resolve the `Authorization: Bearer <token>` header to an open drive session."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing session token")
    token = authorization.split(" ", 1)[1].strip()
    try:
        return get_session_registry(request).get(token)
    except KeyError as exc:
        raise HTTPException(status_code=401, detail="Session expired or invalid") from exc
