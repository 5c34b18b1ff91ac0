"""
API Dependencies
Common dependencies used across API endpoints.

This module provides:
- Database session management (re-exported get_db, session factory)
- Caller identification from the bearer JWT (HTTP) or ?token= (WebSocket)
- The reward ledger used by scan endpoints

Dependencies are injected into FastAPI endpoints using Depends().
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ecoscan.core.security import verify_token
from ecoscan.db.session import get_db, get_session_factory
from ecoscan.services.reward_ledger import RewardLedger

__all__ = [
    "get_db",
    "get_session_factory",
    "get_current_user_id",
    "user_id_from_token",
    "get_reward_ledger",
]


# HTTP Bearer token scheme
# Extracts "Authorization: Bearer <token>" from request headers
security = HTTPBearer()


def user_id_from_token(token: Optional[str]) -> Optional[UUID]:
    """Validate a raw token and return its subject, None if invalid."""
    if not token:
        return None
    payload = verify_token(token)
    if payload is None:
        return None
    return UUID(payload.sub)


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> UUID:
    """
    Extract and validate the caller's user id from the JWT.

    The user id is also the profile id. Whether a profile exists is up to
    each endpoint (POST /profiles/me creates it).

    Raises:
        HTTPException 401: If token is invalid or expired

    Usage in endpoint:
        @router.get("/dashboard")
        def get_dashboard(user_id: UUID = Depends(get_current_user_id)):
            ...
    """
    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    # Picked up by the error handlers for error log context
    request.state.user_id = user_id
    return user_id


def get_reward_ledger(session_factory=Depends(get_session_factory)) -> RewardLedger:
    return RewardLedger(session_factory)
