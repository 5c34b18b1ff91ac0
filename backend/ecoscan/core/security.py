"""
Security Utilities
Handles JWT access token verification.

Sign-up and login live with the external auth provider. This service only
needs to trust the bearer token it is handed: the signature is checked with
the shared SECRET_KEY and the ``sub`` claim is the user (= profile) id.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from ecoscan.core.config import settings
from ecoscan.schemas.auth import TokenPayload


def create_access_token(user_id: UUID, expires_in: Optional[int] = None) -> str:
    """
    Create a signed JWT access token for a user.

    Used by tooling and tests; production tokens come from the auth provider.

    Args:
        user_id: UUID of the user the token identifies
        expires_in: Lifetime in seconds (default: settings.JWT_EXPIRATION)

    Returns:
        Encoded JWT token string
    """
    expire = datetime.now(timezone.utc) + timedelta(
        seconds=expires_in if expires_in is not None else settings.JWT_EXPIRATION
    )

    payload = {
        "sub": str(user_id),  # Subject (user ID)
        "exp": expire,  # Expiration time
        "type": "access"  # Token type
    }
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[TokenPayload]:
    """
    Verify and decode a JWT access token.

    Validates signature, expiration and (when configured) audience.
    Tokens that declare a ``type`` claim must be access tokens.

    Args:
        token: JWT token string to verify

    Returns:
        TokenPayload if token is valid, None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": bool(settings.JWT_AUDIENCE)},
        )
    except JWTError:
        # Bad signature, expired, malformed, wrong audience
        return None

    subject = payload.get("sub")
    token_type = payload.get("type", "access")
    exp = payload.get("exp")

    if not subject or not exp or token_type != "access":
        return None

    try:
        UUID(subject)
    except (ValueError, TypeError):
        return None

    return TokenPayload(sub=subject, exp=exp, type=token_type)
