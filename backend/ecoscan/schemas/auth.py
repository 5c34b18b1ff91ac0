"""
Auth Pydantic Schemas
"""

from pydantic import BaseModel


class TokenPayload(BaseModel):
    """Decoded claims of a verified access token."""
    sub: str  # User ID (UUID as string)
    exp: int  # Expiration timestamp
    type: str = "access"
