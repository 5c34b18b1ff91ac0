"""
Profile Pydantic Schemas
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID

from ecoscan.schemas.scan import ScanEventResponse


class ProfileCreate(BaseModel):
    """Optional data supplied when bootstrapping the caller's profile."""
    display_name: Optional[str] = Field(None, max_length=255, example="Asha Green")


class ProfileResponse(BaseModel):
    """Profile totals."""
    id: UUID
    display_name: Optional[str] = None
    eco_score: int
    total_scans: int
    level: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileDetailResponse(BaseModel):
    """Profile page: totals, latest scans and average product score."""
    profile: ProfileResponse
    recent_scans: List[ScanEventResponse]
    average_sustainability: int
