"""
Scan Pydantic Schemas
Request/response models for scans and credit results.
"""

from dataclasses import dataclass
from datetime import datetime
from pydantic import BaseModel, Field, validator
from typing import Optional
from uuid import UUID

from ecoscan.schemas.product import ProductResponse


@dataclass(frozen=True)
class CreditResult:
    """New profile totals after one credit."""
    user_id: UUID
    points_earned: int
    eco_score: int
    total_scans: int
    level: str
    scan_id: Optional[UUID] = None  # None for demo products


class ManualScanRequest(BaseModel):
    """
    Manual barcode entry.

    Example request body:
        {
            "barcode": "8901030778261"
        }
    """
    barcode: str = Field(..., min_length=1, max_length=100, example="8901030778261")

    @validator("barcode")
    def not_blank(cls, v):
        """Reject whitespace-only input; the lookup itself is exact."""
        if not v.strip():
            raise ValueError("barcode must not be blank")
        return v


class ScanResultResponse(BaseModel):
    """Outcome of a completed scan session."""
    points_earned: int
    eco_score: int
    total_scans: int
    level: str
    product: ProductResponse
    synthetic: bool
    scan_id: Optional[UUID] = None


class ScanEventResponse(BaseModel):
    """One row of a user's scan history, with its product."""
    id: UUID
    product_id: UUID
    points_earned: int
    created_at: datetime
    product: Optional[ProductResponse] = None

    class Config:
        from_attributes = True
