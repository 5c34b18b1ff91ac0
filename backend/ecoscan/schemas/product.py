"""
Product Pydantic Schemas

ProductResponse doubles as the resolved product handed from the scan
session to the reward ledger. Demo products are built directly as
ProductResponse(synthetic=True) and never exist in the database.
"""

from pydantic import BaseModel, Field
from typing import List
from uuid import UUID


class ProductResponse(BaseModel):
    """Catalog product (or demo product) as seen by clients."""
    id: UUID
    barcode: str
    name: str
    overall_score: int = Field(..., ge=0, le=100)
    carbon_footprint: int = Field(..., ge=0, le=100)
    ethical_score: int = Field(..., ge=0, le=100)
    recyclable: bool = False
    synthetic: bool = Field(
        False,
        description="Demo product generated when no real detection or catalog match was available"
    )

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    """Catalog listing, best products first."""
    products: List[ProductResponse]
    total: int
