"""
Product Model
Catalog entry looked up by barcode when a user scans a product.

Products are immutable once created; the catalog is read-only for the
scan pipeline.
"""

from sqlalchemy import Column, String, Integer, Boolean, CheckConstraint

from ecoscan.models.base import BaseModel


class Product(BaseModel):
    """
    Product Model

    Fields:
        barcode (str): Unique lookup key (exact, case-sensitive match)
        name (str): Display name
        overall_score (int): Sustainability score 0-100, drives points earned
        carbon_footprint (int): 0-100, higher is better
        ethical_score (int): 0-100, fair trade and sourcing
        recyclable (bool): Packaging is recyclable
    """
    __tablename__ = "products"

    barcode = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)

    # Scores (0-100)
    overall_score = Column(Integer, nullable=False)
    carbon_footprint = Column(Integer, nullable=False)
    ethical_score = Column(Integer, nullable=False)

    recyclable = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        CheckConstraint("overall_score BETWEEN 0 AND 100", name="overall_score_range"),
        CheckConstraint("carbon_footprint BETWEEN 0 AND 100", name="carbon_footprint_range"),
        CheckConstraint("ethical_score BETWEEN 0 AND 100", name="ethical_score_range"),
    )

    def __repr__(self):
        return f"<Product(barcode={self.barcode}, name='{self.name}', score={self.overall_score})>"
