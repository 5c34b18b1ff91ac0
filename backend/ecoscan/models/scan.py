"""
ScanEvent Model
Append-only record of one credited scan of a catalog product.

Demo (synthetic) scans credit the profile but are never written here, so
for demo users profile.total_scans can exceed the number of scan rows.
"""

from sqlalchemy import Column, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ecoscan.models.base import BaseModel


class ScanEvent(BaseModel):
    """
    ScanEvent Model

    points_earned == product.overall_score // 2 at the time of the credit.
    Rows are never updated or deleted by the scan pipeline.
    """
    __tablename__ = "scans"

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    points_earned = Column(Integer, nullable=False)

    profile = relationship("Profile", back_populates="scans")
    product = relationship("Product", lazy="joined")

    def __repr__(self):
        return f"<ScanEvent(user_id={self.user_id}, product_id={self.product_id}, points={self.points_earned})>"
