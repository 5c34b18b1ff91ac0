"""
Profile Model
Per-user running totals of the reward ledger.

The profile id is the user id issued by the auth provider. eco_score and
total_scans are only ever changed by RewardLedger.credit; the version
column makes every such write a compare-and-swap.
"""

from sqlalchemy import Column, String, Integer, CheckConstraint
from sqlalchemy.orm import relationship

from ecoscan.core.constants import DEFAULT_LEVEL
from ecoscan.models.base import BaseModel


class Profile(BaseModel):
    """
    Profile Model

    Fields:
        id (UUID): Same as the authenticated user's id
        eco_score (int): Total EcoPoints, never decreases under crediting
        total_scans (int): Credited scans, +1 per credit (real or demo)
        display_name (str): Name shown on the leaderboard
        level (str): Eco level matching eco_score
        version (int): Optimistic concurrency counter

    Rank is not stored; see services.ranking.
    """
    __tablename__ = "profiles"

    eco_score = Column(Integer, default=0, nullable=False, index=True)
    total_scans = Column(Integer, default=0, nullable=False)

    display_name = Column(String(255), nullable=True)
    level = Column(String(50), default=DEFAULT_LEVEL, nullable=False)

    # UPDATE ... WHERE id = :id AND version = :read_version
    # A stale write raises StaleDataError on flush
    version = Column(Integer, nullable=False)

    scans = relationship(
        "ScanEvent",
        back_populates="profile",
        lazy="select",
        order_by="ScanEvent.created_at.desc()",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("eco_score >= 0", name="eco_score_non_negative"),
        CheckConstraint("total_scans >= 0", name="total_scans_non_negative"),
    )

    def __repr__(self):
        return f"<Profile(id={self.id}, eco_score={self.eco_score}, total_scans={self.total_scans})>"
