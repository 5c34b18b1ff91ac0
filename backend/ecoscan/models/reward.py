"""
Reward Model
Rewards redeemable with partner NGOs once a user has enough EcoPoints.

Read-only here: redemption is an eligibility check, fulfilment happens
outside this service.
"""

from sqlalchemy import Column, String, Text, Integer, Boolean

from ecoscan.models.base import BaseModel


class Reward(BaseModel):
    __tablename__ = "rewards"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    points_required = Column(Integer, nullable=False)
    partner_ngo = Column(String(255), nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self):
        return f"<Reward(name='{self.name}', points_required={self.points_required})>"
