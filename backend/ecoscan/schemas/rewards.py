"""
Challenge & Reward Pydantic Schemas
"""

from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID


class ChallengeResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    points: int
    active: bool

    class Config:
        from_attributes = True


class RewardResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    points_required: int
    partner_ngo: Optional[str] = None
    can_redeem: bool = False
    points_missing: int = 0
    progress: float = 0.0  # 0 - 100

    class Config:
        from_attributes = True


class RewardListResponse(BaseModel):
    rewards: List[RewardResponse]
    eco_score: int


class RedeemResponse(BaseModel):
    """
    Eligibility answer for a redemption request.

    No points are deducted; the partner NGO fulfils redeemable rewards.
    """
    reward_id: UUID
    redeemable: bool
    points_missing: int
    partner_ngo: Optional[str] = None
    message: str
