"""
Rewards & Challenges API Endpoints
Read-only catalog plus a redemption eligibility check.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ecoscan.api.v1.deps import get_current_user_id, get_db
from ecoscan.schemas.rewards import ChallengeResponse, RedeemResponse, RewardListResponse
from ecoscan.services.dashboard_service import DashboardService
from ecoscan.services.profile_service import ProfileService
from ecoscan.services.reward_service import RewardService


router = APIRouter()


@router.get("/rewards", response_model=RewardListResponse)
def list_rewards(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Active rewards, cheapest first, with what the caller still needs."""
    profile = ProfileService.get_profile(db, user_id)
    return RewardListResponse(
        rewards=RewardService.list_rewards(db, profile.eco_score),
        eco_score=profile.eco_score,
    )


@router.get("/challenges", response_model=List[ChallengeResponse])
def list_challenges(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Active challenges."""
    challenges = DashboardService.active_challenges(db)
    return [ChallengeResponse.model_validate(c) for c in challenges]


@router.post("/rewards/{reward_id}/redeem", response_model=RedeemResponse)
def redeem_reward(
    reward_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Check whether the caller can redeem a reward.

    Nothing is deducted or fulfilled here.
    """
    reward = RewardService.get_active_reward(db, reward_id)
    if reward is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reward not found"
        )

    profile = ProfileService.get_profile(db, user_id)
    return RewardService.check_redeem(reward, profile.eco_score)
