"""
Reward Service
Read-only reward and challenge catalog, with eligibility for the caller.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ecoscan.models.reward import Reward
from ecoscan.schemas.rewards import RedeemResponse, RewardResponse


def points_missing(eco_score: int, points_required: int) -> int:
    return max(points_required - eco_score, 0)


class RewardService:

    @staticmethod
    def list_rewards(db: Session, eco_score: int) -> List[RewardResponse]:
        """Active rewards, cheapest first, each with the caller's eligibility."""
        rewards = db.query(Reward).filter(
            Reward.active.is_(True)
        ).order_by(
            Reward.points_required.asc(),
            Reward.name.asc()
        ).all()

        result = []
        for reward in rewards:
            missing = points_missing(eco_score, reward.points_required)
            if reward.points_required > 0:
                progress = min(eco_score / reward.points_required * 100, 100.0)
            else:
                progress = 100.0
            result.append(RewardResponse(
                id=reward.id,
                name=reward.name,
                description=reward.description,
                points_required=reward.points_required,
                partner_ngo=reward.partner_ngo,
                can_redeem=missing == 0,
                points_missing=missing,
                progress=round(progress, 2),
            ))
        return result

    @staticmethod
    def get_active_reward(db: Session, reward_id: UUID) -> Optional[Reward]:
        return db.query(Reward).filter(
            Reward.id == reward_id,
            Reward.active.is_(True)
        ).first()

    @staticmethod
    def check_redeem(reward: Reward, eco_score: int) -> RedeemResponse:
        """
        Eligibility only. Points are never deducted here and nothing is
        sent to the partner.
        """
        missing = points_missing(eco_score, reward.points_required)
        if missing == 0:
            message = f"You can redeem {reward.name}"
            if reward.partner_ngo:
                message += f" with {reward.partner_ngo}"
        else:
            message = f"You need {missing} more points to redeem {reward.name}"

        return RedeemResponse(
            reward_id=reward.id,
            redeemable=missing == 0,
            points_missing=missing,
            partner_ngo=reward.partner_ngo,
            message=message,
        )
