"""
Dashboard Service
Builds the dashboard and leaderboard read models.

Both read a fresh snapshot of the profile set and hand it to the
RankingEngine. A credit committed after the snapshot is simply not
reflected until the next load.
"""

from datetime import datetime, time, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ecoscan.core.config import settings
from ecoscan.models.challenge import Challenge
from ecoscan.models.profile import Profile
from ecoscan.models.scan import ScanEvent
from ecoscan.schemas.dashboard import (
    DashboardResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    RankInfo,
)
from ecoscan.schemas.profile import ProfileResponse
from ecoscan.schemas.rewards import ChallengeResponse
from ecoscan.schemas.scan import ScanEventResponse
from ecoscan.services.profile_service import ProfileService
from ecoscan.services.ranking import RankingEngine, level_progress

DASHBOARD_CHALLENGES = 3


class DashboardService:

    @staticmethod
    def profile_snapshot(db: Session) -> List[Profile]:
        return db.query(Profile).all()

    @staticmethod
    def scans_since(db: Session, user_id: UUID, since: datetime) -> List[ScanEvent]:
        return db.query(ScanEvent).filter(
            ScanEvent.user_id == user_id,
            ScanEvent.created_at >= since,
        ).all()

    @staticmethod
    def active_challenges(db: Session, limit: Optional[int] = None) -> List[Challenge]:
        query = db.query(Challenge).filter(Challenge.active.is_(True)).order_by(Challenge.points.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def build_dashboard(db: Session, user_id: UUID) -> DashboardResponse:
        """
        Everything the dashboard shows for one user.

        - level progress from the stored eco_score
        - rank over the whole profile set
        - latest scans and the score distribution over them
        - points per day over the trailing window (UTC days)
        """
        profile = ProfileService.get_profile(db, user_id)

        rank, total = RankingEngine.rank(DashboardService.profile_snapshot(db), user_id)

        recent = ProfileService.recent_scans(db, user_id, settings.DASHBOARD_RECENT_SCANS)

        window = settings.DASHBOARD_WINDOW_DAYS
        today = datetime.now(timezone.utc).date()
        window_start = datetime.combine(today - timedelta(days=window - 1), time.min, tzinfo=timezone.utc)
        window_scans = DashboardService.scans_since(db, user_id, window_start)

        challenges = DashboardService.active_challenges(db, limit=DASHBOARD_CHALLENGES)

        return DashboardResponse(
            profile=ProfileResponse.model_validate(profile),
            level=level_progress(profile.eco_score),
            ranking=RankInfo(rank=rank, total_users=total),
            recent_scans=[ScanEventResponse.model_validate(scan) for scan in recent],
            daily_points=RankingEngine.daily_series(window_scans, window_days=window, today=today),
            score_distribution=RankingEngine.score_distribution(recent),
            challenges=[ChallengeResponse.model_validate(c) for c in challenges],
        )

    @staticmethod
    def build_leaderboard(db: Session, user_id: UUID, limit: Optional[int] = None) -> LeaderboardResponse:
        """Top profiles plus the caller's own rank, from one snapshot."""
        limit = limit or settings.LEADERBOARD_LIMIT
        ordered = RankingEngine.ordered(DashboardService.profile_snapshot(db))

        current_rank = None
        target = str(user_id)
        for position, profile in enumerate(ordered, start=1):
            if str(profile.id) == target:
                current_rank = position
                break

        leaders = [
            LeaderboardEntry(
                rank=position,
                id=profile.id,
                display_name=profile.display_name,
                eco_score=profile.eco_score,
                total_scans=profile.total_scans,
                level=profile.level,
                is_current_user=str(profile.id) == target,
            )
            for position, profile in enumerate(ordered[:limit], start=1)
        ]

        return LeaderboardResponse(
            leaders=leaders,
            current_user_rank=current_rank,
            total_users=len(ordered),
        )
