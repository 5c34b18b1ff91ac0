"""
Dashboard & Leaderboard Pydantic Schemas
Read models derived from the profile set and the scan history.
"""

from datetime import date
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID

from ecoscan.schemas.profile import ProfileResponse
from ecoscan.schemas.rewards import ChallengeResponse
from ecoscan.schemas.scan import ScanEventResponse


class DailyPoints(BaseModel):
    date: date
    points: int


class ScoreDistribution(BaseModel):
    """Points earned per product score tier."""
    high: int = 0  # overall_score >= 70
    medium: int = 0  # 40 - 69
    low: int = 0  # < 40


class LevelProgress(BaseModel):
    current_level: str
    progress: float  # 0 - 100
    next_level: Optional[str] = None


class RankInfo(BaseModel):
    rank: Optional[int] = None  # None when the user has no profile
    total_users: int


class DashboardResponse(BaseModel):
    profile: ProfileResponse
    level: LevelProgress
    ranking: RankInfo
    recent_scans: List[ScanEventResponse]
    daily_points: List[DailyPoints]
    score_distribution: ScoreDistribution
    challenges: List[ChallengeResponse]


class LeaderboardEntry(BaseModel):
    rank: int
    id: UUID
    display_name: Optional[str] = None
    eco_score: int
    total_scans: int
    level: str
    is_current_user: bool = False


class LeaderboardResponse(BaseModel):
    leaders: List[LeaderboardEntry]
    current_user_rank: Optional[int] = None
    total_users: int
