"""
Pydantic Schemas Module
Contains request/response schemas for API validation and serialization.

Pydantic schemas are used for:
- Validating incoming request data
- Serializing database models to JSON responses
- Auto-generating OpenAPI documentation
"""

from ecoscan.schemas.auth import TokenPayload
from ecoscan.schemas.product import ProductResponse, ProductListResponse
from ecoscan.schemas.scan import (
    CreditResult,
    ManualScanRequest,
    ScanResultResponse,
    ScanEventResponse,
)
from ecoscan.schemas.profile import ProfileCreate, ProfileResponse, ProfileDetailResponse
from ecoscan.schemas.rewards import (
    ChallengeResponse,
    RewardResponse,
    RewardListResponse,
    RedeemResponse,
)
from ecoscan.schemas.dashboard import (
    DailyPoints,
    ScoreDistribution,
    LevelProgress,
    RankInfo,
    DashboardResponse,
    LeaderboardEntry,
    LeaderboardResponse,
)

__all__ = [
    "TokenPayload",
    "ProductResponse",
    "ProductListResponse",
    "CreditResult",
    "ManualScanRequest",
    "ScanResultResponse",
    "ScanEventResponse",
    "ProfileCreate",
    "ProfileResponse",
    "ProfileDetailResponse",
    "ChallengeResponse",
    "RewardResponse",
    "RewardListResponse",
    "RedeemResponse",
    "DailyPoints",
    "ScoreDistribution",
    "LevelProgress",
    "RankInfo",
    "DashboardResponse",
    "LeaderboardEntry",
    "LeaderboardResponse",
]
