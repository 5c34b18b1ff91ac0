"""
Ranking Engine

Derives leaderboard rank, score distribution, daily points series and eco
level from snapshots of profiles and scan events. Nothing here touches the
database or keeps an index: every call recomputes from what it is given,
so results are exactly as fresh as the snapshot.

Ordering: eco_score descending, then created_at ascending (the profile
that got there first ranks higher), then id.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from ecoscan.core.constants import (
    LEVELS,
    TIER_HIGH,
    TIER_HIGH_MIN,
    TIER_LOW,
    TIER_MEDIUM,
    TIER_MEDIUM_MIN,
)
from ecoscan.schemas.dashboard import DailyPoints, LevelProgress, ScoreDistribution


def _as_utc(value: Optional[datetime]) -> datetime:
    """Naive timestamps (SQLite) are stored in UTC."""
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _rank_key(profile: Any):
    return (-(profile.eco_score or 0), _as_utc(profile.created_at), str(profile.id))


def score_tier(overall_score: Optional[int]) -> str:
    """Tier of a product score: high (>=70), medium (40-69), low (<40)."""
    score = overall_score or 0
    if score >= TIER_HIGH_MIN:
        return TIER_HIGH
    if score >= TIER_MEDIUM_MIN:
        return TIER_MEDIUM
    return TIER_LOW


def level_for(eco_score: int) -> str:
    """Name of the eco level containing eco_score."""
    return level_progress(eco_score).current_level


def level_progress(eco_score: int) -> LevelProgress:
    """
    Current level, percent progress towards the next one and its name.

    Scores below zero (never produced by crediting) count as the first level.
    The top level reports 100% and no next level.
    """
    score = max(eco_score or 0, 0)
    index = 0
    for i, (_, low, high) in enumerate(LEVELS):
        if low <= score < high:
            index = i
            break

    name, low, high = LEVELS[index]
    if high == float("inf"):
        progress = 100.0
    else:
        progress = (score - low) / (high - low) * 100

    next_level = LEVELS[index + 1][0] if index + 1 < len(LEVELS) else None
    return LevelProgress(current_level=name, progress=round(progress, 2), next_level=next_level)


class RankingEngine:

    @staticmethod
    def ordered(profiles: Iterable[Any]) -> List[Any]:
        """Profiles in leaderboard order."""
        return sorted(profiles, key=_rank_key)

    @staticmethod
    def rank(profiles: Sequence[Any], user_id: UUID) -> Tuple[Optional[int], int]:
        """
        1-based rank of user_id among profiles, and the population size.

        Returns (None, total) when the user is not in the snapshot,
        including the empty snapshot (None, 0).
        """
        ordered = RankingEngine.ordered(profiles)
        target = str(user_id)
        for position, profile in enumerate(ordered, start=1):
            if str(profile.id) == target:
                return position, len(ordered)
        return None, len(ordered)

    @staticmethod
    def score_distribution(scan_events: Iterable[Any]) -> ScoreDistribution:
        """
        Sum points_earned per tier of the scanned product's overall_score.

        Events without a joined product count as low.
        """
        buckets = {TIER_HIGH: 0, TIER_MEDIUM: 0, TIER_LOW: 0}
        for event in scan_events:
            product = getattr(event, "product", None)
            tier = score_tier(product.overall_score if product is not None else 0)
            buckets[tier] += event.points_earned or 0
        return ScoreDistribution(**buckets)

    @staticmethod
    def daily_series(
        scan_events: Iterable[Any],
        window_days: int = 7,
        today: Optional[date] = None,
    ) -> List[DailyPoints]:
        """
        Points per UTC calendar day for the trailing window ending today.

        Always returns window_days entries, oldest first, with zero for
        days without scans. Events outside the window are ignored.
        """
        if window_days < 1:
            raise ValueError("window_days must be at least 1")

        end = today or datetime.now(timezone.utc).date()
        start = end - timedelta(days=window_days - 1)

        totals = {start + timedelta(days=offset): 0 for offset in range(window_days)}
        for event in scan_events:
            day = _as_utc(event.created_at).date()
            if day in totals:
                totals[day] += event.points_earned or 0

        return [DailyPoints(date=day, points=points) for day, points in sorted(totals.items())]
