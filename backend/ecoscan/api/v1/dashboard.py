"""
Dashboard & Leaderboard API Endpoints
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecoscan.api.v1.deps import get_current_user_id, get_db
from ecoscan.schemas.dashboard import DashboardResponse, LeaderboardResponse
from ecoscan.services.dashboard_service import DashboardService


router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Level, rank, recent scans, weekly points and active challenges."""
    return DashboardService.build_dashboard(db, user_id)


@router.get("/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=500, description="Number of leaders to return"),
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Top profiles by eco score and the caller's own rank."""
    return DashboardService.build_leaderboard(db, user_id, limit=limit)
