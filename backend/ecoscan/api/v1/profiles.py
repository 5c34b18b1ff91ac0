"""
Profiles API Endpoints
Profile bootstrap and the caller's profile page.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ecoscan.api.v1.deps import get_current_user_id, get_db
from ecoscan.schemas.profile import ProfileCreate, ProfileDetailResponse, ProfileResponse
from ecoscan.services.profile_service import ProfileService


router = APIRouter(prefix="/profiles")


@router.post("/me", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_my_profile(
    response: Response,
    data: Optional[ProfileCreate] = None,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Create the caller's profile (called once after signup).

    Idempotent: returns 200 with the existing profile if it already exists.
    """
    profile, created = ProfileService.ensure_profile(db, user_id, data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return ProfileResponse.model_validate(profile)


@router.get("/me", response_model=ProfileDetailResponse)
def get_my_profile(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Totals, the latest scans and the average sustainability score."""
    return ProfileService.build_detail(db, user_id)
