"""
Profile Service
Profile bootstrap and the profile page read model.

Profiles are created once per authenticated user (the signup hook of the
external auth provider calls POST /profiles/me). After that they are only
mutated by the RewardLedger.
"""

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ecoscan.core.config import settings
from ecoscan.core.exceptions import ProfileNotFound
from ecoscan.models.profile import Profile
from ecoscan.models.scan import ScanEvent
from ecoscan.schemas.profile import ProfileCreate, ProfileDetailResponse, ProfileResponse
from ecoscan.schemas.scan import ScanEventResponse

logger = logging.getLogger(__name__)


class ProfileService:

    @staticmethod
    def get_profile(db: Session, user_id: UUID) -> Profile:
        profile = db.get(Profile, user_id)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    @staticmethod
    def ensure_profile(db: Session, user_id: UUID, data: Optional[ProfileCreate] = None) -> Tuple[Profile, bool]:
        """
        Return the caller's profile, creating it on first call.

        Returns (profile, created). Idempotent: a concurrent create for the
        same user loses on the primary key and the existing row is returned.
        """
        profile = db.get(Profile, user_id)
        if profile is not None:
            return profile, False

        profile = Profile(
            id=user_id,
            display_name=data.display_name if data else None,
            eco_score=0,
            total_scans=0,
        )
        db.add(profile)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"[Profile] {user_id} was created concurrently, reusing it")
            return ProfileService.get_profile(db, user_id), False

        db.refresh(profile)
        logger.info(f"[Profile] Created profile {user_id}")
        return profile, True

    @staticmethod
    def recent_scans(db: Session, user_id: UUID, limit: int) -> List[ScanEvent]:
        """Latest scans with their products, newest first."""
        return db.query(ScanEvent).filter(
            ScanEvent.user_id == user_id
        ).order_by(
            ScanEvent.created_at.desc()
        ).limit(limit).all()

    @staticmethod
    def average_sustainability(scans: Sequence[ScanEvent]) -> int:
        """Rounded mean overall_score of the scanned products, 0 without scans."""
        scores = [scan.product.overall_score for scan in scans if scan.product is not None]
        if not scores:
            return 0
        return round(sum(scores) / len(scores))

    @staticmethod
    def build_detail(db: Session, user_id: UUID) -> ProfileDetailResponse:
        profile = ProfileService.get_profile(db, user_id)
        scans = ProfileService.recent_scans(db, user_id, settings.PROFILE_RECENT_SCANS)
        return ProfileDetailResponse(
            profile=ProfileResponse.model_validate(profile),
            recent_scans=[ScanEventResponse.model_validate(scan) for scan in scans],
            average_sustainability=ProfileService.average_sustainability(scans),
        )
