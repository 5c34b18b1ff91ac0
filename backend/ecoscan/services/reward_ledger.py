"""
Reward Ledger Service

Credits a user's profile for exactly one resolved scan.

Each credit is one database transaction:
1. Load the profile (ProfileNotFound if missing)
2. Append the ScanEvent (catalog products only, demo products are never
   persisted as scans)
3. Add the points and one scan to the profile, guarded by the profile's
   version column
4. Commit

If another credit for the same user committed between the read and the
write, the versioned UPDATE matches no row and SQLAlchemy raises
StaleDataError. The whole transaction is rolled back (scan event included)
and retried with a fresh read, up to LEDGER_MAX_ATTEMPTS times. Callers
never retry on their own.

The blocking database work runs in a worker thread so the event loop keeps
serving other sessions while a credit is in flight.
"""

import asyncio
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ecoscan.core.config import settings
from ecoscan.core.exceptions import LedgerConflict, LedgerWriteError, ProfileNotFound
from ecoscan.models.profile import Profile
from ecoscan.models.scan import ScanEvent
from ecoscan.schemas.product import ProductResponse
from ecoscan.schemas.scan import CreditResult
from ecoscan.services.error_logging import error_logger
from ecoscan.services.ranking import level_for

logger = logging.getLogger(__name__)


def points_for(product: ProductResponse) -> int:
    """EcoPoints for scanning a product: half its overall score, rounded down."""
    return product.overall_score // 2


class RewardLedger:
    """
    Transactional crediting of profiles.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session
        max_attempts: Optimistic concurrency attempts before LedgerConflict
        retry_backoff: Seconds to wait before attempt n+1, times n
    """

    def __init__(
        self,
        session_factory,
        max_attempts: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.max_attempts = settings.LEDGER_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.retry_backoff = settings.LEDGER_RETRY_BACKOFF if retry_backoff is None else retry_backoff

    async def credit(self, user_id: UUID, product: ProductResponse, is_synthetic: bool) -> CreditResult:
        """
        Credit one scan of product to user_id.

        Returns the new totals. Raises ProfileNotFound, LedgerWriteError,
        or LedgerConflict once every attempt has conflicted.
        """
        points = points_for(product)

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await asyncio.to_thread(
                    self._credit_once, user_id, product, points, is_synthetic
                )
            except LedgerConflict:
                if attempt == self.max_attempts:
                    logger.warning(
                        f"[Ledger] Giving up crediting {user_id} after {attempt} conflicting attempts"
                    )
                    raise LedgerConflict(user_id, attempts=attempt)
                logger.info(f"[Ledger] Conflict crediting {user_id}, retry {attempt}/{self.max_attempts - 1}")
                await asyncio.sleep(self.retry_backoff * attempt)
                continue
            except ProfileNotFound as exc:
                error_logger.log_error(
                    exc,
                    user_id=user_id,
                    severity="critical",
                    context={"product_id": product.id, "barcode": product.barcode, "synthetic": is_synthetic},
                )
                raise

            logger.info(
                f"[Ledger] Credited {user_id}: +{result.points_earned} points "
                f"(score {result.eco_score}, scans {result.total_scans}, synthetic={is_synthetic})"
            )
            return result

        # max_attempts < 1
        raise LedgerConflict(user_id, attempts=0)

    def _credit_once(
        self,
        user_id: UUID,
        product: ProductResponse,
        points: int,
        is_synthetic: bool,
    ) -> CreditResult:
        """Single attempt, in its own session and transaction."""
        db = self.session_factory()
        try:
            profile = db.get(Profile, user_id)
            if profile is None:
                raise ProfileNotFound(user_id)

            scan = None
            if not is_synthetic:
                scan = ScanEvent(user_id=user_id, product_id=product.id, points_earned=points)
                db.add(scan)
                try:
                    db.flush()
                except SQLAlchemyError as exc:
                    db.rollback()
                    raise LedgerWriteError(
                        f"Could not record scan of {product.barcode}",
                        details={"product_id": str(product.id)},
                    ) from exc

            new_score = (profile.eco_score or 0) + points
            new_scans = (profile.total_scans or 0) + 1
            profile.eco_score = new_score
            profile.total_scans = new_scans
            profile.level = level_for(new_score)

            try:
                db.commit()
            except StaleDataError as exc:
                db.rollback()
                raise LedgerConflict(user_id) from exc
            except SQLAlchemyError as exc:
                db.rollback()
                raise LedgerWriteError(f"Could not update profile {user_id}") from exc

            return CreditResult(
                user_id=user_id,
                points_earned=points,
                eco_score=new_score,
                total_scans=new_scans,
                level=profile.level,
                scan_id=scan.id if scan is not None else None,
            )
        finally:
            db.close()
