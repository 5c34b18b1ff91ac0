"""
Scan Session Service

State machine turning one camera detection or one manually entered barcode
into exactly one ledger credit.

    IDLE -> ACTIVATING -> DETECTING -> DETECTED -> RESOLVING -> CREDITING -> SETTLED
                                                    any state -> CANCELLED | FAILED

Manual entry enters directly at DETECTED. Camera mode races a real
detection against a fallback timer; a OneShot guard shared by both triggers
(and by manual entry) lets only the first one through. When no detector is
available, the timer expires, or a camera barcode is not in the catalog,
the session credits a synthetic demo product instead. A manually entered
barcode that is not in the catalog fails with ProductNotFound.

The session owns its detector handle and every timer it schedules. Both are
released on cancel, failure and aclose(), whatever state the session is in.

Usage:
    async with ScanSession(user_id, ledger, SessionLocal, detector) as session:
        await session.start_camera()
        outcome = await session.wait()
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from uuid import UUID

from ecoscan.core.config import settings
from ecoscan.core.constants import POST_SCAN_ROUTE
from ecoscan.core.exceptions import (
    DetectorUnavailable,
    EcoScanError,
    InvalidScanState,
    ProductNotFound,
    ProfileNotFound,
)
from ecoscan.integrations.detector import Detector, DetectorHandle
from ecoscan.schemas.product import ProductResponse
from ecoscan.schemas.scan import CreditResult, ScanResultResponse
from ecoscan.services.error_logging import error_logger
from ecoscan.services.product_catalog import lookup_product, synthetic_product
from ecoscan.services.reward_ledger import RewardLedger

logger = logging.getLogger(__name__)

EventSink = Callable[[Dict[str, Any]], Awaitable[None]]


class ScanState(str, Enum):
    IDLE = "idle"
    ACTIVATING = "activating"
    DETECTING = "detecting"
    DETECTED = "detected"
    RESOLVING = "resolving"
    CREDITING = "crediting"
    SETTLED = "settled"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = {ScanState.SETTLED, ScanState.CANCELLED, ScanState.FAILED}


class ScanSource(str, Enum):
    """Which trigger produced the barcode."""
    MANUAL = "manual"
    CAMERA = "camera"
    FALLBACK = "fallback"


class OneShot:
    """Single-assignment guard: the first claim wins, later claims are no-ops."""

    def __init__(self):
        self.winner: Optional[ScanSource] = None

    def claim(self, source: ScanSource) -> bool:
        if self.winner is not None:
            return False
        self.winner = source
        return True


@dataclass
class ScanOutcome:
    state: ScanState
    source: Optional[ScanSource] = None
    barcode: Optional[str] = None
    product: Optional[ProductResponse] = None
    credit: Optional[CreditResult] = None
    error: Optional[EcoScanError] = None

    @property
    def synthetic(self) -> bool:
        return self.product is not None and self.product.synthetic


def failure_payload(error: EcoScanError) -> Dict[str, str]:
    """Client-facing code/detail for a failed scan."""
    if isinstance(error, ProfileNotFound):
        # Data-consistency bug upstream, details stay in the error log
        return {"code": "credit_failed", "detail": "Could not credit this scan"}
    return {"code": error.code, "detail": error.message}


class ScanSession:
    """
    One scan, from camera start (or manual entry) to a settled credit.

    Args:
        user_id: Profile to credit
        ledger: RewardLedger performing the credit
        session_factory: Callable returning a SQLAlchemy Session for lookups
        detector: Barcode detector for camera mode (None = no camera)
        on_event: Async callback receiving every state/credited/navigate/failed event
        fallback_timeout / settle_delay / navigate_delay: Seconds, default from settings
        rng: random.Random used for synthetic products
    """

    def __init__(
        self,
        user_id: UUID,
        ledger: RewardLedger,
        session_factory,
        detector: Optional[Detector] = None,
        on_event: Optional[EventSink] = None,
        fallback_timeout: Optional[float] = None,
        settle_delay: Optional[float] = None,
        navigate_delay: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        self.user_id = user_id
        self.ledger = ledger
        self.session_factory = session_factory
        self.detector = detector
        self.on_event = on_event
        self.fallback_timeout = settings.SCAN_FALLBACK_TIMEOUT if fallback_timeout is None else fallback_timeout
        self.settle_delay = settings.SCAN_SETTLE_DELAY if settle_delay is None else settle_delay
        self.navigate_delay = settings.SCAN_NAVIGATE_DELAY if navigate_delay is None else navigate_delay
        self.rng = rng

        self.state = ScanState.IDLE
        self.source: Optional[ScanSource] = None
        self.barcode: Optional[str] = None
        self.product: Optional[ProductResponse] = None
        self.credit: Optional[CreditResult] = None
        self.error: Optional[EcoScanError] = None
        self.navigated = False

        self._trigger = OneShot()
        self._handle: Optional[DetectorHandle] = None
        self._handle_owner: Optional[Detector] = None
        self._tasks: Set[asyncio.Task] = set()
        self._fallback_task: Optional[asyncio.Task] = None
        self._pipeline: Optional[asyncio.Task] = None
        self._navigate_task: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self._finished = asyncio.Event()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def outcome(self) -> ScanOutcome:
        return ScanOutcome(
            state=self.state,
            source=self.source,
            barcode=self.barcode,
            product=self.product,
            credit=self.credit,
            error=self.error,
        )

    @property
    def holds_detector(self) -> bool:
        return self._handle is not None and not self._handle.released

    async def start_camera(self, detector: Optional[Detector] = None) -> None:
        """
        Acquire the detector and start racing detection against the fallback timer.

        detector, when given, replaces the one passed to the constructor. It
        is only swapped in once the session is known to be IDLE.
        """
        self._require({ScanState.IDLE}, "start the camera")
        if detector is not None:
            self.detector = detector
        await self._transition(ScanState.ACTIVATING)
        if self.state is not ScanState.ACTIVATING:
            return

        try:
            if self.detector is None:
                raise DetectorUnavailable("No barcode detector configured")
            handle = await self.detector.activate()
        except DetectorUnavailable as exc:
            logger.info(f"[ScanSession] {self.user_id}: {exc.message}, using a demo product")
            if self.state is ScanState.ACTIVATING and self._trigger.claim(ScanSource.FALLBACK):
                self._begin(ScanSource.FALLBACK, product=synthetic_product(self.rng))
            return

        if self.state is not ScanState.ACTIVATING:
            # Cancelled while the device was being acquired
            await self.detector.deactivate(handle)
            return

        self._handle = handle
        self._handle_owner = self.detector
        await self._transition(ScanState.DETECTING, detector=handle.source)
        if self.state is not ScanState.DETECTING:
            return

        self._fallback_task = self._spawn(self._fallback_timer())
        self.detector.on_detected(handle, self._on_detection)

    async def submit_manual(self, barcode: str) -> None:
        """Manual entry. Allowed before the camera starts or while it is detecting."""
        self._require({ScanState.IDLE, ScanState.DETECTING}, "enter a barcode")
        if not self._trigger.claim(ScanSource.MANUAL):
            raise InvalidScanState("A barcode was already captured for this scan")
        self._begin(ScanSource.MANUAL, barcode=barcode)

    async def scan_manual(self, barcode: str) -> ScanOutcome:
        """Submit a barcode and wait for the session to finish."""
        await self.submit_manual(barcode)
        return await self.wait()

    async def wait(self) -> ScanOutcome:
        """Block until the session is SETTLED, CANCELLED or FAILED."""
        await self._finished.wait()
        return self.outcome

    async def wait_navigation(self) -> None:
        """Block until the post-credit navigate event was sent (if one is scheduled)."""
        if self._navigate_task is not None:
            await asyncio.wait({self._navigate_task})

    def result(self) -> ScanResultResponse:
        """Response body for a settled session."""
        if self.state is not ScanState.SETTLED or self.credit is None:
            raise InvalidScanState(f"Scan is {self.state.value}, not settled")
        return ScanResultResponse(
            points_earned=self.credit.points_earned,
            eco_score=self.credit.eco_score,
            total_scans=self.credit.total_scans,
            level=self.credit.level,
            product=self.product,
            synthetic=self.product.synthetic,
            scan_id=self.credit.scan_id,
        )

    async def cancel(self) -> None:
        """
        User cancellation. Idempotent: a no-op once the session has finished.

        While CREDITING the ledger write is left to complete (the session
        still settles) but no navigation is scheduled.
        """
        if self.state in TERMINAL_STATES:
            return

        if self.state is ScanState.CREDITING:
            logger.info(f"[ScanSession] {self.user_id}: cancel during credit, letting the write finish")
            self._cancel_requested = True
            await self._release_detector()
            return

        logger.info(f"[ScanSession] {self.user_id}: cancelled in state {self.state.value}")
        self._set_state(ScanState.CANCELLED)
        self._cancel_tasks()
        await self._release_detector()
        await self._announce(ScanState.CANCELLED)

    async def aclose(self) -> None:
        """Tear down: cancel, let an in-flight credit finish, drop every timer."""
        await self.cancel()
        if self._pipeline is not None and not self._pipeline.done():
            await asyncio.wait({self._pipeline})
        self._cancel_tasks()
        await self._release_detector()

    async def __aenter__(self) -> "ScanSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def _on_detection(self, barcode: str) -> None:
        if self.state is not ScanState.DETECTING or not self._trigger.claim(ScanSource.CAMERA):
            logger.debug(f"[ScanSession] {self.user_id}: ignoring late detection {barcode!r}")
            return
        logger.info(f"[ScanSession] {self.user_id}: detected {barcode!r}")
        self._begin(ScanSource.CAMERA, barcode=barcode)

    async def _fallback_timer(self) -> None:
        await asyncio.sleep(self.fallback_timeout)
        if self.state is not ScanState.DETECTING or not self._trigger.claim(ScanSource.FALLBACK):
            return
        logger.info(
            f"[ScanSession] {self.user_id}: nothing detected in {self.fallback_timeout}s, using a demo product"
        )
        self._begin(ScanSource.FALLBACK, product=synthetic_product(self.rng))

    def _begin(
        self,
        source: ScanSource,
        barcode: Optional[str] = None,
        product: Optional[ProductResponse] = None,
    ) -> None:
        """Winner of the trigger race starts the resolve/credit pipeline."""
        if self._fallback_task is not None and self._fallback_task is not asyncio.current_task():
            self._fallback_task.cancel()
        self._fallback_task = None

        self.source = source
        self.barcode = product.barcode if product is not None else barcode
        self._pipeline = self._spawn(self._run_pipeline(source, self.barcode, product))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run_pipeline(self, source: ScanSource, barcode: str, product: Optional[ProductResponse]) -> None:
        try:
            await self._resolve_and_credit(source, barcode, product)
        except EcoScanError as exc:
            await self._fail(exc)
        except Exception as exc:
            error_logger.log_error(
                exc,
                user_id=self.user_id,
                context={"barcode": barcode, "source": source.value, "state": self.state.value},
            )
            await self._fail(EcoScanError("Scan failed, please try again"))

    async def _resolve_and_credit(
        self,
        source: ScanSource,
        barcode: str,
        product: Optional[ProductResponse],
    ) -> None:
        await self._release_detector()
        await self._advance(ScanState.DETECTED, barcode=barcode, source=source.value)

        # Catalog lookup runs while the "scanned" confirmation is shown
        lookup = None
        if product is None:
            lookup = self._spawn(asyncio.to_thread(lookup_product, self.session_factory, barcode))

        await asyncio.sleep(self.settle_delay)
        await self._advance(ScanState.RESOLVING, barcode=barcode)

        if lookup is not None:
            product = await lookup
            if product is None:
                if source is ScanSource.MANUAL:
                    raise ProductNotFound(barcode)
                logger.info(f"[ScanSession] {self.user_id}: {barcode!r} not in catalog, using a demo product")
                product = synthetic_product(self.rng)

        self.product = product
        await self._advance(
            ScanState.CREDITING,
            product=product.model_dump(mode="json"),
            synthetic=product.synthetic,
        )

        self.credit = await self.ledger.credit(self.user_id, product, product.synthetic)

        await self._advance(
            ScanState.SETTLED,
            eco_score=self.credit.eco_score,
            total_scans=self.credit.total_scans,
        )
        await self._emit({"type": "credited", **self.result().model_dump(mode="json")})

        if not self._cancel_requested:
            self._navigate_task = self._spawn(self._navigate_timer())

    async def _navigate_timer(self) -> None:
        await asyncio.sleep(self.navigate_delay)
        self.navigated = True
        await self._emit({"type": "navigate", "to": POST_SCAN_ROUTE})

    async def _fail(self, error: EcoScanError) -> None:
        if self.state in TERMINAL_STATES:
            return
        logger.warning(f"[ScanSession] {self.user_id}: scan failed in {self.state.value}: {error.message}")
        self.error = error
        self._set_state(ScanState.FAILED)
        self._cancel_tasks()
        await self._release_detector()
        payload = failure_payload(error)
        await self._announce(ScanState.FAILED, **payload)
        await self._emit({"type": "failed", **payload})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, allowed: Set[ScanState], action: str) -> None:
        if self.state not in allowed:
            raise InvalidScanState(f"Cannot {action} while the scan is {self.state.value}")

    def _set_state(self, state: ScanState) -> None:
        logger.debug(f"[ScanSession] {self.user_id}: {self.state.value} -> {state.value}")
        self.state = state

    async def _announce(self, state: ScanState, **payload) -> None:
        await self._emit({"type": "state", "state": state.value, **payload})
        if state in TERMINAL_STATES:
            self._finished.set()

    async def _transition(self, state: ScanState, **payload) -> None:
        self._set_state(state)
        await self._announce(state, **payload)

    async def _advance(self, state: ScanState, **payload) -> None:
        """Pipeline transition. Stops the pipeline if it was cancelled meanwhile."""
        if self.state in TERMINAL_STATES:
            raise asyncio.CancelledError()
        await self._transition(state, **payload)
        if self.state in TERMINAL_STATES and state not in TERMINAL_STATES:
            # cancel() called from an event callback
            raise asyncio.CancelledError()

    async def _emit(self, event: Dict[str, Any]) -> None:
        if self.on_event is None:
            return
        try:
            await self.on_event(event)
        except Exception as exc:
            # A closed client must not abort the scan itself
            logger.warning(f"[ScanSession] {self.user_id}: could not deliver {event.get('type')} event: {exc}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _cancel_tasks(self) -> None:
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current and not task.done():
                task.cancel()
        self._fallback_task = None

    async def _release_detector(self) -> None:
        # Released through the detector that issued the handle
        handle, self._handle = self._handle, None
        owner, self._handle_owner = self._handle_owner, None
        if handle is not None and owner is not None:
            await owner.deactivate(handle)
