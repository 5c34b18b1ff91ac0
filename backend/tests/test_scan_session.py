import asyncio
import uuid

import pytest

from conftest import FakeDetector, run
from ecoscan.core.exceptions import InvalidScanState, LedgerConflict, LedgerWriteError, ProductNotFound, ProfileNotFound
from ecoscan.services.reward_ledger import RewardLedger
from ecoscan.services.scan_session import ScanSession, ScanSource, ScanState

FALLBACK_TIMEOUT = 0.2


def make_session(user_id, session_factory, detector=None, ledger=None, events=None, **timings):
    async def on_event(event):
        events.append(event)

    options = {"fallback_timeout": FALLBACK_TIMEOUT, "settle_delay": 0.01, "navigate_delay": 0.01}
    options.update(timings)
    return ScanSession(
        user_id,
        ledger or RewardLedger(session_factory, retry_backoff=0),
        session_factory,
        detector=detector,
        on_event=on_event if events is not None else None,
        **options,
    )


class DoubleFiringDetector(FakeDetector):
    """Reports the same detection twice, ignoring the one-shot handle."""

    def __init__(self, barcode):
        super().__init__()
        self.barcode = barcode

    def on_detected(self, handle, callback):
        callback(self.barcode)
        callback(self.barcode)


class GatedLedger(RewardLedger):
    """Holds every credit until the gate opens."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def credit(self, user_id, product, is_synthetic):
        self.started.set()
        await self.gate.wait()
        return await super().credit(user_id, product, is_synthetic)


class ConflictLedger(RewardLedger):
    async def credit(self, user_id, product, is_synthetic):
        raise LedgerConflict(user_id, attempts=self.max_attempts)


# ----------------------------------------------------------------------
# Manual entry
# ----------------------------------------------------------------------

def test_manual_entry_credits_catalog_product(session_factory, make_profile, make_product, read_profile, count_scans):
    profile = make_profile(eco_score=100, total_scans=3)
    make_product(barcode="1111", overall_score=80)
    events = []

    async def scenario():
        async with make_session(profile.id, session_factory, events=events) as session:
            outcome = await session.scan_manual("1111")
            await session.wait_navigation()
            return outcome, session.navigated

    outcome, navigated = run(scenario())

    assert outcome.state is ScanState.SETTLED
    assert outcome.source is ScanSource.MANUAL
    assert not outcome.synthetic
    assert outcome.credit.points_earned == 40
    assert outcome.credit.eco_score == 140
    assert outcome.credit.total_scans == 4
    assert navigated

    stored = read_profile(profile.id)
    assert (stored.eco_score, stored.total_scans) == (140, 4)
    assert count_scans(profile.id) == 1

    states = [e["state"] for e in events if e["type"] == "state"]
    assert states == ["detected", "resolving", "crediting", "settled"]
    assert [e["type"] for e in events][-2:] == ["credited", "navigate"]
    assert events[-1]["to"] == "/dashboard"
    credited = next(e for e in events if e["type"] == "credited")
    assert credited["eco_score"] == 140
    assert credited["synthetic"] is False


def test_manual_entry_of_unknown_barcode_never_credits(session_factory, make_profile, make_product, read_profile, count_scans):
    profile = make_profile(eco_score=50, total_scans=2)
    make_product(barcode="1111")
    events = []

    async def scenario():
        async with make_session(profile.id, session_factory, events=events) as session:
            return await session.scan_manual("9999")

    outcome = run(scenario())

    assert outcome.state is ScanState.FAILED
    assert isinstance(outcome.error, ProductNotFound)
    assert outcome.credit is None
    stored = read_profile(profile.id)
    assert (stored.eco_score, stored.total_scans) == (50, 2)
    assert count_scans() == 0
    assert events[-1] == {"type": "failed", "code": "product_not_found",
                          "detail": "This product is not in our database yet"}


def test_manual_lookup_is_exact(session_factory, make_profile, make_product):
    profile = make_profile()
    make_product(barcode="ABC123")

    async def scenario():
        async with make_session(profile.id, session_factory) as session:
            return await session.scan_manual("abc123")

    outcome = run(scenario())
    assert outcome.state is ScanState.FAILED
    assert isinstance(outcome.error, ProductNotFound)


def test_second_submission_is_rejected(session_factory, make_profile, make_product, read_profile):
    profile = make_profile()
    make_product(barcode="1111", overall_score=60)

    async def scenario():
        async with make_session(profile.id, session_factory) as session:
            await session.submit_manual("1111")
            with pytest.raises(InvalidScanState):
                await session.submit_manual("1111")
            return await session.wait()

    outcome = run(scenario())
    assert outcome.state is ScanState.SETTLED
    assert read_profile(profile.id).total_scans == 1


# ----------------------------------------------------------------------
# Camera mode
# ----------------------------------------------------------------------

def test_camera_detection_credits_and_releases_detector(session_factory, make_profile, make_product, read_profile, count_scans):
    profile = make_profile()
    make_product(barcode="1111", overall_score=70)
    detector = FakeDetector()

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector) as session:
            await session.start_camera()
            assert session.state is ScanState.DETECTING
            assert detector.active
            assert detector.detect("1111")
            return await session.wait()

    outcome = run(scenario())

    assert outcome.state is ScanState.SETTLED
    assert outcome.source is ScanSource.CAMERA
    assert outcome.barcode == "1111"
    assert not outcome.synthetic
    assert outcome.credit.points_earned == 35
    assert detector.activations == 1
    assert detector.releases == 1
    assert not detector.active
    assert count_scans(profile.id) == 1


def test_detection_timeout_credits_exactly_one_synthetic_product(session_factory, make_profile, read_profile, count_scans):
    profile = make_profile(eco_score=10, total_scans=1)
    detector = FakeDetector()
    events = []

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector, events=events) as session:
            await session.start_camera()
            outcome = await session.wait()
            # A detection arriving after the fallback fired goes nowhere
            assert not detector.detect("1111")
            await asyncio.sleep(FALLBACK_TIMEOUT * 1.5)
            return outcome

    outcome = run(scenario())

    assert outcome.state is ScanState.SETTLED
    assert outcome.source is ScanSource.FALLBACK
    assert outcome.synthetic
    assert outcome.barcode.startswith("DEMO")
    assert 85 <= outcome.product.overall_score <= 99

    stored = read_profile(profile.id)
    assert stored.total_scans == 2
    assert stored.eco_score == 10 + outcome.product.overall_score // 2
    assert count_scans() == 0
    assert detector.releases == 1
    assert len([e for e in events if e["type"] == "credited"]) == 1


def test_unavailable_detector_falls_back_to_synthetic_product(session_factory, make_profile, read_profile, count_scans):
    profile = make_profile()
    detector = FakeDetector(available=False)
    events = []

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector, events=events) as session:
            await session.start_camera()
            return await session.wait()

    outcome = run(scenario())

    assert outcome.state is ScanState.SETTLED
    assert outcome.source is ScanSource.FALLBACK
    assert outcome.synthetic
    assert detector.activations == 0
    assert read_profile(profile.id).total_scans == 1
    assert count_scans() == 0
    states = [e["state"] for e in events if e["type"] == "state"]
    assert states[:2] == ["activating", "detected"]
    assert "failed" not in [e["type"] for e in events]


def test_no_detector_configured_falls_back_to_synthetic_product(session_factory, make_profile, read_profile):
    profile = make_profile()

    async def scenario():
        async with make_session(profile.id, session_factory) as session:
            await session.start_camera()
            return await session.wait()

    outcome = run(scenario())
    assert outcome.state is ScanState.SETTLED
    assert outcome.synthetic
    assert read_profile(profile.id).total_scans == 1


def test_camera_barcode_missing_from_catalog_falls_back(session_factory, make_profile, read_profile, count_scans):
    profile = make_profile()
    detector = FakeDetector()

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector) as session:
            await session.start_camera()
            detector.detect("0000000000")
            return await session.wait()

    outcome = run(scenario())

    assert outcome.state is ScanState.SETTLED
    assert outcome.source is ScanSource.CAMERA
    assert outcome.synthetic
    assert read_profile(profile.id).total_scans == 1
    assert count_scans() == 0


def test_repeated_detection_callback_credits_once(session_factory, make_profile, make_product, read_profile, count_scans):
    profile = make_profile()
    make_product(barcode="1111", overall_score=90)
    detector = DoubleFiringDetector("1111")

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector) as session:
            await session.start_camera()
            outcome = await session.wait()
            await asyncio.sleep(FALLBACK_TIMEOUT * 1.5)
            return outcome

    outcome = run(scenario())

    assert outcome.source is ScanSource.CAMERA
    stored = read_profile(profile.id)
    assert stored.total_scans == 1
    assert stored.eco_score == 45
    assert count_scans() == 1


def test_detection_beats_fallback_timer(session_factory, make_profile, make_product, read_profile):
    profile = make_profile()
    make_product(barcode="1111", overall_score=50)
    detector = FakeDetector()

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector) as session:
            await session.start_camera()
            await asyncio.sleep(FALLBACK_TIMEOUT / 4)
            detector.detect("1111")
            outcome = await session.wait()
            await asyncio.sleep(FALLBACK_TIMEOUT * 1.5)
            return outcome

    outcome = run(scenario())

    assert outcome.source is ScanSource.CAMERA
    assert not outcome.synthetic
    stored = read_profile(profile.id)
    assert (stored.eco_score, stored.total_scans) == (25, 1)


def test_manual_entry_while_camera_is_detecting(session_factory, make_profile, make_product, read_profile):
    profile = make_profile()
    make_product(barcode="1111", overall_score=64)
    detector = FakeDetector()

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector) as session:
            await session.start_camera()
            await session.submit_manual("1111")
            outcome = await session.wait()
            await asyncio.sleep(FALLBACK_TIMEOUT * 1.5)
            return outcome

    outcome = run(scenario())

    assert outcome.source is ScanSource.MANUAL
    assert detector.releases == 1
    assert read_profile(profile.id).total_scans == 1


def test_start_camera_twice_is_rejected(session_factory, make_profile):
    profile = make_profile()
    detector = FakeDetector()

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector) as session:
            await session.start_camera()
            with pytest.raises(InvalidScanState):
                await session.start_camera()

    run(scenario())
    assert detector.activations == 1
    assert detector.releases == 1


# ----------------------------------------------------------------------
# Cancellation and teardown
# ----------------------------------------------------------------------

def test_cancel_while_detecting_releases_detector_and_timers(session_factory, make_profile, read_profile):
    profile = make_profile()
    detector = FakeDetector()

    async def scenario():
        session = make_session(profile.id, session_factory, detector=detector)
        await session.start_camera()
        await session.cancel()
        assert session.state is ScanState.CANCELLED
        assert not detector.active
        await asyncio.sleep(FALLBACK_TIMEOUT * 1.5)
        return session.state

    state = run(scenario())

    assert state is ScanState.CANCELLED
    assert detector.releases == 1
    assert read_profile(profile.id).total_scans == 0


def test_cancel_is_idempotent(session_factory, make_profile, make_product):
    profile = make_profile()
    make_product(barcode="1111")
    events = []

    async def scenario():
        cancelled = make_session(profile.id, session_factory, detector=FakeDetector(), events=events)
        await cancelled.start_camera()
        await cancelled.cancel()
        await cancelled.cancel()

        settled = make_session(profile.id, session_factory)
        await settled.scan_manual("1111")
        await settled.cancel()
        await settled.aclose()
        return cancelled.state, settled.state

    cancelled_state, settled_state = run(scenario())

    assert cancelled_state is ScanState.CANCELLED
    assert settled_state is ScanState.SETTLED
    assert [e["state"] for e in events if e["type"] == "state"].count("cancelled") == 1


def test_cancel_during_settle_delay_never_credits(session_factory, make_profile, make_product, read_profile, count_scans):
    profile = make_profile()
    make_product(barcode="1111")

    async def scenario():
        session = make_session(profile.id, session_factory, settle_delay=0.2)
        await session.submit_manual("1111")
        await asyncio.sleep(0.05)
        assert session.state is ScanState.DETECTED
        await session.cancel()
        await asyncio.sleep(0.3)
        return session.state

    assert run(scenario()) is ScanState.CANCELLED
    assert read_profile(profile.id).total_scans == 0
    assert count_scans() == 0


def test_cancel_from_event_callback_stops_pipeline(session_factory, make_profile, make_product, read_profile):
    profile = make_profile()
    make_product(barcode="1111")
    states = []

    async def scenario():
        session = None

        async def on_event(event):
            if event["type"] == "state":
                states.append(event["state"])
                if event["state"] == "detected":
                    await session.cancel()

        session = ScanSession(
            profile.id,
            RewardLedger(session_factory),
            session_factory,
            on_event=on_event,
            settle_delay=0.01,
        )
        await session.submit_manual("1111")
        outcome = await session.wait()
        await asyncio.sleep(0.1)
        await session.aclose()
        return outcome.state

    assert run(scenario()) is ScanState.CANCELLED
    assert states == ["detected", "cancelled"]
    assert read_profile(profile.id).total_scans == 0


def test_cancel_during_credit_lets_write_finish_without_navigation(session_factory, make_profile, make_product, read_profile):
    profile = make_profile()
    make_product(barcode="1111", overall_score=80)
    events = []

    async def scenario():
        ledger = GatedLedger(session_factory)
        session = make_session(profile.id, session_factory, ledger=ledger, events=events)
        await session.submit_manual("1111")
        await ledger.started.wait()
        assert session.state is ScanState.CREDITING

        await session.cancel()
        assert session.state is ScanState.CREDITING

        ledger.gate.set()
        outcome = await session.wait()
        await asyncio.sleep(0.05)
        await session.aclose()
        return outcome, session.navigated

    outcome, navigated = run(scenario())

    assert outcome.state is ScanState.SETTLED
    assert not navigated
    assert "navigate" not in [e["type"] for e in events]
    assert read_profile(profile.id).eco_score == 40


def test_teardown_releases_detector(session_factory, make_profile):
    profile = make_profile()
    detector = FakeDetector()

    async def scenario():
        async with make_session(profile.id, session_factory, detector=detector) as session:
            await session.start_camera()
            assert session.holds_detector
        return session

    session = run(scenario())

    assert session.state is ScanState.CANCELLED
    assert not session.holds_detector
    assert detector.releases == 1


# ----------------------------------------------------------------------
# Ledger failures
# ----------------------------------------------------------------------

def test_ledger_failure_is_surfaced(session_factory, make_profile, make_product):
    profile = make_profile()
    make_product(barcode="1111")
    events = []

    async def scenario():
        ledger = ConflictLedger(session_factory)
        async with make_session(profile.id, session_factory, ledger=ledger, events=events) as session:
            return await session.scan_manual("1111")

    outcome = run(scenario())

    assert outcome.state is ScanState.FAILED
    assert isinstance(outcome.error, LedgerConflict)
    assert events[-1]["type"] == "failed"
    assert events[-1]["code"] == "ledger_conflict"


def test_missing_profile_is_reported_as_generic_failure(session_factory, make_product):
    make_product(barcode="1111")
    events = []

    async def scenario():
        async with make_session(uuid.uuid4(), session_factory, events=events) as session:
            return await session.scan_manual("1111")

    outcome = run(scenario())

    assert outcome.state is ScanState.FAILED
    assert isinstance(outcome.error, ProfileNotFound)
    assert events[-1] == {"type": "failed", "code": "credit_failed", "detail": "Could not credit this scan"}


def test_failed_ledger_write_is_surfaced(session_factory, failing_flush_factory, make_profile, make_product, read_profile, count_scans):
    profile = make_profile(eco_score=40, total_scans=1)
    make_product(barcode="1111", overall_score=80)
    events = []

    async def scenario():
        ledger = RewardLedger(failing_flush_factory, retry_backoff=0)
        async with make_session(profile.id, session_factory, ledger=ledger, events=events) as session:
            return await session.scan_manual("1111")

    outcome = run(scenario())

    assert outcome.state is ScanState.FAILED
    assert isinstance(outcome.error, LedgerWriteError)
    assert events[-1]["type"] == "failed"
    assert events[-1]["code"] == "ledger_write_error"
    assert read_profile(profile.id).eco_score == 40
    assert count_scans() == 0


def test_detector_cannot_be_swapped_mid_scan(session_factory, make_profile, make_product, read_profile):
    profile = make_profile()
    make_product(barcode="1111")
    issuing = FakeDetector()
    intruder = FakeDetector()

    async def scenario():
        async with make_session(profile.id, session_factory, detector=issuing) as session:
            await session.start_camera()
            with pytest.raises(InvalidScanState):
                await session.start_camera(detector=intruder)
            assert session.detector is issuing

            issuing.detect("1111")
            return await session.wait()

    outcome = run(scenario())

    assert outcome.state is ScanState.SETTLED
    assert issuing.releases == 1
    assert not issuing.active
    assert intruder.activations == 0
    assert intruder.releases == 0
