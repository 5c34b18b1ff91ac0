"""
Shared test fixtures.

The environment is configured before any ecoscan module is imported:
settings are read once at import time and the engine binds to a SQLite
file in a temporary directory.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="ecoscan-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'ecoscan.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["LOGS_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["SCAN_FALLBACK_TIMEOUT"] = "0.2"
os.environ["SCAN_SETTLE_DELAY"] = "0.01"
os.environ["SCAN_NAVIGATE_DELAY"] = "0.01"
os.environ["LEDGER_RETRY_BACKOFF"] = "0.01"

import asyncio  # noqa: E402
import uuid  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from ecoscan.core.exceptions import DetectorUnavailable  # noqa: E402
from ecoscan.core.security import create_access_token  # noqa: E402
from ecoscan.db.session import SessionLocal, engine  # noqa: E402
from ecoscan.integrations.detector import Detector, DetectorHandle  # noqa: E402
from ecoscan.models import Base, Product, Profile, ScanEvent  # noqa: E402


class FakeDetector(Detector):
    """In-memory detector that counts activations and releases."""

    def __init__(self, available: bool = True):
        self.available = available
        self.activations = 0
        self.releases = 0
        self.handle = None

    async def activate(self) -> DetectorHandle:
        if not self.available:
            raise DetectorUnavailable("No camera on this test device")
        self.activations += 1
        self.handle = DetectorHandle(source="fake")
        return self.handle

    async def _release(self, handle: DetectorHandle) -> None:
        self.releases += 1

    @property
    def active(self) -> bool:
        return self.handle is not None and not self.handle.released

    def detect(self, barcode: str) -> bool:
        return self.handle.emit(barcode)


def run(coro):
    return asyncio.run(coro)


class FailingFlushSession(Session):
    """Session whose writes never reach the database."""

    def flush(self, objects=None):
        raise SQLAlchemyError("disk I/O error")


@pytest.fixture(autouse=True)
def database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    return SessionLocal


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_product(db):
    def _make(barcode="8901030778261", name="Organic Oat Milk", overall_score=80,
              carbon_footprint=70, ethical_score=75, recyclable=True):
        product = Product(
            barcode=barcode,
            name=name,
            overall_score=overall_score,
            carbon_footprint=carbon_footprint,
            ethical_score=ethical_score,
            recyclable=recyclable,
        )
        db.add(product)
        db.commit()
        return product
    return _make


@pytest.fixture
def make_profile(db):
    def _make(eco_score=0, total_scans=0, display_name=None, user_id=None, created_at=None):
        profile = Profile(
            id=user_id or uuid.uuid4(),
            eco_score=eco_score,
            total_scans=total_scans,
            display_name=display_name,
        )
        if created_at is not None:
            profile.created_at = created_at
        db.add(profile)
        db.commit()
        return profile
    return _make


@pytest.fixture
def read_profile(session_factory):
    """Fresh read of a profile, bypassing any cached identity map."""
    def _read(user_id):
        session = session_factory()
        try:
            return session.get(Profile, user_id)
        finally:
            session.close()
    return _read


@pytest.fixture
def count_scans(session_factory):
    def _count(user_id=None):
        session = session_factory()
        try:
            query = session.query(ScanEvent)
            if user_id is not None:
                query = query.filter(ScanEvent.user_id == user_id)
            return query.count()
        finally:
            session.close()
    return _count


@pytest.fixture
def auth_headers():
    def _headers(user_id):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers


@pytest.fixture
def failing_flush_factory():
    return sessionmaker(bind=engine, class_=FailingFlushSession, autoflush=False, expire_on_commit=False)
