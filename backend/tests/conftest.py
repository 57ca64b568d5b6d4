# backend/tests/conftest.py
"""
Pytest configuration for the FacilityHub test-suite.

Environment is pinned BEFORE any facilityhub import so the module-level
engine and settings never point at a developer database or Redis.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("REDIS_URL", None)

from datetime import datetime
from typing import Callable, Iterator
from unittest.mock import Mock

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from facilityhub.api.dependencies import get_db
from facilityhub.database import Base
from facilityhub.main import fastapi_app as app
import facilityhub.models  # noqa: F401
from facilityhub.models import Booking, BookingItem, BookingStatus, Facility, InventoryItem
from facilityhub.services.booking_service import BookingService


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Iterator[Session]:
    """
    Create a new database session for each test.

    Services commit, so every test gets its own in-memory database.
    """
    SessionLocal = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def publisher() -> Mock:
    """Stand-in event publisher that records every published event."""
    return Mock()


@pytest.fixture
def booking_service(db: Session, publisher: Mock) -> BookingService:
    return BookingService(db, event_publisher=publisher)


@pytest.fixture
def facility(db: Session) -> Facility:
    facility = Facility(name="Main Hall", is_active=True)
    db.add(facility)
    db.commit()
    return facility


@pytest.fixture
def make_item(db: Session) -> Callable[..., InventoryItem]:
    def _make(quantity: int, name: str = "Folding chair") -> InventoryItem:
        item = InventoryItem(name=name, quantity=quantity, is_deleted=False)
        db.add(item)
        db.commit()
        return item

    return _make


@pytest.fixture
def make_booking(db: Session, facility: Facility) -> Callable[..., Booking]:
    """Insert a booking row directly, bypassing conflict checks and inventory."""

    def _make(
        start: datetime,
        end: datetime,
        status: str = BookingStatus.CONFIRMED.value,
        facility_id: str | None = None,
        is_deleted: bool = False,
        user_id: str = "user-1",
        items: list | None = None,
    ) -> Booking:
        booking = Booking(
            facility_id=facility_id or facility.id,
            user_id=user_id,
            start_date=start,
            end_date=end,
            status=status,
            is_deleted=is_deleted,
        )
        for position, (item_id, quantity) in enumerate(items or []):
            booking.items.append(
                BookingItem(inventory_item_id=item_id, quantity=quantity, position=position)
            )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client with the test database."""

    def override_get_db():
        yield db
        db.commit()

    app.dependency_overrides[get_db] = override_get_db

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()
