"""Shared test fixtures for all test modules."""

import asyncio
import contextlib
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import discounts.models  # noqa: F401
from discounts.core import database as db_module
from discounts.core.database import Base
from discounts.core.exceptions import CatalogUnavailableError
from discounts.services.checkout_session import session_registry
from discounts.services.discount_definition import (
    DiscountDefinition,
    DiscountKind,
    DiscountType,
)

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known restaurant used across all tests
RESTAURANT_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
OTHER_RESTAURANT_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b2")

# Fixed evaluation time so windows are deterministic
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session
    session_registry.clear()


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = db_module.get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def restaurant_id():
    """Return the restaurant used by the checkout under test."""
    return RESTAURANT_ID


def make_coupon(**overrides) -> DiscountDefinition:
    """Build a coupon definition: 10% off, platform wide, no limits."""
    code = overrides.pop("code", "SAVE10")
    values = {
        "source_id": uuid.uuid4(),
        "kind": DiscountKind.COUPON,
        "label": code,
        "discount_type": DiscountType.PERCENTAGE,
        "percentage_rate": Decimal("10"),
        "code": code,
    }
    values.update(overrides)
    return DiscountDefinition(**values)


def make_promotion(**overrides) -> DiscountDefinition:
    """Build an automatic promotion: 10% off, running a day either side of NOW."""
    values = {
        "source_id": uuid.uuid4(),
        "kind": DiscountKind.PROMOTION,
        "label": "Lunch deal",
        "discount_type": DiscountType.PERCENTAGE,
        "percentage_rate": Decimal("10"),
        "restaurant_id": RESTAURANT_ID,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=1),
    }
    values.update(overrides)
    return DiscountDefinition(**values)


class FakeCatalog:
    """In-memory catalog loader.

    Set ``fail`` to simulate an unreachable catalog. Setting a gate makes
    calls wait until the test releases it, to interleave slow responses.
    """

    def __init__(
        self,
        coupons: list[DiscountDefinition] | None = None,
        promotions: list[DiscountDefinition] | None = None,
    ) -> None:
        self.coupons = list(coupons or [])
        self.promotions = list(promotions or [])
        self.fail = False
        self.gates: list[asyncio.Event] = []
        self.calls: list[str] = []

    async def _wait(self) -> None:
        if self.gates:
            await self.gates.pop(0).wait()
        if self.fail:
            raise CatalogUnavailableError("catalog offline")

    async def list_active_promotions(self, restaurant_id):
        self.calls.append("list_active_promotions")
        snapshot = [p for p in self.promotions if p.restaurant_id == restaurant_id and p.is_active]
        await self._wait()
        return snapshot

    async def find_coupons_by_code(self, code):
        self.calls.append("find_coupons_by_code")
        await self._wait()
        return [c for c in self.coupons if c.code == code]

    async def find_promotions_by_code(self, restaurant_id, code):
        self.calls.append("find_promotions_by_code")
        await self._wait()
        return [
            p
            for p in self.promotions
            if p.restaurant_id == restaurant_id and p.code == code and p.is_active
        ]
