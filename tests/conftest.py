"""
Shared test fixtures.

External collaborators are replaced with in-process fakes so tests run
without Redis or the booking / registration services:

* ``FakeRedis``       -- dict-backed stand-in for ``redis.asyncio.Redis``
* ``FakeGateway``     -- records saved drafts, optionally fails
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import pytest

from src.domain.entities import (
    BookingContext,
    BookingDraft,
    ExistingMission,
    Person,
)
from src.domain.enums import RideCategory
from src.domain.submission import BookingGateway, SavedBooking


TODAY = date(2026, 3, 2)
PICKUP_TIME = datetime(2026, 3, 2, 9, 30)


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, Optional[int]] = {}

    async def get(self, key: str):
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key: str) -> int:
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        return True


class FakeGateway(BookingGateway):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.saved: list[BookingDraft] = []

    async def save(self, draft: BookingDraft) -> SavedBooking:
        if self.error is not None:
            raise self.error
        self.saved.append(draft)
        kind = "mission" if draft.is_mission else "ride"
        return SavedBooking(
            id=f"{kind}-{len(self.saved)}", kind=kind, created=True, record={}
        )


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def context() -> BookingContext:
    return BookingContext(
        passengers=[Person("P1", "Ada Lovelace"), Person("P2", "Alan Turing")],
        chauffeurs=[Person("C1", "Jean Dupont"), Person("C2", "Marie Curie")],
        clients=[Person("CL1", "Acme Events")],
    )


@pytest.fixture
def busy_context(context: BookingContext) -> BookingContext:
    """Same directory, but chauffeur C1 already runs mission m1."""
    context.existing_missions = [
        ExistingMission(id="m1", chauffeur_id="C1", title="Fashion week")
    ]
    return context


@pytest.fixture
def ride_draft() -> BookingDraft:
    """A valid standalone ride for existing passenger P1."""
    return BookingDraft(
        passenger_id="P1",
        pickup_address="123 Main St",
        dropoff_address="Airport",
        pickup_time=PICKUP_TIME,
        category=RideCategory.CITY_TRANSFER,
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
