"""
Domain entities for the booking wizard.

Shape
-----
``BookingDraft`` is the root: a standalone ride (addresses, time, category,
milestones), two passenger branches (``passenger_id`` for an existing
passenger, ``passenger_info`` for a new one) and a ``MissionDraft`` block
with its own ride legs.  Only one branch of each pair is *live* at a time,
selected by ``use_existing_passenger`` / ``is_mission`` /
``is_external_partner``, but both are kept so that toggling back and forth
never loses user input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from .enums import (
    DEFAULT_CATEGORY,
    LookupStatus,
    MilestoneKind,
    RideCategory,
    RideStatus,
)

DEFAULT_DURATION_HOURS = 12.0
DEFAULT_PASSENGER_COUNT = 1


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass
class Milestone:
    address: str = ""
    kind: MilestoneKind = MilestoneKind.PICKUP
    time: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass
class RideLeg:
    pickup_address: str = ""
    dropoff_address: str = ""
    pickup_time: Optional[datetime] = None
    category: RideCategory = DEFAULT_CATEGORY
    status: RideStatus = RideStatus.SCHEDULED
    id: Optional[str] = None
    notes: Optional[str] = None
    fare: Optional[float] = None
    milestones: list[Milestone] = field(default_factory=list)


@dataclass
class PassengerInfo:
    first_name: str = ""
    last_name: str = ""
    phone_number: Optional[str] = None
    passenger_count: int = DEFAULT_PASSENGER_COUNT
    description: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class MissionDraft:
    id: Optional[str] = None
    title: str = ""
    client_id: str = ""
    chauffeur_id: Optional[str] = None
    partner_id: Optional[str] = None
    is_external_partner: bool = False
    project_id: Optional[str] = None
    passenger_ids: list[str] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_hours: float = DEFAULT_DURATION_HOURS
    status: RideStatus = RideStatus.SCHEDULED
    notes: Optional[str] = None
    total_budget: Optional[float] = None
    partner_fee: Optional[float] = None
    rides: list[RideLeg] = field(default_factory=list)

    @property
    def assignee_id(self) -> Optional[str]:
        """The chauffeur or the external partner, whichever is live."""
        return self.partner_id if self.is_external_partner else self.chauffeur_id

    def add_passenger(self, passenger_id: str) -> None:
        if passenger_id and passenger_id not in self.passenger_ids:
            self.passenger_ids.append(passenger_id)

    def remove_passenger(self, passenger_id: str) -> None:
        self.passenger_ids = [p for p in self.passenger_ids if p != passenger_id]


@dataclass
class BookingDraft:
    id: Optional[str] = None
    passenger_id: Optional[str] = None
    passenger_info: PassengerInfo = field(default_factory=PassengerInfo)
    use_existing_passenger: bool = True
    pickup_address: str = ""
    dropoff_address: str = ""
    pickup_time: Optional[datetime] = None
    category: RideCategory = DEFAULT_CATEGORY
    status: RideStatus = RideStatus.SCHEDULED
    notes: Optional[str] = None
    fare: Optional[float] = None
    milestones: list[Milestone] = field(default_factory=list)
    is_mission: bool = False
    mission: MissionDraft = field(default_factory=MissionDraft)

    @property
    def attached_chauffeur_id(self) -> Optional[str]:
        """Chauffeur picked in the mission block, read even in ride mode."""
        return self.mission.chauffeur_id or None


# ── Reference data (read-only snapshot supplied by the caller) ───────


@dataclass(frozen=True)
class Person:
    id: str
    name: str


@dataclass(frozen=True)
class ExistingMission:
    id: str
    chauffeur_id: Optional[str] = None
    title: str = ""


@dataclass
class BookingContext:
    passengers: list[Person] = field(default_factory=list)
    chauffeurs: list[Person] = field(default_factory=list)
    clients: list[Person] = field(default_factory=list)
    partners: list[Person] = field(default_factory=list)
    projects: list[Person] = field(default_factory=list)
    existing_missions: list[ExistingMission] = field(default_factory=list)

    @staticmethod
    def _find(people: list[Person], person_id: Optional[str]) -> Optional[Person]:
        if not person_id:
            return None
        return next((p for p in people if p.id == person_id), None)

    def passenger(self, passenger_id: Optional[str]) -> Optional[Person]:
        return self._find(self.passengers, passenger_id)

    def chauffeur(self, chauffeur_id: Optional[str]) -> Optional[Person]:
        return self._find(self.chauffeurs, chauffeur_id)

    def first_client_id(self) -> str:
        return self.clients[0].id if self.clients else ""


# ── Plate-entry affordance ────────────────────────────────────────────


@dataclass
class VehicleInfo:
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    fuel_type: Optional[str] = None
    registration_date: Optional[date] = None


@dataclass
class VehicleDraft:
    license_plate: str = ""
    is_local_plate: bool = True
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    fuel_type: Optional[str] = None
    registration_date: Optional[date] = None
    lookup_status: LookupStatus = LookupStatus.IDLE
    lookup_message: Optional[str] = None

    def apply(self, info: VehicleInfo) -> None:
        """Copy looked-up fields, keeping manual entries the provider lacks."""
        self.make = info.make or self.make
        self.model = info.model or self.model
        self.year = info.year if info.year is not None else self.year
        self.fuel_type = info.fuel_type or self.fuel_type
        self.registration_date = info.registration_date or self.registration_date
