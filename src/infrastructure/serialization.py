"""
Pydantic mirrors of the booking draft and the reference context.

Shared by everything that crosses a process boundary: the booking gateway
payload, the Redis session record and the HTTP API.  Each model reads a
domain dataclass with ``model_validate`` (``from_attributes``) and converts
back with ``to_entity()``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.entities import (
    DEFAULT_DURATION_HOURS,
    DEFAULT_PASSENGER_COUNT,
    BookingContext,
    BookingDraft,
    ExistingMission,
    Milestone,
    MissionDraft,
    PassengerInfo,
    Person,
    RideLeg,
)
from src.domain.enums import DEFAULT_CATEGORY, MilestoneKind, RideCategory, RideStatus


# ── Draft ─────────────────────────────────────────────────────────────


class MilestoneSchema(BaseModel):
    address: str = ""
    kind: MilestoneKind = MilestoneKind.PICKUP
    time: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}

    def to_entity(self) -> Milestone:
        return Milestone(**self.model_dump())


class RideLegSchema(BaseModel):
    id: Optional[str] = None
    pickup_address: str = ""
    dropoff_address: str = ""
    pickup_time: Optional[datetime] = None
    category: RideCategory = DEFAULT_CATEGORY
    status: RideStatus = RideStatus.SCHEDULED
    notes: Optional[str] = None
    fare: Optional[float] = None
    milestones: list[MilestoneSchema] = []

    model_config = {"from_attributes": True}

    def to_entity(self) -> RideLeg:
        data = self.model_dump(exclude={"milestones"})
        return RideLeg(**data, milestones=[m.to_entity() for m in self.milestones])


class PassengerInfoSchema(BaseModel):
    first_name: str = ""
    last_name: str = ""
    phone_number: Optional[str] = None
    passenger_count: int = DEFAULT_PASSENGER_COUNT
    description: Optional[str] = None

    model_config = {"from_attributes": True}

    def to_entity(self) -> PassengerInfo:
        return PassengerInfo(**self.model_dump())


class MissionDraftSchema(BaseModel):
    id: Optional[str] = None
    title: str = ""
    client_id: str = ""
    chauffeur_id: Optional[str] = None
    partner_id: Optional[str] = None
    is_external_partner: bool = False
    project_id: Optional[str] = None
    passenger_ids: list[str] = []
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_hours: float = DEFAULT_DURATION_HOURS
    status: RideStatus = RideStatus.SCHEDULED
    notes: Optional[str] = None
    total_budget: Optional[float] = None
    partner_fee: Optional[float] = None
    rides: list[RideLegSchema] = []

    model_config = {"from_attributes": True}

    def to_entity(self) -> MissionDraft:
        data = self.model_dump(exclude={"rides", "passenger_ids"})
        mission = MissionDraft(**data, rides=[r.to_entity() for r in self.rides])
        for passenger_id in self.passenger_ids:
            mission.add_passenger(passenger_id)
        return mission


class BookingDraftSchema(BaseModel):
    id: Optional[str] = None
    passenger_id: Optional[str] = None
    passenger_info: PassengerInfoSchema = Field(default_factory=PassengerInfoSchema)
    use_existing_passenger: bool = True
    pickup_address: str = ""
    dropoff_address: str = ""
    pickup_time: Optional[datetime] = None
    category: RideCategory = DEFAULT_CATEGORY
    status: RideStatus = RideStatus.SCHEDULED
    notes: Optional[str] = None
    fare: Optional[float] = None
    milestones: list[MilestoneSchema] = []
    is_mission: bool = False
    mission: MissionDraftSchema = Field(default_factory=MissionDraftSchema)

    model_config = {"from_attributes": True}

    def to_entity(self) -> BookingDraft:
        data = self.model_dump(exclude={"passenger_info", "milestones", "mission"})
        return BookingDraft(
            **data,
            passenger_info=self.passenger_info.to_entity(),
            milestones=[m.to_entity() for m in self.milestones],
            mission=self.mission.to_entity(),
        )


# ── Reference context ─────────────────────────────────────────────────


class PersonSchema(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class ExistingMissionSchema(BaseModel):
    id: str
    title: str = ""
    chauffeur_id: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingContextSchema(BaseModel):
    passengers: list[PersonSchema] = []
    chauffeurs: list[PersonSchema] = []
    clients: list[PersonSchema] = []
    partners: list[PersonSchema] = []
    projects: list[PersonSchema] = []
    existing_missions: list[ExistingMissionSchema] = []

    model_config = {"from_attributes": True}

    def to_entity(self) -> BookingContext:
        def people(items: list[PersonSchema]) -> list[Person]:
            return [Person(id=p.id, name=p.name) for p in items]

        return BookingContext(
            passengers=people(self.passengers),
            chauffeurs=people(self.chauffeurs),
            clients=people(self.clients),
            partners=people(self.partners),
            projects=people(self.projects),
            existing_missions=[
                ExistingMission(id=m.id, title=m.title, chauffeur_id=m.chauffeur_id)
                for m in self.existing_missions
            ],
        )
