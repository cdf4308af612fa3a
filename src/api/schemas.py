"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.domain.enums import LookupStatus, RideCategory, RideStatus, StepId
from src.infrastructure.serialization import (
    BookingContextSchema,
    BookingDraftSchema,
    MilestoneSchema,
    RideLegSchema,
)


# ── Partial updates ───────────────────────────────────────────────────


class PassengerInfoUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    passenger_count: Optional[int] = None
    description: Optional[str] = None


class MissionUpdate(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    client_id: Optional[str] = None
    chauffeur_id: Optional[str] = None
    partner_id: Optional[str] = None
    is_external_partner: Optional[bool] = None
    project_id: Optional[str] = None
    passenger_ids: Optional[list[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_hours: Optional[float] = None
    status: Optional[RideStatus] = None
    notes: Optional[str] = None
    total_budget: Optional[float] = None
    partner_fee: Optional[float] = None
    rides: Optional[list[RideLegSchema]] = None


_NOT_NULLABLE = frozenset(
    {
        "title",
        "client_id",
        "is_external_partner",
        "duration_hours",
        "status",
        "use_existing_passenger",
        "pickup_address",
        "dropoff_address",
        "category",
        "is_mission",
        "first_name",
        "last_name",
        "passenger_count",
    }
)


def _applicable(data: dict[str, Any]) -> dict[str, Any]:
    """Drop explicit nulls sent for fields the draft cannot hold empty."""
    return {k: v for k, v in data.items() if not (v is None and k in _NOT_NULLABLE)}


class DraftUpdateRequest(BaseModel):
    """Only the fields present in the request body are applied."""

    passenger_id: Optional[str] = None
    passenger_info: Optional[PassengerInfoUpdate] = None
    use_existing_passenger: Optional[bool] = None
    pickup_address: Optional[str] = None
    dropoff_address: Optional[str] = None
    pickup_time: Optional[datetime] = None
    category: Optional[RideCategory] = None
    status: Optional[RideStatus] = None
    notes: Optional[str] = None
    fare: Optional[float] = None
    milestones: Optional[list[MilestoneSchema]] = None
    is_mission: Optional[bool] = None
    mission: Optional[MissionUpdate] = None

    def to_changes(self) -> dict[str, Any]:
        changes = _applicable(
            self.model_dump(
                exclude_unset=True, exclude={"milestones", "passenger_info", "mission"}
            )
        )
        if self.milestones is not None:
            changes["milestones"] = [m.to_entity() for m in self.milestones]
        if self.passenger_info is not None:
            changes["passenger_info"] = _applicable(
                self.passenger_info.model_dump(exclude_unset=True)
            )
        if self.mission is not None:
            mission = _applicable(
                self.mission.model_dump(
                    exclude_unset=True, exclude={"rides", "passenger_ids"}
                )
            )
            if self.mission.rides is not None:
                mission["rides"] = [r.to_entity() for r in self.mission.rides]
            if self.mission.passenger_ids is not None:
                mission["passenger_ids"] = list(dict.fromkeys(self.mission.passenger_ids))
            changes["mission"] = mission
        return changes


# ── Requests ──────────────────────────────────────────────────────────


class WizardCreateRequest(BaseModel):
    draft: Optional[BookingDraftSchema] = Field(
        None, description="Initial values, e.g. an existing booking being edited."
    )
    context: BookingContextSchema = Field(default_factory=BookingContextSchema)


class PlateLookupRequest(BaseModel):
    plate: str = Field(..., min_length=1, max_length=20)
    is_local_plate: bool = True


class PlateInputRequest(BaseModel):
    """One keystroke-level edit of a live plate field; may be empty."""

    plate: str = Field("", max_length=20)
    is_local_plate: Optional[bool] = None


# ── Responses ─────────────────────────────────────────────────────────


class StepSchema(BaseModel):
    id: StepId
    label: str
    required_fields: list[str] = []

    model_config = {"from_attributes": True}


class WizardStateResponse(BaseModel):
    session_id: str
    draft: BookingDraftSchema
    steps: list[StepSchema]
    current_step: int
    current_step_id: StepId
    is_last_step: bool
    errors: dict[str, str] = {}


class SubmissionResponse(BaseModel):
    id: str
    kind: str
    created: bool
    promoted: bool
    record: dict[str, Any] = {}


class VehicleInfoSchema(BaseModel):
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    fuel_type: Optional[str] = None
    registration_date: Optional[date] = None

    model_config = {"from_attributes": True}


class PlateLookupResponse(BaseModel):
    status: LookupStatus
    plate: str
    message: str = ""
    vehicle: Optional[VehicleInfoSchema] = None

    model_config = {"from_attributes": True}


class VehicleDraftSchema(BaseModel):
    license_plate: str = ""
    is_local_plate: bool = True
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    fuel_type: Optional[str] = None
    registration_date: Optional[date] = None
    lookup_status: LookupStatus = LookupStatus.IDLE
    lookup_message: Optional[str] = None

    model_config = {"from_attributes": True}


class PlateFieldResponse(BaseModel):
    field_id: str
    vehicle: VehicleDraftSchema


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    errors: dict[str, str] = {}
