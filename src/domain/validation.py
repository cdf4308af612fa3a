"""
Field-path validation for the booking draft.

Every validatable field is addressed by a dotted path (``pickup_address``,
``passenger_info.last_name``, ``mission.rides.0.category``).  A step declares
the top-level paths it owns; the rule registered for each path may report
errors on that path or on any path nested under it.

Passenger resolution
--------------------
``use_existing_passenger`` picks the live branch:

* True  -> only ``passenger_id`` is required; ``passenger_info`` is ignored.
* False -> ``passenger_info.first_name`` / ``last_name`` are required and
  ``passenger_id`` is ignored.

A violation of either branch is also reported on ``passenger_id`` so the
wizard has a single place to surface it.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Iterable, Optional

from .entities import BookingDraft, Milestone, RideLeg
from .enums import MISSION_RIDE_CATEGORIES, MilestoneKind, RideCategory, RideStatus
from .steps import StepDescriptor, resolve_steps

ErrorMap = dict[str, str]
FieldRule = Callable[[BookingDraft, ErrorMap], None]

MISSING_PASSENGER = (
    "Please select an existing passenger or provide new passenger details."
)
MISSING_PASSENGER_NAMES = "First and last name are required for new passengers."


# ── Primitive checks ──────────────────────────────────────────────────


def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _member(enum_cls: type[enum.Enum], value: Any) -> Optional[enum.Enum]:
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _check_non_negative(
    value: Optional[float], path: str, label: str, errors: ErrorMap
) -> None:
    if value is not None and value < 0:
        errors[path] = f"{label} cannot be negative"


def owns(path: str, fields: Iterable[str]) -> bool:
    """True when *path* is one of *fields* or nested under one of them."""
    return any(path == f or path.startswith(f + ".") for f in fields)


# ── Composite checks ──────────────────────────────────────────────────


def validate_milestone(milestone: Milestone, prefix: str, errors: ErrorMap) -> None:
    if not _has_text(milestone.address):
        errors[f"{prefix}.address"] = "Address is required"
    if _member(MilestoneKind, milestone.kind) is None:
        errors[f"{prefix}.kind"] = "Milestone type must be PICKUP or DROPOFF"


def validate_ride_leg(leg: RideLeg, prefix: str, errors: ErrorMap) -> None:
    """Validate a ride embedded in a mission (restricted categories)."""
    if not _has_text(leg.pickup_address):
        errors[f"{prefix}.pickup_address"] = "Pickup address is required"
    if not _has_text(leg.dropoff_address):
        errors[f"{prefix}.dropoff_address"] = "Dropoff address is required"
    if leg.pickup_time is None:
        errors[f"{prefix}.pickup_time"] = "Pickup time is required"
    if _member(RideCategory, leg.category) not in MISSION_RIDE_CATEGORIES:
        errors[f"{prefix}.category"] = (
            "Mission rides must be city, airport or train station transfers"
        )
    if _member(RideStatus, leg.status) is None:
        errors[f"{prefix}.status"] = "Invalid status"
    _check_non_negative(leg.fare, f"{prefix}.fare", "Fare", errors)
    for i, milestone in enumerate(leg.milestones):
        validate_milestone(milestone, f"{prefix}.milestones.{i}", errors)


# ── Field rules ───────────────────────────────────────────────────────


def _passenger_id(draft: BookingDraft, errors: ErrorMap) -> None:
    if draft.use_existing_passenger:
        if not _has_text(draft.passenger_id):
            errors["passenger_id"] = MISSING_PASSENGER
    else:
        info = draft.passenger_info
        if not (_has_text(info.first_name) and _has_text(info.last_name)):
            errors["passenger_id"] = MISSING_PASSENGER_NAMES


def _passenger_info(draft: BookingDraft, errors: ErrorMap) -> None:
    if draft.use_existing_passenger:
        return
    info = draft.passenger_info
    if not _has_text(info.first_name):
        errors["passenger_info.first_name"] = "First name is required"
    if not _has_text(info.last_name):
        errors["passenger_info.last_name"] = "Last name is required"
    if info.passenger_count is None or info.passenger_count < 1:
        errors["passenger_info.passenger_count"] = "At least 1 passenger is required"


def _pickup_address(draft: BookingDraft, errors: ErrorMap) -> None:
    if not _has_text(draft.pickup_address):
        errors["pickup_address"] = "Pickup address is required"


def _dropoff_address(draft: BookingDraft, errors: ErrorMap) -> None:
    if not _has_text(draft.dropoff_address):
        errors["dropoff_address"] = "Dropoff address is required"


def _pickup_time(draft: BookingDraft, errors: ErrorMap) -> None:
    if draft.pickup_time is None:
        errors["pickup_time"] = "Pickup time is required"


def _category(draft: BookingDraft, errors: ErrorMap) -> None:
    if _member(RideCategory, draft.category) is None:
        errors["category"] = "Category is required"


def _status(draft: BookingDraft, errors: ErrorMap) -> None:
    if _member(RideStatus, draft.status) is None:
        errors["status"] = "Status is required"


def _fare(draft: BookingDraft, errors: ErrorMap) -> None:
    _check_non_negative(draft.fare, "fare", "Fare", errors)


def _milestones(draft: BookingDraft, errors: ErrorMap) -> None:
    for i, milestone in enumerate(draft.milestones):
        validate_milestone(milestone, f"milestones.{i}", errors)


def _mission_title(draft: BookingDraft, errors: ErrorMap) -> None:
    if not _has_text(draft.mission.title):
        errors["mission.title"] = "Mission title is required"


def _mission_client(draft: BookingDraft, errors: ErrorMap) -> None:
    if not _has_text(draft.mission.client_id):
        errors["mission.client_id"] = "Client is required"


def _mission_start(draft: BookingDraft, errors: ErrorMap) -> None:
    if draft.mission.start_date is None:
        errors["mission.start_date"] = "Start date is required"


def _mission_end(draft: BookingDraft, errors: ErrorMap) -> None:
    mission = draft.mission
    if mission.end_date is None:
        errors["mission.end_date"] = "End date is required"
    elif mission.start_date is not None and mission.end_date < mission.start_date:
        errors["mission.end_date"] = "End date cannot be before start date"


def _mission_duration(draft: BookingDraft, errors: ErrorMap) -> None:
    if draft.mission.duration_hours is None or draft.mission.duration_hours <= 0:
        errors["mission.duration_hours"] = "Duration must be a positive number of hours"


def _mission_rides(draft: BookingDraft, errors: ErrorMap) -> None:
    for i, leg in enumerate(draft.mission.rides):
        validate_ride_leg(leg, f"mission.rides.{i}", errors)


def _mission_budget(draft: BookingDraft, errors: ErrorMap) -> None:
    _check_non_negative(
        draft.mission.total_budget, "mission.total_budget", "Total budget", errors
    )


def _mission_partner_fee(draft: BookingDraft, errors: ErrorMap) -> None:
    _check_non_negative(
        draft.mission.partner_fee, "mission.partner_fee", "Partner fee", errors
    )


FIELD_RULES: dict[str, FieldRule] = {
    "passenger_id": _passenger_id,
    "passenger_info": _passenger_info,
    "pickup_address": _pickup_address,
    "dropoff_address": _dropoff_address,
    "pickup_time": _pickup_time,
    "category": _category,
    "status": _status,
    "fare": _fare,
    "milestones": _milestones,
    "mission.title": _mission_title,
    "mission.client_id": _mission_client,
    "mission.start_date": _mission_start,
    "mission.end_date": _mission_end,
    "mission.duration_hours": _mission_duration,
    "mission.rides": _mission_rides,
    "mission.total_budget": _mission_budget,
    "mission.partner_fee": _mission_partner_fee,
}


# ── Public API ────────────────────────────────────────────────────────


def validate_fields(draft: BookingDraft, fields: Iterable[str]) -> ErrorMap:
    """Run the rules for *fields*; returns only errors owned by them."""
    errors: ErrorMap = {}
    for path in fields:
        rule = FIELD_RULES.get(path)
        if rule is None:
            raise KeyError(f"No validation rule for field {path!r}")
        rule(draft, errors)
    return errors


def validate_step(draft: BookingDraft, step: StepDescriptor) -> ErrorMap:
    return validate_fields(draft, step.required_fields)


def validate_draft(draft: BookingDraft) -> ErrorMap:
    """Full re-validation of every live field for the current mode."""
    errors: ErrorMap = {}
    for step in resolve_steps(draft.is_mission):
        errors.update(validate_step(draft, step))
    return errors
