"""
Mission Promotion Engine
========================

Rule
----
A standalone ride whose (inert) mission block carries a chauffeur is
rewritten into a one-ride mission at submission time, unless that chauffeur
already appears on an existing mission::

    promote  <=>  not is_mission
                  and mission.chauffeur_id
                  and chauffeur_id not in {m.chauffeur_id for m in existing}

The conflict check is a flat membership test; no date ranges are compared.

Rewrite
-------
* the standalone ride's pickup / dropoff / time / category / notes / fare /
  milestones move into a single ``RideLeg`` in ``mission.rides``;
  categories that are not mission-eligible become ``CITY_TRANSFER``;
* the standalone fields are reset so the payload has one authoritative half;
* the mission gets a synthesized title, client, passenger list and a
  today -> tomorrow date range.

The engine never mutates its input and is idempotent: a promoted draft has
``is_mission`` set, so a second pass returns it unchanged.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from .entities import (
    DEFAULT_DURATION_HOURS,
    BookingContext,
    BookingDraft,
    ExistingMission,
    RideLeg,
)
from .enums import DEFAULT_CATEGORY, MISSION_RIDE_CATEGORIES, RideCategory, RideStatus

logger = logging.getLogger(__name__)

FALLBACK_PASSENGER = "Selected Passenger"
FALLBACK_CHAUFFEUR = "Selected Chauffeur"
FALLBACK_CLIENT = "Client"


@dataclass
class PromotionResult:
    draft: BookingDraft
    promoted: bool
    reason: str


def chauffeur_has_existing_mission(
    chauffeur_id: str, existing_missions: Iterable[ExistingMission]
) -> bool:
    return any(m.chauffeur_id == chauffeur_id for m in existing_missions)


def mission_category(category: RideCategory) -> RideCategory:
    """Coerce *category* into the mission-eligible set."""
    try:
        category = RideCategory(category)
    except ValueError:
        return DEFAULT_CATEGORY
    return category if category in MISSION_RIDE_CATEGORIES else DEFAULT_CATEGORY


def passenger_display_name(draft: BookingDraft, context: BookingContext) -> str:
    if draft.use_existing_passenger:
        if not draft.passenger_id:
            return FALLBACK_CLIENT
        passenger = context.passenger(draft.passenger_id)
        return passenger.name if passenger else FALLBACK_PASSENGER
    return draft.passenger_info.full_name or FALLBACK_CLIENT


def chauffeur_display_name(chauffeur_id: str, context: BookingContext) -> str:
    chauffeur = context.chauffeur(chauffeur_id)
    return chauffeur.name if chauffeur else FALLBACK_CHAUFFEUR


class MissionPromotionEngine:
    """Decides whether a ride must be submitted as a mission and rewrites it."""

    def __init__(self, default_duration_hours: float = DEFAULT_DURATION_HOURS):
        self.default_duration_hours = default_duration_hours

    def should_promote(
        self, draft: BookingDraft, existing_missions: Iterable[ExistingMission]
    ) -> tuple[bool, str]:
        if draft.is_mission:
            return False, "already a mission"
        chauffeur_id = draft.attached_chauffeur_id
        if not chauffeur_id:
            return False, "no chauffeur attached"
        if chauffeur_has_existing_mission(chauffeur_id, existing_missions):
            return False, f"chauffeur {chauffeur_id} already has a mission"
        return True, f"chauffeur {chauffeur_id} has no mission"

    def promote(
        self,
        draft: BookingDraft,
        existing_missions: Iterable[ExistingMission],
        context: Optional[BookingContext] = None,
        today: Optional[date] = None,
    ) -> PromotionResult:
        existing_missions = list(existing_missions)
        promote, reason = self.should_promote(draft, existing_missions)
        result = copy.deepcopy(draft)
        if not promote:
            return PromotionResult(result, False, reason)

        context = context or BookingContext()
        today = today or date.today()
        chauffeur_id = result.attached_chauffeur_id
        passenger_id = result.passenger_id if result.use_existing_passenger else None

        mission = result.mission
        mission.title = (
            f"Mission for {passenger_display_name(result, context)} "
            f"with {chauffeur_display_name(chauffeur_id, context)}"
        )
        mission.status = RideStatus.SCHEDULED
        mission.client_id = passenger_id or context.first_client_id()
        mission.chauffeur_id = chauffeur_id
        mission.passenger_ids = [passenger_id] if passenger_id else []
        mission.start_date = today
        mission.end_date = today + timedelta(days=1)
        mission.duration_hours = self.default_duration_hours
        mission.is_external_partner = False
        mission.rides = [
            RideLeg(
                pickup_address=result.pickup_address,
                dropoff_address=result.dropoff_address,
                pickup_time=result.pickup_time,
                category=mission_category(result.category),
                status=RideStatus.SCHEDULED,
                notes=result.notes,
                fare=result.fare,
                milestones=result.milestones,
            )
        ]
        result.is_mission = True

        result.pickup_address = ""
        result.dropoff_address = ""
        result.category = DEFAULT_CATEGORY
        result.status = RideStatus.SCHEDULED
        result.notes = None
        result.fare = None
        result.milestones = []

        logger.info("Promoted ride to mission %r (%s)", mission.title, reason)
        return PromotionResult(result, True, reason)


def create_mission_for_chauffeur(
    draft: BookingDraft,
    context: Optional[BookingContext] = None,
    today: Optional[date] = None,
    default_duration_hours: float = DEFAULT_DURATION_HOURS,
) -> BookingDraft:
    """Switch *draft* into mission mode around its attached chauffeur.

    This is the explicit shortcut offered while the user is still on the
    passenger / ride-details steps; unlike ``promote`` the standalone ride
    fields are left in place for the user to move by hand.  Mutates and
    returns *draft*.
    """
    context = context or BookingContext()
    today = today or date.today()
    passenger_id = draft.passenger_id if draft.use_existing_passenger else None
    passenger = context.passenger(passenger_id)

    mission = draft.mission
    mission.title = f"Mission for {passenger.name}" if passenger else "New Mission"
    mission.client_id = passenger_id or ""
    mission.status = RideStatus.SCHEDULED
    mission.passenger_ids = [passenger_id] if passenger_id else []
    mission.start_date = today
    mission.end_date = today + timedelta(days=1)
    mission.duration_hours = default_duration_hours
    mission.is_external_partner = False
    mission.notes = None
    draft.is_mission = True
    return draft
