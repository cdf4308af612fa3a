"""
Step topology
=============

The wizard's steps are a pure function of ``is_mission``::

    passenger -> ride-details -> milestones -> review     (ride mode)
    passenger -> ride-details -> mission    -> review     (mission mode)

Only the flag is stored; the topology is derived on every read, so it can
never drift from the draft.  When the topology changes the current index is
clamped into range.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from .enums import StepId


@dataclass(frozen=True)
class StepDescriptor:
    id: StepId
    label: str
    required_fields: tuple[str, ...] = ()


PASSENGER_FIELDS = ("passenger_id", "passenger_info")
RIDE_DETAIL_FIELDS = (
    "pickup_address",
    "dropoff_address",
    "pickup_time",
    "category",
    "status",
    "fare",
)
MILESTONE_FIELDS = ("milestones",)
MISSION_FIELDS = (
    "mission.title",
    "mission.client_id",
    "mission.start_date",
    "mission.end_date",
    "mission.duration_hours",
    "mission.rides",
    "mission.total_budget",
    "mission.partner_fee",
)


@lru_cache(maxsize=2)
def resolve_steps(is_mission: bool) -> tuple[StepDescriptor, ...]:
    """Return the ordered, immutable step list for the given mode."""
    if is_mission:
        middle = StepDescriptor(StepId.MISSION, "Mission", MISSION_FIELDS)
        # standalone ride fields are inert in mission mode
        ride_fields: tuple[str, ...] = ()
    else:
        middle = StepDescriptor(StepId.MILESTONES, "Milestones", MILESTONE_FIELDS)
        ride_fields = RIDE_DETAIL_FIELDS

    return (
        StepDescriptor(StepId.PASSENGER, "Passenger", PASSENGER_FIELDS),
        StepDescriptor(StepId.RIDE_DETAILS, "Ride Details", ride_fields),
        middle,
        StepDescriptor(StepId.REVIEW, "Review"),
    )


def clamp_step_index(index: int, steps: tuple[StepDescriptor, ...]) -> int:
    """Relocate *index* into ``[0, len(steps) - 1]``."""
    if not steps:
        return 0
    return min(max(index, 0), len(steps) - 1)


def find_step(steps: tuple[StepDescriptor, ...], step_id: StepId | str) -> int:
    """Index of *step_id* in *steps*, or -1 when it is not part of them."""
    for i, step in enumerate(steps):
        if step.id == step_id:
            return i
    return -1
