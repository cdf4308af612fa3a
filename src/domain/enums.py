"""Domain enumerations and category rules."""

import enum


class RideStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RideCategory(str, enum.Enum):
    CITY_TRANSFER = "CITY_TRANSFER"
    AIRPORT_TRANSFER = "AIRPORT_TRANSFER"
    TRAIN_STATION_TRANSFER = "TRAIN_STATION_TRANSFER"
    CHAUFFEUR_SERVICE = "CHAUFFEUR_SERVICE"  # "mise à disposition"


# Rides bundled into a mission cannot be chauffeur-service bookings
MISSION_RIDE_CATEGORIES: frozenset[RideCategory] = frozenset(
    {
        RideCategory.CITY_TRANSFER,
        RideCategory.AIRPORT_TRANSFER,
        RideCategory.TRAIN_STATION_TRANSFER,
    }
)

DEFAULT_CATEGORY = RideCategory.CITY_TRANSFER


class MilestoneKind(str, enum.Enum):
    PICKUP = "PICKUP"
    DROPOFF = "DROPOFF"


class StepId(str, enum.Enum):
    PASSENGER = "passenger"
    RIDE_DETAILS = "ride-details"
    MILESTONES = "milestones"
    MISSION = "mission"
    REVIEW = "review"


class LookupStatus(str, enum.Enum):
    IDLE = "IDLE"
    PENDING = "PENDING"
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"
    SKIPPED = "SKIPPED"
