"""FastAPI dependency injection helpers."""

from __future__ import annotations

from typing import Optional

from src.config import settings
from src.domain.promotion import MissionPromotionEngine
from src.domain.submission import BookingGateway, SubmissionAssembler
from src.infrastructure.booking_gateway import HttpBookingGateway
from src.infrastructure.redis_client import get_redis
from src.infrastructure.registration_client import RegistrationLookupClient
from src.infrastructure.repositories import WizardSessionRepository
from src.workers.plate_lookup import PlateFieldRegistry, plate_fields

_gateway: Optional[HttpBookingGateway] = None
_lookup_client: Optional[RegistrationLookupClient] = None


async def get_session_repository() -> WizardSessionRepository:
    return WizardSessionRepository(await get_redis())


def get_booking_gateway() -> BookingGateway:
    """Process-wide persistence gateway (one pooled HTTP client)."""
    global _gateway
    if _gateway is None:
        _gateway = HttpBookingGateway()
    return _gateway


def get_lookup_client() -> RegistrationLookupClient:
    global _lookup_client
    if _lookup_client is None:
        _lookup_client = RegistrationLookupClient()
    return _lookup_client


def get_plate_fields() -> PlateFieldRegistry:
    return plate_fields


def build_assembler(gateway: BookingGateway) -> SubmissionAssembler:
    return SubmissionAssembler(
        gateway, MissionPromotionEngine(settings.default_mission_duration_hours)
    )


async def close_clients() -> None:
    """Close the outbound HTTP clients created by this module."""
    global _gateway, _lookup_client
    if _gateway is not None:
        await _gateway.aclose()
        _gateway = None
    if _lookup_client is not None:
        await _lookup_client.aclose()
        _lookup_client = None
