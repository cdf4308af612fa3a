"""
Vehicle registration lookup client.

Wraps the public registration API::

    GET {base}/getDataImmatriculation?plaque=AB-123-CD&region=

The provider answers with an ``info`` block (``marque``, ``modele``,
``dateMiseEnCirculation``, ``energy``) and sometimes a secondary ``data``
block (``marque``, ``modele``, ``date1erCir_us``, ``energie``) used as a
fallback.  Every failure is converted into a ``LookupOutcome``; nothing is
raised to the caller because a failed lookup never blocks manual entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import httpx

from src.config import settings
from src.domain.entities import VehicleInfo
from src.domain.enums import LookupStatus
from src.domain.plates import format_plate, is_local_plate

logger = logging.getLogger(__name__)


@dataclass
class LookupOutcome:
    status: LookupStatus
    plate: str
    vehicle: Optional[VehicleInfo] = None
    message: str = ""


def _parse_date(value: Any) -> Optional[date]:
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _block(payload: dict, key: str) -> dict:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def parse_vehicle(payload: Any) -> Optional[VehicleInfo]:
    """Extract vehicle fields from a provider response, or None."""
    if not isinstance(payload, dict):
        return None
    info = _block(payload, "info")
    extra = _block(payload, "data")
    if not info and not extra:
        return None

    registered = _parse_date(info.get("dateMiseEnCirculation")) or _parse_date(
        extra.get("date1erCir_us")
    )
    vehicle = VehicleInfo(
        make=info.get("marque") or extra.get("marque") or "",
        model=info.get("modele") or extra.get("modele") or "",
        year=registered.year if registered else None,
        fuel_type=info.get("energy") or extra.get("energie") or None,
        registration_date=registered,
    )
    if not (vehicle.make or vehicle.model):
        return None
    return vehicle


class RegistrationLookupClient:
    def __init__(
        self,
        base_url: str = settings.registration_api_url,
        timeout: float = settings.registration_api_timeout_seconds,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def lookup(self, plate: str) -> LookupOutcome:
        if not is_local_plate(plate):
            return LookupOutcome(
                LookupStatus.SKIPPED, plate, message="Foreign plate, lookup skipped"
            )

        formatted = format_plate(plate)
        try:
            resp = await self.client.get(
                "/getDataImmatriculation",
                params={"plaque": formatted, "region": ""},
            )
        except httpx.HTTPError as exc:
            logger.warning("Registration lookup for %s failed: %s", formatted, exc)
            return LookupOutcome(
                LookupStatus.ERROR, formatted, message="Failed to fetch vehicle data"
            )

        if resp.status_code == 404:
            return LookupOutcome(
                LookupStatus.NOT_FOUND,
                formatted,
                message="Could not find vehicle information",
            )
        if resp.is_error:
            logger.warning(
                "Registration lookup for %s returned HTTP %d", formatted, resp.status_code
            )
            return LookupOutcome(
                LookupStatus.ERROR, formatted, message="Failed to fetch vehicle data"
            )

        try:
            payload = resp.json()
        except ValueError:
            return LookupOutcome(
                LookupStatus.ERROR, formatted, message="Malformed provider response"
            )

        vehicle = parse_vehicle(payload)
        if vehicle is None:
            return LookupOutcome(
                LookupStatus.NOT_FOUND,
                formatted,
                message="Could not find vehicle information",
            )
        return LookupOutcome(
            LookupStatus.FOUND,
            formatted,
            vehicle=vehicle,
            message="Vehicle information retrieved successfully",
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
