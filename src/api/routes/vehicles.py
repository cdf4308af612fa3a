"""
Vehicle endpoints
=================

POST   /api/v1/vehicles/lookup                        -- one-shot lookup
POST   /api/v1/vehicles/plate-fields                  -- open a live plate field
GET    /api/v1/vehicles/plate-fields/{id}             -- vehicle + lookup status
PUT    /api/v1/vehicles/plate-fields/{id}/plate       -- plate input (debounced)
DELETE /api/v1/vehicles/plate-fields/{id}             -- close the field

``/lookup`` answers every request it receives.  Plate fields are for callers
that send the plate as it is typed: each input supersedes the pending
lookup, and only the latest plate's result is ever applied to the field's
vehicle.

Foreign plates are answered with ``SKIPPED`` without contacting the
provider, and provider failures come back as ``ERROR`` / ``NOT_FOUND`` with
HTTP 200: a failed lookup never blocks manual entry.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from src.api.dependencies import get_lookup_client, get_plate_fields
from src.api.middleware import limiter
from src.api.schemas import (
    PlateFieldResponse,
    PlateInputRequest,
    PlateLookupRequest,
    PlateLookupResponse,
    VehicleDraftSchema,
    VehicleInfoSchema,
)
from src.config import settings
from src.domain.enums import LookupStatus
from src.infrastructure.registration_client import RegistrationLookupClient
from src.workers.plate_lookup import PlateFieldRegistry, PlateLookupAdapter

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def _field(field_id: str, adapter: PlateLookupAdapter) -> PlateFieldResponse:
    return PlateFieldResponse(
        field_id=field_id, vehicle=VehicleDraftSchema.model_validate(adapter.vehicle)
    )


def _load(fields: PlateFieldRegistry, field_id: str) -> PlateLookupAdapter:
    adapter = fields.get(field_id)
    if adapter is None:
        raise HTTPException(status_code=404, detail="Plate field not found")
    return adapter


@router.post(
    "/lookup",
    response_model=PlateLookupResponse,
    summary="Look up vehicle details by registration plate",
)
@limiter.limit(settings.rate_limit)
async def lookup_plate(
    request: Request,
    body: PlateLookupRequest,
    client: RegistrationLookupClient = Depends(get_lookup_client),
):
    if not body.is_local_plate:
        return PlateLookupResponse(
            status=LookupStatus.SKIPPED,
            plate=body.plate,
            message="Foreign plate, lookup skipped",
        )

    outcome = await client.lookup(body.plate)
    return PlateLookupResponse(
        status=outcome.status,
        plate=outcome.plate,
        message=outcome.message,
        vehicle=VehicleInfoSchema.model_validate(outcome.vehicle) if outcome.vehicle else None,
    )


# ── Live plate fields ─────────────────────────────────────────────────


@router.post(
    "/plate-fields",
    status_code=201,
    response_model=PlateFieldResponse,
    summary="Open a live plate field",
)
@limiter.limit(settings.rate_limit)
async def open_plate_field(
    request: Request,
    client: RegistrationLookupClient = Depends(get_lookup_client),
    fields: PlateFieldRegistry = Depends(get_plate_fields),
):
    field_id, adapter = fields.open(client)
    return _field(field_id, adapter)


@router.get(
    "/plate-fields/{field_id}",
    response_model=PlateFieldResponse,
    summary="Get the vehicle and lookup status of a plate field",
)
@limiter.limit(settings.rate_limit)
async def get_plate_field(
    request: Request,
    field_id: str,
    fields: PlateFieldRegistry = Depends(get_plate_fields),
):
    return _field(field_id, _load(fields, field_id))


@router.put(
    "/plate-fields/{field_id}/plate",
    response_model=PlateFieldResponse,
    summary="Enter a plate; the lookup runs after the debounce window",
)
@limiter.limit(settings.rate_limit)
async def enter_plate(
    request: Request,
    field_id: str,
    body: PlateInputRequest,
    fields: PlateFieldRegistry = Depends(get_plate_fields),
):
    adapter = _load(fields, field_id)
    adapter.update(body.plate, is_local=body.is_local_plate)
    return _field(field_id, adapter)


@router.delete(
    "/plate-fields/{field_id}", status_code=204, summary="Close a plate field"
)
@limiter.limit(settings.rate_limit)
async def close_plate_field(
    request: Request,
    field_id: str,
    fields: PlateFieldRegistry = Depends(get_plate_fields),
):
    if not await fields.close(field_id):
        raise HTTPException(status_code=404, detail="Plate field not found")
    return Response(status_code=204)
