"""
Booking wizard endpoints
========================

POST   /api/v1/wizards                       -- open a wizard session
GET    /api/v1/wizards/{id}                  -- draft, steps, current step, errors
PATCH  /api/v1/wizards/{id}/draft            -- apply a partial draft update
PUT    /api/v1/wizards/{id}/context          -- replace the reference snapshot
POST   /api/v1/wizards/{id}/next             -- validate current step, advance
POST   /api/v1/wizards/{id}/back             -- go back one step
POST   /api/v1/wizards/{id}/steps/{index}    -- jump to a step
POST   /api/v1/wizards/{id}/create-mission   -- mission for the attached chauffeur
POST   /api/v1/wizards/{id}/submit           -- validate, promote, persist, reset
DELETE /api/v1/wizards/{id}                  -- discard the session
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from src.api.dependencies import (
    build_assembler,
    get_booking_gateway,
    get_session_repository,
)
from src.api.middleware import limiter
from src.api.schemas import (
    BookingContextSchema,
    BookingDraftSchema,
    DraftUpdateRequest,
    ErrorResponse,
    StepSchema,
    SubmissionResponse,
    WizardCreateRequest,
    WizardStateResponse,
)
from src.config import settings
from src.domain.errors import DraftValidationError, UnknownStepError, WizardError
from src.domain.submission import BookingGateway
from src.domain.wizard import BookingWizard
from src.infrastructure.booking_gateway import GatewayUnavailable, SubmissionRejected
from src.infrastructure.repositories import WizardSessionRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wizards", tags=["wizards"])


# ── Helpers ───────────────────────────────────────────────────────────


def _state(session_id: str, wizard: BookingWizard) -> WizardStateResponse:
    return WizardStateResponse(
        session_id=session_id,
        draft=BookingDraftSchema.model_validate(wizard.draft),
        steps=[StepSchema.model_validate(s) for s in wizard.steps],
        current_step=wizard.current_step,
        current_step_id=wizard.current.id,
        is_last_step=wizard.is_last_step,
        errors=wizard.errors,
    )


def _invalid(detail: str, errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(detail=detail, errors=errors).model_dump(),
    )


async def _load(repo: WizardSessionRepository, session_id: str) -> BookingWizard:
    wizard = await repo.get(session_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail="Wizard session not found")
    return wizard


# ── Session lifecycle ─────────────────────────────────────────────────


@router.post(
    "",
    status_code=201,
    response_model=WizardStateResponse,
    summary="Open a booking wizard session",
)
@limiter.limit(settings.rate_limit)
async def create_wizard(
    request: Request,
    body: WizardCreateRequest,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    wizard = BookingWizard(
        initial=body.draft.to_entity() if body.draft else None,
        context=body.context.to_entity(),
    )
    session_id = await repo.create(wizard)
    logger.info("Opened wizard session %s", session_id)
    return _state(session_id, wizard)


@router.get(
    "/{session_id}",
    response_model=WizardStateResponse,
    summary="Get the wizard state",
)
@limiter.limit(settings.rate_limit)
async def get_wizard(
    request: Request,
    session_id: str,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    return _state(session_id, await _load(repo, session_id))


@router.delete("/{session_id}", status_code=204, summary="Discard a wizard session")
@limiter.limit(settings.rate_limit)
async def delete_wizard(
    request: Request,
    session_id: str,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    if not await repo.delete(session_id):
        raise HTTPException(status_code=404, detail="Wizard session not found")
    return Response(status_code=204)


# ── Draft mutation ────────────────────────────────────────────────────


@router.patch(
    "/{session_id}/draft",
    response_model=WizardStateResponse,
    summary="Apply a partial update to the draft",
    description=(
        "Only the fields present in the body are changed. Toggling "
        "``is_mission`` re-derives the steps and clamps the current step; "
        "toggling ``use_existing_passenger`` keeps both passenger branches."
    ),
)
@limiter.limit(settings.rate_limit)
async def update_draft(
    request: Request,
    session_id: str,
    body: DraftUpdateRequest,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    wizard = await _load(repo, session_id)
    try:
        wizard.update(**body.to_changes())
    except WizardError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    await repo.save(session_id, wizard)
    return _state(session_id, wizard)


@router.put(
    "/{session_id}/context",
    response_model=WizardStateResponse,
    summary="Replace the reference data snapshot",
)
@limiter.limit(settings.rate_limit)
async def replace_context(
    request: Request,
    session_id: str,
    body: BookingContextSchema,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    wizard = await _load(repo, session_id)
    wizard.replace_context(body.to_entity())
    await repo.save(session_id, wizard)
    return _state(session_id, wizard)


# ── Navigation ────────────────────────────────────────────────────────


@router.post(
    "/{session_id}/next",
    response_model=WizardStateResponse,
    summary="Validate the current step and advance",
    responses={422: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def next_step(
    request: Request,
    session_id: str,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    wizard = await _load(repo, session_id)
    advanced = wizard.next_step()
    await repo.save(session_id, wizard)
    if not advanced:
        return _invalid(f"Step '{wizard.current.id.value}' is not valid", wizard.errors)
    return _state(session_id, wizard)


@router.post(
    "/{session_id}/back",
    response_model=WizardStateResponse,
    summary="Go back one step",
)
@limiter.limit(settings.rate_limit)
async def previous_step(
    request: Request,
    session_id: str,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    wizard = await _load(repo, session_id)
    wizard.previous_step()
    await repo.save(session_id, wizard)
    return _state(session_id, wizard)


@router.post(
    "/{session_id}/steps/{index}",
    response_model=WizardStateResponse,
    summary="Jump to a step",
    description="Moving forward validates every step on the way.",
    responses={422: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def go_to_step(
    request: Request,
    session_id: str,
    index: int,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    wizard = await _load(repo, session_id)
    try:
        moved = wizard.go_to_step(index)
    except UnknownStepError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    await repo.save(session_id, wizard)
    if not moved:
        return _invalid(f"Step '{wizard.current.id.value}' is not valid", wizard.errors)
    return _state(session_id, wizard)


@router.post(
    "/{session_id}/create-mission",
    response_model=WizardStateResponse,
    summary="Turn the draft into a mission for the attached chauffeur",
)
@limiter.limit(settings.rate_limit)
async def create_mission(
    request: Request,
    session_id: str,
    repo: WizardSessionRepository = Depends(get_session_repository),
):
    wizard = await _load(repo, session_id)
    try:
        wizard.create_mission_for_chauffeur()
    except WizardError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    await repo.save(session_id, wizard)
    return _state(session_id, wizard)


# ── Submission ────────────────────────────────────────────────────────


@router.post(
    "/{session_id}/submit",
    response_model=SubmissionResponse,
    summary="Submit the booking",
    description=(
        "Re-validates the whole draft, promotes a ride with an unconflicted "
        "chauffeur into a mission, hands it to the booking service and resets "
        "the wizard. On failure the draft is kept for a retry."
    ),
    responses={
        409: {"description": "Not on the review step."},
        422: {"model": ErrorResponse},
        502: {"description": "Booking service unavailable."},
    },
)
@limiter.limit(settings.rate_limit)
async def submit(
    request: Request,
    session_id: str,
    repo: WizardSessionRepository = Depends(get_session_repository),
    gateway: BookingGateway = Depends(get_booking_gateway),
):
    wizard = await _load(repo, session_id)
    if not wizard.is_last_step:
        raise HTTPException(status_code=409, detail="Submit is only allowed from the review step")

    wizard.assembler = build_assembler(gateway)
    try:
        result = await wizard.submit()
    except DraftValidationError as exc:
        await repo.save(session_id, wizard)
        return _invalid(str(exc), exc.errors)
    except SubmissionRejected as exc:
        return _invalid("Booking rejected by the booking service", {"booking": str(exc)})
    except GatewayUnavailable as exc:
        logger.warning("Submission of session %s failed: %s", session_id, exc)
        raise HTTPException(status_code=502, detail=str(exc))

    await repo.save(session_id, wizard)
    return SubmissionResponse(
        id=result.saved.id,
        kind=result.saved.kind,
        created=result.saved.created,
        promoted=result.promoted,
        record=result.saved.record,
    )
