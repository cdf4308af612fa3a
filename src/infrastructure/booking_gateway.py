"""
HTTP persistence gateway for finalized bookings.

Routing
-------
* mission mode  -> ``POST /missions``  or ``PUT /missions/{mission.id}``
* ride mode     -> ``POST /rides``     or ``PUT /rides/{draft.id}``

Create vs update is selected by the presence of an id on the record being
edited.  The body is the whole finalized draft (post-promotion).

Failures
--------
* 400 / 422 with an ``errors`` list or ``detail`` -> ``SubmissionRejected``
* any other error status or transport failure   -> ``GatewayUnavailable``
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from src.config import settings
from src.domain.entities import BookingDraft
from src.domain.submission import BookingGateway, SavedBooking
from src.infrastructure.serialization import BookingDraftSchema

logger = logging.getLogger(__name__)


class BookingGatewayError(RuntimeError):
    """Base class for persistence failures; the draft is left untouched."""


class SubmissionRejected(BookingGatewayError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors) or "Submission rejected")
        self.errors = errors


class GatewayUnavailable(BookingGatewayError):
    pass


def _rejection_errors(resp: httpx.Response) -> list[str]:
    try:
        body = resp.json()
    except ValueError:
        return [resp.text] if resp.text else []
    if isinstance(body, dict):
        errors = body.get("errors") or body.get("detail") or []
        if isinstance(errors, str):
            return [errors]
        return [e if isinstance(e, str) else str(e) for e in errors]
    return [str(body)]


def _saved_record(resp: httpx.Response) -> dict[str, Any]:
    """Body of a successful save; the save stands even when it is not JSON."""
    if not resp.content:
        return {}
    try:
        body = resp.json()
    except ValueError:
        logger.warning("Booking service confirmed the save with a non-JSON body")
        return {}
    return body if isinstance(body, dict) else {}


def target_for(draft: BookingDraft) -> tuple[str, str, Optional[str]]:
    """Return ``(kind, method, path)`` for *draft*."""
    if draft.is_mission:
        record_id = draft.mission.id
        kind, collection = "mission", "/missions"
    else:
        record_id = draft.id
        kind, collection = "ride", "/rides"
    if record_id:
        return kind, "PUT", f"{collection}/{record_id}"
    return kind, "POST", collection


class HttpBookingGateway(BookingGateway):
    def __init__(
        self,
        base_url: str = settings.booking_api_url,
        timeout: float = settings.booking_api_timeout_seconds,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def save(self, draft: BookingDraft) -> SavedBooking:
        kind, method, path = target_for(draft)
        payload = BookingDraftSchema.model_validate(draft).model_dump(mode="json")

        try:
            resp = await self.client.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise GatewayUnavailable(f"Booking service unreachable: {exc}") from exc

        if resp.status_code in (400, 422):
            raise SubmissionRejected(_rejection_errors(resp))
        if resp.is_error:
            logger.warning("%s %s returned HTTP %d", method, path, resp.status_code)
            raise GatewayUnavailable(f"Booking service returned HTTP {resp.status_code}")

        record = _saved_record(resp)
        record_id = record.get("id")
        if not record_id and method == "PUT":
            record_id = path.rsplit("/", 1)[-1]
        return SavedBooking(
            id=str(record_id or ""), kind=kind, created=method == "POST", record=record
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
