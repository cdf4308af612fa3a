"""
Debounced Plate Lookup
======================

Feeds the plate-entry field of a ``VehicleDraft`` from the registration
lookup service.

Ordering
--------
* Every ``update`` bumps a generation counter and cancels the pending task.
* A task sleeps for the debounce window, then runs the lookup.
* A result is applied only if its generation is still the latest, so a slow
  response for a superseded plate can never overwrite fresher input
  (last-write-wins by request recency, not by arrival order).

Foreign plates and strings that do not match the local format skip the
lookup entirely.

``PlateFieldRegistry`` keeps one adapter per live plate field for the HTTP
API (``/vehicles/plate-fields``).
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Callable, Optional, Protocol

from src.config import settings
from src.domain.entities import VehicleDraft
from src.domain.enums import LookupStatus
from src.domain.plates import is_local_plate
from src.infrastructure.registration_client import LookupOutcome

logger = logging.getLogger(__name__)


class LookupService(Protocol):
    async def lookup(self, plate: str) -> LookupOutcome: ...


class PlateLookupAdapter:
    def __init__(
        self,
        service: LookupService,
        vehicle: Optional[VehicleDraft] = None,
        debounce_seconds: float = settings.plate_lookup_debounce_seconds,
        on_result: Optional[Callable[[LookupOutcome], None]] = None,
    ):
        self.service = service
        self.vehicle = vehicle or VehicleDraft()
        self.debounce_seconds = debounce_seconds
        self.on_result = on_result
        self._generation = 0
        self._task: asyncio.Task | None = None

    # ── Public API ────────────────────────────────────────────────

    @property
    def generation(self) -> int:
        return self._generation

    def update(self, plate: str, is_local: Optional[bool] = None) -> None:
        """Record new plate input and (re)schedule a debounced lookup."""
        if is_local is not None:
            self.vehicle.is_local_plate = is_local
        self.vehicle.license_plate = plate
        self._generation += 1
        self._cancel_pending()

        if not self.vehicle.is_local_plate or not is_local_plate(plate):
            self.vehicle.lookup_status = LookupStatus.SKIPPED
            self.vehicle.lookup_message = None
            return

        self.vehicle.lookup_status = LookupStatus.PENDING
        self.vehicle.lookup_message = None
        self._task = asyncio.create_task(self._run(self._generation, plate))

    async def wait(self) -> None:
        """Wait for the pending lookup, if any, to finish or be cancelled."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def aclose(self) -> None:
        self._generation += 1
        self._cancel_pending()
        await self.wait()

    # ── Internals ─────────────────────────────────────────────────

    def _cancel_pending(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()

    async def _run(self, generation: int, plate: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        if generation != self._generation:
            return
        try:
            outcome = await self.service.lookup(plate)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Unhandled error looking up plate %s", plate)
            outcome = LookupOutcome(
                LookupStatus.ERROR, plate, message="Failed to fetch vehicle data"
            )

        if generation != self._generation:
            logger.debug("Discarding stale lookup result for %s", plate)
            return
        self._apply(outcome)

    def _apply(self, outcome: LookupOutcome) -> None:
        if outcome.status == LookupStatus.FOUND and outcome.vehicle is not None:
            self.vehicle.apply(outcome.vehicle)
        self.vehicle.lookup_status = outcome.status
        self.vehicle.lookup_message = outcome.message or None
        if self.on_result:
            self.on_result(outcome)


# ── Live plate fields ─────────────────────────────────────────────────


class PlateFieldRegistry:
    """In-process plate fields, one debounced adapter each.

    Adapters own pending asyncio tasks, so they live in this process only;
    the app closes every field on shutdown.
    """

    def __init__(
        self, debounce_seconds: float = settings.plate_lookup_debounce_seconds
    ):
        self.debounce_seconds = debounce_seconds
        self._fields: dict[str, PlateLookupAdapter] = {}

    def __len__(self) -> int:
        return len(self._fields)

    def open(self, service: LookupService) -> tuple[str, PlateLookupAdapter]:
        field_id = uuid.uuid4().hex
        adapter = PlateLookupAdapter(service, debounce_seconds=self.debounce_seconds)
        self._fields[field_id] = adapter
        return field_id, adapter

    def get(self, field_id: str) -> Optional[PlateLookupAdapter]:
        return self._fields.get(field_id)

    async def close(self, field_id: str) -> bool:
        adapter = self._fields.pop(field_id, None)
        if adapter is None:
            return False
        await adapter.aclose()
        return True

    async def close_all(self) -> None:
        fields, self._fields = self._fields, {}
        for adapter in fields.values():
            await adapter.aclose()
        if fields:
            logger.info("Closed %d plate lookup field(s)", len(fields))


plate_fields = PlateFieldRegistry()
