"""
Submission Assembler
====================

    full re-validation -> mission promotion -> gateway.save -> result

The assembler never touches the caller's draft: promotion works on a copy
and the wizard only resets its draft once ``submit`` returned, i.e. after
the persistence collaborator confirmed the save.  An invalid draft raises
``DraftValidationError`` before promotion runs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from .entities import BookingContext, BookingDraft
from .errors import DraftValidationError
from .promotion import MissionPromotionEngine
from .validation import validate_draft

logger = logging.getLogger(__name__)


@dataclass
class SavedBooking:
    id: str
    kind: str  # "ride" | "mission"
    created: bool
    record: dict[str, Any] = field(default_factory=dict)


@dataclass
class SubmissionResult:
    saved: SavedBooking
    payload: BookingDraft
    promoted: bool


class BookingGateway(ABC):
    """Persistence collaborator: create or update a finalized draft."""

    @abstractmethod
    async def save(self, draft: BookingDraft) -> SavedBooking: ...


class SubmissionAssembler:
    def __init__(
        self,
        gateway: BookingGateway,
        promotion: Optional[MissionPromotionEngine] = None,
    ):
        self.gateway = gateway
        self.promotion = promotion or MissionPromotionEngine()

    async def submit(
        self,
        draft: BookingDraft,
        context: Optional[BookingContext] = None,
        today: Optional[date] = None,
    ) -> SubmissionResult:
        errors = validate_draft(draft)
        if errors:
            raise DraftValidationError(errors, "Draft failed final validation")

        context = context or BookingContext()
        outcome = self.promotion.promote(
            draft, context.existing_missions, context, today=today
        )
        saved = await self.gateway.save(outcome.draft)
        logger.info(
            "Submitted %s %s (promoted=%s)", saved.kind, saved.id, outcome.promoted
        )
        return SubmissionResult(saved=saved, payload=outcome.draft, promoted=outcome.promoted)
