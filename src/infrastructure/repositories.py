"""
Repository Pattern -- wizard sessions stored in Redis.

One key per session (``wizard:{session_id}``) holding a JSON document with
the live draft, the initial draft (what ``reset`` returns to), the
reference context snapshot, the current step index and the error state.
Keys expire after ``session_ttl_seconds`` of inactivity; every save
refreshes the TTL.
"""

from __future__ import annotations

import uuid
from typing import Optional

import redis.asyncio as aioredis
from pydantic import BaseModel, Field

from src.config import settings
from src.domain.wizard import BookingWizard
from src.infrastructure.serialization import BookingContextSchema, BookingDraftSchema


class WizardSessionRecord(BaseModel):
    draft: BookingDraftSchema
    initial: BookingDraftSchema
    context: BookingContextSchema = Field(default_factory=BookingContextSchema)
    current_step: int = 0
    errors: dict[str, str] = {}

    @classmethod
    def from_wizard(cls, wizard: BookingWizard) -> "WizardSessionRecord":
        return cls(
            draft=BookingDraftSchema.model_validate(wizard.draft),
            initial=BookingDraftSchema.model_validate(wizard.initial),
            context=BookingContextSchema.model_validate(wizard.context),
            current_step=wizard.current_step,
            errors=wizard.errors,
        )

    def to_wizard(self) -> BookingWizard:
        return BookingWizard(
            initial=self.initial.to_entity(),
            context=self.context.to_entity(),
            draft=self.draft.to_entity(),
            current_step=self.current_step,
            errors=self.errors,
        )


class WizardSessionRepository:
    def __init__(
        self, client: aioredis.Redis, ttl_seconds: int = settings.session_ttl_seconds
    ):
        self.redis = client
        self.ttl = ttl_seconds

    @staticmethod
    def _key(session_id: str) -> str:
        return f"wizard:{session_id}"

    async def create(self, wizard: BookingWizard) -> str:
        session_id = uuid.uuid4().hex
        await self.save(session_id, wizard)
        return session_id

    async def get(self, session_id: str) -> Optional[BookingWizard]:
        raw = await self.redis.get(self._key(session_id))
        if raw is None:
            return None
        return WizardSessionRecord.model_validate_json(raw).to_wizard()

    async def save(self, session_id: str, wizard: BookingWizard) -> None:
        record = WizardSessionRecord.from_wizard(wizard)
        await self.redis.set(self._key(session_id), record.model_dump_json(), ex=self.ttl)

    async def delete(self, session_id: str) -> bool:
        return bool(await self.redis.delete(self._key(session_id)))
