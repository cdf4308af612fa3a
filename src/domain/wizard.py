"""
Booking wizard state machine.

Holds one ``BookingDraft``, the current step index and field-level error
state.  The step list is never stored: ``steps`` derives it from
``draft.is_mission`` on every read and the index is clamped whenever the
topology shrinks.

Navigation rules
----------------
* ``next_step``      -- validates the current step; advances only on success.
* ``previous_step``  -- never validates.
* ``go_to_step``     -- backwards freely, forwards only through valid steps;
  a failed forward jump leaves the index where it started.
* ``submit``         -- delegates to the ``SubmissionAssembler``; the draft is
  reset only after a confirmed save.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import fields, is_dataclass
from datetime import date, timedelta
from typing import Any, Callable, Optional

from .entities import BookingContext, BookingDraft
from .enums import StepId
from .errors import DraftValidationError, UnknownStepError, WizardError
from .promotion import create_mission_for_chauffeur
from .steps import StepDescriptor, clamp_step_index, find_step, resolve_steps
from .submission import SubmissionAssembler, SubmissionResult
from .validation import ErrorMap, owns, validate_step

logger = logging.getLogger(__name__)


class BookingWizard:
    def __init__(
        self,
        initial: Optional[BookingDraft] = None,
        context: Optional[BookingContext] = None,
        *,
        draft: Optional[BookingDraft] = None,
        current_step: int = 0,
        errors: Optional[ErrorMap] = None,
        assembler: Optional[SubmissionAssembler] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.initial = copy.deepcopy(initial) if initial is not None else BookingDraft()
        self.draft = copy.deepcopy(draft) if draft is not None else copy.deepcopy(self.initial)
        self.context = context or BookingContext()
        self.errors: ErrorMap = dict(errors or {})
        self.assembler = assembler
        self.clock = clock
        self._current_step = clamp_step_index(current_step, self.steps)

    # ── Topology ──────────────────────────────────────────────────

    @property
    def steps(self) -> tuple[StepDescriptor, ...]:
        return resolve_steps(self.draft.is_mission)

    @property
    def current_step(self) -> int:
        return clamp_step_index(self._current_step, self.steps)

    @property
    def current(self) -> StepDescriptor:
        return self.steps[self.current_step]

    @property
    def is_last_step(self) -> bool:
        return self.current_step == len(self.steps) - 1

    def _step(self, step_id: StepId | str) -> StepDescriptor:
        index = find_step(self.steps, step_id)
        if index < 0:
            raise UnknownStepError(step_id)
        return self.steps[index]

    # ── Draft mutation ────────────────────────────────────────────

    def set_is_mission(self, value: bool) -> None:
        self.draft.is_mission = bool(value)
        if value:
            mission = self.draft.mission
            today = self.clock()
            if mission.start_date is None:
                mission.start_date = today
            if mission.end_date is None:
                mission.end_date = today + timedelta(days=1)
        self._current_step = clamp_step_index(self._current_step, self.steps)
        self._drop_inert_errors()

    def set_use_existing_passenger(self, value: bool) -> None:
        # both branches stay in the draft; only the flag flips
        self.draft.use_existing_passenger = bool(value)
        self._clear_errors(("passenger_id", "passenger_info"))

    def update(self, **changes: Any) -> None:
        """Apply field changes; nested dicts are merged into sub-records."""
        if "use_existing_passenger" in changes:
            self.set_use_existing_passenger(changes.pop("use_existing_passenger"))
        is_mission = changes.pop("is_mission", None)
        _merge(self.draft, changes)
        if is_mission is not None:
            self.set_is_mission(is_mission)

    def replace_context(self, context: BookingContext) -> None:
        self.context = context

    # ── Validation ────────────────────────────────────────────────

    def validate(self, step_id: StepId | str) -> bool:
        step = self._step(step_id)
        if step.id == StepId.REVIEW:
            return True
        found = validate_step(self.draft, step)
        self._clear_errors(step.required_fields)
        self.errors.update(found)
        return not found

    def _clear_errors(self, owned: tuple[str, ...]) -> None:
        self.errors = {k: v for k, v in self.errors.items() if not owns(k, owned)}

    def _drop_inert_errors(self) -> None:
        live = tuple(f for step in self.steps for f in step.required_fields)
        self.errors = {k: v for k, v in self.errors.items() if owns(k, live)}

    # ── Navigation ────────────────────────────────────────────────

    def next_step(self) -> bool:
        if not self.validate(self.current.id):
            logger.debug("Step %s failed validation: %s", self.current.id, self.errors)
            return False
        self._current_step = clamp_step_index(self.current_step + 1, self.steps)
        return True

    def previous_step(self) -> None:
        self._current_step = clamp_step_index(self.current_step - 1, self.steps)

    def go_to_step(self, index: int) -> bool:
        if index < 0 or index >= len(self.steps):
            raise UnknownStepError(index)
        start = self.current_step
        while self.current_step < index:
            if not self.next_step():
                self._current_step = start
                return False
        self._current_step = index
        return True

    def create_mission_for_chauffeur(self) -> None:
        if self.draft.is_mission:
            raise WizardError("Draft is already a mission")
        if not self.draft.attached_chauffeur_id:
            raise WizardError("No chauffeur attached to the draft")
        create_mission_for_chauffeur(self.draft, self.context, today=self.clock())
        self._drop_inert_errors()
        mission_index = find_step(self.steps, StepId.MISSION)
        if self.current_step < mission_index:
            self._current_step = mission_index

    # ── Submission ────────────────────────────────────────────────

    async def submit(self) -> SubmissionResult:
        if self.assembler is None:
            raise WizardError("Wizard has no submission assembler")
        try:
            result = await self.assembler.submit(
                self.draft, self.context, today=self.clock()
            )
        except DraftValidationError as exc:
            self.errors = dict(exc.errors)
            raise
        self.reset()
        return result

    def reset(self) -> None:
        self.draft = copy.deepcopy(self.initial)
        self._current_step = 0
        self.errors = {}


def _merge(target: Any, changes: dict[str, Any]) -> None:
    names = {f.name for f in fields(target)}
    for key, value in changes.items():
        if key not in names:
            raise WizardError(f"Unknown draft field: {key}")
        current = getattr(target, key)
        if isinstance(value, dict) and is_dataclass(current):
            _merge(current, value)
        else:
            setattr(target, key, value)
