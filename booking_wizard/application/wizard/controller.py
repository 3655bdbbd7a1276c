from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from booking_wizard.application.wizard import step_gate
from booking_wizard.application.wizard.booking_store import BookingDataStore
from booking_wizard.application.wizard.step_registry import (
    TOTAL_STEPS,
    StepContext,
    StepDefinition,
    StepId,
    get_step,
    steps,
)
from booking_wizard.domain.entities.booking_data import BookingData, PaymentMethod


class ProgressMode(str, Enum):
    FIXED = "fixed"  # current_step / TOTAL_STEPS, ignores the cash short path
    EFFECTIVE = "effective"  # position on the path actually walked


@dataclass(frozen=True)
class StepStatus:
    step_id: int
    title: str
    description: str
    active: bool
    completed: bool
    accessible: bool


class WizardController:
    """
    Owns current_step and gates navigation on the step rules.

    Blocked navigation is a silent no-op, never an error: the UI is expected to
    disable the control, but the guard holds regardless.
    """

    def __init__(
        self,
        store: BookingDataStore,
        context_provider: Callable[[], StepContext],
        progress_mode: ProgressMode = ProgressMode.FIXED,
    ) -> None:
        self._store = store
        self._context_provider = context_provider
        self._progress_mode = progress_mode
        self._current_step = int(StepId.SERVICE_SELECTION)
        self._last_gate: bool | None = None
        self._logger = logging.getLogger(__name__)
        store.subscribe(self._on_data_changed)

    @property
    def current_step(self) -> int:
        return self._current_step

    def current_definition(self) -> StepDefinition:
        return get_step(self._current_step)

    def can_proceed(self) -> bool:
        return step_gate.can_proceed(self.current_definition(), self._store.get(), self._context_provider())

    def missing_fields(self) -> list[str]:
        return step_gate.missing_fields(self.current_definition(), self._store.get(), self._context_provider())

    def is_completed(self, step_id: int) -> bool:
        if not 1 <= step_id <= TOTAL_STEPS:
            return False
        return step_gate.is_completed(
            get_step(step_id), self._current_step, self._store.get(), self._context_provider()
        )

    def steps_ready_before(self, step_id: int) -> bool:
        """Every on-path step before step_id passes its gate with the data as it is now."""
        data, context = self._store.get(), self._context_provider()
        return all(
            step_gate.can_proceed(get_step(s), data, context) for s in self.effective_steps() if s < step_id
        )

    def is_terminal(self) -> bool:
        return self._store.get().is_confirmed

    def effective_steps(self) -> tuple[int, ...]:
        if self._store.get().payment_method == PaymentMethod.CASH:
            return tuple(int(s.step_id) for s in steps() if s.step_id != StepId.PAYMENT_PROCESSING)
        return tuple(int(s.step_id) for s in steps())

    def effective_total_steps(self) -> int:
        return len(self.effective_steps())

    def next(self) -> bool:
        if self._current_step >= TOTAL_STEPS or not self.can_proceed():
            return False

        target = self._current_step + 1
        if target not in self.effective_steps():
            # Cash bookings skip the online payment step
            target += 1
        self._move_to(target, "next")
        return True

    def previous(self) -> bool:
        if self._current_step <= 1 or self.is_terminal():
            return False

        target = self._current_step - 1
        if target not in self.effective_steps():
            target -= 1
        self._move_to(target, "previous")
        return True

    def jump_to(self, step_id: int) -> bool:
        if not 1 <= step_id <= TOTAL_STEPS or step_id not in self.effective_steps():
            return False
        if self.is_terminal() and step_id != self._current_step:
            return False

        allowed = step_id <= self._current_step or all(
            self.is_completed(s) for s in range(1, step_id) if s in self.effective_steps()
        )
        if not allowed:
            self._logger.debug("Jump rejected", extra={"step": step_id, "reason": "incomplete_steps"})
            return False

        self._move_to(step_id, "jump")
        return True

    def progress_percentage(self) -> int:
        if self._progress_mode == ProgressMode.EFFECTIVE:
            path = self.effective_steps()
            position = path.index(self._current_step) + 1 if self._current_step in path else self._current_step
            return round(position / len(path) * 100)
        return round(self._current_step / TOTAL_STEPS * 100)

    def step_statuses(self) -> list[StepStatus]:
        statuses: list[StepStatus] = []
        for step in steps():
            statuses.append(
                StepStatus(
                    step_id=int(step.step_id),
                    title=step.title,
                    description=step.description,
                    active=step.step_id == self._current_step,
                    completed=self.is_completed(step.step_id),
                    accessible=step.step_id <= self._current_step or self.is_completed(step.step_id - 1),
                )
            )
        return statuses

    def _move_to(self, step_id: int, reason: str) -> None:
        self._logger.info(
            "Wizard step changed",
            extra={"step": step_id, "reason": f"{reason} from {self._current_step}"},
        )
        self._current_step = step_id
        self._last_gate = None

    def _on_data_changed(self, data: BookingData) -> None:
        gate = step_gate.can_proceed(self.current_definition(), data, self._context_provider())
        if gate != self._last_gate:
            self._logger.debug("Step gate re-evaluated", extra={"step": self._current_step, "reason": f"can_proceed={gate}"})
        self._last_gate = gate
