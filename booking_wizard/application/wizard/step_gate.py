"""Pure step-completion checks. Safe to call on every render."""

from __future__ import annotations

from booking_wizard.application.wizard.step_registry import StepContext, StepDefinition
from booking_wizard.domain.entities.booking_data import BookingData


def is_present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def missing_fields(step: StepDefinition, data: BookingData, context: StepContext) -> list[str]:
    return [name for name in step.required_fields(context) if not is_present(getattr(data, name))]


def can_proceed(step: StepDefinition, data: BookingData, context: StepContext) -> bool:
    if missing_fields(step, data, context):
        return False
    return step.predicate(data, context)


def is_completed(
    step: StepDefinition,
    current_step: int,
    data: BookingData,
    context: StepContext,
) -> bool:
    """A step behind the current one stays completed; the current one is completed once it can proceed."""
    if step.step_id < current_step:
        return True
    if step.step_id == current_step:
        return can_proceed(step, data, context)
    return False
