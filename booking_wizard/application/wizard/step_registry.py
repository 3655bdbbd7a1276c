"""Ordered step definitions for the booking wizard."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from booking_wizard.domain.entities.booking_data import BookingData, PaymentMethod, PaymentStatus


class StepId(IntEnum):
    SERVICE_SELECTION = 1
    APPOINTMENT_DETAILS = 2
    ADDITIONAL_DETAILS = 3
    PAYMENT_METHOD = 4
    PAYMENT_PROCESSING = 5
    CONFIRMATION = 6


TOTAL_STEPS = len(StepId)


@dataclass(frozen=True)
class StepContext:
    """Session facts that step rules depend on besides BookingData."""

    stylists_available: bool = False
    reference_loaded: bool = False


@dataclass(frozen=True)
class StepDefinition:
    step_id: StepId
    title: str
    description: str
    requirements: Callable[[StepContext], tuple[str, ...]]
    predicate: Callable[[BookingData, StepContext], bool]

    def required_fields(self, context: StepContext) -> tuple[str, ...]:
        return self.requirements(context)


def _no_requirements(context: StepContext) -> tuple[str, ...]:
    return ()


def _always(data: BookingData, context: StepContext) -> bool:
    return True


def _service_selection_requirements(context: StepContext) -> tuple[str, ...]:
    # With no stylists to choose from, stylist_id is auto-filled with "any"
    if context.stylists_available:
        return ("service_id", "stylist_id")
    return ("service_id",)


def _service_selection_ready(data: BookingData, context: StepContext) -> bool:
    return context.reference_loaded


def _appointment_details_requirements(context: StepContext) -> tuple[str, ...]:
    return ("appointment_date", "time_slot", "client_name", "client_email", "client_phone")


def _payment_method_requirements(context: StepContext) -> tuple[str, ...]:
    return ("payment_method",)


def _payment_processing_ready(data: BookingData, context: StepContext) -> bool:
    if data.payment_method == PaymentMethod.ONLINE:
        return data.payment_status == PaymentStatus.COMPLETED
    return True


_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        step_id=StepId.SERVICE_SELECTION,
        title="Service Selection",
        description="Choose your service and stylist",
        requirements=_service_selection_requirements,
        predicate=_service_selection_ready,
    ),
    StepDefinition(
        step_id=StepId.APPOINTMENT_DETAILS,
        title="Appointment Details",
        description="Select date, time and your info",
        requirements=_appointment_details_requirements,
        predicate=_always,
    ),
    StepDefinition(
        step_id=StepId.ADDITIONAL_DETAILS,
        title="Additional Details",
        description="Special requests and preferences",
        requirements=_no_requirements,
        predicate=_always,
    ),
    StepDefinition(
        step_id=StepId.PAYMENT_METHOD,
        title="Payment Method",
        description="Choose how you'd like to pay",
        requirements=_payment_method_requirements,
        predicate=_always,
    ),
    StepDefinition(
        step_id=StepId.PAYMENT_PROCESSING,
        title="Payment Processing",
        description="Complete your payment",
        requirements=_no_requirements,
        predicate=_payment_processing_ready,
    ),
    StepDefinition(
        step_id=StepId.CONFIRMATION,
        title="Confirmation",
        description="Your booking is confirmed!",
        requirements=_no_requirements,
        predicate=_always,
    ),
)


def steps() -> tuple[StepDefinition, ...]:
    return _STEPS


def get_step(step_id: int) -> StepDefinition:
    return _STEPS[StepId(step_id) - 1]
