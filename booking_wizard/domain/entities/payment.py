from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class PaymentIntent:
    client_secret: str
    amount: Decimal
    payment_intent_id: str


@dataclass(frozen=True)
class BillingDetails:
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class PaymentOutcome:
    """Provider confirmed the charge."""

    status: str  # "succeeded"
    payment_intent_id: str


@dataclass(frozen=True)
class PaymentDeclined:
    """Provider error object (card declined, authentication failed, ...)."""

    message: str


@dataclass(frozen=True)
class AppointmentConfirmation:
    appointment_id: str
    confirmation_number: str


class FinalizationState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    CONFIRMED = "confirmed"
    FAILED = "failed"  # cash only, safe to retry
    SUPPORT_REQUIRED = "support_required"  # paid but not booked
