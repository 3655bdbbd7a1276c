from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    REFERENCE_DATA_LOAD = "reference_data_load"
    PAYMENT_INTENT_CREATION = "payment_intent_creation"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    BOOKING_CONFIRMATION = "booking_confirmation"
    POST_PAYMENT_FINALIZATION = "post_payment_finalization"


class BookingWizardError(Exception):
    """Base exception for all booking wizard errors."""
    pass


class ExternalServiceError(BookingWizardError):
    """Raised by adapters when an external endpoint fails (transport error or non-2xx)."""

    def __init__(self, endpoint: str, detail: str) -> None:
        super().__init__(f"{endpoint}: {detail}")
        self.endpoint = endpoint
        self.detail = detail


class ReferenceDataLoadFailure(BookingWizardError):
    """Raised when the services or stylists list could not be fetched. Safe to retry."""
    pass


class PaymentPreconditionError(BookingWizardError):
    """Raised when a payment operation is attempted in a state that does not allow it."""
    pass


class PaymentIntentCreationFailure(BookingWizardError):
    """Raised when the payment intent could not be created. Nothing was charged."""
    pass


class PaymentRetryNotAllowed(BookingWizardError):
    """Raised when a retry is requested but repeating the payment could double-charge."""
    pass


class BookingConfirmationFailure(BookingWizardError):
    """Raised when an unpaid (cash) booking could not be confirmed. Safe to retry."""
    pass


class PostPaymentFinalizationFailure(BookingWizardError):
    """Raised when payment succeeded but the booking confirmation call failed."""

    def __init__(self, payment_intent_id: str, detail: str) -> None:
        super().__init__(
            f"Payment {payment_intent_id} was processed but the booking could not be confirmed: {detail}"
        )
        self.payment_intent_id = payment_intent_id
        self.detail = detail


class FinalizationInProgressError(BookingWizardError):
    """Raised when finalize is called while another finalize for the same booking is in flight."""
    pass


class FieldValidationError(BookingWizardError):
    """Raised when user input fails field validation. Carries field -> message."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors
