from __future__ import annotations

import logging

from booking_wizard.application.dto.booking_requests import BookingConfirmationRequest
from booking_wizard.application.exceptions import (
    BookingConfirmationFailure,
    ExternalServiceError,
    FinalizationInProgressError,
    PaymentPreconditionError,
    PostPaymentFinalizationFailure,
)
from booking_wizard.application.ports.booking_confirmation import BookingConfirmationPort
from booking_wizard.application.utils.time_slots import calculate_end_time
from booking_wizard.application.wizard.booking_store import BookingDataStore
from booking_wizard.domain.entities.booking_data import PaymentMethod, PaymentStatus
from booking_wizard.domain.entities.payment import AppointmentConfirmation, FinalizationState
from booking_wizard.domain.entities.service_catalog import ServiceOffering


class ConfirmationFinalizer:
    """
    Commits the booking with the confirmation endpoint.

    Online bookings arrive here only after the provider reported the charge as
    succeeded; cash bookings arrive straight from the payment-method step.
    """

    def __init__(
        self,
        port: BookingConfirmationPort,
        store: BookingDataStore,
        default_duration_minutes: int = 60,
    ) -> None:
        self._port = port
        self._store = store
        self._default_duration_minutes = default_duration_minutes
        self._state = FinalizationState.IDLE
        self._confirmation: AppointmentConfirmation | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> FinalizationState:
        return self._state

    @property
    def confirmation(self) -> AppointmentConfirmation | None:
        return self._confirmation

    async def finalize(
        self,
        service: ServiceOffering | None,
        payment_intent_id: str | None,
    ) -> AppointmentConfirmation:
        if self._state == FinalizationState.IN_FLIGHT:
            raise FinalizationInProgressError("Booking confirmation is already in progress.")
        if self._confirmation is not None:
            return self._confirmation
        if self._state == FinalizationState.SUPPORT_REQUIRED:
            raise PostPaymentFinalizationFailure(
                self._store.get().payment_intent_id or "", "confirmation previously failed after payment"
            )

        request = self._build_request(service, payment_intent_id)
        data = self._store.get()

        self._state = FinalizationState.IN_FLIGHT
        try:
            response = await self._port.confirm_booking(request)
            confirmation = _parse_confirmation(response)
        except (ExternalServiceError, ValueError) as e:
            if payment_intent_id is not None:
                raise self.require_support(payment_intent_id, str(e)) from e

            self._state = FinalizationState.FAILED
            self._logger.warning("Cash booking confirmation failed", extra={"reason": str(e)})
            raise BookingConfirmationFailure(
                "There was an error creating your appointment. Please try again."
            ) from e

        updates: dict[str, object] = {
            "appointment_id": confirmation.appointment_id,
            "confirmation_number": confirmation.confirmation_number,
        }
        if data.payment_method == PaymentMethod.ONLINE:
            updates["payment_status"] = PaymentStatus.COMPLETED
        self._store.update(**updates)

        self._state = FinalizationState.CONFIRMED
        self._confirmation = confirmation
        self._logger.info(
            "Booking confirmed",
            extra={"payment_intent_id": payment_intent_id, "reason": f"appointment={confirmation.appointment_id}"},
        )
        return confirmation

    def check_ready(self, service: ServiceOffering | None, payment_intent_id: str | None) -> None:
        """Raise PaymentPreconditionError now if finalize would refuse this booking later."""
        self._build_request(service, payment_intent_id)

    def require_support(self, payment_intent_id: str, detail: str) -> PostPaymentFinalizationFailure:
        """Record that money was taken but no appointment exists. Returns the error to raise."""
        self._state = FinalizationState.SUPPORT_REQUIRED
        self._logger.error(
            "Booking confirmation failed after payment",
            extra={"payment_intent_id": payment_intent_id, "reason": detail},
        )
        return PostPaymentFinalizationFailure(payment_intent_id, detail)

    def _build_request(
        self,
        service: ServiceOffering | None,
        payment_intent_id: str | None,
    ) -> BookingConfirmationRequest:
        data = self._store.get()

        if service is None or service.id != data.service_id:
            raise PaymentPreconditionError("Selected service is not available.")
        if data.appointment_date is None or not data.time_slot:
            raise PaymentPreconditionError("Appointment date and time are required.")

        if data.payment_method == PaymentMethod.ONLINE:
            if payment_intent_id is None or payment_intent_id != data.payment_intent_id:
                raise PaymentPreconditionError("Online bookings need a confirmed payment.")
        elif data.payment_method == PaymentMethod.CASH:
            if payment_intent_id is not None:
                raise PaymentPreconditionError("Cash bookings are confirmed without a payment.")
        else:
            raise PaymentPreconditionError("Payment method has not been chosen.")

        duration = service.duration_minutes or self._default_duration_minutes
        return BookingConfirmationRequest(
            payment_intent_id=payment_intent_id,
            service_id=service.id,
            customer_name=data.client_name,
            customer_email=data.client_email,
            customer_phone=data.client_phone,
            appointment_date=data.appointment_date.isoformat(),
            start_time=data.time_slot,
            end_time=calculate_end_time(data.time_slot, duration),
            notes=data.special_requests or "",
        )


def _parse_confirmation(response: dict) -> AppointmentConfirmation:
    appointment = response.get("appointment") if isinstance(response, dict) else None
    if not isinstance(appointment, dict) or appointment.get("id") in (None, ""):
        raise ValueError("Confirmation response did not include an appointment id")
    appointment_id = str(appointment["id"])
    return AppointmentConfirmation(
        appointment_id=appointment_id,
        confirmation_number=str(appointment.get("confirmationNumber") or appointment_id),
    )
