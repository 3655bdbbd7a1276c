from __future__ import annotations

import logging
from typing import Any

from booking_wizard.application.dto.booking_requests import BookingConfirmationRequest
from booking_wizard.application.exceptions import ExternalServiceError
from booking_wizard.application.ports.booking_confirmation import BookingConfirmationPort


class MockBookingConfirmation(BookingConfirmationPort):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.requests: list[BookingConfirmationRequest] = []
        self._confirmed = 0
        self._logger = logging.getLogger(__name__)

    async def confirm_booking(self, request: BookingConfirmationRequest) -> dict[str, Any]:
        self.requests.append(request)
        if self.fail:
            raise ExternalServiceError("booking-confirm", "mock outage")

        self._confirmed += 1
        appointment_id = self._confirmed
        self._logger.info("Mock booking confirmed", extra={"payment_intent_id": request.payment_intent_id})
        return {
            "appointment": {
                "id": appointment_id,
                "startTime": request.start_time,
                "endTime": request.end_time,
                "status": "confirmed" if request.payment_intent_id else "pending_payment",
            }
        }
