from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from booking_wizard.application.dto.booking_requests import BookingConfirmationRequest


class BookingConfirmationPort(ABC):
    @abstractmethod
    async def confirm_booking(self, request: BookingConfirmationRequest) -> dict[str, Any]:
        """
        Submit the booking. Returns the decoded response body, expected to look
        like {"appointment": {"id": ..., ...}}. Raises ExternalServiceError on failure.
        """
        raise NotImplementedError
