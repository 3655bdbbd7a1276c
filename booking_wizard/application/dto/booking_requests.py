from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PaymentIntentRequest:
    client_id: str
    service_id: str
    customer_email: str
    customer_name: str
    tip_percentage: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "clientId": self.client_id,
            "serviceId": self.service_id,
            "customerEmail": self.customer_email,
            "customerName": self.customer_name,
            "tipPercentage": self.tip_percentage,
        }


@dataclass(frozen=True)
class BookingConfirmationRequest:
    payment_intent_id: str | None  # None for cash bookings
    service_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    appointment_date: str  # YYYY-MM-DD
    start_time: str
    end_time: str  # HH:MM, 24h
    notes: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "paymentIntentId": self.payment_intent_id,
            "serviceId": self.service_id,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "appointmentDate": self.appointment_date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "notes": self.notes,
        }
