from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum

ANY_STYLIST = "any"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    ONLINE = "ONLINE"


class PaymentStatus(str, Enum):
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class BookingData:
    service_id: str | None = None
    stylist_id: str | None = None  # ANY_STYLIST means no preference
    appointment_date: date | None = None
    time_slot: str | None = None
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    special_requests: str = ""
    how_heard_about_us: str = ""
    email_confirmation: bool = True
    sms_confirmation: bool = False
    payment_method: PaymentMethod | None = None
    payment_intent_id: str | None = None
    payment_status: PaymentStatus | None = None
    # Set only once the confirmation endpoint accepted the booking
    appointment_id: str | None = None
    confirmation_number: str | None = None

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    @property
    def is_confirmed(self) -> bool:
        return self.appointment_id is not None
