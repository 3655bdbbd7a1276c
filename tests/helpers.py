from __future__ import annotations

from datetime import date, timedelta

from booking_wizard.application.use_cases.booking_session import BookingSession
from booking_wizard.application.wizard.step_registry import StepContext
from booking_wizard.domain.entities.booking_data import PaymentMethod

LOADED = StepContext(stylists_available=True, reference_loaded=True)

NEXT_WEEK = date.today() + timedelta(days=7)

ALL_VALUES = {
    "service_id": "svc1",
    "stylist_id": "sty1",
    "appointment_date": NEXT_WEEK,
    "time_slot": "9:00 AM",
    "client_name": "Ada Lovelace",
    "client_email": "ada@example.com",
    "client_phone": "5551234567",
    "payment_method": PaymentMethod.ONLINE,
}


def fill_through_details(session: BookingSession) -> None:
    """Walk a started session from step 1 to step 4 with valid data."""
    session.select_service("svc1")
    session.select_stylist("sty1")
    assert session.next()
    session.update_details(
        appointment_date=NEXT_WEEK,
        time_slot="10:30 AM",
        client_name="Ada Lovelace",
        client_email="ada@example.com",
        client_phone="5551234567",
    )
    assert session.next()
    session.update_preferences(special_requests="Window seat", how_heard_about_us="friend")
    assert session.next()
    assert session.controller.current_step == 4
