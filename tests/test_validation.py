"""
Tests for field validation and time-slot helpers.
"""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal

import pytest

from booking_wizard.application.exceptions import FieldValidationError
from booking_wizard.application.utils.time_slots import (
    DEFAULT_TIME_SLOTS,
    calculate_end_time,
    format_time_12h,
    parse_time_slot,
)
from booking_wizard.application.utils.validation import validate_appointment_details, validate_how_heard
from booking_wizard.domain.entities.service_catalog import ReferenceData, ServiceOffering, parse_price
from tests.helpers import NEXT_WEEK


TODAY = date(2026, 3, 10)


def test_valid_details_have_no_errors():
    errors = validate_appointment_details(
        today=TODAY,
        appointment_date=TODAY,
        time_slot="9:00 AM",
        client_name="Al",
        client_email="al@example.com",
        client_phone="555 123 4567",
    )
    assert errors == {}


def test_invalid_details_report_each_field():
    errors = validate_appointment_details(
        today=TODAY,
        appointment_date=TODAY - timedelta(days=1),
        time_slot="8:00 AM",
        client_name="A",
        client_email="not-an-email",
        client_phone="555",
    )
    assert set(errors) == {"appointment_date", "time_slot", "client_name", "client_email", "client_phone"}
    assert errors["client_email"] == "Please enter a valid email address"


def test_omitted_and_cleared_fields_are_skipped():
    assert validate_appointment_details(today=TODAY, client_name="", client_email=None) == {}


def test_how_heard_options():
    assert validate_how_heard("") is None
    assert validate_how_heard("google") is None
    assert validate_how_heard("carrier pigeon") == "Unknown option"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("9:00 AM", time(9, 0)),
        ("12:30 PM", time(12, 30)),
        ("12:00 AM", time(0, 0)),
        ("5:30 pm", time(17, 30)),
        ("09:30", time(9, 30)),
        ("23:15", time(23, 15)),
    ],
)
def test_parse_time_slot(value, expected):
    assert parse_time_slot(value) == expected


@pytest.mark.parametrize("value", ["", "noon", "13:00 PM", "25:00", "9:75"])
def test_parse_time_slot_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_time_slot(value)


def test_calculate_end_time():
    assert calculate_end_time("9:30 AM", 60) == "10:30"
    assert calculate_end_time("5:30 PM", 45) == "18:15"
    assert calculate_end_time("23:30", 90) == "01:00"


def test_format_time_12h():
    assert format_time_12h("13:00") == "1:00 PM"
    assert format_time_12h("00:05") == "12:05 AM"
    assert format_time_12h("9:00 AM") == "9:00 AM"
    assert format_time_12h("") == ""


def test_default_slots_cover_business_hours():
    assert DEFAULT_TIME_SLOTS[0] == "9:00 AM"
    assert DEFAULT_TIME_SLOTS[-1] == "5:30 PM"
    assert len(DEFAULT_TIME_SLOTS) == 18


@pytest.mark.parametrize(
    "raw,expected",
    [(45, Decimal("45")), ("$45.00", Decimal("45.00")), ("from $1,200", Decimal("1200")), (None, Decimal("0")), ("call us", Decimal("0"))],
)
def test_parse_price(raw, expected):
    assert parse_price(raw) == expected


def test_reference_data_categories_and_lookup():
    reference = ReferenceData(
        services=(
            ServiceOffering(id="a", name="Cut", price=Decimal("10"), duration_minutes=30, category="hair"),
            ServiceOffering(id="b", name="Tint", price=Decimal("20"), duration_minutes=30, category="color"),
            ServiceOffering(id="c", name="Trim", price=Decimal("5"), duration_minutes=15, category="hair"),
        ),
        loaded=True,
    )
    assert reference.categories() == ["all", "hair", "color"]
    assert [s.id for s in reference.services_in_category("hair")] == ["a", "c"]
    assert reference.find_service("b").name == "Tint"
    assert reference.find_service(None) is None
    assert reference.find_stylist("nobody") is None


@pytest.mark.asyncio
async def test_session_rejects_invalid_details_without_writing(session):
    session.select_service("svc1")
    session.select_stylist("sty1")
    session.next()

    with pytest.raises(FieldValidationError) as exc:
        session.update_details(client_email="nope", client_name="Ada Lovelace")

    assert "client_email" in exc.value.errors
    assert session.data.client_name == ""


@pytest.mark.asyncio
async def test_changing_date_clears_time_slot(session):
    session.update_details(appointment_date=NEXT_WEEK, time_slot="9:00 AM")
    session.update_details(appointment_date=NEXT_WEEK + timedelta(days=1))

    assert session.data.time_slot is None


@pytest.mark.asyncio
async def test_unknown_service_is_rejected(session):
    with pytest.raises(FieldValidationError):
        session.select_service("svc-missing")
    assert session.data.service_id is None
