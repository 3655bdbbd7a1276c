"""
Field rules for the appointment-details and preferences forms.

These check the shape of user input. Whether a step may be left is a separate
question answered by the step gate, which only checks presence.
"""
from __future__ import annotations

import re
from datetime import date

from booking_wizard.application.utils.time_slots import DEFAULT_TIME_SLOTS

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_NAME_LENGTH = 2
MIN_PHONE_LENGTH = 10

HOW_HEARD_OPTIONS: dict[str, str] = {
    "google": "Google Search",
    "social": "Social Media",
    "friend": "Friend/Family Referral",
    "website": "Your Website",
    "advertisement": "Advertisement",
    "walk_by": "Walked By Location",
    "previous_client": "Previous Client",
    "other": "Other",
}


def validate_client_name(value: str) -> str | None:
    if len(value.strip()) < MIN_NAME_LENGTH:
        return f"Name must be at least {MIN_NAME_LENGTH} characters"
    return None


def validate_client_email(value: str) -> str | None:
    if not EMAIL_PATTERN.match(value.strip()):
        return "Please enter a valid email address"
    return None


def validate_client_phone(value: str) -> str | None:
    if len(value.strip()) < MIN_PHONE_LENGTH:
        return "Please enter a valid phone number"
    return None


def validate_appointment_date(value: date, today: date) -> str | None:
    if value < today:
        return "Please select a date from today onwards"
    return None


def validate_time_slot(value: str, offered: tuple[str, ...] = DEFAULT_TIME_SLOTS) -> str | None:
    if value not in offered:
        return "Please select a time slot"
    return None


def validate_appointment_details(
    *,
    today: date,
    appointment_date: date | None = None,
    time_slot: str | None = None,
    client_name: str | None = None,
    client_email: str | None = None,
    client_phone: str | None = None,
    offered_slots: tuple[str, ...] = DEFAULT_TIME_SLOTS,
) -> dict[str, str]:
    """
    Validate the fields that were supplied and return field -> message for each
    failure. Fields passed as None are not being changed and are skipped; empty
    strings clear a field and are allowed through.
    """
    errors: dict[str, str] = {}

    checks = (
        ("appointment_date", appointment_date, lambda v: validate_appointment_date(v, today)),
        ("time_slot", time_slot, lambda v: validate_time_slot(v, offered_slots)),
        ("client_name", client_name, validate_client_name),
        ("client_email", client_email, validate_client_email),
        ("client_phone", client_phone, validate_client_phone),
    )
    for field_name, value, check in checks:
        if value is None or value == "":
            continue
        message = check(value)
        if message:
            errors[field_name] = message

    return errors


def validate_how_heard(value: str) -> str | None:
    if value and value not in HOW_HEARD_OPTIONS:
        return "Unknown option"
    return None
