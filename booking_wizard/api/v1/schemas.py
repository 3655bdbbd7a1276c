from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from booking_wizard.domain.entities.booking_data import BookingData, PaymentMethod, PaymentStatus


class BookingDataSchema(BaseModel):
    service_id: str | None = None
    stylist_id: str | None = None
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
    appointment_id: str | None = None
    confirmation_number: str | None = None

    @classmethod
    def from_entity(cls, data: BookingData) -> "BookingDataSchema":
        return cls(**asdict(data))


class StepStatusSchema(BaseModel):
    step_id: int
    title: str
    description: str
    active: bool
    completed: bool
    accessible: bool


class StepErrorSchema(BaseModel):
    kind: str
    message: str
    retryable: bool
    action: str
    reference: str | None = None


class SessionSnapshotSchema(BaseModel):
    session_id: str
    current_step: int
    progress_percentage: int
    effective_total_steps: int
    can_proceed: bool
    missing_fields: list[str] = Field(default_factory=list)
    terminal: bool
    steps: list[StepStatusSchema]
    data: BookingDataSchema
    summary: dict[str, Any] = Field(default_factory=dict)
    finalization_state: str
    error: StepErrorSchema | None = None
    moved: bool | None = None

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any], moved: bool | None = None) -> "SessionSnapshotSchema":
        payload = dict(snapshot)
        payload["data"] = BookingDataSchema.from_entity(snapshot["data"])
        return cls(**payload, moved=moved)


class ServiceSelectionRequest(BaseModel):
    service_id: str


class StylistSelectionRequest(BaseModel):
    stylist_id: str


class AppointmentDetailsRequest(BaseModel):
    appointment_date: date | None = None
    time_slot: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None


class PreferencesRequest(BaseModel):
    special_requests: str | None = None
    how_heard_about_us: str | None = None
    email_confirmation: bool | None = None
    sms_confirmation: bool | None = None


class PaymentMethodRequest(BaseModel):
    payment_method: PaymentMethod


class PaymentIntentSchema(BaseModel):
    client_secret: str
    amount: str
    payment_intent_id: str


class PaymentConfirmRequest(BaseModel):
    payment_method_token: str = Field(min_length=1)
