"""
Tests for the online/cash payment flows through a full booking session.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import pytest

from booking_wizard.application.dto.booking_requests import BookingConfirmationRequest, PaymentIntentRequest
from booking_wizard.application.exceptions import (
    ErrorKind,
    ExternalServiceError,
    FinalizationInProgressError,
    PaymentPreconditionError,
    PaymentRetryNotAllowed,
)
from booking_wizard.application.ports.booking_confirmation import BookingConfirmationPort
from booking_wizard.application.ports.payments import PaymentConfirmationPort, PaymentIntentPort
from booking_wizard.domain.entities.booking_data import ANY_STYLIST, PaymentMethod, PaymentStatus
from booking_wizard.domain.entities.payment import (
    BillingDetails,
    FinalizationState,
    PaymentDeclined,
    PaymentIntent,
    PaymentOutcome,
)
from booking_wizard.infrastructure.mock.mock_payments import DECLINE_TOKEN
from booking_wizard.infrastructure.mock.mock_reference_data import MockReferenceData
from booking_wizard.wiring.dependencies import build_booking_session
from tests.helpers import fill_through_details


class FakeIntents(PaymentIntentPort):
    def __init__(self) -> None:
        self.requests: list[PaymentIntentRequest] = []

    async def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntent:
        self.requests.append(request)
        return PaymentIntent(client_secret="sec_1", amount=Decimal("45.00"), payment_intent_id="pi_1")


class FakeProvider(PaymentConfirmationPort):
    def __init__(self) -> None:
        self.secrets: list[str] = []

    async def confirm_card_payment(
        self, client_secret: str, payment_method_token: str, billing: BillingDetails
    ) -> PaymentOutcome | PaymentDeclined:
        self.secrets.append(client_secret)
        return PaymentOutcome(status="succeeded", payment_intent_id="pi_1")


class FakeBookingEndpoint(BookingConfirmationPort):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.requests: list[BookingConfirmationRequest] = []

    async def confirm_booking(self, request: BookingConfirmationRequest) -> dict[str, Any]:
        self.requests.append(request)
        if self.fail:
            raise ExternalServiceError("booking-confirm", "HTTP 500")
        return {"appointment": {"id": 42}}


class SlowBookingEndpoint(BookingConfirmationPort):
    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.calls = 0

    async def confirm_booking(self, request: BookingConfirmationRequest) -> dict[str, Any]:
        self.calls += 1
        await self.release.wait()
        return {"appointment": {"id": 7}}


async def _scenario_session(booking_endpoint: BookingConfirmationPort):
    intents, provider = FakeIntents(), FakeProvider()
    session = build_booking_session(
        reference_port=MockReferenceData(),
        intent_port=intents,
        confirmation_port=provider,
        booking_port=booking_endpoint,
    )
    await session.start()
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    assert session.next()
    assert session.controller.current_step == 5
    return session, intents, provider


@pytest.mark.asyncio
async def test_online_payment_happy_path():
    endpoint = FakeBookingEndpoint()
    session, intents, provider = await _scenario_session(endpoint)

    await session.prepare_payment()
    assert session.bridge.intent.client_secret == "sec_1"
    assert session.data.payment_intent_id == "pi_1"

    result = await session.submit_payment("tok_visa")

    assert isinstance(result, PaymentOutcome)
    assert provider.secrets == ["sec_1"]
    assert session.data.payment_status == PaymentStatus.COMPLETED
    assert session.data.appointment_id == "42"
    assert session.data.confirmation_number == "42"
    assert endpoint.requests[0].payment_intent_id == "pi_1"
    assert endpoint.requests[0].end_time == "11:30"
    assert session.error is None

    assert session.next()
    assert session.controller.current_step == 6
    assert session.controller.is_terminal()


@pytest.mark.asyncio
async def test_confirmation_failure_after_payment_requires_support():
    session, _, _ = await _scenario_session(FakeBookingEndpoint(fail=True))
    await session.prepare_payment()

    result = await session.submit_payment("tok_visa")

    assert result is None
    error = session.error
    assert error.kind == ErrorKind.POST_PAYMENT_FINALIZATION
    assert error.retryable is False
    assert error.action == "contact_support"
    assert error.reference == "pi_1"
    assert session.finalization_state == FinalizationState.SUPPORT_REQUIRED

    data = session.data
    assert data.payment_intent_id == "pi_1"
    assert data.payment_status != PaymentStatus.COMPLETED
    assert data.appointment_id is None
    assert data.client_name == "Ada Lovelace"

    with pytest.raises(PaymentRetryNotAllowed):
        session.retry_payment()
    with pytest.raises(PaymentPreconditionError):
        await session.submit_payment("tok_visa")
    assert session.next() is False


@pytest.mark.asyncio
async def test_create_intent_is_idempotent(session, gateway):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()

    first = await session.bridge.create_intent(session.selected_service())
    second = await session.bridge.create_intent(session.selected_service())

    assert first is second
    assert len(gateway.intent_requests) == 1


@pytest.mark.asyncio
async def test_concurrent_create_intent_shares_one_request(session, gateway):
    gateway.latency_seconds = 0.01
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()

    service = session.selected_service()
    first, second = await asyncio.gather(
        session.bridge.create_intent(service),
        session.bridge.create_intent(service),
    )

    assert first.payment_intent_id == second.payment_intent_id
    assert len(gateway.intent_requests) == 1


@pytest.mark.asyncio
async def test_intent_creation_failure_is_retryable(session, gateway):
    gateway.fail_intent = True
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()

    await session.prepare_payment()
    assert session.bridge.intent is None
    assert session.error.kind == ErrorKind.PAYMENT_INTENT_CREATION
    assert session.error.action == "retry"

    gateway.fail_intent = False
    await session.prepare_payment()
    assert session.bridge.intent is not None
    assert session.error is None
    assert session.bridge.intent.amount == Decimal("45.00")
    assert len(gateway.intent_requests) == 2


@pytest.mark.asyncio
async def test_declined_card_then_retry_reuses_intent(session, gateway, booking_port):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()
    await session.prepare_payment()

    result = await session.submit_payment(DECLINE_TOKEN)

    assert isinstance(result, PaymentDeclined)
    assert session.data.payment_status == PaymentStatus.FAILED
    assert session.bridge.last_error == "Your card was declined."
    assert session.error.kind == ErrorKind.PAYMENT_CONFIRMATION
    assert booking_port.requests == []

    session.retry_payment()
    assert session.data.payment_status is None
    assert session.error is None

    result = await session.submit_payment("tok_visa")
    assert isinstance(result, PaymentOutcome)
    assert session.data.payment_status == PaymentStatus.COMPLETED
    assert session.data.appointment_id == "1"
    assert len(gateway.intent_requests) == 1


@pytest.mark.asyncio
async def test_retry_requires_failed_payment(session):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()

    with pytest.raises(PaymentPreconditionError):
        session.retry_payment()


@pytest.mark.asyncio
async def test_create_intent_requires_online_payment(session, gateway):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.CASH)

    with pytest.raises(PaymentPreconditionError):
        await session.prepare_payment()
    assert gateway.intent_requests == []


@pytest.mark.asyncio
async def test_switching_to_cash_discards_prepared_intent(session, gateway):
    """An intent prepared for online payment is dropped when the client switches to cash."""
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    await session.prepare_payment()
    assert session.data.payment_intent_id == "pi_mock_1"

    session.choose_payment_method(PaymentMethod.CASH)

    assert session.bridge.intent is None
    assert session.data.payment_intent_id is None


@pytest.mark.asyncio
async def test_card_is_not_charged_before_earlier_steps_pass(session, gateway):
    """Paying from step 1 with no appointment details must not reach the provider."""
    session.select_service("svc1")
    session.select_stylist("sty1")
    session.choose_payment_method(PaymentMethod.ONLINE)
    await session.prepare_payment()
    assert session.bridge.intent is not None

    with pytest.raises(PaymentPreconditionError):
        await session.submit_payment("tok_visa")

    # Calling the bridge directly is refused the same way
    with pytest.raises(PaymentPreconditionError):
        await session.bridge.confirm_payment("tok_visa", session.selected_service())

    assert gateway.confirmations == []
    assert session.data.payment_status is None
    assert session.finalization_state == FinalizationState.IDLE
    assert session.error is None


@pytest.mark.asyncio
async def test_unexpected_finalize_error_after_charge_requires_support(session, gateway, monkeypatch):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()
    await session.prepare_payment()

    async def refuse(service, payment_intent_id):
        raise PaymentPreconditionError("Selected service is not available.")

    monkeypatch.setattr(session.finalizer, "finalize", refuse)

    result = await session.submit_payment("tok_visa")

    assert result is None
    assert gateway.confirmations == ["pi_mock_1"]
    assert session.finalization_state == FinalizationState.SUPPORT_REQUIRED
    assert session.error.kind == ErrorKind.POST_PAYMENT_FINALIZATION
    assert session.error.reference == "pi_mock_1"
    with pytest.raises(PaymentRetryNotAllowed):
        session.retry_payment()


@pytest.mark.asyncio
async def test_changing_service_discards_intent_priced_for_old_service(session, gateway, booking_port):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()
    await session.prepare_payment()
    assert session.bridge.intent.amount == Decimal("45")

    assert session.jump_to(1)
    session.select_service("svc2")
    session.select_stylist("sty1")

    assert session.bridge.intent is None
    assert session.data.payment_intent_id is None

    for _ in range(4):
        assert session.next()
    assert session.controller.current_step == 5

    await session.prepare_payment()
    assert session.bridge.intent.amount == Decimal("120")
    assert [r.service_id for r in gateway.intent_requests] == ["svc1", "svc2"]

    await session.submit_payment("tok_visa")
    assert gateway.confirmations == ["pi_mock_2"]
    assert booking_port.requests[0].service_id == "svc2"
    assert booking_port.requests[0].payment_intent_id == "pi_mock_2"


@pytest.mark.asyncio
async def test_confirm_refuses_intent_for_a_different_service(session, gateway):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.ONLINE)
    session.next()
    await session.prepare_payment()

    other = session.reference.find_service("svc3")
    with pytest.raises(PaymentPreconditionError):
        await session.bridge.confirm_payment("tok_visa", other)

    assert gateway.confirmations == []
    assert session.data.payment_status is None


@pytest.mark.asyncio
async def test_cash_confirmation_only_from_confirmation_step(session, booking_port):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.CASH)

    with pytest.raises(PaymentPreconditionError):
        await session.confirm_cash_booking()
    assert booking_port.requests == []


@pytest.mark.asyncio
async def test_cash_booking_confirms_on_reaching_confirmation(session, gateway, booking_port):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.CASH)

    assert await session.advance()

    assert session.controller.current_step == 6
    assert session.data.appointment_id == "1"
    assert session.data.payment_intent_id is None
    assert session.data.payment_status is None
    assert gateway.intent_requests == []

    request = booking_port.requests[0]
    assert request.payment_intent_id is None
    assert request.start_time == "10:30 AM"
    assert request.end_time == "11:30"
    assert request.notes == "Window seat"
    assert request.to_payload()["paymentIntentId"] is None


@pytest.mark.asyncio
async def test_cash_confirmation_failure_is_retryable(session, booking_port):
    booking_port.fail = True
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.CASH)

    await session.advance()
    assert session.error.kind == ErrorKind.BOOKING_CONFIRMATION
    assert session.error.retryable is True
    assert session.data.appointment_id is None

    booking_port.fail = False
    await session.confirm_cash_booking()
    assert session.error is None
    assert session.data.appointment_id == "1"


@pytest.mark.asyncio
async def test_finalize_rejects_concurrent_calls():
    endpoint = SlowBookingEndpoint()
    session = build_booking_session(
        reference_port=MockReferenceData(),
        intent_port=FakeIntents(),
        confirmation_port=FakeProvider(),
        booking_port=endpoint,
    )
    await session.start()
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.CASH)
    session.next()

    finalizer = session.finalizer
    first = asyncio.create_task(finalizer.finalize(session.selected_service(), None))
    await asyncio.sleep(0)

    with pytest.raises(FinalizationInProgressError):
        await finalizer.finalize(session.selected_service(), None)

    endpoint.release.set()
    confirmation = await first
    assert confirmation.appointment_id == "7"
    assert endpoint.calls == 1

    # Already confirmed: no second request
    again = await finalizer.finalize(session.selected_service(), None)
    assert again == confirmation
    assert endpoint.calls == 1


@pytest.mark.asyncio
async def test_empty_stylist_list_auto_selects_any():
    session = build_booking_session(
        reference_port=MockReferenceData(stylists=[]),
        intent_port=FakeIntents(),
        confirmation_port=FakeProvider(),
        booking_port=FakeBookingEndpoint(),
    )
    await session.start()

    session.select_service("svc1")

    assert session.data.stylist_id == ANY_STYLIST
    assert session.controller.can_proceed()
    assert session.next()


@pytest.mark.asyncio
async def test_changing_service_resets_stylist_when_stylists_exist(session):
    session.select_service("svc1")
    session.select_stylist("sty2")
    session.select_service("svc2")

    assert session.data.stylist_id is None
    assert session.controller.can_proceed() is False


@pytest.mark.asyncio
async def test_reference_data_failure_blocks_step_one(reference_port, gateway, booking_port):
    reference_port.fail = True
    session = build_booking_session(
        reference_port=reference_port,
        intent_port=gateway,
        confirmation_port=gateway,
        booking_port=booking_port,
    )
    await session.start()

    assert session.error.kind == ErrorKind.REFERENCE_DATA_LOAD
    assert session.error.action == "retry"
    assert session.controller.can_proceed() is False

    reference_port.fail = False
    await session.start()
    assert session.error is None
    session.select_service("svc1")
    session.select_stylist(ANY_STYLIST)
    assert session.next()


@pytest.mark.asyncio
async def test_confirmed_booking_cannot_be_edited(session):
    fill_through_details(session)
    session.choose_payment_method(PaymentMethod.CASH)
    await session.advance()

    with pytest.raises(PaymentPreconditionError):
        session.update_preferences(special_requests="changed")
    assert session.previous() is False
