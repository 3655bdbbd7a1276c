from __future__ import annotations

import pytest
import pytest_asyncio

from booking_wizard.application.use_cases.booking_session import BookingSession
from booking_wizard.infrastructure.mock.mock_booking_confirmation import MockBookingConfirmation
from booking_wizard.infrastructure.mock.mock_payments import MockPaymentGateway
from booking_wizard.infrastructure.mock.mock_reference_data import MockReferenceData
from booking_wizard.wiring.dependencies import build_booking_session


@pytest.fixture
def reference_port() -> MockReferenceData:
    return MockReferenceData()


@pytest.fixture
def gateway(reference_port: MockReferenceData) -> MockPaymentGateway:
    return MockPaymentGateway(catalog=reference_port)


@pytest.fixture
def booking_port() -> MockBookingConfirmation:
    return MockBookingConfirmation()


@pytest_asyncio.fixture
async def session(reference_port, gateway, booking_port) -> BookingSession:
    s = build_booking_session(
        reference_port=reference_port,
        intent_port=gateway,
        confirmation_port=gateway,
        booking_port=booking_port,
    )
    await s.start()
    return s
