from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from booking_wizard.application.dto.booking_requests import PaymentIntentRequest
from booking_wizard.application.exceptions import ExternalServiceError
from booking_wizard.application.ports.payments import PaymentConfirmationPort, PaymentIntentPort
from booking_wizard.application.ports.reference_data import ReferenceDataPort
from booking_wizard.domain.entities.payment import (
    BillingDetails,
    PaymentDeclined,
    PaymentIntent,
    PaymentOutcome,
)

DECLINE_TOKEN = "tok_chargeDeclined"


class MockPaymentGateway(PaymentIntentPort, PaymentConfirmationPort):
    """
    In-process stand-in for the intent endpoint and the card processor.

    Any payment method token succeeds except DECLINE_TOKEN.
    """

    def __init__(
        self,
        catalog: ReferenceDataPort | None = None,
        fail_intent: bool = False,
        latency_seconds: float = 0.0,
    ) -> None:
        self._catalog = catalog
        self.fail_intent = fail_intent
        self.latency_seconds = latency_seconds
        self.intent_requests: list[PaymentIntentRequest] = []
        self.confirmations: list[str] = []
        self._intents: dict[str, PaymentIntent] = {}
        self._logger = logging.getLogger(__name__)

    async def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntent:
        self.intent_requests.append(request)
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        if self.fail_intent:
            raise ExternalServiceError("payment-intent", "mock outage")

        amount = await self._price_for(request.service_id)
        amount = amount * (100 + request.tip_percentage) / 100
        intent_id = f"pi_mock_{len(self._intents) + 1}"
        intent = PaymentIntent(
            client_secret=f"{intent_id}_secret_mock",
            amount=amount,
            payment_intent_id=intent_id,
        )
        self._intents[intent_id] = intent
        self._logger.info("Mock payment intent created", extra={"payment_intent_id": intent_id})
        return intent

    async def confirm_card_payment(
        self,
        client_secret: str,
        payment_method_token: str,
        billing: BillingDetails,
    ) -> PaymentOutcome | PaymentDeclined:
        intent_id = client_secret.split("_secret_")[0]
        self.confirmations.append(intent_id)
        if intent_id not in self._intents:
            return PaymentDeclined(message="No such payment intent.")
        if payment_method_token == DECLINE_TOKEN:
            return PaymentDeclined(message="Your card was declined.")
        return PaymentOutcome(status="succeeded", payment_intent_id=intent_id)

    async def _price_for(self, service_id: str) -> Decimal:
        if self._catalog is None:
            return Decimal("0")
        for service in await self._catalog.list_services():
            if service.id == service_id:
                return service.price
        return Decimal("0")
