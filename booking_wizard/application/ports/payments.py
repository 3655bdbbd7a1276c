from __future__ import annotations

from abc import ABC, abstractmethod

from booking_wizard.application.dto.booking_requests import PaymentIntentRequest
from booking_wizard.domain.entities.payment import (
    BillingDetails,
    PaymentDeclined,
    PaymentIntent,
    PaymentOutcome,
)


class PaymentIntentPort(ABC):
    @abstractmethod
    async def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntent:
        """Create a payment intent. Raises ExternalServiceError on failure."""
        raise NotImplementedError


class PaymentConfirmationPort(ABC):
    @abstractmethod
    async def confirm_card_payment(
        self,
        client_secret: str,
        payment_method_token: str,
        billing: BillingDetails,
    ) -> PaymentOutcome | PaymentDeclined:
        """
        Confirm a card payment with the provider.

        The card itself is collected by the provider's own element; only an
        opaque payment method token reaches this service. Declines come back as
        PaymentDeclined, transport failures raise ExternalServiceError.
        """
        raise NotImplementedError
