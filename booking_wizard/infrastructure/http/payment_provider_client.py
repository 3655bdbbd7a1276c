from __future__ import annotations

import logging

import httpx

from booking_wizard.application.exceptions import ExternalServiceError
from booking_wizard.application.ports.payments import PaymentConfirmationPort
from booking_wizard.core.config import settings
from booking_wizard.domain.entities.payment import BillingDetails, PaymentDeclined, PaymentOutcome


class PaymentProviderClient(PaymentConfirmationPort):
    """
    Confirms a payment intent with the card processor's REST API.

    The client secret has the form "<intent id>_secret_<...>"; the intent id is
    the part before "_secret_".
    """

    def __init__(
        self,
        base_url: str | None = None,
        secret_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.PAYMENT_PROVIDER_BASE_URL or "").rstrip("/")
        self._secret_key = secret_key or settings.PAYMENT_PROVIDER_SECRET_KEY
        if not self._base_url or not self._secret_key:
            raise ValueError("PAYMENT_PROVIDER_BASE_URL and PAYMENT_PROVIDER_SECRET_KEY are required")

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def confirm_card_payment(
        self,
        client_secret: str,
        payment_method_token: str,
        billing: BillingDetails,
    ) -> PaymentOutcome | PaymentDeclined:
        intent_id = client_secret.split("_secret_")[0]
        form = {
            "payment_method": payment_method_token,
            "client_secret": client_secret,
            "payment_method_data[billing_details][name]": billing.name,
            "payment_method_data[billing_details][email]": billing.email,
            "payment_method_data[billing_details][phone]": billing.phone,
        }
        headers = {"Authorization": f"Bearer {self._secret_key}"}

        try:
            response = await self._client.post(f"/v1/payment_intents/{intent_id}/confirm", data=form, headers=headers)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Payment provider request failed", extra={"endpoint": "confirm", "reason": str(e)})
            raise ExternalServiceError("payment-confirm", str(e)) from e

        if not isinstance(data, dict):
            self._logger.error("Payment provider returned a non-object body", extra={"endpoint": "confirm"})
            raise ExternalServiceError("payment-confirm", "expected an object")

        error = data.get("error")
        if response.status_code >= 400 or error:
            message = (error or {}).get("message") if isinstance(error, dict) else None
            if response.status_code in (402, 400) or message:
                return PaymentDeclined(message=message or "Your card was declined.")
            raise ExternalServiceError("payment-confirm", f"HTTP {response.status_code}")

        if data.get("status") == "succeeded":
            return PaymentOutcome(status="succeeded", payment_intent_id=str(data.get("id") or intent_id))

        # requires_action and friends cannot be completed server-side
        return PaymentDeclined(message=f"Payment could not be completed (status: {data.get('status')}).")
