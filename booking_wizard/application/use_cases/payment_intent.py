from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from booking_wizard.application.dto.booking_requests import PaymentIntentRequest
from booking_wizard.application.exceptions import (
    BookingWizardError,
    ExternalServiceError,
    PaymentIntentCreationFailure,
    PaymentPreconditionError,
    PaymentRetryNotAllowed,
    PostPaymentFinalizationFailure,
)
from booking_wizard.application.ports.payments import PaymentConfirmationPort, PaymentIntentPort
from booking_wizard.application.use_cases.finalize_booking import ConfirmationFinalizer
from booking_wizard.application.wizard.booking_store import BookingDataStore
from booking_wizard.domain.entities.booking_data import PaymentMethod, PaymentStatus
from booking_wizard.domain.entities.payment import (
    BillingDetails,
    FinalizationState,
    PaymentDeclined,
    PaymentIntent,
    PaymentOutcome,
)
from booking_wizard.domain.entities.service_catalog import ServiceOffering


class PaymentIntentBridge:
    """
    Online payment sub-flow for one booking session.

    null -> PROCESSING -> COMPLETED (written by the finalizer)
                       -> FAILED -> retry() -> null

    At most one payment intent exists per session unless creation failed or the
    intent was explicitly discarded. An intent is only valid for the service and
    price it was created for; a different selection gets a fresh intent.
    """

    def __init__(
        self,
        intents: PaymentIntentPort,
        confirmations: PaymentConfirmationPort,
        finalizer: ConfirmationFinalizer,
        store: BookingDataStore,
        client_id: str,
        tip_percentage: int = 0,
    ) -> None:
        self._intents = intents
        self._confirmations = confirmations
        self._finalizer = finalizer
        self._store = store
        self._client_id = client_id
        self._tip_percentage = tip_percentage
        self._intent: PaymentIntent | None = None
        self._intent_key: tuple[str, Decimal] | None = None
        self._pending: asyncio.Task[PaymentIntent] | None = None
        self._confirming = False
        self._last_error: str | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def intent(self) -> PaymentIntent | None:
        return self._intent

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def in_flight(self) -> bool:
        return self._pending is not None or self._confirming

    async def create_intent(self, service: ServiceOffering | None) -> PaymentIntent:
        if self._intent is not None:
            if self.matches(service):
                return self._intent
            self.discard_intent()
        if self._pending is None:
            self._check_intent_preconditions(service)
            self._pending = asyncio.ensure_future(self._request_intent(service))
        pending = self._pending
        try:
            return await asyncio.shield(pending)
        finally:
            if pending.done() and self._pending is pending:
                self._pending = None

    def matches(self, service: ServiceOffering | None) -> bool:
        """True if the cached intent was created for this service at this price."""
        if self._intent is None or service is None:
            return False
        return self._intent_key == (service.id, service.price)

    def discard_intent(self) -> None:
        """Drop the cached intent, e.g. after the provider reported it expired or the service changed."""
        data = self._store.get()
        if data.payment_status in (PaymentStatus.PROCESSING, PaymentStatus.COMPLETED):
            raise PaymentPreconditionError("Cannot discard an intent once a payment has been taken.")
        if self._intent is not None:
            self._logger.info("Payment intent discarded", extra={"payment_intent_id": self._intent.payment_intent_id})
        self._intent = None
        self._intent_key = None
        self._last_error = None
        self._store.update(payment_intent_id=None, payment_status=None)

    async def confirm_payment(
        self,
        payment_method_token: str,
        service: ServiceOffering | None,
    ) -> PaymentOutcome | PaymentDeclined:
        data = self._store.get()
        if self._intent is None:
            raise PaymentPreconditionError("Payment has not been prepared yet.")
        if self._confirming or data.payment_status is not None:
            raise PaymentPreconditionError("A payment attempt is already in progress or finished.")
        if not self.matches(service):
            raise PaymentPreconditionError("The selected service changed. Please prepare payment again.")
        # Everything the booking needs must be in place before any money moves
        self._finalizer.check_ready(service, self._intent.payment_intent_id)

        self._confirming = True
        self._last_error = None
        self._store.update(payment_status=PaymentStatus.PROCESSING)
        try:
            result = await self._confirmations.confirm_card_payment(
                self._intent.client_secret,
                payment_method_token,
                BillingDetails(name=data.client_name, email=data.client_email, phone=data.client_phone),
            )
        except ExternalServiceError as e:
            # No answer from the provider; treated like a decline so the form can be retried
            result = PaymentDeclined(message="An error occurred during payment processing.")
            self._logger.warning("Payment confirmation call failed", extra={"endpoint": e.endpoint, "reason": e.detail})
        finally:
            self._confirming = False

        if isinstance(result, PaymentDeclined):
            self._last_error = result.message or "An error occurred during payment processing."
            self._store.update(payment_status=PaymentStatus.FAILED)
            self._logger.info(
                "Payment declined",
                extra={"payment_intent_id": self._intent.payment_intent_id, "reason": self._last_error},
            )
            return result

        self._store.update(payment_intent_id=result.payment_intent_id)
        self._logger.info("Payment succeeded", extra={"payment_intent_id": result.payment_intent_id})

        try:
            await self._finalizer.finalize(service, result.payment_intent_id)
        except PostPaymentFinalizationFailure:
            raise
        except (BookingWizardError, ValueError) as e:
            raise self._finalizer.require_support(result.payment_intent_id, str(e)) from e
        return result

    def retry(self) -> None:
        if self._finalizer.state == FinalizationState.SUPPORT_REQUIRED:
            raise PaymentRetryNotAllowed(
                "Payment was already taken. Please contact us with your payment reference."
            )
        if self._store.get().payment_status != PaymentStatus.FAILED:
            raise PaymentPreconditionError("Only a failed payment can be retried.")
        self._last_error = None
        self._store.update(payment_status=None)

    def _check_intent_preconditions(self, service: ServiceOffering | None) -> None:
        data = self._store.get()
        if data.payment_method != PaymentMethod.ONLINE:
            raise PaymentPreconditionError("Online payment was not selected.")
        if service is None or service.id != data.service_id:
            raise PaymentPreconditionError("Selected service is not available.")
        if service.price <= 0:
            raise PaymentPreconditionError("Selected service has no price.")

    async def _request_intent(self, service: ServiceOffering) -> PaymentIntent:
        data = self._store.get()
        request = PaymentIntentRequest(
            client_id=self._client_id,
            service_id=service.id,
            customer_email=data.client_email,
            customer_name=data.client_name,
            tip_percentage=self._tip_percentage,
        )
        try:
            intent = await self._intents.create_payment_intent(request)
        except ExternalServiceError as e:
            self._logger.warning("Payment intent creation failed", extra={"endpoint": e.endpoint, "reason": e.detail})
            raise PaymentIntentCreationFailure("Failed to initialize payment. Please try again.") from e

        self._intent = intent
        self._intent_key = (service.id, service.price)
        self._store.update(payment_intent_id=intent.payment_intent_id)
        self._logger.info("Payment intent created", extra={"payment_intent_id": intent.payment_intent_id})
        return intent
