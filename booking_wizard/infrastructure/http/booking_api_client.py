from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_wizard.application.dto.booking_requests import (
    BookingConfirmationRequest,
    PaymentIntentRequest,
)
from booking_wizard.application.exceptions import ExternalServiceError
from booking_wizard.application.ports.booking_confirmation import BookingConfirmationPort
from booking_wizard.application.ports.payments import PaymentIntentPort
from booking_wizard.application.ports.reference_data import ReferenceDataPort
from booking_wizard.core.config import settings
from booking_wizard.domain.entities.payment import PaymentIntent
from booking_wizard.domain.entities.service_catalog import ServiceOffering, Stylist, parse_price


class BookingApiClient(ReferenceDataPort, PaymentIntentPort, BookingConfirmationPort):
    """
    Adapter for the business's booking backend: services/stylists reads,
    payment-intent creation and booking confirmation.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client_id: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.BOOKING_API_BASE_URL or "").rstrip("/")
        self._client_id = client_id or settings.BUSINESS_CLIENT_ID
        if not self._base_url:
            raise ValueError("BOOKING_API_BASE_URL is required for the booking API client")

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_services(self) -> list[ServiceOffering]:
        rows = await self._request("GET", settings.SERVICES_PATH.format(client_id=self._client_id), "services")
        if not isinstance(rows, list):
            raise ExternalServiceError("services", "expected a list")

        services: list[ServiceOffering] = []
        for row in rows:
            try:
                services.append(
                    ServiceOffering(
                        id=str(row["id"]),
                        name=str(row.get("name") or ""),
                        price=parse_price(row.get("price")),
                        duration_minutes=int(row.get("durationMinutes") or settings.DEFAULT_SERVICE_DURATION_MINUTES),
                        category=row.get("category") or None,
                        description=row.get("description") or None,
                    )
                )
            except (KeyError, TypeError, ValueError):
                self._logger.warning("Skipping malformed service row", extra={"endpoint": "services"})
                continue
        return services

    async def list_stylists(self) -> list[Stylist]:
        rows = await self._request("GET", settings.STYLISTS_PATH.format(client_id=self._client_id), "stylists")
        if not isinstance(rows, list):
            raise ExternalServiceError("stylists", "expected a list")

        stylists: list[Stylist] = []
        for row in rows:
            if not isinstance(row, dict) or row.get("id") is None:
                continue
            stylists.append(
                Stylist(
                    id=str(row["id"]),
                    name=str(row.get("name") or ""),
                    specializations=tuple(row.get("specializations") or ()),
                )
            )
        return stylists

    async def create_payment_intent(self, request: PaymentIntentRequest) -> PaymentIntent:
        data = await self._request("POST", settings.PAYMENT_INTENT_PATH, "payment-intent", json=request.to_payload())
        try:
            return PaymentIntent(
                client_secret=str(data["clientSecret"]),
                amount=parse_price(data["amount"]),
                payment_intent_id=str(data["paymentIntentId"]),
            )
        except (KeyError, TypeError) as e:
            raise ExternalServiceError("payment-intent", f"malformed response: {e}") from e

    async def confirm_booking(self, request: BookingConfirmationRequest) -> dict[str, Any]:
        data = await self._request("POST", settings.BOOKING_CONFIRM_PATH, "booking-confirm", json=request.to_payload())
        if not isinstance(data, dict):
            raise ExternalServiceError("booking-confirm", "expected an object")
        return data

    async def _request(self, method: str, path: str, endpoint: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Booking API returned an error",
                extra={"endpoint": endpoint, "reason": e.response.status_code},
            )
            raise ExternalServiceError(endpoint, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Booking API request failed", extra={"endpoint": endpoint, "reason": str(e)})
            raise ExternalServiceError(endpoint, str(e)) from e
