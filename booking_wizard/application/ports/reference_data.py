from __future__ import annotations

from abc import ABC, abstractmethod

from booking_wizard.domain.entities.service_catalog import ServiceOffering, Stylist


class ReferenceDataPort(ABC):
    @abstractmethod
    async def list_services(self) -> list[ServiceOffering]:
        """Fetch bookable services. Idempotent GET."""
        raise NotImplementedError

    @abstractmethod
    async def list_stylists(self) -> list[Stylist]:
        """Fetch stylists offered on the booking page. May be empty."""
        raise NotImplementedError
