from __future__ import annotations

from decimal import Decimal

from booking_wizard.application.exceptions import ExternalServiceError
from booking_wizard.application.ports.reference_data import ReferenceDataPort
from booking_wizard.domain.entities.service_catalog import ServiceOffering, Stylist

DEFAULT_SERVICES: tuple[ServiceOffering, ...] = (
    ServiceOffering(id="svc1", name="Women's Haircut", price=Decimal("45.00"), duration_minutes=60, category="hair"),
    ServiceOffering(id="svc2", name="Color & Highlights", price=Decimal("120.00"), duration_minutes=120, category="color"),
    ServiceOffering(id="svc3", name="Blowout", price=Decimal("35.00"), duration_minutes=45, category="hair"),
)

DEFAULT_STYLISTS: tuple[Stylist, ...] = (
    Stylist(id="sty1", name="Jordan", specializations=("cuts", "color")),
    Stylist(id="sty2", name="Sam", specializations=("styling",)),
)


class MockReferenceData(ReferenceDataPort):
    def __init__(
        self,
        services: tuple[ServiceOffering, ...] | list[ServiceOffering] = DEFAULT_SERVICES,
        stylists: tuple[Stylist, ...] | list[Stylist] = DEFAULT_STYLISTS,
        fail: bool = False,
    ) -> None:
        self.services = list(services)
        self.stylists = list(stylists)
        self.fail = fail
        self.calls = 0

    async def list_services(self) -> list[ServiceOffering]:
        self.calls += 1
        if self.fail:
            raise ExternalServiceError("services", "mock outage")
        return list(self.services)

    async def list_stylists(self) -> list[Stylist]:
        if self.fail:
            raise ExternalServiceError("stylists", "mock outage")
        return list(self.stylists)
