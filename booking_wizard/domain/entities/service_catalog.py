from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True)
class ServiceOffering:
    id: str
    name: str
    price: Decimal
    duration_minutes: int
    category: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Stylist:
    id: str
    name: str
    specializations: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReferenceData:
    services: tuple[ServiceOffering, ...] = ()
    stylists: tuple[Stylist, ...] = ()
    loaded: bool = False

    def find_service(self, service_id: str | None) -> ServiceOffering | None:
        if not service_id:
            return None
        return next((s for s in self.services if s.id == service_id), None)

    def find_stylist(self, stylist_id: str | None) -> Stylist | None:
        if not stylist_id:
            return None
        return next((s for s in self.stylists if s.id == stylist_id), None)

    def categories(self) -> list[str]:
        seen: list[str] = ["all"]
        for service in self.services:
            if service.category and service.category not in seen:
                seen.append(service.category)
        return seen

    def services_in_category(self, category: str) -> list[ServiceOffering]:
        if category == "all":
            return list(self.services)
        return [s for s in self.services if s.category == category]


def parse_price(raw: object) -> Decimal:
    """Parse a price given as a number or a display string like "$45.00". Garbage parses to 0."""
    if raw is None:
        return Decimal("0")
    if isinstance(raw, (int, float, Decimal)):
        return Decimal(str(raw))
    cleaned = re.sub(r"[^\d.]", "", str(raw))
    try:
        return Decimal(cleaned) if cleaned else Decimal("0")
    except InvalidOperation:
        return Decimal("0")
