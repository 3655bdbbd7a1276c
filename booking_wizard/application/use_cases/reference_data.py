from __future__ import annotations

import asyncio
import logging

from booking_wizard.application.exceptions import ExternalServiceError, ReferenceDataLoadFailure
from booking_wizard.application.ports.reference_data import ReferenceDataPort
from booking_wizard.domain.entities.service_catalog import ReferenceData


class ReferenceDataLoader:
    """Loads the services and stylists lists once per wizard session."""

    def __init__(self, port: ReferenceDataPort) -> None:
        self._port = port
        self._logger = logging.getLogger(__name__)

    async def load(self) -> ReferenceData:
        try:
            services, stylists = await asyncio.gather(
                self._port.list_services(),
                self._port.list_stylists(),
            )
        except ExternalServiceError as e:
            self._logger.warning("Reference data load failed", extra={"endpoint": e.endpoint, "reason": e.detail})
            raise ReferenceDataLoadFailure("Could not load services and stylists. Please try again.") from e

        self._logger.info(
            "Reference data loaded",
            extra={"reason": f"services={len(services)} stylists={len(stylists)}"},
        )
        return ReferenceData(services=tuple(services), stylists=tuple(stylists), loaded=True)
