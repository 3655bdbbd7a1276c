from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable

from booking_wizard.domain.entities.booking_data import BookingData

Listener = Callable[[BookingData], None]


class BookingDataStore:
    """
    Holds the single in-progress BookingData record for one wizard session.

    Updates are shallow merges; no validation happens here. Every update
    notifies subscribers with the new snapshot.
    """

    def __init__(self, initial: BookingData | None = None) -> None:
        self._data = initial or BookingData()
        self._listeners: list[Listener] = []
        self._logger = logging.getLogger(__name__)

    def get(self) -> BookingData:
        return self._data

    def update(self, **partial: Any) -> BookingData:
        unknown = set(partial) - BookingData.field_names()
        if unknown:
            raise ValueError(f"Unknown booking fields: {', '.join(sorted(unknown))}")

        self._data = replace(self._data, **partial)
        self._logger.debug("Booking data updated", extra={"reason": ",".join(sorted(partial))})
        self._notify()
        return self._data

    def reset(self) -> BookingData:
        self._data = BookingData()
        self._notify()
        return self._data

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._data)
