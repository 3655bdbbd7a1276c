from __future__ import annotations

from booking_wizard.application.use_cases.booking_session import BookingSession


class MemorySessionStore:
    """Live wizard sessions by id. Nothing is persisted; a restart abandons them."""

    def __init__(self, limit: int = 1000) -> None:
        self._sessions: dict[str, BookingSession] = {}
        self._limit = limit

    def add(self, session: BookingSession) -> None:
        if len(self._sessions) >= self._limit:
            # Drop the oldest session
            oldest = next(iter(self._sessions))
            del self._sessions[oldest]
        self._sessions[session.session_id] = session

    def get(self, session_id: str) -> BookingSession | None:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
