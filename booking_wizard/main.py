import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from booking_wizard.api.v1.bookings import router as bookings_router
from booking_wizard.core.config import settings
from booking_wizard.wiring.dependencies import close_adapters

# Attributes passed through extra= that are worth showing on every line
CONTEXT_KEYS = ("session_id", "step", "payment_intent_id", "payment_status", "endpoint", "reason")


class ContextFormatter(logging.Formatter):
    """Appends booking context (session, step, payment intent) to the log line."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}" for key in CONTEXT_KEYS if getattr(record, key, None) not in (None, "")
        )
        return f"{base} | {context}" if context else base


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.getLogger(__name__).info("Booking wizard starting (ENV=%s)", settings.ENV)
    yield
    await close_adapters()


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    application = FastAPI(title="Booking Wizard", version="1.0.0", lifespan=lifespan)
    application.include_router(bookings_router, prefix="/api/v1/bookings", tags=["bookings"])

    @application.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.ENV}

    return application


app = create_app()
