from functools import lru_cache
import logging

from booking_wizard.core.config import settings
from booking_wizard.application.ports.booking_confirmation import BookingConfirmationPort
from booking_wizard.application.ports.payments import PaymentConfirmationPort, PaymentIntentPort
from booking_wizard.application.ports.reference_data import ReferenceDataPort
from booking_wizard.application.use_cases.booking_session import BookingSession
from booking_wizard.application.use_cases.finalize_booking import ConfirmationFinalizer
from booking_wizard.application.use_cases.payment_intent import PaymentIntentBridge
from booking_wizard.application.use_cases.reference_data import ReferenceDataLoader
from booking_wizard.application.wizard.booking_store import BookingDataStore
from booking_wizard.application.wizard.controller import ProgressMode
from booking_wizard.infrastructure.http.booking_api_client import BookingApiClient
from booking_wizard.infrastructure.http.payment_provider_client import PaymentProviderClient
from booking_wizard.infrastructure.mock.mock_booking_confirmation import MockBookingConfirmation
from booking_wizard.infrastructure.mock.mock_payments import MockPaymentGateway
from booking_wizard.infrastructure.mock.mock_reference_data import MockReferenceData
from booking_wizard.infrastructure.store.memory_session_store import MemorySessionStore


_session_store: MemorySessionStore | None = None


def _use_mocks() -> bool:
    return settings.ENV.lower() in {"dev", "local", "test"} and not settings.BOOKING_API_BASE_URL


@lru_cache
def get_booking_api() -> BookingApiClient | None:
    if _use_mocks():
        return None
    return BookingApiClient()


@lru_cache
def get_reference_data_port() -> ReferenceDataPort:
    api = get_booking_api()
    if api is None:
        logging.getLogger(__name__).info("Using MockReferenceData (ENV=%s)", settings.ENV)
        return MockReferenceData()
    return api


@lru_cache
def get_mock_payment_gateway() -> MockPaymentGateway:
    return MockPaymentGateway(catalog=get_reference_data_port())


def get_payment_intent_port() -> PaymentIntentPort:
    api = get_booking_api()
    return api if api is not None else get_mock_payment_gateway()


@lru_cache
def get_payment_confirmation_port() -> PaymentConfirmationPort:
    if not settings.PAYMENT_PROVIDER_SECRET_KEY:
        if settings.ENV.lower() in {"dev", "local", "test"}:
            logging.getLogger(__name__).info("Using MockPaymentGateway (provider key missing, ENV=%s)", settings.ENV)
            return get_mock_payment_gateway()
        raise ValueError("PAYMENT_PROVIDER_SECRET_KEY is required to confirm online payments.")
    return PaymentProviderClient()


@lru_cache
def get_booking_confirmation_port() -> BookingConfirmationPort:
    api = get_booking_api()
    return api if api is not None else MockBookingConfirmation()


def get_session_store() -> MemorySessionStore:
    global _session_store
    if _session_store is None:
        _session_store = MemorySessionStore()
    return _session_store


def build_booking_session(
    reference_port: ReferenceDataPort | None = None,
    intent_port: PaymentIntentPort | None = None,
    confirmation_port: PaymentConfirmationPort | None = None,
    booking_port: BookingConfirmationPort | None = None,
) -> BookingSession:
    store = BookingDataStore()
    finalizer = ConfirmationFinalizer(
        port=booking_port or get_booking_confirmation_port(),
        store=store,
        default_duration_minutes=settings.DEFAULT_SERVICE_DURATION_MINUTES,
    )
    intents = intent_port or get_payment_intent_port()
    confirmations = confirmation_port or get_payment_confirmation_port()

    def bridge_factory(store: BookingDataStore, finalizer: ConfirmationFinalizer) -> PaymentIntentBridge:
        return PaymentIntentBridge(
            intents=intents,
            confirmations=confirmations,
            finalizer=finalizer,
            store=store,
            client_id=settings.BUSINESS_CLIENT_ID,
            tip_percentage=settings.DEFAULT_TIP_PERCENTAGE,
        )

    return BookingSession(
        loader=ReferenceDataLoader(reference_port or get_reference_data_port()),
        store=store,
        finalizer=finalizer,
        bridge_factory=bridge_factory,
        progress_mode=ProgressMode(settings.PROGRESS_MODE.lower()),
    )


async def close_adapters() -> None:
    """Close cached HTTP adapters and forget them, so the next request builds fresh ones."""
    for factory in (get_booking_api, get_payment_confirmation_port):
        if factory.cache_info().currsize == 0:
            continue
        adapter = factory()
        if isinstance(adapter, (BookingApiClient, PaymentProviderClient)):
            await adapter.aclose()

    for factory in (
        get_booking_api,
        get_reference_data_port,
        get_mock_payment_gateway,
        get_payment_confirmation_port,
        get_booking_confirmation_port,
    ):
        factory.cache_clear()
