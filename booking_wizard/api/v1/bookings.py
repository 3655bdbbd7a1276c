from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Response

from booking_wizard.api.v1.schemas import (
    AppointmentDetailsRequest,
    PaymentConfirmRequest,
    PaymentIntentSchema,
    PaymentMethodRequest,
    PreferencesRequest,
    ServiceSelectionRequest,
    SessionSnapshotSchema,
    StylistSelectionRequest,
)
from booking_wizard.application.exceptions import (
    BookingWizardError,
    ExternalServiceError,
    FieldValidationError,
    FinalizationInProgressError,
    PaymentPreconditionError,
    PaymentRetryNotAllowed,
)
from booking_wizard.application.use_cases.booking_session import BookingSession
from booking_wizard.infrastructure.store.memory_session_store import MemorySessionStore
from booking_wizard.wiring.dependencies import build_booking_session, get_session_store

router = APIRouter()
logger = logging.getLogger(__name__)


def get_session_factory() -> Callable[[], BookingSession]:
    return build_booking_session


def _load(session_id: str, sessions: MemorySessionStore) -> BookingSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Booking session not found")
    return session


def _to_http(e: BookingWizardError) -> HTTPException:
    if isinstance(e, FieldValidationError):
        return HTTPException(status_code=422, detail={"errors": e.errors})
    if isinstance(e, (FinalizationInProgressError, PaymentRetryNotAllowed)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PaymentPreconditionError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, ExternalServiceError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _snapshot(session: BookingSession, moved: bool | None = None) -> SessionSnapshotSchema:
    return SessionSnapshotSchema.from_snapshot(session.snapshot(), moved=moved)


@router.post("/sessions", response_model=SessionSnapshotSchema, status_code=201)
async def create_session(
    sessions: MemorySessionStore = Depends(get_session_store),
    factory: Callable[[], BookingSession] = Depends(get_session_factory),
):
    session = factory()
    await session.start()
    sessions.add(session)
    logger.info("Booking session started", extra={"session_id": session.session_id})
    return _snapshot(session)


@router.get("/sessions/{session_id}", response_model=SessionSnapshotSchema)
def get_session(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    return _snapshot(_load(session_id, sessions))


@router.delete("/sessions/{session_id}", status_code=204)
def abandon_session(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    if not sessions.discard(session_id):
        raise HTTPException(status_code=404, detail="Booking session not found")
    logger.info("Booking session discarded", extra={"session_id": session_id})
    return Response(status_code=204)


@router.post("/sessions/{session_id}/reference-data/retry", response_model=SessionSnapshotSchema)
async def retry_reference_data(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    session = _load(session_id, sessions)
    await session.start()
    return _snapshot(session)


@router.put("/sessions/{session_id}/service", response_model=SessionSnapshotSchema)
def select_service(
    session_id: str,
    req: ServiceSelectionRequest,
    sessions: MemorySessionStore = Depends(get_session_store),
):
    session = _load(session_id, sessions)
    try:
        session.select_service(req.service_id)
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)


@router.put("/sessions/{session_id}/stylist", response_model=SessionSnapshotSchema)
def select_stylist(
    session_id: str,
    req: StylistSelectionRequest,
    sessions: MemorySessionStore = Depends(get_session_store),
):
    session = _load(session_id, sessions)
    try:
        session.select_stylist(req.stylist_id)
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)


@router.put("/sessions/{session_id}/details", response_model=SessionSnapshotSchema)
def update_details(
    session_id: str,
    req: AppointmentDetailsRequest,
    sessions: MemorySessionStore = Depends(get_session_store),
):
    session = _load(session_id, sessions)
    try:
        session.update_details(**req.model_dump(exclude_unset=True))
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)


@router.put("/sessions/{session_id}/preferences", response_model=SessionSnapshotSchema)
def update_preferences(
    session_id: str,
    req: PreferencesRequest,
    sessions: MemorySessionStore = Depends(get_session_store),
):
    session = _load(session_id, sessions)
    try:
        session.update_preferences(**req.model_dump(exclude_unset=True))
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)


@router.put("/sessions/{session_id}/payment-method", response_model=SessionSnapshotSchema)
def choose_payment_method(
    session_id: str,
    req: PaymentMethodRequest,
    sessions: MemorySessionStore = Depends(get_session_store),
):
    session = _load(session_id, sessions)
    try:
        session.choose_payment_method(req.payment_method)
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)


@router.post("/sessions/{session_id}/next", response_model=SessionSnapshotSchema)
async def next_step(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    session = _load(session_id, sessions)
    moved = await session.advance()
    return _snapshot(session, moved=moved)


@router.post("/sessions/{session_id}/previous", response_model=SessionSnapshotSchema)
def previous_step(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    session = _load(session_id, sessions)
    return _snapshot(session, moved=session.previous())


@router.post("/sessions/{session_id}/jump/{step_id}", response_model=SessionSnapshotSchema)
def jump_to_step(session_id: str, step_id: int, sessions: MemorySessionStore = Depends(get_session_store)):
    session = _load(session_id, sessions)
    return _snapshot(session, moved=session.jump_to(step_id))


@router.post("/sessions/{session_id}/payment/intent", response_model=PaymentIntentSchema)
async def prepare_payment(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    session = _load(session_id, sessions)
    try:
        await session.prepare_payment()
    except BookingWizardError as e:
        raise _to_http(e)

    intent = session.bridge.intent
    if intent is None:
        error = session.error
        raise HTTPException(status_code=502, detail=error.message if error else "Payment setup failed")
    return PaymentIntentSchema(
        client_secret=intent.client_secret,
        amount=f"{intent.amount:.2f}",
        payment_intent_id=intent.payment_intent_id,
    )


@router.post("/sessions/{session_id}/payment/confirm", response_model=SessionSnapshotSchema)
async def confirm_payment(
    session_id: str,
    req: PaymentConfirmRequest,
    sessions: MemorySessionStore = Depends(get_session_store),
):
    session = _load(session_id, sessions)
    try:
        await session.submit_payment(req.payment_method_token)
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)


@router.post("/sessions/{session_id}/payment/retry", response_model=SessionSnapshotSchema)
def retry_payment(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    session = _load(session_id, sessions)
    try:
        session.retry_payment()
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)


@router.post("/sessions/{session_id}/confirmation/retry", response_model=SessionSnapshotSchema)
async def retry_cash_confirmation(session_id: str, sessions: MemorySessionStore = Depends(get_session_store)):
    session = _load(session_id, sessions)
    try:
        await session.confirm_cash_booking()
    except BookingWizardError as e:
        raise _to_http(e)
    return _snapshot(session)
