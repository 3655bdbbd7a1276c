from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Callable

from booking_wizard.application.exceptions import (
    BookingConfirmationFailure,
    ErrorKind,
    FieldValidationError,
    FinalizationInProgressError,
    PaymentIntentCreationFailure,
    PaymentPreconditionError,
    PostPaymentFinalizationFailure,
    ReferenceDataLoadFailure,
)
from booking_wizard.application.use_cases.finalize_booking import ConfirmationFinalizer
from booking_wizard.application.use_cases.payment_intent import PaymentIntentBridge
from booking_wizard.application.use_cases.reference_data import ReferenceDataLoader
from booking_wizard.application.utils.time_slots import DEFAULT_TIME_SLOTS
from booking_wizard.application.utils.validation import validate_appointment_details, validate_how_heard
from booking_wizard.application.wizard.booking_store import BookingDataStore
from booking_wizard.application.wizard.controller import ProgressMode, WizardController
from booking_wizard.application.wizard.step_registry import StepContext, StepId
from booking_wizard.domain.entities.booking_data import (
    ANY_STYLIST,
    BookingData,
    PaymentMethod,
    PaymentStatus,
)
from booking_wizard.domain.entities.payment import FinalizationState, PaymentDeclined, PaymentOutcome
from booking_wizard.domain.entities.service_catalog import ReferenceData, ServiceOffering


@dataclass(frozen=True)
class StepError:
    """Inline error shown within the current step."""

    kind: ErrorKind
    message: str
    retryable: bool
    action: str  # "retry" or "contact_support"
    reference: str | None = None


class BookingSession:
    """
    One client's pass through the booking wizard.

    Every collaborator shares the same BookingDataStore; nothing here is global,
    so independent sessions never see each other's state.
    """

    def __init__(
        self,
        loader: ReferenceDataLoader,
        store: BookingDataStore,
        finalizer: ConfirmationFinalizer,
        bridge_factory: Callable[[BookingDataStore, ConfirmationFinalizer], PaymentIntentBridge],
        progress_mode: ProgressMode = ProgressMode.FIXED,
        offered_slots: tuple[str, ...] = DEFAULT_TIME_SLOTS,
        today: Callable[[], date] = date.today,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._loader = loader
        self._store = store
        self._finalizer = finalizer
        self._bridge = bridge_factory(store, finalizer)
        self._reference = ReferenceData()
        self._offered_slots = offered_slots
        self._today = today
        self._error: StepError | None = None
        self._controller = WizardController(store, self._step_context, progress_mode)
        self._logger = logging.getLogger(__name__)

    # -- state -------------------------------------------------------------

    @property
    def data(self) -> BookingData:
        return self._store.get()

    @property
    def controller(self) -> WizardController:
        return self._controller

    @property
    def reference(self) -> ReferenceData:
        return self._reference

    @property
    def bridge(self) -> PaymentIntentBridge:
        return self._bridge

    @property
    def finalizer(self) -> ConfirmationFinalizer:
        return self._finalizer

    @property
    def error(self) -> StepError | None:
        return self._error

    def selected_service(self) -> ServiceOffering | None:
        return self._reference.find_service(self.data.service_id)

    def _step_context(self) -> StepContext:
        return StepContext(
            stylists_available=bool(self._reference.stylists),
            reference_loaded=self._reference.loaded,
        )

    # -- reference data ----------------------------------------------------

    async def start(self) -> ReferenceData:
        try:
            self._reference = await self._loader.load()
        except ReferenceDataLoadFailure as e:
            self._set_error(ErrorKind.REFERENCE_DATA_LOAD, str(e), retryable=True)
            return self._reference

        self._clear_error(ErrorKind.REFERENCE_DATA_LOAD)
        return self._reference

    # -- step 1 ------------------------------------------------------------

    def select_service(self, service_id: str) -> BookingData:
        if self._reference.find_service(service_id) is None:
            raise FieldValidationError({"service_id": "Please select a valid service"})
        self._ensure_editable()
        if service_id != self.data.service_id and self._bridge.intent is not None:
            if self.data.payment_status in (PaymentStatus.PROCESSING, PaymentStatus.COMPLETED):
                raise PaymentPreconditionError("Payment is already under way.")
            # The prepared intent was priced for the old service
            self._bridge.discard_intent()
            self._clear_error(ErrorKind.PAYMENT_CONFIRMATION)

        # Auto-fill "any" so an empty stylist list does not block the step
        stylist_id = ANY_STYLIST if not self._reference.stylists else None
        return self._store.update(service_id=service_id, stylist_id=stylist_id)

    def select_stylist(self, stylist_id: str) -> BookingData:
        if stylist_id != ANY_STYLIST and self._reference.find_stylist(stylist_id) is None:
            raise FieldValidationError({"stylist_id": "Please select a valid stylist"})
        self._ensure_editable()
        return self._store.update(stylist_id=stylist_id)

    # -- step 2 ------------------------------------------------------------

    def update_details(
        self,
        *,
        appointment_date: date | None = None,
        time_slot: str | None = None,
        client_name: str | None = None,
        client_email: str | None = None,
        client_phone: str | None = None,
    ) -> BookingData:
        errors = validate_appointment_details(
            today=self._today(),
            appointment_date=appointment_date,
            time_slot=time_slot,
            client_name=client_name,
            client_email=client_email,
            client_phone=client_phone,
            offered_slots=self._offered_slots,
        )
        if errors:
            raise FieldValidationError(errors)
        self._ensure_editable()

        updates: dict[str, Any] = {}
        if appointment_date is not None:
            updates["appointment_date"] = appointment_date
            if appointment_date != self.data.appointment_date and time_slot is None:
                # A new date invalidates the previously picked slot
                updates["time_slot"] = None
        if time_slot is not None:
            updates["time_slot"] = time_slot or None
        for name, value in (
            ("client_name", client_name),
            ("client_email", client_email),
            ("client_phone", client_phone),
        ):
            if value is not None:
                updates[name] = value.strip()

        return self._store.update(**updates) if updates else self.data

    # -- step 3 ------------------------------------------------------------

    def update_preferences(
        self,
        *,
        special_requests: str | None = None,
        how_heard_about_us: str | None = None,
        email_confirmation: bool | None = None,
        sms_confirmation: bool | None = None,
    ) -> BookingData:
        if how_heard_about_us is not None:
            message = validate_how_heard(how_heard_about_us)
            if message:
                raise FieldValidationError({"how_heard_about_us": message})
        self._ensure_editable()

        updates = {
            name: value
            for name, value in (
                ("special_requests", special_requests),
                ("how_heard_about_us", how_heard_about_us),
                ("email_confirmation", email_confirmation),
                ("sms_confirmation", sms_confirmation),
            )
            if value is not None
        }
        return self._store.update(**updates) if updates else self.data

    # -- step 4 ------------------------------------------------------------

    def choose_payment_method(self, method: PaymentMethod) -> BookingData:
        self._ensure_editable()
        if self.data.payment_status in (PaymentStatus.PROCESSING, PaymentStatus.COMPLETED):
            raise PaymentPreconditionError("Payment is already under way.")
        updates: dict[str, Any] = {"payment_method": method}
        if method != self.data.payment_method:
            updates["payment_status"] = None
            self._clear_error(ErrorKind.PAYMENT_CONFIRMATION)
        if method == PaymentMethod.CASH and self._bridge.intent is not None:
            # An unused intent must not be confirmed later
            self._bridge.discard_intent()
        return self._store.update(**updates)

    # -- navigation --------------------------------------------------------

    def next(self) -> bool:
        return self._controller.next()

    def previous(self) -> bool:
        return self._controller.previous()

    def jump_to(self, step_id: int) -> bool:
        return self._controller.jump_to(step_id)

    async def advance(self) -> bool:
        """next(), then book a cash appointment as soon as the confirmation step is reached."""
        moved = self._controller.next()
        if (
            moved
            and self._controller.current_step == StepId.CONFIRMATION
            and self.data.payment_method == PaymentMethod.CASH
            and not self.data.is_confirmed
        ):
            await self.confirm_cash_booking()
        return moved

    # -- payment -----------------------------------------------------------

    async def prepare_payment(self) -> None:
        try:
            await self._bridge.create_intent(self.selected_service())
        except PaymentIntentCreationFailure as e:
            self._set_error(ErrorKind.PAYMENT_INTENT_CREATION, str(e), retryable=True)
            return
        self._clear_error(ErrorKind.PAYMENT_INTENT_CREATION)

    async def submit_payment(self, payment_method_token: str) -> PaymentOutcome | PaymentDeclined | None:
        if (
            self._controller.current_step != StepId.PAYMENT_PROCESSING
            or not self._controller.steps_ready_before(StepId.PAYMENT_PROCESSING)
        ):
            raise PaymentPreconditionError("Complete the previous steps before paying.")
        try:
            result = await self._bridge.confirm_payment(payment_method_token, self.selected_service())
        except PostPaymentFinalizationFailure as e:
            self._set_error(
                ErrorKind.POST_PAYMENT_FINALIZATION,
                "Payment processed but booking confirmation failed. Please contact us.",
                retryable=False,
                reference=e.payment_intent_id,
            )
            return None

        if isinstance(result, PaymentDeclined):
            self._set_error(ErrorKind.PAYMENT_CONFIRMATION, self._bridge.last_error or result.message, retryable=True)
        else:
            self._error = None
        return result

    def retry_payment(self) -> BookingData:
        self._bridge.retry()
        self._clear_error(ErrorKind.PAYMENT_CONFIRMATION)
        return self.data

    async def confirm_cash_booking(self) -> None:
        if self.data.payment_method != PaymentMethod.CASH:
            raise PaymentPreconditionError("Only cash bookings are confirmed without payment.")
        if self._controller.current_step != StepId.CONFIRMATION:
            raise PaymentPreconditionError("Cash bookings are confirmed from the confirmation step.")
        try:
            await self._finalizer.finalize(self.selected_service(), None)
        except BookingConfirmationFailure as e:
            self._set_error(ErrorKind.BOOKING_CONFIRMATION, str(e), retryable=True)
            return
        except FinalizationInProgressError:
            self._logger.info("Duplicate cash confirmation ignored", extra={"session_id": self.session_id})
            return
        self._clear_error(ErrorKind.BOOKING_CONFIRMATION)

    @property
    def finalization_state(self) -> FinalizationState:
        return self._finalizer.state

    # -- views -------------------------------------------------------------

    def summary(self) -> dict[str, Any]:
        data = self.data
        service = self.selected_service()
        stylist = self._reference.find_stylist(data.stylist_id)
        return {
            "service": {"name": service.name, "price": str(service.price)} if service else None,
            "stylist": stylist.name if stylist else None,
            "appointment_date": data.appointment_date.isoformat() if data.appointment_date else None,
            "time_slot": data.time_slot,
            "client_name": data.client_name or None,
        }

    def snapshot(self) -> dict[str, Any]:
        controller = self._controller
        return {
            "session_id": self.session_id,
            "current_step": controller.current_step,
            "progress_percentage": controller.progress_percentage(),
            "effective_total_steps": controller.effective_total_steps(),
            "can_proceed": controller.can_proceed(),
            "missing_fields": controller.missing_fields(),
            "terminal": controller.is_terminal(),
            "steps": [asdict(s) for s in controller.step_statuses()],
            "data": self.data,
            "summary": self.summary(),
            "finalization_state": self._finalizer.state.value,
            "error": {**asdict(self._error), "kind": self._error.kind.value} if self._error else None,
        }

    # -- helpers -----------------------------------------------------------

    def _ensure_editable(self) -> None:
        if self.data.is_confirmed or self._finalizer.state == FinalizationState.SUPPORT_REQUIRED:
            raise PaymentPreconditionError("This booking can no longer be changed.")

    def _set_error(self, kind: ErrorKind, message: str, *, retryable: bool, reference: str | None = None) -> None:
        self._error = StepError(
            kind=kind,
            message=message,
            retryable=retryable,
            action="retry" if retryable else "contact_support",
            reference=reference,
        )
        self._logger.warning(
            "Booking step error",
            extra={"session_id": self.session_id, "step": self._controller.current_step, "reason": kind.value},
        )

    def _clear_error(self, kind: ErrorKind) -> None:
        if self._error is not None and self._error.kind == kind:
            self._error = None
