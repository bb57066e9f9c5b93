"""Booking creation, staff edits and status lifecycle.

Creation and rescheduling re-run the availability engine inside the write
transaction that stores the row, so two clients that both saw a desk as free
cannot both get it.
"""

from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass
from typing import Optional

from coworking.domain.constraints import (
    BookingPolicy,
    CUSTOMER_CANCELLABLE_STATUSES,
    PRICE_MULTIPLIERS,
    can_transition,
    is_known_duration,
)
from coworking.domain.models import (
    TERMINAL_STATUSES,
    AvailabilityRequest,
    Booking,
    BookingStatus,
    WorkspaceType,
)
from coworking.repository.data_repository import DataRepository, ReservationConflictError
from coworking.services.availability_service import (
    AvailabilityService,
    AvailabilityValidationError,
    build_occupancy_matrix,
    evaluate_availability,
    find_free_desk,
    resolve_slot_span,
)
from coworking.utils.config import Settings, get_settings
from coworking.utils.logger import get_logger


logger = get_logger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class BookingError(Exception):
    """Base exception for booking workflow failures."""


class BookingValidationError(BookingError):
    """Raised when booking input is invalid."""


class BookingNotFoundError(BookingError):
    """Raised when a booking id does not exist."""


class SlotUnavailableError(BookingError):
    """Raised when the requested start slot has no free desk for the duration."""


class InvalidStatusTransitionError(BookingError):
    """Raised when a status change is not allowed from the current status."""


class BookingOwnershipError(BookingError):
    """Raised when a customer acts on a booking that is not theirs."""


@dataclass(frozen=True)
class BookingDraft:
    workspace_type: str
    date: str
    time_slot: str
    duration: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    customer_whatsapp: Optional[str] = None


@dataclass(frozen=True)
class BookingUpdate:
    """Staff edits to an existing booking; `None` keeps the stored value."""

    date: Optional[str] = None
    time_slot: Optional[str] = None
    duration: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_whatsapp: Optional[str] = None


def _or_current(value, current):
    return current if value is None else value


def calculate_price(unit_price: float, duration: str) -> float:
    multiplier = PRICE_MULTIPLIERS.get(duration)
    if multiplier is None:
        raise BookingValidationError(f"unknown duration '{duration}'")
    return round(unit_price * multiplier, 2)


def _validate_draft(draft: BookingDraft) -> None:
    if not draft.customer_name.strip():
        raise BookingValidationError("customer_name must be non-empty")
    if _EMAIL_PATTERN.fullmatch(draft.customer_email.strip()) is None:
        raise BookingValidationError("customer_email is not a valid e-mail address")
    if not is_known_duration(draft.duration):
        raise BookingValidationError(f"unknown duration '{draft.duration}'")


class BookingService:
    """Creates bookings against live availability and moves them through statuses."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        availability_service: Optional[AvailabilityService] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._availability_service = availability_service or AvailabilityService(
            repository=self._repository,
            settings=self._settings,
        )

    def _prepare(self, draft: BookingDraft) -> tuple[AvailabilityRequest, WorkspaceType, BookingPolicy]:
        _validate_draft(draft)
        request = AvailabilityRequest(
            workspace_type=draft.workspace_type,
            date=draft.date,
            duration=draft.duration,
        )
        try:
            workspace, policy = self._availability_service.validate_request(request)
        except AvailabilityValidationError as exc:
            raise BookingValidationError(str(exc)) from exc
        if draft.time_slot not in policy.slot_grid:
            raise BookingValidationError(f"time_slot '{draft.time_slot}' is not a bookable slot")
        return request, workspace, policy

    def _pick_desk(
        self,
        conn: sqlite3.Connection,
        draft: BookingDraft,
        request: AvailabilityRequest,
        policy: BookingPolicy,
        *,
        exclude_booking_id: Optional[int] = None,
    ) -> int:
        """Re-check availability on the open transaction and return a free desk."""
        slot_grid = list(policy.slot_grid)
        reservations = self._repository.list_active_reservations(
            workspace_type=draft.workspace_type,
            date=draft.date,
            statuses=policy.active_statuses,
            connection=conn,
            exclude_booking_id=exclude_booking_id,
        )
        result = evaluate_availability(request, policy, reservations)
        if result.fully_booked:
            raise SlotUnavailableError(
                f"no availability for {draft.duration} on {draft.date}; "
                "choose a different date or a shorter duration"
            )
        if draft.time_slot in result.infeasible_slots:
            raise SlotUnavailableError(
                f"time_slot '{draft.time_slot}' is unavailable for {draft.duration}"
            )

        matrix = build_occupancy_matrix(slot_grid, policy.total_desks, reservations)
        span = resolve_slot_span(draft.time_slot, result.required_hours, slot_grid)
        desk_number = find_free_desk(matrix, span, policy.total_desks)
        if desk_number is None:
            raise SlotUnavailableError(
                f"time_slot '{draft.time_slot}' is unavailable for {draft.duration}"
            )
        return desk_number

    def create_booking(
        self,
        draft: BookingDraft,
        *,
        initial_status: str = BookingStatus.PENDING.value,
    ) -> Booking:
        request, workspace, policy = self._prepare(draft)
        total_price = calculate_price(workspace.price, draft.duration)

        with self._repository.booking_transaction() as conn:
            desk_number = self._pick_desk(conn, draft, request, policy)
            try:
                booking_id = self._repository.insert_booking(
                    conn,
                    workspace_type=draft.workspace_type,
                    date=draft.date,
                    time_slot=draft.time_slot,
                    duration=draft.duration,
                    desk_number=desk_number,
                    status=initial_status,
                    customer_name=draft.customer_name.strip(),
                    customer_email=draft.customer_email.strip(),
                    customer_phone=draft.customer_phone,
                    customer_whatsapp=draft.customer_whatsapp,
                    total_price=total_price,
                )
            except ReservationConflictError as exc:
                raise SlotUnavailableError(str(exc)) from exc

        logger.info(
            (
                "Booking created | booking_id=%s | workspace_type=%s | date=%s | "
                "time_slot=%s | duration=%s | desk_number=%s | total_price=%.2f"
            ),
            booking_id,
            draft.workspace_type,
            draft.date,
            draft.time_slot,
            draft.duration,
            desk_number,
            total_price,
        )
        return self.get_booking(booking_id)

    def update_booking(self, booking_id: int, changes: BookingUpdate) -> Booking:
        """Apply staff edits; a new date, slot or duration is re-checked like a new booking."""
        booking = self.get_booking(booking_id)
        if BookingStatus(booking.status) in TERMINAL_STATUSES:
            raise InvalidStatusTransitionError(
                f"booking {booking_id} is {booking.status} and can no longer be edited"
            )

        draft = BookingDraft(
            workspace_type=booking.workspace_type,
            date=_or_current(changes.date, booking.date),
            time_slot=_or_current(changes.time_slot, booking.time_slot),
            duration=_or_current(changes.duration, booking.duration),
            customer_name=_or_current(changes.customer_name, booking.customer_name),
            customer_email=_or_current(changes.customer_email, booking.customer_email),
            customer_phone=_or_current(changes.customer_phone, booking.customer_phone),
            customer_whatsapp=_or_current(changes.customer_whatsapp, booking.customer_whatsapp),
        )
        request, workspace, policy = self._prepare(draft)
        rescheduled = (draft.date, draft.time_slot, draft.duration) != (
            booking.date,
            booking.time_slot,
            booking.duration,
        )
        total_price = (
            calculate_price(workspace.price, draft.duration)
            if draft.duration != booking.duration
            else booking.total_price
        )

        with self._repository.booking_transaction() as conn:
            desk_number = booking.desk_number
            if rescheduled:
                desk_number = self._pick_desk(
                    conn,
                    draft,
                    request,
                    policy,
                    exclude_booking_id=booking_id,
                )
            try:
                self._repository.update_booking(
                    conn,
                    booking_id,
                    date=draft.date,
                    time_slot=draft.time_slot,
                    duration=draft.duration,
                    desk_number=desk_number,
                    customer_name=draft.customer_name.strip(),
                    customer_email=draft.customer_email.strip(),
                    customer_phone=draft.customer_phone,
                    customer_whatsapp=draft.customer_whatsapp,
                    total_price=total_price,
                )
            except ReservationConflictError as exc:
                raise SlotUnavailableError(str(exc)) from exc

        logger.info(
            (
                "Booking updated | booking_id=%s | date=%s | time_slot=%s | duration=%s | "
                "desk_number=%s | rescheduled=%s"
            ),
            booking_id,
            draft.date,
            draft.time_slot,
            draft.duration,
            desk_number,
            rescheduled,
        )
        return self.get_booking(booking_id)

    def get_booking(self, booking_id: int) -> Booking:
        booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"booking {booking_id} not found")
        return booking

    def list_bookings(
        self,
        *,
        status: Optional[str] = None,
        workspace_type: Optional[str] = None,
        date: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> list[Booking]:
        if status is not None and status not in {item.value for item in BookingStatus}:
            raise BookingValidationError(f"unknown status '{status}'")
        return self._repository.list_bookings(
            status=status,
            workspace_type=workspace_type,
            date=date,
            customer_email=customer_email,
        )

    def update_status(self, booking_id: int, new_status: str) -> Booking:
        if new_status not in {item.value for item in BookingStatus}:
            raise BookingValidationError(f"unknown status '{new_status}'")
        booking = self.get_booking(booking_id)
        if booking.status == new_status:
            return booking
        if not can_transition(booking.status, new_status):
            raise InvalidStatusTransitionError(
                f"cannot move booking {booking_id} from {booking.status} to {new_status}"
            )
        self._repository.update_booking_status(booking_id, new_status)
        logger.info(
            "Booking status updated | booking_id=%s | from=%s | to=%s",
            booking_id,
            booking.status,
            new_status,
        )
        return self.get_booking(booking_id)

    def cancel_for_customer(self, booking_id: int, customer_email: str) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.customer_email.strip().lower() != customer_email.strip().lower():
            raise BookingOwnershipError(f"booking {booking_id} does not belong to this customer")
        if booking.status not in CUSTOMER_CANCELLABLE_STATUSES:
            raise InvalidStatusTransitionError(
                f"booking {booking_id} can no longer be cancelled (status={booking.status})"
            )
        return self.update_status(booking_id, BookingStatus.CANCELLED.value)
