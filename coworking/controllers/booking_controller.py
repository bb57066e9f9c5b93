"""HTTP controller layer for customer bookings."""

from __future__ import annotations

from datetime import date
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from coworking.controllers.dependencies import get_booking_service
from coworking.domain.models import Booking, BookingStatus
from coworking.services.availability_service import WorkspaceTypeNotFoundError
from coworking.services.booking_service import (
    BookingDraft,
    BookingNotFoundError,
    BookingOwnershipError,
    BookingService,
    BookingValidationError,
    InvalidStatusTransitionError,
    SlotUnavailableError,
)
from coworking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


class CreateBookingRequest(BaseModel):
    workspace_type: str = Field(min_length=1)
    date: date
    time_slot: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    customer_name: str = Field(min_length=1)
    customer_email: str = Field(min_length=3)
    customer_phone: str | None = None
    customer_whatsapp: str | None = None


class CancelBookingRequest(BaseModel):
    customer_email: str = Field(min_length=3)


class BookingResponse(BaseModel):
    booking_id: int = Field(gt=0)
    workspace_type: str
    date: date
    time_slot: str
    duration: str
    desk_number: int | None = Field(default=None, gt=0)
    status: str
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    customer_whatsapp: str | None = None
    total_price: float = Field(ge=0.0)
    created_at: str
    updated_at: str


def to_booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        booking_id=booking.booking_id,
        workspace_type=booking.workspace_type,
        date=booking.date,
        time_slot=booking.time_slot,
        duration=booking.duration,
        desk_number=booking.desk_number,
        status=booking.status,
        customer_name=booking.customer_name,
        customer_email=booking.customer_email,
        customer_phone=booking.customer_phone,
        customer_whatsapp=booking.customer_whatsapp,
        total_price=booking.total_price,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


def to_booking_draft(payload: CreateBookingRequest) -> BookingDraft:
    return BookingDraft(
        workspace_type=payload.workspace_type,
        date=payload.date.isoformat(),
        time_slot=payload.time_slot,
        duration=payload.duration,
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        customer_whatsapp=payload.customer_whatsapp,
    )


def raise_for_booking_error(exc: Exception, fallback_detail: str) -> NoReturn:
    """Translate booking workflow exceptions into HTTP errors."""
    if isinstance(exc, BookingValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, (BookingNotFoundError, WorkspaceTypeNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, BookingOwnershipError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    if isinstance(exc, (SlotUnavailableError, InvalidStatusTransitionError)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    logger.exception(fallback_detail)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=fallback_detail,
    ) from exc


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Reserve a desk; rejected with 409 when the start slot has no free desk."""
    try:
        booking = service.create_booking(to_booking_draft(payload))
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to create booking")
    return to_booking_response(booking)


@router.get(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.get_booking(booking_id)
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to load booking")
    return to_booking_response(booking)


@router.post(
    "/bookings/{booking_id}/cancel",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def cancel_booking(
    booking_id: int,
    payload: CancelBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.cancel_for_customer(booking_id, payload.customer_email)
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to cancel booking")
    return to_booking_response(booking)


@router.get(
    "/bookings",
    response_model=list[BookingResponse],
    status_code=status.HTTP_200_OK,
)
async def list_customer_bookings(
    customer_email: str = Query(min_length=3),
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    service: BookingService = Depends(get_booking_service),
) -> list[BookingResponse]:
    """A customer's own bookings, looked up by the e-mail they booked with."""
    try:
        bookings = service.list_bookings(
            status=booking_status.value if booking_status is not None else None,
            customer_email=customer_email.strip(),
        )
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to list bookings")
    return [to_booking_response(booking) for booking in bookings]
