"""Controller layer for staff login, booking administration and utilisation."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from coworking.controllers.booking_controller import (
    BookingResponse,
    CreateBookingRequest,
    raise_for_booking_error,
    to_booking_draft,
    to_booking_response,
)
from coworking.controllers.dependencies import (
    bearer_scheme,
    get_auth_service,
    get_booking_service,
    get_utilisation_service,
    require_admin,
)
from coworking.domain.models import BookingStatus
from coworking.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from coworking.services.availability_service import (
    AvailabilityValidationError,
    WorkspaceTypeNotFoundError,
)
from coworking.services.booking_service import BookingService, BookingUpdate
from coworking.services.utilisation_service import UtilisationService
from coworking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["admin"])


class LoginRequest(BaseModel):
    admin_token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UpdateStatusRequest(BaseModel):
    status: BookingStatus


class UpdateBookingRequest(BaseModel):
    booking_date: Optional[date] = Field(default=None, alias="date")
    time_slot: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[str] = Field(default=None, min_length=1)
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_email: Optional[str] = Field(default=None, min_length=3)
    customer_phone: Optional[str] = None
    customer_whatsapp: Optional[str] = None


class SlotUtilisationRow(BaseModel):
    time_slot: str
    occupied_desks: int = Field(ge=0)
    free_desks: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0, le=1.0)


class DeskUtilisationRow(BaseModel):
    desk_number: int = Field(gt=0)
    occupancy_rate: float = Field(ge=0.0, le=1.0)


class UtilisationResponse(BaseModel):
    workspace_type: str
    date: date
    total_desks: int = Field(gt=0)
    active_bookings: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0, le=1.0)
    slots: list[SlotUtilisationRow]
    desks: list[DeskUtilisationRow]


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        bearer = auth_service.login(payload.admin_token)
        return LoginResponse(access_token=bearer)
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if credentials is not None:
        auth_service.logout(credentials.credentials)


@router.get(
    "/admin/bookings",
    response_model=list[BookingResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def list_bookings(
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    workspace_type: Optional[str] = Query(default=None),
    booking_date: Optional[date] = Query(default=None, alias="date"),
    customer_email: Optional[str] = Query(default=None),
    service: BookingService = Depends(get_booking_service),
) -> list[BookingResponse]:
    try:
        bookings = service.list_bookings(
            status=booking_status.value if booking_status is not None else None,
            workspace_type=workspace_type,
            date=booking_date.isoformat() if booking_date is not None else None,
            customer_email=customer_email,
        )
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to list bookings")
    return [to_booking_response(booking) for booking in bookings]


@router.post(
    "/admin/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_booking_for_client(
    payload: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Staff-created bookings go through the same availability check."""
    try:
        booking = service.create_booking(to_booking_draft(payload))
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to create booking")
    return to_booking_response(booking)


@router.patch(
    "/admin/bookings/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def update_booking(
    booking_id: int,
    payload: UpdateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Edit schedule or customer details; a moved booking is re-checked for a free desk."""
    changes = BookingUpdate(
        date=payload.booking_date.isoformat() if payload.booking_date is not None else None,
        time_slot=payload.time_slot,
        duration=payload.duration,
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        customer_whatsapp=payload.customer_whatsapp,
    )
    try:
        booking = service.update_booking(booking_id, changes)
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to update booking")
    return to_booking_response(booking)


@router.post(
    "/admin/bookings/{booking_id}/status",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def update_booking_status(
    booking_id: int,
    payload: UpdateStatusRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.update_status(booking_id, payload.status.value)
    except Exception as exc:
        raise_for_booking_error(exc, "Failed to update booking status")
    return to_booking_response(booking)


@router.get(
    "/admin/utilisation",
    response_model=UtilisationResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def get_utilisation(
    workspace_type: str = Query(min_length=1),
    booking_date: date = Query(alias="date"),
    service: UtilisationService = Depends(get_utilisation_service),
) -> UtilisationResponse:
    try:
        result = service.get_utilisation(
            workspace_type=workspace_type,
            date=booking_date.isoformat(),
        )
        return UtilisationResponse(**result)
    except AvailabilityValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except WorkspaceTypeNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected utilisation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute utilisation",
        ) from exc
