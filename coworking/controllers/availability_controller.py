"""HTTP controller layer for the workspace catalogue and slot availability."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from coworking.controllers.dependencies import get_availability_service
from coworking.domain.constraints import DURATION_LABELS, PRICE_MULTIPLIERS
from coworking.services.availability_service import (
    AvailabilityService,
    AvailabilityValidationError,
    WorkspaceTypeNotFoundError,
)
from coworking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["availability"])


class WorkspaceTypeResponse(BaseModel):
    name: str
    description: str
    price: float = Field(ge=0.0)
    total_desks: int = Field(gt=0)


class DurationOptionResponse(BaseModel):
    value: str
    label: str
    multiplier: int = Field(gt=0)


class SlotCatalogueResponse(BaseModel):
    slot_grid: list[str]
    durations: list[DurationOptionResponse]


class AvailabilityCheckRequest(BaseModel):
    workspace_type: str = Field(min_length=1)
    date: date
    duration: str = Field(min_length=1)


class AvailabilityCheckResponse(BaseModel):
    workspace_type: str
    date: date
    duration: str
    required_hours: int = Field(ge=1)
    total_desks: int = Field(gt=0)
    infeasible_slots: list[str]
    available_slots: list[str]
    fully_booked: bool


@router.get(
    "/workspace_types",
    response_model=list[WorkspaceTypeResponse],
    status_code=status.HTTP_200_OK,
)
async def list_workspace_types(
    service: AvailabilityService = Depends(get_availability_service),
) -> list[WorkspaceTypeResponse]:
    return [
        WorkspaceTypeResponse(
            name=item.name,
            description=item.description,
            price=item.price,
            total_desks=item.total_desks,
        )
        for item in service.list_workspace_types()
    ]


@router.get("/slots", response_model=SlotCatalogueResponse, status_code=status.HTTP_200_OK)
async def slot_catalogue(
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotCatalogueResponse:
    return SlotCatalogueResponse(
        slot_grid=list(service.slot_grid),
        durations=[
            DurationOptionResponse(
                value=value,
                label=DURATION_LABELS[value],
                multiplier=multiplier,
            )
            for value, multiplier in PRICE_MULTIPLIERS.items()
        ],
    )


@router.post(
    "/availability",
    response_model=AvailabilityCheckResponse,
    status_code=status.HTTP_200_OK,
)
async def check_availability(
    payload: AvailabilityCheckRequest,
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityCheckResponse:
    """Return the start slots that cannot take a booking of this duration."""
    try:
        result = service.check_availability(
            workspace_type=payload.workspace_type,
            date=payload.date.isoformat(),
            duration=payload.duration,
        )
        return AvailabilityCheckResponse(
            workspace_type=result.workspace_type,
            date=payload.date,
            duration=result.duration,
            required_hours=result.required_hours,
            total_desks=result.total_desks,
            infeasible_slots=result.infeasible_slots,
            available_slots=result.available_slots,
            fully_booked=result.fully_booked,
        )
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
        logger.exception("Unexpected availability failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check availability",
        ) from exc
