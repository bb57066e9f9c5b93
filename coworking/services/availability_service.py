"""Desk-availability engine and the service that feeds it stored bookings.

The module-level functions are pure: they take a slot grid, a desk count and
already-fetched reservations, and never raise on odd data. Anomalies degrade to
over-blocking:

* an unknown duration code occupies one slot,
* a start slot missing from the grid occupies nothing and can never be booked,
* a desk number outside ``[1, total_desks]`` blocks every desk in its slots.

``AvailabilityService`` does input validation and the repository read, then
hands the snapshot to the engine.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, Optional, Sequence

from coworking.domain.constraints import (
    DAY_MULTIPLES,
    SHORT_DURATION_HOURS,
    BookingPolicy,
    validate_booking_policy,
)
from coworking.domain.models import AvailabilityRequest, AvailabilityResult, Reservation, WorkspaceType
from coworking.repository.data_repository import DataRepository
from coworking.utils.config import Settings, get_settings
from coworking.utils.logger import get_logger


logger = get_logger(__name__)

OccupancyMatrix = dict[str, list[bool]]


class AvailabilityError(Exception):
    """Base exception for availability lookups."""


class AvailabilityValidationError(AvailabilityError):
    """Raised when an availability request is malformed."""


class WorkspaceTypeNotFoundError(AvailabilityError):
    """Raised when the workspace type is unknown or not bookable."""


def resolve_duration_hours(duration: str, slot_count: int) -> int:
    """Return how many contiguous slots a booking of `duration` occupies."""
    if duration in SHORT_DURATION_HOURS:
        return SHORT_DURATION_HOURS[duration]
    if duration in DAY_MULTIPLES:
        return slot_count * DAY_MULTIPLES[duration]
    return 1


def resolve_slot_span(start_slot: str, hours: int, slot_grid: Sequence[str]) -> list[str]:
    """Return the grid labels covered by a booking starting at `start_slot`.

    An empty list means the start slot is not on the grid. A list shorter than
    `hours` means the booking runs past closing time.
    """
    try:
        start_index = list(slot_grid).index(start_slot)
    except ValueError:
        return []
    return list(slot_grid[start_index : start_index + max(hours, 0)])


def _is_valid_desk(desk_number: Optional[int], total_desks: int) -> bool:
    return desk_number is not None and 1 <= desk_number <= total_desks


def build_occupancy_matrix(
    slot_grid: Sequence[str],
    total_desks: int,
    reservations: Iterable[Reservation],
) -> OccupancyMatrix:
    """Fold reservations into a per-slot list of free (True) desk flags."""
    matrix: OccupancyMatrix = {slot: [True] * total_desks for slot in slot_grid}
    slot_count = len(slot_grid)

    for reservation in reservations:
        hours = resolve_duration_hours(reservation.duration, slot_count)
        span = resolve_slot_span(reservation.time_slot, hours, slot_grid)
        assigned = _is_valid_desk(reservation.desk_number, total_desks)
        for slot in span:
            desks = matrix[slot]
            if assigned:
                desks[reservation.desk_number - 1] = False  # type: ignore[operator]
            else:
                # Unassigned bookings could land on any desk.
                for index in range(total_desks):
                    desks[index] = False
    return matrix


def _desk_free_for_span(matrix: OccupancyMatrix, span: Sequence[str], desk_index: int) -> bool:
    for slot in span:
        desks = matrix.get(slot)
        if desks is None or desk_index >= len(desks) or not desks[desk_index]:
            return False
    return True


def find_free_desk(
    matrix: OccupancyMatrix,
    span: Sequence[str],
    total_desks: int,
) -> Optional[int]:
    """Return the lowest desk number free across the whole span, if any."""
    if not span:
        return None
    for desk_index in range(total_desks):
        if _desk_free_for_span(matrix, span, desk_index):
            return desk_index + 1
    return None


def find_infeasible_slots(
    matrix: OccupancyMatrix,
    slot_grid: Sequence[str],
    required_hours: int,
    total_desks: int,
) -> list[str]:
    """Return start slots, in grid order, where no desk fits the request."""
    infeasible: list[str] = []
    for start_slot in slot_grid:
        span = resolve_slot_span(start_slot, required_hours, slot_grid)
        if len(span) < required_hours:
            infeasible.append(start_slot)
            continue
        if find_free_desk(matrix, span, total_desks) is None:
            infeasible.append(start_slot)
    return infeasible


def evaluate_availability(
    request: AvailabilityRequest,
    policy: BookingPolicy,
    reservations: Iterable[Reservation],
) -> AvailabilityResult:
    """Run the full engine for one request against a reservation snapshot."""
    slot_grid = list(policy.slot_grid)
    required_hours = resolve_duration_hours(request.duration, len(slot_grid))
    matrix = build_occupancy_matrix(slot_grid, policy.total_desks, reservations)
    infeasible = find_infeasible_slots(matrix, slot_grid, required_hours, policy.total_desks)
    return AvailabilityResult(
        workspace_type=request.workspace_type,
        date=request.date,
        duration=request.duration,
        required_hours=required_hours,
        total_desks=policy.total_desks,
        slot_grid=slot_grid,
        infeasible_slots=infeasible,
    )


def _validate_date(date_value: str, pattern: str) -> None:
    # Occupancy is keyed on the stored string, so only zero-padded ISO dates are accepted.
    if re.fullmatch(pattern, date_value) is None:
        raise AvailabilityValidationError("date must follow YYYY-MM-DD format")
    try:
        datetime.strptime(date_value, "%Y-%m-%d")
    except ValueError as exc:
        raise AvailabilityValidationError(f"date '{date_value}' is not a calendar date") from exc


class AvailabilityService:
    """Reads bookings for a workspace-day and evaluates open start slots."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    @property
    def slot_grid(self) -> tuple[str, ...]:
        return self._settings.slot_grid

    def list_workspace_types(self) -> list[WorkspaceType]:
        return self._repository.list_workspace_types(active_only=True)

    def resolve_workspace_type(self, workspace_type: str) -> WorkspaceType:
        workspace = self._repository.get_workspace_type(workspace_type)
        if workspace is None or not workspace.is_active:
            raise WorkspaceTypeNotFoundError(f"workspace type '{workspace_type}' not found")
        return workspace

    def policy_for(self, workspace: WorkspaceType) -> BookingPolicy:
        policy = BookingPolicy(
            slot_grid=self._settings.slot_grid,
            total_desks=workspace.total_desks or self._settings.default_total_desks,
            active_statuses=self._settings.active_booking_statuses,
        )
        try:
            validate_booking_policy(policy)
        except ValueError as exc:
            raise AvailabilityValidationError(str(exc)) from exc
        return policy

    def validate_request(self, request: AvailabilityRequest) -> tuple[WorkspaceType, BookingPolicy]:
        if not request.workspace_type.strip():
            raise AvailabilityValidationError("workspace_type must be non-empty")
        if not request.duration.strip():
            raise AvailabilityValidationError("duration must be non-empty")
        _validate_date(request.date, self._settings.date_regex)
        workspace = self.resolve_workspace_type(request.workspace_type)
        return workspace, self.policy_for(workspace)

    def check_availability(
        self,
        *,
        workspace_type: str,
        date: str,
        duration: str,
    ) -> AvailabilityResult:
        request = AvailabilityRequest(
            workspace_type=workspace_type,
            date=date,
            duration=duration,
        )
        _, policy = self.validate_request(request)
        reservations = self._repository.list_active_reservations(
            workspace_type=workspace_type,
            date=date,
            statuses=policy.active_statuses,
        )
        result = evaluate_availability(request, policy, reservations)
        logger.info(
            (
                "Availability evaluated | workspace_type=%s | date=%s | duration=%s | "
                "required_hours=%s | reservations=%s | infeasible=%s/%s"
            ),
            workspace_type,
            date,
            duration,
            result.required_hours,
            len(reservations),
            len(result.infeasible_slots),
            len(result.slot_grid),
        )
        return result
