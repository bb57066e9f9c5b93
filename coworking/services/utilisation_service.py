"""Occupancy summaries for staff, derived from the desk-availability matrix."""

from __future__ import annotations

from typing import Any, Optional

import pandas as pd

from coworking.domain.models import AvailabilityRequest
from coworking.repository.data_repository import DataRepository
from coworking.services.availability_service import AvailabilityService, build_occupancy_matrix
from coworking.utils.config import Settings, get_settings
from coworking.utils.logger import get_logger


logger = get_logger(__name__)


def matrix_to_frame(matrix: dict[str, list[bool]]) -> pd.DataFrame:
    """Long frame with one row per (slot, desk) and an `occupied` flag."""
    rows = [
        {
            "time_slot": slot,
            "slot_index": slot_index,
            "desk_number": desk_index + 1,
            "occupied": int(not free),
        }
        for slot_index, (slot, desks) in enumerate(matrix.items())
        for desk_index, free in enumerate(desks)
    ]
    return pd.DataFrame(rows, columns=["time_slot", "slot_index", "desk_number", "occupied"])


def summarise_matrix(matrix: dict[str, list[bool]], total_desks: int) -> dict[str, Any]:
    frame = matrix_to_frame(matrix)
    if frame.empty:
        return {
            "occupancy_rate": 0.0,
            "slots": [],
            "desks": [],
        }

    by_slot = (
        frame.groupby(["slot_index", "time_slot"], sort=True)["occupied"]
        .sum()
        .reset_index()
    )
    by_slot["free_desks"] = total_desks - by_slot["occupied"]
    by_slot["occupancy_rate"] = by_slot["occupied"] / total_desks

    by_desk = frame.groupby("desk_number", sort=True)["occupied"].mean().reset_index()

    return {
        "occupancy_rate": float(frame["occupied"].mean()),
        "slots": [
            {
                "time_slot": str(row.time_slot),
                "occupied_desks": int(row.occupied),
                "free_desks": int(row.free_desks),
                "occupancy_rate": float(row.occupancy_rate),
            }
            for row in by_slot.itertuples(index=False)
        ],
        "desks": [
            {
                "desk_number": int(row.desk_number),
                "occupancy_rate": float(row.occupied),
            }
            for row in by_desk.itertuples(index=False)
        ],
    }


class UtilisationService:
    """Per-slot and per-desk occupancy for one workspace-day."""

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

    def get_utilisation(self, *, workspace_type: str, date: str) -> dict[str, Any]:
        # Duration only matters for feasibility, not for the occupancy snapshot.
        request = AvailabilityRequest(workspace_type=workspace_type, date=date, duration="1-hour")
        _, policy = self._availability_service.validate_request(request)
        reservations = self._repository.list_active_reservations(
            workspace_type=workspace_type,
            date=date,
            statuses=policy.active_statuses,
        )
        matrix = build_occupancy_matrix(policy.slot_grid, policy.total_desks, reservations)
        summary = summarise_matrix(matrix, policy.total_desks)
        logger.info(
            "Utilisation computed | workspace_type=%s | date=%s | occupancy_rate=%.4f",
            workspace_type,
            date,
            summary["occupancy_rate"],
        )
        return {
            "workspace_type": workspace_type,
            "date": date,
            "total_desks": policy.total_desks,
            "active_bookings": len(reservations),
            **summary,
        }
