"""Domain models for desk availability and bookings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DurationCode(str, Enum):
    ONE_HOUR = "1-hour"
    TWO_HOURS = "2-hours"
    FOUR_HOURS = "4-hours"
    ONE_DAY = "1-day"
    ONE_WEEK = "1-week"
    ONE_MONTH = "1-month"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CODE_SENT = "code_sent"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({BookingStatus.REJECTED, BookingStatus.CANCELLED})


@dataclass(frozen=True)
class WorkspaceType:
    name: str
    description: str
    price: float
    total_desks: int
    is_active: bool = True


@dataclass(frozen=True)
class Reservation:
    """Occupancy projection of an existing booking."""

    time_slot: str
    duration: str
    desk_number: Optional[int] = None


@dataclass(frozen=True)
class AvailabilityRequest:
    workspace_type: str
    date: str
    duration: str


@dataclass(frozen=True)
class AvailabilityResult:
    workspace_type: str
    date: str
    duration: str
    required_hours: int
    total_desks: int
    slot_grid: list[str]
    infeasible_slots: list[str]

    @property
    def available_slots(self) -> list[str]:
        blocked = set(self.infeasible_slots)
        return [slot for slot in self.slot_grid if slot not in blocked]

    @property
    def fully_booked(self) -> bool:
        return len(self.infeasible_slots) == len(self.slot_grid)


@dataclass(frozen=True)
class Booking:
    booking_id: int
    workspace_type: str
    date: str
    time_slot: str
    duration: str
    desk_number: Optional[int]
    status: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str]
    customer_whatsapp: Optional[str]
    total_price: float
    created_at: str
    updated_at: str

    def to_reservation(self) -> Reservation:
        return Reservation(
            time_slot=self.time_slot,
            duration=self.duration,
            desk_number=self.desk_number,
        )
