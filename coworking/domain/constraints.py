"""Domain-level booking policy tables and validation rules."""

from __future__ import annotations

from dataclasses import dataclass

from coworking.domain.models import TERMINAL_STATUSES, BookingStatus, DurationCode


# Fixed hour counts for the short codes; day-based codes scale with the grid.
SHORT_DURATION_HOURS: dict[str, int] = {
    DurationCode.ONE_HOUR.value: 1,
    DurationCode.TWO_HOURS.value: 2,
    DurationCode.FOUR_HOURS.value: 4,
}

DAY_MULTIPLES: dict[str, int] = {
    DurationCode.ONE_DAY.value: 1,
    DurationCode.ONE_WEEK.value: 7,
    DurationCode.ONE_MONTH.value: 30,
}

PRICE_MULTIPLIERS: dict[str, int] = {
    DurationCode.ONE_HOUR.value: 1,
    DurationCode.TWO_HOURS.value: 2,
    DurationCode.FOUR_HOURS.value: 4,
    DurationCode.ONE_DAY.value: 1,
    DurationCode.ONE_WEEK.value: 7,
    DurationCode.ONE_MONTH.value: 30,
}

DURATION_LABELS: dict[str, str] = {
    DurationCode.ONE_HOUR.value: "1 Hour",
    DurationCode.TWO_HOURS.value: "2 Hours",
    DurationCode.FOUR_HOURS.value: "4 Hours",
    DurationCode.ONE_DAY.value: "1 Day",
    DurationCode.ONE_WEEK.value: "1 Week",
    DurationCode.ONE_MONTH.value: "1 Month",
}

ALLOWED_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    BookingStatus.PENDING.value: frozenset(
        {
            BookingStatus.CODE_SENT.value,
            BookingStatus.CONFIRMED.value,
            BookingStatus.REJECTED.value,
            BookingStatus.CANCELLED.value,
        }
    ),
    BookingStatus.CODE_SENT.value: frozenset(
        {
            BookingStatus.CONFIRMED.value,
            BookingStatus.REJECTED.value,
            BookingStatus.CANCELLED.value,
        }
    ),
    BookingStatus.CONFIRMED.value: frozenset({BookingStatus.CANCELLED.value}),
    BookingStatus.REJECTED.value: frozenset(),
    BookingStatus.CANCELLED.value: frozenset(),
}

CUSTOMER_CANCELLABLE_STATUSES = frozenset(
    {BookingStatus.PENDING.value, BookingStatus.CODE_SENT.value}
)


@dataclass(frozen=True)
class BookingPolicy:
    slot_grid: tuple[str, ...]
    total_desks: int
    active_statuses: tuple[str, ...]


def validate_booking_policy(policy: BookingPolicy) -> None:
    if not policy.slot_grid:
        raise ValueError("slot_grid must contain at least one slot")
    if len(set(policy.slot_grid)) != len(policy.slot_grid):
        raise ValueError("slot_grid labels must be unique")
    if policy.total_desks <= 0:
        raise ValueError("total_desks must be > 0")
    if not policy.active_statuses:
        raise ValueError("active_statuses must not be empty")
    known_statuses = {status.value for status in BookingStatus}
    for status in policy.active_statuses:
        if status not in known_statuses:
            raise ValueError(f"unknown booking status '{status}' in active_statuses")
        if BookingStatus(status) in TERMINAL_STATUSES:
            raise ValueError(f"terminal status '{status}' cannot count as active")


def is_known_duration(duration: str) -> bool:
    return duration in PRICE_MULTIPLIERS


def can_transition(current_status: str, new_status: str) -> bool:
    return new_status in ALLOWED_STATUS_TRANSITIONS.get(current_status, frozenset())
