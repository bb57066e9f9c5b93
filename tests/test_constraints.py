"""Tests for booking policy validation and status transition rules."""

from __future__ import annotations

import pytest

from coworking.domain.constraints import (
    BookingPolicy,
    can_transition,
    is_known_duration,
    validate_booking_policy,
)


def valid_policy(**overrides) -> BookingPolicy:
    """Return a valid baseline BookingPolicy, optionally overriding fields."""
    defaults = {
        "slot_grid": ("08:00", "09:00", "10:00"),
        "total_desks": 3,
        "active_statuses": ("pending", "confirmed", "code_sent"),
    }
    defaults.update(overrides)
    return BookingPolicy(**defaults)


# --- Baseline pass ---

def test_valid_policy_passes() -> None:
    validate_booking_policy(valid_policy())


def test_single_desk_single_slot_passes() -> None:
    """Smallest bookable inventory must pass."""
    validate_booking_policy(valid_policy(slot_grid=("09:00",), total_desks=1))


# --- slot_grid ---

def test_empty_slot_grid_raises() -> None:
    with pytest.raises(ValueError):
        validate_booking_policy(valid_policy(slot_grid=()))


def test_duplicate_slot_labels_raise() -> None:
    with pytest.raises(ValueError):
        validate_booking_policy(valid_policy(slot_grid=("08:00", "09:00", "08:00")))


# --- total_desks ---

def test_zero_desks_raises() -> None:
    with pytest.raises(ValueError):
        validate_booking_policy(valid_policy(total_desks=0))


def test_negative_desks_raises() -> None:
    with pytest.raises(ValueError):
        validate_booking_policy(valid_policy(total_desks=-2))


# --- active_statuses ---

def test_empty_active_statuses_raise() -> None:
    with pytest.raises(ValueError):
        validate_booking_policy(valid_policy(active_statuses=()))


def test_unknown_active_status_raises() -> None:
    with pytest.raises(ValueError):
        validate_booking_policy(valid_policy(active_statuses=("pending", "archived")))


def test_terminal_status_cannot_be_active() -> None:
    with pytest.raises(ValueError):
        validate_booking_policy(valid_policy(active_statuses=("pending", "cancelled")))


# --- Durations ---

@pytest.mark.parametrize(
    "duration",
    ["1-hour", "2-hours", "4-hours", "1-day", "1-week", "1-month"],
)
def test_catalogue_durations_are_known(duration: str) -> None:
    assert is_known_duration(duration)


def test_unlisted_duration_is_unknown() -> None:
    assert not is_known_duration("3-hours")


# --- Status transitions ---

def test_pending_can_be_confirmed() -> None:
    assert can_transition("pending", "confirmed")


def test_code_sent_can_be_confirmed() -> None:
    assert can_transition("code_sent", "confirmed")


def test_confirmed_can_only_be_cancelled() -> None:
    assert can_transition("confirmed", "cancelled")
    assert not can_transition("confirmed", "pending")
    assert not can_transition("confirmed", "rejected")


def test_terminal_statuses_have_no_exits() -> None:
    for terminal in ("rejected", "cancelled"):
        for target in ("pending", "code_sent", "confirmed", "rejected", "cancelled"):
            assert not can_transition(terminal, target)


def test_unknown_current_status_has_no_exits() -> None:
    assert not can_transition("archived", "confirmed")
