"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_SLOT_GRID: tuple[str, ...] = (
    "08:00 AM",
    "09:00 AM",
    "10:00 AM",
    "11:00 AM",
    "12:00 PM",
    "01:00 PM",
    "02:00 PM",
    "03:00 PM",
    "04:00 PM",
    "05:00 PM",
)

DEFAULT_WORKSPACE_TYPES: tuple[tuple[str, str, float, int], ...] = (
    ("Hot Desk", "Open-plan desk, first come first served", 50.0, 6),
    ("Dedicated Desk", "Fixed desk in the quiet zone", 80.0, 4),
    ("Private Office", "Lockable office for small teams", 200.0, 2),
    ("Meeting Room", "Bookable room with screen and whiteboard", 150.0, 1),
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_slot_grid() -> tuple[str, ...]:
    raw = os.getenv("SLOT_GRID")
    if not raw:
        return DEFAULT_SLOT_GRID
    labels = tuple(label.strip() for label in raw.split(",") if label.strip())
    return labels or DEFAULT_SLOT_GRID


@dataclass(frozen=True)
class Settings:
    app_name: str = "Coworking Booking Service"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    database_path: Path = PROJECT_ROOT / "data" / "coworking.db"
    admin_token: str | None = None

    slot_grid: tuple[str, ...] = DEFAULT_SLOT_GRID
    default_total_desks: int = 6
    active_booking_statuses: tuple[str, ...] = ("pending", "confirmed", "code_sent")
    date_regex: str = r"^\d{4}-\d{2}-\d{2}$"

    seed_workspace_types: bool = True
    seed_workspace_type_rows: tuple[tuple[str, str, float, int], ...] = field(
        default=DEFAULT_WORKSPACE_TYPES
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    return Settings(
        app_name=os.getenv("APP_NAME", Settings.app_name),
        app_version=os.getenv("APP_VERSION", Settings.app_version),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level),
        database_path=Path(
            os.getenv("DATABASE_PATH", str(PROJECT_ROOT / "data" / "coworking.db"))
        ),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        slot_grid=_env_slot_grid(),
        default_total_desks=int(os.getenv("DEFAULT_TOTAL_DESKS", "6")),
        seed_workspace_types=_env_bool("SEED_WORKSPACE_TYPES", True),
    )
