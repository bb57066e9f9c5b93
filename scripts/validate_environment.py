#!/usr/bin/env python3
"""Validate local booking-service environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sqlite3
import sys
import tempfile
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from coworking.repository.data_repository import DataRepository
from coworking.services.availability_service import AvailabilityService
from coworking.services.booking_service import BookingDraft, BookingService
from coworking.utils.config import get_settings

SEPARATOR_LINE = "=" * 44
VALIDATION_DATE = "2026-03-02"


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="coworking-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        temp_db_path = Path(temp_dir) / "coworking_validation.db"
        validation_settings = replace(get_settings(), database_path=temp_db_path)
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Workspace catalogue seeding
        try:
            repository.seed_workspace_types()
            expected = len(validation_settings.seed_workspace_type_rows)
            with sqlite3.connect(temp_db_path) as conn:
                seeded = int(conn.execute("SELECT COUNT(*) FROM WorkspaceTypes;").fetchone()[0])
            if seeded != expected:
                raise RuntimeError(f"expected {expected} workspace types, got {seeded}")
            ok, line = _print_result("Workspace catalogue", True, f": {seeded} types")
        except Exception as exc:
            ok, line = _print_result("Workspace catalogue", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        availability_service = AvailabilityService(
            repository=repository,
            settings=validation_settings,
        )
        booking_service = BookingService(
            repository=repository,
            settings=validation_settings,
            availability_service=availability_service,
        )
        workspace_name = validation_settings.seed_workspace_type_rows[0][0]
        first_slot = validation_settings.slot_grid[0]

        # CHECK 5: Booking round trip through the availability re-check
        try:
            booking = booking_service.create_booking(
                BookingDraft(
                    workspace_type=workspace_name,
                    date=VALIDATION_DATE,
                    time_slot=first_slot,
                    duration="1-hour",
                    customer_name="Environment Check",
                    customer_email="env-check@example.com",
                )
            )
            if repository.count_bookings() != 1:
                raise RuntimeError("booking row was not persisted")
            ok, line = _print_result(
                "Booking creation",
                True,
                f": desk={booking.desk_number} price={booking.total_price:.2f}",
            )
        except Exception as exc:
            ok, line = _print_result("Booking creation", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Availability evaluation
        try:
            result = availability_service.check_availability(
                workspace_type=workspace_name,
                date=VALIDATION_DATE,
                duration="1-day",
            )
            if result.available_slots != [first_slot]:
                raise RuntimeError(
                    f"full-day request should only fit at {first_slot}, got {result.available_slots}"
                )
            ok, line = _print_result(
                "Availability evaluation",
                True,
                f": {len(result.available_slots)}/{len(result.slot_grid)} full-day starts open",
            )
        except Exception as exc:
            ok, line = _print_result("Availability evaluation", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Coworking Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
