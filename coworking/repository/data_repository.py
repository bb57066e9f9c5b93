"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from coworking.domain.models import Booking, Reservation, WorkspaceType
from coworking.utils.config import Settings, get_settings
from coworking.utils.logger import get_logger


logger = get_logger(__name__)


_BOOKING_COLUMNS = """
    id,
    workspace_type,
    date,
    time_slot,
    duration,
    desk_number,
    status,
    customer_name,
    customer_email,
    customer_phone,
    customer_whatsapp,
    total_price,
    created_at,
    updated_at
"""


class ReservationConflictError(Exception):
    """Raised when an insert collides with an active booking on the same desk."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_booking(row: sqlite3.Row) -> Booking:
    desk_number = row["desk_number"]
    return Booking(
        booking_id=int(row["id"]),
        workspace_type=str(row["workspace_type"]),
        date=str(row["date"]),
        time_slot=str(row["time_slot"]),
        duration=str(row["duration"]),
        desk_number=int(desk_number) if desk_number is not None else None,
        status=str(row["status"]),
        customer_name=str(row["customer_name"]),
        customer_email=str(row["customer_email"]),
        customer_phone=row["customer_phone"],
        customer_whatsapp=row["customer_whatsapp"],
        total_price=float(row["total_price"]),
        created_at=str(row["created_at"]),
        updated_at=str(row["updated_at"]),
    )


class DataRepository:
    """Encapsulates SQLite access so booking logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self, *, autocommit: bool = False) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=10.0,
            isolation_level=None if autocommit else "",
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        statuses = ", ".join(f"'{status}'" for status in self._settings.active_booking_statuses)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS WorkspaceTypes (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL UNIQUE,
                        description TEXT NOT NULL DEFAULT '',
                        price REAL NOT NULL CHECK (price >= 0),
                        total_desks INTEGER NOT NULL CHECK (total_desks > 0),
                        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        workspace_type TEXT NOT NULL,
                        date TEXT NOT NULL,
                        time_slot TEXT NOT NULL,
                        duration TEXT NOT NULL,
                        desk_number INTEGER,
                        status TEXT NOT NULL DEFAULT 'pending',
                        customer_name TEXT NOT NULL,
                        customer_email TEXT NOT NULL,
                        customer_phone TEXT,
                        customer_whatsapp TEXT,
                        total_price REAL NOT NULL DEFAULT 0,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        FOREIGN KEY (workspace_type) REFERENCES WorkspaceTypes(name)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_type_date_status
                    ON Bookings(workspace_type, date, status);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_customer_email
                    ON Bookings(customer_email);
                    """
                )
                cursor.execute(
                    f"""
                    CREATE UNIQUE INDEX IF NOT EXISTS uq_bookings_active_desk_start
                    ON Bookings(workspace_type, date, time_slot, desk_number)
                    WHERE desk_number IS NOT NULL AND status IN ({statuses});
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_workspace_types(self) -> None:
        """Seed the workspace catalogue only when the table is empty."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM WorkspaceTypes;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Workspace types already present; skipping seed")
                    return

                rows = list(self._settings.seed_workspace_type_rows)
                cursor.executemany(
                    """
                    INSERT INTO WorkspaceTypes (name, description, price, total_desks)
                    VALUES (?, ?, ?, ?);
                    """,
                    rows,
                )
                conn.commit()
            logger.info("Workspace type seed completed with %s records", len(rows))
        except sqlite3.Error as exc:
            raise RuntimeError(f"Workspace type seeding failed: {exc}") from exc

    def create_workspace_type(
        self,
        name: str,
        description: str,
        price: float,
        total_desks: int,
        is_active: bool = True,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO WorkspaceTypes (name, description, price, total_desks, is_active)
                VALUES (?, ?, ?, ?, ?);
                """,
                (name, description, price, total_desks, int(is_active)),
            )
            conn.commit()

    def list_workspace_types(self, *, active_only: bool = True) -> List[WorkspaceType]:
        """Return the catalogue ordered by price, cheapest first."""
        query = "SELECT name, description, price, total_desks, is_active FROM WorkspaceTypes"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY price ASC, name ASC;"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(query)
            return [
                WorkspaceType(
                    name=str(row["name"]),
                    description=str(row["description"]),
                    price=float(row["price"]),
                    total_desks=int(row["total_desks"]),
                    is_active=bool(row["is_active"]),
                )
                for row in cursor.fetchall()
            ]

    def get_workspace_type(self, name: str) -> Optional[WorkspaceType]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT name, description, price, total_desks, is_active
                FROM WorkspaceTypes
                WHERE name = ?;
                """,
                (name,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return WorkspaceType(
                name=str(row["name"]),
                description=str(row["description"]),
                price=float(row["price"]),
                total_desks=int(row["total_desks"]),
                is_active=bool(row["is_active"]),
            )

    def list_active_reservations(
        self,
        workspace_type: str,
        date: str,
        statuses: Sequence[str],
        *,
        connection: Optional[sqlite3.Connection] = None,
        exclude_booking_id: Optional[int] = None,
    ) -> List[Reservation]:
        """Return occupancy rows for one workspace-day.

        Pass `connection` to read inside an open booking transaction.
        `exclude_booking_id` leaves one booking out, so it can be moved
        without blocking itself.
        """
        if not statuses:
            return []
        placeholders = ",".join("?" for _ in statuses)
        query = f"""
            SELECT time_slot, duration, desk_number
            FROM Bookings
            WHERE workspace_type = ?
              AND date = ?
              AND status IN ({placeholders})
              AND id != ?
            ORDER BY id ASC;
        """
        excluded_id = -1 if exclude_booking_id is None else exclude_booking_id
        params = (workspace_type, date, *statuses, excluded_id)
        if connection is not None:
            rows = connection.execute(query, params).fetchall()
        else:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        return [
            Reservation(
                time_slot=str(row["time_slot"]),
                duration=str(row["duration"]),
                desk_number=int(row["desk_number"]) if row["desk_number"] is not None else None,
            )
            for row in rows
        ]

    @contextmanager
    def booking_transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the database write lock from availability re-check to insert."""
        conn = self._connect(autocommit=True)
        try:
            conn.execute("BEGIN IMMEDIATE;")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK;")
                raise
            conn.execute("COMMIT;")
        finally:
            conn.close()

    def insert_booking(
        self,
        connection: sqlite3.Connection,
        *,
        workspace_type: str,
        date: str,
        time_slot: str,
        duration: str,
        desk_number: Optional[int],
        status: str,
        customer_name: str,
        customer_email: str,
        customer_phone: Optional[str],
        customer_whatsapp: Optional[str],
        total_price: float,
    ) -> int:
        """Insert a booking row on an open transaction and return its id."""
        now = _utc_now()
        try:
            cursor = connection.execute(
                """
                INSERT INTO Bookings (
                    workspace_type,
                    date,
                    time_slot,
                    duration,
                    desk_number,
                    status,
                    customer_name,
                    customer_email,
                    customer_phone,
                    customer_whatsapp,
                    total_price,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    workspace_type,
                    date,
                    time_slot,
                    duration,
                    desk_number,
                    status,
                    customer_name,
                    customer_email,
                    customer_phone,
                    customer_whatsapp,
                    total_price,
                    now,
                    now,
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise ReservationConflictError(
                f"desk {desk_number} is already booked at {time_slot} on {date}"
            ) from exc
        return int(cursor.lastrowid)

    def update_booking(
        self,
        connection: sqlite3.Connection,
        booking_id: int,
        *,
        date: str,
        time_slot: str,
        duration: str,
        desk_number: Optional[int],
        customer_name: str,
        customer_email: str,
        customer_phone: Optional[str],
        customer_whatsapp: Optional[str],
        total_price: float,
    ) -> None:
        """Rewrite the schedule and customer fields of a booking on an open transaction."""
        try:
            connection.execute(
                """
                UPDATE Bookings
                SET date = ?,
                    time_slot = ?,
                    duration = ?,
                    desk_number = ?,
                    customer_name = ?,
                    customer_email = ?,
                    customer_phone = ?,
                    customer_whatsapp = ?,
                    total_price = ?,
                    updated_at = ?
                WHERE id = ?;
                """,
                (
                    date,
                    time_slot,
                    duration,
                    desk_number,
                    customer_name,
                    customer_email,
                    customer_phone,
                    customer_whatsapp,
                    total_price,
                    _utc_now(),
                    booking_id,
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise ReservationConflictError(
                f"desk {desk_number} is already booked at {time_slot} on {date}"
            ) from exc

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_BOOKING_COLUMNS} FROM Bookings WHERE id = ?;",
                (booking_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_booking(row)

    def list_bookings(
        self,
        *,
        status: Optional[str] = None,
        workspace_type: Optional[str] = None,
        date: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> List[Booking]:
        """Return bookings matching all given filters, newest first."""
        clauses: list[str] = []
        params: list[str] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status)
        if workspace_type is not None:
            clauses.append("workspace_type = ?")
            params.append(workspace_type)
        if date is not None:
            clauses.append("date = ?")
            params.append(date)
        if customer_email is not None:
            clauses.append("LOWER(customer_email) = LOWER(?)")
            params.append(customer_email)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_BOOKING_COLUMNS}
                FROM Bookings
                {where}
                ORDER BY created_at DESC, id DESC;
                """,
                tuple(params),
            )
            return [_row_to_booking(row) for row in cursor.fetchall()]

    def update_booking_status(self, booking_id: int, status: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE Bookings
                SET status = ?, updated_at = ?
                WHERE id = ?;
                """,
                (status, _utc_now(), booking_id),
            )
            conn.commit()

    def count_bookings(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Bookings;")
            return int(cursor.fetchone()["count"])
