"""SQLite store for confirmed booking records.

Keeps one row per paid booking so an operator can reconcile payments,
calendar events and emails after the fact. Rows for slots that were
taken after payment carry status "conflict".
"""

from __future__ import annotations
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models import BookingRequest, PersistenceError


def generate_id(prefix: str) -> str:
    """Generate a prefixed UUID."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


class BookingStore:
    """SQLite database for booking records.

    The connection is opened (and the schema created) on first use and
    shared by every thread.
    """

    def __init__(self, db_path: str = "bookings.db"):
        """
        Args:
            db_path: Path to SQLite file, or ":memory:" for in-memory.
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @property
    def conn(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                conn = sqlite3.connect(self.db_path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._create_tables(conn)
                self._conn = conn
            return self._conn

    @staticmethod
    def _create_tables(conn: sqlite3.Connection) -> None:
        """Create tables if they don't exist."""
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS bookings (
                id TEXT PRIMARY KEY,
                transaction_id TEXT NOT NULL,
                customer_name TEXT NOT NULL,
                customer_email TEXT NOT NULL,
                customer_phone TEXT,
                slot_date TEXT NOT NULL,
                slot_label TEXT NOT NULL,
                slot_start TEXT NOT NULL,
                currency TEXT,
                amount REAL,
                calendar_event_id TEXT,
                status TEXT NOT NULL DEFAULT 'confirmed'
                    CHECK(status IN ('confirmed', 'conflict')),
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_bookings_date
                ON bookings(slot_date, slot_label);
        """)
        conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def save(
        self,
        request: BookingRequest,
        slot_start: datetime,
        calendar_event_id: Optional[str],
        status: str = "confirmed",
    ) -> str:
        """Insert a booking record and return its id.

        Args:
            status: "confirmed", or "conflict" when the slot was taken
                after payment.

        Raises:
            PersistenceError: If the row could not be written.
        """
        record_id = generate_id("bkg")
        try:
            self.conn.execute(
                """INSERT INTO bookings (id, transaction_id, customer_name, customer_email,
                       customer_phone, slot_date, slot_label, slot_start, currency, amount,
                       calendar_event_id, status, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record_id,
                    request.transaction_id,
                    request.customer_name,
                    request.customer_email,
                    request.customer_phone,
                    request.date.isoformat(),
                    request.slot_label,
                    slot_start.isoformat(),
                    request.currency,
                    request.amount,
                    calendar_event_id,
                    status,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not save booking {request.transaction_id}: {e}") from e
        return record_id

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute("SELECT * FROM bookings WHERE id = ?", (record_id,)).fetchone()
        return dict(row) if row else None

    def list_for_date(self, slot_date: str) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            "SELECT * FROM bookings WHERE slot_date = ? ORDER BY slot_start", (slot_date,)
        ).fetchall()
        return [dict(r) for r in rows]
