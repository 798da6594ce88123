"""
File-backed booking store.

Holds every booking in memory, grouped by property code, and mirrors the whole
mapping to a single JSON file after each mutation. The in-memory mapping is
authoritative: a failed write keeps the change in memory and reports a
PersistenceError so the caller can alert, and the next successful write
brings the file back in line.

Strategy:
- Load once on startup (missing file starts empty, corrupt file starts empty)
- Serialize mutations with a lock held across modify + write, so concurrent
  webhook deliveries never overwrite each other's updates
- Write to a temp file and os.replace() it, so the file is never half-written
"""

from __future__ import annotations

import os
import tempfile
import threading
import time
from pathlib import Path

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from hrzn_bookings.config import BOOKINGS_FILE
from hrzn_bookings.errors import NotFound, PersistenceError
from hrzn_bookings.metrics import store_write_duration, store_writes, stored_bookings
from hrzn_bookings.schemas.bookings import Booking

logger = structlog.get_logger(__name__)

_bookings_adapter = TypeAdapter(dict[str, list[Booking]])


class BookingStore:
    """
    Bookings grouped by property code, persisted to a JSON file.

    Attributes:
        path: Location of the bookings file

    Example:
        >>> store = BookingStore(Path("bookings.json"))
        >>> store.load()
        >>> store.append("cos1", booking)
        True
        >>> [b.id for b in store.get("cos1")]
        ['pi_123']
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._bookings: dict[str, list[Booking]] = {}
        self._lock = threading.RLock()

    def load(self) -> None:
        """
        Replace the in-memory mapping with the contents of the bookings file.

        A missing file is a fresh start. An unreadable or malformed file also
        leaves the store empty, but raises PersistenceError so startup can alert.

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        with self._lock:
            self._bookings = {}

            if not self.path.exists():
                logger.info("bookings_file_missing", path=str(self.path))
                return

            try:
                raw = self.path.read_bytes()
                self._bookings = _bookings_adapter.validate_json(raw)
            except (OSError, PydanticValidationError) as e:
                logger.error("bookings_load_failed", path=str(self.path), error=str(e))
                self._bookings = {}
                raise PersistenceError(f"Failed to load bookings from {self.path}: {e}") from e

            self._update_gauge()
            logger.info(
                "bookings_loaded",
                path=str(self.path),
                properties=len(self._bookings),
                bookings=sum(len(v) for v in self._bookings.values()),
            )

    def append(self, property_code: str, booking: Booking) -> bool:
        """
        Add a booking to a property, replacing any booking with the same ID.

        Booking IDs are unique across the whole store. Re-delivery of the same
        payment replaces the earlier record in place; if it was filed under a
        different property it moves to ``property_code``.

        Args:
            property_code: Property to file the booking under
            booking: Booking to store

        Returns:
            bool: True if a new booking was added, False if an existing one was replaced

        Raises:
            PersistenceError: If the file write failed (the booking is kept in memory)
        """
        with self._lock:
            inserted = True
            location = self._locate(booking.id)

            if location is not None:
                inserted = False
                existing_code, index = location
                if existing_code == property_code:
                    self._bookings[property_code][index] = booking
                else:
                    del self._bookings[existing_code][index]
                    self._bookings.setdefault(property_code, []).append(booking)
            else:
                self._bookings.setdefault(property_code, []).append(booking)

            self._update_gauge()
            self._persist("append", booking)
            return inserted

    def remove(self, property_code: str, booking_id: str) -> Booking:
        """
        Remove a booking by exact ID within one property.

        Args:
            property_code: Property the booking is filed under
            booking_id: Booking (payment intent) ID

        Returns:
            Booking: The removed booking

        Raises:
            NotFound: If the property is unknown or holds no such booking
            PersistenceError: If the file write failed (the removal is kept in memory)
        """
        with self._lock:
            if property_code not in self._bookings:
                raise NotFound("Property not found")

            bookings = self._bookings[property_code]
            for index, booking in enumerate(bookings):
                if booking.id == booking_id:
                    break
            else:
                raise NotFound("Booking not found")

            removed = bookings.pop(index)
            self._update_gauge()
            self._persist("remove", removed)
            return removed

    def get(self, property_code: str) -> list[Booking]:
        with self._lock:
            return list(self._bookings.get(property_code, []))

    def get_all(self) -> dict[str, list[Booking]]:
        with self._lock:
            return {code: list(bookings) for code, bookings in self._bookings.items()}

    def count(self, property_code: str) -> int:
        with self._lock:
            return len(self._bookings.get(property_code, []))

    def is_writable(self) -> bool:
        """
        Check whether the bookings file can be written.

        Used by the /ready endpoint.

        Returns:
            bool: True if the file (or its directory, when absent) is writable
        """
        target = self.path if self.path.exists() else self.path.parent
        return os.access(target, os.W_OK)

    def _locate(self, booking_id: str) -> tuple[str, int] | None:
        for code, bookings in self._bookings.items():
            for index, booking in enumerate(bookings):
                if booking.id == booking_id:
                    return code, index
        return None

    def _update_gauge(self) -> None:
        for code, bookings in self._bookings.items():
            stored_bookings.labels(property_code=code).set(len(bookings))

    def _persist(self, operation: str, booking: Booking) -> None:
        """Write the full mapping to disk. Caller must hold the lock."""
        start_time = time.time()
        payload = _bookings_adapter.dump_json(self._bookings, by_alias=True, indent=2)

        directory = self.path.parent
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            store_writes.labels(operation=operation, status="failure").inc()
            logger.error(
                "bookings_save_failed", path=str(self.path), operation=operation, error=str(e)
            )
            raise PersistenceError(
                f"Failed to save bookings to {self.path}: {e}", booking=booking
            ) from e

        store_writes.labels(operation=operation, status="success").inc()
        store_write_duration.observe(time.time() - start_time)
        logger.debug("bookings_saved", path=str(self.path), operation=operation)


# Process-wide store, loaded in the startup hook
booking_store = BookingStore(BOOKINGS_FILE)
