"""
Interval-conflict scheduling for the meeting room.

A booking occupies the half-open range [start, end) on its date, so a
meeting ending at 10:00 and one starting at 10:00 do not conflict.
"""
import asyncio
import logging
import re
import weakref
from datetime import date, datetime
from typing import Iterable, List, Optional

from config import STORE_TIMEOUT_SECONDS
from errors import ConflictError, NotFoundError, StoreUnavailableError, ValidationError
from models import Booking, BookingCreate

logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"([01]\d|2[0-3]):([0-5]\d)")


def to_minutes(value: str) -> int:
    """Convert an "HH:MM" 24-hour clock string to minutes since midnight."""
    match = _CLOCK_RE.fullmatch(value)
    if not match:
        raise ValidationError("invalid time format")
    return int(match.group(1)) * 60 + int(match.group(2))


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("invalid date") from None


def overlaps(s1: int, e1: int, s2: int, e2: int) -> bool:
    return s1 < e2 and s2 < e1


def find_conflicts(
    start: int,
    end: int,
    existing: Iterable[Booking],
    exclude_id: Optional[int] = None,
) -> List[Booking]:
    """Return the existing bookings whose interval overlaps [start, end)."""
    return [
        b
        for b in existing
        if b.id != exclude_id
        and overlaps(start, end, to_minutes(b.start_time), to_minutes(b.end_time))
    ]


def validate(candidate: BookingCreate) -> dict:
    """
    Check a candidate booking and return the normalized column values.

    Raises ValidationError for missing fields, malformed date/time values,
    an empty or reversed time range, or a negative attendee count.
    """
    title = (candidate.title or "").strip()
    if not (title and candidate.booking_date and candidate.start_time and candidate.end_time):
        raise ValidationError("missing required fields")

    booking_date = parse_date(candidate.booking_date)
    if to_minutes(candidate.start_time) >= to_minutes(candidate.end_time):
        raise ValidationError("invalid time range")

    if candidate.attendees is not None and candidate.attendees < 0:
        raise ValidationError("attendees must be non-negative")

    return {
        "title": title,
        "booking_date": booking_date,
        "start_time": candidate.start_time,
        "end_time": candidate.end_time,
        "attendees": candidate.attendees,
        "notes": candidate.notes,
    }


class BookingScheduler:
    """
    Admits, updates and cancels bookings without ever letting two bookings
    on the same date overlap.

    Mutations for a date are serialized by a per-date lock held across the
    read-check-write sequence. The lock only covers this process; running
    several workers against one database needs a Store-level constraint.
    """

    def __init__(self, store, timeout: float = STORE_TIMEOUT_SECONDS):
        self.store = store
        self.timeout = timeout
        self._date_locks = weakref.WeakValueDictionary()

    def _lock_for(self, booking_date: date) -> asyncio.Lock:
        lock = self._date_locks.get(booking_date)
        if lock is None:
            lock = asyncio.Lock()
            self._date_locks[booking_date] = lock
        return lock

    async def _call(self, op: str, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Booking store %s timed out after %ss", op, self.timeout)
            raise StoreUnavailableError("Database error") from None

    async def list_by_date(self, booking_date: date) -> List[Booking]:
        rows = await self._call("query_by_date", self.store.query_by_date(booking_date))
        return sorted(rows, key=lambda b: (to_minutes(b.start_time), b.id))

    async def list_all(self) -> List[Booking]:
        rows = await self._call("query_all", self.store.query_all())
        return sorted(rows, key=lambda b: (b.booking_date, to_minutes(b.start_time), b.id))

    async def _check_free(self, fields: dict, exclude_id: Optional[int] = None):
        existing = await self._call(
            "query_by_date", self.store.query_by_date(fields["booking_date"])
        )
        conflicts = find_conflicts(
            to_minutes(fields["start_time"]),
            to_minutes(fields["end_time"]),
            existing,
            exclude_id=exclude_id,
        )
        if conflicts:
            logger.info(
                "Rejected %s %s-%s: overlaps booking(s) %s",
                fields["booking_date"],
                fields["start_time"],
                fields["end_time"],
                [b.id for b in conflicts],
            )
            raise ConflictError("Time slot conflict", conflicts)

    async def create(self, candidate: BookingCreate) -> Booking:
        fields = validate(candidate)
        async with self._lock_for(fields["booking_date"]):
            await self._check_free(fields)
            booking = await self._call("insert", self.store.insert(fields))
        logger.info(
            "Booked #%s %s %s-%s",
            booking.id, booking.booking_date, booking.start_time, booking.end_time,
        )
        return booking

    async def update(self, booking_id: int, candidate: BookingCreate) -> Booking:
        fields = validate(candidate)
        async with self._lock_for(fields["booking_date"]):
            await self._check_free(fields, exclude_id=booking_id)
            affected = await self._call(
                "update_by_id", self.store.update_by_id(booking_id, fields)
            )
            if not affected:
                raise NotFoundError("Booking not found")
            booking = await self._call("get_by_id", self.store.get_by_id(booking_id))
        if booking is None:
            raise NotFoundError("Booking not found")
        logger.info(
            "Updated #%s %s %s-%s",
            booking.id, booking.booking_date, booking.start_time, booking.end_time,
        )
        return booking

    async def delete(self, booking_id: int) -> None:
        affected = await self._call("delete_by_id", self.store.delete_by_id(booking_id))
        if not affected:
            raise NotFoundError("Booking not found")
        logger.info("Cancelled #%s", booking_id)
