import asyncio
import itertools

from models import Booking, BookingCreate, utcnow


def candidate(title="Standup", date="2024-03-01", start="09:00", end="09:30", **extra):
    return BookingCreate(title=title, date=date, startTime=start, endTime=end, **extra)


class FakeStore:
    """In-memory store that records calls and can be slowed down."""

    def __init__(self, delay: float = 0):
        self.delay = delay
        self.rows = {}
        self.calls = []
        self._ids = itertools.count(1)

    async def _pause(self):
        await asyncio.sleep(self.delay)

    async def insert(self, fields):
        self.calls.append("insert")
        await self._pause()
        booking = Booking(id=next(self._ids), created_at=utcnow(), **fields)
        self.rows[booking.id] = booking
        return booking

    async def get_by_id(self, booking_id):
        self.calls.append("get_by_id")
        return self.rows.get(booking_id)

    async def query_by_date(self, booking_date):
        self.calls.append("query_by_date")
        await self._pause()
        return [b for b in self.rows.values() if b.booking_date == booking_date]

    async def query_all(self):
        self.calls.append("query_all")
        return list(self.rows.values())

    async def update_by_id(self, booking_id, fields):
        self.calls.append("update_by_id")
        booking = self.rows.get(booking_id)
        if booking is None:
            return 0
        for key, value in fields.items():
            setattr(booking, key, value)
        return 1

    async def delete_by_id(self, booking_id):
        self.calls.append("delete_by_id")
        return 1 if self.rows.pop(booking_id, None) is not None else 0
