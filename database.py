import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlmodel import SQLModel, select
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from errors import StoreUnavailableError
from models import Booking

logger = logging.getLogger(__name__)


class BookingStore:
    """
    Durable record collection for bookings.

    One instance is created at startup and handed to the scheduler; every
    call opens its own short-lived session, so no state is shared between
    requests beyond the engine's connection pool.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._sessions = sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    async def init(self):
        async with self.engine.begin() as conn:
            # This creates the tables if they don't exist
            await conn.run_sync(SQLModel.metadata.create_all)

    async def close(self):
        await self.engine.dispose()

    async def insert(self, fields: Dict[str, Any]) -> Booking:
        booking = Booking(**fields)
        try:
            async with self._sessions() as session:
                session.add(booking)
                await session.commit()
                await session.refresh(booking)
        except SQLAlchemyError as exc:
            raise _unavailable("insert", exc) from exc
        return booking

    async def get_by_id(self, booking_id: int) -> Optional[Booking]:
        try:
            async with self._sessions() as session:
                return await session.get(Booking, booking_id)
        except SQLAlchemyError as exc:
            raise _unavailable("get_by_id", exc) from exc

    async def query_by_date(self, booking_date: date) -> List[Booking]:
        statement = (
            select(Booking)
            .where(Booking.booking_date == booking_date)
            .order_by(Booking.start_time, Booking.id)
        )
        return await self._fetch_all("query_by_date", statement)

    async def query_all(self) -> List[Booking]:
        statement = select(Booking).order_by(
            Booking.booking_date, Booking.start_time, Booking.id
        )
        return await self._fetch_all("query_all", statement)

    async def update_by_id(self, booking_id: int, fields: Dict[str, Any]) -> int:
        statement = update(Booking).where(Booking.id == booking_id).values(**fields)
        return await self._write("update_by_id", statement)

    async def delete_by_id(self, booking_id: int) -> int:
        statement = delete(Booking).where(Booking.id == booking_id)
        return await self._write("delete_by_id", statement)

    async def _fetch_all(self, op: str, statement) -> List[Booking]:
        try:
            async with self._sessions() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise _unavailable(op, exc) from exc

    async def _write(self, op: str, statement) -> int:
        try:
            async with self._sessions() as session:
                result = await session.execute(statement)
                await session.commit()
                return result.rowcount
        except SQLAlchemyError as exc:
            raise _unavailable(op, exc) from exc


def _unavailable(op: str, exc: SQLAlchemyError) -> StoreUnavailableError:
    logger.error("Booking store %s failed: %s", op, exc, exc_info=True)
    return StoreUnavailableError("Database error")


def open_store(database_url: str, echo: bool = False) -> BookingStore:
    engine = create_async_engine(database_url, echo=echo, future=True)
    return BookingStore(engine)
