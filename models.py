from typing import Optional
from datetime import date, datetime, timezone
from sqlmodel import SQLModel, Field
from pydantic import BaseModel, ConfigDict
from pydantic import Field as SchemaField


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    # SQLite reuses the highest rowid after a delete unless AUTOINCREMENT is set
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    booking_date: date = Field(index=True)
    start_time: str  # "HH:MM", zero-padded so string order == clock order
    end_time: str
    attendees: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


# Request body for POST and PUT. Missing fields are reported by the
# scheduler as a 400 rather than rejected by the schema.
class BookingCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    booking_date: Optional[str] = SchemaField(default=None, alias="date")
    start_time: Optional[str] = SchemaField(default=None, alias="startTime")
    end_time: Optional[str] = SchemaField(default=None, alias="endTime")
    attendees: Optional[int] = None
    notes: Optional[str] = None


class BookingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    title: str
    booking_date: date = SchemaField(alias="date")
    start_time: str = SchemaField(alias="startTime")
    end_time: str = SchemaField(alias="endTime")
    attendees: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime = SchemaField(alias="createdAt")
