from datetime import date

import pytest

from database import open_store
from errors import StoreUnavailableError


def fields(**overrides):
    values = {
        "title": "Planning",
        "booking_date": date(2024, 3, 1),
        "start_time": "10:00",
        "end_time": "11:00",
        "attendees": None,
        "notes": None,
    }
    values.update(overrides)
    return values


async def test_insert_assigns_id_and_timestamp(store):
    first = await store.insert(fields())
    second = await store.insert(fields(start_time="11:00", end_time="12:00"))

    assert first.id is not None and second.id is not None
    assert first.id != second.id
    assert first.created_at is not None


async def test_query_by_date_orders_by_start_time(store):
    await store.insert(fields(title="afternoon", start_time="14:00", end_time="15:00"))
    await store.insert(fields(title="morning", start_time="08:00", end_time="09:00"))
    await store.insert(fields(title="other day", booking_date=date(2024, 3, 2)))

    rows = await store.query_by_date(date(2024, 3, 1))

    assert [r.title for r in rows] == ["morning", "afternoon"]
    assert [r.title for r in await store.query_all()] == ["morning", "afternoon", "other day"]


async def test_update_and_delete_report_rows_affected(store):
    booking = await store.insert(fields())

    assert await store.update_by_id(booking.id, {"title": "Renamed"}) == 1
    assert (await store.get_by_id(booking.id)).title == "Renamed"
    assert await store.update_by_id(booking.id + 100, {"title": "Nope"}) == 0

    assert await store.delete_by_id(booking.id) == 1
    assert await store.delete_by_id(booking.id) == 0
    assert await store.get_by_id(booking.id) is None


async def test_database_errors_surface_as_store_unavailable(database_url):
    store = open_store(database_url)  # tables never created
    try:
        with pytest.raises(StoreUnavailableError):
            await store.query_all()
    finally:
        await store.close()


async def test_deleted_ids_are_not_reused(store):
    first = await store.insert(fields())
    await store.delete_by_id(first.id)

    second = await store.insert(fields())

    assert second.id > first.id
    assert await store.get_by_id(first.id) is None
