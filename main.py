import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from database import open_store
from errors import BookingError, booking_error_to_http
from models import BookingCreate, BookingRead
from scheduler import BookingScheduler

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_scheduler(request: Request) -> BookingScheduler:
    return request.app.state.scheduler


@router.get("/health")
async def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


# --- GET /api/bookings ---
@router.get("/bookings", response_model=List[BookingRead])
async def list_bookings(scheduler: BookingScheduler = Depends(get_scheduler)):
    try:
        bookings = await scheduler.list_all()
    except BookingError as exc:
        raise booking_error_to_http(exc)
    return [BookingRead.model_validate(b) for b in bookings]


# --- GET /api/bookings/{date} ---
@router.get("/bookings/{booking_date}", response_model=List[BookingRead])
async def list_bookings_for_date(
    booking_date: date,
    scheduler: BookingScheduler = Depends(get_scheduler),
):
    try:
        bookings = await scheduler.list_by_date(booking_date)
    except BookingError as exc:
        raise booking_error_to_http(exc)
    return [BookingRead.model_validate(b) for b in bookings]


# --- POST /api/bookings ---
@router.post(
    "/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED
)
async def create_booking(
    booking_data: BookingCreate,
    scheduler: BookingScheduler = Depends(get_scheduler),
):
    try:
        booking = await scheduler.create(booking_data)
    except BookingError as exc:
        raise booking_error_to_http(exc)
    return BookingRead.model_validate(booking)


# --- PUT /api/bookings/{id} ---
@router.put("/bookings/{booking_id}", response_model=BookingRead)
async def update_booking(
    booking_id: int,
    booking_data: BookingCreate,
    scheduler: BookingScheduler = Depends(get_scheduler),
):
    try:
        booking = await scheduler.update(booking_id, booking_data)
    except BookingError as exc:
        raise booking_error_to_http(exc)
    return BookingRead.model_validate(booking)


# --- DELETE /api/bookings/{id} ---
@router.delete("/bookings/{booking_id}")
async def delete_booking(
    booking_id: int,
    scheduler: BookingScheduler = Depends(get_scheduler),
):
    try:
        await scheduler.delete(booking_id)
    except BookingError as exc:
        raise booking_error_to_http(exc)
    return {"message": "Booking deleted successfully"}


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies and path params are client errors, reported as 400
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


def create_app(database_url: Optional[str] = None) -> FastAPI:
    url = database_url or config.DATABASE_URL

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = open_store(url, echo=config.SQL_ECHO)
        try:
            await store.init()
            app.state.store = store
            app.state.scheduler = BookingScheduler(store)
            logger.info("Booking store ready")
            yield
        finally:
            await store.close()
            logger.info("Booking store closed")

    app = FastAPI(title="Meeting Room Booking System", lifespan=lifespan)
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials="*" not in config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
