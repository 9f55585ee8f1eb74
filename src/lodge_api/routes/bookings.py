"""Booking endpoints for reservation management.

Provides REST endpoints for:
- Dashboard counters (today's check-ins and check-outs, guests in house)
- Listing reservations with status filter and pagination
- Creating reservations (overlap-checked, rate limited)
- Editing dates, guests and extras of a reservation (overlap-checked)
- Reading, changing the status of, and deleting a reservation

All endpoints require an authenticated caller (x-user-sub).
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from lodge.models import (
    BookingStats,
    Reservation,
    ReservationCreate,
    ReservationPage,
    ReservationStatus,
    ReservationStatusUpdate,
    ReservationUpdate,
    SuccessResponse,
)
from lodge.services import BookingService, BookingStatsService
from lodge_api.dependencies import get_booking_service, get_booking_stats_service
from lodge_api.models import BookingDeleted
from lodge_api.rate_limit import BOOKING_CREATE_LIMIT, MUTATION_LIMIT, rate_limit
from lodge_api.security import get_current_subject

router = APIRouter(tags=["bookings"])


# Declared before /bookings/{reservation_id} so "stats" is not taken as an ID
@router.get(
    "/bookings/stats",
    summary="Get dashboard counters",
    description="""
Counters for the operations dashboard.

- todayCheckIns: non-cancelled reservations checking in today
- todayCheckOuts: reservations checking out today, any status
- checkedIn: reservations currently checked in
- unconfirmed: reservations awaiting confirmation

"Today" is the server's local calendar day.
""",
)
async def get_booking_stats(
    service: BookingStatsService = Depends(get_booking_stats_service),
) -> SuccessResponse[BookingStats]:
    return SuccessResponse(data=service.get_stats())


@router.get("/bookings", summary="List reservations")
async def list_bookings(
    status: ReservationStatus | None = Query(default=None, description="Filter by status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: BookingService = Depends(get_booking_service),
) -> SuccessResponse[ReservationPage]:
    """List reservations, most recent check-in first."""
    return SuccessResponse(data=service.list_bookings(status=status, page=page, limit=limit))


@router.post(
    "/bookings",
    summary="Create reservation",
    description="""
Create a reservation for a cabin.

**Notes:**
- Fails with 409 DATES_UNAVAILABLE if a non-cancelled reservation overlaps
- Fails with 409 BOOKING_CONFLICT if another booking for the cabin won a race
- customerId defaults to the caller
- cabinPrice is the cabin's price minus discount at booking time
""",
    status_code=HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("bookings:create", BOOKING_CREATE_LIMIT))],
    responses={
        400: {"description": "Invalid request or guests exceed capacity"},
        404: {"description": "Cabin not found"},
        409: {"description": "Dates unavailable or concurrent booking"},
        429: {"description": "Too many requests"},
    },
)
async def create_booking(
    request: ReservationCreate,
    subject: str = Depends(get_current_subject),
    service: BookingService = Depends(get_booking_service),
) -> SuccessResponse[Reservation]:
    return SuccessResponse(data=service.create_booking(request, customer_id=subject))


@router.get("/bookings/{reservation_id}", summary="Get reservation")
async def get_booking(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
) -> SuccessResponse[Reservation]:
    return SuccessResponse(data=service.get_booking(reservation_id))


@router.put(
    "/bookings/{reservation_id}",
    summary="Edit reservation",
    description="""
Change dates, guests, extras, payment flag or observations.

**Notes:**
- Omitted fields keep their value
- numNights and totalPrice are recomputed from the booked cabinPrice
- Fails with 409 DATES_UNAVAILABLE if the new stay overlaps another reservation
""",
    dependencies=[Depends(rate_limit("bookings:update", MUTATION_LIMIT))],
    responses={
        400: {"description": "Invalid dates or guests exceed capacity"},
        404: {"description": "Reservation not found"},
        409: {"description": "Dates unavailable or concurrent booking"},
    },
)
async def update_booking(
    reservation_id: str,
    request: ReservationUpdate,
    service: BookingService = Depends(get_booking_service),
) -> SuccessResponse[Reservation]:
    return SuccessResponse(data=service.update_booking(reservation_id, request))


@router.patch(
    "/bookings/{reservation_id}/status",
    summary="Change reservation status",
    dependencies=[Depends(rate_limit("bookings:status", MUTATION_LIMIT))],
)
async def update_booking_status(
    reservation_id: str,
    request: ReservationStatusUpdate,
    service: BookingService = Depends(get_booking_service),
) -> SuccessResponse[Reservation]:
    """Set any status. No transition rules apply."""
    return SuccessResponse(data=service.update_status(reservation_id, request.status))


@router.delete(
    "/bookings/{reservation_id}",
    summary="Delete reservation",
    dependencies=[Depends(rate_limit("bookings:delete", MUTATION_LIMIT))],
)
async def delete_booking(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
) -> SuccessResponse[BookingDeleted]:
    service.delete_booking(reservation_id)
    return SuccessResponse(data=BookingDeleted(reservation_id=reservation_id))
