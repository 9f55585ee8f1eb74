"""Cabin availability endpoint.

Returns the date ranges during which a cabin is already booked, so a booking
form can grey them out. Ranges are ``YYYY-MM-DD`` with an exclusive end.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from lodge.models import CabinAvailability, ErrorCode, LodgeError, SuccessResponse
from lodge.services import AvailabilityService
from lodge.utils.dates import parse_timestamp
from lodge_api.dependencies import get_availability_service

router = APIRouter(tags=["availability"])


def _parse_query_date(name: str, value: str | None) -> dt.datetime | None:
    if value is None or not value.strip():
        return None
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise LodgeError(
            ErrorCode.INVALID_DATE,
            message=f"Invalid {name}: {value!r}",
            details={"parameter": name, "value": value},
        ) from e


@router.get(
    "/cabins/{cabin_id}/availability",
    summary="Get booked ranges of a cabin",
    description="""
List the reservations of a cabin that overlap the query range.

**Notes:**
- Defaults: startDate = now, endDate = six months from now
- Cancelled reservations are ignored
- A check-out on the start date does not block it
- Ranges are returned one per reservation, never merged
""",
    responses={
        200: {
            "description": "Booked ranges",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "cabinId": "c1",
                            "unavailableDates": [{"start": "2027-06-01", "end": "2027-06-04"}],
                            "queryRange": {"start": "2027-06-01", "end": "2027-07-01"},
                        },
                    }
                }
            },
        },
        400: {"description": "startDate or endDate is not an ISO-8601 date"},
    },
)
async def get_cabin_availability(
    cabin_id: str,
    start_date: str | None = Query(
        default=None,
        alias="startDate",
        description="Range start (ISO-8601 date or timestamp)",
        examples=["2027-06-01"],
    ),
    end_date: str | None = Query(
        default=None,
        alias="endDate",
        description="Range end, exclusive (ISO-8601 date or timestamp)",
        examples=["2027-07-01"],
    ),
    service: AvailabilityService = Depends(get_availability_service),
) -> SuccessResponse[CabinAvailability]:
    availability = service.get_unavailable_ranges(
        cabin_id,
        range_start=_parse_query_date("startDate", start_date),
        range_end=_parse_query_date("endDate", end_date),
    )
    return SuccessResponse(data=availability)
