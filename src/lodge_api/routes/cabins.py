"""Cabin endpoints.

Provides REST endpoints for:
- Listing, reading, creating and updating cabins
- Fleet summary (capacity, average price, discounts, status counts)
- Bulk delete and bulk discount update (at most 50 cabins per request)

The discount of a cabin must stay below its price on every write path.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from lodge.models import (
    BulkDeleteResult,
    BulkUpdateResult,
    Cabin,
    CabinBulkRequest,
    CabinCreate,
    CabinStats,
    CabinUpdate,
    SuccessResponse,
)
from lodge.services import CabinService, CabinStatsService
from lodge_api.dependencies import get_cabin_service, get_cabin_stats_service
from lodge_api.rate_limit import MUTATION_LIMIT, rate_limit

router = APIRouter(tags=["cabins"])


@router.get("/cabins", summary="List cabins")
async def list_cabins(
    service: CabinService = Depends(get_cabin_service),
) -> SuccessResponse[list[Cabin]]:
    return SuccessResponse(data=service.list_cabins())


@router.post(
    "/cabins",
    summary="Create cabin",
    status_code=HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("cabins:create", MUTATION_LIMIT))],
)
async def create_cabin(
    request: CabinCreate,
    service: CabinService = Depends(get_cabin_service),
) -> SuccessResponse[Cabin]:
    return SuccessResponse(data=service.create_cabin(request))


@router.post(
    "/cabins/bulk",
    summary="Bulk cabin action",
    description="""
Apply one action to several cabins.

**Actions:**
- `delete`: refused with 409 ACTIVE_BOOKINGS if any selected cabin has a
  reservation that is neither cancelled nor checked out
- `update-discount`: sets `discount` on every selected cabin, refused with
  400 DISCOUNT_EXCEEDS_PRICE if it reaches the price of any of them
""",
    dependencies=[Depends(rate_limit("cabins:bulk", MUTATION_LIMIT))],
)
async def bulk_cabins(
    request: CabinBulkRequest,
    service: CabinService = Depends(get_cabin_service),
) -> SuccessResponse[BulkDeleteResult | BulkUpdateResult]:
    if request.action == "delete":
        return SuccessResponse(data=service.bulk_delete(request.ids))
    return SuccessResponse(data=service.bulk_update_discount(request.ids, request.discount))


# Declared before /cabins/{cabin_id} so "stats" is not taken as an ID
@router.get("/cabins/stats", summary="Get cabin fleet summary")
async def get_cabin_stats(
    service: CabinStatsService = Depends(get_cabin_stats_service),
) -> SuccessResponse[CabinStats]:
    """Totals over every cabin; averagePrice is rounded to whole units."""
    return SuccessResponse(data=service.get_stats())


@router.get("/cabins/{cabin_id}", summary="Get cabin")
async def get_cabin(
    cabin_id: str,
    service: CabinService = Depends(get_cabin_service),
) -> SuccessResponse[Cabin]:
    return SuccessResponse(data=service.get_cabin(cabin_id))


@router.put(
    "/cabins/{cabin_id}",
    summary="Update cabin",
    dependencies=[Depends(rate_limit("cabins:update", MUTATION_LIMIT))],
)
async def update_cabin(
    cabin_id: str,
    request: CabinUpdate,
    service: CabinService = Depends(get_cabin_service),
) -> SuccessResponse[Cabin]:
    """Update the provided fields. Omitted fields keep their value."""
    return SuccessResponse(data=service.update_cabin(cabin_id, request))
