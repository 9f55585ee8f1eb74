"""Customer aggregate endpoint.

Customer records are kept up to date by the ``lodge-update-customer-stats``
job, not by the booking endpoints.
"""

from fastapi import APIRouter, Depends

from lodge.models import Customer, SuccessResponse
from lodge.services import CustomerService
from lodge_api.dependencies import get_customer_service

router = APIRouter(tags=["customers"])


@router.get("/customers/{customer_id}", summary="Get customer booking totals")
async def get_customer(
    customer_id: str,
    service: CustomerService = Depends(get_customer_service),
) -> SuccessResponse[Customer]:
    return SuccessResponse(data=service.get_customer(customer_id))
