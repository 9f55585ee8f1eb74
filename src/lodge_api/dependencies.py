"""FastAPI dependency injection providers for lodge services.

The DynamoDB handle is created once by ``create_app()`` and kept on
``app.state.db``. Services are cheap wrappers around it and are built per
request from that handle.

Usage in routes:
    from lodge_api.dependencies import get_cabin_service

    @router.get("/cabins")
    async def list_cabins(service: CabinService = Depends(get_cabin_service)):
        ...

Service Dependency Graph:
    DynamoDBService (app.state.db)
        ├── AvailabilityService
        │       └── BookingService
        ├── BookingStatsService
        ├── CabinService
        ├── CabinStatsService
        └── CustomerService

Testing:
    Pass a DynamoDBService bound to moto tables to ``create_app(db=...)``.
"""

from fastapi import Depends, Request

from lodge.services import (
    AvailabilityService,
    BookingService,
    BookingStatsService,
    CabinService,
    CabinStatsService,
    CustomerService,
    DynamoDBService,
)


def get_db(request: Request) -> DynamoDBService:
    """Get the DynamoDB handle of the running app."""
    db: DynamoDBService = request.app.state.db
    return db


def get_availability_service(db: DynamoDBService = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db=db)


def get_booking_service(
    db: DynamoDBService = Depends(get_db),
    availability: AvailabilityService = Depends(get_availability_service),
) -> BookingService:
    return BookingService(db=db, availability=availability)


def get_booking_stats_service(db: DynamoDBService = Depends(get_db)) -> BookingStatsService:
    return BookingStatsService(db=db)


def get_cabin_service(db: DynamoDBService = Depends(get_db)) -> CabinService:
    return CabinService(db=db)


def get_customer_service(db: DynamoDBService = Depends(get_db)) -> CustomerService:
    return CustomerService(db=db)


def get_cabin_stats_service(db: DynamoDBService = Depends(get_db)) -> CabinStatsService:
    return CabinStatsService(db=db)
