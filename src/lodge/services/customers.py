"""Read access to the customer aggregate records."""

from decimal import Decimal
from typing import TYPE_CHECKING

from lodge.models import Customer, ErrorCode, LodgeError
from lodge.services.dynamodb import CUSTOMERS_TABLE

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class CustomerService:
    """Looks up customer aggregates written by the reconciler."""

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_customer(self, customer_id: str) -> Customer:
        """Get the aggregate record of a customer.

        Raises:
            LodgeError: CUSTOMER_NOT_FOUND if the reconciler never wrote one
        """
        item = self.db.get_item(CUSTOMERS_TABLE, {"customer_id": customer_id})
        if not item:
            raise LodgeError(ErrorCode.CUSTOMER_NOT_FOUND, details={"customer_id": customer_id})

        return Customer(
            customer_id=item["customer_id"],
            total_bookings=int(item.get("total_bookings", 0)),
            total_spent=Decimal(item.get("total_spent", 0)),
            last_booking_date=item.get("last_booking_date"),
            created_at=item.get("created_at"),
        )
