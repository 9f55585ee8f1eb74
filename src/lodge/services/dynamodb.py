"""DynamoDB access for the lodge tables.

One ``DynamoDBService`` is constructed by the application factory (or the
maintenance CLI) and passed to every service that needs it. There is no
module-level connection state.

Writes guarded by a condition report a failed condition through their return
value (False/None) instead of raising. Any other ``ClientError`` propagates.
"""

import os
from collections.abc import Callable
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from lodge.utils.logging import get_logger

logger = get_logger(__name__)

RESERVATIONS_TABLE = "reservations"
CABINS_TABLE = "cabins"
CUSTOMERS_TABLE = "customers"

CABIN_INDEX = "cabin_id-index"
CUSTOMER_INDEX = "customer_id-index"

# Key schemas, shared by local table bootstrap and the test suite
TABLE_DEFINITIONS: dict[str, dict[str, Any]] = {
    RESERVATIONS_TABLE: {
        "KeySchema": [{"AttributeName": "reservation_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "reservation_id", "AttributeType": "S"},
            {"AttributeName": "cabin_id", "AttributeType": "S"},
            {"AttributeName": "customer_id", "AttributeType": "S"},
            {"AttributeName": "check_in", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": CABIN_INDEX,
                "KeySchema": [
                    {"AttributeName": "cabin_id", "KeyType": "HASH"},
                    {"AttributeName": "check_in", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
            {
                "IndexName": CUSTOMER_INDEX,
                "KeySchema": [{"AttributeName": "customer_id", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    },
    CABINS_TABLE: {
        "KeySchema": [{"AttributeName": "cabin_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "cabin_id", "AttributeType": "S"}],
    },
    CUSTOMERS_TABLE: {
        "KeySchema": [{"AttributeName": "customer_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "customer_id", "AttributeType": "S"}],
    },
}


def _failed_with(error: ClientError, code: str) -> bool:
    return bool(error.response.get("Error", {}).get("Code") == code)


def _collect_pages(operation: Callable[..., dict[str, Any]], **kwargs: Any) -> list[dict[str, Any]]:
    """Call a query/scan operation until DynamoDB stops returning a cursor."""
    items: list[dict[str, Any]] = []
    while True:
        page = operation(**kwargs)
        items.extend(page.get("Items", []))
        cursor = page.get("LastEvaluatedKey")
        if not cursor:
            return items
        kwargs["ExclusiveStartKey"] = cursor


class DynamoDBService:
    """Environment-aware access to the reservations, cabins and customers tables."""

    def __init__(
        self,
        environment: str | None = None,
        region: str | None = None,
    ) -> None:
        """Initialize DynamoDB service.

        Args:
            environment: Environment name (dev/prod). Defaults to ENVIRONMENT, then "dev".
            region: AWS region. Defaults to AWS_DEFAULT_REGION, then "eu-west-1".
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        # DYNAMODB_TABLE_PREFIX overrides the environment-derived prefix
        self.name_prefix = os.getenv("DYNAMODB_TABLE_PREFIX", f"lodge-{self.environment}")
        self.region = region or os.getenv("AWS_DEFAULT_REGION", "eu-west-1")
        self._dynamodb = boto3.resource("dynamodb", region_name=self.region)
        self._client = boto3.client("dynamodb", region_name=self.region)
        self._serializer = TypeSerializer()

    def table_name(self, table: str) -> str:
        """Physical name of a logical table (``reservations`` -> ``lodge-dev-reservations``)."""
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    def serialize_item(self, item: dict[str, Any]) -> dict[str, Any]:
        """Convert a plain item to the low-level attribute-value format.

        ``None`` values are dropped rather than stored as NULL.
        """
        return {
            name: self._serializer.serialize(value)
            for name, value in item.items()
            if value is not None
        }

    def create_tables(self) -> None:
        """Create every table this backend uses (local development and tests)."""
        for table, definition in TABLE_DEFINITIONS.items():
            self._client.create_table(
                TableName=self.table_name(table),
                BillingMode="PAY_PER_REQUEST",
                **definition,
            )
            logger.info("table_created", extra={"table": self.table_name(table)})

    # Single-item operations

    def get_item(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        """Read one item, or None when the key does not exist."""
        found: dict[str, Any] | None = self._table(table).get_item(Key=key).get("Item")
        return found

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write a whole item.

        Returns:
            False if ``condition_expression`` rejected the write
        """
        request: dict[str, Any] = {"Item": item}
        if condition_expression:
            request["ConditionExpression"] = condition_expression

        try:
            self._table(table).put_item(**request)
        except ClientError as e:
            if _failed_with(e, "ConditionalCheckFailedException"):
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Apply an update expression (creating the item if it is absent and unguarded).

        Args:
            table: Logical table name
            key: Primary key
            update_expression: e.g. ``"SET #status = :status"``
            expression_attribute_values: ``:placeholder`` values
            expression_attribute_names: ``#placeholder`` names for reserved words
            condition_expression: Guard evaluated against the stored item

        Returns:
            The item as stored after the update, or None if the guard failed
        """
        request: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_attribute_values,
            "ReturnValues": "ALL_NEW",
        }
        if expression_attribute_names:
            request["ExpressionAttributeNames"] = expression_attribute_names
        if condition_expression:
            request["ConditionExpression"] = condition_expression

        try:
            response = self._table(table).update_item(**request)
        except ClientError as e:
            if _failed_with(e, "ConditionalCheckFailedException"):
                return None
            raise
        updated: dict[str, Any] | None = response.get("Attributes")
        return updated

    def delete_item(
        self,
        table: str,
        key: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Delete one item.

        Returns:
            False if ``condition_expression`` rejected the delete
        """
        request: dict[str, Any] = {"Key": key}
        if condition_expression:
            request["ConditionExpression"] = condition_expression

        try:
            self._table(table).delete_item(**request)
        except ClientError as e:
            if _failed_with(e, "ConditionalCheckFailedException"):
                return False
            raise
        return True

    # Multi-item operations

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
        sort_key_condition: Any | None = None,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Query a secondary index, all pages, ascending by sort key.

        Args:
            table: Logical table name
            index_name: GSI name
            partition_key_name: Hash key attribute of the index
            partition_key_value: Value to match
            sort_key_condition: Optional ``Key(...)`` condition on the range key
            filter_expression: Optional ``Attr(...)`` filter applied after the key match

        Returns:
            Matching items
        """
        key_condition = Key(partition_key_name).eq(partition_key_value)
        if sort_key_condition is not None:
            key_condition = key_condition & sort_key_condition

        request: dict[str, Any] = {"IndexName": index_name, "KeyConditionExpression": key_condition}
        if filter_expression is not None:
            request["FilterExpression"] = filter_expression
        return _collect_pages(self._table(table).query, **request)

    def scan(
        self,
        table: str,
        filter_expression: Any | None = None,
        projection: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Read a whole table, all pages.

        Args:
            table: Logical table name
            filter_expression: Optional ``Attr(...)`` filter
            projection: Attribute names to return (all when omitted)

        Returns:
            Matching items
        """
        request: dict[str, Any] = {}
        if filter_expression is not None:
            request["FilterExpression"] = filter_expression
        if projection:
            # Placeholders keep reserved words such as "status" usable
            names = {f"#p{i}": name for i, name in enumerate(projection)}
            request["ProjectionExpression"] = ", ".join(names)
            request["ExpressionAttributeNames"] = names
        return _collect_pages(self._table(table).scan, **request)

    def batch_get(self, table: str, keys: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Read up to 100 items by key. Missing keys are skipped.

        Unprocessed keys are requested again until DynamoDB returns them all.
        """
        table_name = self.table_name(table)
        found: list[dict[str, Any]] = []
        pending: dict[str, Any] = {table_name: {"Keys": keys}} if keys else {}

        while pending:
            response = self._dynamodb.batch_get_item(RequestItems=pending)
            found.extend(response.get("Responses", {}).get(table_name, []))
            pending = response.get("UnprocessedKeys") or {}
        return found

    def transact_write(self, items: list[dict[str, Any]]) -> bool:
        """Run low-level TransactWriteItems as one all-or-nothing write.

        Returns:
            False if any condition in the transaction failed
        """
        try:
            self._client.transact_write_items(TransactItems=items)
        except ClientError as e:
            if _failed_with(e, "TransactionCanceledException"):
                return False
            raise
        return True
