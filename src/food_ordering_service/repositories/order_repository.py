"""DynamoDB repository for the order ledger.

Orders are inserted once and never deleted; the only mutation is a
conditional status write.
"""

import logging
from datetime import datetime
from typing import Any

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from food_ordering_service.models.base_models import ensure_utc
from food_ordering_service.models.order_models import Order, OrderStatus
from food_ordering_service.repositories.dynamodb_utils import (
    is_conditional_check_failure,
    query_all,
    scan_all,
)

logger = logging.getLogger(__name__)

USER_ID_INDEX = "user_id-index"


class OrderRepository:
    """Repository for placed orders.

    Manages order records in DynamoDB with ``id`` as partition key and a
    ``user_id-index`` Global Secondary Index.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def save_order(self, order: Order) -> bool:
        """Insert a new order. Existing orders are never overwritten.

        Args:
            order: Order to insert

        Returns:
            bool: True if insert succeeded, False otherwise
        """
        try:
            self.table.put_item(
                Item=order.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(#id)",
                ExpressionAttributeNames={"#id": "id"},
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to save order {order.id}: {e}")
            return False

    def get_order(self, order_id: str, consistent_read: bool = False) -> Order | None:
        """Retrieve an order by ID.

        Args:
            order_id: Order identifier
            consistent_read: Use a strongly consistent read

        Returns:
            Order if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": order_id}, ConsistentRead=consistent_read)

            if "Item" not in response:
                return None

            return Order.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get order {order_id}: {e}")  # pragma: no cover
            return None

    def list_orders(
        self,
        status: OrderStatus | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Order]:
        """List orders, optionally filtered by status and creation window.

        Args:
            status: Only return orders in this status
            start_date: Inclusive lower bound on created_at (needs end_date)
            end_date: Inclusive upper bound on created_at (needs start_date)

        Returns:
            list: List of Order objects (empty list if none found)
        """
        filter_expression = None
        if status is not None:
            filter_expression = Attr("status").eq(status.value)
        if start_date is not None and end_date is not None:
            # created_at is stored as UTC text, so bounds must be UTC to compare lexically
            window = Attr("created_at").between(
                ensure_utc(start_date).isoformat(), ensure_utc(end_date).isoformat()
            )
            filter_expression = window if filter_expression is None else filter_expression & window

        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        try:
            return [Order.from_dynamodb_item(item) for item in scan_all(self.table, **kwargs)]

        except ClientError as e:
            logger.error(f"Failed to list orders: {e}")  # pragma: no cover
            return []

    def list_orders_for_user(self, user_id: str) -> list[Order]:
        """List orders placed by a customer.

        Uses a Global Secondary Index on user_id.

        Args:
            user_id: Customer identifier

        Returns:
            list: List of Order objects (empty list if none found)
        """
        try:
            items = query_all(
                self.table,
                IndexName=USER_ID_INDEX,
                KeyConditionExpression=Key("user_id").eq(user_id),
            )
            return [Order.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list orders for user {user_id}: {e}")  # pragma: no cover
            return []

    def update_status(
        self, order_id: str, status: OrderStatus, expected_status: OrderStatus
    ) -> Order | None:
        """Set an order's status if it still holds the expected value.

        Args:
            order_id: Order identifier
            status: New status
            expected_status: Status the caller validated the transition against

        Returns:
            The updated Order, or None if the order changed (or vanished) meanwhile

        Raises:
            ClientError: For any failure other than the condition check
        """
        try:
            response = self.table.update_item(
                Key={"id": order_id},
                UpdateExpression="SET #status = :status",
                ConditionExpression="#status = :expected",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":status": status.value,
                    ":expected": expected_status.value,
                },
                ReturnValues="ALL_NEW",
            )
            return Order.from_dynamodb_item(response["Attributes"])

        except ClientError as e:
            if is_conditional_check_failure(e):
                return None
            logger.error(f"Failed to update status for order {order_id}: {e}")
            raise
