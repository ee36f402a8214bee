"""DynamoDB repository for the menu catalog.

Plain CRUD follows the simple-return-value convention: expected failures are
logged and reported as None/False. The stock operations are conditional
writes. A failed condition is reported as None/False so the reservation
engine can classify it, while any other ClientError is re-raised so it
surfaces as an internal error instead of a business-rule rejection.
"""

import logging
from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from food_ordering_service.models.menu_models import MenuItem
from food_ordering_service.repositories.dynamodb_utils import is_conditional_check_failure, scan_all

logger = logging.getLogger(__name__)


class MenuRepository:
    """Repository for menu items.

    Manages menu item records in DynamoDB with ``id`` as partition key.
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

    def get_item(self, item_id: str, consistent_read: bool = False) -> MenuItem | None:
        """Retrieve a menu item by ID.

        Args:
            item_id: Menu item identifier
            consistent_read: Use a strongly consistent read

        Returns:
            MenuItem if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": item_id}, ConsistentRead=consistent_read)

            if "Item" not in response:
                return None

            return MenuItem.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get menu item {item_id}: {e}")  # pragma: no cover
            return None

    def list_items(self) -> list[MenuItem]:
        """List every menu item in the catalog.

        Returns:
            list: List of MenuItem objects (empty list if none found)
        """
        try:
            return [MenuItem.from_dynamodb_item(item) for item in scan_all(self.table)]

        except ClientError as e:
            logger.error(f"Failed to list menu items: {e}")  # pragma: no cover
            return []

    def save_item(self, item: MenuItem) -> bool:
        """Save a menu item.

        Args:
            item: MenuItem to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=item.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save menu item {item.id}: {e}")  # pragma: no cover
            return False

    def save_items(self, items: list[MenuItem]) -> bool:
        """Save many menu items with a batch writer.

        Args:
            items: MenuItems to save

        Returns:
            bool: True if every write was submitted, False otherwise
        """
        try:
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.put_item(Item=item.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to batch save {len(items)} menu items: {e}")  # pragma: no cover
            return False

    def update_item(self, item_id: str, changes: dict[str, Any]) -> MenuItem | None:
        """Apply a partial update to an existing menu item.

        A value of None removes the attribute.

        Args:
            item_id: Menu item identifier
            changes: snake_case attribute names mapped to new values

        Returns:
            The updated MenuItem, or None if the item does not exist
        """
        if not changes:
            return self.get_item(item_id)

        names: dict[str, str] = {"#id": "id"}
        values: dict[str, Any] = {}
        set_clauses: list[str] = []
        remove_clauses: list[str] = []

        for index, (attribute, value) in enumerate(sorted(changes.items())):
            name_placeholder = f"#a{index}"
            names[name_placeholder] = attribute
            if value is None:
                remove_clauses.append(name_placeholder)
            else:
                value_placeholder = f":v{index}"
                values[value_placeholder] = value
                set_clauses.append(f"{name_placeholder} = {value_placeholder}")

        expression_parts = []
        if set_clauses:
            expression_parts.append("SET " + ", ".join(set_clauses))
        if remove_clauses:
            expression_parts.append("REMOVE " + ", ".join(remove_clauses))

        kwargs: dict[str, Any] = {
            "Key": {"id": item_id},
            "UpdateExpression": " ".join(expression_parts),
            "ConditionExpression": "attribute_exists(#id)",
            "ExpressionAttributeNames": names,
            "ReturnValues": "ALL_NEW",
        }
        if values:
            kwargs["ExpressionAttributeValues"] = values

        try:
            response = self.table.update_item(**kwargs)
            return MenuItem.from_dynamodb_item(response["Attributes"])

        except ClientError as e:
            if is_conditional_check_failure(e):
                return None
            logger.error(f"Failed to update menu item {item_id}: {e}")  # pragma: no cover
            raise

    def delete_item(self, item_id: str) -> bool:
        """Delete a menu item.

        Args:
            item_id: Menu item identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"id": item_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete menu item {item_id}: {e}")  # pragma: no cover
            return False

    def decrement_stock(self, item_id: str, quantity: int) -> MenuItem | None:
        """Atomically take ``quantity`` units out of stock.

        The decrement only applies when the item exists, is available and has
        at least ``quantity`` units, so concurrent orders cannot oversell.

        Args:
            item_id: Menu item identifier
            quantity: Units to take, must be positive

        Returns:
            The item as it is after the decrement, or None if the condition failed

        Raises:
            ClientError: For any failure other than the condition check
        """
        try:
            response = self.table.update_item(
                Key={"id": item_id},
                UpdateExpression="SET stock = stock - :qty",
                ConditionExpression="attribute_exists(#id) AND is_available = :true AND stock >= :qty",
                ExpressionAttributeNames={"#id": "id"},
                ExpressionAttributeValues={":qty": quantity, ":true": True},
                ReturnValues="ALL_NEW",
            )
            return MenuItem.from_dynamodb_item(response["Attributes"])

        except ClientError as e:
            if is_conditional_check_failure(e):
                return None
            logger.error(f"Failed to decrement stock for {item_id}: {e}")
            raise

    def disable_if_sold_out(self, item_id: str) -> bool:
        """Switch an item off when its stock is exactly zero.

        Conditional on ``stock = 0`` so a concurrent restock is not clobbered.

        Args:
            item_id: Menu item identifier

        Returns:
            bool: True if the item was switched off, False otherwise
        """
        try:
            self.table.update_item(
                Key={"id": item_id},
                UpdateExpression="SET is_available = :false",
                ConditionExpression="stock = :zero AND is_available = :true",
                ExpressionAttributeValues={":zero": 0, ":false": False, ":true": True},
            )
            return True

        except ClientError as e:
            if not is_conditional_check_failure(e):
                logger.error(f"Failed to disable sold-out item {item_id}: {e}")  # pragma: no cover
            return False

    def release_stock(self, item_id: str, quantity: int, re_enable: bool = False) -> bool:
        """Return ``quantity`` units to stock.

        Args:
            item_id: Menu item identifier
            quantity: Units to give back
            re_enable: Also switch the item back on

        Returns:
            bool: True if stock was restored, False otherwise
        """
        update_expression = "ADD stock :qty"
        values: dict[str, Any] = {":qty": quantity}
        if re_enable:
            update_expression = "SET is_available = :true " + update_expression
            values[":true"] = True

        try:
            self.table.update_item(
                Key={"id": item_id},
                UpdateExpression=update_expression,
                ConditionExpression="attribute_exists(#id)",
                ExpressionAttributeNames={"#id": "id"},
                ExpressionAttributeValues=values,
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to release {quantity} units of {item_id}: {e}")
            return False
