"""DynamoDB repository classes for admin and customer accounts.

Each account table also holds one email claim item per registered address,
keyed ``email#<address>``. Registration writes the claim with
``attribute_not_exists`` before the account itself, so two concurrent sign-ups
for one address cannot both succeed. Claim items carry no ``email`` attribute
and therefore never appear in the email index.
"""

import logging

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from food_ordering_service.models.account_models import Admin, Customer
from food_ordering_service.models.base_models import utc_now
from food_ordering_service.repositories.dynamodb_utils import is_conditional_check_failure, scan_all

logger = logging.getLogger(__name__)

EMAIL_INDEX = "email-index"
EMAIL_CLAIM_PREFIX = "email#"


def claim_key(email: str) -> dict[str, str]:
    return {"id": f"{EMAIL_CLAIM_PREFIX}{email}"}


def claim_email(table: Table, email: str, owner_id: str) -> bool:
    """Reserve an email address for one account.

    Args:
        table: Account table holding the claim
        email: Normalized email address
        owner_id: Account the address is reserved for

    Returns:
        bool: True if the claim was written, False if the address is taken

    Raises:
        ClientError: For any failure other than the condition check
    """
    try:
        table.put_item(
            Item={**claim_key(email), "owner_id": owner_id, "claimed_at": utc_now().isoformat()},
            ConditionExpression="attribute_not_exists(#id)",
            ExpressionAttributeNames={"#id": "id"},
        )
        return True

    except ClientError as e:
        if is_conditional_check_failure(e):
            return False
        logger.error(f"Failed to claim email for account {owner_id}: {e}")
        raise


def release_email(table: Table, email: str) -> bool:
    """Drop an email claim so the address can be registered again."""
    try:
        table.delete_item(Key=claim_key(email))
        return True

    except ClientError as e:
        logger.error(f"Failed to release email claim: {e}")
        return False


class AdminRepository:
    """Repository for admin accounts.

    Manages admin records in DynamoDB with ``id`` as partition key and an
    ``email-index`` Global Secondary Index.
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

    def get_by_id(self, admin_id: str) -> Admin | None:
        """Retrieve an admin by ID.

        Args:
            admin_id: Admin identifier

        Returns:
            Admin if found, None otherwise
        """
        if admin_id.startswith(EMAIL_CLAIM_PREFIX):
            return None

        try:
            response = self.table.get_item(Key={"id": admin_id})

            if "Item" not in response:
                return None

            return Admin.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get admin {admin_id}: {e}")  # pragma: no cover
            return None

    def get_by_email(self, email: str) -> Admin | None:
        """Retrieve an admin by email address.

        Args:
            email: Login email

        Returns:
            Admin if found, None otherwise
        """
        try:
            response = self.table.query(
                IndexName=EMAIL_INDEX,
                KeyConditionExpression=Key("email").eq(email),
                Limit=1,
            )
            items = response.get("Items", [])

            if not items:
                return None

            return Admin.from_dynamodb_item(items[0])

        except ClientError as e:
            logger.error(f"Failed to look up admin by email: {e}")  # pragma: no cover
            return None

    def save(self, admin: Admin) -> bool:
        """Insert an admin account.

        Args:
            admin: Admin to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=admin.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save admin: {e}")  # pragma: no cover
            return False

    def claim_email(self, email: str, admin_id: str) -> bool:
        """Reserve ``email`` for a new admin. False if it is already taken."""
        return claim_email(self.table, email, admin_id)

    def release_email(self, email: str) -> bool:
        return release_email(self.table, email)

    def list_all(self) -> list[Admin]:
        """List all admin accounts.

        Returns:
            list: List of Admin objects (empty list if none found)
        """
        try:
            items = scan_all(self.table, FilterExpression=Attr("email").exists())
            return [Admin.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list admins: {e}")  # pragma: no cover
            return []

    def delete(self, admin_id: str) -> bool:
        """Delete an admin account.

        Args:
            admin_id: Admin identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"id": admin_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete admin {admin_id}: {e}")  # pragma: no cover
            return False


class CustomerRepository:
    """Repository for storefront customer accounts.

    Manages customer records in DynamoDB with ``id`` as partition key and an
    ``email-index`` Global Secondary Index.
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

    def get_by_email(self, email: str) -> Customer | None:
        """Retrieve a customer by email address.

        Args:
            email: Login email

        Returns:
            Customer if found, None otherwise
        """
        try:
            response = self.table.query(
                IndexName=EMAIL_INDEX,
                KeyConditionExpression=Key("email").eq(email),
                Limit=1,
            )
            items = response.get("Items", [])

            if not items:
                return None

            return Customer.from_dynamodb_item(items[0])

        except ClientError as e:
            logger.error(f"Failed to look up customer by email: {e}")  # pragma: no cover
            return None

    def save(self, customer: Customer) -> bool:
        """Insert a customer account.

        Args:
            customer: Customer to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=customer.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save customer: {e}")  # pragma: no cover
            return False

    def claim_email(self, email: str, customer_id: str) -> bool:
        """Reserve ``email`` for a new customer. False if it is already taken."""
        return claim_email(self.table, email, customer_id)

    def release_email(self, email: str) -> bool:
        return release_email(self.table, email)
