"""Helpers shared by the DynamoDB repositories."""

from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import Table

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def is_conditional_check_failure(error: ClientError) -> bool:
    """Whether a ClientError is the expected "no" answer of a conditional write."""
    return error.response.get("Error", {}).get("Code") == CONDITIONAL_CHECK_FAILED


def scan_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Scan a table, following LastEvaluatedKey until every page is read.

    Args:
        table: DynamoDB table to scan
        **kwargs: Extra scan arguments such as FilterExpression

    Returns:
        list: All items across pages
    """
    items: list[dict[str, Any]] = []
    response = table.scan(**kwargs)
    items.extend(response.get("Items", []))

    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs)
        items.extend(response.get("Items", []))

    return items


def query_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Query a table or index, following LastEvaluatedKey across pages."""
    items: list[dict[str, Any]] = []
    response = table.query(**kwargs)
    items.extend(response.get("Items", []))

    while "LastEvaluatedKey" in response:
        response = table.query(ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs)
        items.extend(response.get("Items", []))

    return items
