"""Shared model configuration.

API payloads use camelCase field names and expose record identity as ``_id``,
which is what the storefront and admin portal read. DynamoDB items keep
snake_case attribute names.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimal in memory and in DynamoDB, a JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ApiModel(BaseModel):
    """Base model with camelCase aliases that also accepts snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Express a datetime in UTC, treating naive values as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp into UTC.

    Values carrying another offset are converted, so their isoformat text
    sorts alongside stored timestamps.
    """
    return ensure_utc(datetime.fromisoformat(value))
