"""Admin and customer account models.

Both account tables use ``id`` as partition key and an ``email-index`` Global
Secondary Index for login lookups. Password hashes are never serialized into
API responses.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from food_ordering_service.models.base_models import ApiModel, parse_timestamp, utc_now


class Admin(ApiModel):
    """Admin portal account."""

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    email: str = Field(..., min_length=1)
    password_hash: str = Field(..., exclude=True)
    created_at: datetime = Field(default_factory=utc_now)

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "password_hash": self.password_hash,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Admin":
        data: dict[str, Any] = {
            "id": item["id"],
            "email": item["email"],
            "password_hash": item["password_hash"],
        }

        if "created_at" in item:
            data["created_at"] = parse_timestamp(item["created_at"])

        return cls(**data)


class Customer(ApiModel):
    """Storefront customer account."""

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password_hash: str = Field(..., exclude=True)
    phone: str | None = None
    address: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    def to_dynamodb_item(self) -> dict[str, Any]:
        item: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "created_at": self.created_at.isoformat(),
        }

        if self.phone is not None:
            item["phone"] = self.phone

        if self.address is not None:
            item["address"] = self.address

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Customer":
        data: dict[str, Any] = {
            "id": item["id"],
            "name": item["name"],
            "email": item["email"],
            "password_hash": item["password_hash"],
            "phone": item.get("phone"),
            "address": item.get("address"),
        }

        if "created_at" in item:
            data["created_at"] = parse_timestamp(item["created_at"])

        return cls(**data)

    def to_profile(self) -> "CustomerProfile":
        """Public view of the account returned after register/login."""
        return CustomerProfile(
            id=self.id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            address=self.address,
        )


class CustomerProfile(ApiModel):
    """Customer details safe to return to the storefront."""

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    name: str
    email: str
    phone: str | None = None
    address: str | None = None


class CredentialsRequest(ApiModel):
    """Login or admin registration payload."""

    email: str | None = None
    password: str | None = None


class CustomerRegistrationRequest(ApiModel):
    """Customer sign-up payload."""

    name: str | None = None
    email: str | None = None
    password: str | None = None
    phone: str | None = None
    address: str | None = None


class AdminRegistration(ApiModel):
    """Response for a newly registered admin."""

    message: str
    id: str


class TokenResponse(ApiModel):
    """Response carrying a signed bearer token."""

    token: str


class CustomerSession(ApiModel):
    """Response for a customer login: a token plus the profile."""

    token: str
    user: CustomerProfile


class CustomerRegistration(CustomerSession):
    """Response for a customer sign-up."""

    message: str
