"""Menu catalog models.

A menu item carries its price, stock level and availability flag. Stock and
availability are also mutated by the inventory reservation engine when
orders are placed.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, Field

from food_ordering_service.models.base_models import ApiModel, Money, parse_timestamp, utc_now


class MenuItem(ApiModel):
    """Menu item as stored in the catalog."""

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
        description="Unique identifier for the menu item",
    )
    name: str = Field(..., description="Item name", min_length=1)
    description: str | None = Field(None, description="Item description")
    price: Money = Field(..., description="Item price", gt=0)
    category: str = Field(..., description="Category name", min_length=1)
    image_url: str | None = Field(None, description="Public URL of the item image")
    stock: int = Field(default=0, description="Units in stock", ge=0)
    is_available: bool = Field(default=True, description="Whether the item can be ordered")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "stock": self.stock,
            "is_available": self.is_available,
            "created_at": self.created_at.isoformat(),
        }

        if self.description is not None:
            item["description"] = self.description

        if self.image_url is not None:
            item["image_url"] = self.image_url

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "name": item["name"],
            "price": Decimal(str(item["price"])),
            "category": item["category"],
            "stock": int(item.get("stock", 0)),
            "is_available": bool(item.get("is_available", True)),
        }

        if "description" in item:
            data["description"] = item["description"]

        if "image_url" in item:
            data["image_url"] = item["image_url"]

        if "created_at" in item:
            data["created_at"] = parse_timestamp(item["created_at"])

        return cls(**data)


class MenuItemCreate(ApiModel):
    """Admin payload for creating a menu item.

    ``file_name`` and ``file_type`` request an image-upload handshake.
    """

    name: str = Field(..., min_length=1)
    description: str | None = None
    price: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    stock: int = Field(default=0, ge=0)
    is_available: bool = True
    file_name: str | None = None
    file_type: str | None = None


class MenuItemUpdate(ApiModel):
    """Admin payload for patching a menu item. Only the fields sent are applied."""

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    price: Decimal | None = Field(None, gt=0)
    category: str | None = Field(None, min_length=1)
    image_url: str | None = None
    stock: int | None = Field(None, ge=0)
    is_available: bool | None = None
    file_name: str | None = None
    file_type: str | None = None

    @property
    def wants_new_image(self) -> bool:
        """Whether the patch asks for a new image-upload handshake."""
        return bool(self.file_name and self.file_type)

    def changed_attributes(self) -> dict[str, Any]:
        """Return the DynamoDB attributes set by this patch.

        Returns:
            dict: snake_case attribute names mapped to their new values. ``None``
            is only kept for optional attributes and means "remove".
        """
        changes = self.model_dump(exclude_unset=True, exclude={"file_name", "file_type"})
        return {
            key: value
            for key, value in changes.items()
            if value is not None or key in _REMOVABLE_ATTRIBUTES
        }


_REMOVABLE_ATTRIBUTES = frozenset({"description", "image_url"})


class ImageUpload(ApiModel):
    """Presigned upload handshake for a menu item image."""

    upload_url: str
    upload_key: str
    image_url: str


class MenuItemWithUpload(ApiModel):
    """Response for create: the item plus its optional upload handshake."""

    item: MenuItem
    presigned_upload_url: str | None = None
    upload_key: str | None = None


class BulkImportResult(ApiModel):
    """Response for a bulk catalog import."""

    message: str
    count: int
    items: list[MenuItem]
