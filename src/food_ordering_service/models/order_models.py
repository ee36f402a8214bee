"""Order ledger models.

Orders are written once with status ``pending``. Afterwards only ``status``
changes. Each line keeps the item name and a price snapshot taken when the
order was placed, so later catalog edits do not alter history.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field

from food_ordering_service.models.base_models import ApiModel, Money, parse_timestamp, utc_now


class OrderStatus(str, Enum):
    """Enumeration of order status values."""

    PENDING = "pending"
    PREPARING = "preparing"
    SERVED = "served"
    PAID = "paid"
    CANCELLED = "cancelled"


class OrderLine(ApiModel):
    """A single line of a placed order."""

    menu_id: str = Field(..., description="Menu item that was ordered")
    name: str = Field(..., description="Item name at order time")
    quantity: int = Field(..., description="Units ordered", gt=0)
    price_at_order: Money = Field(..., description="Unit price at order time", ge=0)

    @property
    def line_total(self) -> Decimal:
        return self.price_at_order * self.quantity

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {
            "menu_id": self.menu_id,
            "name": self.name,
            "quantity": self.quantity,
            "price_at_order": self.price_at_order,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "OrderLine":
        return cls(
            menu_id=item["menu_id"],
            name=item["name"],
            quantity=int(item["quantity"]),
            price_at_order=Decimal(str(item["price_at_order"])),
        )


class Order(ApiModel):
    """Placed order.

    Stored in DynamoDB with ``id`` as partition key and a ``user_id-index``
    Global Secondary Index for customer order history.
    """

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
        description="Unique order identifier",
    )
    user_id: str | None = Field(None, description="Owning customer, absent for guests")
    customer_name: str = Field(..., description="Name given at checkout", min_length=1)
    customer_phone: str | None = Field(None, description="Contact phone number")
    delivery_address: str | None = Field(None, description="Delivery address")
    customer_table: str | None = Field(None, description="Table number for dine-in orders")
    items: list[OrderLine] = Field(..., description="Ordered lines", min_length=1)
    total_amount: Money = Field(..., description="Server-computed order total", ge=0)
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Fulfilment status")
    created_at: datetime = Field(default_factory=utc_now, description="Order timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "customer_name": self.customer_name,
            "items": [line.to_dynamodb_item() for line in self.items],
            "total_amount": self.total_amount,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

        # GSI key attributes must be absent rather than null
        for attribute in ("user_id", "customer_phone", "delivery_address", "customer_table"):
            value = getattr(self, attribute)
            if value is not None:
                item[attribute] = value

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "customer_name": item["customer_name"],
            "items": [OrderLine.from_dynamodb_item(line) for line in item.get("items", [])],
            "total_amount": Decimal(str(item["total_amount"])),
            "status": OrderStatus(item["status"]),
            "created_at": parse_timestamp(item["created_at"]),
        }

        for attribute in ("user_id", "customer_phone", "delivery_address", "customer_table"):
            if attribute in item:
                data[attribute] = item[attribute]

        return cls(**data)


class OrderItemRequest(ApiModel):
    """Cart line submitted at checkout.

    The storefront sends ``menuId``; older clients send ``id`` or ``_id``.
    Client-side names and prices are ignored.
    """

    menu_id: str = Field(
        ...,
        validation_alias=AliasChoices("menuId", "menu_id", "id", "_id"),
        min_length=1,
    )
    quantity: int = Field(default=1, gt=0)


class OrderCreateRequest(ApiModel):
    """Checkout payload. Any client-supplied total is ignored."""

    items: list[OrderItemRequest] = Field(default_factory=list)
    customer_name: str | None = None
    customer_phone: str | None = None
    delivery_address: str | None = None
    customer_table: str | None = None
    user_id: str | None = None


class OrderStatusUpdate(ApiModel):
    """Admin payload for moving an order through its lifecycle."""

    status: str | None = None
