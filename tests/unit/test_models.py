"""Unit tests for menu, order and account models."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from food_ordering_service.models.account_models import Admin, Customer
from food_ordering_service.models.base_models import ensure_utc, parse_timestamp
from food_ordering_service.models.menu_models import MenuItem, MenuItemUpdate
from food_ordering_service.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderItemRequest,
    OrderStatus,
)


@pytest.mark.unit
class TestMenuItem:
    """Test suite for the MenuItem model."""

    def test_from_dynamodb_item(self, sample_menu_dynamodb_item: dict) -> None:
        """Test that DynamoDB Decimals become typed fields."""
        item = MenuItem.from_dynamodb_item(sample_menu_dynamodb_item)

        assert item.id == "item_1"
        assert item.price == Decimal("5000")
        assert item.stock == 2
        assert isinstance(item.stock, int)
        assert item.created_at == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def test_to_dynamodb_item_omits_missing_optionals(self) -> None:
        item = MenuItem(id="m1", name="Suya", price=Decimal("1500"), category="Grill")

        data = item.to_dynamodb_item()

        assert "description" not in data
        assert "image_url" not in data
        assert data["stock"] == 0
        assert data["is_available"] is True
        assert data["price"] == Decimal("1500")

    def test_json_uses_underscore_id_and_camel_case(self, sample_menu_item: MenuItem) -> None:
        """Test the wire format read by the storefront."""
        data = sample_menu_item.model_dump(mode="json", by_alias=True)

        assert data["_id"] == "item_1"
        assert data["isAvailable"] is True
        assert data["price"] == 5000.0
        assert "is_available" not in data

    def test_accepts_underscore_id_on_input(self) -> None:
        item = MenuItem.model_validate(
            {"_id": "m2", "name": "Puff Puff", "price": "300", "category": "Snacks"}
        )

        assert item.id == "m2"

    def test_rejects_non_positive_price(self) -> None:
        with pytest.raises(ValidationError):
            MenuItem(id="m1", name="Suya", price=Decimal("0"), category="Grill")

    def test_rejects_negative_stock(self) -> None:
        with pytest.raises(ValidationError):
            MenuItem(id="m1", name="Suya", price=Decimal("1"), category="Grill", stock=-1)


@pytest.mark.unit
class TestMenuItemUpdate:
    """Test suite for partial menu updates."""

    def test_only_sent_fields_change(self) -> None:
        patch = MenuItemUpdate.model_validate({"price": 1200, "isAvailable": False})

        assert patch.changed_attributes() == {"price": Decimal("1200"), "is_available": False}

    def test_null_description_means_remove(self) -> None:
        patch = MenuItemUpdate.model_validate({"description": None, "name": None})

        assert patch.changed_attributes() == {"description": None}

    def test_file_fields_are_not_attributes(self) -> None:
        patch = MenuItemUpdate.model_validate({"fileName": "a.png", "fileType": "image/png"})

        assert patch.changed_attributes() == {}
        assert patch.wants_new_image is True

    def test_file_name_alone_does_not_request_upload(self) -> None:
        assert MenuItemUpdate(file_name="a.png").wants_new_image is False


@pytest.mark.unit
class TestOrder:
    """Test suite for the Order model."""

    def test_round_trips_through_dynamodb(self, sample_order: Order) -> None:
        restored = Order.from_dynamodb_item(sample_order.to_dynamodb_item())

        assert restored.model_dump() == sample_order.model_dump()

    def test_guest_order_omits_user_id(self, sample_order: Order) -> None:
        """Test that the GSI key is absent rather than null for guests."""
        guest = sample_order.model_copy(update={"user_id": None})

        assert "user_id" not in guest.to_dynamodb_item()

    def test_line_total(self, sample_order: Order) -> None:
        assert sample_order.items[0].line_total == Decimal("10000")

    def test_json_shape(self, sample_order: Order) -> None:
        data = sample_order.model_dump(mode="json", by_alias=True)

        assert data["_id"] == "order_1"
        assert data["totalAmount"] == 10000.0
        assert data["status"] == "pending"
        assert data["items"][0]["priceAtOrder"] == 5000.0
        assert data["items"][0]["menuId"] == "item_1"

    def test_status_enum_values(self) -> None:
        assert [status.value for status in OrderStatus] == [
            "pending",
            "preparing",
            "served",
            "paid",
            "cancelled",
        ]


@pytest.mark.unit
class TestOrderRequests:
    """Test suite for checkout payloads."""

    @pytest.mark.parametrize("key", ["menuId", "id", "_id", "menu_id"])
    def test_line_accepts_every_id_spelling(self, key: str) -> None:
        line = OrderItemRequest.model_validate({key: "item_1", "quantity": 3})

        assert line.menu_id == "item_1"
        assert line.quantity == 3

    def test_quantity_defaults_to_one(self) -> None:
        assert OrderItemRequest.model_validate({"menuId": "item_1"}).quantity == 1

    def test_rejects_zero_quantity(self) -> None:
        with pytest.raises(ValidationError):
            OrderItemRequest.model_validate({"menuId": "item_1", "quantity": 0})

    def test_client_total_is_ignored(self) -> None:
        request = OrderCreateRequest.model_validate(
            {
                "items": [{"menuId": "item_1", "quantity": 1, "priceAtOrder": 1}],
                "customerName": "Jane",
                "totalAmount": 1,
            }
        )

        assert not hasattr(request, "total_amount")
        assert request.customer_name == "Jane"


@pytest.mark.unit
class TestAccounts:
    """Test suite for account models."""

    def test_admin_hash_never_serialized(self) -> None:
        admin = Admin(id="a1", email="admin@example.com", password_hash="$2b$10$hash")

        data = admin.model_dump(mode="json", by_alias=True)

        assert "passwordHash" not in data
        assert "password_hash" not in data
        assert data["_id"] == "a1"

    def test_admin_hash_is_stored(self) -> None:
        admin = Admin(id="a1", email="admin@example.com", password_hash="$2b$10$hash")

        assert admin.to_dynamodb_item()["password_hash"] == "$2b$10$hash"

    def test_customer_profile(self) -> None:
        customer = Customer(
            id="c1",
            name="Jane",
            email="jane@example.com",
            password_hash="$2b$10$hash",
            phone="0801",
        )

        profile = customer.to_profile().model_dump(mode="json", by_alias=True)

        assert profile == {
            "_id": "c1",
            "name": "Jane",
            "email": "jane@example.com",
            "phone": "0801",
            "address": None,
        }

    def test_customer_round_trips_through_dynamodb(self) -> None:
        customer = Customer(
            id="c1", name="Jane", email="jane@example.com", password_hash="h", address="Lagos"
        )

        item = customer.to_dynamodb_item()

        assert "phone" not in item
        assert Customer.from_dynamodb_item(item).model_dump() == customer.model_dump()


@pytest.mark.unit
class TestTimestamps:
    """Test suite for timestamp normalization."""

    def test_naive_timestamp_is_read_as_utc(self) -> None:
        assert parse_timestamp("2026-10-18T12:00:00") == datetime(2026, 10, 18, 12, tzinfo=UTC)

    def test_offset_timestamp_is_converted_to_utc(self) -> None:
        parsed = parse_timestamp("2026-10-18T16:00:00+05:00")

        assert parsed.tzinfo == UTC
        assert parsed.isoformat() == "2026-10-18T11:00:00+00:00"

    def test_converted_bounds_sort_with_stored_text(self) -> None:
        stored = datetime(2026, 10, 18, 12, tzinfo=UTC).isoformat()
        start = parse_timestamp("2026-10-18T16:00:00+05:00").isoformat()
        end = parse_timestamp("2026-10-18T18:00:00+05:00").isoformat()

        assert start <= stored <= end

    def test_ensure_utc_keeps_the_instant(self) -> None:
        local = datetime(2026, 10, 18, 9, 30, tzinfo=timezone(timedelta(hours=-4)))

        assert ensure_utc(local) == local
        assert ensure_utc(local).hour == 13
