"""Shared pytest fixtures and configuration for all tests."""

import os
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

# Entry modules skip cold-start wiring when imported under test
os.environ.setdefault("ENVIRONMENT", "test")

from food_ordering_service.auth.token_service import TokenService  # noqa: E402
from food_ordering_service.models.menu_models import MenuItem  # noqa: E402
from food_ordering_service.models.order_models import Order, OrderLine, OrderStatus  # noqa: E402

TEST_JWT_SECRET = "test-signing-secret"


@pytest.fixture
def token_service() -> TokenService:
    """Fixture providing a token service with a fixed test secret."""
    return TokenService(secret=TEST_JWT_SECRET)


@pytest.fixture
def admin_token(token_service: TokenService) -> str:
    """Fixture providing a valid admin bearer token."""
    return token_service.issue_admin_token("admin_1", "admin@example.com")


@pytest.fixture
def customer_token(token_service: TokenService) -> str:
    """Fixture providing a valid customer bearer token."""
    return token_service.issue_customer_token("cust_1", "jane@example.com")


@pytest.fixture
def sample_menu_item() -> MenuItem:
    """Fixture providing an in-stock, available menu item."""
    return MenuItem(
        id="item_1",
        name="Jollof Rice",
        description="Smoky party jollof",
        price=Decimal("5000"),
        category="Mains",
        stock=2,
        is_available=True,
        created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
    )


@pytest.fixture
def sample_menu_dynamodb_item() -> dict:
    """Fixture providing a menu item as DynamoDB returns it."""
    return {
        "id": "item_1",
        "name": "Jollof Rice",
        "description": "Smoky party jollof",
        "price": Decimal("5000"),
        "category": "Mains",
        "stock": Decimal("2"),
        "is_available": True,
        "created_at": "2024-01-15T10:30:00+00:00",
    }


@pytest.fixture
def sample_order() -> Order:
    """Fixture providing a pending order with a single line."""
    created_at = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
    return Order(
        id="order_1",
        user_id="cust_1",
        customer_name="Jane Doe",
        customer_phone="08012345678",
        items=[
            OrderLine(
                menu_id="item_1",
                name="Jollof Rice",
                quantity=2,
                price_at_order=Decimal("5000"),
            )
        ],
        total_amount=Decimal("10000"),
        status=OrderStatus.PENDING,
        created_at=created_at,
    )


@pytest.fixture
def older_order(sample_order: Order) -> Order:
    """Fixture providing a copy of the sample order placed a day earlier."""
    return sample_order.model_copy(
        update={"id": "order_0", "created_at": sample_order.created_at - timedelta(days=1)}
    )
