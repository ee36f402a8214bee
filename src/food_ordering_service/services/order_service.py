"""Order service: checkout, order history and fulfilment status."""

import logging
import uuid
from datetime import datetime

from food_ordering_service.errors import (
    InternalError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from food_ordering_service.models.base_models import parse_timestamp
from food_ordering_service.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderStatus,
)
from food_ordering_service.observability.decorators import traced
from food_ordering_service.observability.metrics import (
    record_order_created,
    record_status_transition,
)
from food_ordering_service.repositories.order_repository import OrderRepository
from food_ordering_service.services.inventory_service import InventoryReservationEngine
from food_ordering_service.services.order_status_machine import (
    allowed_transitions,
    ensure_transition,
    parse_status,
)

logger = logging.getLogger(__name__)


def _newest_first(orders: list[Order]) -> list[Order]:
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


class OrderService:
    """Service for placing orders and moving them through their lifecycle.

    Stock is only ever taken through the InventoryReservationEngine, and
    status only ever changes through the order status state machine.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        inventory_engine: InventoryReservationEngine,
    ) -> None:
        """Initialize the OrderService.

        Args:
            order_repository: Repository for the order ledger
            inventory_engine: Engine that reserves stock for order lines
        """
        self.order_repository = order_repository
        self.inventory_engine = inventory_engine

    @traced("create_order")
    async def create_order(self, request: OrderCreateRequest) -> Order:
        """Place an order.

        Every line is reserved against live stock, prices are snapshotted and
        the total is computed here. Client-side prices and totals never reach
        this method. If anything fails, reserved stock is given back.

        Args:
            request: Checkout payload

        Returns:
            The stored Order with status ``pending``

        Raises:
            ValidationError: If the cart is empty or the customer name is missing
            ReservationError: If a line cannot be reserved
            NotFoundError: If a line references an unknown menu item
            InternalError: If the order could not be stored
        """
        if not request.items:
            raise ValidationError("No items in order")

        customer_name = (request.customer_name or "").strip()
        if not customer_name:
            raise ValidationError("customerName is required")

        snapshots = self.inventory_engine.reserve_all(
            [(line.menu_id, line.quantity) for line in request.items]
        )

        order = Order(
            id=uuid.uuid4().hex,
            user_id=request.user_id or None,
            customer_name=customer_name,
            customer_phone=request.customer_phone or None,
            delivery_address=request.delivery_address or None,
            customer_table=request.customer_table or None,
            items=[snapshot.to_order_line() for snapshot in snapshots],
            total_amount=self.inventory_engine.calculate_total(snapshots),
            status=OrderStatus.PENDING,
        )

        if not self.order_repository.save_order(order):
            logger.error(f"Order {order.id} was not stored, releasing reserved stock")
            self.inventory_engine.release_all(snapshots)
            raise InternalError("Failed to create order")

        logger.info(
            f"Order {order.id} placed with {len(order.items)} line(s), total {order.total_amount}"
        )
        record_order_created(float(order.total_amount), len(order.items))
        return order

    async def get_order(self, order_id: str) -> Order:
        """Get a single order.

        Raises:
            NotFoundError: If the order does not exist
        """
        order = self.order_repository.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def list_orders(
        self,
        status: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[Order]:
        """List orders for the admin portal, newest first.

        Args:
            status: Optional status filter
            start_date: Optional inclusive lower bound on created_at (ISO 8601)
            end_date: Optional inclusive upper bound on created_at (ISO 8601)

        Returns:
            Matching orders, newest first

        Raises:
            ValidationError: If the status or either date cannot be parsed, or
                only one of the two dates is given
        """
        status_filter = parse_status(status) if status else None

        window_start: datetime | None = None
        window_end: datetime | None = None
        if start_date or end_date:
            if not (start_date and end_date):
                raise ValidationError("startDate and endDate must be given together")
            window_start = self._parse_date(start_date, "startDate")
            window_end = self._parse_date(end_date, "endDate")

        orders = self.order_repository.list_orders(
            status=status_filter, start_date=window_start, end_date=window_end
        )
        return _newest_first(orders)

    async def list_orders_for_user(self, user_id: str) -> list[Order]:
        """List a customer's own orders, newest first."""
        return _newest_first(self.order_repository.list_orders_for_user(user_id))

    @traced("update_order_status")
    async def update_status(self, order_id: str, status: str | None) -> Order:
        """Move an order to a new status.

        Re-applying the current status is a no-op that returns the order
        without writing. The write is conditional on the status the
        transition was validated against. If another writer got there first,
        the order is re-read and the transition validated once more.

        Args:
            order_id: Order to update
            status: Requested status

        Returns:
            The order as stored after the update

        Raises:
            NotFoundError: If the order does not exist
            ValidationError: If the status is missing or unknown
            InvalidTransitionError: If the state machine does not allow the change
        """
        order = await self.get_order(order_id)
        requested = parse_status(status)

        for attempt in range(2):
            current = order.status
            if not ensure_transition(current, requested):
                return order

            updated = self.order_repository.update_status(
                order_id, status=requested, expected_status=current
            )
            if updated is not None:
                logger.info(f"Order {order_id} moved from {current.value} to {requested.value}")
                record_status_transition(current.value, requested.value)
                return updated

            logger.warning(f"Order {order_id} changed while updating status, re-reading")
            fresh = self.order_repository.get_order(order_id, consistent_read=True)
            if fresh is None:
                raise NotFoundError("Order not found")
            order = fresh

        # Lost the race twice; report against the latest state we saw
        raise InvalidTransitionError(
            current=order.status.value,
            requested=requested.value,
            allowed=[allowed.value for allowed in allowed_transitions(order.status)],
        )

    @staticmethod
    def _parse_date(value: str, field_name: str) -> datetime:
        try:
            return parse_timestamp(value)
        except ValueError as e:
            raise ValidationError(f"Invalid {field_name}: {value}") from e
