"""Custom metrics for the food ordering API."""

from opentelemetry import metrics

meter = metrics.get_meter("food-ordering-api")

orders_created_counter = meter.create_counter(
    name="orders_created_total",
    description="Total number of orders placed",
    unit="1",
)

order_value_histogram = meter.create_histogram(
    name="order_value",
    description="Server-computed total of placed orders",
    unit="1",
)

reservation_failure_counter = meter.create_counter(
    name="stock_reservation_failure_total",
    description="Stock reservations rejected, by reason",
    unit="1",
)

release_failure_counter = meter.create_counter(
    name="stock_release_failure_total",
    description="Compensating stock releases that could not be applied",
    unit="1",
)

status_transition_counter = meter.create_counter(
    name="order_status_transition_total",
    description="Order status changes, by source and target status",
    unit="1",
)

image_cleanup_failure_counter = meter.create_counter(
    name="image_cleanup_failure_total",
    description="Stored images that could not be deleted with their menu item",
    unit="1",
)


def record_order_created(total_amount: float, line_count: int) -> None:
    """Record a successfully placed order.

    Args:
        total_amount: Server-computed order total
        line_count: Number of lines on the order
    """
    orders_created_counter.add(1, {"line_count": line_count})
    order_value_histogram.record(total_amount)


def record_reservation_failure(reason: str) -> None:
    """Record a rejected stock reservation.

    Args:
        reason: Error type that rejected the reservation (e.g. "InsufficientStockError")
    """
    reservation_failure_counter.add(1, {"reason": reason})


def record_release_failure(menu_item_id: str) -> None:
    """Record a compensating release that did not apply.

    Args:
        menu_item_id: Item whose stock could not be restored
    """
    release_failure_counter.add(1, {"menu_item_id": menu_item_id})


def record_status_transition(from_status: str, to_status: str) -> None:
    """Record an order status change.

    Args:
        from_status: Status before the change
        to_status: Status after the change
    """
    status_transition_counter.add(1, {"from": from_status, "to": to_status})


def record_image_cleanup_failure() -> None:
    """Record a stored image that was left behind by a menu item delete."""
    image_cleanup_failure_counter.add(1)
