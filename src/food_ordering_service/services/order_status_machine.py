"""Order fulfilment state machine.

    pending -> preparing -> served -> paid
       \\           \\           \\
        +-----------+-----------+--> cancelled

``paid`` and ``cancelled`` are terminal. Re-applying the current status is an
allowed no-op.
"""

from food_ordering_service.errors import InvalidTransitionError, ValidationError
from food_ordering_service.models.order_models import OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.SERVED, OrderStatus.CANCELLED),
    OrderStatus.SERVED: (OrderStatus.PAID, OrderStatus.CANCELLED),
    OrderStatus.PAID: (),
    OrderStatus.CANCELLED: (),
}


def allowed_transitions(status: OrderStatus) -> list[OrderStatus]:
    """Statuses an order may move to from ``status``."""
    return list(ALLOWED_TRANSITIONS[status])


def is_terminal(status: OrderStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def parse_status(value: str | None) -> OrderStatus:
    """Parse a requested status from a request body.

    Raises:
        ValidationError: If the value is missing or not a known status
    """
    valid = ", ".join(status.value for status in OrderStatus)
    if not value:
        raise ValidationError(f"Missing status. Expected one of: {valid}")

    try:
        return OrderStatus(value.strip().lower())
    except ValueError as e:
        raise ValidationError(f"Unknown status '{value}'. Expected one of: {valid}") from e


def ensure_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """Check that an order may move from ``current`` to ``requested``.

    Args:
        current: Status the order holds now
        requested: Status asked for

    Returns:
        True if the status changes, False for an idempotent no-op

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if requested == current:
        return False

    allowed = ALLOWED_TRANSITIONS[current]
    if requested not in allowed:
        raise InvalidTransitionError(
            current=current.value,
            requested=requested.value,
            allowed=[status.value for status in allowed],
        )

    return True
