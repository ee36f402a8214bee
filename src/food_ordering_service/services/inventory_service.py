"""Inventory reservation engine.

Every stock change made while placing an order goes through ``reserve``, which
checks availability and decrements stock in a single conditional DynamoDB
write. Two concurrent orders for the last unit therefore cannot both succeed.

Multi-line orders use ``reserve_all``: if any line fails, the lines already
reserved in the same request are released again before the error propagates.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from food_ordering_service.errors import (
    InsufficientStockError,
    NotFoundError,
    ReservationError,
    UnavailableError,
    ValidationError,
)
from food_ordering_service.models.order_models import OrderLine
from food_ordering_service.observability.decorators import traced
from food_ordering_service.observability.metrics import (
    record_release_failure,
    record_reservation_failure,
)
from food_ordering_service.repositories.menu_repository import MenuRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceSnapshot:
    """Outcome of a successful reservation for one order line.

    Attributes:
        menu_item_id: The reserved menu item
        name: Item name at reservation time, kept verbatim for order history
        quantity: Units taken out of stock
        price_at_order: Unit price read atomically with the decrement
        auto_disabled: Whether this reservation switched the item off at zero stock
    """

    menu_item_id: str
    name: str
    quantity: int
    price_at_order: Decimal
    auto_disabled: bool = False

    @property
    def line_total(self) -> Decimal:
        return self.price_at_order * self.quantity

    def to_order_line(self) -> OrderLine:
        return OrderLine(
            menu_id=self.menu_item_id,
            name=self.name,
            quantity=self.quantity,
            price_at_order=self.price_at_order,
        )


class InventoryReservationEngine:
    """Validates and commits stock changes for order lines."""

    def __init__(self, menu_repository: MenuRepository, max_attempts: int = 3) -> None:
        """Initialize the engine.

        Args:
            menu_repository: Repository owning menu stock
            max_attempts: Conditional-write attempts per line before giving up
        """
        self.menu_repository = menu_repository
        self.max_attempts = max_attempts

    @traced("reserve_stock")
    def reserve(self, menu_item_id: str, quantity: int) -> PriceSnapshot:
        """Atomically reserve ``quantity`` units of a menu item.

        Args:
            menu_item_id: Item to reserve
            quantity: Units to reserve

        Returns:
            PriceSnapshot with the item name and price at reservation time

        Raises:
            ValidationError: If quantity is not a positive integer
            NotFoundError: If the item does not exist
            UnavailableError: If the item is switched off with stock left
            InsufficientStockError: If fewer than ``quantity`` units are in stock
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"Quantity must be a positive integer, got {quantity!r}")

        for attempt in range(1, self.max_attempts + 1):
            updated = self.menu_repository.decrement_stock(menu_item_id, quantity)

            if updated is not None:
                auto_disabled = False
                if updated.stock == 0:
                    auto_disabled = self.menu_repository.disable_if_sold_out(menu_item_id)
                    if auto_disabled:
                        logger.info(f"Menu item {menu_item_id} sold out and was disabled")

                return PriceSnapshot(
                    menu_item_id=updated.id,
                    name=updated.name,
                    quantity=quantity,
                    price_at_order=updated.price,
                    auto_disabled=auto_disabled,
                )

            rejection = self._explain_rejection(menu_item_id, quantity)
            if rejection is not None:
                record_reservation_failure(type(rejection).__name__)
                raise rejection

            logger.warning(
                f"Stock for {menu_item_id} changed during reservation, "
                f"retrying (attempt {attempt}/{self.max_attempts})"
            )

        record_reservation_failure(InsufficientStockError.__name__)
        raise InsufficientStockError(
            f"Insufficient stock for: {menu_item_id}. Stock is changing too quickly to reserve",
            menu_item_id=menu_item_id,
            available=0,
        )

    def release(self, snapshot: PriceSnapshot) -> bool:
        """Give reserved units back to stock.

        Never raises; a failed release is logged and counted because it runs
        while another error is already propagating.

        Args:
            snapshot: Reservation to undo

        Returns:
            bool: True if the stock was restored
        """
        try:
            released = self.menu_repository.release_stock(
                snapshot.menu_item_id,
                snapshot.quantity,
                re_enable=snapshot.auto_disabled,
            )
        except Exception:
            logger.exception(f"Error releasing stock for {snapshot.menu_item_id}")
            released = False

        if not released:
            logger.error(
                f"Could not release {snapshot.quantity} units of {snapshot.menu_item_id}; "
                "catalog stock needs manual correction"
            )
            record_release_failure(snapshot.menu_item_id)

        return released

    def release_all(self, snapshots: list[PriceSnapshot]) -> None:
        for snapshot in reversed(snapshots):
            self.release(snapshot)

    @traced("reserve_order_lines")
    def reserve_all(self, lines: list[tuple[str, int]]) -> list[PriceSnapshot]:
        """Reserve every line of an order, or none of them.

        Args:
            lines: (menu_item_id, quantity) pairs in cart order

        Returns:
            One PriceSnapshot per line, in the same order

        Raises:
            The error of the first line that could not be reserved, after every
            earlier reservation in the batch has been released
        """
        snapshots: list[PriceSnapshot] = []

        for menu_item_id, quantity in lines:
            try:
                snapshots.append(self.reserve(menu_item_id, quantity))
            except Exception:
                if snapshots:
                    logger.info(
                        f"Releasing {len(snapshots)} reserved line(s) after failure on {menu_item_id}"
                    )
                self.release_all(snapshots)
                raise

        return snapshots

    @staticmethod
    def calculate_total(snapshots: list[PriceSnapshot]) -> Decimal:
        """Authoritative order total: sum of price_at_order * quantity."""
        return sum((snapshot.line_total for snapshot in snapshots), Decimal("0"))

    def _explain_rejection(self, menu_item_id: str, quantity: int) -> ReservationError | NotFoundError | None:
        """Work out why a conditional decrement was refused.

        Returns:
            The error to raise, or None if the item can satisfy the request now
            (it was restocked between the write and this read)
        """
        item = self.menu_repository.get_item(menu_item_id, consistent_read=True)

        if item is None:
            return NotFoundError(f"Menu item not found: {menu_item_id}")

        # Auto-disabled items have no stock left; they are reported as out of stock
        if not item.is_available and item.stock > 0:
            return UnavailableError(
                f"Item is currently unavailable: {item.name}", menu_item_id=menu_item_id
            )

        if item.stock < quantity:
            return InsufficientStockError(
                f"Insufficient stock for: {item.name}. Available: {item.stock}",
                menu_item_id=menu_item_id,
                available=item.stock,
            )

        return None
