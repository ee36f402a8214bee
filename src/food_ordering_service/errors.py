"""Domain error taxonomy for the food ordering API.

Services raise these errors; the API layer converts them into JSON responses
of the form ``{"error": <message>, "type": <class name>}`` with the status code
carried by each class.
"""

from typing import Any


class FoodOrderingError(Exception):
    """Base class for all errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Build the JSON error body for this error.

        Returns:
            Dictionary with the error message and error type
        """
        return {"error": self.message, "type": type(self).__name__}


class AuthError(FoodOrderingError):
    """Missing, malformed, invalid or expired credentials."""

    status_code = 401


class ValidationError(FoodOrderingError):
    """Missing or malformed request fields."""

    status_code = 400


class NotFoundError(FoodOrderingError):
    """A referenced record does not exist."""

    status_code = 404


class ReservationError(FoodOrderingError):
    """A business rule rejected a stock reservation."""

    status_code = 400

    def __init__(self, message: str, menu_item_id: str) -> None:
        super().__init__(message)
        self.menu_item_id = menu_item_id


class UnavailableError(ReservationError):
    """The menu item is switched off."""


class InsufficientStockError(ReservationError):
    """The menu item has fewer units in stock than requested."""

    def __init__(self, message: str, menu_item_id: str, available: int) -> None:
        super().__init__(message, menu_item_id)
        self.available = available

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["available"] = self.available
        return body


class InvalidTransitionError(FoodOrderingError):
    """An order status change that the state machine does not allow."""

    status_code = 400

    def __init__(self, current: str, requested: str, allowed: list[str]) -> None:
        allowed_text = ", ".join(allowed) if allowed else "none"
        super().__init__(
            f"Invalid status transition from {current} to {requested}. Allowed: {allowed_text}"
        )
        self.current = current
        self.requested = requested
        self.allowed = allowed

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["allowed"] = self.allowed
        return body


class InternalError(FoodOrderingError):
    """Unexpected failure, e.g. a write that did not persist."""

    status_code = 500
