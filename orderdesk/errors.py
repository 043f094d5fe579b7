"""
Domain Errors

Every error the catalog, pricing engine and ledger raise on purpose.
Each carries the HTTP status the API surfaces it with, a human message
and optional machine-readable detail. All of them are raised before
any write begins, so a failed call leaves the store unchanged.
"""

from typing import Any, Optional


class OrderDeskError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = 400
    error: str = "Bad Request"

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": False,
            "error": self.error,
            "message": self.message,
            "detail": self.detail,
        }


class ValidationError(OrderDeskError):
    """Missing or malformed required fields."""

    error = "Validation Error"

    def __init__(self, fields: dict[str, str]):
        names = ", ".join(sorted(fields))
        super().__init__(f"Invalid or missing fields: {names}", detail=fields)
        self.fields = fields


class NotFound(OrderDeskError):
    status_code = 404
    error = "Not Found"


class CategoryNotFound(NotFound):
    def __init__(self, category_id: int):
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class ItemNotFound(NotFound):
    def __init__(self, item_id: int):
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class OrderNotFound(NotFound):
    def __init__(self, order_id: int):
        super().__init__(f"Order #{order_id} not found")
        self.order_id = order_id


class EmptyOrder(OrderDeskError):
    error = "Empty Order"

    def __init__(self):
        super().__init__("An order needs at least one item")


class ItemUnavailable(OrderDeskError):
    """An order referenced a missing or disabled menu item."""

    error = "Item Unavailable"

    def __init__(self, item_id: Any):
        super().__init__(f"Item {item_id} unavailable", detail={"itemId": item_id})
        self.item_id = item_id


class InvalidStatus(OrderDeskError):
    error = "Invalid Status"

    def __init__(self, value: Any, allowed: list[str]):
        super().__init__(
            f"Invalid status {value!r}. Options: {allowed}",
            detail={"allowed": allowed},
        )
        self.value = value


class InvalidTransition(OrderDeskError):
    """A known status that the strict state machine refuses."""

    status_code = 409
    error = "Invalid Transition"

    def __init__(self, current: str, target: str, allowed: list[str]):
        super().__init__(
            f"Cannot move order from {current} to {target}",
            detail={"current": current, "target": target, "allowed": allowed},
        )
        self.current = current
        self.target = target
