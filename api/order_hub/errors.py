"""Domain exceptions for Order Hub."""
from __future__ import annotations
from typing import Optional


class OrderHubError(Exception):
    """Base exception for all order hub domain errors."""

    pass


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class NotFoundError(OrderHubError):
    """Raised when a client, article or order does not exist."""

    entity = "Record"

    def __init__(self, ident):
        self.ident = ident
        super().__init__(f"{self.entity} not found: {ident}")


class ArticleNotFoundError(NotFoundError):
    entity = "Article"


class ClientNotFoundError(NotFoundError):
    entity = "Client"


class OrderNotFoundError(NotFoundError):
    entity = "Order"


# ---------------------------------------------------------------------------
# Input and stock errors
# ---------------------------------------------------------------------------

class ValidationError(OrderHubError):
    """Raised when a field value breaks a business rule."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class InsufficientStockError(OrderHubError):
    """Raised when a reservation asks for more than the available stock."""

    def __init__(self, article_number: str, requested: int, available: Optional[int] = None):
        self.article_number = article_number
        self.requested = requested
        self.available = available
        msg = f"Insufficient stock for {article_number}: requested {requested}"
        if available is not None:
            msg = f"{msg}, available {available}"
        super().__init__(msg)


class DuplicateKeyError(OrderHubError):
    """Raised when a unique article number, email or client number already exists."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"{field} already exists: {value}")


# ---------------------------------------------------------------------------
# State conflicts
# ---------------------------------------------------------------------------

class StateConflictError(OrderHubError):
    """Raised when an operation is not allowed in the order's current status."""

    pass


class AlreadyConfirmedError(StateConflictError):
    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(f"Order {order_number} is already confirmed")


class OrderLockedError(StateConflictError):
    def __init__(self, order_number: str, status: str):
        self.order_number = order_number
        self.status = status
        super().__init__(f"Order {order_number} cannot be modified in status {status}")
