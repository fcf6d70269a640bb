"""Exceptions raised by the marketplace service.

Every class carries the HTTP status it maps to; main.py turns them into
``{"success": false, "message": ...}`` responses.
"""


class MarketplaceError(Exception):
    """Base exception for all marketplace errors."""

    status_code = 500


class UnauthenticatedError(MarketplaceError):
    """Raised when no valid credential accompanies the request."""

    status_code = 401


class ForbiddenError(MarketplaceError):
    """Raised on a role mismatch or a deactivated account."""

    status_code = 403


class InvalidRequestError(MarketplaceError):
    """Raised for missing or malformed fields."""

    status_code = 400


class NotFoundError(MarketplaceError):
    """Raised when a record is absent or not owned by the caller."""

    status_code = 404


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class ShopNotFoundError(NotFoundError):
    def __init__(self, shop_id: str):
        self.shop_id = shop_id
        super().__init__("Shop not found")


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found")


class NotificationNotFoundError(NotFoundError):
    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__("Notification not found")


class ProductUnavailableError(MarketplaceError):
    """Raised when a product is unpublished or marked unavailable."""

    status_code = 400

    def __init__(self, product_id: str, product_name: str):
        self.product_id = product_id
        super().__init__(f"Product {product_name} is not available")


class InsufficientStockError(MarketplaceError):
    """Raised when a line asks for more than the product's quantity."""

    status_code = 400

    def __init__(self, product_id: str, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, Requested: {requested}"
        )


class StockConflictError(MarketplaceError):
    """Raised when a product's stock keeps changing underneath a reservation."""

    status_code = 400

    def __init__(self, product_id: str, product_name: str):
        self.product_id = product_id
        super().__init__(f"Stock for {product_name} changed while placing the order, please retry")


class UploadFailedError(MarketplaceError):
    """Raised when a configured upload backend rejects or drops a file."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__("Image upload failed")


class InvalidTransitionError(MarketplaceError):
    """Raised when an order cannot move from its current status to the requested one."""

    status_code = 400

    def __init__(self, current: str, requested: str, message: str = None):
        self.current = current
        self.requested = requested
        super().__init__(message or f"Order cannot move from {current} to {requested}")
