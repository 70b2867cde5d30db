"""
Error taxonomy for the storefront and its HTTP translation.

Domain errors are raised by services and the data layer. They carry the
underlying cause text, which is shown to the dashboard user as-is.
Nothing here is retried.
"""
from fastapi import status


class StorefrontError(Exception):
    """Base class for every error the services raise on purpose."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Bad or missing input, caught before any write."""

    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(StorefrontError):
    """Requested quantity exceeds the last known stock."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}"
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class NotFoundError(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class ReferentialConstraintError(StorefrontError):
    """Delete blocked because other rows still reference the target."""

    status_code = status.HTTP_409_CONFLICT


class PersistenceError(StorefrontError):
    """The data service rejected a read or write."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class SaleCommitError(PersistenceError):
    """
    A step of the sale commit failed.

    No compensation is performed: when ``step`` is ``items`` or ``stock`` the
    sale header identified by ``sale_id`` has already been written.
    """

    def __init__(self, step: str, cause: str, sale_id: str | None = None):
        super().__init__(cause)
        self.step = step
        self.sale_id = sale_id

