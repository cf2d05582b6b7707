# pulse/domain/errors.py
"""
Domain exceptions raised by the services.

Each one knows the HTTP status it maps to; the API layer renders them
into the ``{"success": false, "error": ...}`` envelope.
"""


class ShopError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShopError, ValueError):
    status_code = 400


class OutOfStockError(ValidationError):
    def __init__(self, message: str, available: int):
        super().__init__(message)
        self.available = available


class UnauthorizedError(ShopError):
    status_code = 401


class ForbiddenError(ShopError, PermissionError):
    status_code = 403


class NotFoundError(ShopError, LookupError):
    status_code = 404


class ConflictError(ShopError):
    status_code = 409


class RateLimitError(ShopError):
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after
