# errors.py
"""Domain errors raised by the services.

Each error carries the HTTP status it is answered with; ``main.py`` turns
them into ``{"message": ...}`` responses.
"""


class MarketplaceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    status_code = 400


class Unauthorized(MarketplaceError):
    status_code = 401


class Forbidden(MarketplaceError):
    status_code = 403


class NotFound(MarketplaceError):
    status_code = 404


class Unavailable(MarketplaceError):
    status_code = 400


class InsufficientStock(MarketplaceError):
    status_code = 400


class InvalidTransition(MarketplaceError):
    status_code = 400
