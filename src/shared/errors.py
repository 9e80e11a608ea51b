"""Business error taxonomy shared by the identity and storefront domains.

Aggregates and command handlers raise these; the HTTP layer maps each class
to a status code and the standard response envelope. Field-level input
problems keep using ``protean.exceptions.ValidationError``.
"""


class ApplicationError(Exception):
    """Base class for errors that carry a client-facing message."""

    status_code = 400

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class NotFoundError(ApplicationError):
    status_code = 404


class InvalidTransitionError(ApplicationError):
    """An order status change that the state machine does not allow."""


class InvalidStateError(ApplicationError):
    """An operation that is not permitted in the aggregate's current state."""


class UnavailableError(ApplicationError):
    """A product that is inactive or cannot currently be sold."""


class OutOfStockError(UnavailableError):
    pass


class ConflictError(ApplicationError):
    pass


class UnauthorizedError(ApplicationError):
    status_code = 401


class ForbiddenError(ApplicationError):
    status_code = 403
