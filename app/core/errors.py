"""Domain errors raised by repositories and services.

Each class carries the HTTP status the API answers with; the exception
handlers in ``app.main`` turn them into ``{"message": ...}`` bodies.
"""

from typing import Optional


class DomainError(Exception):
    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 422
    default_message = "validation failed"


class BadRequestError(DomainError):
    status_code = 400
    default_message = "bad request"


class AuthenticationError(DomainError):
    status_code = 401
    default_message = "unauthorized"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "not found"


class AlreadyExistsError(DomainError):
    status_code = 409
    default_message = "already exists"


class ConflictError(DomainError):
    status_code = 409
    default_message = "conflict"


class EmailDeliveryError(DomainError):
    status_code = 500
    default_message = "failed to send email"
