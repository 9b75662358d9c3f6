"""
Domain Errors

Every mutating operation fails with one of these. They are recoverable by
the caller; nothing inside the core retries them.
"""


class DomainError(Exception):
    """Base class for errors raised by domain and application layers"""

    code = 'domain_error'
    default_message = 'Operation failed'

    def __init__(self, message: str | None = None, *, field: str | None = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {'code': self.code, 'detail': self.message}
        if self.field:
            payload['field'] = self.field
        return payload


class ValidationError(DomainError, ValueError):
    """Malformed or out-of-range input; rejected before any state change"""

    code = 'validation'
    default_message = 'Invalid input'


class AuthorizationError(DomainError):
    """Actor lacks the role or permission for the action"""

    code = 'unauthorized'
    default_message = 'Insufficient permission'


class NotFoundError(DomainError):
    code = 'not_found'
    default_message = 'Not found'


class ConflictError(DomainError):
    """
    Booking status precondition failed

    Either the transition is not allowed from the current status or a
    concurrent request changed the status first. Callers may re-fetch
    the booking and retry.
    """

    code = 'conflict'
    default_message = 'Booking state has changed'
