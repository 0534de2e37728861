class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced attendance record does not exist."""


class AlreadyClosedError(DomainError):
    """Raised when closing a record that has no open session."""


class SessionConflictError(DomainError):
    """Raised when a conditional close lost a race against another writer."""


class StoreUnavailableError(Exception):
    """Raised by a store when its backend cannot be reached.

    Not a DomainError: the core lets it propagate unchanged.
    """
