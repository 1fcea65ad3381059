class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when badge number or password are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a requested record does not exist."""


class BackendUnavailableError(DomainError):
    """Transient I/O failure talking to the database or photo storage."""


class PermissionDeniedError(DomainError):
    """Camera or geolocation permission was denied. Terminal for the current flow."""


class LocationTimeoutError(DomainError):
    """No location fix was obtained within the configured timeout."""


class InvalidTransitionError(DomainError):
    """A capture-flow action was requested in a state that does not allow it."""


class DataIntegrityError(DomainError):
    """Stored data violates an invariant (e.g. punch-out before punch-in).

    Reported separately from transient failures: retrying will not help.
    """
