"""Error taxonomy shared by the token service, the services and the routes.

Routes translate these into HTTP status codes:
- ValidationError  → 400
- InvalidToken     → 401 (empty body, raised by the auth guard)
- Unauthenticated  → 401 (empty body, raised by the auth guard)
- NotFound         → 404
- PersistenceError → 400
"""


class TodoApiError(Exception):
    """Base class for all application errors."""


class ValidationError(TodoApiError):
    """Malformed or missing input, or a failed uniqueness constraint."""


class Unauthenticated(TodoApiError):
    """No usable token, or the token is not registered for its user."""


class InvalidToken(Unauthenticated):
    """Signature check failed, payload malformed, or wrong access purpose."""


class NotFound(TodoApiError):
    """No record matching the id owned by the caller (or a malformed id)."""


class PersistenceError(TodoApiError):
    """The backing store failed for a reason unrelated to the input."""
