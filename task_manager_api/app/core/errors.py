"""
Error taxonomy shared by the REST and GraphQL surfaces.

Services raise these exceptions; each transport translates them at its
boundary.  REST uses ``http_status`` and ``to_response()`` to build the
``{"error": {...}}`` envelope; GraphQL uses ``message`` and
``graphql_code``.  ``code`` is the stable machine-readable identifier
clients switch on (``TASK_NOT_FOUND``, ``TOKEN_EXPIRED`` and so on).

Internal failures carry a generic message only.  The original exception
is logged where it is caught, never echoed to the caller.
"""

from typing import List, Optional


class ApiError(Exception):
    """Base class for all errors reported to API clients."""

    http_status = 500
    graphql_code = "INTERNAL_SERVER_ERROR"
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details

    def to_response(self) -> dict:
        """Build the REST error envelope."""
        error = {"message": self.message, "code": self.code}
        if self.details:
            error["details"] = list(self.details)
        return {"error": error}


class ValidationError(ApiError):
    """Client input is malformed; ``details`` lists every violation."""

    http_status = 400
    graphql_code = "BAD_USER_INPUT"
    default_code = "VALIDATION_ERROR"


class Unauthenticated(ApiError):
    http_status = 401
    graphql_code = "UNAUTHENTICATED"
    default_code = "INVALID_TOKEN"


class Forbidden(ApiError):
    http_status = 403
    graphql_code = "FORBIDDEN"
    default_code = "ACCESS_DENIED"


class NotFound(ApiError):
    http_status = 404
    graphql_code = "BAD_USER_INPUT"
    default_code = "NOT_FOUND"


class Conflict(ApiError):
    http_status = 409
    graphql_code = "BAD_USER_INPUT"
    default_code = "CONFLICT"


class InvariantViolation(ApiError):
    """The operation would break a store-wide invariant (e.g. last admin)."""

    http_status = 400
    graphql_code = "BAD_USER_INPUT"
    default_code = "INVARIANT_VIOLATION"


class InternalError(ApiError):
    http_status = 500
    graphql_code = "INTERNAL_SERVER_ERROR"
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error", code: Optional[str] = None):
        super().__init__(message, code)


# Token verification failures.  All three are reported to REST clients
# as 401s; expiry gets its own code so clients know to refresh.

class MalformedToken(Unauthenticated):
    default_code = "INVALID_TOKEN"


class InvalidSignature(Unauthenticated):
    default_code = "INVALID_TOKEN"


class TokenExpired(Unauthenticated):
    default_code = "TOKEN_EXPIRED"
