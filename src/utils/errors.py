"""Error taxonomy shared by the gatekeeper's request handlers.

Every error carries the HTTP status it is rendered with. Handlers raise these and
the app-level exception handler turns them into `{"error": message}` responses.
"""


class GradeUpError(Exception):
    """Base class for errors that are reported back to the caller."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationError(GradeUpError):
    """Missing or invalid caller identity."""

    status_code = 401


class AuthorizationError(GradeUpError):
    """Caller does not hold the role the operation requires."""


class PermissionDeniedError(AuthorizationError):
    """Caller holds the role but not the capability flag for this action."""


class ScopeError(AuthorizationError):
    """Caller and target belong to different institutions."""


class NotFoundError(GradeUpError):
    """Referenced entity does not exist."""


class ValidationError(GradeUpError):
    """Malformed or missing request fields."""


class ConflictError(GradeUpError):
    """Operation conflicts with existing state, e.g. an already-active link."""


class SignatureError(GradeUpError):
    """Webhook signature missing or wrong.

    Raised by signature checks and caught by the verifier, which turns it into a
    REJECTED result. It is never rendered: rejected deliveries are still acknowledged.
    """


class OAuthStateError(GradeUpError):
    """The OAuth state store could not be reached."""


class RecordingError(GradeUpError):
    """Persisting an inbound webhook failed. The sender should redeliver."""

    status_code = 503
