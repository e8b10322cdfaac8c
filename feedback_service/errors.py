"""Service-level error taxonomy.

Services raise these; the app-level error handler turns them into
``{"error": message}`` JSON bodies with the matching status code.
"""


class ServiceError(RuntimeError):
    """Recoverable service error (validation/uniqueness/etc.)."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class InvalidReference(ServiceError):
    status_code = 422
    default_message = "Referenced entity does not belong to this application"


class InvalidCredential(ServiceError):
    status_code = 401
    default_message = "Invalid credentials"


class Forbidden(ServiceError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ServiceError):
    status_code = 404
    default_message = "Not found"


class Conflict(ServiceError):
    status_code = 409
    default_message = "Conflict"
