"""Havaasa exception hierarchy.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to; the FastAPI handlers in ``havaasa.api.errors`` pick the representation
(JSON, HTML or plain text) based on the caller.
"""


class HavaasaError(Exception):
    """Base exception for Havaasa."""

    status_code = 500
    code = "INTERNAL_ERROR"
    # Message shown to clients when internals are hidden
    public_message: str | None = None

    def __init__(self, message: str, *, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(HavaasaError):
    """Requested record does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(HavaasaError):
    """Request input was rejected."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, fields: dict[str, bool] | None = None):
        super().__init__(message)
        self.fields = fields or {}


class AuthenticationError(HavaasaError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    code = "AUTH_ERROR"


class DataAccessError(HavaasaError):
    """The data collaborator failed."""

    status_code = 500
    code = "DATABASE_ERROR"
    public_message = "Internal server error"


class StorageError(HavaasaError):
    """Uploading or removing a stored file failed."""

    status_code = 500
    code = "STORAGE_ERROR"


class RenderError(HavaasaError):
    """HTML templating failed."""

    status_code = 500
    code = "RENDER_ERROR"
    public_message = "Failed to render page"
