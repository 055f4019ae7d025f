"""Domain errors raised by the account, task and storage layers.

Every error carries the HTTP status it maps to and a message that is safe to
show to the caller. ``taskwave.api.errors`` turns them into JSON responses.
"""


class TaskWaveError(Exception):
    status_code: int = 500
    message: str = "Server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(TaskWaveError):
    """Bad or missing input."""

    status_code = 400
    message = "Invalid input"


class ConflictError(TaskWaveError):
    """A unique field (email, username) is already taken."""

    status_code = 400
    message = "Already exists"


class AuthError(TaskWaveError):
    """Bad credentials (401) or a missing/invalid token (401/403)."""

    status_code = 401
    message = "Invalid email or password"


class NotFoundError(TaskWaveError):
    status_code = 404
    message = "Not found"


class ServerError(TaskWaveError):
    """Unexpected failure; the message shown to callers stays generic."""

    status_code = 500
    message = "Server error"


class StorageError(ServerError):
    """Reading or writing a collection failed."""
