"""
core/errors.py -- Domain error taxonomy.

Services raise these; api/main.py maps them onto the ErrorResponse envelope
using the status_code and code class attributes. Services never import
FastAPI, so the same errors surface unchanged through the CLI and tests.

Layer rule: core/ is the kernel -- no imports from api/, auth/, activity/, client/.
"""


class AppError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400
    code = "validation_error"


class AuthError(AppError):
    """Bad credentials. The message is deliberately generic."""

    status_code = 401
    code = "invalid_credentials"


class ConflictError(AppError):
    """Duplicate identity (email already registered)."""

    status_code = 409
    code = "conflict"


class StorageError(AppError):
    """The database could not be reached or refused the write."""

    status_code = 500
    code = "storage_error"
