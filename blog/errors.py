"""
Error types shared by the service and router layers.

Services raise these; ``blog.main`` maps them to HTTP responses.  Missing
rows are not errors here: services return ``None``/``False`` and the router
decides between a 404 and a ``null`` body.
"""

UNAUTHED_ERR_MSG = "Please login (10001)"
NOT_ADMIN_ERR_MSG = "You do not have required permission (10002)"


class DatabaseUnavailableError(RuntimeError):
    """Raised by write operations when no database is configured."""

    def __init__(self, message: str = "Database not available") -> None:
        super().__init__(message)


class InvalidReferenceError(ValueError):
    """A write referenced a row that does not exist or belongs elsewhere."""
