"""Custom exception classes for the docspace API."""


class DocspaceError(Exception):
    """Base exception for docspace."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(DocspaceError):
    """Request or domain validation failure; raised before any side effect."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(DocspaceError):
    """Resource not found (or owned by another organization)."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(DocspaceError):
    """Authentication required or token invalid."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class AuthorizationError(DocspaceError):
    """Insufficient permissions or no organization in the session."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__("AUTHORIZATION_ERROR", message, status_code=403)


class ConflictError(DocspaceError):
    """Uniqueness violation: the resource already exists."""

    def __init__(self, message: str, details=None):
        super().__init__("CONFLICT", message, details, status_code=409)


class IndexingServiceError(DocspaceError):
    """The external indexing service rejected a request or was unreachable."""

    def __init__(self, message: str, details=None):
        super().__init__("INDEXING_SERVICE_ERROR", message, details, status_code=502)


class StorageError(DocspaceError):
    """A filesystem operation on a fatal step failed."""

    def __init__(self, message: str, details=None):
        super().__init__("STORAGE_ERROR", message, details, status_code=500)
