"""Exception taxonomy for the capture-to-storage pipeline."""


class PoleCaptureError(Exception):
    """Base class for all pipeline errors."""
    pass


class ConfigurationError(PoleCaptureError):
    """Raised when required configuration is missing or incomplete."""
    pass


class ValidationError(PoleCaptureError, ValueError):
    """Raised when input validation fails (e.g. missing filename)."""
    pass


class PreparationError(PoleCaptureError):
    """Raised when a presigned upload URL cannot be issued or obtained.

    When the issuer answered, ``status_code`` and ``body`` hold its reply.
    """

    def __init__(self, message, status_code=None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LocalIOError(PoleCaptureError):
    """Raised when moving, reading or listing local files fails."""
    pass


class NotFoundError(LocalIOError):
    """Raised when a local file expected before upload does not exist."""
    pass


class NetworkError(PoleCaptureError):
    """Raised on transport failures or non-2xx responses from remote calls."""

    def __init__(self, message, status_code=None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
