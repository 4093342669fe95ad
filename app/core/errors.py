"""
Application errors for clean API error handling.

Every AppError carries an HTTP status and a machine-readable code so the API
layer can render it as a structured error body. GenerationUnavailableError is
caught inside the answer stream and triggers the deterministic extractor.
"""


class AppError(Exception):
    """Base class for errors that are safe to show to the client."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    """Raised when a question is malformed or oversized."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """Raised for requests to routes that do not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ServiceUnavailableError(AppError):
    """Raised when a required service (e.g. record store) is unavailable or misconfigured."""

    status_code = 503
    code = "SERVICE_UNAVAILABLE"


class GenerationUnavailableError(ServiceUnavailableError):
    """
    Raised when no generation backend produced an answer.

    partial is True when some text was already forwarded to the caller before
    the failing backend gave up.
    """

    code = "GENERATION_UNAVAILABLE"

    def __init__(self, message: str, partial: bool = False) -> None:
        self.partial = partial
        super().__init__(message)


class ExtractionFailure(AppError):
    """Raised when the deterministic extractor itself cannot build an answer."""

    code = "EXTRACTION_FAILED"
