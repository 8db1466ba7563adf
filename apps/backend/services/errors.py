"""
Domain errors raised by the service layer.

Routes let these propagate; ``app.py`` turns them into ``{"error": message}``
JSON responses with the status carried by the exception.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(AppError):
    """Missing entity, or an entity the caller does not own."""

    status_code = 404


class InvalidRequestError(AppError):
    status_code = 400


class UpstreamError(AppError):
    status_code = 502


class ExtractionError(AppError):
    status_code = 500
