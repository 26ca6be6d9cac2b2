from typing import Dict, Optional


class ApiError(Exception):
    """Base error carrying the HTTP status returned to the client"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class ConflictError(ApiError):
    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class DatabaseError(ApiError):
    status_code = 500


class GenerationError(ApiError):
    status_code = 500


class EmailDeliveryError(ApiError):
    status_code = 502
