"""
Application Errors
Errors raised inside request handling that map to an HTTP status and a client-safe message
"""

from __future__ import annotations


class AppError(Exception):
    """Base error carrying the HTTP status returned to the client"""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {'success': False, 'message': self.message}


class ValidationError(AppError):
    status_code = 400


class NotImplementedFeatureError(AppError):
    status_code = 501


class StoreUnavailableError(AppError):
    status_code = 503

    def __init__(self, message: str = 'Database not available'):
        super().__init__(message)
