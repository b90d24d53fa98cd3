"""
Domain error taxonomy.

Every failure raised by the services is an ApiError subclass carrying the HTTP
status it maps to. api/errors.py turns them into the response envelope.
"""
from __future__ import annotations


class ApiError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, *, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid input"


class AuthError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(ApiError):
    status_code = 500
