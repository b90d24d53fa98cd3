import logging

from flask import current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError

from services.exceptions import ApiError

from .utils.responses import api_response


def error_response(status: int, message: str, errors: dict | None = None):
    if errors:
        return api_response(status, None, message, errors=errors)
    return api_response(status, None, message)


def register_error_handlers(app):
    # Domain errors raised by the services carry their own status
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code >= 500:
            logging.exception("Internal error", exc_info=err)
        return error_response(err.status_code, err.message, err.details)

    # Marshmallow validation errors map to 400
    @app.errorhandler(SchemaValidationError)
    def handle_validation_error(err: SchemaValidationError):
        # err.messages contains field-level details
        return error_response(400, "Invalid input", errors=err.normalized_messages())

    # Unique constraints that slipped past the repository checks
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        if current_app and current_app.debug:
            logging.exception("Integrity error", exc_info=err)
        return error_response(409, "Unique constraint violated.")

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.code or 400, err.description)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        errors = None
        if current_app and current_app.debug:
            errors = {"type": err.__class__.__name__, "message": str(err)}
        return error_response(500, "An unexpected error occurred", errors=errors)
