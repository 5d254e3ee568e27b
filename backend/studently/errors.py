"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``register_error_handlers`` turns them into the
``{success, data, error}`` envelope with the matching status code.
"""
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from utils.responses import api_error


class StudentlyError(Exception):
    status_code = 500
    reason = "Error"

    def __init__(self, message=None):
        super().__init__(message or self.reason)
        self.message = message or self.reason


class ValidationError(StudentlyError):
    status_code = 400
    reason = "ValidationError"


class AuthorizationError(StudentlyError):
    status_code = 403
    reason = "AuthorizationError"


class NotFoundError(StudentlyError):
    status_code = 404
    reason = "NotFound"


class InvalidReferenceError(StudentlyError):
    """A foreign key that does not resolve, or resolves into another school."""
    status_code = 422
    reason = "InvalidReference"


class UpstreamError(StudentlyError):
    status_code = 500
    reason = "UpstreamError"


def register_error_handlers(app):
    @app.errorhandler(StudentlyError)
    def handle_studently_error(err):
        if err.status_code >= 500:
            current_app.logger.error("%s: %s", err.reason, err.message)
        return api_error(err.message, err.status_code)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(err):
        current_app.logger.exception("Database error: %s", err)
        return api_error("Database error", 500)

    @app.errorhandler(404)
    def handle_not_found(err):
        return api_error("Not found", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(err):
        return api_error("Method not allowed", 405)
