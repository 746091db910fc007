"""Error types raised by the query layer and their JSON rendering."""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class CheckInError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(CheckInError):
    status_code = 400
    default_message = 'All required fields must be provided'


class AuthenticationError(CheckInError):
    status_code = 401
    default_message = 'Invalid credentials'


class PermissionDenied(CheckInError):
    status_code = 403
    default_message = 'Admin access required'


class NotFoundError(CheckInError):
    status_code = 404
    default_message = 'Not found'


class ConflictError(CheckInError):
    status_code = 409
    default_message = 'Conflict'


class CapacityExceededError(ConflictError):
    default_message = 'Event is at maximum capacity'


class InvalidStateError(CheckInError):
    status_code = 400
    default_message = 'Event is not active'


class StorageError(CheckInError):
    """Unexpected persistence failure. The message is never shown to callers."""


class ConsistencyError(StorageError):
    """Stored state violates an invariant that should have been impossible."""


def register_error_handlers(app):
    @app.errorhandler(CheckInError)
    def handle_checkin_error(err):
        if isinstance(err, StorageError):
            return jsonify({'error': CheckInError.default_message}), err.status_code
        return jsonify({'error': err.message}), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        if err.code == 404:
            return jsonify({'error': 'Route not found'}), 404
        return jsonify({'error': err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        logger.exception("unhandled error: %s", err)
        return jsonify({'error': CheckInError.default_message}), 500
