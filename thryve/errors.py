"""
Store exceptions.

Services raise these; the application factory registers a handler that
turns them into ``{"error": message}`` JSON responses with the matching
HTTP status code. ``details`` is merged into the response body.
"""


class StoreError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = 'An error occurred'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        payload = {'error': self.message}
        payload.update(self.details)
        return payload


class Unauthorized(StoreError):
    status_code = 401
    default_message = 'Unauthorized'


class Forbidden(StoreError):
    status_code = 403
    default_message = 'Forbidden'


class NotFound(StoreError):
    status_code = 404
    default_message = 'Not found'


class InvalidArgument(StoreError):
    status_code = 400
    default_message = 'Invalid request'


class InvalidState(StoreError):
    status_code = 400
    default_message = 'Invalid state'


class Conflict(StoreError):
    status_code = 409
    default_message = 'Conflict'


class InternalError(StoreError):
    status_code = 500
    default_message = 'Internal server error'
