"""Error taxonomy for the Pi Shield API.

Every failure a route can report is a ``PiShieldError`` subclass carrying the
HTTP status and a stable ``error_code``; the application renders them as
``{'error': ..., 'error_code': ..., 'details': ...}``.
"""


class PiShieldError(Exception):
    status_code = 500
    error_code = 'INTERNAL_ERROR'

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message, 'error_code': self.error_code}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(PiShieldError):
    status_code = 400
    error_code = 'INVALID_REQUEST'


class AuthenticationError(PiShieldError):
    status_code = 401
    error_code = 'UNAUTHORIZED'


class ServiceNotConfigured(PiShieldError):
    error_code = 'SERVICE_NOT_CONFIGURED'


class UpstreamError(PiShieldError):
    """An AI or vision backend call failed."""
    error_code = 'UPSTREAM_ERROR'


class InvalidApiKey(UpstreamError):
    status_code = 401
    error_code = 'INVALID_API_KEY'


class ReportParseError(UpstreamError):
    """The backend answered with text that holds no JSON object."""
    error_code = 'AI_RESPONSE_UNPARSEABLE'


class ReportValidationError(UpstreamError):
    """The backend answered with JSON that does not match the report schema."""
    error_code = 'AI_RESPONSE_INVALID'


class MalformedUpstreamResponse(UpstreamError):
    status_code = 502
    error_code = 'MALFORMED_UPSTREAM_RESPONSE'


class PersistenceError(PiShieldError):
    error_code = 'STORAGE_ERROR'
