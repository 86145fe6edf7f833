"""
Domain errors raised by the attendance and trajectory services.

Each error carries the HTTP status it maps to and a message that is safe to
show to the end user. The exception handler in ``worksite.main`` renders them.
"""
from typing import Optional


class WorksiteError(Exception):
    """Base class for all domain errors"""
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(WorksiteError):
    """Malformed coordinates or zone geometry"""
    status_code = 422
    default_message = "Invalid input"


class AuthorizationError(WorksiteError):
    """Role or company mismatch"""
    status_code = 403
    default_message = "Insufficient permissions"


class ConflictError(WorksiteError):
    """Duplicate same-day check-in"""
    status_code = 409
    default_message = "Already checked in today"


class NotFoundError(WorksiteError):
    """Missing worker, zone or active deployment"""
    status_code = 404
    default_message = "Not found"


class InternalError(WorksiteError):
    """Persistence failure; details stay in the server log"""
    status_code = 500
    default_message = "An internal error occurred"
