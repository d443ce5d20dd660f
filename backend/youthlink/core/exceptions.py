"""
Domain exceptions raised by the service layer.

Services never build HTTP responses themselves; they raise one of these and
the handlers registered in youthlink.main translate them:

    AuthenticationError    -> 401
    NotFoundError          -> 404
    PermissionDeniedError  -> 403
    ConflictError          -> 409
    ValidationFailedError  -> 400
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base exception for all YouthLink service errors"""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"detail": self.message}
        if self.details:
            data["details"] = self.details
        return data


class AuthenticationError(ServiceError):
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class PermissionDeniedError(ServiceError):
    status_code = 403


class ConflictError(ServiceError):
    status_code = 409


class ValidationFailedError(ServiceError):
    """A business rule rejected the request (eligibility, assignment, ...)."""

    status_code = 400
