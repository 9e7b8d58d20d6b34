"""
Domain errors raised by the permission engine services.

Every error is a rejected operation, never a fatal one. The exception handler
registered in app.main renders them as {"detail": message} with the status
code carried by the error class.
"""
from fastapi import status


class DomainError(Exception):
    """Base class for business-rule failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        content = {"detail": self.message}
        if self.field:
            content["field"] = self.field
        return content


class ValidationError(DomainError):
    """Missing or malformed required field."""


class InvalidGrantError(DomainError):
    """Grant references an unknown resource or an action the resource does not declare."""


class WeakCredentialError(DomainError):
    """Credential shorter than the configured minimum."""


class SelfProtectionError(DomainError):
    """An admin tried to delete or deactivate their own account."""


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateNameError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class ProtectedRoleError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class RoleInUseError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class StaleWriteError(DomainError):
    """Role was modified since the caller read it."""

    status_code = status.HTTP_409_CONFLICT


class PrivilegeEscalationError(DomainError):
    """Acting admin tried to hand out or take over permissions they do not hold."""

    status_code = status.HTTP_403_FORBIDDEN
