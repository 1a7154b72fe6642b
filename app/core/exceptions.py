"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", details: dict[str, Any] | None = None):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, details=details)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, details=details)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


# CADASTUR / registration


class MissingCertificateException(ValidationException):
    """A guide operation was attempted without a certificate number."""

    def __init__(self, message: str = "CADASTUR number is required for guides"):
        super().__init__(message)


class CertificateNotFoundException(NotFoundException):
    """Certificate number is not present in the CADASTUR registry."""

    def __init__(self, message: str = "CADASTUR certificate not found in the registry"):
        super().__init__(message)


class CertificateExpiredException(BadRequestException):
    """Certificate exists but its validity has lapsed.

    The expired registry record is exposed in ``details`` so callers can show
    who the certificate belongs to.
    """

    def __init__(
        self,
        record: dict[str, Any],
        message: str = "CADASTUR certificate has expired",
    ):
        self.record = record
        super().__init__(message, details={"record": record})


class CertificateAlreadyClaimedException(ConflictException):
    """Certificate is already linked to another account."""

    def __init__(self, message: str = "CADASTUR certificate is already linked to another account"):
        super().__init__(message)


class EmailTakenException(ConflictException):
    """Email address already belongs to an account."""

    def __init__(self, message: str = "Email is already registered"):
        super().__init__(message)
