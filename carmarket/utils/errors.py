"""Standardized error handling for the application."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

# Configure logger
logger = logging.getLogger(__name__)


class CarMarketError(Exception):
    """Base exception class for all application errors."""

    code: str = "internal_error"
    retryable: bool = False

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary for API responses.

        Returns:
            Dict containing error details
        """
        return {
            "code": self.code,
            "error": self.__class__.__name__,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def log(self, level: int = logging.ERROR) -> None:
        """Log the error with appropriate level and context.

        Args:
            level: Logging level to use
        """
        log_context = {
            "error_type": self.__class__.__name__,
            "status_code": self.status_code,
            "error_details": self.details,
        }
        logger.log(level, f"{self.message}", extra=log_context)


class ConfigurationError(CarMarketError):
    """A required setting or credential is missing."""

    code = "configuration_error"

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else None
        super().__init__(message=message, status_code=500, details=details)


class AuthorizationError(CarMarketError):
    """The caller has no identity."""

    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=401)


class NotFoundError(CarMarketError):
    """A referenced user or listing does not exist."""

    code = "not_found"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} not found",
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)},
        )


class ValidationError(CarMarketError):
    """Input or model output failed structural validation."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        missing_fields: Optional[Iterable[str]] = None,
        invalid_fields: Optional[Iterable[str]] = None,
    ):
        details: Dict[str, Any] = {}
        if missing_fields:
            details["missing_fields"] = list(missing_fields)
        if invalid_fields:
            details["invalid_fields"] = list(invalid_fields)
        super().__init__(message=message, status_code=422, details=details)

    @property
    def missing_fields(self) -> list[str]:
        return self.details.get("missing_fields", [])

    @property
    def invalid_fields(self) -> list[str]:
        return self.details.get("invalid_fields", [])


class NoValidImagesError(ValidationError):
    """None of the supplied images could be stored."""

    code = "no_valid_images"

    def __init__(self, skipped: int = 0):
        super().__init__("No valid images were uploaded")
        self.details["skipped"] = skipped


class UpstreamServiceError(CarMarketError):
    """A call to the model, storage or database failed."""

    code = "upstream_error"
    retryable = True

    def __init__(self, service: str, message: str, upstream_status: Optional[int] = None):
        super().__init__(
            message=message,
            status_code=502,
            details={"service": service, "upstream_status": upstream_status},
        )
        self.service = service
        self.upstream_status = upstream_status


class ModelResponseError(CarMarketError):
    """The model replied with something that is not a JSON object."""

    code = "model_response_error"
    retryable = True

    def __init__(self, message: str = "Failed to parse AI response"):
        super().__init__(message=message, status_code=502)


class RateLimitedError(CarMarketError):
    """The rate decision service denied the request for exceeding its quota."""

    code = "rate_limited"
    retryable = True

    def __init__(self, remaining: int = 0, reset_in_seconds: int = 0):
        super().__init__(
            message="Too many requests. Please try again later.",
            status_code=429,
            details={"remaining": remaining, "reset_in_seconds": reset_in_seconds},
        )
        self.remaining = remaining
        self.reset_in_seconds = reset_in_seconds


class RequestBlockedError(CarMarketError):
    """The rate decision service denied the request for any other reason."""

    code = "request_blocked"

    def __init__(self, reason: str = "blocked"):
        super().__init__(message="Request blocked", status_code=403, details={"reason": reason})


@dataclass
class PartialFailure:
    """A non-fatal failure, logged and reported but never raised."""

    operation: str
    reason: str
    index: Optional[int] = None
    target: Optional[str] = None

    def log(self) -> None:
        logger.warning(
            f"Partial failure during {self.operation}: {self.reason}",
            extra={"index": self.index, "target": self.target},
        )


def convert_exception(exc: Exception) -> CarMarketError:
    """Wrap an unexpected exception into an application error."""
    if isinstance(exc, CarMarketError):
        return exc
    return CarMarketError(message=f"Unexpected error: {exc}", status_code=500)
