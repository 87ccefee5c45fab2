"""AWS provider exceptions raised by the API Gateway / Lambda adapter."""

from __future__ import annotations

from typing import Any


class ProviderAPIError(Exception):
    """Base exception for AWS provider API errors.

    Attributes:
        message: Human-readable error message.
        code: Provider error code (e.g. "NotFoundException").
        status_code: HTTP status code reported by the provider (if known).
        operation: The SDK operation that was called (e.g. "CreateResource").
        response_body: Raw error payload returned by the SDK (if available).
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        operation: str | None = None,
        response_body: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ProviderAPIError.

        Args:
            message: Human-readable error message.
            code: Provider error code.
            status_code: HTTP status code from the provider.
            operation: The SDK operation that was called.
            response_body: Raw error payload returned by the SDK.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.operation = operation
        self.response_body = response_body

    def __str__(self) -> str:
        """Return string representation of the error."""
        parts = [self.message]
        if self.code:
            parts.append(f"(code: {self.code})")
        if self.operation:
            parts.append(f"[operation: {self.operation}]")
        return " ".join(parts)


class ProviderConnectionError(ProviderAPIError):
    """Exception raised when the provider endpoint cannot be reached.

    This includes DNS failures, connect timeouts, and read timeouts.
    """

    def __init__(
        self,
        message: str = "Failed to connect to the AWS API",
        operation: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ProviderConnectionError.

        Args:
            message: Human-readable error message.
            operation: The SDK operation that was attempted.
            original_error: The original exception that caused this error.
        """
        super().__init__(message=message, operation=operation)
        self.original_error = original_error


class ProviderAuthError(ProviderAPIError):
    """Exception raised when credentials are missing, expired, or denied."""


class ProviderNotFoundError(ProviderAPIError):
    """Exception raised when a remote resource does not exist."""


class ProviderConflictError(ProviderAPIError):
    """Exception raised when a resource already exists or is being modified.

    API Gateway reports concurrent modification and duplicate creation with
    the same ``ConflictException`` code; Lambda uses
    ``ResourceConflictException`` for duplicate permission statements.
    """


class ProviderThrottledError(ProviderAPIError):
    """Exception raised when the provider rate-limits the caller."""


class ProviderValidationError(ProviderAPIError):
    """Exception raised when the provider rejects request parameters."""


# Provider error codes mapped to exception classes. Anything not listed
# becomes a plain ProviderAPIError.
ERROR_CODE_MAP: dict[str, type[ProviderAPIError]] = {
    "NotFoundException": ProviderNotFoundError,
    "ResourceNotFoundException": ProviderNotFoundError,
    "ConflictException": ProviderConflictError,
    "ResourceConflictException": ProviderConflictError,
    "TooManyRequestsException": ProviderThrottledError,
    "TooManyRequests": ProviderThrottledError,
    "ThrottlingException": ProviderThrottledError,
    "LimitExceededException": ProviderThrottledError,
    "AccessDeniedException": ProviderAuthError,
    "UnauthorizedException": ProviderAuthError,
    "UnrecognizedClientException": ProviderAuthError,
    "ExpiredTokenException": ProviderAuthError,
    "BadRequestException": ProviderValidationError,
    "InvalidParameterValueException": ProviderValidationError,
}
