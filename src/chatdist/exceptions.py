"""
Custom exceptions for chatdist.

This module defines domain-specific exceptions that provide better error
categorization and more informative error messages for users and developers.
"""


class ChatdistError(Exception):
    """
    Base exception for all chatdist errors.

    All custom exceptions in chatdist should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ChatdistError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Missing required configuration keys
    - Invalid configuration values
    - Configuration file parsing errors
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when configuration file cannot be read or parsed."""

    pass


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    pass


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(ChatdistError):
    """
    Base exception for failures talking to a hosting provider.

    Attributes:
        provider: Short name of the provider (huggingface, github, pgyer, ...).
        url: The URL that was being requested when the error occurred.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.provider = provider
        self.url = url


class ProviderNetworkError(ProviderError):
    """
    Exception raised for connection-level failures.

    This includes:
    - Connection timeouts
    - DNS resolution failures
    - Connection refused errors
    - SSL/TLS errors
    """

    pass


class ProviderHTTPError(ProviderError):
    """
    Exception raised when a provider answers with a non-2xx status.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider: str | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, provider, url, details)
        self.status_code = status_code


class ProviderPayloadError(ProviderError):
    """Exception raised when a provider returns a body we cannot interpret."""

    pass


# =============================================================================
# Storage Errors
# =============================================================================


class StoreError(ChatdistError):
    """Exception raised when the distribution store cannot complete an operation."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ChatdistError):
    """
    Exception raised when validation fails.

    Carries the offending field name and value when known.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value


class PathValidationError(ValidationError):
    """Exception raised when a path fails security validation."""

    pass
