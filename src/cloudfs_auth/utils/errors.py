"""Custom exceptions for CloudFS gateway authentication.

This module provides structured error handling with specific exception types
for the different failure scenarios of a login. All exceptions inherit from
CloudAuthError.
"""
from typing import Optional, Sequence


class CloudAuthError(Exception):
    """Base exception for all cloudfs-auth errors.

    Attributes:
        message: Human-readable error description.
        account: Optional account related to the error.
    """

    def __init__(self, message: str, account: Optional[str] = None) -> None:
        self.message = message
        self.account = account
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the error message, optionally including the account."""
        if self.account:
            return f"{self.message} (account: {self.account})"
        return self.message


class InvalidArgumentError(CloudAuthError, ValueError):
    """Raised when a required argument (account, pass phrase, base address) is missing."""

    def __init__(self, argument: str, message: Optional[str] = None) -> None:
        self.argument = argument
        super().__init__(message or f"Argument '{argument}' must be provided")


class CryptographicError(CloudAuthError):
    """Raised when cipher text cannot be decrypted with the given pass phrase."""
    pass


class AuthenticationError(CloudAuthError):
    """Raised when an interactive login produced no usable credential.

    Attributes:
        auth_uri: The interactive endpoint that was presented, if any.
    """

    def __init__(
        self,
        message: str,
        account: Optional[str] = None,
        auth_uri: Optional[str] = None,
    ) -> None:
        self.auth_uri = auth_uri
        super().__init__(message, account)

    def format_message(self) -> str:
        message = super().format_message()
        if self.auth_uri:
            return f"{message}. Retrieve an authentication code from {self.auth_uri}"
        return message


class TransientProviderError(CloudAuthError):
    """Raised when communication with a provider failed in a retry-eligible way.

    Attributes:
        status: HTTP status code, when the failure came from a response.
    """

    def __init__(
        self,
        message: str,
        account: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        self.status = status
        super().__init__(message, account)


class ProviderRejectedError(CloudAuthError):
    """Raised when a provider permanently rejected a credential or code.

    Attributes:
        error_code: OAuth ``error`` value returned by the provider, if any.
    """

    def __init__(
        self,
        message: str,
        account: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.error_code = error_code
        super().__init__(message, account)


class RefreshRejectedError(ProviderRejectedError):
    """Raised when a cached refresh credential is no longer accepted."""
    pass


class AggregateRetryError(CloudAuthError):
    """Raised when all retry attempts of an operation failed.

    Attributes:
        causes: The captured exceptions, in attempt order.
    """

    def __init__(self, causes: Sequence[BaseException]) -> None:
        self.causes = list(causes)
        message = ", ".join(str(cause) for cause in self.causes)
        super().__init__(
            f"Operation failed after {len(self.causes)} attempts: {message}"
        )


TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


def classify_http_status(
    status: int,
    error_code: Optional[str] = None,
    account: Optional[str] = None,
    refresh: bool = False,
) -> CloudAuthError:
    """Convert a failed token endpoint response to a specific exception.

    Args:
        status: The HTTP status code.
        error_code: The OAuth ``error`` field of the response body, if any.
        account: Optional account for context.
        refresh: Whether the request was a refresh-token grant.

    Returns:
        A TransientProviderError for retry-eligible failures, otherwise a
        ProviderRejectedError (RefreshRejectedError for refresh grants).
    """
    if status in TRANSIENT_STATUS_CODES:
        return TransientProviderError(
            f"Provider temporarily unavailable (HTTP {status})", account, status
        )

    rejected = RefreshRejectedError if refresh else ProviderRejectedError
    if error_code:
        return rejected(
            f"Provider rejected the request: {error_code} (HTTP {status})",
            account,
            error_code,
        )
    return rejected(f"Provider rejected the request (HTTP {status})", account)


# Standard error message format helper
def format_error(action: str, error: Exception) -> str:
    """Format an error message consistently.

    Args:
        action: The action that failed (e.g., "Login", "Purge").
        error: The exception that occurred.

    Returns:
        Formatted error string.
    """
    if isinstance(error, CloudAuthError):
        return f"{action} failed: {error.format_message()}"
    return f"{action} failed: {str(error)}"
