"""
Custom exceptions for paperfetch.

This module defines the error taxonomy shared by the version catalog, the
release selector, the artifact resolver and the integrity downloader, so
callers can tell an empty result from a broken payload, a failed transfer or
an untrusted artifact.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from paperfetch.download.interfaces import DownloadResult


class PaperfetchError(Exception):
    """
    Base exception for all paperfetch errors.

    All custom exceptions in paperfetch inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
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


class ConfigurationError(PaperfetchError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Configuration file parsing errors
    - Invalid configuration values
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when configuration file cannot be read."""

    def __init__(
        self, message: str, path: Optional[str] = None, details: Optional[str] = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


class ConfigValidationError(ConfigurationError):
    """Exception raised when a configuration value fails validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value


# =============================================================================
# Lookup Errors
# =============================================================================


class NotFoundError(PaperfetchError):
    """
    Exception raised when a version, build or artifact set is empty.

    Never retried internally; the promotion fallback chain treats an empty
    step as a pass-through instead of raising this.
    """

    pass


class EmptyInputError(NotFoundError):
    """Exception raised when there are no version identifiers to flatten."""

    pass


class NoArtifactError(NotFoundError):
    """Exception raised when a build carries no usable artifact."""

    def __init__(
        self,
        message: str,
        build_id: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.build_id = build_id


# =============================================================================
# Metadata Errors
# =============================================================================


class DecodingError(PaperfetchError):
    """
    Exception raised when a metadata payload is malformed.

    Attributes:
        endpoint: The URL whose response could not be decoded.
    """

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.endpoint = endpoint


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(PaperfetchError):
    """
    Exception raised for connection and HTTP status failures.

    Not retried internally; retries belong to the caller.

    Attributes:
        url: The URL that was being requested.
        status_code: The HTTP status code, when a response was received.
        body: A truncated copy of the response body, when available.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        """
        Initialize the transport exception.

        Args:
            message: The primary error message.
            url: The URL that was being requested.
            status_code: The HTTP status code.
            body: Response body text (already truncated by the caller).
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code
        self.body = body


class ResourceNotFoundError(TransportError):
    """Exception raised when the metadata service answers 404."""

    pass


class DeadlineExceededError(TransportError):
    """Exception raised when a call runs past its deadline, body transfer included."""

    pass


class OperationCancelledError(PaperfetchError):
    """Exception raised when the caller cancels an in-flight operation."""

    pass


# =============================================================================
# Download Errors
# =============================================================================


class IntegrityError(PaperfetchError):
    """
    Exception raised when a downloaded artifact does not match its checksum.

    The completed DownloadResult travels with the error so the caller can
    inspect both checksums and decide whether to delete the file. This is a
    hard failure, never a warning.

    Attributes:
        result: The DownloadResult with ``valid`` set to False.
    """

    def __init__(self, message: str, result: "DownloadResult") -> None:
        super().__init__(
            message,
            details=f"expected {result.expected_sha256}, got {result.actual_sha256}",
        )
        self.result = result


class FileSystemError(PaperfetchError):
    """
    Exception raised for local file system failures while writing a download.

    This includes:
    - Permission denied errors
    - Destination already exists
    - Disk full errors
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        """
        Initialize the file system exception.

        Args:
            message: The primary error message.
            path: The file path that caused the error.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.path = path
