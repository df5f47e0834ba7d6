"""Custom exceptions for JujuHub.

This module provides exception classes used throughout the library.
"""


class JujuHubError(Exception):
    """Base exception for all JujuHub errors."""

    def __init__(self, message: str, details: dict | None = None):
        """Initialize exception with message and optional details.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details


class ResourceNotFound(JujuHubError):
    """Exception raised when a requested record is not found."""

    pass


class ValidationError(JujuHubError):
    """Exception raised when a request cannot be honoured as given."""

    pass


class MalformedStateError(JujuHubError):
    """Exception raised when a durable blob cannot be decoded.

    Collections recover from this locally by starting empty; it only
    escapes when the codec is called directly.
    """

    pass


class PersistenceError(JujuHubError):
    """Exception raised when durable storage rejects a read or write.

    For writes the in-memory mutation has already been applied and stays
    visible for the rest of the session. Callers retry by repeating the
    mutation or calling ``flush()`` on the collection.

    Attributes:
        key: Storage key of the collection that failed to persist
    """

    key: str

    def __init__(self, message: str, key: str, details: dict | None = None):
        """Initialize persistence error.

        Args:
            message: Human-readable error message
            key: Storage key that failed
            details: Optional dictionary with additional error context
        """
        merged = {"key": key}
        if details:
            merged.update(details)
        super().__init__(message, details=merged)
        self.key = key


class InvalidPermutationError(JujuHubError):
    """Exception raised when a reorder payload is not a permutation.

    Attributes:
        missing: Stored ids absent from the payload
        unexpected: Payload ids that are not stored
        duplicates: Ids that appear more than once in the payload
    """

    missing: list[str]
    unexpected: list[str]
    duplicates: list[str]

    def __init__(
        self,
        message: str,
        missing: list[str],
        unexpected: list[str],
        duplicates: list[str],
        expected_count: int,
        received_count: int,
    ):
        """Initialize invalid permutation error.

        Args:
            message: Human-readable error message
            missing: Stored ids absent from the payload
            unexpected: Payload ids that are not stored
            duplicates: Ids repeated in the payload
            expected_count: Number of stored records
            received_count: Number of entries in the payload
        """
        super().__init__(
            message,
            details={
                "missing": missing,
                "unexpected": unexpected,
                "duplicates": duplicates,
                "expected_count": expected_count,
                "received_count": received_count,
            },
        )
        self.missing = missing
        self.unexpected = unexpected
        self.duplicates = duplicates
