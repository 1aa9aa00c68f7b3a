"""Exceptions raised by nextya-sync."""


class NextyaSyncError(Exception):
    """Base exception for all nextya-sync errors."""


class ConfigurationError(NextyaSyncError):
    """Raised when the sync configuration is missing or invalid."""


class DecodeFailure(NextyaSyncError):
    """Raised when a percent-encoded entry name cannot be decoded."""


class RemoteError(NextyaSyncError):
    """Base exception for failures reported by a remote storage backend."""


class NotFoundError(RemoteError):
    """Raised when a path does not exist on the remote."""


class AlreadyExistsError(RemoteError):
    """Raised when creating a directory that already exists."""


class RemoteUnavailableError(RemoteError):
    """Raised on transport, authentication or quota failures."""


class AuthenticationError(RemoteUnavailableError):
    """Raised when the remote rejects the supplied credentials."""


class QuotaExceededError(RemoteUnavailableError):
    """Raised when the remote has no space left for an upload."""


class RateLimitError(RemoteUnavailableError):
    """Raised when the remote throttles requests."""


class InvalidResponseError(RemoteUnavailableError):
    """Raised when the remote returns a body that cannot be parsed."""
