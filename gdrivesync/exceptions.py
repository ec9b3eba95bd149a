"""Exceptions raised by the Google Drive client and sync engine."""


class DriveAPIError(Exception):
    """Base exception for all Google Drive API errors."""


class DriveConfigError(DriveAPIError):
    """Raised when the client is missing required configuration."""


class DriveAuthenticationError(DriveAPIError):
    """Raised when the access token is invalid or expired."""


class DrivePermissionError(DriveAPIError):
    """Raised when the token lacks access to the requested resource."""


class DriveNotFoundError(DriveAPIError):
    """Raised when a file or folder id does not exist or is not visible."""


class DriveRateLimitError(DriveAPIError):
    """Raised when the API rejects a request because of rate limiting."""


class DriveNetworkError(DriveAPIError):
    """Raised on transport level failures (DNS, connection reset, timeout)."""


class DriveInvalidResponseError(DriveAPIError):
    """Raised when the API returns something that is not the expected JSON."""


class DriveDownloadError(DriveAPIError):
    """Raised when file content cannot be fetched or written to disk."""
