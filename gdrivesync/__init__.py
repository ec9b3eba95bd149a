"""gdrivesync - mirror Google Drive folders to a local directory."""

from .api import DriveClient
from .exceptions import (
    DriveAPIError,
    DriveAuthenticationError,
    DriveConfigError,
    DriveDownloadError,
    DriveInvalidResponseError,
    DriveNetworkError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveRateLimitError,
)
from .models import RemoteFileRef, RemoteFolderRef, RemoteFolderSnapshot

__all__ = [
    "DriveClient",
    "DriveAPIError",
    "DriveAuthenticationError",
    "DriveConfigError",
    "DriveDownloadError",
    "DriveInvalidResponseError",
    "DriveNetworkError",
    "DriveNotFoundError",
    "DrivePermissionError",
    "DriveRateLimitError",
    "RemoteFileRef",
    "RemoteFolderRef",
    "RemoteFolderSnapshot",
]
