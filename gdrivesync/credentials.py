"""Access tokens for the Drive API: pasted tokens and refreshable OAuth credentials."""

import logging
import threading
from pathlib import Path
from typing import Optional, Protocol

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from .exceptions import DriveAuthenticationError, DriveConfigError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]


class TokenProvider(Protocol):
    """Source of the bearer token sent with every request."""

    can_refresh: bool

    def token(self) -> str:
        """Return a token that is valid as far as the provider knows."""
        ...

    def refresh(self, stale_token: str) -> None:
        """Replace ``stale_token`` after the API rejected it."""
        ...


class StaticToken:
    """A pasted access token; it expires and cannot be refreshed."""

    can_refresh = False

    def __init__(self, access_token: str):
        self.access_token = access_token

    def token(self) -> str:
        return self.access_token

    def refresh(self, stale_token: str) -> None:
        raise DriveAuthenticationError("Invalid or expired access token")


class OAuthCredentials:
    """OAuth user credentials, refreshed on expiry and written back to disk.

    Token access is serialized so parallel downloads hitting an expired
    token trigger a single refresh.
    """

    can_refresh = True

    def __init__(
        self, credentials: Credentials, credentials_file: Optional[Path] = None
    ):
        """Initialize the provider.

        Args:
            credentials: Authorized user credentials
            credentials_file: File the refreshed credentials are saved to
        """
        self.credentials = credentials
        self.credentials_file = credentials_file
        self._lock = threading.Lock()

    def token(self) -> str:
        with self._lock:
            if not self.credentials.valid:
                self._refresh()
            return self.credentials.token

    def refresh(self, stale_token: str) -> None:
        with self._lock:
            # Another thread already replaced the token
            if self.credentials.token != stale_token:
                return
            self._refresh()

    def _refresh(self) -> None:
        if not self.credentials.refresh_token:
            raise DriveAuthenticationError(
                "Stored credentials cannot be refreshed. Run 'gdrivesync init' again."
            )
        try:
            self.credentials.refresh(Request())
        except RefreshError as e:
            raise DriveAuthenticationError(f"Token refresh failed: {e}") from e

        logger.debug("Access token refreshed")
        if self.credentials_file is not None:
            save_credentials(self.credentials, self.credentials_file)


def run_oauth_flow(client_secrets_file: Path) -> Credentials:
    """Authorize gdrivesync in the browser with an OAuth desktop client.

    Args:
        client_secrets_file: OAuth client JSON downloaded from the Cloud Console

    Returns:
        Credentials holding an access and a refresh token
    """
    try:
        flow = InstalledAppFlow.from_client_secrets_file(
            str(client_secrets_file), scopes=SCOPES
        )
    except (OSError, ValueError) as e:
        raise DriveConfigError(
            f"Cannot read OAuth client file '{client_secrets_file}': {e}"
        ) from e
    return flow.run_local_server(port=0)


def load_credentials(credentials_file: Path) -> Optional[Credentials]:
    """Load stored credentials, None if the file does not exist."""
    if not credentials_file.exists():
        return None
    try:
        return Credentials.from_authorized_user_file(str(credentials_file), SCOPES)
    except ValueError as e:
        raise DriveConfigError(
            f"Invalid credentials file '{credentials_file}': {e}"
        ) from e


def save_credentials(credentials: Credentials, credentials_file: Path) -> None:
    """Write credentials (including the refresh token) readable only by the owner."""
    credentials_file.parent.mkdir(parents=True, exist_ok=True)
    credentials_file.write_text(credentials.to_json(), encoding="utf-8")
    credentials_file.chmod(0o600)
