"""Configuration for gdrivesync.

Credentials are looked up in this order:

1. ``GDRIVESYNC_ACCESS_TOKEN`` environment variable
2. OAuth credentials in ``~/.config/gdrivesync/credentials.json``
   (written by ``gdrivesync init --client-secrets``, refreshed automatically)
3. ``~/.config/gdrivesync/config`` (``KEY=value`` lines)
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://www.googleapis.com/drive/v3"

ACCESS_TOKEN_KEY = "GDRIVESYNC_ACCESS_TOKEN"
API_URL_KEY = "GDRIVESYNC_API_URL"


class Config:
    """Reads and stores gdrivesync settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = config_dir or Path.home() / ".config" / "gdrivesync"
        self.config_file = self.config_dir / "config"
        self.credentials_file = self.config_dir / "credentials.json"

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        return self.config_file

    def _read_file(self) -> dict[str, str]:
        values: dict[str, str] = {}
        if not self.config_file.exists():
            return values

        try:
            content = self.config_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read config file %s: %s", self.config_file, e)
            return values

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip().strip('"').strip("'")
        return values

    def _write_value(self, key: str, value: str) -> None:
        values = self._read_file()
        values[key] = value

        self.config_dir.mkdir(parents=True, exist_ok=True)
        lines = [f"{k}={v}" for k, v in values.items()]
        self.config_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        # Token is a credential
        self.config_file.chmod(0o600)

    @property
    def access_token(self) -> Optional[str]:
        """OAuth access token used as bearer token for the Drive API."""
        return os.environ.get(ACCESS_TOKEN_KEY) or self._read_file().get(
            ACCESS_TOKEN_KEY
        )

    @property
    def api_url(self) -> str:
        """Base URL of the Drive v3 REST API."""
        return (
            os.environ.get(API_URL_KEY)
            or self._read_file().get(API_URL_KEY)
            or DEFAULT_API_URL
        )

    def is_configured(self) -> bool:
        """Check whether an access token or stored credentials are available."""
        return bool(self.access_token) or self.credentials_file.exists()

    def save_access_token(self, token: str) -> None:
        """Persist an access token to the config file."""
        self._write_value(ACCESS_TOKEN_KEY, token)


config = Config()
