"""Credential lookup for CLI commands."""

from typing import Any

from .config import config
from .credentials import OAuthCredentials, StaticToken, TokenProvider, load_credentials
from .exceptions import DriveConfigError
from .output import OutputFormatter
from .sync.modes import SyncResult


def require_token_provider(ctx: Any, out: OutputFormatter) -> TokenProvider:
    """Return a token source or exit with INVALID_CONFIGURATION.

    The ``--access-token`` option (or its environment variable) wins, then
    the OAuth credentials saved by ``init --client-secrets``, then a token
    saved in the config file.
    """
    token = ctx.obj.get("access_token")
    if token:
        return StaticToken(token)

    try:
        credentials = load_credentials(config.credentials_file)
    except DriveConfigError as e:
        out.error(str(e))
        ctx.exit(int(SyncResult.INVALID_CONFIGURATION))
    if credentials is not None:
        return OAuthCredentials(credentials, config.credentials_file)

    token = config.access_token
    if not token:
        out.error(
            "Access token not configured. "
            "Run 'gdrivesync init' or set GDRIVESYNC_ACCESS_TOKEN."
        )
        ctx.exit(int(SyncResult.INVALID_CONFIGURATION))
    return StaticToken(token)
