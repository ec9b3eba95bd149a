"""CLI interface for gdrivesync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import DriveClient
from .auth import require_token_provider
from .config import config
from .credentials import OAuthCredentials, run_oauth_flow, save_credentials
from .exceptions import DriveAPIError, DriveConfigError
from .output import OutputFormatter
from .sync import DriveTreeProvider, SyncEngine, SyncMode, SyncResult
from .utils import normalize_extensions

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--access-token",
    "-t",
    envvar="GDRIVESYNC_ACCESS_TOKEN",
    help="Google Drive OAuth access token",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="gdrivesync")
@click.pass_context
def main(
    ctx: Any,
    access_token: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """gdrivesync - Mirror Google Drive folders to a local directory."""
    ctx.ensure_object(dict)
    ctx.obj["access_token"] = access_token
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("gdrivesync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--access-token",
    "-t",
    help="Google Drive OAuth access token (prompted for if omitted)",
)
@click.option(
    "--client-secrets",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="OAuth desktop client JSON; authorize in the browser and store "
    "refreshable credentials",
)
@click.pass_context
def init(
    ctx: Any, access_token: Optional[str], client_secrets: Optional[Path]
) -> None:
    """Initialize gdrivesync configuration.

    With --client-secrets, gdrivesync is authorized through the browser and
    the credentials (including a refresh token) are stored in
    ~/.config/gdrivesync/credentials.json. Otherwise an access token is
    stored in ~/.config/gdrivesync/config.
    """
    out: OutputFormatter = ctx.obj["out"]

    if client_secrets:
        _init_oauth(ctx, out, client_secrets)
        return

    if not access_token:
        access_token = click.prompt(
            "Enter your Google Drive access token", hide_input=True
        )

    out.info("Validating access token...")
    try:
        _check_access(out, DriveClient(access_token=access_token))
    except DriveAPIError as e:
        out.error(f"Access token validation failed: {e}")
        if not click.confirm("Save access token anyway?", default=False):
            out.warning("Configuration cancelled.")
            ctx.exit(int(SyncResult.INVALID_CONFIGURATION))

    config.save_access_token(access_token)
    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(config.get_config_path())),
        ],
    )


def _init_oauth(ctx: Any, out: OutputFormatter, client_secrets: Path) -> None:
    out.info("Opening the browser for Google authorization...")
    try:
        credentials = run_oauth_flow(client_secrets)
    except DriveConfigError as e:
        out.error(str(e))
        ctx.exit(int(SyncResult.INVALID_CONFIGURATION))
        return

    save_credentials(credentials, config.credentials_file)
    token_provider = OAuthCredentials(credentials, config.credentials_file)
    try:
        _check_access(out, DriveClient(token_provider=token_provider))
    except DriveAPIError as e:
        out.warning(f"Could not verify the new credentials: {e}")

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Credentials saved successfully"),
            ("Credentials file", str(config.credentials_file)),
        ],
    )


def _check_access(out: OutputFormatter, client: DriveClient) -> None:
    """Call the API once with the client's credentials."""
    with client as api:
        about = api.get_about()
    email = (about.get("user") or {}).get("emailAddress", "unknown user")
    out.success(f"✓ Access token is valid ({email})")


@main.command()
@click.option("--local", "local", help="The local directory path.")
@click.option(
    "--driveFolderId",
    "drive_folder_id",
    help="The ID of the Google Drive folder to start syncing from.",
)
@click.option(
    "--mode",
    default=SyncMode.ONE_WAY_TO_LOCAL.value,
    show_default=True,
    help="The sync mode to use.",
)
@click.option(
    "--excludeExt",
    "exclude_ext",
    multiple=True,
    help="Extension to exclude during sync (repeatable, comma separated).",
)
@click.option(
    "--workers",
    "-j",
    type=int,
    default=1,
    show_default=True,
    help="Number of parallel file downloads per directory",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without doing it"
)
@click.pass_context
def sync(
    ctx: Any,
    local: Optional[str],
    drive_folder_id: Optional[str],
    mode: str,
    exclude_ext: tuple[str, ...],
    workers: int,
    dry_run: bool,
) -> None:
    """Sync the Google Drive folder into the local directory.

    The local directory becomes an exact mirror: missing items are created,
    changed files are downloaded again and items that no longer exist
    remotely are deleted.

    Examples:
        gdrivesync sync --local ./backup --driveFolderId 1AbCdEf
        gdrivesync sync --local ./backup --driveFolderId 1AbCdEf --excludeExt tmp
        gdrivesync sync --local ./backup --driveFolderId 1AbCdEf --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]
    invalid = int(SyncResult.INVALID_ARGUMENTS)

    if not local:
        out.error("No local directory specified (use --local)")
        ctx.exit(invalid)
        return
    local_path = Path(local)
    if not local_path.is_dir():
        out.error(f"Directory '{local}' does not exist")
        ctx.exit(invalid)
    if not drive_folder_id:
        out.error("No Google Drive folder specified (use --driveFolderId)")
        ctx.exit(invalid)
        return
    if workers < 1:
        out.error("Workers must be at least 1")
        ctx.exit(invalid)

    try:
        sync_mode = SyncMode.from_string(mode)
    except ValueError as e:
        out.error(str(e))
        ctx.exit(invalid)
        return

    excluded = normalize_extensions(exclude_ext)
    token_provider = require_token_provider(ctx, out)

    client = DriveClient(token_provider=token_provider)

    if excluded and not out.quiet:
        out.info(f"Excluding extensions: {', '.join(excluded)}")

    try:
        with client:
            provider = DriveTreeProvider(client, out, excluded_extensions=excluded)
            engine = SyncEngine(
                provider,
                local_root=local_path,
                root_folder_id=drive_folder_id,
                sync_mode=sync_mode,
                output=out,
                dry_run=dry_run,
                max_workers=workers,
            )
            result = engine.sync()
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)  # Standard exit code for SIGINT
        return

    if out.json_output:
        out.output_json({"result": result.name.lower(), **engine.stats.as_dict()})

    ctx.exit(int(result))


if __name__ == "__main__":
    main()
