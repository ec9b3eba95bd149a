"""Run coordinator for sync operations."""

import logging
import time
from pathlib import Path
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..exceptions import (
    DriveAPIError,
    DriveAuthenticationError,
    DriveConfigError,
    DriveNotFoundError,
    DrivePermissionError,
)
from ..models import RemoteFolderSnapshot
from ..output import OutputFormatter
from .local import LocalTreeAccessor
from .modes import SyncMode, SyncResult, WalkOutcome
from .provider import RemoteTreeProvider
from .reconciler import DirectoryReconciler
from .stats import DEFAULT_MAX_ERRORS, ErrorBudget, RunStats

logger = logging.getLogger(__name__)


class SyncEngine:
    """Drives one sync run from the root folder down and reports the result."""

    def __init__(
        self,
        provider: RemoteTreeProvider,
        local_root: Path,
        root_folder_id: str,
        sync_mode: SyncMode = SyncMode.ONE_WAY_TO_LOCAL,
        output: Optional[OutputFormatter] = None,
        local: Optional[LocalTreeAccessor] = None,
        dry_run: bool = False,
        max_workers: int = 1,
        max_errors: int = DEFAULT_MAX_ERRORS,
    ):
        """Initialize sync engine.

        Args:
            provider: Source of remote snapshots and file content
            local_root: Local directory that becomes the mirror
            root_folder_id: Id of the remote folder to mirror
            sync_mode: Direction of the sync
            output: Output formatter for displaying progress/status
            local: Accessor for the local filesystem
            dry_run: If True, only show what would be done
            max_workers: Number of parallel file transfers per directory
            max_errors: Errors tolerated before the run is aborted

        Examples:
            >>> engine = SyncEngine(provider, Path("/backup"), "1AbCdEf")
            >>> result = engine.sync()
            >>> print(engine.stats.as_dict())
        """
        self.provider = provider
        self.local_root = Path(local_root)
        self.root_folder_id = root_folder_id
        self.sync_mode = sync_mode
        self.output = output or OutputFormatter()
        self.local = local or LocalTreeAccessor()
        self.dry_run = dry_run
        self.max_workers = max_workers
        self.max_errors = max_errors
        self.stats = RunStats(budget=ErrorBudget(max_errors))

    def sync(self) -> SyncResult:
        """Run the configured sync.

        Returns:
            SUCCESS, INVALID_ARGUMENTS for unsupported modes or bad paths,
            INVALID_CONFIGURATION when the root folder cannot be accessed,
            FAILED on remote errors or when the error budget was exhausted
        """
        if self.sync_mode is SyncMode.ONE_WAY_TO_LOCAL:
            return self._sync_one_way_to_local()

        self.output.error(f"Sync mode '{self.sync_mode.value}' is not implemented")
        return SyncResult.INVALID_ARGUMENTS

    def _validate_arguments(self) -> bool:
        if not self.root_folder_id or not self.root_folder_id.strip():
            self.output.error("A remote folder id is required")
            return False
        if not self.local_root.exists():
            self.output.error(f"Directory '{self.local_root}' does not exist")
            return False
        if not self.local_root.is_dir():
            self.output.error(f"Path '{self.local_root}' is not a directory")
            return False
        return True

    def _sync_one_way_to_local(self) -> SyncResult:
        if not self._validate_arguments():
            return SyncResult.INVALID_ARGUMENTS

        self.stats = RunStats(budget=ErrorBudget(self.max_errors))

        if not self.output.quiet:
            self.output.info(f"Syncing: {self.root_folder_id} -> {self.local_root}")
            self.output.info(f"Mode: {self.sync_mode.value}")
            if self.dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        try:
            snapshot = self._fetch_root_snapshot()
        except DriveNotFoundError as e:
            self.output.error(f"Remote folder '{self.root_folder_id}' not found: {e}")
            return SyncResult.INVALID_CONFIGURATION
        except (
            DriveAuthenticationError,
            DriveConfigError,
            DrivePermissionError,
        ) as e:
            self.output.error(f"Cannot access remote folder: {e}")
            return SyncResult.INVALID_CONFIGURATION
        except DriveAPIError as e:
            self.output.error(f"Failed to list remote folder: {e}")
            return SyncResult.FAILED

        start_time = time.time()
        reconciler = DirectoryReconciler(
            provider=self.provider,
            stats=self.stats,
            output=self.output,
            local=self.local,
            dry_run=self.dry_run,
            max_workers=self.max_workers,
        )
        outcome = reconciler.reconcile(self.local_root, snapshot)
        logger.debug(
            "Walk finished in %.2fs with outcome %s",
            time.time() - start_time,
            outcome.value,
        )

        if outcome is WalkOutcome.ABORT:
            self.output.error(
                f"Maximum error count ({self.max_errors}) exceeded, sync aborted"
            )

        self._display_summary(outcome)

        if outcome is WalkOutcome.ABORT:
            return SyncResult.FAILED
        return SyncResult.SUCCESS

    def _fetch_root_snapshot(self) -> RemoteFolderSnapshot:
        """Fetch the root folder, with a spinner unless output is quiet."""
        if self.output.quiet or self.output.json_output:
            return self.provider.get_folder_snapshot(self.root_folder_id)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task("Fetching remote folder...", total=None)
            return self.provider.get_folder_snapshot(self.root_folder_id)

    def _display_summary(self, outcome: WalkOutcome) -> None:
        """Display the eight run counters."""
        if outcome is WalkOutcome.ABORT:
            title = "Sync aborted"
        elif self.dry_run:
            title = "Dry run complete"
        else:
            title = "Sync complete"

        self.output.print_summary(title, self.stats.summary_items())
