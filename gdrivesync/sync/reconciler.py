"""Recursive reconciliation of a local directory against a remote folder."""

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from ..models import RemoteFileRef, RemoteFolderSnapshot
from ..output import OutputFormatter
from ..utils import datetime_to_ns, is_safe_name
from .local import LocalFile, LocalTreeAccessor
from .modes import WalkOutcome
from .provider import RemoteTreeProvider
from .stats import RunStats

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROGRESS_INTERVAL = 1000


class _MatchPool(Generic[T]):
    """Local candidates of one comparison pass.

    Matching state lives only as long as the pass; the candidates
    themselves are never modified.
    """

    def __init__(self, items: Iterable[T], key: Callable[[T], str]):
        self._items = list(items)
        self._keys = [key(item).casefold() for item in self._items]
        self._matched: set[int] = set()

    def claim(self, name: str) -> Optional[T]:
        """Match the first unmatched candidate whose key equals ``name``."""
        target = name.casefold()
        for index, key in enumerate(self._keys):
            if index not in self._matched and key == target:
                self._matched.add(index)
                return self._items[index]
        return None

    def unmatched(self) -> list[T]:
        return [
            item
            for index, item in enumerate(self._items)
            if index not in self._matched
        ]


def is_unchanged(local_file: LocalFile, remote_file: RemoteFileRef) -> bool:
    """Check whether a local file carries the remote modification time.

    A remote file without a modification time never compares equal.
    """
    if remote_file.modified_time is None:
        return False
    return local_file.mtime_ns == datetime_to_ns(remote_file.modified_time)


class DirectoryReconciler:
    """Makes a local directory tree mirror a remote folder tree.

    Each directory is processed in fixed phases: match and recurse into
    remote folders, delete stale local directories, match and transfer
    remote files, delete stale local files. Failures inside one directory
    are counted as a single error and do not stop its siblings; exhausting
    the error budget stops the whole walk.
    """

    def __init__(
        self,
        provider: RemoteTreeProvider,
        stats: RunStats,
        output: Optional[OutputFormatter] = None,
        local: Optional[LocalTreeAccessor] = None,
        dry_run: bool = False,
        max_workers: int = 1,
        progress_interval: int = PROGRESS_INTERVAL,
    ):
        """Initialize the reconciler.

        Args:
            provider: Source of remote snapshots and file content
            stats: Counters and error budget shared by the whole run
            output: Output formatter for action and error lines
            local: Accessor for the local filesystem
            dry_run: If True, report actions without changing anything
            max_workers: Number of parallel file transfers per directory
            progress_interval: Emit a progress line every N checked files
        """
        self.provider = provider
        self.stats = stats
        self.output = output or OutputFormatter()
        self.local = local or LocalTreeAccessor()
        self.dry_run = dry_run
        self.max_workers = max_workers
        self.progress_interval = progress_interval

    def reconcile(
        self, local_dir: Path, snapshot: RemoteFolderSnapshot
    ) -> WalkOutcome:
        """Reconcile one directory and, recursively, everything below it.

        Args:
            local_dir: Local directory to update
            snapshot: Remote listing the directory must match

        Returns:
            ABORT if the error budget ran out, RECOVERED if errors were
            counted in this subtree, OK otherwise
        """
        try:
            return self._reconcile_directory(local_dir, snapshot)
        except Exception as e:
            self.output.error(f"Error while syncing directory '{local_dir}': {e}")
            logger.debug("Failure in %s", local_dir, exc_info=True)
            return self._register_error()

    def _register_error(self) -> WalkOutcome:
        if self.stats.register_error():
            return WalkOutcome.ABORT
        return WalkOutcome.RECOVERED

    def _reject_name(self, local_dir: Path, kind: str, name: str) -> WalkOutcome:
        """Count a remote entry whose name cannot be used locally."""
        self.output.error(
            f"Skipping remote {kind} with invalid name {name!r} in '{local_dir}'"
        )
        logger.debug("Invalid remote %s name %r in %s", kind, name, local_dir)
        return self._register_error()

    def _reconcile_directory(
        self, local_dir: Path, snapshot: RemoteFolderSnapshot
    ) -> WalkOutcome:
        logger.debug("Comparing %s with remote folder %s", local_dir, snapshot.id)
        children = self.local.list_children(local_dir)

        outcome = self._reconcile_dirs(local_dir, snapshot, children.dirs)
        if outcome is WalkOutcome.ABORT:
            return outcome

        file_outcome = self._reconcile_files(local_dir, snapshot, children.files)
        return outcome.merge(file_outcome)

    # =========================
    # Directories
    # =========================

    def _reconcile_dirs(
        self,
        local_dir: Path,
        snapshot: RemoteFolderSnapshot,
        local_dirs: list[Path],
    ) -> WalkOutcome:
        pool = _MatchPool(local_dirs, key=lambda path: path.name.strip())
        outcome = WalkOutcome.OK

        for child_folder in snapshot.child_folders:
            if not is_safe_name(child_folder.name):
                outcome = outcome.merge(
                    self._reject_name(local_dir, "folder", child_folder.name)
                )
                if outcome is WalkOutcome.ABORT:
                    return outcome
                continue

            child_dir = pool.claim(child_folder.name)
            if child_dir is None:
                child_dir = local_dir / child_folder.name
                self.output.info(f"++ Add dir '{child_dir}'")
                if not self.dry_run:
                    child_dir = self.local.create_dir(local_dir, child_folder.name)
                self.stats.increment("created_dirs")

            child_snapshot = self.provider.get_folder_snapshot(child_folder)
            outcome = outcome.merge(self.reconcile(child_dir, child_snapshot))
            if outcome is WalkOutcome.ABORT:
                return outcome

            self.stats.increment("checked_dirs")

        for stale_dir in pool.unmatched():
            self.output.info(f"-- Delete dir '{stale_dir}'")
            if not self.dry_run:
                self.local.delete_dir(stale_dir)
            self.stats.increment("deleted_dirs")

        return outcome

    # =========================
    # Files
    # =========================

    def _reconcile_files(
        self,
        local_dir: Path,
        snapshot: RemoteFolderSnapshot,
        local_files: list[LocalFile],
    ) -> WalkOutcome:
        pool = _MatchPool(local_files, key=lambda f: f.name)

        if self.max_workers > 1 and not self.dry_run:
            outcome = self._compare_files_parallel(local_dir, snapshot, pool)
        else:
            outcome = self._compare_files_sequential(local_dir, snapshot, pool)
        if outcome is WalkOutcome.ABORT:
            return outcome

        for stale_file in pool.unmatched():
            self.output.info(f"-- Delete file '{stale_file.path}'")
            if not self.dry_run:
                self.local.delete_file(stale_file.path)
            self.stats.increment("deleted_files")

        return outcome

    def _compare_files_sequential(
        self,
        local_dir: Path,
        snapshot: RemoteFolderSnapshot,
        pool: _MatchPool[LocalFile],
    ) -> WalkOutcome:
        outcome = WalkOutcome.OK
        for remote_file in snapshot.files:
            transfer = self._plan_file(local_dir, remote_file, pool)
            if transfer is not None:
                outcome = outcome.merge(transfer())
                if outcome is WalkOutcome.ABORT:
                    return outcome
            self._count_checked_file()
        return outcome

    def _compare_files_parallel(
        self,
        local_dir: Path,
        snapshot: RemoteFolderSnapshot,
        pool: _MatchPool[LocalFile],
    ) -> WalkOutcome:
        outcome = WalkOutcome.OK
        futures: list[Future] = []

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            for remote_file in snapshot.files:
                if self.stats.budget.exhausted:
                    break
                transfer = self._plan_file(local_dir, remote_file, pool)
                if transfer is not None:
                    futures.append(executor.submit(transfer))
                self._count_checked_file()

            for future in futures:
                # Exceptions from a transfer surface here and are handled
                # at the directory boundary like any other failure
                outcome = outcome.merge(future.result())
                if outcome is WalkOutcome.ABORT:
                    break
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        if self.stats.budget.exhausted:
            return WalkOutcome.ABORT
        return outcome

    def _plan_file(
        self,
        local_dir: Path,
        remote_file: RemoteFileRef,
        pool: _MatchPool[LocalFile],
    ) -> Optional[Callable[[], WalkOutcome]]:
        """Match a remote file and log the action it needs.

        Returns:
            A callable performing the transfer (or reporting an unusable
            name), or None if the local copy is up to date or this is a
            dry run
        """
        if not is_safe_name(remote_file.name):
            return lambda: self._reject_name(local_dir, "file", remote_file.name)

        target = local_dir / remote_file.name
        local_file = pool.claim(remote_file.name)

        if local_file is None:
            self.output.info(f"++ Download file '{target}'")
            if self.dry_run:
                self.stats.increment("downloaded_files")
                return None
            return lambda: self._download(local_dir, remote_file)

        if is_unchanged(local_file, remote_file):
            return None

        self.output.info(f"== Overwrite file '{target}'")
        if self.dry_run:
            self.stats.increment("overwritten_files")
            return None
        return lambda: self._overwrite(local_dir, remote_file, local_file)

    def _download(self, local_dir: Path, remote_file: RemoteFileRef) -> WalkOutcome:
        outcome = WalkOutcome.OK
        if not self.provider.download_file(local_dir, remote_file):
            outcome = self._register_error()
        self.stats.increment("downloaded_files")
        return outcome

    def _overwrite(
        self, local_dir: Path, remote_file: RemoteFileRef, local_file: LocalFile
    ) -> WalkOutcome:
        outcome = WalkOutcome.OK
        self.local.delete_file(local_file.path)
        if not self.provider.download_file(local_dir, remote_file):
            outcome = self._register_error()
        self.stats.increment("overwritten_files")
        return outcome

    def _count_checked_file(self) -> None:
        checked = self.stats.increment("checked_files")
        if checked % self.progress_interval == 0:
            self.output.info(f"Processed {checked} files...")
