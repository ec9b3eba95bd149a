"""Remote tree provider: folder snapshots and file downloads."""

import logging
import os
from pathlib import Path
from typing import Optional, Protocol, Union

from ..api import DriveClient
from ..exceptions import DriveNotFoundError
from ..file_entries_manager import FileEntriesManager
from ..models import (
    RemoteFileRef,
    RemoteFolderRef,
    RemoteFolderSnapshot,
    is_folder_resource,
)
from ..output import OutputFormatter
from ..utils import datetime_to_ns

logger = logging.getLogger(__name__)


class RemoteTreeProvider(Protocol):
    """Source of remote folder listings and file content."""

    def get_folder_snapshot(
        self, folder: Union[str, RemoteFolderRef]
    ) -> RemoteFolderSnapshot:
        """Return the direct children of a folder.

        A folder id triggers a metadata lookup first; a ``RemoteFolderRef``
        already carries id and name and is listed directly.
        """
        ...

    def download_file(self, destination_dir: Path, file: RemoteFileRef) -> bool:
        """Fetch a file into ``destination_dir``; False on failure."""
        ...


class DriveTreeProvider:
    """Remote tree provider backed by the Google Drive API."""

    def __init__(
        self,
        client: DriveClient,
        output: Optional[OutputFormatter] = None,
        excluded_extensions: Optional[list[str]] = None,
    ):
        """Initialize the provider.

        Args:
            client: Drive API client
            output: Output formatter receiving download errors
            excluded_extensions: File extensions filtered out of every listing
        """
        self.client = client
        self.output = output or OutputFormatter()
        self.manager = FileEntriesManager(client, excluded_extensions)

    def get_folder_snapshot(
        self, folder: Union[str, RemoteFolderRef]
    ) -> RemoteFolderSnapshot:
        """Resolve a folder id or reference to a snapshot of its children.

        Raises:
            ValueError: If an empty folder id is given
            DriveNotFoundError: If the id is unknown or not a folder
            DriveAPIError: On other API or network failures
        """
        if isinstance(folder, str):
            if not folder.strip():
                raise ValueError("folder_id is required")
            data = self.client.get_file(folder, fields="id,name,mimeType")
            if not is_folder_resource(data):
                raise DriveNotFoundError(f"'{folder}' is not a folder")
            folder = RemoteFolderRef.from_api_response(data)

        resources = self.manager.get_all_in_folder(folder.id)
        snapshot = RemoteFolderSnapshot.from_listing(folder, resources)
        logger.debug(
            "Snapshot of '%s' (%s): %d folder(s), %d file(s)",
            snapshot.name,
            snapshot.id,
            len(snapshot.child_folders),
            len(snapshot.files),
        )
        return snapshot

    def download_file(self, destination_dir: Path, file: RemoteFileRef) -> bool:
        """Download a remote file to ``destination_dir / file.name``.

        The local modification time is set to the remote one so later runs
        see the file as unchanged. Failures are reported to the output and
        turned into a False return value, as is a name that would place the
        file outside ``destination_dir``.

        Args:
            destination_dir: Directory that receives the file
            file: Remote file to fetch

        Returns:
            True if the file was written completely
        """
        file_path = destination_dir / file.name
        if file_path.resolve().parent != destination_dir.resolve():
            self.output.error(
                f"Refusing to download file '{file.id}' outside '{destination_dir}'"
            )
            return False

        try:
            self.client.download_file(file.id, file_path)
            if file.modified_time is not None:
                mtime_ns = datetime_to_ns(file.modified_time)
                os.utime(file_path, ns=(mtime_ns, mtime_ns))
            return True
        except Exception as e:
            self.output.error(
                f"Error while trying to download file '{file.id}' to '{file_path}'"
            )
            self.output.error(str(e))
            logger.debug("Download of %s failed", file.id, exc_info=True)
            self._remove_partial(file_path)
            return False

    @staticmethod
    def _remove_partial(file_path: Path) -> None:
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove partial download %s: %s", file_path, e)
