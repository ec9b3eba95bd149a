"""Shared fixtures for gdrivesync tests."""

import os
from pathlib import Path
from typing import Union
from unittest.mock import Mock

import pytest

from gdrivesync.exceptions import DriveNotFoundError
from gdrivesync.models import RemoteFileRef, RemoteFolderRef, RemoteFolderSnapshot
from gdrivesync.output import OutputFormatter
from gdrivesync.utils import datetime_to_ns


class FakeDriveProvider:
    """In-memory remote tree provider.

    Downloads write ``content`` (or the file id) to disk and apply the
    remote modification time, like the real provider.
    """

    def __init__(self) -> None:
        self.snapshots: dict[str, RemoteFolderSnapshot] = {}
        self.contents: dict[str, bytes] = {}
        self.failing_downloads: set[str] = set()
        self.failing_folders: dict[str, Exception] = {}
        self.fetched: list[str] = []
        self.downloaded: list[str] = []

    def add_folder(
        self,
        folder_id: str,
        name: str,
        folders: tuple = (),
        files: tuple = (),
    ) -> RemoteFolderRef:
        snapshot = RemoteFolderSnapshot(
            id=folder_id,
            name=name,
            child_folders=tuple(folders),
            files=tuple(files),
        )
        self.snapshots[folder_id] = snapshot
        return snapshot.ref

    def get_folder_snapshot(
        self, folder: Union[str, RemoteFolderRef]
    ) -> RemoteFolderSnapshot:
        folder_id = folder if isinstance(folder, str) else folder.id
        self.fetched.append(folder_id)
        if folder_id in self.failing_folders:
            raise self.failing_folders[folder_id]
        if folder_id not in self.snapshots:
            raise DriveNotFoundError(f"Folder {folder_id} not found")
        return self.snapshots[folder_id]

    def download_file(self, destination_dir: Path, file: RemoteFileRef) -> bool:
        self.downloaded.append(file.id)
        if file.id in self.failing_downloads:
            return False
        path = destination_dir / file.name
        path.write_bytes(self.contents.get(file.id, file.id.encode()))
        if file.modified_time is not None:
            mtime_ns = datetime_to_ns(file.modified_time)
            os.utime(path, ns=(mtime_ns, mtime_ns))
        return True


@pytest.fixture
def provider() -> FakeDriveProvider:
    """Provide an empty in-memory remote tree."""
    return FakeDriveProvider()


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True
    output.json_output = False
    return output

