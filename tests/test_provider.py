"""Unit tests for DriveTreeProvider."""

import os
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from gdrivesync.exceptions import DriveDownloadError, DriveNotFoundError
from gdrivesync.models import RemoteFileRef, RemoteFolderRef
from gdrivesync.sync.provider import DriveTreeProvider
from gdrivesync.utils import FOLDER_MIME_TYPE

MODIFIED = datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture
def mock_client():
    client = Mock()
    client.list_files.return_value = {
        "files": [
            {"id": "d1", "name": "Docs", "mimeType": FOLDER_MIME_TYPE},
            {
                "id": "f1",
                "name": "a.txt",
                "mimeType": "text/plain",
                "modifiedTime": "2024-01-01T12:00:00.000Z",
            },
        ]
    }
    return client


@pytest.fixture
def drive_provider(mock_client, mock_output):
    return DriveTreeProvider(mock_client, mock_output)


class TestGetFolderSnapshot:
    """Tests for DriveTreeProvider.get_folder_snapshot."""

    def test_by_id_looks_up_metadata(self, drive_provider, mock_client):
        mock_client.get_file.return_value = {
            "id": "root",
            "name": "Root",
            "mimeType": FOLDER_MIME_TYPE,
        }

        snapshot = drive_provider.get_folder_snapshot("root")

        mock_client.get_file.assert_called_once_with(
            "root", fields="id,name,mimeType"
        )
        assert snapshot.name == "Root"
        assert [f.name for f in snapshot.child_folders] == ["Docs"]
        assert [f.name for f in snapshot.files] == ["a.txt"]

    def test_by_reference_skips_metadata(self, drive_provider, mock_client):
        snapshot = drive_provider.get_folder_snapshot(RemoteFolderRef("d1", "Docs"))

        mock_client.get_file.assert_not_called()
        assert snapshot.id == "d1"
        assert "'d1' in parents" in mock_client.list_files.call_args.kwargs["query"]

    def test_non_folder_id(self, drive_provider, mock_client):
        mock_client.get_file.return_value = {
            "id": "f1",
            "name": "a.txt",
            "mimeType": "text/plain",
        }
        with pytest.raises(DriveNotFoundError, match="not a folder"):
            drive_provider.get_folder_snapshot("f1")
        mock_client.list_files.assert_not_called()

    def test_empty_id(self, drive_provider):
        with pytest.raises(ValueError, match="folder_id is required"):
            drive_provider.get_folder_snapshot("  ")

    def test_excluded_extensions_reach_query(self, mock_client, mock_output):
        drive_provider = DriveTreeProvider(
            mock_client, mock_output, excluded_extensions=["tmp"]
        )
        drive_provider.get_folder_snapshot(RemoteFolderRef("d1", "Docs"))

        query = mock_client.list_files.call_args.kwargs["query"]
        assert query.endswith("fileExtension != 'tmp'")


class TestDownloadFile:
    """Tests for DriveTreeProvider.download_file."""

    def test_success_sets_modification_time(
        self, drive_provider, mock_client, tmp_path
    ):
        def fake_download(file_id, output_path):
            output_path.write_bytes(b"content")
            return output_path

        mock_client.download_file.side_effect = fake_download
        file = RemoteFileRef("f1", "a.txt", MODIFIED)

        assert drive_provider.download_file(tmp_path, file) is True

        target = tmp_path / "a.txt"
        assert target.read_bytes() == b"content"
        assert os.stat(target).st_mtime_ns == 1704110400123456000

    def test_without_modified_time(self, drive_provider, mock_client, tmp_path):
        mock_client.download_file.side_effect = (
            lambda file_id, output_path: output_path.write_bytes(b"x")
        )
        file = RemoteFileRef("f1", "a.txt")

        assert drive_provider.download_file(tmp_path, file) is True
        assert (tmp_path / "a.txt").exists()

    def test_failure_returns_false_and_removes_partial(
        self, drive_provider, mock_client, mock_output, tmp_path
    ):
        def failing_download(file_id, output_path):
            output_path.write_bytes(b"partial")
            raise DriveDownloadError("Download failed: 403 Forbidden")

        mock_client.download_file.side_effect = failing_download
        file = RemoteFileRef("f1", "a.txt", MODIFIED)

        assert drive_provider.download_file(tmp_path, file) is False

        assert not (tmp_path / "a.txt").exists()
        messages = [c.args[0] for c in mock_output.error.call_args_list]
        assert messages[0] == (
            f"Error while trying to download file 'f1' to '{tmp_path / 'a.txt'}'"
        )
        assert messages[1] == "Download failed: 403 Forbidden"

    def test_name_outside_destination_is_refused(
        self, drive_provider, mock_client, mock_output, tmp_path
    ):
        root = tmp_path / "root"
        root.mkdir()
        file = RemoteFileRef("e", "../escaped.txt", MODIFIED)

        assert drive_provider.download_file(root, file) is False

        mock_client.download_file.assert_not_called()
        assert not (tmp_path / "escaped.txt").exists()
        mock_output.error.assert_called_once()
