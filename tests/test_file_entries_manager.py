"""Unit tests for FileEntriesManager."""

from unittest.mock import Mock

import pytest

from gdrivesync.exceptions import DriveNetworkError
from gdrivesync.file_entries_manager import LISTING_FIELDS, FileEntriesManager


@pytest.fixture
def mock_client():
    return Mock()


class TestFileEntriesManager:
    """Tests for folder listing and pagination."""

    def test_single_page(self, mock_client):
        mock_client.list_files.return_value = {
            "files": [{"id": "1", "name": "a.txt"}, {"id": "2", "name": "b.txt"}]
        }
        manager = FileEntriesManager(mock_client)

        entries = manager.get_all_in_folder("root")

        assert [e["id"] for e in entries] == ["1", "2"]
        mock_client.list_files.assert_called_once_with(
            query="'root' in parents and trashed = false",
            fields=LISTING_FIELDS,
            page_size=1000,
            page_token=None,
        )

    def test_follows_page_tokens(self, mock_client):
        mock_client.list_files.side_effect = [
            {"files": [{"id": "1"}], "nextPageToken": "p2"},
            {"files": [{"id": "2"}], "nextPageToken": "p3"},
            {"files": [{"id": "3"}]},
        ]
        manager = FileEntriesManager(mock_client, page_size=1)

        entries = manager.get_all_in_folder("root")

        assert [e["id"] for e in entries] == ["1", "2", "3"]
        tokens = [c.kwargs["page_token"] for c in mock_client.list_files.call_args_list]
        assert tokens == [None, "p2", "p3"]

    def test_iter_pages_yields_each_page(self, mock_client):
        mock_client.list_files.side_effect = [
            {"files": [{"id": "1"}], "nextPageToken": "p2"},
            {"files": []},
        ]
        manager = FileEntriesManager(mock_client)

        pages = list(manager.iter_pages("root"))

        assert pages == [[{"id": "1"}], []]

    def test_missing_files_key(self, mock_client):
        mock_client.list_files.return_value = {}
        assert FileEntriesManager(mock_client).get_all_in_folder("root") == []

    def test_excluded_extensions_in_query(self, mock_client):
        mock_client.list_files.return_value = {"files": []}
        manager = FileEntriesManager(mock_client, excluded_extensions=[".tmp,log"])

        manager.get_all_in_folder("root")

        query = mock_client.list_files.call_args.kwargs["query"]
        assert query == (
            "'root' in parents and trashed = false"
            " and fileExtension != 'tmp' and fileExtension != 'log'"
        )

    def test_error_on_later_page_propagates(self, mock_client):
        mock_client.list_files.side_effect = [
            {"files": [{"id": "1"}], "nextPageToken": "p2"},
            DriveNetworkError("Network error: reset"),
        ]
        manager = FileEntriesManager(mock_client)

        with pytest.raises(DriveNetworkError):
            manager.get_all_in_folder("root")
