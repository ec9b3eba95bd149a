"""Tests for the remote data models."""

from datetime import datetime, timezone

import pytest

from gdrivesync.models import RemoteFileRef, RemoteFolderRef, RemoteFolderSnapshot
from gdrivesync.utils import FOLDER_MIME_TYPE


class TestRefs:
    """Tests for RemoteFolderRef and RemoteFileRef."""

    def test_names_are_trimmed(self):
        assert RemoteFolderRef(id="1", name="  Photos \t").name == "Photos"
        assert RemoteFileRef(id="2", name=" a.txt ").name == "a.txt"

    def test_refs_are_immutable(self):
        ref = RemoteFolderRef(id="1", name="Photos")
        with pytest.raises(AttributeError):
            ref.name = "Other"  # type: ignore[misc]

    def test_file_from_api_response(self):
        ref = RemoteFileRef.from_api_response(
            {
                "id": "f1",
                "name": "report.pdf ",
                "mimeType": "application/pdf",
                "modifiedTime": "2024-05-01T09:00:00.500Z",
            }
        )
        assert ref.id == "f1"
        assert ref.name == "report.pdf"
        assert ref.modified_time == datetime(
            2024, 5, 1, 9, 0, 0, 500000, tzinfo=timezone.utc
        )

    def test_file_without_modified_time(self):
        ref = RemoteFileRef.from_api_response({"id": "f1", "name": "a"})
        assert ref.modified_time is None


class TestSnapshot:
    """Tests for RemoteFolderSnapshot."""

    def test_from_listing_splits_by_mime_type(self):
        folder = RemoteFolderRef(id="root", name="Root")
        resources = [
            {"id": "1", "name": "b.txt", "mimeType": "text/plain"},
            {"id": "2", "name": "Sub", "mimeType": FOLDER_MIME_TYPE},
            {"id": "3", "name": "a.txt", "mimeType": "text/plain"},
            {"id": "4", "name": "Other", "mimeType": FOLDER_MIME_TYPE},
        ]

        snapshot = RemoteFolderSnapshot.from_listing(folder, resources)

        assert snapshot.id == "root"
        assert snapshot.name == "Root"
        assert [f.name for f in snapshot.child_folders] == ["Sub", "Other"]
        assert [f.name for f in snapshot.files] == ["b.txt", "a.txt"]

    def test_empty_listing(self):
        snapshot = RemoteFolderSnapshot.from_listing(
            RemoteFolderRef(id="x", name="X"), []
        )
        assert snapshot.child_folders == ()
        assert snapshot.files == ()

    def test_ref_property(self):
        snapshot = RemoteFolderSnapshot(id="x", name="X")
        assert snapshot.ref == RemoteFolderRef(id="x", name="X")
