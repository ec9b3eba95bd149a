"""Data models for Google Drive folder listings."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .utils import FOLDER_MIME_TYPE, parse_rfc3339


def is_folder_resource(data: dict[str, Any]) -> bool:
    """Check whether a Drive file resource describes a folder."""
    return data.get("mimeType") == FOLDER_MIME_TYPE


@dataclass(frozen=True)
class RemoteFolderRef:
    """Identifies a remote folder without its contents."""

    id: str
    name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.strip())

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "RemoteFolderRef":
        """Create a folder reference from a Drive file resource."""
        return cls(id=data["id"], name=data.get("name") or "")


@dataclass(frozen=True)
class RemoteFileRef:
    """A remote file with the metadata needed for comparison."""

    id: str
    name: str
    modified_time: Optional[datetime] = None
    """Last modification time (UTC), None if the API did not report one"""

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.strip())

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "RemoteFileRef":
        """Create a file reference from a Drive file resource."""
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            modified_time=parse_rfc3339(data.get("modifiedTime")),
        )


@dataclass(frozen=True)
class RemoteFolderSnapshot:
    """Point-in-time listing of one folder's direct children.

    Children keep the order the API returned them in.
    """

    id: str
    name: str
    child_folders: tuple[RemoteFolderRef, ...] = field(default_factory=tuple)
    files: tuple[RemoteFileRef, ...] = field(default_factory=tuple)

    @property
    def ref(self) -> RemoteFolderRef:
        """Reference to this folder."""
        return RemoteFolderRef(id=self.id, name=self.name)

    @classmethod
    def from_listing(
        cls, folder: RemoteFolderRef, resources: list[dict[str, Any]]
    ) -> "RemoteFolderSnapshot":
        """Build a snapshot from the raw child resources of a folder.

        Args:
            folder: The folder the resources were listed from
            resources: Drive file resources in listing order

        Returns:
            Snapshot with children split into folders and files
        """
        child_folders: list[RemoteFolderRef] = []
        files: list[RemoteFileRef] = []
        for data in resources:
            if is_folder_resource(data):
                child_folders.append(RemoteFolderRef.from_api_response(data))
            else:
                files.append(RemoteFileRef.from_api_response(data))

        return cls(
            id=folder.id,
            name=folder.name,
            child_folders=tuple(child_folders),
            files=tuple(files),
        )
