"""Manager for listing folder children with automatic pagination."""

import logging
from collections.abc import Generator
from typing import Any, Optional

from .api import DriveClient
from .utils import DEFAULT_PAGE_SIZE, build_children_query, normalize_extensions

logger = logging.getLogger(__name__)

LISTING_FIELDS = "nextPageToken,files(id,name,mimeType,modifiedTime,fileExtension)"


class FileEntriesManager:
    """Lists the direct children of Drive folders, following page tokens."""

    def __init__(
        self,
        client: DriveClient,
        excluded_extensions: Optional[list[str]] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """Initialize the file entries manager.

        Args:
            client: Drive API client
            excluded_extensions: File extensions filtered out server-side
            page_size: Number of entries requested per page
        """
        self.client = client
        self.excluded_extensions = normalize_extensions(excluded_extensions)
        self.page_size = page_size

    def iter_pages(
        self, folder_id: str
    ) -> Generator[list[dict[str, Any]], None, None]:
        """Yield the children of a folder page by page.

        Args:
            folder_id: Folder to list

        Yields:
            Lists of Drive file resources, in API order
        """
        query = build_children_query(folder_id, self.excluded_extensions)
        page_token: Optional[str] = None
        page_num = 0

        while True:
            result = self.client.list_files(
                query=query,
                fields=LISTING_FIELDS,
                page_size=self.page_size,
                page_token=page_token,
            )
            page_num += 1
            files = result.get("files", [])
            logger.debug(
                "Folder %s page %d: %d entries", folder_id, page_num, len(files)
            )
            yield files

            page_token = result.get("nextPageToken")
            if not page_token:
                break

    def get_all_in_folder(self, folder_id: str) -> list[dict[str, Any]]:
        """Get all direct children of a folder.

        API errors propagate; a partial listing is never returned because
        the caller deletes local entries missing from it.

        Args:
            folder_id: Folder to list

        Returns:
            All Drive file resources in the folder
        """
        all_entries: list[dict[str, Any]] = []
        for page in self.iter_pages(folder_id):
            all_entries.extend(page)
        return all_entries
