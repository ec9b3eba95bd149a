"""API client for the Google Drive v3 REST API."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Generator
from pathlib import Path
from typing import Any

import httpx

from .config import config
from .credentials import StaticToken, TokenProvider
from .exceptions import (
    DriveAPIError,
    DriveAuthenticationError,
    DriveConfigError,
    DriveDownloadError,
    DriveInvalidResponseError,
    DriveNetworkError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveRateLimitError,
)
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, DOWNLOAD_CHUNK_SIZE

logger = logging.getLogger(__name__)

# Drive reports quota problems as 403 with one of these reasons
_RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}


class BearerAuth(httpx.Auth):
    """Sends the provider's token and refreshes it once on a 401."""

    def __init__(self, token_provider: TokenProvider):
        self.token_provider = token_provider

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        token = self.token_provider.token()
        request.headers["Authorization"] = f"Bearer {token}"
        response = yield request

        if response.status_code == 401 and self.token_provider.can_refresh:
            logger.debug("Access token rejected, refreshing")
            self.token_provider.refresh(token)
            request.headers["Authorization"] = (
                f"Bearer {self.token_provider.token()}"
            )
            yield request


class DriveClient:
    """Client for interacting with the Google Drive API."""

    def __init__(
        self,
        access_token: str | None = None,
        api_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        token_provider: TokenProvider | None = None,
    ):
        """Initialize Drive API client.

        Args:
            access_token: Optional OAuth access token (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (used by tests)
            token_provider: Optional token source, e.g. refreshable OAuth
                credentials (takes precedence over access_token)
        """
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport

        if token_provider is None:
            self.access_token = access_token or config.access_token
            if not self.access_token:
                raise DriveConfigError(
                    "Access token not configured. "
                    "Please set GDRIVESYNC_ACCESS_TOKEN environment variable."
                )
            token_provider = StaticToken(self.access_token)
        else:
            self.access_token = None
        self.token_provider = token_provider

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                auth=BearerAuth(self.token_provider),
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> DriveClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # Add jitter: +/- 25% of base delay
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    @staticmethod
    def _error_details(response: httpx.Response) -> tuple[str | None, set[str]]:
        """Extract message and reasons from a Drive error body."""
        try:
            data = response.json()
        except ValueError:
            return None, set()

        error = data.get("error") if isinstance(data, dict) else None
        if not isinstance(error, dict):
            return None, set()

        reasons = {
            item.get("reason")
            for item in error.get("errors", [])
            if isinstance(item, dict) and item.get("reason")
        }
        return error.get("message"), reasons

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Handle HTTP errors and determine if retry should occur.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code
        message, reasons = self._error_details(e.response)

        if status_code == 401:
            raise DriveAuthenticationError(
                "Invalid or expired access token"
            ) from e
        elif status_code == 403 and not reasons & _RATE_LIMIT_REASONS:
            raise DrivePermissionError(
                f"Access forbidden - {message or 'check your permissions'}"
            ) from e
        elif status_code == 404:
            raise DriveNotFoundError(message or "Resource not found") from e
        elif status_code in (403, 429):
            error: Exception = DriveRateLimitError(
                "Rate limit exceeded - please try again later"
            )
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        if message:
            error_msg = f"{error_msg}: {message}"
        error = DriveAPIError(error_msg)
        # Retry on 5xx server errors
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _retry_delay_for(
        self, error: Exception, e: httpx.HTTPStatusError, attempt: int
    ) -> float:
        """Use the Retry-After header for rate limits, backoff otherwise."""
        if isinstance(error, DriveRateLimitError):
            retry_after = e.response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                return float(retry_after)
        return self._calculate_retry_delay(attempt)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            DriveAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                if not response.content:
                    return {}

                content_type = response.headers.get("Content-Type", "")
                if "application/json" not in content_type:
                    raise DriveInvalidResponseError(
                        f"Unexpected response type: {content_type}"
                    )
                try:
                    return response.json()
                except ValueError as e:
                    raise DriveInvalidResponseError(
                        "Invalid JSON response from server"
                    ) from e

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    delay = self._retry_delay_for(error, e, attempt)
                    logger.debug(
                        "Retrying %s %s in %.2fs after: %s", method, url, delay, error
                    )
                    time.sleep(delay)
                    continue
                raise error from e
            except DriveAPIError:
                raise
            except httpx.RequestError as e:
                error = DriveNetworkError(f"Network error: {e}")
                last_exception = error
                if attempt < self.max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug(
                        "Retrying %s %s in %.2fs after: %s", method, url, delay, error
                    )
                    time.sleep(delay)
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise DriveAPIError("Request failed after all retry attempts")

    # =========================
    # Metadata Operations
    # =========================

    def get_about(self) -> Any:
        """Get information about the authenticated user."""
        return self._request("GET", "/about", params={"fields": "user"})

    def get_file(self, file_id: str, fields: str = "id,name,mimeType") -> Any:
        """Get the metadata of a single file or folder.

        Args:
            file_id: Drive file id
            fields: Partial response field selector

        Returns:
            Drive file resource
        """
        return self._request(
            "GET",
            f"/files/{file_id}",
            params={"fields": fields, "supportsAllDrives": "true"},
        )

    def list_files(
        self,
        query: str,
        fields: str = "nextPageToken,files(id,name,mimeType,modifiedTime)",
        page_size: int = 100,
        page_token: str | None = None,
    ) -> Any:
        """List file resources matching a search query (one page).

        Args:
            query: Drive search query (``q`` parameter)
            fields: Partial response field selector
            page_size: Maximum number of results per page
            page_token: Token of the page to fetch, None for the first page

        Returns:
            Response with ``files`` and optional ``nextPageToken``
        """
        params: dict[str, Any] = {
            "q": query,
            "fields": fields,
            "pageSize": page_size,
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        if page_token:
            params["pageToken"] = page_token
        return self._request("GET", "/files", params=params)

    # =========================
    # Download Operations
    # =========================

    def download_file(
        self,
        file_id: str,
        output_path: Path,
        timeout: int = 60,
    ) -> Path:
        """Download file content to a local path.

        Args:
            file_id: Drive file id
            output_path: Path where the content is written
            timeout: Request timeout in seconds (default: 60)

        Returns:
            Path where the file was saved

        Raises:
            DriveDownloadError: If the download or the write fails
            DriveNetworkError: On transport errors
        """
        url = f"{self.api_url}/files/{file_id}"
        params = {"alt": "media", "supportsAllDrives": "true"}
        client = self._get_client()

        try:
            with client.stream("GET", url, params=params, timeout=timeout) as response:
                response.raise_for_status()
                bytes_downloaded = 0

                with open(output_path, "wb") as f:
                    for chunk in response.iter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            bytes_downloaded += len(chunk)

                logger.debug("Downloaded %s (%d bytes)", file_id, bytes_downloaded)
                return output_path

        except httpx.HTTPStatusError as e:
            raise DriveDownloadError(f"Download failed: {e}") from e
        except httpx.RequestError as e:
            raise DriveNetworkError(f"Network error during download: {e}") from e
        except OSError as e:
            raise DriveDownloadError(f"Failed to write file: {e}") from e
