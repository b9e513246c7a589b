"""
Client for the link-resolution API.

The API turns a storage key into a short-lived signed download URL:

    GET <base_url>?file=<relative path>      (header x-Api-Key: <key>, optional)
    200 -> {"download_url": "...", "file_size": 123}
    4xx/5xx -> {"message": "..."} (message optional)
"""
from dataclasses import dataclass
from typing import Optional

import requests
from loguru import logger

from ..config import DEFAULT_API_URL, LINK_TIMEOUT_SECONDS
from ..exceptions import LinkResolutionError


@dataclass(frozen=True)
class LinkResponse:
    download_url: str
    file_size: int


class LinkClient:
    """Resolves download links, one request per file."""

    API_KEY_HEADER = "x-Api-Key"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = LINK_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        # module-level requests.get unless a session is injected; workers share this client
        self.session = session or requests

    def fetch_download_link(self, relative_path: str) -> LinkResponse:
        """
        Ask the API for a signed URL for ``relative_path``.

        Raises:
            LinkResolutionError: network failure, non-200 status or malformed body
        """
        headers = {self.API_KEY_HEADER: self.api_key} if self.api_key else {}
        try:
            response = self.session.get(
                self.base_url,
                params={"file": relative_path},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise LinkResolutionError(f"{type(e).__name__}: {e}") from e

        with response:
            if response.status_code != 200:
                raise self._status_error(response)

            try:
                payload = response.json()
                download_url = payload["download_url"]
                file_size = int(payload.get("file_size") or 0)
            except (ValueError, KeyError, TypeError) as e:
                raise LinkResolutionError(f"invalid json: {e}", response.status_code) from e

            if not download_url:
                raise LinkResolutionError("invalid json: missing download_url", response.status_code)
            link = LinkResponse(download_url=str(download_url), file_size=file_size)

        logger.debug(f"Resolved {relative_path} ({link.file_size} bytes)")
        return link

    @staticmethod
    def _status_error(response: requests.Response) -> LinkResolutionError:
        status = response.status_code
        message = ""
        try:
            payload = response.json()
            if isinstance(payload, dict):
                message = str(payload.get("message") or "")
        except ValueError:
            pass

        if message:
            return LinkResolutionError(message, status)
        if status == 404:
            return LinkResolutionError("file not found on server", status)
        return LinkResolutionError(f"api status {status}", status)
