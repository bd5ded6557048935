"""Client for the external document-indexing service.

The service ingests uploaded files into its vector store and deletes them
again on request. Both endpoints take multipart form data authenticated with
a shared ``key`` field.
"""

import logging
from datetime import date

import httpx

from docspace.errors.exceptions import IndexingServiceError

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload/"
DELETE_PATH = "/api/delete/"


def _flag(value: bool) -> str:
    return "true" if value else "false"


class IndexingClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        index: str,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.index = index
        self.timeout = timeout
        # Injected in tests to stand in for the remote service.
        self._transport = transport

    async def upload(
        self,
        *,
        content: bytes,
        filename: str,
        file_id: str,
        workspace_id: str,
        filepath: str,
        is_original: bool,
        is_revision: bool,
        parent_id: str | None = None,
        parent_name: str | None = None,
        revision_date: date | None = None,
        batch: bool = False,
    ) -> dict:
        """Send a stored file to the indexing service."""
        data = {
            "key": self.api_key,
            "filename": filename,
            "fileID": file_id,
            "index": self.index,
            "workspace": workspace_id,
            "isOriginal": _flag(is_original),
            "isRevision": _flag(is_revision),
            "filepath": filepath,
        }
        if parent_id:
            data["parentID"] = parent_id
        if parent_name:
            data["parentName"] = parent_name
        if revision_date:
            data["revisionDate"] = revision_date.isoformat()
        if batch:
            data["batch"] = "true"

        files = {"file": (filename, content, "application/octet-stream")}
        return await self._post(UPLOAD_PATH, data, files)

    async def delete_workspace(self, workspace_id: str) -> dict:
        """Purge every indexed chunk of a workspace."""
        data = {
            "key": self.api_key,
            "index": self.index,
            "workspace": workspace_id,
            "deleteWorkspace": "true",
        }
        return await self._post(DELETE_PATH, data)

    async def delete_document(self, workspace_id: str, file_id: str, parent_id: str | None = None) -> dict:
        data = {
            "key": self.api_key,
            "index": self.index,
            "workspace": workspace_id,
            "deleteWorkspace": "false",
            "fileID": file_id,
        }
        if parent_id:
            data["parentID"] = parent_id
        return await self._post(DELETE_PATH, data)

    async def _post(self, path: str, data: dict, files: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        if files is None:
            # Plain fields go out as multipart parts too; httpx would urlencode them.
            files = {name: (None, value) for name, value in data.items()}
            data = None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, data=data, files=files)
        except httpx.HTTPError as exc:
            logger.warning("Indexing service unreachable at %s: %s", url, exc)
            raise IndexingServiceError(f"Indexing service unreachable: {exc}") from exc

        if resp.status_code >= 300:
            logger.warning("Indexing service returned HTTP %s for %s", resp.status_code, path)
            raise IndexingServiceError(
                f"Indexing service returned HTTP {resp.status_code}",
                details={"status": resp.status_code, "body": resp.text[:500]},
            )

        try:
            return resp.json()
        except ValueError:
            return {}
