"""Object storage client (Supabase Storage REST API)."""
import logging
from urllib.parse import quote

import httpx

from reunion.collaborators._http import error_message
from reunion.core.errors import CollaboratorFailure

logger = logging.getLogger(__name__)


class StorageClient:
    """Reads and writes objects in a single public bucket."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, api_key: str, bucket: str):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.bucket = bucket

    def _headers(self) -> dict[str, str]:
        return {"apikey": self.api_key, "Authorization": f"Bearer {self.api_key}"}

    async def put_object(self, path: str, data: bytes, content_type: str) -> None:
        """Upload ``data`` to ``path``. Existing objects are never overwritten."""
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(path)}"
        headers = self._headers() | {"Content-Type": content_type, "x-upsert": "false"}
        try:
            response = await self.http.post(url, content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Upload of {path} failed: {e}")
            raise CollaboratorFailure("storage", f"Storage unavailable: {e}") from e

        if response.is_error:
            message = error_message(response)
            logger.error(f"Upload of {path} rejected: {message}")
            raise CollaboratorFailure("storage", message)
        logger.debug(f"Stored {path} ({len(data)} bytes)")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    async def list_objects(
        self,
        prefix: str = "",
        sort_by: str = "created_at",
        order: str = "desc",
        limit: int = 100,
    ) -> list[dict]:
        """List objects under ``prefix``.

        Each entry has ``name``, ``path`` (relative to the bucket), ``url``,
        ``created_at`` and ``size``.
        """
        url = f"{self.base_url}/storage/v1/object/list/{self.bucket}"
        body = {
            "prefix": prefix,
            "limit": limit,
            "offset": 0,
            "sortBy": {"column": sort_by, "order": order},
        }
        try:
            response = await self.http.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise CollaboratorFailure("storage", f"Storage unavailable: {e}") from e
        if response.is_error:
            raise CollaboratorFailure("storage", error_message(response))

        folder = prefix.strip("/")
        objects = []
        for entry in response.json():
            # Folder placeholders come back without an id
            if entry.get("id") is None:
                continue
            path = f"{folder}/{entry['name']}" if folder else entry["name"]
            objects.append({
                "name": entry["name"],
                "path": path,
                "url": self.public_url(path),
                "created_at": entry.get("created_at"),
                "size": (entry.get("metadata") or {}).get("size"),
            })
        return objects
