"""Supabase storage bucket + ``assets`` table."""

from __future__ import annotations

import asyncio
import logging

from supabase import Client, create_client

from .base import AssetType

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "project-assets"
ASSETS_TABLE = "assets"


class SupabaseStorage:
    """AssetStorage backed by a public Supabase bucket.

    The Supabase client is synchronous, so calls run in a worker thread. It
    is created on first use so the service can start without credentials;
    scrapes check configuration before reaching storage.
    """

    def __init__(
        self,
        url: str,
        key: str,
        bucket: str = DEFAULT_BUCKET,
        client: Client | None = None,
    ) -> None:
        self._url = url
        self._key = key
        self._bucket = bucket
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = create_client(self._url, self._key)
        return self._client

    def _upload_sync(self, data: bytes, path: str, content_type: str) -> str:
        bucket = self._get_client().storage.from_(self._bucket)
        bucket.upload(
            path=path,
            file=data,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        return bucket.get_public_url(path)

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        if not data:
            raise ValueError(f"refusing to upload empty file to {path}")
        public_url = await asyncio.to_thread(self._upload_sync, data, path, content_type)
        logger.debug(
            "file uploaded",
            extra={"bucket": self._bucket, "path": path, "size": len(data)},
        )
        return public_url

    async def insert_asset(
        self,
        project_id: str,
        asset_type: AssetType,
        url: str,
        local_path: str | None = None,
    ) -> None:
        record = {
            "project_id": project_id,
            "type": asset_type,
            "url": url,
            "local_path": local_path,
        }
        await asyncio.to_thread(
            lambda: self._get_client().table(ASSETS_TABLE).insert(record).execute()
        )
