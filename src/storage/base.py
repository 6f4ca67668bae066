"""Storage collaborator interface."""

from __future__ import annotations

from typing import Literal, Protocol

AssetType = Literal["image", "logo", "screenshot"]


class AssetStorage(Protocol):
    """File storage issuing public URLs, plus asset provenance records."""

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        """Store *data* at *path* and return its public URL."""
        ...

    async def insert_asset(
        self,
        project_id: str,
        asset_type: AssetType,
        url: str,
        local_path: str | None = None,
    ) -> None: ...
