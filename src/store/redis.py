"""Redis persistence — project style, linear version chain, scraping logs."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import redis.asyncio as redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import WatchError
from redis.retry import Retry

from src.api.schemas import ExtractedAssetSet, ScrapingLog, Version

logger = logging.getLogger(__name__)

KEY_PREFIX = "project:"


def _key(project_id: str, name: str) -> str:
    return f"{KEY_PREFIX}{project_id}:{name}"


class ProjectStore:
    """Per-project state on Redis.

    Versions are write-once hash entries keyed by version number. The
    ``current`` pointer is the only mutable part of the chain and moves in
    the same transaction that appends a version, so ``is_current`` (derived
    on read) holds for exactly one version at a time.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    # --- Style ---

    async def get_style(self, project_id: str) -> ExtractedAssetSet | None:
        raw = await self._client.get(_key(project_id, "style"))
        if raw is None:
            logger.debug("style miss", extra={"project_id": project_id})
            return None
        return ExtractedAssetSet.model_validate_json(raw)

    async def save_style(self, project_id: str, style: ExtractedAssetSet) -> None:
        await self._client.set(_key(project_id, "style"), style.model_dump_json())
        logger.debug("style saved", extra={"project_id": project_id})

    # --- Versions ---

    async def create_version(
        self,
        project_id: str,
        html: str = "",
        css: str = "",
        *,
        prompt_instructions: str | None = None,
        created_by: str | None = None,
        settings: ExtractedAssetSet | None = None,
    ) -> Version:
        """Append a version and make it current in one transaction."""
        seq_key = _key(project_id, "version_seq")
        async with self._client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(seq_key)
                    last = await pipe.get(seq_key)
                    number = int(last or 0) + 1
                    version = Version(
                        id=uuid.uuid4().hex,
                        project_id=project_id,
                        version_number=number,
                        html_content=html,
                        css_content=css,
                        prompt_instructions=prompt_instructions,
                        created_by=created_by,
                        created_at=datetime.now(timezone.utc),
                        settings=settings,
                    )
                    pipe.multi()
                    pipe.set(seq_key, number)
                    pipe.hset(
                        _key(project_id, "versions"),
                        str(number),
                        version.model_dump_json(exclude={"is_current"}),
                    )
                    pipe.set(_key(project_id, "current"), number)
                    await pipe.execute()
                    break
                except WatchError:
                    logger.debug("version sequence contended, retrying", extra={"project_id": project_id})
                    continue

        logger.info(
            "version created",
            extra={"project_id": project_id, "version_number": number, "created_by": created_by},
        )
        return version.model_copy(update={"is_current": True})

    async def _current_number(self, project_id: str) -> int | None:
        raw = await self._client.get(_key(project_id, "current"))
        return int(raw) if raw is not None else None

    async def list_versions(self, project_id: str) -> list[Version]:
        """All versions of *project_id*, newest first."""
        entries = await self._client.hgetall(_key(project_id, "versions"))
        current = await self._current_number(project_id)
        versions = [
            Version.model_validate_json(raw).model_copy(
                update={"is_current": int(number) == current}
            )
            for number, raw in entries.items()
        ]
        versions.sort(key=lambda v: v.version_number, reverse=True)
        return versions

    async def get_current_version(self, project_id: str) -> Version | None:
        current = await self._current_number(project_id)
        if current is None:
            return None
        raw = await self._client.hget(_key(project_id, "versions"), str(current))
        if raw is None:
            logger.warning(
                "current version pointer dangling",
                extra={"project_id": project_id, "version_number": current},
            )
            return None
        return Version.model_validate_json(raw).model_copy(update={"is_current": True})

    # --- Scraping logs ---

    async def append_scrape_log(self, project_id: str, log: ScrapingLog) -> None:
        """Append *log*; failures are logged, never raised."""
        try:
            await self._client.rpush(_key(project_id, "scrape_logs"), log.model_dump_json())
        except redis.RedisError:
            logger.warning("scrape log append failed", extra={"project_id": project_id}, exc_info=True)

    async def list_scrape_logs(self, project_id: str) -> list[ScrapingLog]:
        entries = await self._client.lrange(_key(project_id, "scrape_logs"), 0, -1)
        return [ScrapingLog.model_validate_json(raw) for raw in entries]


async def create_redis_client(redis_url: str) -> redis.Redis:
    # Credentials stay out of the log
    safe_url = redis_url.split("@")[-1] if "@" in redis_url else redis_url
    logger.info("connecting to redis", extra={"redis_url": safe_url})
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
        retry=Retry(ExponentialBackoff(), retries=3),
        retry_on_error=[redis.ConnectionError, redis.TimeoutError],
    )
