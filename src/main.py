"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.routes import router
from src.config import get_settings
from src.generation import build_generation_client
from src.logging_config import setup_logging
from src.scraper import build_orchestrator
from src.storage.supabase import SupabaseStorage
from src.store.redis import ProjectStore, create_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Logging first so everything below logs as JSON
    setup_logging(settings.log_level)
    logger.info("starting landing page service")

    redis_client = await create_redis_client(settings.redis_url)
    store = ProjectStore(redis_client)

    storage = SupabaseStorage(
        url=settings.supabase_url,
        key=settings.supabase_key,
        bucket=settings.storage_bucket,
    )
    orchestrator = build_orchestrator(settings, storage, log_sink=store)
    generator = build_generation_client(settings)

    app.state.settings = settings
    app.state.store = store
    app.state.orchestrator = orchestrator
    app.state.generator = generator

    missing = [name for name, value in settings.required_credentials().items() if not value]
    if missing:
        logger.warning("service credentials missing, scrapes will be refused", extra={"missing": missing})

    logger.info(
        "landing page service ready",
        extra={
            "generation_model": settings.generation_model,
            "edit_model": settings.edit_model,
            "min_request_interval": settings.min_request_interval_seconds,
            "storage_bucket": settings.storage_bucket,
        },
    )

    yield

    logger.info("shutting down landing page service")
    await redis_client.aclose()


app = FastAPI(title="Landing Page Service", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}
