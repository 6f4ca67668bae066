"""X-API-Key check for the project routes (FastAPI dependency)."""

import hmac
import logging

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from src.config import Settings, get_settings

logger = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "APIKey"},
    )


async def require_api_key(
    request: Request,
    api_key: str | None = Security(_api_key_header),
    settings: Settings = Depends(get_settings),
) -> str:
    """Reject requests whose X-API-Key does not match API_KEY."""
    if not api_key:
        logger.info("request without api key", extra={"path": request.url.path})
        raise _unauthorized("Missing API key")
    if not hmac.compare_digest(api_key.encode(), settings.api_key.encode()):
        logger.warning("request with invalid api key", extra={"path": request.url.path})
        raise _unauthorized("Invalid API key")
    return api_key
