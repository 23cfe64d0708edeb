"""
API key check for mutating requests.

GET requests and the documentation endpoints are open. POST, PUT and
DELETE routes depend on require_api_key, which compares the X-API-KEY
header against settings.API_KEY and rejects the request with 401 before
the coordinator is reached.
"""

import secrets
from typing import Optional

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from rentalhub.core.config import get_settings
from rentalhub.core.exceptions import Unauthorized
from rentalhub.core.logging import get_logger
from rentalhub.core.metrics import api_key_rejections

logger = get_logger(__name__)
settings = get_settings()

api_key_header = APIKeyHeader(name=settings.API_KEY_HEADER, auto_error=False)


def is_valid_api_key(provided: Optional[str], expected: str) -> bool:
    """Constant-time comparison; a missing or empty key is never valid."""
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_api_key(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> None:
    if not is_valid_api_key(api_key, get_settings().API_KEY):
        api_key_rejections.inc()
        logger.warning(
            "api_key_rejected",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )
        raise Unauthorized("API key is missing or invalid")
