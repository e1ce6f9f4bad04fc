"""
Caller authentication for the proxy.

Callers share a static key with the server: the X-API-Key header must match
INTERNAL_API_KEY. This is a FastAPI dependency; routes opt in with
``Depends(verify_api_key)``.
"""

import logging
import secrets
from typing import Optional

from fastapi import Header, HTTPException

from app.config import get_settings

logger = logging.getLogger(__name__)


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """
    Verify that the request carries the configured shared key.

    Raises:
        HTTPException: 401 if the header is missing, does not match, or the
            server has no INTERNAL_API_KEY configured.
    """
    expected = get_settings().internal_api_key
    if not expected:
        logger.warning(
            "No INTERNAL_API_KEY configured: all proxy requests will be rejected"
        )
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
