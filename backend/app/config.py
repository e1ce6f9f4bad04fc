"""
Runtime configuration.

Values are read from the environment (optionally seeded from a .env file)
on every call to get_settings(), so tests can monkeypatch os.environ freely.

Environment variables
---------------------
NOTION_SECRET            Integration token sent as the Bearer credential.
NOTION_VERSION           Notion-Version header value (default: 2022-06-28).
NOTION_DATABASE_ID       Default database when the request omits database_id.
NOTION_API_BASE_URL      Notion API root (default: https://api.notion.com/v1).
NOTION_TIMEOUT_SECONDS   Per-request transport timeout (default: 30).
INTERNAL_API_KEY         Shared key callers must send in X-API-Key.
CORS_ORIGINS             Comma-separated allowed origins (default: "*").
"""

import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_NOTION_VERSION = "2022-06-28"
DEFAULT_NOTION_API_BASE_URL = "https://api.notion.com/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0


class Settings(BaseModel):
    """Resolved configuration for one request."""

    notion_token: Optional[str] = None
    notion_version: str = DEFAULT_NOTION_VERSION
    default_database_id: Optional[str] = None
    notion_api_base_url: str = DEFAULT_NOTION_API_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    internal_api_key: Optional[str] = None
    cors_origins: List[str] = ["*"]


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        logger.warning(
            "Invalid NOTION_TIMEOUT_SECONDS %r, using default %s",
            raw,
            DEFAULT_TIMEOUT_SECONDS,
        )
        return DEFAULT_TIMEOUT_SECONDS
    if value <= 0:
        logger.warning(
            "NOTION_TIMEOUT_SECONDS must be positive (got %r), using default %s",
            raw,
            DEFAULT_TIMEOUT_SECONDS,
        )
        return DEFAULT_TIMEOUT_SECONDS
    return value


def _parse_origins(raw: Optional[str]) -> List[str]:
    """Split CORS_ORIGINS on commas, dropping blanks and duplicates."""
    if not raw or not raw.strip():
        return ["*"]

    seen: set = set()
    origins: List[str] = []
    for origin in (o.strip() for o in raw.split(",")):
        if origin and origin not in seen:
            seen.add(origin)
            origins.append(origin)
    return origins or ["*"]


def get_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        notion_token=os.getenv("NOTION_SECRET") or None,
        notion_version=os.getenv("NOTION_VERSION") or DEFAULT_NOTION_VERSION,
        default_database_id=os.getenv("NOTION_DATABASE_ID") or None,
        notion_api_base_url=(
            os.getenv("NOTION_API_BASE_URL") or DEFAULT_NOTION_API_BASE_URL
        ).rstrip("/"),
        timeout_seconds=_parse_timeout(os.getenv("NOTION_TIMEOUT_SECONDS")),
        internal_api_key=os.getenv("INTERNAL_API_KEY") or None,
        cors_origins=_parse_origins(os.getenv("CORS_ORIGINS")),
    )
