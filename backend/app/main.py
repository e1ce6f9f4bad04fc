"""
Notion Query Proxy API
FastAPI application that queries Notion databases and returns flattened pages.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.routers import notion

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Notion Query Proxy",
    description="Authenticated proxy for Notion database queries with flattened results",
    version="0.1.0",
)

# CORS configuration — origins are resolved at startup from CORS_ORIGINS.
# Credentials are not used (auth is a header key), so "*" is allowed.
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["content-type", "x-api-key"],
)

# Include routers
app.include_router(notion.router, prefix="/api/notion", tags=["notion"])


@app.on_event("startup")
async def log_startup_config() -> None:
    """Log which optional settings are missing so misconfiguration shows up early."""
    settings = get_settings()
    if not settings.notion_token:
        logger.warning("NOTION_SECRET is not set: queries will fail with 500")
    if not settings.internal_api_key:
        logger.warning("INTERNAL_API_KEY is not set: every request will be rejected")
    if settings.default_database_id:
        logger.info("Default Notion database: %s", settings.default_database_id)


@app.get("/")
async def root():
    return {"message": "Notion Query Proxy", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
