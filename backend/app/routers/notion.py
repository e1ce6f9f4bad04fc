"""
Notion query API endpoint.

Endpoints:
  POST /query   — query a Notion database and return flattened pages
                  (auth: X-API-Key)
"""

import logging
from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends, HTTPException

from app.auth import verify_api_key
from app.config import Settings, get_settings
from app.exceptions import ConfigurationError, TransportError, UpstreamError
from app.models.notion import QueryRequest, QueryResult
from app.services.notion_client import NotionClient
from app.services.query_service import execute_query

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    """Open one httpx client per request; closed when the response is sent."""
    async with httpx.AsyncClient(timeout=settings.timeout_seconds) as client:
        yield client


@router.post(
    "/query",
    response_model=QueryResult,
    responses={
        200: {
            "description": "Flattened pages from the Notion database",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "id": "p1",
                                "created_time": "2024-01-01T00:00:00.000Z",
                                "last_edited_time": "2024-01-02T00:00:00.000Z",
                                "url": "https://www.notion.so/p1",
                                "Name": "Hi",
                            }
                        ],
                        "has_more": False,
                        "next_cursor": None,
                        "database_id": "D1",
                    }
                }
            },
        },
        400: {"description": "No database_id in the request and no NOTION_DATABASE_ID"},
        401: {"description": "Missing or invalid X-API-Key"},
        500: {"description": "Server misconfigured or Notion unreachable"},
        502: {"description": "Notion answered with a status outside 4xx/5xx"},
    },
)
async def query_notion_database(
    request: QueryRequest,
    _: None = Depends(verify_api_key),
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Query a Notion database and return its pages as flat records.

    filter and sorts are Notion's native structures, forwarded unchanged.
    With all=true every page is fetched; otherwise one page is returned
    together with has_more / next_cursor so the caller can continue.

    Notion's own error status and body are passed back when a page query
    fails; partial results are never returned.
    """
    notion = NotionClient.from_settings(http_client, settings)

    try:
        return await execute_query(
            request,
            notion,
            default_database_id=settings.default_database_id,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except UpstreamError as e:
        # Redirects are not followed; anything outside 4xx/5xx is a bad gateway
        status_code = e.status_code if 400 <= e.status_code < 600 else 502
        raise HTTPException(
            status_code=status_code,
            detail={"error": "Notion API error", "details": e.body},
        )
    except TransportError as e:
        raise HTTPException(status_code=500, detail=e.message or "Internal server error")
