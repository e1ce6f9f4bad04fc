"""
Query orchestration service.

Resolves the target database, walks Notion's cursor-based pagination and
flattens every returned page.

Pages are produced lazily by iter_pages(): each request needs the cursor
from the previous response, so fetches are strictly sequential. The
accumulator lives only inside execute_query(); if any page fails the
exception propagates and the partial results are dropped, so callers get
all pages or an error, never a prefix.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from app.exceptions import MissingDatabaseIdError
from app.models.notion import FlatRecord, QueryRequest, QueryResult
from app.services.flattener import flatten_page

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    """Anything that can fetch one query page (NotionClient, test fakes)."""

    async def query_database(self, database_id: str, body: dict) -> dict:
        ...


def resolve_database_id(request: QueryRequest, default_database_id: Optional[str]) -> str:
    """
    Pick the database to query: the request's own id, else the server default.

    Raises:
        MissingDatabaseIdError: neither is set.
    """
    database_id = request.database_id or default_database_id
    if not database_id:
        raise MissingDatabaseIdError()
    return database_id


def build_query_body(request: QueryRequest, cursor: Optional[str]) -> Dict[str, Any]:
    """
    Build the JSON body for one page request.

    start_cursor is only included when a cursor is known; Notion treats the
    key's presence as meaningful, so it is never sent as null or "".
    filter and sorts are likewise left out when the caller gave none;
    Notion rejects them as null.
    """
    body: Dict[str, Any] = {"page_size": request.page_size}
    if request.filter is not None:
        body["filter"] = request.filter
    if request.sorts is not None:
        body["sorts"] = request.sorts
    if cursor:
        body["start_cursor"] = cursor
    return body


async def iter_pages(
    client: PageSource,
    database_id: str,
    request: QueryRequest,
) -> AsyncIterator[dict]:
    """
    Yield raw Notion response pages, one fetch at a time.

    Stops after the first page unless request.fetch_all is set, in which
    case it follows next_cursor until Notion reports has_more = False.
    """
    cursor: Optional[str] = request.start_cursor or None
    page_number = 0

    while True:
        page_number += 1
        logger.debug(
            "Fetching page %d of database %s (cursor=%s)", page_number, database_id, cursor
        )
        page = await client.query_database(database_id, build_query_body(request, cursor))
        yield page

        has_more = bool(page.get("has_more"))
        next_cursor = page.get("next_cursor") or None

        if not request.fetch_all or not has_more:
            return

        if next_cursor is None:
            logger.warning(
                "Notion reported has_more without a next_cursor for database %s; "
                "stopping after page %d",
                database_id,
                page_number,
            )
            return

        cursor = next_cursor


async def execute_query(
    request: QueryRequest,
    client: PageSource,
    default_database_id: Optional[str] = None,
) -> QueryResult:
    """
    Run a database query and return the flattened, accumulated result.

    Args:
        request: Validated caller request.
        client: Page source, normally a NotionClient.
        default_database_id: Server-configured fallback database.

    Returns:
        QueryResult with items from every fetched page in Notion's order,
        plus the has_more / next_cursor reported by the last page.

    Raises:
        MissingDatabaseIdError: no database id could be resolved (no
            network call is made).
        ConfigurationError, UpstreamError, TransportError: from the client,
            for any page. No partial result is returned.
    """
    database_id = resolve_database_id(request, default_database_id)

    logger.info(
        "Querying Notion database %s (page_size=%s, all=%s)",
        database_id,
        request.page_size,
        request.fetch_all,
    )

    items: List[FlatRecord] = []
    has_more = False
    next_cursor: Optional[str] = None
    page_count = 0

    async for page in iter_pages(client, database_id, request):
        page_count += 1
        results = page.get("results")
        if not isinstance(results, list):
            results = []

        items.extend(flatten_page(raw, request.select_properties) for raw in results)
        has_more = bool(page.get("has_more"))
        next_cursor = page.get("next_cursor") or None

    logger.info(
        "Query of database %s returned %d items across %d page(s) (has_more=%s)",
        database_id,
        len(items),
        page_count,
        has_more,
    )

    return QueryResult(
        items=items,
        has_more=has_more,
        next_cursor=next_cursor,
        database_id=database_id,
    )
