"""
HTTP client for the Notion "query a database" endpoint.

Wraps an httpx.AsyncClient and translates transport and status failures
into the domain exceptions in app.exceptions. One call == one page; the
pagination loop lives in app.services.query_service.
"""

import logging
from typing import Any, Optional

import httpx

from app.config import Settings
from app.exceptions import ConfigurationError, TransportError, UpstreamError

logger = logging.getLogger(__name__)


class NotionClient:
    """Issues page queries against a Notion database."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token: Optional[str],
        notion_version: str,
        base_url: str,
    ) -> None:
        self._client = http_client
        self._token = token
        self._notion_version = notion_version
        self._base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient, settings: Settings) -> "NotionClient":
        return cls(
            http_client=http_client,
            token=settings.notion_token,
            notion_version=settings.notion_version,
            base_url=settings.notion_api_base_url,
        )

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Notion-Version": self._notion_version,
        }

    async def query_database(self, database_id: str, body: dict) -> dict:
        """
        POST one query page to /databases/{database_id}/query.

        Args:
            database_id: Target Notion database.
            body: JSON body (page_size, filter, sorts and, when known,
                  start_cursor). Sent as-is.

        Returns:
            The decoded JSON response ({results, has_more, next_cursor, ...}).

        Raises:
            ConfigurationError: NOTION_SECRET is not configured (no request is sent).
            UpstreamError: Notion answered with a non-2xx status.
            TransportError: The request never got an HTTP answer, or the
                answer was not JSON.
        """
        if not self._token:
            raise ConfigurationError("Server misconfigured: NOTION_SECRET is missing")

        url = f"{self._base_url}/databases/{database_id}/query"

        try:
            response = await self._client.post(url, headers=self._headers(), json=body)
        except httpx.RequestError as exc:
            logger.error(f"Notion request to {url} failed: {exc}", exc_info=True)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            logger.warning(
                "Notion query for database %s returned HTTP %s",
                database_id,
                response.status_code,
            )
            raise UpstreamError(response.status_code, response.text)

        try:
            data: Any = response.json()
        except ValueError as exc:
            logger.error(f"Notion returned a non-JSON body for database {database_id}")
            raise TransportError("Notion returned an invalid JSON response") from exc

        if not isinstance(data, dict):
            logger.warning("Notion returned a non-object JSON body; treating it as empty")
            return {}

        return data
