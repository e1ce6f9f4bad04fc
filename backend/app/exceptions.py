"""
Domain exceptions raised by the query core.

Services raise these; only the router translates them into HTTP responses.
"""


class NotionProxyError(Exception):
    """Base class for all errors raised by the query core."""


class ConfigurationError(NotionProxyError):
    """A required identifier or credential is missing."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MissingDatabaseIdError(ConfigurationError):
    """Neither the request nor the server supplies a database id."""

    def __init__(self, message: str = "Provide database_id or set NOTION_DATABASE_ID"):
        super().__init__(message, status_code=400)


class UpstreamError(NotionProxyError):
    """Notion answered a page query with a non-success status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Notion API error (HTTP {status_code})")
        self.status_code = status_code
        self.body = body


class TransportError(NotionProxyError):
    """The request to Notion failed below HTTP (DNS, reset, timeout)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
