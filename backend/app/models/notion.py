"""
Pydantic models for the Notion query proxy.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class PropertyType(str, Enum):
    """Property type tags the flattener knows how to normalise."""
    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    STATUS = "status"
    MULTI_SELECT = "multi_select"
    CHECKBOX = "checkbox"
    DATE = "date"
    PEOPLE = "people"
    FILES = "files"
    RELATION = "relation"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    FORMULA = "formula"


# Page-level fields copied verbatim into every flat record.
# They always take precedence over same-named properties.
BASE_FIELDS = ("id", "created_time", "last_edited_time", "url")

# One flattened page: base fields plus property name -> normalised value
FlatRecord = Dict[str, Any]


class QueryRequest(BaseModel):
    """
    Body of POST /api/notion/query.

    filter and sorts are Notion's native structures and are forwarded
    unchanged. page_size is forwarded as sent (no coercion or range check);
    Notion validates it.
    """
    database_id: Optional[str] = None
    filter: Optional[Any] = None
    sorts: Optional[Any] = None
    page_size: Any = 25
    start_cursor: Optional[str] = None
    fetch_all: bool = Field(default=False, alias="all")
    select_properties: Optional[List[str]] = None

    class Config:
        frozen = True
        populate_by_name = True


class QueryResult(BaseModel):
    """Accumulated result returned to the caller."""
    items: List[FlatRecord] = Field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None
    database_id: str
