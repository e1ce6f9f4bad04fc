"""
Flattening service for Notion pages.

Converts a raw Notion page (id, timestamps, url and a mapping of typed
properties) into a flat dict of property name -> plain value that API
consumers can use without knowing Notion's property schema.

Every property carries a ``type`` tag naming the key that holds its payload:

    {"type": "select", "select": {"name": "Done", "color": "green"}}

The tag is looked up in _FLATTENERS; each entry pulls the payload out and
normalises it. Unknown or missing tags become None.

flatten_page() is total: malformed payloads degrade to None (scalars) or
[] (lists) and never raise, so one odd property cannot fail a whole query.

Adding a new property type:
  1. Add the tag to PropertyType in app.models.notion.
  2. Write a _flatten_<type>(payload) function.
  3. Register it in _FLATTENERS.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.models.notion import BASE_FIELDS, FlatRecord, PropertyType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------

def _as_list(value: Any) -> list:
    """Return value if it is a list, otherwise []."""
    return value if isinstance(value, list) else []


def _dict_items(value: Any) -> Iterable[dict]:
    """Yield only the dict entries of a list payload."""
    return (item for item in _as_list(value) if isinstance(item, dict))


def _date_range(value: Any) -> Optional[Dict[str, Any]]:
    """
    Normalise a Notion date object to {start, end}.

    Examples:
        {"start": "2024-01-01", "end": None, "time_zone": None}
            -> {"start": "2024-01-01", "end": None}
        None -> None
    """
    if not isinstance(value, dict):
        return None
    return {"start": value.get("start"), "end": value.get("end")}


def _scalar_or_none(value: Any) -> Any:
    """Pass a JSON scalar through; containers are malformed here and become None."""
    if isinstance(value, (dict, list)):
        return None
    return value


# ---------------------------------------------------------------------------
# Per-type flatteners
# ---------------------------------------------------------------------------

def _flatten_text(fragments: Any) -> str:
    """Concatenate the plain_text of each rich-text fragment, no separator."""
    parts: List[str] = []
    for fragment in _dict_items(fragments):
        text = fragment.get("plain_text")
        if isinstance(text, str):
            parts.append(text)
    return "".join(parts)


def _flatten_number(value: Any) -> Optional[float]:
    # bool is an int subclass but never a valid number payload
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _flatten_option(option: Any) -> Optional[str]:
    """Name of a select/status option, or None."""
    if not isinstance(option, dict):
        return None
    return option.get("name")


def _flatten_multi_select(options: Any) -> List[Any]:
    return [option.get("name") for option in _dict_items(options)]


def _flatten_checkbox(value: Any) -> bool:
    return bool(value)


def _flatten_date(value: Any) -> Optional[Dict[str, Any]]:
    return _date_range(value)


def _flatten_people(people: Any) -> List[Any]:
    """Each person's display name, falling back to their user id."""
    return [person.get("name") or person.get("id") for person in _dict_items(people)]


def _flatten_files(files: Any) -> List[str]:
    """
    Resolvable URL of each file entry.

    Notion-hosted files keep their URL under "file", linked files under
    "external". Entries with neither are dropped.
    """
    urls: List[str] = []
    for entry in _dict_items(files):
        hosted = entry.get("file")
        external = entry.get("external")
        url = (hosted.get("url") if isinstance(hosted, dict) else None) or (
            external.get("url") if isinstance(external, dict) else None
        )
        if url:
            urls.append(url)
    return urls


def _flatten_relation(relations: Any) -> List[Any]:
    return [related.get("id") for related in _dict_items(relations)]


def _flatten_string(value: Any) -> Optional[str]:
    """url / email / phone_number: empty strings are reported as None."""
    if not value or not isinstance(value, str):
        return None
    return value


def _flatten_formula(formula: Any) -> Any:
    """
    Extract a formula's computed value using its own result type tag.

    Formula results are tagged string / number / boolean / date, e.g.
    {"type": "number", "number": 42}. Date results are normalised the same
    way as date properties.
    """
    if not isinstance(formula, dict):
        return None
    result_type = formula.get("type")
    if not result_type or not isinstance(result_type, str):
        return None
    value = formula.get(result_type)
    if result_type == PropertyType.DATE.value:
        return _date_range(value)
    return _scalar_or_none(value)


_FLATTENERS: Dict[str, Callable[[Any], Any]] = {
    PropertyType.TITLE.value: _flatten_text,
    PropertyType.RICH_TEXT.value: _flatten_text,
    PropertyType.NUMBER.value: _flatten_number,
    PropertyType.SELECT.value: _flatten_option,
    PropertyType.STATUS.value: _flatten_option,
    PropertyType.MULTI_SELECT.value: _flatten_multi_select,
    PropertyType.CHECKBOX.value: _flatten_checkbox,
    PropertyType.DATE.value: _flatten_date,
    PropertyType.PEOPLE.value: _flatten_people,
    PropertyType.FILES.value: _flatten_files,
    PropertyType.RELATION.value: _flatten_relation,
    PropertyType.URL.value: _flatten_string,
    PropertyType.EMAIL.value: _flatten_string,
    PropertyType.PHONE_NUMBER.value: _flatten_string,
    PropertyType.FORMULA.value: _flatten_formula,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def flatten_property(prop: Any) -> Any:
    """
    Normalise a single typed property value.

    Returns None for a missing property, a property without a type tag,
    or a tag that is not in _FLATTENERS.
    """
    if not isinstance(prop, dict):
        return None

    prop_type = prop.get("type")
    if not prop_type or not isinstance(prop_type, str):
        return None

    flattener = _FLATTENERS.get(prop_type)
    if flattener is None:
        return None

    return flattener(prop.get(prop_type))


def flatten_page(page: Any, select_properties: Optional[List[str]] = None) -> FlatRecord:
    """
    Convert a raw Notion page into a flat record.

    This is the main entry point. The result always starts with the base
    fields (id, created_time, last_edited_time, url) followed by the
    flattened properties in the order Notion returned them.

    Args:
        page: One item from a Notion query's ``results`` list.
        select_properties: When a non-empty list, only properties with these
            names are flattened. Base fields are always included.

    Returns:
        A new dict; the input page is not modified.
    """
    if not isinstance(page, dict):
        page = {}

    record: FlatRecord = {field: page.get(field) for field in BASE_FIELDS}

    properties = page.get("properties")
    if not isinstance(properties, dict):
        return record

    selected = None
    if isinstance(select_properties, list) and select_properties:
        selected = select_properties

    for name, prop in properties.items():
        if selected is not None and name not in selected:
            continue
        # Base fields always win over same-named properties
        if name in BASE_FIELDS:
            logger.debug(
                "Property %r on page %r shadows a base field; keeping the base value",
                name,
                record.get("id"),
            )
            continue
        record[name] = flatten_property(prop)

    return record
