"""Helpers for reading and building Notion object payloads."""

import re
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

_HEX_ID = re.compile(r"^[a-f0-9]{32}$", re.IGNORECASE)
_URL_PATTERNS = [
    re.compile(r"notion\.so/[^/]+/(?:[^/?#]*-)?([a-f0-9]{32})", re.IGNORECASE),
    re.compile(r"notion\.so/(?:[^/?#]*-)?([a-f0-9]{32})", re.IGNORECASE),
]
_ANY_HEX_ID = re.compile(
    r"[a-f0-9]{8}-?[a-f0-9]{4}-?[a-f0-9]{4}-?[a-f0-9]{4}-?[a-f0-9]{12}", re.IGNORECASE
)
_YEAR = re.compile(r"\b(\d{4})\b")


def normalize_id(object_id: Optional[str]) -> str:
    """Normalize a Notion ID for comparison (no dashes, lowercase)."""
    return (object_id or "").replace("-", "").lower()


def extract_page_id(reference: str) -> str:
    """Extract a page ID from a Notion URL or raw ID.

    Accepts a raw 32-character hex ID, a dashed UUID, a workspace URL
    (notion.so/workspace/Title-<id>) or a short URL (notion.so/<id>).

    Args:
        reference: URL or ID pasted by the operator

    Returns:
        32-character lowercase hex page ID

    Raises:
        ValueError: If no page ID can be found
    """
    if not reference or not isinstance(reference, str):
        raise ValueError("Invalid Notion URL or page ID")

    trimmed = reference.strip()
    compact = trimmed.replace("-", "")
    if _HEX_ID.match(compact):
        return compact.lower()

    for pattern in _URL_PATTERNS:
        match = pattern.search(trimmed)
        if match:
            return match.group(1).lower()

    # Dashed UUIDs inside URLs, or IDs in unusual URL shapes
    match = _ANY_HEX_ID.search(trimmed)
    if match:
        return match.group(0).replace("-", "").lower()

    raise ValueError(f"Invalid Notion URL or page ID format: {reference!r}")


def year_from_title(title: str) -> int:
    """Extract the four-digit year from a page title such as "2026".

    Raises:
        ValueError: If the title contains no year
    """
    match = _YEAR.search(title)
    if not match:
        raise ValueError(f'Could not extract year from page title: "{title}"')
    return int(match.group(1))


def plain_text(rich_text: Optional[Iterable[Dict[str, Any]]]) -> str:
    """Concatenate the plain text of a rich-text array."""
    parts = []
    for item in rich_text or []:
        text = item.get("plain_text")
        if text is None:
            text = (item.get("text") or {}).get("content", "")
        parts.append(text)
    return "".join(parts)


def object_title(obj: Dict[str, Any]) -> str:
    """Title of a database or page object ("" if it has none)."""
    if obj.get("object") == "database":
        return plain_text(obj.get("title"))

    for prop in (obj.get("properties") or {}).values():
        if prop.get("type") == "title":
            return plain_text(prop.get("title"))
    return ""


def parent_page_id(obj: Dict[str, Any]) -> Optional[str]:
    """ID of the page an object lives under, if its parent is a page."""
    parent = obj.get("parent") or {}
    if parent.get("type") != "page_id":
        return None
    return parent.get("page_id")


def row_title(row: Dict[str, Any], column: str) -> str:
    """Plain-text value of a row's title column."""
    prop = (row.get("properties") or {}).get(column) or {}
    return plain_text(prop.get("title"))


def row_relation_ids(row: Dict[str, Any], column: str) -> List[str]:
    """IDs referenced by a row's relation column."""
    prop = (row.get("properties") or {}).get(column) or {}
    if prop.get("type", "relation") != "relation":
        return []
    return [rel["id"] for rel in prop.get("relation") or [] if "id" in rel]


def row_date_range(row: Dict[str, Any], column: str) -> Optional[Tuple[date, date]]:
    """Start and end date of a row's date column (end defaults to start)."""
    prop = (row.get("properties") or {}).get(column) or {}
    value = prop.get("date")
    if not value or not value.get("start"):
        return None

    start = date.fromisoformat(value["start"][:10])
    end_raw = value.get("end")
    end = date.fromisoformat(end_raw[:10]) if end_raw else start
    return start, end


def title_value(text: str) -> Dict[str, Any]:
    """Title property value."""
    return {"title": [{"type": "text", "text": {"content": text}}]}


def relation_value(ids: Iterable[str]) -> Dict[str, Any]:
    """Relation property value."""
    return {"relation": [{"id": object_id} for object_id in ids]}


def date_value(start: date, end: Optional[date] = None) -> Dict[str, Any]:
    """Date (range) property value."""
    value: Dict[str, Any] = {"start": start.isoformat()}
    if end is not None:
        value["end"] = end.isoformat()
    return {"date": value}
