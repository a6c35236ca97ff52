"""Field parsing for the local emulator UI layout.

Emulator field lists render every field as an ``li.FieldPreview`` item with
key, type and summary elements. Map and array fields keep their content in
the element right after the item, tagged ``FieldPreview-children``.
"""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import unquote, urlsplit

from bs4 import Tag

from .values import coerce_typed, reconstruct_array

logger = logging.getLogger(__name__)

ITEM_SELECTOR = ":scope > li.FieldPreview"
KEY_SELECTOR = ".FieldPreview-key"
TYPE_SELECTOR = ".FieldPreview-type"
SUMMARY_SELECTOR = ".FieldPreview-summary"
CHILDREN_CLASS = "FieldPreview-children"

CONTAINER_TYPES = {"(map)", "(array)"}
UNKNOWN_DOCUMENT_ID = "unknown_doc"


def children_of(item: Tag) -> Tag | None:
    sibling = item.find_next_sibling()
    if sibling is None or CHILDREN_CLASS not in (sibling.get("class") or []):
        return None
    return sibling


def summary_text(item: Tag) -> str:
    summary = item.select_one(SUMMARY_SELECTOR)
    if summary is None:
        return ""
    # The title holds the untruncated value.
    title = summary.get("title")
    if title is None:
        return summary.get_text()
    return str(title)


def parse_item_value(item: Tag, type_label: str, *, strict: bool | None = None) -> Any:
    if type_label in CONTAINER_TYPES:
        children = children_of(item)
        if children is None:
            return [] if type_label == "(array)" else {}
        nested = parse_container(children, strict=strict)
        if type_label == "(array)":
            return reconstruct_array(nested)
        return nested
    return coerce_typed(summary_text(item), type_label, strict=strict)


def parse_container(container: Tag | None, *, strict: bool | None = None) -> dict[str, Any]:
    """Parse a ``Firestore-Field-List`` or ``FieldPreview-children`` element."""
    data: dict[str, Any] = {}
    if container is None:
        return data
    for item in container.select(ITEM_SELECTOR):
        key_element = item.select_one(KEY_SELECTOR)
        if key_element is None:
            logger.debug("Skipping emulator item without a key")
            continue
        key = key_element.get_text().strip()
        type_element = item.select_one(TYPE_SELECTOR)
        type_label = type_element.get_text().strip() if type_element is not None else ""
        data[key] = parse_item_value(item, type_label, strict=strict)
    return data


def location_document_id(location: str | None) -> str:
    """Return the last non-empty path segment of the page location."""
    if not location:
        return UNKNOWN_DOCUMENT_ID
    segments = [segment for segment in urlsplit(location).path.split("/") if segment]
    return unquote(segments[-1]) if segments else UNKNOWN_DOCUMENT_ID
