"""Field parsing for the hosted Firebase console (production) layout."""
from __future__ import annotations

import logging
from typing import Any

from bs4 import Tag

from .values import coerce_untyped, reconstruct_array

logger = logging.getLogger(__name__)

KEY_SELECTOR = ".database-key"
TYPE_SELECTOR = ".database-buttons .database-type"
LEAF_SELECTOR = ".database-leaf-value"
DIRECT_CHILDREN_SELECTOR = ":scope > .database-children"
ANY_CHILDREN_SELECTOR = ".database-children"
TREE_SELECTOR = ":scope > f7e-data-tree"
NODE_SELECTOR = ":scope > .database-node"
FIELD_SELECTOR = "fs-animate-change-classes"
HEADER_LABEL_SELECTOR = "f7e-panel-header .label"

CHILDREN_CLASS = "database-children"
UNKNOWN_TYPE = "(unknown)"
UNKNOWN_DOCUMENT_ID = "UNKNOWN_DOCUMENT_ID"


def read_text(tag: Tag | None) -> str | None:
    if tag is None:
        return None
    return tag.get_text().strip()


def parse_node(node: Tag, *, children_selector: str = DIRECT_CHILDREN_SELECTOR) -> dict[str, Any]:
    """Parse one ``.database-node`` into ``{key: value}``.

    A node without a key contributes nothing and yields ``{}``.
    """
    field_key = read_text(node.select_one(KEY_SELECTOR))
    if field_key is None:
        logger.debug("Skipping production node without a key")
        return {}
    type_text = read_text(node.select_one(TYPE_SELECTOR)) or UNKNOWN_TYPE
    if type_text == "(map)":
        value: Any = parse_map(node.select_one(children_selector))
    elif type_text == "(array)":
        value = parse_array(node.select_one(children_selector))
    else:
        leaf = node.select_one(LEAF_SELECTOR)
        value = coerce_untyped(leaf.get_text()) if leaf is not None else None
    return {field_key: value}


def iter_child_nodes(container: Tag) -> list[Tag]:
    nodes: list[Tag] = []
    for data_tree in container.select(TREE_SELECTOR):
        nodes.extend(data_tree.select(NODE_SELECTOR))
    return nodes


def parse_map(container: Tag | None) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if container is None:
        return result
    for node in iter_child_nodes(container):
        result.update(parse_node(node))
    return result


def parse_array(container: Tag | None) -> list[Any]:
    # Child keys are the array indices.
    return reconstruct_array(parse_map(container))


def is_nested_field(element: Tag, panel: Tag) -> bool:
    for parent in element.parents:
        if parent is panel:
            return False
        if CHILDREN_CLASS in (parent.get("class") or []):
            return True
    return False


def iter_panel_fields(panel: Tag) -> list[Tag]:
    return [
        element
        for element in panel.select(FIELD_SELECTOR)
        if not is_nested_field(element, panel)
    ]


def parse_panel_fields(panel: Tag) -> dict[str, Any]:
    """Collect the top-level fields of one document panel."""
    fields: dict[str, Any] = {}
    for element in iter_panel_fields(panel):
        fields.update(parse_node(element, children_selector=ANY_CHILDREN_SELECTOR))
    logger.debug("Parsed %d production fields", len(fields))
    return fields


def panel_document_id(panel: Tag) -> str:
    label = read_text(panel.select_one(HEADER_LABEL_SELECTOR))
    return label or UNKNOWN_DOCUMENT_ID
