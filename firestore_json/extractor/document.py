"""Assembling parsed fields into an identified, serialized document."""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any

from bs4 import Tag

from . import emulator, production
from .selector import EMULATOR, SourceScope, find_scopes, select_scope
from .view import RenderedView

logger = logging.getLogger(__name__)


@dataclass
class FirestoreDocument:
    doc_id: str
    fields: dict[str, Any]
    front_end: str
    json_text: str

    def wrapped(self) -> dict[str, Any]:
        return {self.doc_id: self.fields}


def to_json_compatible(value: Any, path: str = "") -> Any:
    """Replace non-finite numbers with ``None``, as the browser serializer does."""
    if isinstance(value, float) and not math.isfinite(value):
        logger.warning("Non-finite number at %s serialized as null", path or "/")
        return None
    if isinstance(value, dict):
        return {key: to_json_compatible(item, f"{path}/{key}") for key, item in value.items()}
    if isinstance(value, list):
        return [to_json_compatible(item, f"{path}/{index}") for index, item in enumerate(value)]
    return value


def dump_json(value: Any) -> str:
    return json.dumps(to_json_compatible(value), indent=2, ensure_ascii=False, allow_nan=False)


def parse_scope(
    view: RenderedView,
    selected: SourceScope,
    *,
    strict_numbers: bool | None = None,
) -> FirestoreDocument:
    if selected.front_end == EMULATOR:
        fields = emulator.parse_container(selected.root, strict=strict_numbers)
        # The emulator shows one document at a time, so the URL names it.
        doc_id = emulator.location_document_id(view.location)
    else:
        fields = production.parse_panel_fields(selected.root)
        doc_id = production.panel_document_id(selected.root)
    json_text = dump_json({doc_id: fields})
    logger.debug("Assembled %s document %s with %d fields", selected.front_end, doc_id, len(fields))
    return FirestoreDocument(
        doc_id=doc_id,
        fields=fields,
        front_end=selected.front_end,
        json_text=json_text,
    )


def assemble(
    view: RenderedView,
    scope: Tag | None = None,
    *,
    strict_numbers: bool | None = None,
) -> FirestoreDocument:
    """Parse the selected document on the page.

    Raises ``NoSourceFound`` when the page has no field list or panel.
    """
    return parse_scope(view, select_scope(view, scope), strict_numbers=strict_numbers)


def assemble_all(
    view: RenderedView,
    *,
    front_end: str | None = None,
    strict_numbers: bool | None = None,
) -> list[FirestoreDocument]:
    return [
        parse_scope(view, selected, strict_numbers=strict_numbers)
        for selected in find_scopes(view, front_end)
    ]
