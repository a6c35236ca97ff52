"""Loading saved console pages into a parsed view."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_HTML_PARSER = "lxml"

SAVED_FROM_RE = re.compile(r"<!--\s*saved from url=\(\d+\)(\S+?)\s*-->", re.IGNORECASE)


@dataclass
class RenderedView:
    """A parsed console page and the location it was rendered at."""

    document: BeautifulSoup
    location: str = ""


def resolve_html_parser(value: str | None) -> str:
    if value:
        return value
    env_value = os.environ.get("FIRESTORE_JSON_HTML_PARSER")
    if env_value and env_value.strip():
        return env_value.strip()
    return DEFAULT_HTML_PARSER


def location_from_html(html: str) -> str | None:
    match = SAVED_FROM_RE.search(html)
    if not match:
        return None
    return match.group(1)


def parse_view(
    html: str,
    *,
    location: str | None = None,
    html_parser: str | None = None,
) -> RenderedView:
    resolved_location = location or location_from_html(html) or ""
    document = BeautifulSoup(html, resolve_html_parser(html_parser))
    return RenderedView(document=document, location=resolved_location)


def load_view(
    path: Path,
    *,
    location: str | None = None,
    html_parser: str | None = None,
) -> RenderedView:
    text = path.read_text(encoding="utf-8", errors="ignore")
    view = parse_view(text, location=location, html_parser=html_parser)
    logger.debug("Loaded %s (location: %s)", path, view.location or "unknown")
    return view
