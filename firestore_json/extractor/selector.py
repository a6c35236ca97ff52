"""Choosing which console layout, and which part of the page, to parse."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from bs4 import Tag

from .view import RenderedView

logger = logging.getLogger(__name__)

EMULATOR = "emulator"
PRODUCTION = "production"

EMULATOR_ROOT_CLASS = "Firestore-Field-List"
PANEL_CLASS = "panel-container"
EMULATOR_ROOT_SELECTOR = ".Firestore-Field-List"
PANELS_CONTAINER_SELECTOR = ".panels-container"
PANEL_SELECTOR = ".panel-container"

EMULATOR_HOSTS = {"localhost", "127.0.0.1"}
PRODUCTION_HOSTS = {"console.firebase.google.com"}


class NoSourceFound(LookupError):
    """Raised when neither console layout is present."""

    def __init__(self, message: str = "No Firestore data found (Production or Emulator).") -> None:
        super().__init__(message)


@dataclass
class SourceScope:
    front_end: str
    root: Tag


def has_class(tag: Tag, class_name: str) -> bool:
    return class_name in (tag.get("class") or [])


def classify_scope(scope: Tag) -> SourceScope:
    if has_class(scope, EMULATOR_ROOT_CLASS):
        return SourceScope(EMULATOR, scope)
    if has_class(scope, PANEL_CLASS):
        return SourceScope(PRODUCTION, scope)
    field_list = scope.select_one(EMULATOR_ROOT_SELECTOR)
    if field_list is not None:
        return SourceScope(EMULATOR, field_list)
    return SourceScope(PRODUCTION, scope)


def open_panels(view: RenderedView) -> list[Tag]:
    panels_container = view.document.select_one(PANELS_CONTAINER_SELECTOR)
    if panels_container is None:
        return []
    return panels_container.select(PANEL_SELECTOR)


def select_scope(view: RenderedView, scope: Tag | None = None) -> SourceScope:
    """Pick the layout and root to parse.

    An explicit scope is always used. Without one, an emulator field list
    anywhere on the page wins; otherwise the last open production panel,
    which is the deepest drill-down.
    """
    if scope is not None:
        selected = classify_scope(scope)
        logger.debug("Using supplied scope as %s", selected.front_end)
        return selected
    field_list = view.document.select_one(EMULATOR_ROOT_SELECTOR)
    if field_list is not None:
        return SourceScope(EMULATOR, field_list)
    panels = open_panels(view)
    if panels:
        logger.debug("Using last of %d production panels", len(panels))
        return SourceScope(PRODUCTION, panels[-1])
    raise NoSourceFound()


def detect_front_end(location: str | None) -> str | None:
    if not location:
        return None
    host = urlsplit(location).hostname
    if host in EMULATOR_HOSTS:
        return EMULATOR
    if host in PRODUCTION_HOSTS:
        return PRODUCTION
    return None


def find_scopes(view: RenderedView, front_end: str | None = None) -> list[SourceScope]:
    """List every emulator field list and production panel on the page.

    When ``front_end`` is not given it is detected from the view location;
    an unrecognised host lists both layouts.
    """
    wanted = front_end or detect_front_end(view.location)
    scopes: list[SourceScope] = []
    if wanted in (None, EMULATOR):
        scopes.extend(
            SourceScope(EMULATOR, field_list)
            for field_list in view.document.select(EMULATOR_ROOT_SELECTOR)
        )
    if wanted in (None, PRODUCTION):
        scopes.extend(SourceScope(PRODUCTION, panel) for panel in open_panels(view))
    return scopes
