"""Firestore console JSON extractor package."""
from __future__ import annotations

from pathlib import Path

from . import document, emulator, production, selector, values, view
from .document import FirestoreDocument, assemble
from .selector import NoSourceFound
from .values import UncoercibleNumber

__all__ = [
    "document",
    "emulator",
    "production",
    "selector",
    "values",
    "view",
    "FirestoreDocument",
    "NoSourceFound",
    "UncoercibleNumber",
    "assemble",
    "export_file",
]


def export_file(path: Path, location: str | None = None) -> FirestoreDocument:
    """Convenience wrapper to assemble the document shown in a saved page."""
    return assemble(view.load_view(path, location=location))
