from __future__ import annotations

import json
import math

import pytest

from console_pages import (
    emu_children,
    emu_item,
    emu_list,
    emu_page,
    emu_view,
    prod_container,
    prod_leaf,
    prod_page,
    prod_panel,
    prod_panels,
)
from firestore_json.extractor import document, selector, view
from firestore_json.extractor.selector import EMULATOR, PRODUCTION, NoSourceFound

EMULATOR_URL = "http://127.0.0.1:4000/firestore/default/data/users/alice"
PRODUCTION_URL = "https://console.firebase.google.com/project/demo/firestore/data/~2Fusers~2Falice"

ALICE_LIST = emu_list(
    emu_item("name", "(string)", title='"Alice"'),
    emu_item("age", "(number)", title="30"),
    emu_item("tags", "(array)"),
    emu_children(emu_item("0", "(string)", title='"x"'), emu_item("1", "(string)", title='"y"')),
)

PANELS = prod_panels(
    prod_panel("users", prod_leaf("ignored", '"collection panel"')),
    prod_panel(
        "alice",
        prod_leaf("name", '"Alice"'),
        prod_leaf("age", "30", "(number)"),
        prod_container("tags", "(array)", prod_leaf("0", '"x"'), prod_leaf("1", '"y"')),
    ),
)
TWO_PANELS = f"<html><body>{PANELS}</body></html>"
MIXED = f"<html><body>{PANELS}{emu_view(ALICE_LIST)}</body></html>"

ALICE_FIELDS = {"name": "Alice", "age": 30, "tags": ["x", "y"]}


def make_view(html: str, location: str = "") -> view.RenderedView:
    return view.parse_view(html, location=location, html_parser="lxml")


def prod_field_html(key: str, text: str) -> str:
    return f"<fs-animate-change-classes>{prod_leaf(key, text)}</fs-animate-change-classes>"


def test_assemble_emulator_document() -> None:
    exported = document.assemble(make_view(emu_page(ALICE_LIST), EMULATOR_URL))
    assert exported.front_end == EMULATOR
    assert exported.doc_id == "alice"
    assert exported.fields == ALICE_FIELDS
    assert exported.wrapped() == {"alice": ALICE_FIELDS}
    assert exported.json_text == json.dumps({"alice": ALICE_FIELDS}, indent=2)


def test_assemble_production_uses_last_panel() -> None:
    exported = document.assemble(make_view(TWO_PANELS, PRODUCTION_URL))
    assert exported.front_end == PRODUCTION
    assert exported.doc_id == "alice"
    assert exported.fields == ALICE_FIELDS
    assert '"age": 30' in exported.json_text
    assert json.loads(exported.json_text) == {"alice": ALICE_FIELDS}


def test_emulator_preferred_over_production_panels() -> None:
    selected = selector.select_scope(make_view(MIXED))
    assert selected.front_end == EMULATOR


def test_production_panel_without_header_uses_placeholder() -> None:
    html = prod_page(prod_panel(None, prod_leaf("name", '"Bob"')))
    exported = document.assemble(make_view(html))
    assert exported.doc_id == "UNKNOWN_DOCUMENT_ID"
    assert exported.fields == {"name": "Bob"}


def test_no_source_found() -> None:
    rendered = make_view("<html><body><p>Loading…</p></body></html>")
    with pytest.raises(NoSourceFound, match="No Firestore data found"):
        document.assemble(rendered)
    assert selector.find_scopes(rendered) == []


def test_panels_outside_panels_container_are_not_selected() -> None:
    html = "<html><body>" + prod_panel("stray", prod_leaf("a", "1")) + "</body></html>"
    with pytest.raises(NoSourceFound):
        selector.select_scope(make_view(html))


def test_explicit_scope_classification() -> None:
    html = (
        "<html><body>"
        + PANELS
        + '<div id="wrapper">'
        + ALICE_LIST
        + "</div>"
        + '<section id="loose">'
        + prod_field_html("loose", "1")
        + "</section>"
        + "</body></html>"
    )
    rendered = make_view(html)
    soup = rendered.document

    field_list = soup.select_one(".Firestore-Field-List")
    assert selector.select_scope(rendered, field_list) == selector.SourceScope(EMULATOR, field_list)

    first_panel = soup.select(".panel-container")[0]
    selected = selector.select_scope(rendered, first_panel)
    assert selected.front_end == PRODUCTION
    assert document.assemble(rendered, first_panel).doc_id == "users"

    wrapper = soup.select_one("#wrapper")
    assert selector.select_scope(rendered, wrapper).root is field_list

    loose = soup.select_one("#loose")
    selected = selector.select_scope(rendered, loose)
    assert selected == selector.SourceScope(PRODUCTION, loose)
    exported = document.assemble(rendered, loose)
    assert exported.fields == {"loose": 1}
    assert exported.doc_id == "UNKNOWN_DOCUMENT_ID"


def test_non_finite_numbers_serialize_as_null() -> None:
    html = emu_page(
        emu_list(
            emu_item("bad", "(number)", title="n/a"),
            emu_item("big", "(number)", title="Infinity"),
            emu_item("list", "(array)"),
            emu_children(emu_item("0", "(number)", title="NaN")),
        )
    )
    exported = document.assemble(make_view(html, EMULATOR_URL), strict_numbers=False)
    assert math.isnan(exported.fields["bad"])
    assert exported.fields["big"] == math.inf
    assert json.loads(exported.json_text) == {"alice": {"bad": None, "big": None, "list": [None]}}


def test_dump_json_is_two_space_indented() -> None:
    assert document.dump_json({"a": [1, {"b": None}]}) == (
        '{\n  "a": [\n    1,\n    {\n      "b": null\n    }\n  ]\n}'
    )
    assert document.dump_json({"name": "Zoë"}) == '{\n  "name": "Zoë"\n}'


@pytest.mark.parametrize(
    ("location", "expected"),
    [
        (EMULATOR_URL, EMULATOR),
        ("http://localhost:4000/firestore", EMULATOR),
        (PRODUCTION_URL, PRODUCTION),
        ("https://example.com/firestore", None),
        ("", None),
    ],
)
def test_detect_front_end(location: str, expected: str | None) -> None:
    assert selector.detect_front_end(location) == expected


def test_find_scopes_and_assemble_all() -> None:
    html = MIXED

    everything = selector.find_scopes(make_view(html))
    assert [scope.front_end for scope in everything] == [EMULATOR, PRODUCTION, PRODUCTION]

    production_only = document.assemble_all(make_view(html, PRODUCTION_URL))
    assert [doc.doc_id for doc in production_only] == ["users", "alice"]
    assert production_only[0].fields == {"ignored": "collection panel"}

    emulator_only = document.assemble_all(make_view(html, EMULATOR_URL))
    assert [doc.wrapped() for doc in emulator_only] == [{"alice": ALICE_FIELDS}]

    forced = document.assemble_all(make_view(html, EMULATOR_URL), front_end=PRODUCTION)
    assert len(forced) == 2


def test_location_recovered_from_saved_page_marker() -> None:
    html = (
        "<!DOCTYPE html>\n<!-- saved from url=(0057)http://127.0.0.1:4000/firestore/default/data/users/carol -->\n"
        + emu_page(ALICE_LIST)
    )
    rendered = view.parse_view(html)
    assert rendered.location == "http://127.0.0.1:4000/firestore/default/data/users/carol"
    assert document.assemble(rendered).doc_id == "carol"

    explicit = view.parse_view(html, location="/data/users/dave")
    assert document.assemble(explicit).doc_id == "dave"
    assert view.location_from_html("<html></html>") is None


def test_html_parser_resolution(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FIRESTORE_JSON_HTML_PARSER", raising=False)
    assert view.resolve_html_parser(None) == "lxml"
    monkeypatch.setenv("FIRESTORE_JSON_HTML_PARSER", "html.parser")
    assert view.resolve_html_parser(None) == "html.parser"
    assert view.resolve_html_parser("lxml") == "lxml"
