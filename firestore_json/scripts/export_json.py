#!/usr/bin/env python3
"""CLI entrypoint for exporting Firestore documents from saved console pages."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from firestore_json.extractor import document, selector, view
from firestore_json.extractor.selector import NoSourceFound
from firestore_json.extractor.values import UncoercibleNumber

logger = logging.getLogger("firestore_json.extractor.cli")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_snapshot(path: str) -> Path:
    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise SystemExit(f"Snapshot not found: {resolved}")
    return resolved


def load_snapshot(args: argparse.Namespace) -> view.RenderedView:
    snapshot = resolve_snapshot(args.snapshot)
    return view.load_view(
        snapshot,
        location=args.location,
        html_parser=getattr(args, "html_parser", None),
    )


def strict_flag(args: argparse.Namespace) -> bool | None:
    # None defers to FIRESTORE_JSON_STRICT_NUMBERS.
    return True if getattr(args, "strict_numbers", False) else None


def command_extract(args: argparse.Namespace) -> None:
    rendered = load_snapshot(args)
    strict = strict_flag(args)
    try:
        if args.all:
            documents = document.assemble_all(rendered, strict_numbers=strict)
            if not documents:
                raise NoSourceFound()
            content = document.dump_json([doc.wrapped() for doc in documents])
        else:
            scope = None
            if args.scope:
                scope = rendered.document.select_one(args.scope)
                if scope is None:
                    raise SystemExit(f"Scope selector matched nothing: {args.scope}")
            exported = document.assemble(rendered, scope, strict_numbers=strict)
            logger.info("Exported %s document %s", exported.front_end, exported.doc_id)
            content = exported.json_text
    except (NoSourceFound, UncoercibleNumber) as exc:
        raise SystemExit(str(exc)) from exc
    write_output(content, args.output)


def command_scopes(args: argparse.Namespace) -> None:
    rendered = load_snapshot(args)
    scopes = selector.find_scopes(rendered)
    if not scopes:
        raise SystemExit(str(NoSourceFound()))
    rows = []
    try:
        for index, scope in enumerate(scopes):
            exported = document.parse_scope(rendered, scope)
            rows.append((index, scope.front_end, exported.doc_id, len(exported.fields)))
    except (NoSourceFound, UncoercibleNumber) as exc:
        raise SystemExit(str(exc)) from exc
    print_scope_table(rows)


def write_output(content: str, output: str | None) -> None:
    if not output:
        print(content)
        return
    path = Path(output).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content + "\n", encoding="utf-8")
    logger.info("JSON written to %s (%d characters)", path, len(content))


def print_scope_table(rows: list[tuple[int, str, str, int]]) -> None:
    print("#".ljust(4), "Front end".ljust(12), "Document".ljust(40), "Fields")
    print("-" * 64)
    for index, front_end, doc_id, field_count in rows:
        print(str(index).ljust(4), front_end.ljust(12), doc_id.ljust(40), str(field_count))


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(
        description="Export Firestore documents from saved console pages as JSON"
    )
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    extract_parser = subparsers.add_parser("extract", help="Print the document JSON")
    extract_parser.add_argument("snapshot", help="Saved HTML page of the console")
    extract_parser.add_argument(
        "--location",
        help="Page URL (defaults to the page's 'saved from' marker); names emulator documents",
    )
    extract_parser.add_argument("--scope", help="CSS selector of the panel or field list to parse")
    extract_parser.add_argument(
        "--all", action="store_true", help="Export every panel and field list on the page"
    )
    extract_parser.add_argument("--output", help="Write JSON to this file instead of stdout")
    extract_parser.add_argument(
        "--strict-numbers",
        action="store_true",
        help="Fail on unreadable number fields (overrides FIRESTORE_JSON_STRICT_NUMBERS)",
    )
    extract_parser.add_argument(
        "--html-parser",
        help="BeautifulSoup parser name (overrides FIRESTORE_JSON_HTML_PARSER)",
    )
    extract_parser.set_defaults(func=command_extract)

    scopes_parser = subparsers.add_parser("scopes", help="List documents found on the page")
    scopes_parser.add_argument("snapshot", help="Saved HTML page of the console")
    scopes_parser.add_argument("--location", help="Page URL used to detect the console")
    scopes_parser.set_defaults(func=command_scopes)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
