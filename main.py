"""CLI entrypoint for the menu layout designer engine."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from menulayout.core.constants import (
    CONTENT_TEMPLATES,
    CUSTOM_KINDS,
    DEFAULT_GRID_COLS,
    DEFAULT_GRID_ROWS,
    SECTION_PRESETS,
    THEME_PRESETS,
    LayoutType,
    SectionKind,
)
from menulayout.core.exceptions import PersistenceFailure
from menulayout.core.models import GridPosition, GridSize
from menulayout.data.catalog import CatalogProvider, HttpCatalogProvider, InMemoryCatalog, JsonCatalogProvider
from menulayout.engine.grid import GridConfig
from menulayout.engine.layout_engine import LayoutEngine
from menulayout.io.layout_store import DEFAULT_STORE_DIR, HttpLayoutStore, JsonFileLayoutStore, LayoutStore
from menulayout.io.persistence import PersistenceAdapter
from menulayout.io.serialization import config_to_dict
from menulayout.utils.logger import configure_logging
from menulayout.utils.pretty import print_layout_summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect and edit restaurant menu layouts on the designer grid",
    )
    parser.add_argument("--menu", type=str, default="Default Menu", help="Menu key to operate on")
    parser.add_argument(
        "--catalog",
        type=Path,
        help="JSON file with 'categories' and 'items' arrays (defaults to an empty catalog)",
    )
    parser.add_argument(
        "--api-url",
        type=str,
        help="Portal API base URL; uses the HTTP catalog and layout store instead of local files",
    )
    parser.add_argument(
        "--store-dir",
        type=Path,
        default=DEFAULT_STORE_DIR,
        help="Directory holding stored layouts",
    )
    parser.add_argument("--rows", type=int, default=DEFAULT_GRID_ROWS, help="Grid height in cells")
    parser.add_argument("--cols", type=int, default=DEFAULT_GRID_COLS, help="Grid width in cells")
    parser.add_argument("--output", type=Path, help="Optional path to JSON output of the final layout")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("show", help="Print the stored layout")
    commands.add_parser("reconcile", help="Sync category sections with the catalog")

    add = commands.add_parser("add", help="Add a custom section")
    add.add_argument("kind", choices=sorted(kind.value for kind in CUSTOM_KINDS))
    add.add_argument("--row", type=int, default=0, help="Preferred top row")
    add.add_argument("--col", type=int, default=0, help="Preferred left column")
    add.add_argument("--row-span", type=int, help="Override preset height")
    add.add_argument("--col-span", type=int, help="Override preset width")
    add.add_argument("--template", choices=sorted(CONTENT_TEMPLATES), help="Content template")
    add.add_argument("--title", type=str, help="Section title")

    move = commands.add_parser("move", help="Move a custom section to the nearest free slot")
    move.add_argument("section_id")
    move.add_argument("row", type=int)
    move.add_argument("col", type=int)

    delete = commands.add_parser("delete", help="Delete a section")
    delete.add_argument("section_id")

    theme = commands.add_parser("theme", help="Apply a theme preset or individual colours")
    theme.add_argument("--preset", choices=sorted(THEME_PRESETS))
    theme.add_argument("--primary-color", type=str)
    theme.add_argument("--background-color", type=str)
    theme.add_argument("--card-color", type=str)
    theme.add_argument("--text-color", type=str)
    theme.add_argument("--border-radius", type=int)

    layout = commands.add_parser("layout", help="Switch between list and grid item layouts")
    layout.add_argument("layout_type", choices=[t.value for t in LayoutType])
    layout.add_argument("--columns", type=int)

    duplicate = commands.add_parser("duplicate", help="Copy this layout to another menu")
    duplicate.add_argument("target_menu")

    commands.add_parser("remove-menu", help="Delete the stored layout of this menu")
    return parser


def build_engine(args: argparse.Namespace) -> LayoutEngine:
    catalog: CatalogProvider
    store: LayoutStore
    if args.api_url:
        catalog = HttpCatalogProvider(base_url=args.api_url)
        store = HttpLayoutStore(base_url=args.api_url)
    else:
        catalog = JsonCatalogProvider(args.catalog) if args.catalog else InMemoryCatalog()
        store = JsonFileLayoutStore(args.store_dir)
    return LayoutEngine(
        args.menu,
        catalog,
        PersistenceAdapter(store),
        grid_config=GridConfig(rows=args.rows, cols=args.cols),
    )


def run_command(engine: LayoutEngine, args: argparse.Namespace) -> int:
    command = args.command
    if command == "add":
        size = None
        if args.row_span or args.col_span:
            default_rows, default_cols = SECTION_PRESETS[SectionKind(args.kind)]["size"]
            size = GridSize(args.row_span or default_rows, args.col_span or default_cols)
        result = engine.add_section(
            SectionKind(args.kind),
            template=args.template,
            size=size,
            target=GridPosition(args.row, args.col),
            title=args.title,
        )
        if not result.ok:
            print(f"Could not add section: {result.issue.message}", file=sys.stderr)
            return 1
    elif command == "move":
        result = engine.move_section(args.section_id, args.row, args.col)
        if not result.ok:
            print(f"Could not move {args.section_id}: {result.issue.message}", file=sys.stderr)
            return 1
    elif command == "delete":
        if not engine.delete_section(args.section_id):
            print(f"No section {args.section_id!r}", file=sys.stderr)
            return 1
    elif command == "theme":
        if args.preset:
            engine.apply_theme_preset(args.preset)
        engine.set_theme(
            primary_color=args.primary_color,
            background_color=args.background_color,
            card_color=args.card_color,
            text_color=args.text_color,
            border_radius=args.border_radius,
        )
    elif command == "layout":
        engine.set_layout_type(LayoutType(args.layout_type), args.columns)
    elif command == "duplicate":
        copy = engine.duplicate_to(args.target_menu)
        print(f"Copied {engine.menu_key!r} to {copy.menu_key!r} (v{copy.version})")
    elif command == "remove-menu":
        deleted = engine.delete_menu()
        print(f"Layout {engine.menu_key!r} {'deleted' if deleted else 'was not stored'}")
        return 0
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    engine = build_engine(args)
    engine.open()
    if args.command == "reconcile":
        for issue in engine.issues:
            print(f"Unplaced {issue.section_id}: {issue.message}", file=sys.stderr)

    status = run_command(engine, args)
    try:
        engine.close(save=args.command != "show")
    except PersistenceFailure as exc:
        print(f"Save failed: {exc}", file=sys.stderr)
        return 2

    if args.command != "remove-menu":
        print_layout_summary(engine.grid, engine.config)

    if args.output:
        payload: Dict[str, Any] = config_to_dict(engine.config)
        args.output.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return status


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
