"""Pretty-print helpers for designer grids."""

from __future__ import annotations

import sys
from collections import Counter
from typing import TYPE_CHECKING, Dict, List, Sequence

from ..core.constants import SectionKind

if TYPE_CHECKING:
    from ..core.models import LayoutConfig, Section
    from ..engine.grid import GridModel


SYMBOLS = {
    SectionKind.CATEGORY: "H",
    SectionKind.ITEMS: "I",
    SectionKind.AD: "A",
    SectionKind.PROMOTION: "P",
    SectionKind.SPECIAL: "S",
}


def section_symbols(sections: Sequence[Section]) -> Dict[str, str]:
    return {section.id: SYMBOLS.get(section.kind, "?") for section in sections}


def format_layout(grid: GridModel, sections: Sequence[Section]) -> str:
    symbols = section_symbols(sections)
    width = grid.bounds.cols
    header_cells = [f"{c:>2}" for c in range(width)]
    lines = ["    " + " ".join(header_cells)]
    lines.append("    " + "-" * (3 * width - 1))
    for r in range(grid.bounds.rows):
        row_cells = []
        for c in range(width):
            owner = grid.occupancy.owner(r, c)
            row_cells.append("." if owner is None else symbols.get(owner, "?"))
        row_render = " ".join(f"{symbol:>2}" for symbol in row_cells)
        lines.append(f"{r:>2} | {row_render}")
    return "\n".join(lines)


def print_layout_summary(grid: GridModel, config: LayoutConfig, *, stream=None) -> None:
    """Print the occupancy grid followed by a per-section listing."""

    stream = stream or sys.stdout
    print(format_layout(grid, config.sections), file=stream)

    total_cells = grid.bounds.rows * grid.bounds.cols
    occupied = grid.occupancy.occupied_count
    kinds = Counter(section.kind.value for section in config.sections)

    print(file=stream)
    print("--- Layout ---", file=stream)
    print(f"  Menu:          {config.menu_key} (v{config.version})", file=stream)
    print(f"  Type:          {config.layout_type.value} x{config.columns}", file=stream)
    print(f"  Occupied:      {occupied}/{total_cells} ({occupied / total_cells * 100:.0f}%)", file=stream)
    if kinds:
        parts = [f"{kind}:{count}" for kind, count in sorted(kinds.items())]
        print(f"  Sections:      {' '.join(parts)}", file=stream)

    rows: List[str] = []
    for section in config.sections:
        pos, size = section.position, section.size
        flag = "" if section.editable else " (locked)"
        rows.append(
            f"  {section.id:<24} {section.kind.value:<10} "
            f"@{pos.row},{pos.col} {size.row_span}x{size.col_span}{flag}"
        )
    if rows:
        print(file=stream)
        print("--- Sections ---", file=stream)
        for line in rows:
            print(line, file=stream)
