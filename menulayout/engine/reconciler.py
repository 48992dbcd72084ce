"""Synchronize structural sections with the live catalog.

Two modes, chosen from the section list itself:

- *fresh*: no user-authored section exists, so every structural section is
  regenerated from the catalog in category order.
- *initialized*: at least one editable section exists. Nothing is
  regenerated; structural sections of vanished categories are pruned and new
  categories get a header and items block in the first free slots. Editable
  sections are never moved or removed.

Placement is deterministic, so reconciling twice against the same catalog
snapshot yields the same sections.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..core.constants import CATEGORY_HEADER_STYLE, LayoutType, SectionKind
from ..core.exceptions import BoundsViolation, StaleReference
from ..core.models import (
    Category,
    GridPosition,
    GridSize,
    MenuItem,
    PlacementIssue,
    Section,
    SectionContent,
    ThemeTokens,
)
from ..data.catalog import group_items_by_category, ordered_categories
from ..utils.logger import get_logger
from .grid import GridConfig, GridModel
from .solver import find_nearest_free

LOGGER = get_logger(__name__)


@dataclass
class ReconcilerConfig:
    """Tuning for generated structural sections."""

    # None caps items blocks at the grid height minus one header row.
    max_items_rows: Optional[int] = None


@dataclass
class ReconcileResult:
    sections: List[Section]
    initialized: bool
    added: List[str] = field(default_factory=list)
    pruned: List[str] = field(default_factory=list)
    unplaced: List[PlacementIssue] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.pruned)


def header_section_id(category_id: str) -> str:
    return f"category-{category_id}"


def items_section_id(category_id: str) -> str:
    return f"items-{category_id}"


def is_initialized(sections: Iterable[Section]) -> bool:
    """A layout is initialized once it holds any user-authored section."""
    return any(section.editable for section in sections)


def items_row_span(item_count: int, layout_type: LayoutType, columns: int, cap: int) -> int:
    if layout_type == LayoutType.GRID:
        rows = math.ceil(max(item_count, 1) / max(columns, 1))
    else:
        rows = max(item_count, 1)
    return max(1, min(rows, cap))


def build_header_section(category: Category, grid_cols: int, theme: ThemeTokens) -> Section:
    content = SectionContent.from_preset(
        {
            **CATEGORY_HEADER_STYLE,
            "text": category.name,
            "background_color": category.color or theme.primary_color,
            "border_radius": theme.border_radius,
        }
    )
    return Section(
        id=header_section_id(str(category.id)),
        kind=SectionKind.CATEGORY,
        position=GridPosition(0, 0),
        size=GridSize(1, grid_cols),
        content=content,
        category_id=str(category.id),
        editable=False,
        title=category.name,
    )


def build_items_section(category: Category, grid_cols: int, row_span: int) -> Section:
    return Section(
        id=items_section_id(str(category.id)),
        kind=SectionKind.ITEMS,
        position=GridPosition(0, 0),
        size=GridSize(row_span, grid_cols),
        category_id=str(category.id),
        editable=False,
        title=f"{category.name} Items",
    )


class SectionReconciler:
    """Keeps category headers and item listings in step with the catalog."""

    def __init__(
        self,
        grid_config: Optional[GridConfig] = None,
        config: Optional[ReconcilerConfig] = None,
    ) -> None:
        self.grid_config = grid_config or GridConfig()
        self.config = config or ReconcilerConfig()

    @property
    def items_rows_cap(self) -> int:
        if self.config.max_items_rows is not None:
            return max(1, min(self.config.max_items_rows, self.grid_config.rows))
        return max(1, self.grid_config.rows - 1)

    def reconcile(
        self,
        sections: Sequence[Section],
        categories: Sequence[Category],
        items: Sequence[MenuItem],
        layout_type: LayoutType = LayoutType.LIST,
        columns: int = 1,
        theme: Optional[ThemeTokens] = None,
    ) -> ReconcileResult:
        theme = theme or ThemeTokens()
        live = ordered_categories(categories)
        live_ids = {str(category.id) for category in live}
        initialized = is_initialized(sections)

        if initialized:
            base: List[Section] = []
            for section in sections:
                try:
                    self._check_reference(section, live_ids)
                except StaleReference as exc:
                    LOGGER.debug("Pruning stale section: %s", exc)
                    continue
                base.append(section)
        else:
            base = [section for section in sections if section.editable]

        grid = GridModel(self.grid_config)
        grid.rebuild(base)
        present: Set[Tuple[Optional[str], SectionKind]] = {
            (section.category_id, section.kind) for section in base if section.is_structural
        }
        grouped = group_items_by_category(items, live)

        placed = list(base)
        unplaced: List[PlacementIssue] = []
        for category in live:
            category_id = str(category.id)
            header = None
            if (category_id, SectionKind.CATEGORY) not in present:
                header = build_header_section(category, self.grid_config.cols, theme)
                issue = self._place(grid, placed, header, GridPosition(0, 0))
                if issue is not None:
                    unplaced.append(issue)
                    continue
            if (category_id, SectionKind.ITEMS) not in present:
                span = items_row_span(
                    len(grouped.get(category_id, [])), layout_type, columns, self.items_rows_cap
                )
                block = build_items_section(category, self.grid_config.cols, span)
                anchor = header or self._existing(placed, category_id, SectionKind.CATEGORY)
                target = (
                    GridPosition(anchor.position.row + anchor.size.row_span, 0)
                    if anchor is not None
                    else GridPosition(0, 0)
                )
                issue = self._place(grid, placed, block, target)
                if issue is not None:
                    unplaced.append(issue)

        grid.rebuild(placed)
        before = {section.id for section in sections}
        after = {section.id for section in placed}
        result = ReconcileResult(
            sections=placed,
            initialized=initialized,
            added=[section.id for section in placed if section.id not in before],
            pruned=[section.id for section in sections if section.id not in after],
            unplaced=unplaced,
        )
        LOGGER.info(
            "Reconciled %s categories (%s): +%s -%s, %s unplaced",
            len(live),
            "initialized" if initialized else "fresh",
            len(result.added),
            len(result.pruned),
            len(unplaced),
        )
        return result

    @staticmethod
    def _check_reference(section: Section, live_ids: Set[str]) -> None:
        if section.editable or not section.is_structural:
            return
        if section.category_id not in live_ids:
            raise StaleReference(
                f"{section.id!r} references missing category {section.category_id!r}"
            )

    @staticmethod
    def _existing(
        sections: Sequence[Section], category_id: str, kind: SectionKind
    ) -> Optional[Section]:
        for section in sections:
            if section.category_id == category_id and section.kind == kind:
                return section
        return None

    @staticmethod
    def _place(
        grid: GridModel, placed: List[Section], section: Section, target: GridPosition
    ) -> Optional[PlacementIssue]:
        size = section.size
        try:
            position = find_nearest_free(
                grid.occupancy, target.row, target.col, size.row_span, size.col_span
            )
        except BoundsViolation as exc:
            LOGGER.warning("Cannot place %s for category %s: %s", section.id, section.category_id, exc)
            return PlacementIssue(section.id, "bounds", str(exc), section.category_id)
        if position is None:
            message = f"No free {size.row_span}x{size.col_span} slot for {section.id}"
            LOGGER.warning("%s (category %s)", message, section.category_id)
            return PlacementIssue(section.id, "exhausted", message, section.category_id)
        section.position = position
        for row, col in section.cells:
            grid.occupancy.claim(row, col, section.id)
        placed.append(section)
        return None
