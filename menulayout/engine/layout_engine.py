"""Designer session orchestration.

A :class:`LayoutEngine` owns one menu's :class:`LayoutConfig` while the
designer is open. Every mutation goes through it: the section list changes,
occupancy is rebuilt and a debounced save is scheduled. Placement failures
come back as :class:`PlacementIssue` values; only persistence failures raise.
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..core.constants import CONTENT_TEMPLATES, SECTION_PRESETS, LayoutType, SectionKind
from ..core.exceptions import BoundsViolation, DragStateError, PlacementExhausted
from ..core.models import (
    Category,
    GridPosition,
    GridSize,
    LayoutConfig,
    MenuItem,
    PlacementIssue,
    Section,
    SectionContent,
    ThemeTokens,
)
from ..data.catalog import CatalogError, CatalogProvider, items_for_category
from ..io.persistence import PersistenceAdapter
from ..utils.logger import get_logger
from .drag import DragController
from .grid import GridCell, GridConfig, GridModel, OccupancyMap
from .reconciler import ReconcileResult, ReconcilerConfig, SectionReconciler
from .solver import PlacementSolver, can_place, find_nearest_free
from .theme import ThemeApplier, merge_tokens, preset_tokens
from .validator import LayoutValidator, ValidationResult

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PlacementResult:
    section: Optional[Section]
    issue: Optional[PlacementIssue] = None

    @property
    def ok(self) -> bool:
        return self.issue is None


@dataclass(frozen=True)
class RenderSection:
    """Read-only projection handed to the card and mobile-preview renderers."""

    section: Section
    category: Optional[Category] = None
    items: Tuple[MenuItem, ...] = ()


class LayoutEngine:
    """Public operations of the visual menu designer."""

    def __init__(
        self,
        menu_key: str,
        catalog: CatalogProvider,
        persistence: PersistenceAdapter,
        grid_config: Optional[GridConfig] = None,
        reconciler_config: Optional[ReconcilerConfig] = None,
        theme_applier: Optional[ThemeApplier] = None,
    ) -> None:
        self.menu_key = menu_key
        self.catalog = catalog
        self.persistence = persistence
        self.grid = GridModel(grid_config)
        self.solver = PlacementSolver(self.grid)
        self.reconciler = SectionReconciler(self.grid.config, reconciler_config)
        self.theme_applier = theme_applier or ThemeApplier()
        self.validator = LayoutValidator(self.grid.config)
        self.config = LayoutConfig(menu_key=menu_key)
        self.drag = DragController(self.grid, lambda: self.config.sections, on_commit=self._on_drag_commit)
        self.issues: List[PlacementIssue] = []
        self._categories: List[Category] = []
        self._items: List[MenuItem] = []

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    def open(self) -> Optional[ReconcileResult]:
        """Load the stored layout, repair it if needed, then reconcile."""

        self.config = self.persistence.load(self.menu_key)
        self.issues = []
        repairs = self._repair()
        self.grid.rebuild(self.config.sections)
        if repairs:
            self._schedule_save()
        result = self.reconcile()
        self.issues = repairs + self.issues
        return result

    def poll(self) -> Optional[int]:
        """Give the debounced save a chance to run; raises PersistenceFailure."""
        return self._adopt_version(self.persistence.poll())

    def flush(self) -> Optional[int]:
        return self._adopt_version(self.persistence.flush())

    def close(self, save: bool = True) -> Optional[int]:
        self._finish_drag()
        if save:
            return self.flush()
        self.persistence.discard()
        return None

    @property
    def is_dirty(self) -> bool:
        return self.persistence.dirty

    def _adopt_version(self, version: Optional[int]) -> Optional[int]:
        if version is not None:
            self.config.version = version
        return version

    def _schedule_save(self) -> None:
        self.persistence.save(self.config)

    def _commit(self) -> None:
        self.grid.rebuild(self.config.sections)
        self._schedule_save()

    def _finish_drag(self) -> None:
        if self.drag.is_dragging:
            self.drag.pointer_up()

    # ------------------------------------------------------------------
    # Catalog reconciliation
    # ------------------------------------------------------------------
    def reconcile(self) -> Optional[ReconcileResult]:
        """Sync structural sections with a fresh catalog snapshot."""

        self._finish_drag()
        try:
            categories = self.catalog.get_categories(self.menu_key)
            items = self.catalog.get_items(self.menu_key)
        except CatalogError as exc:
            LOGGER.error("Catalog unavailable for %s, layout left as is: %s", self.menu_key, exc)
            return None
        self._categories, self._items = categories, items
        result = self.reconciler.reconcile(
            self.config.sections,
            categories,
            items,
            layout_type=self.config.layout_type,
            columns=self.config.columns,
            theme=self.config.theme,
        )
        self.config.sections = result.sections
        self.issues = list(result.unplaced)
        self.grid.rebuild(self.config.sections)
        if result.changed:
            self._schedule_save()
        return result

    def _repair(self) -> List[PlacementIssue]:
        """Make a loaded section list satisfy the grid invariants.

        Structural sections claim cells first, then the rest in stored order.
        A section that collides or overhangs is moved to the nearest free
        slot, or dropped when there is none.
        """

        bounds = self.grid.bounds
        occupancy = OccupancyMap(bounds)
        ordered = sorted(self.config.sections, key=lambda s: 0 if s.is_structural else 1)
        keep: Dict[str, Section] = {}
        issues: List[PlacementIssue] = []
        for section in ordered:
            if section.id in keep:
                issues.append(PlacementIssue(section.id, "duplicate", f"Duplicate id {section.id!r} dropped"))
                continue
            size, pos = section.size, section.position
            if can_place(occupancy, pos.row, pos.col, size.row_span, size.col_span):
                position: Optional[GridPosition] = pos
            else:
                start = self.solver.clamp(pos, size)
                try:
                    position = find_nearest_free(
                        occupancy, start.row, start.col, size.row_span, size.col_span
                    )
                except BoundsViolation as exc:
                    issues.append(PlacementIssue(section.id, "bounds", str(exc), section.category_id))
                    continue
                if position is None:
                    issues.append(
                        PlacementIssue(section.id, "exhausted", "No free slot on load", section.category_id)
                    )
                    continue
                issues.append(
                    PlacementIssue(
                        section.id,
                        "relocated",
                        f"Moved from {(pos.row, pos.col)} to {(position.row, position.col)}",
                        section.category_id,
                    )
                )
                section.position = position
            for row, col in section.cells:
                occupancy.claim(row, col, section.id)
            keep[section.id] = section
        if issues:
            for issue in issues:
                LOGGER.warning("Repairing layout %s: %s %s", self.menu_key, issue.section_id, issue.message)
            self.config.sections = [
                section for section in self.config.sections if keep.get(section.id) is section
            ]
        return issues

    # ------------------------------------------------------------------
    # Section editing
    # ------------------------------------------------------------------
    def add_section(
        self,
        kind: SectionKind,
        content: Optional[SectionContent] = None,
        template: Optional[str] = None,
        size: Optional[GridSize] = None,
        target: Optional[GridPosition] = None,
        title: Optional[str] = None,
    ) -> PlacementResult:
        """Add a user-authored section at the free slot nearest ``target``."""

        kind = SectionKind(kind)
        if kind.is_structural:
            raise ValueError(f"{kind.value} sections are generated from the catalog")
        self._finish_drag()
        preset = SECTION_PRESETS[kind]
        if size is None:
            size = GridSize(*preset["size"])  # type: ignore[misc]
        if content is None:
            values = CONTENT_TEMPLATES[template] if template else preset["content"]
            content = SectionContent.from_preset(values)  # type: ignore[arg-type]
        section = Section(
            id=self._new_section_id(kind),
            kind=kind,
            position=GridPosition(0, 0),
            size=size,
            content=content,
            editable=True,
            title=title or str(preset["label"]),
        )
        target = self.solver.clamp(target or GridPosition(0, 0), size)
        try:
            position = self.solver.require_free(target, size)
        except BoundsViolation as exc:
            return self._reject(section.id, "bounds", str(exc))
        except PlacementExhausted as exc:
            return self._reject(section.id, "exhausted", f"Cannot add section, grid is full: {exc}")
        section.position = position
        self.config.sections.append(section)
        self._commit()
        LOGGER.info("Added %s at %s", section.id, (position.row, position.col))
        return PlacementResult(section)

    def update_section(
        self,
        section_id: str,
        content: Optional[SectionContent] = None,
        title: Optional[str] = None,
        size: Optional[GridSize] = None,
    ) -> PlacementResult:
        """Edit a custom section's content or title, or resize it in place."""

        self._finish_drag()
        section = self.config.section(section_id)
        if section is None:
            return self._reject(section_id, "missing", "No such section")
        if not section.editable:
            return self._reject(section_id, "locked", "Generated sections cannot be edited")
        if size is not None and size != section.size:
            if not self.solver.can_place(section.position, size, exclude_id=section.id):
                return self._reject(
                    section_id, "blocked", f"Resize to {size.row_span}x{size.col_span} does not fit"
                )
            section.size = size
        if content is not None:
            section.content = content
        if title is not None:
            section.title = title
        self._commit()
        return PlacementResult(section)

    def apply_template(self, section_id: str, template: str) -> PlacementResult:
        return self.update_section(section_id, content=SectionContent.from_preset(CONTENT_TEMPLATES[template]))

    def delete_section(self, section_id: str) -> bool:
        self._finish_drag()
        before = len(self.config.sections)
        self.config.sections = [s for s in self.config.sections if s.id != section_id]
        if len(self.config.sections) == before:
            return False
        self._commit()
        LOGGER.info("Deleted %s", section_id)
        return True

    def move_section(self, section_id: str, row: int, col: int) -> PlacementResult:
        """Keyboard/API counterpart of a drag: snap to the nearest free slot."""

        self._finish_drag()
        section = self.config.section(section_id)
        if section is None:
            return self._reject(section_id, "missing", "No such section")
        if not section.editable:
            return self._reject(section_id, "locked", "Generated sections cannot be moved")
        target = self.solver.clamp(GridPosition(row, col), section.size)
        try:
            position = self.solver.require_free(target, section.size, exclude_id=section.id)
        except PlacementExhausted as exc:
            return self._reject(section_id, "exhausted", str(exc))
        section.position = position
        self._commit()
        return PlacementResult(section)

    def _reject(self, section_id: str, reason: str, message: str) -> PlacementResult:
        LOGGER.warning("Placement of %s rejected (%s): %s", section_id, reason, message)
        return PlacementResult(None, PlacementIssue(section_id, reason, message))

    def _new_section_id(self, kind: SectionKind) -> str:
        taken = {section.id for section in self.config.sections}
        index = 1
        while f"{kind.value}-{index}" in taken:
            index += 1
        return f"{kind.value}-{index}"

    # ------------------------------------------------------------------
    # Pointer drag
    # ------------------------------------------------------------------
    def pointer_down(self, section_id: str, x: float, y: float) -> bool:
        try:
            return self.drag.pointer_down(section_id, x, y)
        except DragStateError as exc:
            LOGGER.warning("Drag ignored: %s", exc)
            return False

    def pointer_move(self, x: float, y: float) -> Optional[GridPosition]:
        return self.drag.pointer_move(x, y)

    def pointer_up(self) -> Optional[Section]:
        return self.drag.pointer_up()

    def blur(self) -> Optional[Section]:
        return self.drag.blur()

    def _on_drag_commit(self, section: Section) -> None:
        self._schedule_save()

    # ------------------------------------------------------------------
    # Theme and layout type
    # ------------------------------------------------------------------
    def set_theme(self, tokens: Optional[ThemeTokens] = None, **overrides: Any) -> ThemeTokens:
        self._finish_drag()
        base = tokens or self.config.theme
        self.config.theme = merge_tokens(base, overrides) if overrides else base
        self.config.sections = self.theme_applier.apply(self.config.sections, self.config.theme)
        self._commit()
        return self.config.theme

    def apply_theme_preset(self, name: str) -> ThemeTokens:
        return self.set_theme(preset_tokens(name, self.config.theme))

    def set_layout_type(self, layout_type: LayoutType, columns: Optional[int] = None) -> Optional[ReconcileResult]:
        layout_type = LayoutType(layout_type)
        if layout_type == LayoutType.GRID:
            self.config.columns = max(columns or self.config.columns, 2)
        else:
            self.config.columns = 1
        self.config.layout_type = layout_type
        self._schedule_save()
        return self.reconcile()

    def set_columns(self, columns: int) -> Optional[ReconcileResult]:
        return self.set_layout_type(self.config.layout_type, columns)

    # ------------------------------------------------------------------
    # Menu lifecycle
    # ------------------------------------------------------------------
    def duplicate_to(self, new_menu_key: str) -> LayoutConfig:
        """Deep-copy this layout under another menu key and store it now."""

        self._finish_drag()
        duplicate = copy.deepcopy(self.config)
        duplicate.menu_key = new_menu_key
        duplicate.version = 0
        duplicate.version = self.persistence.write_now(duplicate)
        LOGGER.info("Duplicated layout %s -> %s", self.menu_key, new_menu_key)
        return duplicate

    def delete_menu(self) -> bool:
        self._finish_drag()
        deleted = self.persistence.delete(self.menu_key)
        self.config = LayoutConfig(menu_key=self.menu_key)
        self.grid.rebuild(self.config.sections)
        return deleted

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def get_render_model(self) -> List[RenderSection]:
        categories = {str(category.id): category for category in self._categories}
        model: List[RenderSection] = []
        for section in self.config.sections:
            snapshot = copy.deepcopy(section)
            category = categories.get(section.category_id) if section.category_id else None
            items: Tuple[MenuItem, ...] = ()
            if section.kind == SectionKind.ITEMS and section.category_id:
                items = tuple(items_for_category(self._items, section.category_id))
            model.append(RenderSection(section=snapshot, category=category, items=items))
        return model

    def cells(self) -> List[List[GridCell]]:
        return self.grid.cells()

    def validate(self) -> ValidationResult:
        category_ids = [str(category.id) for category in self._categories if category.is_active]
        return self.validator.validate(self.config.sections, category_ids)

    def snapshot(self) -> LayoutConfig:
        return dataclasses.replace(self.config, sections=copy.deepcopy(self.config.sections))
