"""Grid representation and occupancy helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.constants import (
    DEFAULT_CELL_SIZE,
    DEFAULT_GRID_COLS,
    DEFAULT_GRID_PADDING,
    DEFAULT_GRID_ROWS,
    Bounds,
)
from ..core.exceptions import BoundsViolation, OccupancyConflict
from ..core.models import GridPosition, Section
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class GridConfig:
    """Grid dimensions and pixel geometry of the designer canvas."""

    rows: int = DEFAULT_GRID_ROWS
    cols: int = DEFAULT_GRID_COLS
    cell_size: int = DEFAULT_CELL_SIZE
    padding: int = DEFAULT_GRID_PADDING

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid must have at least one cell, got {self.rows}x{self.cols}")
        if self.cell_size < 1:
            raise ValueError("cell_size must be positive")

    def bounds(self) -> Bounds:
        return Bounds(rows=self.rows, cols=self.cols)

    def grid_to_pixel(self, row: int, col: int) -> Tuple[int, int]:
        """Pixel origin (x, y) of a cell, relative to the canvas."""
        return col * self.cell_size + self.padding, row * self.cell_size + self.padding

    def pixel_to_grid(self, x: float, y: float) -> GridPosition:
        """Cell containing a canvas pixel; may lie outside the grid."""
        return GridPosition(
            row=int((y - self.padding) // self.cell_size),
            col=int((x - self.padding) // self.cell_size),
        )


@dataclass(frozen=True)
class GridCell:
    """Derived view of a single cell; never persisted."""

    row: int
    col: int
    occupied: bool
    occupant_id: Optional[str] = None


class OccupancyMap:
    """Owner id per cell for a fixed rows x cols grid."""

    def __init__(self, bounds: Bounds) -> None:
        self.bounds = bounds
        self._owners: List[List[Optional[str]]] = [
            [None for _ in range(bounds.cols)] for _ in range(bounds.rows)
        ]

    def owner(self, row: int, col: int) -> Optional[str]:
        return self._owners[row][col]

    def is_free(self, row: int, col: int, exclude_id: Optional[str] = None) -> bool:
        occupant = self._owners[row][col]
        return occupant is None or occupant == exclude_id

    def claim(self, row: int, col: int, section_id: str) -> None:
        self._owners[row][col] = section_id

    def cells(self) -> List[List[GridCell]]:
        return [
            [
                GridCell(row=r, col=c, occupied=owner is not None, occupant_id=owner)
                for c, owner in enumerate(row_owners)
            ]
            for r, row_owners in enumerate(self._owners)
        ]

    def footprint(self, section_id: str) -> List[Tuple[int, int]]:
        return [
            (r, c)
            for r, row_owners in enumerate(self._owners)
            for c, owner in enumerate(row_owners)
            if owner == section_id
        ]

    @property
    def occupied_count(self) -> int:
        return sum(1 for row_owners in self._owners for owner in row_owners if owner is not None)

    def owners_by_section(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for row_owners in self._owners:
            for owner in row_owners:
                if owner is not None:
                    counts[owner] = counts.get(owner, 0) + 1
        return counts


class GridModel:
    """Fixed-size occupancy map rebuilt from the section list."""

    def __init__(self, config: Optional[GridConfig] = None) -> None:
        self.config = config or GridConfig()
        self.bounds = self.config.bounds()
        self.occupancy = OccupancyMap(self.bounds)

    def rebuild(self, sections: Iterable[Section]) -> OccupancyMap:
        """Recompute occupancy from scratch.

        Raises :class:`BoundsViolation` for an empty or out-of-bounds footprint
        and :class:`OccupancyConflict` when two footprints share a cell. The
        previous map is kept when the rebuild fails.
        """

        occupancy = OccupancyMap(self.bounds)
        for section in sections:
            self.check_footprint(section)
            for row, col in section.cells:
                occupant = occupancy.owner(row, col)
                if occupant is not None:
                    raise OccupancyConflict(
                        f"Sections {occupant!r} and {section.id!r} overlap at {(row, col)}"
                    )
                occupancy.claim(row, col, section.id)
        self.occupancy = occupancy
        LOGGER.debug(
            "Occupancy rebuilt: %s/%s cells occupied",
            occupancy.occupied_count,
            self.bounds.rows * self.bounds.cols,
        )
        return occupancy

    def check_footprint(self, section: Section) -> None:
        size, pos = section.size, section.position
        if size.row_span < 1 or size.col_span < 1:
            raise BoundsViolation(f"Section {section.id!r} has empty footprint {size}")
        if not self.bounds.fits(pos.row, pos.col, size.row_span, size.col_span):
            raise BoundsViolation(
                f"Section {section.id!r} at {(pos.row, pos.col)} size "
                f"{size.row_span}x{size.col_span} exceeds {self.bounds.rows}x{self.bounds.cols} grid"
            )

    def cells(self) -> List[List[GridCell]]:
        return self.occupancy.cells()
