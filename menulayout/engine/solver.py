"""Collision-free placement queries over an occupancy map.

Both queries are pure: they read the map and never mutate it. The dragged or
resized section passes its own id as ``exclude_id`` so its previous footprint
does not block it.
"""

from __future__ import annotations

from typing import Optional

from ..core.exceptions import BoundsViolation, PlacementExhausted
from ..core.models import GridPosition, GridSize
from ..utils.logger import get_logger
from .grid import GridModel, OccupancyMap

LOGGER = get_logger(__name__)


def can_place(
    occupancy: OccupancyMap,
    row: int,
    col: int,
    row_span: int,
    col_span: int,
    exclude_id: Optional[str] = None,
) -> bool:
    """Return True when the footprint is inside the grid and unclaimed."""

    if row_span < 1 or col_span < 1:
        return False
    if not occupancy.bounds.fits(row, col, row_span, col_span):
        return False
    for r in range(row, row + row_span):
        for c in range(col, col + col_span):
            if not occupancy.is_free(r, c, exclude_id):
                return False
    return True


def check_span(occupancy: OccupancyMap, row_span: int, col_span: int) -> None:
    """Reject footprints that cannot fit the grid anywhere."""

    bounds = occupancy.bounds
    if row_span < 1 or col_span < 1:
        raise BoundsViolation(f"Footprint {row_span}x{col_span} is empty")
    if row_span > bounds.rows or col_span > bounds.cols:
        raise BoundsViolation(
            f"Footprint {row_span}x{col_span} larger than {bounds.rows}x{bounds.cols} grid"
        )


def find_nearest_free(
    occupancy: OccupancyMap,
    target_row: int,
    target_col: int,
    row_span: int,
    col_span: int,
    exclude_id: Optional[str] = None,
) -> Optional[GridPosition]:
    """Find the feasible top-left cell closest to the target.

    A target that already fits is returned unchanged. Otherwise rings of
    growing radius around the target are scanned in row-major order, clamped
    to the valid top-left range, and the first feasible cell wins. Returns
    None when the footprint fits nowhere.

    Raises:
        BoundsViolation: the footprint is larger than the grid.
    """

    check_span(occupancy, row_span, col_span)
    if can_place(occupancy, target_row, target_col, row_span, col_span, exclude_id):
        return GridPosition(target_row, target_col)

    bounds = occupancy.bounds
    max_row = bounds.rows - row_span
    max_col = bounds.cols - col_span
    for radius in range(1, max(bounds.rows, bounds.cols) + 1):
        row_lo = max(0, target_row - radius)
        row_hi = min(max_row, target_row + radius)
        col_lo = max(0, target_col - radius)
        col_hi = min(max_col, target_col + radius)
        for row in range(row_lo, row_hi + 1):
            for col in range(col_lo, col_hi + 1):
                if can_place(occupancy, row, col, row_span, col_span, exclude_id):
                    return GridPosition(row, col)

    LOGGER.debug(
        "No free slot for %sx%s near %s (exclude=%s)",
        row_span,
        col_span,
        (target_row, target_col),
        exclude_id,
    )
    return None


class PlacementSolver:
    """Placement queries bound to a grid model's current occupancy."""

    def __init__(self, grid: GridModel) -> None:
        self.grid = grid

    def can_place(
        self,
        position: GridPosition,
        size: GridSize,
        exclude_id: Optional[str] = None,
    ) -> bool:
        return can_place(
            self.grid.occupancy, position.row, position.col, size.row_span, size.col_span, exclude_id
        )

    def find_nearest_free(
        self,
        target: GridPosition,
        size: GridSize,
        exclude_id: Optional[str] = None,
    ) -> Optional[GridPosition]:
        return find_nearest_free(
            self.grid.occupancy, target.row, target.col, size.row_span, size.col_span, exclude_id
        )

    def require_free(
        self,
        target: GridPosition,
        size: GridSize,
        exclude_id: Optional[str] = None,
    ) -> GridPosition:
        """Like :meth:`find_nearest_free` but raises :class:`PlacementExhausted` instead of returning None."""
        position = self.find_nearest_free(target, size, exclude_id)
        if position is None:
            raise PlacementExhausted(
                f"No free {size.row_span}x{size.col_span} slot near {(target.row, target.col)}"
            )
        return position

    def clamp(self, target: GridPosition, size: GridSize) -> GridPosition:
        """Pull a top-left cell into the range where the footprint fits."""
        bounds = self.grid.bounds
        row = min(max(target.row, 0), max(bounds.rows - size.row_span, 0))
        col = min(max(target.col, 0), max(bounds.cols - size.col_span, 0))
        return GridPosition(row, col)
