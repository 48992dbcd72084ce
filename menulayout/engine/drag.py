"""Pointer drag state machine for editable sections."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from ..core.constants import DragState
from ..core.exceptions import DragStateError
from ..core.models import GridPosition, Section
from ..utils.logger import get_logger
from .grid import GridModel
from .solver import PlacementSolver

LOGGER = get_logger(__name__)


class DragController:
    """Turn pointer events into snapped grid placements.

    ``IDLE --pointer_down--> DRAGGING --pointer_up/blur--> IDLE``

    While dragging, every move snaps the section through the solver with the
    section's own id excluded, so the occupancy map may stay stale until
    release. Pixel coordinates are relative to the canvas origin.
    """

    def __init__(
        self,
        grid: GridModel,
        sections: Callable[[], List[Section]],
        on_commit: Optional[Callable[[Section], None]] = None,
    ) -> None:
        self.grid = grid
        self.solver = PlacementSolver(grid)
        self._sections = sections
        self._on_commit = on_commit
        self.state = DragState.IDLE
        self.section_id: Optional[str] = None
        self._offset: Tuple[float, float] = (0.0, 0.0)

    @property
    def is_dragging(self) -> bool:
        return self.state == DragState.DRAGGING

    def _find(self, section_id: str) -> Section:
        for section in self._sections():
            if section.id == section_id:
                return section
        raise DragStateError(f"Unknown section {section_id!r}")

    def pointer_down(self, section_id: str, x: float, y: float) -> bool:
        """Start dragging; returns False for sections the user may not move."""

        if self.is_dragging:
            LOGGER.debug("Pointer down while dragging %s; finalizing it first", self.section_id)
            self.pointer_up()
        section = self._find(section_id)
        if not section.editable:
            LOGGER.debug("Section %s is not editable; drag ignored", section_id)
            return False
        origin_x, origin_y = self.grid.config.grid_to_pixel(section.position.row, section.position.col)
        self._offset = (x - origin_x, y - origin_y)
        self.section_id = section_id
        self.state = DragState.DRAGGING
        LOGGER.debug("Drag start %s at %s offset %s", section_id, section.position, self._offset)
        return True

    def pointer_move(self, x: float, y: float) -> Optional[GridPosition]:
        """Snap the dragged section toward the pointer; returns the snapped cell."""

        if not self.is_dragging or self.section_id is None:
            return None
        section = self._find(self.section_id)
        tentative = self.grid.config.pixel_to_grid(x - self._offset[0], y - self._offset[1])
        target = self.solver.clamp(tentative, section.size)
        snapped = self.solver.find_nearest_free(target, section.size, exclude_id=section.id)
        if snapped is None:
            LOGGER.debug("No slot near %s for %s; keeping %s", tentative, section.id, section.position)
            return None
        section.position = snapped
        return snapped

    def pointer_up(self) -> Optional[Section]:
        """Commit the last snapped position and return to idle."""

        if not self.is_dragging or self.section_id is None:
            return None
        section_id = self.section_id
        self.state = DragState.IDLE
        self.section_id = None
        self._offset = (0.0, 0.0)
        section = self._find(section_id)
        self.grid.rebuild(self._sections())
        LOGGER.info("Drag committed: %s at %s", section.id, (section.position.row, section.position.col))
        if self._on_commit is not None:
            self._on_commit(section)
        return section

    def blur(self) -> Optional[Section]:
        """Focus loss finalizes like a release; the last snapped position wins."""
        return self.pointer_up()
