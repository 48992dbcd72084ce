import unittest
from unittest.mock import MagicMock

from menulayout.core.constants import DragState, SectionKind
from menulayout.core.exceptions import DragStateError
from menulayout.core.models import GridPosition, GridSize, Section
from menulayout.engine.drag import DragController
from menulayout.engine.grid import GridModel


class DragControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sections = [
            Section(
                id="category-1",
                kind=SectionKind.CATEGORY,
                position=GridPosition(0, 0),
                size=GridSize(1, 4),
                category_id="1",
            ),
            Section(
                id="promotion-1",
                kind=SectionKind.PROMOTION,
                position=GridPosition(2, 0),
                size=GridSize(1, 2),
                editable=True,
            ),
        ]
        self.grid = GridModel()
        self.grid.rebuild(self.sections)
        self.on_commit = MagicMock()
        self.controller = DragController(self.grid, lambda: self.sections, on_commit=self.on_commit)

    def pixel(self, row: int, col: int):
        return self.grid.config.grid_to_pixel(row, col)

    def test_drag_past_right_edge_is_clamped(self) -> None:
        self.assertTrue(self.controller.pointer_down("promotion-1", *self.pixel(2, 0)))
        snapped = self.controller.pointer_move(*self.pixel(5, 3))
        self.assertEqual(snapped, GridPosition(5, 2))
        committed = self.controller.pointer_up()
        self.assertEqual(committed.position, GridPosition(5, 2))
        self.assertEqual(self.grid.occupancy.footprint("promotion-1"), [(5, 2), (5, 3)])
        self.on_commit.assert_called_once_with(committed)

    def test_grab_offset_is_preserved(self) -> None:
        x, y = self.pixel(2, 0)
        self.controller.pointer_down("promotion-1", x + 60, y + 10)
        snapped = self.controller.pointer_move(x + 60, y + 10 + 48 * 3)
        self.assertEqual(snapped, GridPosition(5, 0))

    def test_structural_sections_cannot_be_dragged(self) -> None:
        self.assertFalse(self.controller.pointer_down("category-1", *self.pixel(0, 0)))
        self.assertEqual(self.controller.state, DragState.IDLE)
        self.assertIsNone(self.controller.pointer_move(*self.pixel(5, 0)))

    def test_unknown_section_raises(self) -> None:
        with self.assertRaises(DragStateError):
            self.controller.pointer_down("missing", 0, 0)

    def test_snapping_avoids_occupied_cells(self) -> None:
        self.controller.pointer_down("promotion-1", *self.pixel(2, 0))
        snapped = self.controller.pointer_move(*self.pixel(0, 0))
        self.assertEqual(snapped, GridPosition(1, 0))
        self.controller.pointer_up()
        self.grid.rebuild(self.sections)

    def test_own_footprint_does_not_block(self) -> None:
        self.controller.pointer_down("promotion-1", *self.pixel(2, 0))
        self.assertEqual(self.controller.pointer_move(*self.pixel(2, 1)), GridPosition(2, 1))

    def test_occupancy_is_rebuilt_only_on_release(self) -> None:
        self.controller.pointer_down("promotion-1", *self.pixel(2, 0))
        self.controller.pointer_move(*self.pixel(7, 0))
        self.assertEqual(self.grid.occupancy.owner(2, 0), "promotion-1")
        self.controller.pointer_up()
        self.assertIsNone(self.grid.occupancy.owner(2, 0))
        self.assertEqual(self.grid.occupancy.owner(7, 0), "promotion-1")

    def test_blur_finalizes_like_release(self) -> None:
        self.controller.pointer_down("promotion-1", *self.pixel(2, 0))
        self.controller.pointer_move(*self.pixel(9, 2))
        committed = self.controller.blur()
        self.assertEqual(committed.position, GridPosition(9, 2))
        self.assertEqual(self.controller.state, DragState.IDLE)
        self.assertIsNone(self.controller.pointer_up())

    def test_pointer_down_while_dragging_commits_previous_drag(self) -> None:
        second = Section(
            id="ad-1",
            kind=SectionKind.AD,
            position=GridPosition(8, 0),
            size=GridSize(1, 4),
            editable=True,
        )
        self.sections.append(second)
        self.grid.rebuild(self.sections)
        self.controller.pointer_down("promotion-1", *self.pixel(2, 0))
        self.controller.pointer_move(*self.pixel(4, 0))
        self.controller.pointer_down("ad-1", *self.pixel(8, 0))
        self.assertEqual(self.controller.section_id, "ad-1")
        self.assertEqual(self.on_commit.call_count, 1)
        self.assertEqual(self.sections[1].position, GridPosition(4, 0))

    def test_move_without_drag_is_ignored(self) -> None:
        self.assertIsNone(self.controller.pointer_move(100, 100))
        self.assertFalse(self.controller.is_dragging)


if __name__ == "__main__":
    unittest.main()
