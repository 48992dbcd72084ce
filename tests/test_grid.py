import unittest

from menulayout.core.constants import SectionKind
from menulayout.core.exceptions import BoundsViolation, OccupancyConflict
from menulayout.core.models import GridPosition, GridSize, Section
from menulayout.engine.grid import GridConfig, GridModel
from menulayout.engine.validator import LayoutValidator


def make_section(section_id: str, row: int, col: int, row_span: int = 1, col_span: int = 1) -> Section:
    return Section(
        id=section_id,
        kind=SectionKind.AD,
        position=GridPosition(row, col),
        size=GridSize(row_span, col_span),
        editable=True,
    )


class GridConfigTests(unittest.TestCase):
    def test_defaults_match_designer_canvas(self) -> None:
        config = GridConfig()
        self.assertEqual((config.rows, config.cols, config.cell_size, config.padding), (12, 4, 48, 8))

    def test_grid_to_pixel_includes_padding(self) -> None:
        config = GridConfig()
        self.assertEqual(config.grid_to_pixel(0, 0), (8, 8))
        self.assertEqual(config.grid_to_pixel(2, 3), (3 * 48 + 8, 2 * 48 + 8))

    def test_pixel_to_grid_floors_inside_cell(self) -> None:
        config = GridConfig()
        self.assertEqual(config.pixel_to_grid(8, 8), GridPosition(0, 0))
        self.assertEqual(config.pixel_to_grid(8 + 47, 8 + 95), GridPosition(1, 0))

    def test_pixel_to_grid_may_leave_grid(self) -> None:
        config = GridConfig()
        self.assertEqual(config.pixel_to_grid(0, 0), GridPosition(-1, -1))
        self.assertEqual(config.pixel_to_grid(8 + 48 * 10, 8), GridPosition(0, 10))

    def test_rejects_empty_grid(self) -> None:
        with self.assertRaises(ValueError):
            GridConfig(rows=0, cols=4)


class GridModelTests(unittest.TestCase):
    def test_rebuild_marks_every_footprint_cell(self) -> None:
        grid = GridModel()
        grid.rebuild([make_section("a", 1, 1, 2, 2)])
        self.assertEqual(grid.occupancy.footprint("a"), [(1, 1), (1, 2), (2, 1), (2, 2)])
        self.assertEqual(grid.occupancy.occupied_count, 4)
        self.assertTrue(grid.cells()[1][2].occupied)
        self.assertEqual(grid.cells()[1][2].occupant_id, "a")
        self.assertFalse(grid.cells()[0][0].occupied)

    def test_rebuild_rejects_overlap_and_keeps_previous_map(self) -> None:
        grid = GridModel()
        grid.rebuild([make_section("a", 0, 0, 1, 2)])
        with self.assertRaises(OccupancyConflict):
            grid.rebuild([make_section("a", 0, 0, 1, 2), make_section("b", 0, 1)])
        self.assertEqual(grid.occupancy.owners_by_section(), {"a": 2})

    def test_rebuild_rejects_out_of_bounds(self) -> None:
        grid = GridModel()
        with self.assertRaises(BoundsViolation):
            grid.rebuild([make_section("a", 11, 0, 2, 1)])
        with self.assertRaises(BoundsViolation):
            grid.rebuild([make_section("b", 0, 3, 1, 2)])

    def test_rebuild_rejects_empty_footprint(self) -> None:
        grid = GridModel()
        with self.assertRaises(BoundsViolation):
            grid.rebuild([make_section("a", 0, 0, 0, 1)])

    def test_cells_has_grid_shape(self) -> None:
        grid = GridModel(GridConfig(rows=3, cols=5))
        cells = grid.cells()
        self.assertEqual(len(cells), 3)
        self.assertTrue(all(len(row) == 5 for row in cells))


class LayoutValidatorTests(unittest.TestCase):
    def test_valid_layout(self) -> None:
        validator = LayoutValidator()
        result = validator.validate([make_section("a", 0, 0, 1, 4), make_section("b", 1, 0)])
        self.assertTrue(result.ok)
        self.assertEqual(result.messages, [])

    def test_collects_every_failed_check(self) -> None:
        validator = LayoutValidator()
        sections = [
            make_section("a", 0, 0, 1, 2),
            make_section("a", 0, 1),
            make_section("c", 12, 0),
        ]
        result = validator.validate(sections)
        self.assertFalse(result.ok)
        self.assertEqual(len(result.messages), 3)

    def test_reports_missing_category_reference(self) -> None:
        validator = LayoutValidator()
        header = Section(
            id="category-9",
            kind=SectionKind.CATEGORY,
            position=GridPosition(0, 0),
            size=GridSize(1, 4),
            category_id="9",
        )
        result = validator.validate([header], category_ids=["1"])
        self.assertFalse(result.ok)
        self.assertIn("category-9", result.messages[0])


if __name__ == "__main__":
    unittest.main()
