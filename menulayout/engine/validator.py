"""Deterministic invariant checks for a section list."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..core.exceptions import ValidationError
from ..core.models import Section
from ..utils.logger import get_logger
from .grid import GridConfig


LOGGER = get_logger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str] = field(default_factory=list)


class LayoutValidator:
    """Runs the no-overlap, bounds and reference checks over a layout."""

    def __init__(self, config: Optional[GridConfig] = None) -> None:
        self.config = config or GridConfig()
        self.bounds = self.config.bounds()

    def validate(
        self,
        sections: Sequence[Section],
        category_ids: Optional[Iterable[str]] = None,
    ) -> ValidationResult:
        messages: List[str] = []
        checks = [
            lambda: self._check_unique_ids(sections),
            lambda: self._check_bounds(sections),
            lambda: self._check_no_overlap(sections),
        ]
        if category_ids is not None:
            known = set(category_ids)
            checks.append(lambda: self._check_references(sections, known))
        for check in checks:
            try:
                check()
            except ValidationError as exc:
                messages.append(str(exc))
        if messages:
            LOGGER.warning("Layout validation failed: %s", messages)
        return ValidationResult(ok=not messages, messages=messages)

    def cell_owners(self, sections: Sequence[Section]) -> Dict[Tuple[int, int], List[str]]:
        """Every in-bounds cell mapped to all sections covering it."""
        owners: Dict[Tuple[int, int], List[str]] = {}
        for section in sections:
            for row, col in section.cells:
                if self.bounds.contains(row, col):
                    owners.setdefault((row, col), []).append(section.id)
        return owners

    def _check_unique_ids(self, sections: Sequence[Section]) -> None:
        seen: Set[str] = set()
        for section in sections:
            if section.id in seen:
                raise ValidationError(f"Duplicate section id {section.id!r}")
            seen.add(section.id)

    def _check_bounds(self, sections: Sequence[Section]) -> None:
        for section in sections:
            pos, size = section.position, section.size
            if size.row_span < 1 or size.col_span < 1:
                raise ValidationError(f"Section {section.id!r} has empty footprint")
            if not self.bounds.fits(pos.row, pos.col, size.row_span, size.col_span):
                raise ValidationError(
                    f"Section {section.id!r} at {(pos.row, pos.col)} exceeds grid bounds"
                )

    def _check_no_overlap(self, sections: Sequence[Section]) -> None:
        for cell, ids in sorted(self.cell_owners(sections).items()):
            if len(ids) > 1:
                raise ValidationError(f"Cell {cell} claimed by {ids}")

    def _check_references(self, sections: Sequence[Section], known: Set[str]) -> None:
        for section in sections:
            if section.is_structural and section.category_id not in known:
                raise ValidationError(
                    f"Section {section.id!r} references missing category {section.category_id!r}"
                )
