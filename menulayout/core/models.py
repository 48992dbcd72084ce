"""Data models supporting the layout engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .constants import (
    DEFAULT_THEME,
    Alignment,
    FontWeight,
    LayoutType,
    SectionKind,
)


@dataclass(frozen=True)
class GridPosition:
    """Top-left grid cell of a section."""

    row: int
    col: int


@dataclass(frozen=True)
class GridSize:
    """Footprint of a section in grid cells."""

    row_span: int
    col_span: int


@dataclass
class SectionContent:
    """Visual payload of a category header or custom section."""

    text: str
    background_color: str
    text_color: str
    font_size: int = 16
    font_weight: FontWeight = FontWeight.BOLD
    border_radius: int = 8
    padding: int = 16
    alignment: Alignment = Alignment.CENTER
    subtitle: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_preset(cls, values: Dict[str, Any]) -> "SectionContent":
        return cls(
            text=str(values["text"]),
            subtitle=values.get("subtitle"),
            image_url=values.get("image_url"),
            background_color=str(values["background_color"]),
            text_color=str(values["text_color"]),
            font_size=int(values.get("font_size", 16)),
            font_weight=FontWeight(values.get("font_weight", FontWeight.BOLD.value)),
            border_radius=int(values.get("border_radius", 8)),
            padding=int(values.get("padding", 16)),
            alignment=Alignment(values.get("alignment", Alignment.CENTER.value)),
        )


@dataclass
class Section:
    """A rectangular block placed on the grid."""

    id: str
    kind: SectionKind
    position: GridPosition
    size: GridSize
    content: Optional[SectionContent] = None
    category_id: Optional[str] = None
    editable: bool = False
    title: Optional[str] = None

    @property
    def is_structural(self) -> bool:
        return self.kind.is_structural

    @property
    def is_custom(self) -> bool:
        return self.editable

    @property
    def cells(self) -> List[Tuple[int, int]]:
        return [
            (self.position.row + dr, self.position.col + dc)
            for dr in range(self.size.row_span)
            for dc in range(self.size.col_span)
        ]


@dataclass
class ThemeTokens:
    """Global style tokens propagated into section content."""

    background_color: str = str(DEFAULT_THEME["background_color"])
    card_color: str = str(DEFAULT_THEME["card_color"])
    text_color: str = str(DEFAULT_THEME["text_color"])
    primary_color: str = str(DEFAULT_THEME["primary_color"])
    elevation: int = int(DEFAULT_THEME["elevation"])  # type: ignore[arg-type]
    border_radius: int = int(DEFAULT_THEME["border_radius"])  # type: ignore[arg-type]


@dataclass
class LayoutConfig:
    """The full designer state for one menu."""

    menu_key: str
    layout_type: LayoutType = LayoutType.LIST
    columns: int = 1
    theme: ThemeTokens = field(default_factory=ThemeTokens)
    sections: List[Section] = field(default_factory=list)
    version: int = 0

    def section(self, section_id: str) -> Optional[Section]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None


@dataclass
class Category:
    """Catalog category, owned by the external catalog collaborators."""

    id: str
    name: str
    position: int = 0
    is_active: bool = True
    color: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None


@dataclass
class MenuItem:
    """Catalog item, owned by the external catalog collaborators."""

    id: str
    name: str
    price: float = 0.0
    description: str = ""
    category_id: Optional[str] = None
    is_active: bool = True
    menu_name: str = "Default Menu"
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PlacementIssue:
    """A non-fatal placement failure reported for one section."""

    section_id: str
    reason: str
    message: str
    category_id: Optional[str] = None
