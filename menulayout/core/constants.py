"""Shared constants and enumerations for the layout engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class SectionKind(str, Enum):
    """All supported section kinds on the designer grid."""

    ITEMS = "items"
    CATEGORY = "category"
    AD = "ad"
    PROMOTION = "promotion"
    SPECIAL = "special"

    @property
    def is_structural(self) -> bool:
        return self in STRUCTURAL_KINDS


STRUCTURAL_KINDS = frozenset({SectionKind.ITEMS, SectionKind.CATEGORY})
CUSTOM_KINDS = frozenset({SectionKind.AD, SectionKind.PROMOTION, SectionKind.SPECIAL})


class LayoutType(str, Enum):
    """How item listings are rendered inside an items section."""

    LIST = "list"
    GRID = "grid"


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class FontWeight(str, Enum):
    NORMAL = "normal"
    BOLD = "bold"


class DragState(str, Enum):
    """States of the pointer drag state machine."""

    IDLE = "IDLE"
    DRAGGING = "DRAGGING"


DEFAULT_GRID_ROWS = 12
DEFAULT_GRID_COLS = 4
DEFAULT_CELL_SIZE = 48
DEFAULT_GRID_PADDING = 8

# Used when a stored section lacks a footprint.
DEFAULT_SECTION_SPAN: Tuple[int, int] = (1, 4)


@dataclass(frozen=True)
class Bounds:
    """Simple rectangle bounds helper."""

    rows: int
    cols: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def fits(self, row: int, col: int, row_span: int, col_span: int) -> bool:
        return (
            row >= 0
            and col >= 0
            and row + row_span <= self.rows
            and col + col_span <= self.cols
        )


DEFAULT_THEME: Dict[str, object] = {
    "background_color": "#f5f5f5",
    "card_color": "#ffffff",
    "text_color": "#1f2937",
    "primary_color": "#3b82f6",
    "elevation": 2,
    "border_radius": 8,
}

THEME_PRESETS: Dict[str, Dict[str, str]] = {
    "Default": {"background_color": "#f5f5f5", "card_color": "#ffffff", "text_color": "#1f2937", "primary_color": "#3b82f6"},
    "Dark": {"background_color": "#111827", "card_color": "#1f2937", "text_color": "#f9fafb", "primary_color": "#60a5fa"},
    "Warm": {"background_color": "#fef7ed", "card_color": "#ffffff", "text_color": "#92400e", "primary_color": "#f59e0b"},
    "Cool": {"background_color": "#f0f9ff", "card_color": "#ffffff", "text_color": "#164e63", "primary_color": "#0891b2"},
    "Nature": {"background_color": "#f7fee7", "card_color": "#ffffff", "text_color": "#365314", "primary_color": "#65a30d"},
    "Elegant": {"background_color": "#faf7ff", "card_color": "#ffffff", "text_color": "#581c87", "primary_color": "#9333ea"},
}

# Default footprint (row_span, col_span), label and content for each custom kind.
SECTION_PRESETS: Dict[SectionKind, Dict[str, object]] = {
    SectionKind.AD: {
        "label": "Advertisement",
        "size": (1, 4),
        "content": {
            "text": "Your Advertisement Here",
            "subtitle": "Promote your business",
            "background_color": "#10b981",
            "text_color": "#ffffff",
            "font_size": 16,
            "font_weight": "bold",
            "border_radius": 8,
            "padding": 16,
            "alignment": "center",
        },
    },
    SectionKind.PROMOTION: {
        "label": "Special Offer",
        "size": (1, 2),
        "content": {
            "text": "20% OFF TODAY ONLY",
            "subtitle": "Limited time offer",
            "background_color": "#f59e0b",
            "text_color": "#ffffff",
            "font_size": 18,
            "font_weight": "bold",
            "border_radius": 12,
            "padding": 20,
            "alignment": "center",
        },
    },
    SectionKind.SPECIAL: {
        "label": "Daily Special",
        "size": (1, 2),
        "content": {
            "text": "DAILY SPECIAL",
            "subtitle": "Today's featured item",
            "background_color": "#8b5cf6",
            "text_color": "#ffffff",
            "font_size": 16,
            "font_weight": "bold",
            "border_radius": 8,
            "padding": 16,
            "alignment": "center",
        },
    },
}

CONTENT_TEMPLATES: Dict[str, Dict[str, object]] = {
    "20% Off Sale": {
        "text": "20% OFF TODAY ONLY",
        "subtitle": "Use code: SAVE20",
        "background_color": "#ef4444",
        "text_color": "#ffffff",
        "font_size": 18,
        "font_weight": "bold",
        "border_radius": 12,
        "padding": 20,
        "alignment": "center",
    },
    "New Item Alert": {
        "text": "NEW ITEM ALERT",
        "subtitle": "Check out our latest addition",
        "background_color": "#10b981",
        "text_color": "#ffffff",
        "font_size": 16,
        "font_weight": "bold",
        "border_radius": 8,
        "padding": 16,
        "alignment": "center",
    },
    "Daily Special": {
        "text": "TODAY'S SPECIAL",
        "subtitle": "Limited availability",
        "background_color": "#8b5cf6",
        "text_color": "#ffffff",
        "font_size": 16,
        "font_weight": "bold",
        "border_radius": 8,
        "padding": 16,
        "alignment": "center",
    },
}

CATEGORY_HEADER_STYLE: Dict[str, object] = {
    "text_color": "#ffffff",
    "font_size": 18,
    "font_weight": "bold",
    "padding": 12,
    "alignment": "left",
}
