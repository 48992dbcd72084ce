"""JSON document codec for :class:`LayoutConfig`.

Documents use the camelCase shape shared with the presentation layer.
Decoding is lenient: every field falls back to its default on its own, and
the snake_case keys written by older designer builds are accepted as aliases.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from ..core.constants import (
    DEFAULT_SECTION_SPAN,
    DEFAULT_THEME,
    Alignment,
    FontWeight,
    LayoutType,
    SectionKind,
)
from ..core.exceptions import MalformedConfig
from ..core.models import (
    GridPosition,
    GridSize,
    LayoutConfig,
    Section,
    SectionContent,
    ThemeTokens,
)
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")

THEME_KEYS = {
    "background_color": ("backgroundColor", "bg_color", "background_color"),
    "card_color": ("cardColor", "card_color"),
    "text_color": ("textColor", "text_color"),
    "primary_color": ("primaryColor", "primary_color"),
    "elevation": ("elevation", "card_elevation"),
    "border_radius": ("borderRadius", "border_radius"),
}


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


class ConfigDecoder:
    """Decode one stored document, collecting a note for every substituted field."""

    def __init__(self, menu_key: str) -> None:
        self.menu_key = menu_key
        self.issues: List[str] = []

    def _coerce(self, where: str, value: Any, convert: Callable[[Any], T], default: T) -> T:
        if value is None:
            return default
        try:
            return convert(value)
        except (TypeError, ValueError):
            self.issues.append(f"{where}: invalid value {value!r}, using {default!r}")
            return default

    def decode(self, document: Any) -> LayoutConfig:
        if not isinstance(document, Mapping):
            raise MalformedConfig(
                f"Layout document for {self.menu_key!r} is {type(document).__name__}, expected an object"
            )
        raw_theme = _pick(document, "theme", "styling")
        sections_raw = document.get("sections")
        if sections_raw is not None and not isinstance(sections_raw, Sequence):
            self.issues.append("sections: not a list, using []")
            sections_raw = None
        config = LayoutConfig(
            menu_key=str(_pick(document, "menuKey", "selectedMenu", "menu_key") or self.menu_key),
            layout_type=self._coerce(
                "layoutType", _pick(document, "layoutType", "layout_type"), LayoutType, LayoutType.LIST
            ),
            columns=max(1, self._coerce("columns", document.get("columns"), int, 1)),
            theme=self.decode_theme(raw_theme),
            sections=[],
            version=self._coerce("version", document.get("version"), int, 0),
        )
        for index, raw in enumerate(sections_raw or []):
            section = self.decode_section(index, raw)
            if section is not None:
                config.sections.append(section)
        for issue in self.issues:
            LOGGER.warning("Layout %s: %s", self.menu_key, issue)
        return config

    def decode_theme(self, raw: Any) -> ThemeTokens:
        if not isinstance(raw, Mapping):
            if raw is not None:
                self.issues.append("theme: not an object, using defaults")
            return ThemeTokens()
        values: Dict[str, Any] = {}
        for field_name, keys in THEME_KEYS.items():
            default = DEFAULT_THEME[field_name]
            convert: Callable[[Any], Any] = int if isinstance(default, int) else str
            values[field_name] = self._coerce(f"theme.{field_name}", _pick(raw, *keys), convert, default)
        return ThemeTokens(**values)

    def decode_section(self, index: int, raw: Any) -> Optional[Section]:
        where = f"sections[{index}]"
        if not isinstance(raw, Mapping):
            self.issues.append(f"{where}: not an object, dropped")
            return None
        section_id = raw.get("id")
        kind = self._coerce(f"{where}.kind", _pick(raw, "kind", "type"), SectionKind, None)
        if not section_id or kind is None:
            self.issues.append(f"{where}: missing id or kind, dropped")
            return None
        position = raw.get("gridPosition") if isinstance(raw.get("gridPosition"), Mapping) else {}
        size = raw.get("gridSize") if isinstance(raw.get("gridSize"), Mapping) else {}
        category_id = _pick(raw, "categoryId", "category_id")
        editable = raw.get("editable")
        return Section(
            id=str(section_id),
            kind=kind,
            position=GridPosition(
                row=self._coerce(f"{where}.row", position.get("row"), int, 0),
                col=self._coerce(f"{where}.col", position.get("col"), int, 0),
            ),
            size=GridSize(
                row_span=self._coerce(f"{where}.rowSpan", size.get("rowSpan"), int, DEFAULT_SECTION_SPAN[0]),
                col_span=self._coerce(f"{where}.colSpan", size.get("colSpan"), int, DEFAULT_SECTION_SPAN[1]),
            ),
            content=self.decode_content(where, raw.get("content")),
            category_id=None if category_id is None else str(category_id),
            editable=(not kind.is_structural) if editable is None else bool(editable),
            title=raw.get("title"),
        )

    def decode_content(self, where: str, raw: Any) -> Optional[SectionContent]:
        if raw is None:
            return None
        if not isinstance(raw, Mapping):
            self.issues.append(f"{where}.content: not an object, dropped")
            return None
        where = f"{where}.content"
        return SectionContent(
            text=str(raw.get("text") or ""),
            subtitle=raw.get("subtitle"),
            image_url=_pick(raw, "imageUrl", "image_url"),
            background_color=str(_pick(raw, "backgroundColor", "background_color") or DEFAULT_THEME["card_color"]),
            text_color=str(_pick(raw, "textColor", "text_color") or DEFAULT_THEME["text_color"]),
            font_size=self._coerce(f"{where}.fontSize", _pick(raw, "fontSize", "font_size"), int, 16),
            font_weight=self._coerce(
                f"{where}.fontWeight", _pick(raw, "fontWeight", "font_weight"), FontWeight, FontWeight.BOLD
            ),
            border_radius=self._coerce(
                f"{where}.borderRadius", _pick(raw, "borderRadius", "border_radius"), int, 8
            ),
            padding=self._coerce(f"{where}.padding", raw.get("padding"), int, 16),
            alignment=self._coerce(f"{where}.alignment", raw.get("alignment"), Alignment, Alignment.CENTER),
        )


def config_from_dict(document: Any, menu_key: str) -> LayoutConfig:
    """Decode a stored document; raises :class:`MalformedConfig` only for non-objects."""
    return ConfigDecoder(menu_key).decode(document)


def content_to_dict(content: SectionContent) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "text": content.text,
        "backgroundColor": content.background_color,
        "textColor": content.text_color,
        "fontSize": content.font_size,
        "fontWeight": content.font_weight.value,
        "borderRadius": content.border_radius,
        "padding": content.padding,
        "alignment": content.alignment.value,
    }
    if content.subtitle is not None:
        payload["subtitle"] = content.subtitle
    if content.image_url is not None:
        payload["imageUrl"] = content.image_url
    return payload


def section_to_dict(section: Section) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": section.id,
        "kind": section.kind.value,
        "gridPosition": {"row": section.position.row, "col": section.position.col},
        "gridSize": {"rowSpan": section.size.row_span, "colSpan": section.size.col_span},
        "editable": section.editable,
    }
    if section.content is not None:
        payload["content"] = content_to_dict(section.content)
    if section.category_id is not None:
        payload["categoryId"] = section.category_id
    if section.title is not None:
        payload["title"] = section.title
    return payload


def theme_to_dict(theme: ThemeTokens) -> Dict[str, Any]:
    return {
        "backgroundColor": theme.background_color,
        "cardColor": theme.card_color,
        "textColor": theme.text_color,
        "primaryColor": theme.primary_color,
        "elevation": theme.elevation,
        "borderRadius": theme.border_radius,
    }


def config_to_dict(config: LayoutConfig) -> Dict[str, Any]:
    return {
        "layoutType": config.layout_type.value,
        "columns": config.columns,
        "theme": theme_to_dict(config.theme),
        "sections": [section_to_dict(section) for section in config.sections],
        "menuKey": config.menu_key,
        "version": config.version,
    }
