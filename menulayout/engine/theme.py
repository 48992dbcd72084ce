"""Propagate global theme tokens into section content."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

from ..core.constants import THEME_PRESETS, SectionKind
from ..core.models import Section, SectionContent, ThemeTokens
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

LIGHT_TEXT = "#ffffff"
DARK_TEXT = "#111827"


class ThemeScope(str, Enum):
    """Which sections a theme change restyles."""

    ALL = "ALL"
    STRUCTURAL = "STRUCTURAL"


def contrast_text_color(background: str) -> str:
    """Pick white or near-black text for a ``#rrggbb`` background."""

    value = background.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    try:
        red, green, blue = (int(value[i : i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return LIGHT_TEXT
    luminance = (0.299 * red + 0.587 * green + 0.114 * blue) / 255
    return DARK_TEXT if luminance > 0.6 else LIGHT_TEXT


def merge_tokens(tokens: ThemeTokens, overrides: Mapping[str, Any]) -> ThemeTokens:
    """Return new tokens with known fields replaced; unknown keys are ignored."""

    known = {f.name for f in dataclasses.fields(ThemeTokens)}
    updates = {key: value for key, value in overrides.items() if key in known and value is not None}
    ignored = sorted(set(overrides) - known)
    if ignored:
        LOGGER.debug("Ignoring unknown theme keys: %s", ignored)
    return dataclasses.replace(tokens, **updates)


def preset_tokens(name: str, base: ThemeTokens) -> ThemeTokens:
    try:
        preset = THEME_PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown theme preset {name!r}; expected one of {sorted(THEME_PRESETS)}") from None
    return merge_tokens(base, preset)


class ThemeApplier:
    """Restyle section content from theme tokens.

    Only colour and corner-radius fields change. Position, size, text,
    subtitle, kind and editability are carried over untouched, and sections
    without content pass through as-is.
    """

    def __init__(self, scope: ThemeScope = ThemeScope.ALL) -> None:
        self.scope = scope

    def apply(self, sections: Sequence[Section], tokens: ThemeTokens) -> List[Section]:
        themed: List[Section] = []
        for section in sections:
            if section.content is None or not self._in_scope(section):
                themed.append(section)
                continue
            themed.append(
                dataclasses.replace(section, content=self._restyle(section.content, tokens))
            )
        return themed

    def _in_scope(self, section: Section) -> bool:
        if self.scope == ThemeScope.STRUCTURAL:
            return section.kind == SectionKind.CATEGORY
        return True

    @staticmethod
    def _restyle(content: SectionContent, tokens: ThemeTokens) -> SectionContent:
        changes: Dict[str, Any] = {
            "background_color": tokens.primary_color,
            "text_color": contrast_text_color(tokens.primary_color),
            "border_radius": tokens.border_radius,
        }
        return dataclasses.replace(content, **changes)
