"""
Semantic style tags for canvas cells and the stylesheet that turns them into
rich ``Style`` objects.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from enum import Enum
from functools import lru_cache
from typing import Any

from rich.style import Style

from diagframe.level import LevelKind

__all__ = ["ElementStyle", "Stylesheet", "parse_style"]


class ElementStyle(Enum):
    MAIN_HEADER_MSG = "main_header_msg"
    HEADER_MSG = "header_msg"
    LINE_AND_COLUMN = "line_and_column"
    LINE_NUMBER = "line_number"
    QUOTATION = "quotation"
    UNDERLINE_PRIMARY = "underline_primary"
    UNDERLINE_SECONDARY = "underline_secondary"
    LABEL_PRIMARY = "label_primary"
    LABEL_SECONDARY = "label_secondary"
    NO_STYLE = "no_style"
    ADDITION = "addition"
    REMOVAL = "removal"
    LEVEL_ERROR = "level_error"
    LEVEL_WARNING = "level_warning"
    LEVEL_INFO = "level_info"
    LEVEL_NOTE = "level_note"
    LEVEL_HELP = "level_help"

    @classmethod
    def for_level(cls, kind: LevelKind) -> ElementStyle:
        return _LEVEL_STYLES[kind]

    @property
    def is_primary(self) -> bool:
        return self in (ElementStyle.UNDERLINE_PRIMARY, ElementStyle.LABEL_PRIMARY)


_LEVEL_STYLES: dict[LevelKind, ElementStyle] = {
    LevelKind.ERROR: ElementStyle.LEVEL_ERROR,
    LevelKind.WARNING: ElementStyle.LEVEL_WARNING,
    LevelKind.INFO: ElementStyle.LEVEL_INFO,
    LevelKind.NOTE: ElementStyle.LEVEL_NOTE,
    LevelKind.HELP: ElementStyle.LEVEL_HELP,
}
_STYLE_LEVELS = {v: k for k, v in _LEVEL_STYLES.items()}


@lru_cache(maxsize=256)
def parse_style(definition: str) -> Style:
    """Parse a rich style definition; the empty string is the null style."""
    if not definition.strip():
        return Style.null()
    return Style.parse(definition)


@dataclass(frozen=True, slots=True)
class Stylesheet:
    """
    Rich style definitions (``"bold bright_red"``, ``"#ff8800 on black"``) for
    every semantic role. Empty strings render as plain text.
    """

    error: str = ""
    warning: str = ""
    info: str = ""
    note: str = ""
    help: str = ""
    line_num: str = ""
    emphasis: str = ""
    none: str = ""
    context: str = ""
    addition: str = ""
    removal: str = ""

    def __post_init__(self) -> None:
        # fail at configuration time, not halfway through a render
        for f in fields(self):
            parse_style(getattr(self, f.name))

    @classmethod
    def plain(cls) -> Stylesheet:
        return cls()

    @classmethod
    def styled(cls, *, legacy_windows: bool | None = None) -> Stylesheet:
        """
        The coloured palette. Legacy Windows consoles render dark blue and
        yellow poorly, so there blue becomes bright cyan and yellow bright yellow.
        """
        if legacy_windows is None:
            legacy_windows = os.name == "nt"
        bright_blue = "bold bright_cyan" if legacy_windows else "bold bright_blue"
        return cls(
            error="bold bright_red",
            warning="bold bright_yellow" if legacy_windows else "bold yellow",
            info=bright_blue,
            note="bold bright_green",
            help="bold bright_cyan",
            line_num=bright_blue,
            emphasis="bold bright_white" if legacy_windows else "bold",
            none="",
            context=bright_blue,
            addition="bright_green",
            removal="bright_red",
        )

    def evolve(self, **overrides: Any) -> Stylesheet:
        _validate_override_keys(Stylesheet, overrides)
        return replace(self, **overrides)

    def level_style(self, kind: LevelKind) -> Style:
        return parse_style(getattr(self, kind.value))

    def resolve(self, element: ElementStyle, level: LevelKind) -> Style:
        """The rich style for ``element`` inside a group whose primary level is ``level``."""
        if element in (ElementStyle.UNDERLINE_PRIMARY, ElementStyle.LABEL_PRIMARY):
            return self.level_style(level)
        if element in _STYLE_LEVELS:
            return self.level_style(_STYLE_LEVELS[element])
        return parse_style(getattr(self, _FIELD_FOR[element]))


_FIELD_FOR: dict[ElementStyle, str] = {
    ElementStyle.ADDITION: "addition",
    ElementStyle.REMOVAL: "removal",
    ElementStyle.LINE_AND_COLUMN: "none",
    ElementStyle.LINE_NUMBER: "line_num",
    ElementStyle.QUOTATION: "none",
    ElementStyle.MAIN_HEADER_MSG: "emphasis",
    ElementStyle.UNDERLINE_SECONDARY: "context",
    ElementStyle.LABEL_SECONDARY: "context",
    ElementStyle.HEADER_MSG: "none",
    ElementStyle.NO_STYLE: "none",
}


def _validate_override_keys(cls: type, overrides: Mapping[str, Any] | None) -> None:
    if not overrides:
        return
    allowed = {f.name for f in fields(cls) if f.init}
    unknown = [k for k in overrides.keys() if k not in allowed]
    if unknown:
        raise KeyError(f"Unknown {cls.__name__} override keys: " + ", ".join(sorted(unknown)))
