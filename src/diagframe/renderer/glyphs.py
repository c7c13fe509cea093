"""
Box-drawing vocabulary for each output theme.

The tables are built once at import; drawing code asks for a role
(``glyphs.col_separator``, ``underline.label_start``) and never branches on
the theme cell by cell.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from diagframe.renderer.stylesheet import ElementStyle

__all__ = ["OutputTheme", "Glyphs", "UnderlineParts", "GLYPHS", "underline_parts"]


class OutputTheme(StrEnum):
    ASCII = "ascii"
    UNICODE = "unicode"


@dataclass(frozen=True, slots=True)
class Glyphs:
    col_separator: str
    # placed at the separator column; two cells wide in the unicode theme
    col_separator_start: str
    col_separator_end: str
    multi_suggestion_separator: str
    file_start: str
    secondary_file_start: str
    note_separator: str
    note_separator_cont: str
    diff: str
    line_separator: str
    # True: drawn inside the gutter, two columns left of the separator
    line_separator_in_gutter: bool
    margin: str
    multiline_primary: str
    multiline_secondary: str


@dataclass(frozen=True, slots=True)
class UnderlineParts:
    style: ElementStyle
    underline: str
    label_start: str
    vertical_text_line: str
    multiline_vertical: str
    multiline_horizontal: str
    multiline_whole_line: str
    multiline_start_down: str
    bottom_right: str
    top_left: str
    top_right_flat: str
    bottom_left: str
    multiline_end_up: str
    multiline_end_same_line: str
    multiline_bottom_right_with_text: str


GLYPHS: dict[OutputTheme, Glyphs] = {
    OutputTheme.ASCII: Glyphs(
        col_separator="|",
        col_separator_start="|",
        col_separator_end="|",
        multi_suggestion_separator="|",
        file_start="--> ",
        secondary_file_start="::: ",
        note_separator="= ",
        note_separator_cont="= ",
        diff="~",
        line_separator="...",
        line_separator_in_gutter=False,
        margin="...",
        multiline_primary="|",
        multiline_secondary="|",
    ),
    OutputTheme.UNICODE: Glyphs(
        col_separator="│",
        col_separator_start="╭╴",
        col_separator_end="╰╴",
        multi_suggestion_separator="├╴",
        file_start=" ╭▸ ",
        secondary_file_start=" ⸬  ",
        note_separator="╰ ",
        note_separator_cont="├ ",
        diff="±",
        line_separator="‡",
        line_separator_in_gutter=True,
        margin="…",
        multiline_primary="┃",
        multiline_secondary="│",
    ),
}


def _parts(style: ElementStyle, chars: str) -> UnderlineParts:
    (
        underline,
        label_start,
        vertical_text_line,
        multiline_vertical,
        multiline_horizontal,
        multiline_whole_line,
        multiline_start_down,
        bottom_right,
        top_left,
        top_right_flat,
        bottom_left,
        multiline_end_up,
        multiline_end_same_line,
        multiline_bottom_right_with_text,
    ) = chars
    return UnderlineParts(
        style=style,
        underline=underline,
        label_start=label_start,
        vertical_text_line=vertical_text_line,
        multiline_vertical=multiline_vertical,
        multiline_horizontal=multiline_horizontal,
        multiline_whole_line=multiline_whole_line,
        multiline_start_down=multiline_start_down,
        bottom_right=bottom_right,
        top_left=top_left,
        top_right_flat=top_right_flat,
        bottom_left=bottom_left,
        multiline_end_up=multiline_end_up,
        multiline_end_same_line=multiline_end_same_line,
        multiline_bottom_right_with_text=multiline_bottom_right_with_text,
    )


# keyed by (theme, is_primary)
_UNDERLINES: dict[tuple[OutputTheme, bool], UnderlineParts] = {
    (OutputTheme.ASCII, True): _parts(ElementStyle.UNDERLINE_PRIMARY, "^^||_/^| ^|^^|"),
    (OutputTheme.ASCII, False): _parts(ElementStyle.UNDERLINE_SECONDARY, "--||_/-| -|--|"),
    (OutputTheme.UNICODE, True): _parts(ElementStyle.UNDERLINE_PRIMARY, "━┯│┃━┏╿┙┏┛┗╿┛┥"),
    (OutputTheme.UNICODE, False): _parts(ElementStyle.UNDERLINE_SECONDARY, "─┬││─┌│┘┌┘└│┘┤"),
}


def underline_parts(theme: OutputTheme, is_primary: bool) -> UnderlineParts:
    return _UNDERLINES[(theme, is_primary)]
