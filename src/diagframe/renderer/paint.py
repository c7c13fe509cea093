"""
Theme-aware drawing primitives shared by the layout engine, the suggestion
renderer and the orchestrator: gutters, separators, code lines, origins.
"""

from __future__ import annotations

from enum import Enum

from diagframe.constants import ANONYMIZED_LINE_NUM
from diagframe.renderer.glyphs import GLYPHS, Glyphs, OutputTheme, UnderlineParts, underline_parts
from diagframe.renderer.margin import Margin
from diagframe.renderer.styled_buffer import StyledBuffer
from diagframe.renderer.stylesheet import ElementStyle
from diagframe.renderer.text import char_width, str_width
from diagframe.snippet import Origin

__all__ = ["TitleStyle", "Painter"]


class TitleStyle(Enum):
    MAIN_HEADER = "main_header"
    HEADER = "header"
    SECONDARY = "secondary"


class Painter:
    """Bound to one renderer configuration; owns the glyph lookups for its theme."""

    __slots__ = ("theme", "glyphs", "anonymized_line_numbers", "short_message", "_underlines")

    def __init__(
        self,
        theme: OutputTheme = OutputTheme.ASCII,
        anonymized_line_numbers: bool = False,
        short_message: bool = False,
    ) -> None:
        self.theme = theme
        self.glyphs: Glyphs = GLYPHS[theme]
        self.anonymized_line_numbers = anonymized_line_numbers
        self.short_message = short_message
        self._underlines = {
            True: underline_parts(theme, True),
            False: underline_parts(theme, False),
        }

    def underline(self, is_primary: bool) -> UnderlineParts:
        return self._underlines[is_primary]

    def maybe_anonymized(self, line_num: int, width: int) -> str:
        text = ANONYMIZED_LINE_NUM if self.anonymized_line_numbers else str(line_num)
        return text.rjust(width)

    # ---- separators -------------------------------------------------------------

    def draw_col_separator(self, buffer: StyledBuffer, line: int, col: int) -> None:
        buffer.puts(line, col, f"{self.glyphs.col_separator} ", ElementStyle.LINE_NUMBER)

    def draw_col_separator_no_space(self, buffer: StyledBuffer, line: int, col: int) -> None:
        buffer.puts(line, col, self.glyphs.col_separator, ElementStyle.LINE_NUMBER)

    def draw_col_separator_start(self, buffer: StyledBuffer, line: int, col: int) -> None:
        buffer.puts(line, col, self.glyphs.col_separator_start, ElementStyle.LINE_NUMBER)

    def draw_col_separator_end(self, buffer: StyledBuffer, line: int, col: int) -> None:
        buffer.puts(line, col, self.glyphs.col_separator_end, ElementStyle.LINE_NUMBER)

    def draw_note_separator(self, buffer: StyledBuffer, line: int, col: int, is_cont: bool) -> None:
        glyph = self.glyphs.note_separator_cont if is_cont else self.glyphs.note_separator
        buffer.puts(line, col, glyph, ElementStyle.LINE_NUMBER)

    def draw_line_separator(self, buffer: StyledBuffer, line: int, col: int) -> None:
        column = max(col - 2, 0) if self.glyphs.line_separator_in_gutter else 0
        buffer.puts(line, column, self.glyphs.line_separator, ElementStyle.LINE_NUMBER)

    def draw_multiline_line(
        self, buffer: StyledBuffer, line: int, offset: int, depth: int, style: ElementStyle
    ) -> None:
        glyph = self.glyphs.multiline_primary if style.is_primary else self.glyphs.multiline_secondary
        buffer.putc(line, offset + depth - 1, glyph, style)

    def draw_range(
        self,
        buffer: StyledBuffer,
        symbol: str,
        line: int,
        col_from: int,
        col_to: int,
        style: ElementStyle,
    ) -> None:
        for col in range(col_from, col_to):
            buffer.putc(line, col, symbol, style)

    # ---- rows -------------------------------------------------------------------

    def draw_line(
        self,
        buffer: StyledBuffer,
        source_string: str,
        line_index: int,
        line_offset: int,
        width_offset: int,
        code_offset: int,
        max_line_num_len: int,
        margin: Margin,
    ) -> int:
        """
        Draw one (already normalised) code line with its gutter, cut to the
        margin window. Returns the first display column actually shown.
        """
        line_len = str_width(source_string)
        left = margin.left(line_len)
        right = margin.right(line_len)

        start = 0
        skipped = 0
        while start < len(source_string):
            skipped += char_width(source_string[start])
            if skipped > left:
                break
            start += 1
        stop = start
        taken = 0
        while stop < len(source_string):
            taken += char_width(source_string[stop])
            if taken > right - left:
                break
            stop += 1
        code = source_string[start:stop]

        placeholder = self.glyphs.margin
        padding = str_width(placeholder)
        width_taken = 0
        chars_taken = 0
        if margin.was_cut_left():
            # the ellipsis covers the first few visible columns
            for ch in code:
                width_taken += char_width(ch)
                chars_taken += 1
                if width_taken >= padding:
                    break
            if width_taken > padding:
                left -= width_taken - padding
            buffer.puts(line_offset, code_offset, placeholder, ElementStyle.LINE_NUMBER)

        shown = code[chars_taken:]
        buffer.puts(line_offset, code_offset + width_taken, shown, ElementStyle.QUOTATION)

        if line_len > right:
            char_taken = 0
            width_inner = 0
            for ch in reversed(code):
                width_inner += char_width(ch)
                char_taken += 1
                if width_inner >= padding:
                    break
            buffer.puts(
                line_offset,
                max(code_offset + width_taken + len(shown) - char_taken, 0),
                placeholder,
                ElementStyle.LINE_NUMBER,
            )

        buffer.puts(
            line_offset, 0, self.maybe_anonymized(line_index, max_line_num_len), ElementStyle.LINE_NUMBER
        )
        self.draw_col_separator_no_space(buffer, line_offset, width_offset - 2)
        return left

    def render_origin(
        self, buffer: StyledBuffer, max_line_num_len: int, origin: Origin, offset: int
    ) -> None:
        """``--> path:line:col`` (or ``::: path`` for secondary files) on row ``offset``."""
        if not self.short_message:
            if origin.primary:
                buffer.prepend(offset, self.glyphs.file_start, ElementStyle.LINE_NUMBER)
            else:
                buffer.prepend(offset, self.glyphs.secondary_file_start, ElementStyle.LINE_NUMBER)

        if origin.line is not None and origin.char_column is not None:
            text = f"{origin.path}:{origin.line}:{origin.char_column}"
        elif origin.line is not None:
            text = f"{origin.path}:{origin.line}"
        else:
            text = origin.path
        buffer.append(offset, text, ElementStyle.LINE_AND_COLUMN)

        if not self.short_message:
            buffer.prepend(offset, " " * max_line_num_len, ElementStyle.NO_STYLE)
