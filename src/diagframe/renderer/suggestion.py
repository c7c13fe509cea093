"""
Suggestion rendering: shows the patched code of a ``Suggestion`` excerpt as a
diff, an added line, an underlined edit, or just the new text.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from diagframe.renderer.paint import Painter
from diagframe.renderer.source_map import LineInfo, SourceMap, SubstitutionHighlight
from diagframe.renderer.styled_buffer import StyledBuffer
from diagframe.renderer.stylesheet import ElementStyle
from diagframe.renderer.text import normalize_whitespace, split_lines, str_width
from diagframe.snippet import Span, Suggestion

__all__ = ["DisplaySuggestion", "display_mode", "emit_suggestion", "draw_code_line"]

logger = logging.getLogger(__name__)

# unhighlighted runs this long or shorter are shown in full
_MAX_UNHIGHLIGHTED_RUN = 3


class DisplaySuggestion(Enum):
    UNDERLINE = "underline"
    DIFF = "diff"
    NONE = "none"
    ADD = "add"


def display_mode(
    complete: str, patches: Sequence, has_deletion: bool, is_multiline: bool
) -> DisplaySuggestion:
    """
    Pick how a splice is shown:

    * ``DIFF``: something is removed on a single line, so show ``-``/``+`` rows.
    * ``ADD``: one patch inserting whole lines ahead of existing code.
    * ``UNDERLINE``: single-line edits, marked with ``+``/``~`` under the new text.
    * ``NONE``: the new code alone.
    """
    if has_deletion and not is_multiline:
        return DisplaySuggestion.DIFF
    if (
        len(patches) == 1
        and patches[0].replacement.endswith("\n")
        and patches[0].replacement.strip() == complete.strip()
    ):
        return DisplaySuggestion.ADD
    if (len(patches) != 1 or patches[0].replacement.strip() != complete.strip()) and not is_multiline:
        return DisplaySuggestion.UNDERLINE
    return DisplaySuggestion.NONE


def _draw_margin_placeholder(painter: Painter, buffer: StyledBuffer, row: int, max_line_num_len: int) -> None:
    placeholder = painter.glyphs.margin
    buffer.puts(row, max(max_line_num_len - str_width(placeholder), 0), placeholder, ElementStyle.LINE_NUMBER)


def emit_suggestion(
    painter: Painter,
    buffer: StyledBuffer,
    suggestion: Suggestion,
    max_line_num_len: int,
    sm: SourceMap,
    primary_path: str | None,
    is_cont: bool,
) -> None:
    """
    Append the rendering of ``suggestion`` to ``buffer``. ``is_cont`` is set
    when the previous element was also a suggestion; its closing row then
    becomes the ``|`` / ``├╴`` joint between the two blocks.
    """
    splices = sm.splice_lines(suggestion.markers)
    if not splices:
        logger.debug("suggestion with %d patches changes nothing", len(suggestion.markers))

    row_num = buffer.num_lines() + (0 if is_cont else 1)
    glyphs = painter.glyphs
    for i, splice in enumerate(splices):
        complete, parts, highlights = splice.complete, splice.patches, splice.highlights
        complete_lines = split_lines(complete)
        # nothing left means whole lines went away, blank or not
        has_deletion = not complete_lines or any(
            p.is_deletion(sm) or p.is_destructive_replacement(sm) for p in parts
        )
        is_multiline = len(complete_lines) > 1

        if i == 0 and not is_cont:
            painter.draw_col_separator_start(buffer, row_num - 1, max_line_num_len + 1)
        else:
            # shares its row with the closing separator of the previous block
            buffer.puts(row_num - 1, max_line_num_len + 1, glyphs.multi_suggestion_separator, ElementStyle.LINE_NUMBER)

        if suggestion.path is not None and suggestion.path != primary_path:
            loc, _ = sm.span_to_locations(parts[0].span)
            arrow = glyphs.file_start
            buffer.puts(row_num - 1, 0, arrow, ElementStyle.LINE_NUMBER)
            message = f"{suggestion.path}:{loc.line}:{loc.char + 1}"
            if is_cont:
                buffer.append(row_num - 1, message, ElementStyle.LINE_AND_COLUMN)
            else:
                col = max(max_line_num_len + 1, len(arrow))
                buffer.puts(row_num - 1, col, message, ElementStyle.LINE_AND_COLUMN)
            buffer.prepend(row_num - 1, " " * max_line_num_len, ElementStyle.NO_STYLE)
            painter.draw_col_separator_no_space(buffer, row_num, max_line_num_len + 1)
            row_num += 1

        mode = display_mode(complete, parts, has_deletion, is_multiline)
        if mode is DisplaySuggestion.DIFF:
            row_num += 1

        file_lines = sm.span_to_lines(parts[0].span)
        line_start, line_end = sm.span_to_locations(parts[0].span)

        if not complete_lines:
            # the whole of some whitespace-only lines goes away
            for line in range(line_start.line, line_end.line + 1):
                removed = sm.get_line(line)
                if removed is None:
                    raise IndexError(f"line {line} is outside the suggestion excerpt")
                row = row_num - 1 + line - line_start.line
                buffer.puts(row, 0, painter.maybe_anonymized(line, max_line_num_len), ElementStyle.LINE_NUMBER)
                buffer.puts(row, max_line_num_len + 1, "- ", ElementStyle.REMOVAL)
                buffer.puts(row, max_line_num_len + 3, normalize_whitespace(removed), ElementStyle.REMOVAL)
            row_num += line_end.line - line_start.line

        def draw(line_num: int, line: str, parts_: Sequence[SubstitutionHighlight]) -> None:
            nonlocal row_num
            row_num = draw_code_line(
                painter, buffer, row_num, parts_, line_num, line, mode,
                max_line_num_len, file_lines, is_multiline,
            )

        last_pos = 0
        is_item_attribute = False
        unhighlighted: list[tuple[int, str]] = []
        for line_pos, (line, highlight_parts) in enumerate(zip(complete_lines, highlights)):
            last_pos = line_pos
            if not highlight_parts:
                unhighlighted.append((line_pos, line))
                continue
            stripped = line.strip()
            if len(highlight_parts) == 1 and stripped.startswith("#[") and stripped.endswith("]"):
                is_item_attribute = True

            if 0 < len(unhighlighted) <= _MAX_UNHIGHLIGHTED_RUN:
                for p, l in unhighlighted:
                    draw(p + line_start.line, l, ())
            elif unhighlighted:
                # first context line, a `...` row, last context line
                (first_pos, first_line), (last_p, last_line) = unhighlighted[0], unhighlighted[-1]
                draw(first_pos + line_start.line, first_line, ())
                _draw_margin_placeholder(painter, buffer, row_num, max_line_num_len)
                row_num += 1
                draw(last_p + line_start.line, last_line, ())
            unhighlighted = []
            draw(line_pos + line_start.line, line, highlight_parts)

        if mode is DisplaySuggestion.ADD and is_item_attribute:
            # show the line the attribute is attached to
            end_lines = sm.span_to_lines(Span(parts[0].span.end, parts[0].span.end))
            lo, _ = sm.span_to_locations(parts[0].span)
            text = sm.get_line(lo.line)
            if text is not None:
                row_num = draw_code_line(
                    painter, buffer, row_num, (), lo.line + last_pos + 1, normalize_whitespace(text),
                    DisplaySuggestion.NONE, max_line_num_len, end_lines, is_multiline,
                )

        if mode is not DisplaySuggestion.NONE:
            _mark_changes(painter, buffer, row_num, parts, sm, mode, max_line_num_len)
            row_num += 1

        # zip() stops one line past the last highlighted one
        if len(complete_lines) > len(highlights) + 1:
            _draw_margin_placeholder(painter, buffer, row_num, max_line_num_len)
        else:
            row = row_num if mode is DisplaySuggestion.NONE else row_num - 1
            painter.draw_col_separator_end(buffer, row, max_line_num_len + 1)
            row_num = row + 1


def _mark_changes(
    painter: Painter,
    buffer: StyledBuffer,
    row_num: int,
    parts: Sequence,
    sm: SourceMap,
    mode: DisplaySuggestion,
    max_line_num_len: int,
) -> None:
    """``+``/``~`` under inserted text, or removal colouring on the ``-`` rows of a diff."""
    padding = max_line_num_len + 3
    # (column after the patch, columns it added); later patches on the same
    # line are shifted by what came before them
    offsets: list[tuple[int, int]] = []
    for part in parts:
        snippet = sm.span_to_snippet(part.span) or ""
        span_start, span_end = sm.span_to_locations(part.span)
        start_pos, end_pos = span_start.display, span_end.display

        # whitespace-only additions are underlined as they are
        whitespace_only = not part.replacement.strip()
        lead = 0 if whitespace_only else len(part.replacement) - len(part.replacement.lstrip())
        sub_len = str_width(part.replacement if whitespace_only else part.replacement.strip())

        offset = sum(v for start, v in offsets if start_pos >= start)
        underline_start = start_pos + lead + offset
        underline_end = start_pos + lead + sub_len + offset

        if mode is DisplaySuggestion.UNDERLINE:
            glyph = "+" if part.is_addition(sm) else painter.glyphs.diff
            for p in range(underline_start, underline_end):
                buffer.putc(row_num, padding + p, glyph, ElementStyle.ADDITION)

        if mode is DisplaySuggestion.DIFF:
            removed = split_lines(snippet)
            newlines = len(removed)
            if newlines > 0 and row_num > newlines:
                #    |
                # LL - OLDER   <- row_num - 2 - (newlines - 1)
                # LL - REMOVED <- row_num - 2
                # LL + NEWER
                #    |         <- row_num
                for i, line in enumerate(removed):
                    width = str_width(normalize_whitespace(line))
                    row = row_num - 2 - (newlines - i - 1)
                    start = padding + start_pos if i == 0 else padding
                    if i == 0:
                        end = padding + start_pos + width
                    elif i == newlines - 1:
                        end = padding + end_pos
                    else:
                        end = padding + width
                    buffer.set_style_range(row, start, end, ElementStyle.REMOVAL, True)
            else:
                buffer.set_style_range(
                    row_num - 2, padding + start_pos, padding + end_pos, ElementStyle.REMOVAL, True
                )

        offsets.append((end_pos, str_width(part.replacement) - (end_pos - start_pos)))


def draw_code_line(
    painter: Painter,
    buffer: StyledBuffer,
    row_num: int,
    highlight_parts: Sequence[SubstitutionHighlight],
    line_num: int,
    line_to_add: str,
    mode: DisplaySuggestion,
    max_line_num_len: int,
    file_lines: Sequence[LineInfo],
    is_multiline: bool,
) -> int:
    """Draw one line of patched code. Returns the next free row."""
    gutter = max_line_num_len + 1
    code_col = max_line_num_len + 3

    def put_line_number(row: int, num: int) -> None:
        buffer.puts(row, 0, painter.maybe_anonymized(num, max_line_num_len), ElementStyle.LINE_NUMBER)

    if mode is DisplaySuggestion.DIFF:
        for index, line_to_remove in enumerate(file_lines[:-1]):
            put_line_number(row_num - 1, line_num + index)
            buffer.puts(row_num - 1, gutter, "- ", ElementStyle.REMOVAL)
            buffer.puts(row_num - 1, code_col, normalize_whitespace(line_to_remove.line), ElementStyle.NO_STYLE)
            row_num += 1
        last_line = file_lines[-1]
        if last_line.line == line_to_add:
            row_num -= 2
        else:
            put_line_number(row_num - 1, line_num + len(file_lines) - 1)
            buffer.puts(row_num - 1, gutter, "- ", ElementStyle.REMOVAL)
            buffer.puts(row_num - 1, code_col, normalize_whitespace(last_line.line), ElementStyle.NO_STYLE)
            if not line_to_add.strip():
                row_num -= 1
            else:
                put_line_number(row_num, line_num)
                buffer.puts(row_num, gutter, "+ ", ElementStyle.ADDITION)
                buffer.append(row_num, normalize_whitespace(line_to_add), ElementStyle.NO_STYLE)
    elif is_multiline:
        put_line_number(row_num, line_num)
        if len(highlight_parts) == 1 and highlight_parts[0].start == 0 and highlight_parts[0].end == len(line_to_add):
            buffer.puts(row_num, gutter, "+ ", ElementStyle.ADDITION)
        elif not highlight_parts:
            painter.draw_col_separator_no_space(buffer, row_num, gutter)
        else:
            buffer.puts(row_num, gutter, f"{painter.glyphs.diff} ", ElementStyle.ADDITION)
        buffer.puts(row_num, code_col, normalize_whitespace(line_to_add), ElementStyle.NO_STYLE)
    elif mode is DisplaySuggestion.ADD:
        put_line_number(row_num, line_num)
        buffer.puts(row_num, gutter, "+ ", ElementStyle.ADDITION)
        buffer.append(row_num, normalize_whitespace(line_to_add), ElementStyle.NO_STYLE)
    else:
        put_line_number(row_num, line_num)
        painter.draw_col_separator(buffer, row_num, gutter)
        buffer.append(row_num, normalize_whitespace(line_to_add), ElementStyle.NO_STYLE)

    for hl in highlight_parts:
        if hl.start != hl.end:
            # tabs were widened to four columns by normalize_whitespace
            tabs = line_to_add[: hl.start].count("\t") * 3
            buffer.set_style_range(row_num, code_col + hl.start + tabs, code_col + hl.end + tabs, ElementStyle.ADDITION, True)
    return row_num + 1
