"""
Annotation layout: draws an excerpt's code lines with underlines, labels and
multi-line brackets onto a ``StyledBuffer``.

The canvas is row/column addressed, so drawing order matters only where cells
collide: underlines are drawn longest first so that shorter spans nested inside
them stay visible, and primary spans are drawn last on ties.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from diagframe.constants import TAB_WIDTH
from diagframe.renderer.glyphs import OutputTheme
from diagframe.renderer.margin import Margin
from diagframe.renderer.paint import Painter
from diagframe.renderer.source_map import (
    AnnotatedLineInfo,
    AnnotationType,
    LineAnnotation,
    SourceMap,
    num_overlap,
)
from diagframe.renderer.styled_buffer import StyledBuffer
from diagframe.renderer.stylesheet import ElementStyle
from diagframe.renderer.text import normalize_whitespace, str_width, utf8_len
from diagframe.snippet import Cause, Origin

__all__ = ["primary_location", "render_snippet_annotations", "render_source_line"]

logger = logging.getLogger(__name__)

_BRACKET_ENDS = (AnnotationType.MULTILINE_START, AnnotationType.MULTILINE_END)


def _overlaps(a1: LineAnnotation, a2: LineAnnotation, padding: int) -> bool:
    return num_overlap(a1.start.display, a1.end.display + padding, a2.start.display, a2.end.display, False)


def _label_style(annotation: LineAnnotation) -> ElementStyle:
    return ElementStyle.LABEL_PRIMARY if annotation.is_primary() else ElementStyle.LABEL_SECONDARY


def primary_location(annotated_lines: Sequence[AnnotatedLineInfo]) -> tuple[int | None, int | None]:
    """
    ``(line, 1-based char column)`` of the annotation a ``-->`` header should
    point at: the leftmost primary one, else the first annotated line.
    """
    line = next((l for l in annotated_lines if any(a.is_primary() for a in l.annotations)), None)
    if line is None:
        line = next((l for l in annotated_lines if l.annotations), None)
    if line is None:
        return None, None
    first = min(line.annotations, key=lambda a: (not a.is_primary(), a.start.char))
    return line.line_index, first.start.char + 1


def _leading_whitespace(line: str) -> int:
    width = 0
    for ch in line:
        if not ch.isspace():
            break
        width += TAB_WIDTH if ch == "\t" else 1
    return width


def _build_margin(
    annotated_lines: Sequence[AnnotatedLineInfo], column_width: int
) -> Margin:
    whitespace_margin: int | None = None
    span_left: int | None = None
    span_right = 0
    label_right = 0
    max_line_len = 0
    for info in annotated_lines:
        # whitespace only lines say nothing about indentation
        if any(not ch.isspace() for ch in info.line):
            lead = _leading_whitespace(info.line)
            whitespace_margin = lead if whitespace_margin is None else min(whitespace_margin, lead)
        max_line_len = max(max_line_len, utf8_len(info.line))
        for ann in info.annotations:
            low = min(ann.start.display, ann.end.display)
            span_left = low if span_left is None else min(span_left, low)
            span_right = max(span_right, ann.start.display, ann.end.display)
            extra = str_width(ann.label) + 1 if ann.label is not None else 0
            label_right = max(label_right, ann.end.display + extra)
    margin = Margin(
        whitespace_margin or 0,
        span_left or 0,
        span_right,
        label_right,
        column_width,
        max_line_len,
    )
    if margin.was_cut_left():
        logger.debug("trimming excerpt to columns %d..%d", margin.computed_left, margin.computed_right)
    return margin


def render_snippet_annotations(
    painter: Painter,
    buffer: StyledBuffer,
    max_line_num_len: int,
    snippet: Cause,
    is_primary: bool,
    sm: SourceMap,
    annotated_lines: Sequence[AnnotatedLineInfo],
    multiline_depth: int,
    is_cont: bool,
    term_width: int,
) -> None:
    """Draw one excerpt: its origin header, then every kept line with its annotations."""
    glyphs = painter.glyphs
    if snippet.path is not None:
        origin = Origin(snippet.path)
        if is_primary:
            line, col = primary_location(annotated_lines)
            origin = replace(origin, primary=True, line=line, char_column=col)
        else:
            # spacer between the previous excerpt and this `:::` header
            painter.draw_col_separator_no_space(buffer, buffer.num_lines(), max_line_num_len + 1)
            if annotated_lines:
                first = annotated_lines[0]
                col = first.annotations[0].start.char + 1 if first.annotations else None
                origin = replace(origin, line=first.line_index, char_column=col)
        offset = buffer.num_lines()
        painter.render_origin(buffer, max_line_num_len, origin, offset)
        painter.draw_col_separator_no_space(buffer, offset + 1, max_line_num_len + 1)
    else:
        offset = buffer.num_lines()
        if is_primary:
            if painter.theme is OutputTheme.UNICODE:
                buffer.puts(offset, max_line_num_len, glyphs.file_start, ElementStyle.LINE_NUMBER)
            else:
                painter.draw_col_separator_no_space(buffer, offset, max_line_num_len + 1)
        else:
            painter.draw_col_separator_no_space(buffer, offset, max_line_num_len + 1)
            buffer.puts(offset + 1, max_line_num_len, glyphs.secondary_file_start, ElementStyle.LINE_NUMBER)

    width_offset = 3 + max_line_num_len
    code_offset = width_offset if multiline_depth == 0 else width_offset + multiline_depth + 1
    margin = _build_margin(annotated_lines, max(term_width - code_offset, 0))

    # open multi-line brackets: (depth, style), closed when their end is drawn
    multilines: list[tuple[int, ElementStyle]] = []

    for idx, line_info in enumerate(annotated_lines):
        previous_buffer_line = buffer.num_lines()
        depths = render_source_line(
            painter,
            line_info,
            buffer,
            width_offset,
            code_offset,
            max_line_num_len,
            margin,
            not is_cont and idx + 1 == len(annotated_lines),
        )

        to_add: dict[int, ElementStyle] = {}
        for depth, style in depths:
            pos = next((k for k, (d, _) in enumerate(multilines) if d == depth), None)
            if pos is not None:
                del multilines[pos]
            else:
                to_add[depth] = style

        for depth, style in multilines:
            for line in range(previous_buffer_line, buffer.num_lines()):
                painter.draw_multiline_line(buffer, line, width_offset, depth, style)

        if idx + 1 < len(annotated_lines):
            delta = annotated_lines[idx + 1].line_index - line_info.line_index
            if delta >= 2:
                row = buffer.num_lines()
                if delta > 2:
                    painter.draw_line_separator(buffer, row, width_offset)
                else:
                    # a single hidden line costs as much as the separator, so show it
                    unannotated = sm.get_line(line_info.line_index + 1) or ""
                    painter.draw_line(
                        buffer,
                        normalize_whitespace(unannotated),
                        annotated_lines[idx + 1].line_index - 1,
                        row,
                        width_offset,
                        code_offset,
                        max_line_num_len,
                        margin,
                    )
                for depth, style in multilines:
                    painter.draw_multiline_line(buffer, row, width_offset, depth, style)
                # brackets opened on this line continue across the gap too
                for ann in line_info.annotations:
                    if ann.annotation_type is AnnotationType.MULTILINE_START:
                        style = (
                            ElementStyle.UNDERLINE_PRIMARY if ann.is_primary() else ElementStyle.UNDERLINE_SECONDARY
                        )
                        painter.draw_multiline_line(buffer, row, width_offset, ann.depth, style)

        multilines.extend(to_add.items())


def render_source_line(
    painter: Painter,
    line_info: AnnotatedLineInfo,
    buffer: StyledBuffer,
    width_offset: int,
    code_offset: int,
    max_line_num_len: int,
    margin: Margin,
    close_window: bool,
) -> list[tuple[int, ElementStyle]]:
    """
    Draw one code line and the rows beneath it::

        LL | ... code ...
           |     ^^-^ span label
           |       |
           |       secondary span label

    Returns ``(depth, style)`` for every multi-line bracket that starts or ends
    on this line, so the caller can keep the bracket's vertical bar going.
    """
    if line_info.line_index == 0:
        return []

    source_string = normalize_whitespace(line_info.line)
    line_offset = buffer.num_lines()
    left = painter.draw_line(
        buffer, source_string, line_info.line_index, line_offset,
        width_offset, code_offset, max_line_num_len, margin,
    )

    # A line that only opens brackets, each at its first non-blank column,
    # gets the compact `/` form instead of a `____^` row.
    short_start_ops: list[tuple[int, int, str, ElementStyle]] = []
    short_start_depths: list[tuple[int, ElementStyle]] = []
    short_start = True
    for ann in line_info.annotations:
        if ann.annotation_type is AnnotationType.MULTILINE_START:
            if all(ch.isspace() for ch in source_string[: ann.start.display]):
                uline = painter.underline(ann.is_primary())
                short_start_depths.append((ann.depth, uline.style))
                short_start_ops.append((line_offset, width_offset + ann.depth - 1, uline.multiline_whole_line, uline.style))
            else:
                short_start = False
                break
        elif ann.annotation_type is not AnnotationType.MULTILINE_LINE:
            short_start = False
            break
    if short_start:
        for row, col, ch, style in short_start_ops:
            buffer.putc(row, col, ch, style)
        return short_start_depths

    # Rightmost span first: connector lines hang to the left of their label,
    # so the label of a span further right must be placed before them.
    annotations = sorted(
        line_info.annotations, key=lambda a: (a.start.display, a.start.char), reverse=True
    )

    # Pick a label row ("slot") for each annotation. Slot 0 puts the label on
    # the underline row itself, right after the span.
    overlap = [False] * len(annotations)
    positions: list[tuple[int, LineAnnotation]] = []
    line_len = 0
    p = 0
    for i, annotation in enumerate(annotations):
        for j, nxt in enumerate(annotations):
            if _overlaps(nxt, annotation, 0) and j > 1:
                overlap[i] = True
                overlap[j] = True
            if _overlaps(nxt, annotation, 0) and annotation.has_label() and j > i and p == 0:
                # an unlabelled twin of this span doesn't push the label down
                if (
                    nxt.start.display == annotation.start.display
                    and nxt.start.char == annotation.start.char
                    and nxt.end.display == annotation.end.display
                    and nxt.end.char == annotation.end.char
                    and not nxt.has_label()
                ):
                    continue
                p += 1
                break
        positions.append((p, annotation))
        for j, nxt in enumerate(annotations):
            if j <= i:
                continue
            pad = str_width(nxt.label) + 2 if nxt.label is not None else 0
            if (
                (_overlaps(nxt, annotation, pad) and annotation.has_label() and nxt.has_label())
                or (annotation.takes_space() and nxt.has_label())
                or (annotation.has_label() and nxt.takes_space())
                or (annotation.takes_space() and nxt.takes_space())
                or (
                    _overlaps(nxt, annotation, pad)
                    and (nxt.end.display, nxt.end.char) <= (annotation.end.display, annotation.end.char)
                    and nxt.has_label()
                    and p == 0
                )
            ):
                p += 1
                break
        line_len = max(line_len, p)

    if line_len != 0:
        line_len += 1

    if all(a.is_line() for a in line_info.annotations):
        return []

    # Only bracket starts: put the outermost bracket's run on the top row.
    if positions and all(a.annotation_type is AnnotationType.MULTILINE_START for _, a in positions):
        max_pos = max(pos for pos, _ in positions)
        positions = [(max_pos - pos, a) for pos, a in positions]
        line_len = max(line_len - 1, 0)

    for pos in range(line_len + 1):
        painter.draw_col_separator_no_space(buffer, line_offset + pos + 1, width_offset - 2)
    if close_window:
        painter.draw_col_separator_end(buffer, line_offset + line_len + 1, width_offset - 2)

    def col_of(display: int) -> int:
        return max(code_offset + display - left, 0)

    # horizontal bracket runs, or restyled source for highlight_source
    for pos, annotation in positions:
        uline = painter.underline(annotation.is_primary())
        pos += 1
        if annotation.annotation_type in _BRACKET_ENDS:
            painter.draw_range(
                buffer,
                uline.multiline_horizontal,
                line_offset + pos,
                width_offset + annotation.depth,
                col_of(annotation.start.display),
                uline.style,
            )
        elif annotation.highlight_source:
            buffer.set_style_range(
                line_offset,
                col_of(annotation.start.display),
                col_of(annotation.end.display),
                uline.style,
                annotation.is_primary(),
            )

    # vertical connectors from the underline down to the label row
    for pos, annotation in positions:
        uline = painter.underline(annotation.is_primary())
        pos += 1
        col = col_of(annotation.start.display)
        if pos > 1 and (annotation.has_label() or annotation.takes_space()):
            glyph = uline.multiline_vertical if annotation.is_line() else uline.vertical_text_line
            for row in range(line_offset + 1, line_offset + pos + 1):
                buffer.putc(row, col, glyph, uline.style)
            if annotation.annotation_type is AnnotationType.MULTILINE_START:
                buffer.putc(line_offset + pos, col, uline.bottom_right, uline.style)
            if annotation.annotation_type is AnnotationType.MULTILINE_END and annotation.has_label():
                buffer.putc(line_offset + pos, col, uline.multiline_bottom_right_with_text, uline.style)
        bracket_col = width_offset + annotation.depth - 1
        if annotation.annotation_type is AnnotationType.MULTILINE_START:
            buffer.putc(line_offset + pos, bracket_col, uline.top_left, uline.style)
            for row in range(line_offset + pos + 1, line_offset + line_len + 2):
                buffer.putc(row, bracket_col, uline.multiline_vertical, uline.style)
        elif annotation.annotation_type is AnnotationType.MULTILINE_END:
            for row in range(line_offset, line_offset + pos):
                buffer.putc(row, bracket_col, uline.multiline_vertical, uline.style)
            buffer.putc(line_offset + pos, bracket_col, uline.bottom_left, uline.style)

    # labels
    for pos, annotation in positions:
        if pos == 0:
            extra = 2 if annotation.end.display == 0 else 1
            row, col = pos + 1, max(annotation.end.display + extra - left, 0)
        else:
            row, col = pos + 2, max(annotation.start.display - left, 0)
        if annotation.label is not None:
            buffer.puts(line_offset + row, code_offset + col, annotation.label, _label_style(annotation))

    # underlines: longest first, primary last on ties
    positions.sort(key=lambda item: (-item[1].len(), item[1].is_primary()))
    for pos, annotation in positions:
        uline = painter.underline(annotation.is_primary())
        for d in range(annotation.start.display, annotation.end.display):
            buffer.putc(line_offset + 1, col_of(d), uline.underline, uline.style)
        col = col_of(annotation.start.display)
        if annotation.annotation_type in _BRACKET_ENDS:
            if pos == 0:
                glyph = (
                    uline.top_right_flat
                    if annotation.annotation_type is AnnotationType.MULTILINE_START
                    else uline.multiline_end_same_line
                )
            else:
                glyph = (
                    uline.multiline_start_down
                    if annotation.annotation_type is AnnotationType.MULTILINE_START
                    else uline.multiline_end_up
                )
            buffer.putc(line_offset + 1, col, glyph, uline.style)
        elif pos != 0 and annotation.has_label():
            buffer.putc(line_offset + 1, col, uline.label_start, uline.style)

    # cut the middle out of spans too wide to be worth showing in full
    for i, (_, annotation) in enumerate(positions):
        if overlap[i] or annotation.annotation_type is not AnnotationType.SINGLELINE:
            continue
        width = annotation.end.display - annotation.start.display
        if width > margin.term_width * 2 and width > 10:
            pad = max(margin.term_width // 3, 5)
            logger.debug(
                "truncating %d column span on line %d", width, line_info.line_index
            )
            for row in (line_offset, line_offset + 1):
                buffer.replace(
                    row,
                    annotation.start.display + pad,
                    annotation.end.display - pad,
                    painter.glyphs.margin,
                )

    return [
        (annotation.depth, _label_style(annotation))
        for _, annotation in positions
        if annotation.annotation_type in _BRACKET_ENDS
    ]
