"""
The report orchestrator: turns a sequence of ``Group``s into text.

Each group is drawn onto its own ``StyledBuffer`` and rendered with that
group's primary level; groups are joined with a single newline.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from diagframe.constants import ANONYMIZED_LINE_NUM, DEFAULT_TERM_WIDTH
from diagframe.errors import EmptyReportError, MissingTitleError
from diagframe.renderer.glyphs import OutputTheme
from diagframe.renderer.layout import primary_location, render_snippet_annotations
from diagframe.renderer.paint import Painter, TitleStyle
from diagframe.renderer.source_map import SourceMap
from diagframe.renderer.styled_buffer import StyledBuffer
from diagframe.renderer.stylesheet import ElementStyle, Stylesheet, _validate_override_keys
from diagframe.renderer.suggestion import emit_suggestion
from diagframe.renderer.text import newline_count, normalize_whitespace, num_decimal_digits
from diagframe.snippet import Cause, Group, Message, Origin, Padding, Suggestion, Title

__all__ = ["Renderer", "max_line_number"]

logger = logging.getLogger(__name__)

# OSC 8 hyperlink open/close around an error code
_LINK_OPEN = "\x1b]8;;{url}\x1b\\"
_LINK_CLOSE = "\x1b]8;;\x1b\\"


@dataclass(frozen=True, slots=True)
class Renderer:
    """
    Rendering configuration. Immutable; ``evolve`` / ``with_styles`` return
    adjusted copies, so one renderer may be shared between threads.
    """

    anonymized_line_numbers: bool = False
    term_width: int = DEFAULT_TERM_WIDTH
    theme: OutputTheme = OutputTheme.ASCII
    stylesheet: Stylesheet = field(default_factory=Stylesheet.plain)
    short_message: bool = False
    _painter: Painter | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.term_width < 0:
            raise ValueError(f"term_width cannot be negative (got {self.term_width})")
        object.__setattr__(self, "theme", OutputTheme(self.theme))

    # ---- construction -----------------------------------------------------------

    @classmethod
    def plain(cls) -> Renderer:
        return cls()

    @classmethod
    def styled(cls, *, legacy_windows: bool | None = None) -> Renderer:
        return cls(stylesheet=Stylesheet.styled(legacy_windows=legacy_windows))

    def evolve(self, **overrides: Any) -> Renderer:
        """Copy with ``anonymized_line_numbers``, ``term_width``, ``theme``, ... replaced."""
        _validate_override_keys(Renderer, overrides)
        return replace(self, **overrides)

    def with_styles(self, **overrides: str) -> Renderer:
        """Copy with individual stylesheet entries (``error="bold red"``) replaced."""
        return replace(self, stylesheet=self.stylesheet.evolve(**overrides))

    @property
    def painter(self) -> Painter:
        if self._painter is None:
            object.__setattr__(
                self,
                "_painter",
                Painter(self.theme, self.anonymized_line_numbers, self.short_message),
            )
        return self._painter

    # ---- rendering --------------------------------------------------------------

    def render(self, groups: Sequence[Group]) -> str:
        if self.short_message:
            return self.render_short(groups)

        if self.anonymized_line_numbers:
            max_line_num_len = len(ANONYMIZED_LINE_NUM)
        else:
            max_line_num_len = num_decimal_digits(max_line_number(groups))
        logger.debug(
            "rendering %d groups (theme=%s, gutter=%d)", len(groups), self.theme, max_line_num_len
        )

        out: list[str] = []
        og_primary_path: str | None = None
        for g, group in enumerate(groups):
            buffer = StyledBuffer()
            primary_path = _primary_path(group)
            if og_primary_path is None and primary_path is not None:
                og_primary_path = primary_path
            self._render_group(buffer, group, g, len(groups), max_line_num_len, primary_path, og_primary_path)
            out.append(buffer.render(group.primary_level.kind, self.stylesheet))
        return "\n".join(out)

    def _render_group(
        self,
        buffer: StyledBuffer,
        group: Group,
        g: int,
        group_len: int,
        max_line_num_len: int,
        primary_path: str | None,
        og_primary_path: str | None,
    ) -> None:
        painter = self.painter
        # every excerpt shares the deepest bracket column of the group
        annotated: list[tuple[SourceMap, list]] = []
        max_depth = 0
        for element in group.elements:
            if isinstance(element, Cause):
                sm = SourceMap(element.source, element.line_start)
                depth, lines = sm.annotated_lines(element.markers, element.fold)
                max_depth = max(max_depth, depth)
                annotated.append((sm, lines))
        pending = iter(annotated)

        elements = group.elements
        gutter = max_line_num_len + 1
        if group.title is not None:
            peek = elements[0] if elements else None
            title_style = TitleStyle.MAIN_HEADER if g == 0 else TitleStyle.HEADER
            self._render_title(
                buffer, group.title, max_line_num_len, title_style,
                isinstance(peek, Message), buffer.num_lines(),
            )
            offset = buffer.num_lines()
            if isinstance(peek, Message):
                painter.draw_col_separator_no_space(buffer, offset, gutter)
            if peek is None and g == 0 and group_len > 1:
                painter.draw_col_separator_end(buffer, offset, gutter)

        seen_primary = False
        last_was_suggestion = False
        for idx, element in enumerate(elements):
            peek = elements[idx + 1] if idx + 1 < len(elements) else None
            if isinstance(element, Message):
                self._render_title(
                    buffer, element, max_line_num_len, TitleStyle.SECONDARY,
                    isinstance(peek, (Message, Padding)), buffer.num_lines(),
                )
                last_was_suggestion = False
            elif isinstance(element, Cause):
                sm, lines = next(pending)
                is_primary = primary_path == element.path and not seen_primary
                seen_primary |= is_primary
                render_snippet_annotations(
                    painter, buffer, max_line_num_len, element, is_primary, sm, lines,
                    max_depth, peek is not None or (g == 0 and group_len > 1), self.term_width,
                )
                if g == 0:
                    current = buffer.num_lines()
                    if isinstance(peek, Message):
                        painter.draw_col_separator_no_space(buffer, current, gutter)
                    elif isinstance(peek, Origin) and peek.primary:
                        painter.draw_col_separator_end(buffer, current, gutter)
                    elif peek is None and group_len > 1:
                        painter.draw_col_separator_end(buffer, current, gutter)
                last_was_suggestion = False
            elif isinstance(element, Suggestion):
                sm = SourceMap(element.source, element.line_start)
                emit_suggestion(
                    painter, buffer, element, max_line_num_len, sm,
                    primary_path if primary_path is not None else og_primary_path,
                    last_was_suggestion,
                )
                last_was_suggestion = True
            elif isinstance(element, Origin):
                is_primary = primary_path == element.path and not seen_primary
                seen_primary |= is_primary
                painter.render_origin(buffer, max_line_num_len, element, buffer.num_lines())
                last_was_suggestion = False
                if g == 0:
                    current = buffer.num_lines()
                    if peek is None and group_len > 1:
                        painter.draw_col_separator_end(buffer, current, gutter)
                    elif isinstance(peek, Message):
                        painter.draw_col_separator_no_space(buffer, current, gutter)
            elif isinstance(element, Padding):
                current = buffer.num_lines()
                if peek is None:
                    painter.draw_col_separator_end(buffer, current, gutter)
                else:
                    painter.draw_col_separator_no_space(buffer, current, gutter)
            else:
                raise TypeError(f"Unsupported group element: {type(element).__name__}")

    def render_short(self, groups: Sequence[Group]) -> str:
        """
        One line, compiler ``--error-format=short`` style::

            src/main.rs:1:5: error[E0308]: mismatched types: expected u32

        Only the first group's title, first excerpt and its primary labels count.
        """
        if not self.short_message:
            return replace(self, short_message=True).render_short(groups)
        if not groups:
            raise EmptyReportError("cannot render an empty report")
        group = groups[0]
        if group.title is None:
            raise MissingTitleError("the first group of a short report needs a title")

        painter = self.painter
        buffer = StyledBuffer()
        labels: str | None = None
        cause = next((e for e in group.elements if isinstance(e, Cause)), None)
        if cause is not None:
            joined = ", ".join(
                ann.label
                for ann in cause.markers
                if ann.kind.is_primary and ann.label is not None and ann.label.strip()
            )
            labels = joined or None

            if cause.path is not None:
                sm = SourceMap(cause.source, cause.line_start)
                _, annotated_lines = sm.annotated_lines(cause.markers, cause.fold)
                line, col = primary_location(annotated_lines)
                origin = Origin(cause.path, line, col, primary=True)
                painter.render_origin(buffer, 0, origin, 0)
                buffer.append(0, ": ", ElementStyle.LINE_AND_COLUMN)

        self._render_title(buffer, group.title, 0, TitleStyle.MAIN_HEADER, False, 0)
        if labels is not None:
            buffer.append(0, f": {labels}", ElementStyle.NO_STYLE)
        return buffer.render(group.title.level.kind, self.stylesheet)

    def _render_title(
        self,
        buffer: StyledBuffer,
        title: Title | Message,
        max_line_num_len: int,
        title_style: TitleStyle,
        is_cont: bool,
        offset: int,
    ) -> None:
        """
        ``error[E0308]: text`` for group titles, `` = note: text`` for messages.
        Continuation lines of a multi-line text are indented under its first line.
        """
        painter = self.painter
        level = title.level
        if title_style is TitleStyle.SECONDARY:
            buffer.prepend(offset, " " * max_line_num_len, ElementStyle.NO_STYLE)
            painter.draw_note_separator(buffer, offset, max_line_num_len + 1, is_cont)
            label_style, text_style = ElementStyle.MAIN_HEADER_MSG, ElementStyle.NO_STYLE
        else:
            label_style = ElementStyle.for_level(level.kind)
            if title_style is TitleStyle.HEADER:
                text_style = ElementStyle.HEADER_MSG
            elif self.short_message:
                text_style = ElementStyle.NO_STYLE
            else:
                text_style = ElementStyle.MAIN_HEADER_MSG

        label_width = 0
        if level.show_name:
            name = level.as_str()
            buffer.append(offset, name, label_style)
            label_width += len(name)
            id_ = title.id
            if id_ is not None:
                buffer.append(offset, "[", label_style)
                if id_.url is not None:
                    buffer.append(offset, _LINK_OPEN.format(url=id_.url), label_style)
                buffer.append(offset, id_.code, label_style)
                if id_.url is not None:
                    buffer.append(offset, _LINK_CLOSE, label_style)
                buffer.append(offset, "]", label_style)
                label_width += 2 + len(id_.code)
            buffer.append(offset, ": ", text_style)
            label_width += 2

        if title_style is TitleStyle.SECONDARY:
            padding = " " * (max_line_num_len + 3 + label_width)
        else:
            padding = " " * label_width

        if title.is_pre_styled:
            text, style = title.text, ElementStyle.NO_STYLE
        else:
            text, style = normalize_whitespace(title.text), text_style
        for i, part in enumerate(text.split("\n")):
            if i != 0:
                buffer.append(offset + i, padding, ElementStyle.NO_STYLE)
                if title_style is TitleStyle.SECONDARY and is_cont and self.theme is OutputTheme.UNICODE:
                    painter.draw_col_separator_no_space(buffer, offset + i, max_line_num_len + 1)
            buffer.append(offset + i, part, style)


# ────────────────────────── Helpers ──────────────────────────


_NOT_FOUND = object()


def _primary_path(group: Group) -> str | None:
    """
    Path of the excerpt holding the group's primary annotation (or of a primary
    ``Origin``); failing that, of the first excerpt or origin at all.
    """
    found: Any = _NOT_FOUND
    for element in group.elements:
        if isinstance(element, Cause) and any(m.kind.is_primary for m in element.markers):
            found = element.path
            break
        if isinstance(element, Origin) and element.primary:
            found = element.path
            break
    if found is not _NOT_FOUND:
        return found
    for element in group.elements:
        if isinstance(element, (Cause, Origin)):
            return element.path
    return None


def max_line_number(groups: Sequence[Group]) -> int:
    """Largest line number any excerpt in ``groups`` may print; sizes the gutter."""
    best = 0
    for group in groups:
        group_best = 1 if not group.elements else 0
        for element in group.elements:
            if isinstance(element, (Cause, Suggestion)):
                if element.fold:
                    raw = element.source.encode("utf-8")
                    end = min(max((m.span.end for m in element.markers), default=len(raw)), len(raw))
                    body = raw[:end].decode("utf-8", errors="ignore")
                else:
                    body = element.source
                group_best = max(group_best, element.line_start + newline_count(body))
        best = max(best, group_best)
    return best
