"""
Location resolution for one excerpt: byte offsets to (line, char, display
column), per-line annotation classification, and patch splicing.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from diagframe.constants import MULTILINE_CONTEXT_LINES, TAB_WIDTH
from diagframe.errors import SpanBoundaryError, SpanOutOfBoundsError
from diagframe.renderer.text import byte_slice, char_width, utf8_len
from diagframe.snippet import Annotation, AnnotationKind, Patch, Span

__all__ = [
    "Loc",
    "LineInfo",
    "AnnotationType",
    "LineAnnotation",
    "MultilineAnnotation",
    "AnnotatedLineInfo",
    "SubstitutionHighlight",
    "Splice",
    "SourceMap",
]


# ────────────────────────── Core model ──────────────────────────


@dataclass(frozen=True, order=True, slots=True)
class Loc:
    line: int = 0
    char: int = 0
    display: int = 0
    byte: int = 0


@dataclass(frozen=True, slots=True)
class LineInfo:
    line: str
    line_index: int
    start_byte: int
    # includes the line terminator
    end_byte: int
    end_line_size: int
    # byte offset (relative to start_byte) where each char begins, plus the line length
    char_bytes: tuple[int, ...] = field(repr=False, compare=False, default=())
    # display column where each char begins, plus the line width
    char_display: tuple[int, ...] = field(repr=False, compare=False, default=())

    @property
    def byte_len(self) -> int:
        return self.char_bytes[-1]


class AnnotationType(Enum):
    SINGLELINE = "singleline"
    # first character of a multi-line span
    MULTILINE_START = "multiline_start"
    # last character of a multi-line span, carries the label
    MULTILINE_END = "multiline_end"
    # a line in between; only reserves the bracket column
    MULTILINE_LINE = "multiline_line"


@dataclass(frozen=True, slots=True)
class LineAnnotation:
    start: Loc
    end: Loc
    kind: AnnotationKind
    label: str | None
    annotation_type: AnnotationType
    # bracket column; 0 for single-line annotations
    depth: int = 0
    highlight_source: bool = False

    def is_primary(self) -> bool:
        return self.kind is AnnotationKind.PRIMARY

    def is_line(self) -> bool:
        return self.annotation_type is AnnotationType.MULTILINE_LINE

    def len(self) -> int:
        return abs(self.end.display - self.start.display)

    def has_label(self) -> bool:
        # an empty label would only leave dangling connector lines behind
        return bool(self.label)

    def takes_space(self) -> bool:
        return self.annotation_type in (AnnotationType.MULTILINE_START, AnnotationType.MULTILINE_END)


@dataclass(slots=True)
class MultilineAnnotation:
    depth: int
    start: Loc
    end: Loc
    kind: AnnotationKind
    label: str | None
    overlaps_exactly: bool = False
    highlight_source: bool = False

    def same_span(self, other: MultilineAnnotation) -> bool:
        return self.start == other.start and self.end == other.end

    def as_start(self) -> LineAnnotation:
        end = Loc(self.start.line, self.start.char + 1, self.start.display + 1, self.start.byte + 1)
        return LineAnnotation(
            self.start, end, self.kind, None,
            AnnotationType.MULTILINE_START, self.depth, self.highlight_source,
        )

    def as_end(self) -> LineAnnotation:
        start = Loc(
            self.end.line,
            max(self.end.char - 1, 0),
            max(self.end.display - 1, 0),
            max(self.end.byte - 1, 0),
        )
        return LineAnnotation(
            start, self.end, self.kind, self.label,
            AnnotationType.MULTILINE_END, self.depth, self.highlight_source,
        )

    def as_line(self) -> LineAnnotation:
        return LineAnnotation(
            Loc(), Loc(), self.kind, None,
            AnnotationType.MULTILINE_LINE, self.depth, self.highlight_source,
        )


@dataclass(slots=True)
class AnnotatedLineInfo:
    line: str
    line_index: int
    annotations: list[LineAnnotation] = field(default_factory=list)
    keep: bool = False


@dataclass(frozen=True, slots=True)
class SubstitutionHighlight:
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class Splice:
    """The patched text of the lines a suggestion touches."""

    complete: str
    patches: tuple[Patch, ...]
    # per line of `complete`, the char ranges that were inserted
    highlights: tuple[tuple[SubstitutionHighlight, ...], ...]


# ────────────────────────── Line splitting ──────────────────────────


def _cursor_lines(source: str) -> Iterator[tuple[str, int]]:
    """Yield ``(line, terminator_bytes)``; ``\\r\\n`` counts two, a final unterminated line zero."""
    rest = source
    while rest:
        idx = rest.find("\n")
        if idx < 0:
            yield rest, 0
            return
        if idx > 0 and rest[idx - 1] == "\r":
            yield rest[: idx - 1], 2
        else:
            yield rest[:idx], 1
        rest = rest[idx + 1 :]


def _line_info(line: str, line_index: int, start_byte: int, eol: int) -> LineInfo:
    char_bytes = [0]
    char_display = [0]
    for ch in line:
        char_bytes.append(char_bytes[-1] + utf8_len(ch))
        char_display.append(char_display[-1] + char_width(ch))
    length = char_bytes[-1]
    return LineInfo(
        line=line,
        line_index=line_index,
        start_byte=start_byte,
        end_byte=start_byte + length + eol,
        end_line_size=eol,
        char_bytes=tuple(char_bytes),
        char_display=tuple(char_display),
    )


def _is_substantive(line: str) -> bool:
    """False for blank lines, lone delimiters and plain ``//`` comments."""
    s = line.strip()
    if s.startswith("//") and not (s.startswith("///") or s.startswith("//!")):
        return False
    return s not in ("", "{", "}", "(", ")", "[", "]")


def num_overlap(a_start: int, a_end: int, b_start: int, b_end: int, inclusive: bool) -> bool:
    extra = 1 if inclusive else 0
    return b_start <= a_start < b_end + extra or a_start <= b_start < a_end + extra


# ────────────────────────── Source map ──────────────────────────


class SourceMap:
    """
    Line table for one excerpt. Lines are split exactly once; every lookup
    afterwards reuses the cached per-character offsets.
    """

    def __init__(self, source: str, line_start: int = 1) -> None:
        self.source = source
        self.line_start = line_start
        self._byte_len = utf8_len(source)
        lines: list[LineInfo] = []
        current = 0
        for idx, (line, eol) in enumerate(_cursor_lines(source)):
            info = _line_info(line, line_start + idx, current, eol)
            lines.append(info)
            current = info.end_byte
        if not lines:
            lines.append(_line_info("", line_start, 0, 0))
        self.lines: tuple[LineInfo, ...] = tuple(lines)
        self._by_index = {info.line_index: info for info in self.lines}

    def __repr__(self) -> str:
        return f"SourceMap(lines={len(self.lines)}, line_start={self.line_start})"

    @property
    def byte_len(self) -> int:
        return self._byte_len

    # ---- lookups ----------------------------------------------------------------

    def get_line(self, line_index: int) -> str | None:
        info = self._by_index.get(line_index)
        return info.line if info is not None else None

    def _line_for(self, offset: int) -> LineInfo:
        for info in self.lines:
            if info.start_byte <= offset < info.end_byte:
                return info
        return self.lines[-1]

    @staticmethod
    def _column(info: LineInfo, offset: int) -> tuple[int, int]:
        """(char, display) of ``offset`` within ``info``, clipped to the line text."""
        rel = min(max(offset - info.start_byte, 0), info.byte_len)
        k = bisect.bisect_left(info.char_bytes, rel)
        if info.char_bytes[k] != rel:
            raise SpanBoundaryError(offset)
        return k, info.char_display[k]

    def span_to_locations(self, span: Span) -> tuple[Loc, Loc]:
        start_info = self._line_for(span.start)
        start_char, start_display = self._column(start_info, span.start)
        # pointing at the line terminator (or past it) counts as one char further
        if span.start - start_info.start_byte > start_info.byte_len:
            start_char += 1
        start = Loc(start_info.line_index, start_char, start_display, span.start)

        if span.start == span.end:
            return start, start

        end_info = self._line_for(span.end)
        end_char, end_display = self._column(end_info, span.end)
        end = Loc(end_info.line_index, end_char, end_display, span.end)
        if start.line != end.line and end.byte > end_info.end_byte:
            end = replace(end, char=end.char + 1, display=end.display + 1)
        return start, end

    def span_to_lines(self, span: Span) -> list[LineInfo]:
        lines: list[LineInfo] = []
        for info in self.lines:
            if span.start >= info.end_byte:
                continue
            if span.end < info.start_byte:
                break
            lines.append(info)
        if not lines:
            lines.append(self.lines[-1])
        return lines

    def span_to_snippet(self, span: Span) -> str | None:
        if span.end > self._byte_len:
            return None
        try:
            return byte_slice(self.source, span.start, span.end)
        except SpanBoundaryError:
            return None

    def _check_bounds(self, spans: Sequence[Span], what: str) -> None:
        # one past the end is allowed so EOF can be pointed at
        for span in spans:
            if span.end > self._byte_len + 1:
                raise SpanOutOfBoundsError(span, self._byte_len, what)

    # ---- annotations ------------------------------------------------------------

    def annotated_lines(
        self, annotations: Sequence[Annotation], fold: bool
    ) -> tuple[int, list[AnnotatedLineInfo]]:
        """
        Classify every annotation per line. Returns the deepest multi-line
        bracket column and the lines to draw, in line order.
        """
        self._check_bounds([a.span for a in annotations], "annotation")

        infos = [AnnotatedLineInfo(info.line, info.line_index) for info in self.lines]
        multiline: list[MultilineAnnotation] = []

        for ann in annotations:
            lo, hi = self.span_to_locations(ann.span)
            if ann.kind is AnnotationKind.VISIBLE:
                for line_idx in range(lo.line, hi.line + 1):
                    self._keep_line(infos, line_idx)
                continue
            # degenerate 6..6 spans still get a one-column marker
            if lo.display == hi.display and lo.line == hi.line:
                hi = replace(hi, display=hi.display + 1)

            if lo.line == hi.line:
                self._add_annotation(
                    infos,
                    lo.line,
                    LineAnnotation(
                        lo, hi, ann.kind, ann.label, AnnotationType.SINGLELINE,
                        highlight_source=ann.highlight_source,
                    ),
                )
            else:
                multiline.append(
                    MultilineAnnotation(
                        1, lo, hi, ann.kind, ann.label, highlight_source=ann.highlight_source
                    )
                )

        max_depth = self._assign_depths(multiline)

        for ml in multiline:
            end_ann = ml.as_end()
            if ml.overlaps_exactly:
                end_ann = replace(end_ann, annotation_type=AnnotationType.SINGLELINE, depth=0)
            else:
                self._add_annotation(infos, ml.start.line, ml.as_start())
                # at most a few lines of bracket after the start, minus any tail
                # of blank/delimiter/comment lines
                middle = min(ml.start.line + MULTILINE_CONTEXT_LINES, ml.end.line)
                until = ml.start.line
                for line in range(middle - 1, ml.start.line - 1, -1):
                    text = self.get_line(line)
                    if text is not None and _is_substantive(text):
                        until = line + 1
                        break
                for line in range(ml.start.line + 1, until):
                    self._add_annotation(infos, line, ml.as_line())
                line_end = ml.end.line - 1
                end_text = self.get_line(line_end)
                end_is_empty = end_text is not None and not _is_substantive(end_text)
                if middle < line_end and not end_is_empty:
                    self._add_annotation(infos, line_end, ml.as_line())
            self._add_annotation(infos, end_ann.start.line, end_ann)

        if fold:
            infos = [info for info in infos if info.annotations or info.keep]
        return max_depth, infos

    @staticmethod
    def _assign_depths(multiline: list[MultilineAnnotation]) -> int:
        """
        Give overlapping multi-line spans distinct bracket columns, outermost
        span leftmost. Mutates ``multiline`` (sorted, depths set).
        """
        multiline.sort(key=lambda ml: (ml.start.line, -ml.end.line))
        primary_spans: list[tuple[Loc, Loc]] = []
        for ann in [replace(ml) for ml in multiline]:
            if ann.kind is AnnotationKind.PRIMARY:
                primary_spans.append((ann.start, ann.end))
            for a in multiline:
                if not ann.same_span(a) and num_overlap(
                    ann.start.line, ann.end.line, a.start.line, a.end.line, True
                ):
                    a.depth += 1
                elif ann.same_span(a) and ann != a:
                    a.overlaps_exactly = True
                else:
                    if any(a.start == s and a.end == e for s, e in primary_spans):
                        a.kind = AnnotationKind.PRIMARY
                    break

        max_depth = max((ml.depth for ml in multiline), default=0)
        for ml in multiline:
            ml.depth = max_depth - ml.depth + 1
        return max_depth

    def _keep_line(self, infos: list[AnnotatedLineInfo], line_index: int) -> None:
        for info in infos:
            if info.line_index == line_index:
                info.keep = True
                return

    def _add_annotation(
        self, infos: list[AnnotatedLineInfo], line_index: int, line_ann: LineAnnotation
    ) -> None:
        for info in infos:
            if info.line_index == line_index:
                info.annotations.append(line_ann)
                return
        source_line = self._by_index.get(line_index)
        if source_line is None:
            return
        infos.append(AnnotatedLineInfo(source_line.line, line_index, [line_ann]))
        infos.sort(key=lambda i: i.line_index)

    # ---- patches ----------------------------------------------------------------

    def splice_lines(self, patches: Sequence[Patch]) -> list[Splice]:
        """
        Apply ``patches`` to the lines they touch. Returns at most one splice;
        none when no patch changes anything visible.
        """
        self._check_bounds([p.span for p in patches], "patch")
        if not patches:
            return []
        ordered = sorted(patches, key=lambda p: p.span.start)
        lo = min(p.span.start for p in ordered)
        hi = max(p.span.end for p in ordered)

        lines = self.span_to_lines(Span(lo, hi))
        prev_hi, _ = self.span_to_locations(Span(lo, hi))
        prev_hi = replace(prev_hi, char=0)
        prev_line: str | None = lines[0].line if lines else None

        buf: list[str] = []
        highlights: list[tuple[SubstitutionHighlight, ...]] = []
        line_highlight: list[SubstitutionHighlight] = []

        # "a" -> "ab" reads better as "insert b"
        trimmed = [p.trim_trivial_replacements(self) for p in ordered]
        # columns gained or lost on the current line by earlier patches
        acc = 0
        for part in trimmed:
            cur_lo, cur_hi = self.span_to_locations(part.span)
            if prev_hi.line == cur_lo.line:
                _push_trailing(buf, prev_line, prev_hi, cur_lo)
            else:
                acc = 0
                highlights.append(tuple(line_highlight))
                line_highlight = []
                _push_trailing(buf, prev_line, prev_hi, None)
                for idx in range(prev_hi.line + 1, cur_lo.line):
                    line = self.get_line(idx)
                    if line is not None:
                        buf.append(line)
                        buf.append("\n")
                        highlights.append(tuple(line_highlight))
                        line_highlight = []
                cur_line = self.get_line(cur_lo.line)
                if cur_line is not None:
                    buf.append(cur_line[: cur_lo.char])

            first, *rest = part.replacement.split("\n")
            length = _highlight_width(first)
            line_highlight.append(
                SubstitutionHighlight(max(cur_lo.char + acc, 0), max(cur_lo.char + acc + length, 0))
            )
            buf.append(part.replacement)
            # cur_hi may sit on a later line than cur_lo, making this negative
            acc += length - (cur_hi.char - cur_lo.char)
            prev_hi = cur_hi
            prev_line = self.get_line(prev_hi.line)
            for line in rest:
                acc = 0
                highlights.append(tuple(line_highlight))
                line_highlight = [SubstitutionHighlight(0, _highlight_width(line))]

        highlights.append(tuple(line_highlight))
        complete = "".join(buf)
        # a replacement that already ends the line suppresses the trailing text
        if not complete.endswith("\n"):
            _push_trailing(buf, prev_line, prev_hi, None)
            complete = "".join(buf)
        complete = complete.rstrip("\n")

        if all(not parts for parts in highlights):
            return []
        return [Splice(complete, tuple(trimmed), tuple(highlights))]


def _highlight_width(text: str) -> int:
    return sum(TAB_WIDTH if ch == "\t" else 1 for ch in text)


def _push_trailing(buf: list[str], line: str | None, lo: Loc, hi: Loc | None) -> None:
    """Copy ``line[lo:hi]`` (or ``line[lo:]`` plus a newline when ``hi`` is None)."""
    if line is None:
        return
    if lo.char < len(line):
        if hi is None or hi.char >= len(line):
            buf.append(line[lo.char :])
        elif hi.char > lo.char:
            buf.append(line[lo.char : hi.char])
    if hi is None:
        buf.append("\n")
