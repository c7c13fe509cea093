"""
diagframe builder model: what a diagnostic says, before any layout happens.

Everything here is an immutable value. The small ``annotation()`` / ``patch()``
/ ``element()`` helpers return new instances, so partially built groups can be
shared and extended freely.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeAlias, TypeVar

from diagframe.level import Level

if TYPE_CHECKING:
    from diagframe.renderer.source_map import SourceMap

__all__ = [
    "Span",
    "SpanLike",
    "as_span",
    "Id",
    "Title",
    "Message",
    "AnnotationKind",
    "Annotation",
    "Patch",
    "Cause",
    "Suggestion",
    "Origin",
    "Padding",
    "Element",
    "Group",
]


# ────────────────────────── Spans ──────────────────────────


@dataclass(frozen=True, order=True, slots=True)
class Span:
    """0-indexed, [start, end) half-open range of UTF-8 byte offsets."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"Span.start cannot be negative (got {self.start})")
        if self.end < self.start:
            raise ValueError(f"Span.end ({self.end}) < start ({self.start})")

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def __len__(self) -> int:
        return self.end - self.start


SpanLike: TypeAlias = "Span | range | tuple[int, int]"


def as_span(value: SpanLike) -> Span:
    if isinstance(value, Span):
        return value
    if isinstance(value, range):
        if value.step != 1:
            raise ValueError(f"span ranges must have step 1 (got {value.step})")
        return Span(value.start, value.stop)
    start, end = value
    return Span(start, end)


# ────────────────────────── Headers & messages ──────────────────────────


@dataclass(frozen=True, slots=True)
class Id:
    code: str
    url: str | None = None


@dataclass(frozen=True, slots=True)
class Title:
    """The ``error[E0308]: text`` line that opens a group."""

    level: Level
    text: str
    id: Id | None = None

    def with_id(self, code: str, url: str | None = None) -> Title:
        return replace(self, id=Id(code, url))

    @property
    def is_pre_styled(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Message:
    """A ``= note: text`` line. The text is printed exactly as given."""

    level: Level
    text: str

    @property
    def id(self) -> Id | None:
        return None

    @property
    def is_pre_styled(self) -> bool:
        return True


# ────────────────────────── Markers ──────────────────────────


class AnnotationKind(StrEnum):
    PRIMARY = "primary"
    CONTEXT = "context"
    # keeps its lines from being folded away without drawing anything
    VISIBLE = "visible"

    @property
    def is_primary(self) -> bool:
        return self is AnnotationKind.PRIMARY

    def span(
        self,
        span: SpanLike,
        label: str | None = None,
        *,
        highlight_source: bool = False,
    ) -> Annotation:
        return Annotation(as_span(span), self, label, highlight_source)


@dataclass(frozen=True, slots=True)
class Annotation:
    span: Span
    kind: AnnotationKind = AnnotationKind.PRIMARY
    label: str | None = None
    highlight_source: bool = False

    def with_label(self, label: str | None) -> Annotation:
        return replace(self, label=label)


@dataclass(frozen=True, slots=True)
class Patch:
    """Replace ``span`` with ``replacement``; an empty span is a pure insertion."""

    span: Span
    replacement: str

    def __post_init__(self) -> None:
        if not isinstance(self.span, Span):
            object.__setattr__(self, "span", as_span(self.span))

    def is_addition(self, sm: SourceMap) -> bool:
        return bool(self.replacement) and not self._replaces_meaningful_content(sm)

    def is_deletion(self, sm: SourceMap) -> bool:
        return not self.replacement.strip() and self._replaces_meaningful_content(sm)

    def is_replacement(self, sm: SourceMap) -> bool:
        return bool(self.replacement) and self._replaces_meaningful_content(sm)

    def is_destructive_replacement(self, sm: SourceMap) -> bool:
        """A replacement that does not simply wrap or extend the original text."""
        if not self.is_replacement(sm):
            return False
        snippet = sm.span_to_snippet(self.span)
        if snippet is None:
            return True
        return as_substr(snippet.strip(), self.replacement.strip()) is None

    def _replaces_meaningful_content(self, sm: SourceMap) -> bool:
        snippet = sm.span_to_snippet(self.span)
        if snippet is None:
            return not self.span.is_empty
        return bool(snippet.strip())

    def trim_trivial_replacements(self, sm: SourceMap) -> Patch:
        """
        Shrink ``foo -> foo?`` style patches down to the inserted text so the
        underline only covers what actually changes.
        """
        if not self.replacement:
            return self
        snippet = sm.span_to_snippet(self.span)
        if snippet is None:
            return self
        found = as_substr(snippet, self.replacement)
        if found is None:
            return self
        prefix, substr, suffix = found
        start = self.span.start + prefix
        end = max(self.span.end - suffix, start)
        return Patch(Span(start, end), substr)


def as_substr(original: str, suggestion: str) -> tuple[int, str, int] | None:
    """
    If ``suggestion`` is ``original`` with text inserted at one point, return
    ``(prefix_bytes, inserted, suffix_bytes)``. Otherwise ``None``.
    """
    common = 0
    for a, b in zip(original, suggestion):
        if a != b:
            break
        common += 1
    original_rest = original[common:]
    suggestion_rest = suggestion[common:]
    if not suggestion_rest.endswith(original_rest):
        return None
    inserted = suggestion_rest[: len(suggestion_rest) - len(original_rest)]
    return len(original[:common].encode()), inserted, len(original_rest.encode())


# ────────────────────────── Excerpts ──────────────────────────


M = TypeVar("M", Annotation, Patch)


@dataclass(frozen=True, slots=True)
class _Excerpt(Generic[M]):
    source: str
    line_start: int = 1
    path: str | None = None
    markers: tuple[M, ...] = ()
    # drop lines that carry no markers
    fold: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.markers, tuple):
            object.__setattr__(self, "markers", tuple(self.markers))


@dataclass(frozen=True, slots=True)
class Cause(_Excerpt[Annotation]):
    """A source excerpt with annotations pointing into it."""

    def annotation(self, annotation: Annotation) -> Cause:
        return replace(self, markers=self.markers + (annotation,))

    def annotations(self, annotations: Iterable[Annotation]) -> Cause:
        return replace(self, markers=self.markers + tuple(annotations))


@dataclass(frozen=True, slots=True)
class Suggestion(_Excerpt[Patch]):
    """A source excerpt with patches proposing a fix."""

    def patch(self, patch: Patch) -> Suggestion:
        return replace(self, markers=self.markers + (patch,))

    def patches(self, patches: Iterable[Patch]) -> Suggestion:
        return replace(self, markers=self.markers + tuple(patches))


@dataclass(frozen=True, slots=True)
class Origin:
    """A bare ``--> path:line:col`` pointer, for when there is no excerpt to show."""

    path: str
    line: int | None = None
    char_column: int | None = None
    primary: bool = False


@dataclass(frozen=True, slots=True)
class Padding:
    pass


Element: TypeAlias = "Message | Cause | Suggestion | Origin | Padding"


# ────────────────────────── Groups ──────────────────────────


@dataclass(frozen=True, slots=True)
class Group:
    """One titled block of a report: the main diagnostic or a sub-diagnostic."""

    primary_level: Level
    title: Title | None = None
    elements: tuple[Element, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.elements, tuple):
            object.__setattr__(self, "elements", tuple(self.elements))

    @classmethod
    def with_title(cls, title: Title, *elements: Element) -> Group:
        return cls(title.level, title, tuple(elements))

    @classmethod
    def with_level(cls, level: Level, *elements: Element) -> Group:
        return cls(level, None, tuple(elements))

    def element(self, element: Element) -> Group:
        return replace(self, elements=self.elements + (element,))

    def elements_from(self, elements: Iterable[Element]) -> Group:
        return replace(self, elements=self.elements + tuple(elements))

    @property
    def is_empty(self) -> bool:
        return not self.elements and self.title is None
