"""
diagframe exceptions: a base RenderError plus the caller-contract violations the
renderer refuses to paper over (spans outside their excerpt, offsets that split
a UTF-8 sequence, short-mode reports without a title).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diagframe.snippet import Span

__all__ = [
    "RenderError",
    "SpanOutOfBoundsError",
    "SpanBoundaryError",
    "MissingTitleError",
    "EmptyReportError",
]


class RenderError(Exception):
    """Base class for everything diagframe raises on bad input."""


@dataclass(slots=True, eq=False)
class SpanOutOfBoundsError(RenderError, IndexError):
    """A marker's byte range reaches past the end of its excerpt."""

    span: Span
    source_len: int
    what: str = "span"

    def __str__(self) -> str:
        return (
            f"{self.what} {self.span.start}..{self.span.end} is out of bounds "
            f"for a source of {self.source_len} bytes"
        )


@dataclass(slots=True, eq=False)
class SpanBoundaryError(RenderError, ValueError):
    """A byte offset lands inside a multi-byte UTF-8 sequence."""

    offset: int

    def __str__(self) -> str:
        return f"byte offset {self.offset} is not on a UTF-8 character boundary"


class MissingTitleError(RenderError, ValueError):
    """The first group of a short-form report has no title."""


class EmptyReportError(RenderError, ValueError):
    """A short-form report was requested for zero groups."""
