"""
diagframe
=========

Compiler-style diagnostic rendering: describe what went wrong with ``Group``,
``Cause`` and ``Suggestion`` values, then turn them into text with a
``Renderer``::

    from diagframe import AnnotationKind, Cause, Group, Level, Renderer

    report = [
        Group.with_title(
            Level.ERROR.title("unused variable"),
            Cause("let x = 1;", path="src/main.rs").annotation(
                AnnotationKind.PRIMARY.span(range(4, 5), "unused")
            ),
        )
    ]
    print(Renderer.styled().render(report))
"""

from __future__ import annotations

from diagframe.errors import (
    EmptyReportError,
    MissingTitleError,
    RenderError,
    SpanBoundaryError,
    SpanOutOfBoundsError,
)
from diagframe.level import Level, LevelKind
from diagframe.renderer import ElementStyle, OutputTheme, Renderer, Stylesheet
from diagframe.snippet import (
    Annotation,
    AnnotationKind,
    Cause,
    Element,
    Group,
    Id,
    Message,
    Origin,
    Padding,
    Patch,
    Span,
    Suggestion,
    Title,
)

__all__ = [
    "Level",
    "LevelKind",
    "Span",
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
    "Renderer",
    "OutputTheme",
    "Stylesheet",
    "ElementStyle",
    "RenderError",
    "SpanOutOfBoundsError",
    "SpanBoundaryError",
    "MissingTitleError",
    "EmptyReportError",
]
