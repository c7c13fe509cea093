from __future__ import annotations

import pytest

from diagframe import (
    AnnotationKind,
    Cause,
    EmptyReportError,
    Group,
    Level,
    MissingTitleError,
    Renderer,
)


def _cause(path: str | None = "src/main.rs") -> Cause:
    return Cause("let x = 1;", path=path).annotations(
        [
            AnnotationKind.PRIMARY.span(range(4, 5), "unused"),
            AnnotationKind.CONTEXT.span(range(8, 9), "value"),
        ]
    )


def test_short_with_path() -> None:
    report = [Group.with_title(Level.ERROR.title("unused variable"), _cause())]
    out = Renderer(short_message=True).render(report)
    # only primary labels are listed
    assert out == "src/main.rs:1:5: error: unused variable: unused"


def test_short_without_path() -> None:
    report = [Group.with_title(Level.WARNING.title("unused variable"), _cause(None))]
    assert Renderer().render_short(report) == "warning: unused variable: unused"


def test_short_ignores_later_groups() -> None:
    report = [
        Group.with_title(Level.ERROR.title("first").with_id("E0001")),
        Group.with_title(Level.HELP.title("second")),
    ]
    assert Renderer().render_short(report) == "error[E0001]: first"


def test_short_requires_groups_and_title() -> None:
    with pytest.raises(EmptyReportError):
        Renderer().render_short([])
    with pytest.raises(MissingTitleError):
        Renderer().render_short([Group.with_level(Level.ERROR, _cause())])
