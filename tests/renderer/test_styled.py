from __future__ import annotations

import re

import pytest
from rich.errors import StyleSyntaxError

from diagframe import AnnotationKind, Cause, Group, Level, Patch, Renderer, Span, Stylesheet, Suggestion

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _report() -> list[Group]:
    cause = Cause("let foo = 1;", path="src/main.rs").annotations(
        [
            AnnotationKind.PRIMARY.span(range(4, 7), "unused"),
            AnnotationKind.CONTEXT.span(range(10, 11), "value"),
        ]
    )
    return [
        Group.with_title(Level.WARNING.title("unused variable").with_id("W1"), cause, Level.NOTE.message("on by default")),
        Group.with_title(
            Level.HELP.title("prefix it with an underscore"),
            Suggestion("let foo = 1;", path="src/main.rs").patch(Patch(Span(4, 7), "_foo")),
        ),
    ]


def test_styled_output_matches_plain_text() -> None:
    plain = Renderer.plain().render(_report())
    styled = Renderer.styled(legacy_windows=False).render(_report())
    assert "\x1b[" in styled
    assert _ANSI.sub("", styled) == plain


def test_plain_output_has_no_escapes() -> None:
    assert "\x1b" not in Renderer.plain().render(_report())


def test_primary_underline_uses_level_colour() -> None:
    renderer = Renderer().with_styles(warning="red", context="blue")
    out = renderer.render(_report())
    assert "\x1b[31m^^^" in out
    assert "\x1b[34m-" in out


def test_legacy_windows_palette() -> None:
    assert Stylesheet.styled(legacy_windows=True).warning == "bold bright_yellow"
    assert Stylesheet.styled(legacy_windows=False).warning == "bold yellow"


def test_invalid_styles_rejected_early() -> None:
    with pytest.raises(StyleSyntaxError):
        Stylesheet(error="not-a-colour")
    with pytest.raises(KeyError):
        Renderer().with_styles(errror="red")


@pytest.mark.parametrize("highlight", [True, False])
def test_highlight_source_restyles_annotated_code(highlight: bool) -> None:
    cause = Cause("let x = 1;").annotation(
        AnnotationKind.PRIMARY.span(range(4, 5), "unused", highlight_source=highlight)
    )
    renderer = Renderer().with_styles(error="red")
    code_row = renderer.render([Group.with_title(Level.ERROR.title("unused variable"), cause)]).split("\n")[2]
    if highlight:
        assert code_row == "1 | let \x1b[31mx\x1b[0m = 1;"
    else:
        assert code_row == "1 | let x = 1;"
