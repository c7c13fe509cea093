from __future__ import annotations

import re

import pytest

from diagframe import (
    AnnotationKind,
    Cause,
    Group,
    Level,
    Origin,
    OutputTheme,
    Padding,
    Renderer,
    SpanOutOfBoundsError,
)

UNUSED_SRC = "let x = 1;"


def _unused(path: str | None = None) -> Cause:
    return Cause(UNUSED_SRC, path=path).annotation(AnnotationKind.PRIMARY.span(range(4, 5), "unused"))


def _rows(text: str) -> list[str]:
    return text.split("\n")


def test_single_line_ascii() -> None:
    report = [Group.with_title(Level.ERROR.title("unused variable"), _unused())]
    assert _rows(Renderer().render(report)) == [
        "error: unused variable",
        "  |",
        "1 | let x = 1;",
        "  |     ^ unused",
    ]


def test_single_line_with_path() -> None:
    report = [Group.with_title(Level.ERROR.title("unused variable"), _unused("src/main.rs"))]
    assert _rows(Renderer().render(report)) == [
        "error: unused variable",
        " --> src/main.rs:1:5",
        "  |",
        "1 | let x = 1;",
        "  |     ^ unused",
    ]


def test_single_line_unicode() -> None:
    report = [Group.with_title(Level.ERROR.title("unused variable"), _unused())]
    out = Renderer(theme=OutputTheme.UNICODE).render(report)
    assert _rows(out) == [
        "error: unused variable",
        "  ╭▸ ",
        "1 │ let x = 1;",
        "  ╰╴    ━ unused",
    ]


def test_anonymized_line_numbers() -> None:
    report = [Group.with_title(Level.ERROR.title("unused variable"), _unused())]
    out = Renderer(anonymized_line_numbers=True).render(report)
    assert _rows(out) == [
        "error: unused variable",
        "   |",
        "LL | let x = 1;",
        "   |     ^ unused",
    ]


def test_title_with_id() -> None:
    report = [Group.with_title(Level.ERROR.title("mismatched types").with_id("E0308"))]
    assert Renderer().render(report) == "error[E0308]: mismatched types"


def test_title_id_link() -> None:
    title = Level.ERROR.title("mismatched types").with_id("E0308", "https://example.invalid/E0308")
    out = Renderer().render([Group.with_title(title)])
    assert out == (
        "error[\x1b]8;;https://example.invalid/E0308\x1b\\E0308\x1b]8;;\x1b\\]: mismatched types"
    )


def test_multiline_title_is_indented() -> None:
    out = Renderer().render([Group.with_title(Level.ERROR.title("first\nsecond"))])
    assert _rows(out) == ["error: first", "       second"]


def test_nameless_level() -> None:
    out = Renderer().render([Group.with_title(Level.HELP.no_name().title("just text"))])
    assert out == "just text"


def test_multiline_span() -> None:
    src = "let a = (1 +\n    2 +\n    3);"
    cause = Cause(src, fold=False).annotation(AnnotationKind.PRIMARY.span(range(8, 26), "sum"))
    out = Renderer().render([Group.with_title(Level.ERROR.title("bad sum"), cause)])
    assert _rows(out) == [
        "error: bad sum",
        "  |",
        "1 |   let a = (1 +",
        "  |  _________^",
        "2 | |     2 +",
        "3 | |     3);",
        "  | |_____^ sum",
    ]


def test_message_after_cause() -> None:
    report = [
        Group.with_title(
            Level.ERROR.title("unused variable"),
            _unused(),
            Level.NOTE.message("x is never read"),
        )
    ]
    assert _rows(Renderer().render(report)) == [
        "error: unused variable",
        "  |",
        "1 | let x = 1;",
        "  |     ^ unused",
        "  |",
        "  = note: x is never read",
    ]


def test_groups_joined_by_newline() -> None:
    report = [
        Group.with_title(Level.ERROR.title("unused variable"), _unused()),
        Group.with_title(Level.HELP.title("remove it")),
    ]
    assert _rows(Renderer().render(report)) == [
        "error: unused variable",
        "  |",
        "1 | let x = 1;",
        "  |     ^ unused",
        "  |",
        "help: remove it",
    ]


def test_origin_element() -> None:
    report = [Group.with_title(Level.ERROR.title("oops"), Origin("src/main.rs", 3, 7, primary=True))]
    assert _rows(Renderer().render(report)) == ["error: oops", " --> src/main.rs:3:7"]


def test_padding_closes_group() -> None:
    report = [Group.with_title(Level.ERROR.title("oops"), Level.NOTE.message("first"), Padding())]
    rows = _rows(Renderer().render(report))
    assert rows[0] == "error: oops"
    assert rows[-1] == "  |"


def test_gap_of_one_line_is_shown() -> None:
    src = "a\nb\nc"
    cause = Cause(src).annotations(
        [
            AnnotationKind.PRIMARY.span(range(0, 1), "first"),
            AnnotationKind.CONTEXT.span(range(4, 5), "third"),
        ]
    )
    rows = _rows(Renderer().render([Group.with_title(Level.ERROR.title("t"), cause)]))
    assert "2 | b" in rows
    assert "  | - third" in rows


def test_gap_of_many_lines_is_elided() -> None:
    src = "a\n\n\n\nb"
    cause = Cause(src).annotations(
        [
            AnnotationKind.PRIMARY.span(range(0, 1), "first"),
            AnnotationKind.CONTEXT.span(range(5, 6), "last"),
        ]
    )
    rows = _rows(Renderer().render([Group.with_title(Level.ERROR.title("t"), cause)]))
    assert "..." in rows
    assert "5 | b" in rows


def test_whitespace_trimming() -> None:
    source = " " * 180 + "let _: () = 42ñ"
    cause = Cause(source, line_start=4, path="$DIR/whitespace-trimming.rs").annotation(
        AnnotationKind.PRIMARY.span(range(192, 194), "expected (), found integer")
    )
    title = Level.ERROR.title("mismatched types").with_id("E0308")
    out = Renderer(anonymized_line_numbers=True).render([Group.with_title(title, cause)])
    assert _rows(out) == [
        "error[E0308]: mismatched types",
        "  --> $DIR/whitespace-trimming.rs:4:193",
        "   |",
        "LL | ..." + " " * 19 + "let _: () = 42ñ",
        "   |" + " " * 35 + "^^ expected (), found integer",
    ]


def test_very_long_span_is_truncated() -> None:
    cause = Cause("a" * 2000).annotation(AnnotationKind.PRIMARY.span(range(0, 2000), "long"))
    out = Renderer().render([Group.with_title(Level.ERROR.title("wide"), cause)])
    rows = _rows(out)
    assert re.fullmatch(r"1 \| a+\.\.\.a+", rows[2])
    assert re.fullmatch(r"  \| \^+\.\.\.\^+ long", rows[3])
    assert all(len(row) <= 140 for row in rows)


def test_out_of_bounds_annotation_raises() -> None:
    cause = Cause("abc").annotation(AnnotationKind.PRIMARY.span(range(0, 10)))
    with pytest.raises(SpanOutOfBoundsError):
        Renderer().render([Group.with_title(Level.ERROR.title("t"), cause)])


def test_gutter_width_follows_largest_line_number() -> None:
    cause = Cause("x", line_start=120).annotation(AnnotationKind.PRIMARY.span(range(0, 1)))
    rows = _rows(Renderer().render([Group.with_title(Level.ERROR.title("t"), cause)]))
    assert rows[2] == "120 | x"


def test_evolve() -> None:
    r = Renderer().evolve(term_width=80, theme=OutputTheme.UNICODE)
    assert r.term_width == 80
    assert r.theme is OutputTheme.UNICODE
    with pytest.raises(KeyError):
        Renderer().evolve(colour=True)
    with pytest.raises(ValueError):
        Renderer(term_width=-1)


def test_unicode_note_after_cause(unicode_renderer: Renderer) -> None:
    report = [
        Group.with_title(
            Level.ERROR.title("unused variable"),
            _unused(),
            Level.NOTE.message("x is never read"),
        )
    ]
    assert _rows(unicode_renderer.render(report)) == [
        "error: unused variable",
        "  ╭▸ ",
        "1 │ let x = 1;",
        "  │     ━ unused",
        "  │",
        "  ╰ note: x is never read",
    ]


def test_rendering_is_repeatable(plain_renderer: Renderer) -> None:
    report = [Group.with_title(Level.ERROR.title("unused variable"), _unused("src/main.rs"))]
    first = plain_renderer.render(report)
    assert plain_renderer.render(report) == first
    assert Renderer().render(report) == first


def test_empty_report_renders_nothing(plain_renderer: Renderer) -> None:
    assert plain_renderer.render([]) == ""


def test_secondary_excerpt_gets_its_own_header() -> None:
    caller = Cause("let x: u32 = f();", path="src/main.rs").annotation(
        AnnotationKind.PRIMARY.span(range(13, 16), "expected u32")
    )
    callee = Cause("fn f() -> i32 {}", path="src/lib.rs").annotation(
        AnnotationKind.CONTEXT.span(range(10, 13), "returns i32")
    )
    out = Renderer().render([Group.with_title(Level.ERROR.title("mismatched types"), caller, callee)])
    assert _rows(out) == [
        "error: mismatched types",
        " --> src/main.rs:1:14",
        "  |",
        "1 | let x: u32 = f();",
        "  |" + " " * 14 + "^^^ expected u32",
        "  |",
        " ::: src/lib.rs:1:11",
        "  |",
        "1 | fn f() -> i32 {}",
        "  |" + " " * 11 + "--- returns i32",
    ]


def test_multiline_span_unicode(unicode_renderer: Renderer) -> None:
    src = "let a = (1 +\n    2 +\n    3);"
    cause = Cause(src, fold=False).annotation(AnnotationKind.PRIMARY.span(range(8, 26), "sum"))
    out = unicode_renderer.render([Group.with_title(Level.ERROR.title("bad sum"), cause)])
    assert _rows(out) == [
        "error: bad sum",
        "  ╭▸ ",
        "1 │   let a = (1 +",
        "  │ ┏━━━━━━━━━┛",
        "2 │ ┃     2 +",
        "3 │ ┃     3);",
        "  ╰╴┗━━━━━┛ sum",
    ]


def test_crlf_source() -> None:
    cause = Cause("let x = 1;\r\nlet y = 2;\r\n", path="src/main.rs").annotation(
        AnnotationKind.PRIMARY.span(range(16, 17), "unused")
    )
    out = Renderer().render([Group.with_title(Level.WARNING.title("unused variable"), cause)])
    assert _rows(out) == [
        "warning: unused variable",
        " --> src/main.rs:2:5",
        "  |",
        "2 | let y = 2;",
        "  |     ^ unused",
    ]
