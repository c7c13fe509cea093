from __future__ import annotations

from diagframe import Group, Level, OutputTheme, Patch, Renderer, Span, Suggestion
from diagframe.renderer.suggestion import DisplaySuggestion, display_mode


def _render(*suggestions: Suggestion, title: str = "try this") -> list[str]:
    report = [Group.with_title(Level.HELP.title(title), *suggestions)]
    return Renderer().render(report).split("\n")


def test_insertion_is_underlined() -> None:
    s = Suggestion("foo(vec.pop().unwrap())").patch(Patch(Span(0, 23), "foo(vec.pop().unwrap()?)"))
    assert _render(s, title="use `?`") == [
        "help: use `?`",
        "  |",
        "1 | foo(vec.pop().unwrap()?)",
        "  |" + " " * 23 + "+",
    ]


def test_replacement_is_a_diff() -> None:
    s = Suggestion("let foo = 1;").patch(Patch(Span(4, 7), "bar"))
    assert _render(s, title="rename") == [
        "help: rename",
        "  |",
        "1 - let foo = 1;",
        "1 + let bar = 1;",
        "  |",
    ]


def test_suggestion_in_other_file_gets_header() -> None:
    s = Suggestion("let foo = 1;", path="src/lib.rs").patch(Patch(Span(4, 7), "bar"))
    assert _render(s, title="rename") == [
        "help: rename",
        " --> src/lib.rs:1:5",
        "  |",
        "1 - let foo = 1;",
        "1 + let bar = 1;",
        "  |",
    ]


def test_insertions_on_one_line_are_shifted() -> None:
    # both patches only extend their text; the second mark moves right by one
    s = Suggestion("f(a, b)").patches([Patch(Span(2, 3), "&a"), Patch(Span(5, 6), "&b")])
    rows = _render(s)
    assert rows[2] == "1 | f(&a, &b)"
    assert rows[3] == "  |   +   +"


def test_noop_suggestion_renders_nothing() -> None:
    s = Suggestion("abc")
    assert _render(s) == ["help: try this"]


def test_display_mode_selection() -> None:
    replace = [Patch(Span(4, 7), "bar")]
    assert display_mode("let bar = 1;", replace, True, False) is DisplaySuggestion.DIFF
    insert_line = [Patch(Span(0, 0), "#[derive(Debug)]\n")]
    assert display_mode("#[derive(Debug)]", insert_line, False, False) is DisplaySuggestion.ADD
    assert display_mode("let mut foo = 1;", [Patch(Span(4, 4), "mut ")], False, False) is (
        DisplaySuggestion.UNDERLINE
    )
    whole = [Patch(Span(0, 12), "a\nb")]
    assert display_mode("a\nb", whole, False, True) is DisplaySuggestion.NONE


def test_multiline_addition() -> None:
    src = "fn main() {\n    run();\n}"
    s = Suggestion(src).patch(Patch(Span(16, 16), "setup();\n    "))
    assert _render(s) == [
        "help: try this",
        "  |",
        "2 ~     setup();",
        "3 ~     run();",
        "  |",
    ]


def test_added_attribute_shows_following_line() -> None:
    s = Suggestion("struct S;").patch(Patch(Span(0, 0), "#[derive(Debug)]\n"))
    assert _render(s, title="derive it") == [
        "help: derive it",
        "  |",
        "1 + #[derive(Debug)]",
        "2 | struct S;",
        "  |",
    ]


def test_long_unchanged_run_is_collapsed() -> None:
    src = "let a = 1;\nb();\nc();\nd();\ne();\nlet f = 2;"
    s = Suggestion(src).patches([Patch(Span(4, 4), "mut "), Patch(Span(35, 35), "mut ")])
    assert _render(s, title="make them mutable") == [
        "help: make them mutable",
        "  |",
        "1 ~ let mut a = 1;",
        "2 | b();",
        "...",
        "5 | e();",
        "6 ~ let mut f = 2;",
        "  |",
    ]


def test_short_unchanged_run_is_kept() -> None:
    src = "let a = 1;\nb();\nlet f = 2;"
    s = Suggestion(src).patches([Patch(Span(4, 4), "mut "), Patch(Span(20, 20), "mut ")])
    assert _render(s, title="make them mutable") == [
        "help: make them mutable",
        "  |",
        "1 ~ let mut a = 1;",
        "2 | b();",
        "3 ~ let mut f = 2;",
        "  |",
    ]


def test_consecutive_suggestions_share_a_separator() -> None:
    first = Suggestion("let foo = 1;").patch(Patch(Span(4, 7), "bar"))
    second = Suggestion("let foo = 1;").patch(Patch(Span(4, 7), "baz"))
    assert _render(first, second, title="rename") == [
        "help: rename",
        "  |",
        "1 - let foo = 1;",
        "1 + let bar = 1;",
        "  |",
        "1 - let foo = 1;",
        "1 + let baz = 1;",
        "  |",
    ]


def test_consecutive_suggestions_unicode_joint() -> None:
    first = Suggestion("let foo = 1;").patch(Patch(Span(4, 7), "bar"))
    second = Suggestion("let foo = 1;").patch(Patch(Span(4, 7), "baz"))
    report = [Group.with_title(Level.HELP.title("rename"), first, second)]
    rows = Renderer(theme=OutputTheme.UNICODE).render(report).split("\n")
    assert rows[1] == "  ╭╴"
    assert rows[4] == "  ├╴"
    assert rows[7] == "  ╰╴"


def test_consecutive_suggestion_in_other_file_takes_the_joint_row() -> None:
    first = Suggestion("let foo = 1;").patch(Patch(Span(4, 7), "bar"))
    second = Suggestion("let foo = 1;", path="src/lib.rs").patch(Patch(Span(4, 7), "baz"))
    assert _render(first, second, title="rename") == [
        "help: rename",
        "  |",
        "1 - let foo = 1;",
        "1 + let bar = 1;",
        " --> src/lib.rs:1:5",
        "  |",
        "1 - let foo = 1;",
        "1 + let baz = 1;",
        "  |",
    ]


def test_blank_lines_removed_entirely() -> None:
    s = Suggestion("  \n\t", line_start=3).patch(Patch(Span(0, 4), ""))
    assert _render(s, title="remove the blank lines") == [
        "help: remove the blank lines",
        "  |",
        "3 -   ",
        "4 -     ",
        "  |",
    ]


def test_multiline_patch_marks_added_lines() -> None:
    src = "fn f() {\n    a();\n}"
    s = Suggestion(src).patch(Patch(Span(13, 17), "a();\n    b();"))
    assert _render(s, title="call b as well") == [
        "help: call b as well",
        "  |",
        "2 ~     a();",
        "3 +     b();",
        "  |",
    ]
