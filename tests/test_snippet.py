from __future__ import annotations

import pytest

from diagframe import (
    Annotation,
    AnnotationKind,
    Cause,
    Group,
    Id,
    Level,
    LevelKind,
    Message,
    Patch,
    Span,
    Suggestion,
    Title,
)
from diagframe.renderer.source_map import SourceMap
from diagframe.snippet import as_span, as_substr


def test_span_validation() -> None:
    assert Span(2, 5).is_empty is False
    assert len(Span(2, 5)) == 3
    assert Span(3, 3).is_empty
    with pytest.raises(ValueError):
        Span(5, 2)
    with pytest.raises(ValueError):
        Span(-1, 2)


def test_as_span_accepts_ranges_and_tuples() -> None:
    assert as_span(range(1, 4)) == Span(1, 4)
    assert as_span((1, 4)) == Span(1, 4)
    with pytest.raises(ValueError):
        as_span(range(0, 10, 2))


def test_level_names() -> None:
    assert Level.ERROR.as_str() == "error"
    assert Level.WARNING.with_name("lint").as_str() == "lint"
    assert Level.HELP.no_name().as_str() == ""
    assert Level.NOTE.with_name(None).show_name is False
    assert Level.ERROR.with_name("E").kind is LevelKind.ERROR


def test_level_builders() -> None:
    title = Level.ERROR.title("mismatched types").with_id("E0308", "https://example.invalid/E0308")
    assert isinstance(title, Title)
    assert title.id == Id("E0308", "https://example.invalid/E0308")
    msg = Level.NOTE.message("see here")
    assert isinstance(msg, Message)
    assert msg.id is None
    assert msg.is_pre_styled and not title.is_pre_styled


def test_builders_return_new_values() -> None:
    cause = Cause("let x = 1;")
    with_ann = cause.annotation(AnnotationKind.PRIMARY.span(range(4, 5), "here"))
    assert cause.markers == ()
    assert with_ann.markers == (Annotation(Span(4, 5), AnnotationKind.PRIMARY, "here"),)

    group = Group.with_title(Level.ERROR.title("t"))
    assert group.primary_level == Level.ERROR
    assert group.element(cause).elements == (cause,)
    assert group.elements == ()
    assert Group.with_level(Level.WARNING).is_empty


def test_markers_coerced_to_tuple() -> None:
    s = Suggestion("abc", markers=[Patch((0, 1), "x")])
    assert isinstance(s.markers, tuple)
    assert s.markers[0].span == Span(0, 1)


def test_as_substr() -> None:
    assert as_substr("foo", "foo?") == (3, "?", 0)
    assert as_substr("f()", "f(x)") == (2, "x", 1)
    assert as_substr("foo", "bar") is None


def test_patch_classification() -> None:
    sm = SourceMap("let foo = 1;")
    assert Patch(Span(4, 4), "mut ").is_addition(sm)
    assert Patch(Span(4, 8), "").is_deletion(sm)
    assert Patch(Span(4, 7), "bar").is_destructive_replacement(sm)
    # wrapping the original text is not destructive
    assert not Patch(Span(4, 7), "foo()").is_destructive_replacement(sm)


def test_trim_trivial_replacements() -> None:
    sm = SourceMap("foo(x)")
    trimmed = Patch(Span(0, 6), "foo(x)?").trim_trivial_replacements(sm)
    assert trimmed == Patch(Span(6, 6), "?")
    # nothing to trim: unrelated text
    p = Patch(Span(0, 3), "bar")
    assert p.trim_trivial_replacements(sm) is p
