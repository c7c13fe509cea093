"""
Text measurement and normalisation for terminal output.

Everything that decides how many columns a character occupies, or what a
character looks like once printed, lives here so the code row and the
underline row always agree.
"""

from __future__ import annotations

import unicodedata
from functools import lru_cache

from rich.cells import get_character_cell_size

from diagframe.constants import TAB_WIDTH
from diagframe.errors import SpanBoundaryError

__all__ = [
    "OUTPUT_REPLACEMENTS",
    "char_width",
    "str_width",
    "normalize_whitespace",
    "split_lines",
    "newline_count",
    "num_decimal_digits",
    "utf8_len",
    "byte_slice",
]


# Characters that would otherwise be invisible, move the cursor, or flip text
# direction. Sorted by key; the check below refuses to import otherwise.
OUTPUT_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("\x00", "␀"),
    ("\x01", "␁"),
    ("\x02", "␂"),
    ("\x03", "␃"),
    ("\x04", "␄"),
    ("\x05", "␅"),
    ("\x06", "␆"),
    ("\x07", "␇"),
    ("\x08", "␈"),
    ("\t", " " * TAB_WIDTH),
    ("\x0b", "␋"),
    ("\x0c", "␌"),
    ("\x0d", "␍"),
    ("\x0e", "␎"),
    ("\x0f", "␏"),
    ("\x10", "␐"),
    ("\x11", "␑"),
    ("\x12", "␒"),
    ("\x13", "␓"),
    ("\x14", "␔"),
    ("\x15", "␕"),
    ("\x16", "␖"),
    ("\x17", "␗"),
    ("\x18", "␘"),
    ("\x19", "␙"),
    ("\x1a", "␚"),
    ("\x1b", "␛"),
    ("\x1c", "␜"),
    ("\x1d", "␝"),
    ("\x1e", "␞"),
    ("\x1f", "␟"),
    ("\x7f", "␡"),
    ("\u200d", ""),  # zero-width joiner, would glue emoji across columns
    ("\u202a", "\ufffd"),
    ("\u202b", "\ufffd"),
    ("\u202c", "\ufffd"),
    ("\u202d", "\ufffd"),
    ("\u202e", "\ufffd"),
    ("\u2066", "\ufffd"),
    ("\u2067", "\ufffd"),
    ("\u2068", "\ufffd"),
    ("\u2069", "\ufffd"),
)


def _check_replacements(table: tuple[tuple[str, str], ...]) -> dict[str, str]:
    keys = [k for k, _ in table]
    if keys != sorted(set(keys)):
        raise RuntimeError("OUTPUT_REPLACEMENTS must be sorted by key without duplicates")
    return dict(table)


_REPLACEMENTS = _check_replacements(OUTPUT_REPLACEMENTS)

# Printed through OUTPUT_REPLACEMENTS as one visible symbol, so measured as one.
_SINGLE_WIDTH = frozenset(
    [chr(c) for c in range(0x00, 0x09)]
    + [chr(c) for c in range(0x0B, 0x20)]
    + ["\x7f"]
    + [chr(c) for c in range(0x202A, 0x202F)]
    + [chr(c) for c in range(0x2066, 0x206A)]
)


# ────────────────────────── Widths ──────────────────────────


@lru_cache(maxsize=4096)
def char_width(ch: str) -> int:
    """Display columns taken by a single character once it is printed."""
    if ch == "\t":
        return TAB_WIDTH
    if ch in _SINGLE_WIDTH:
        return 1
    if unicodedata.category(ch) == "Cc":
        return 1
    return get_character_cell_size(ch)


def str_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)


def normalize_whitespace(text: str) -> str:
    """Swap tabs, control and bidi characters for their printable stand-ins."""
    if not any(ch in _REPLACEMENTS for ch in text):
        return text
    return "".join(_REPLACEMENTS.get(ch, ch) for ch in text)


# ────────────────────────── Lines ──────────────────────────


def split_lines(text: str) -> list[str]:
    """
    Split on ``\\n`` (also stripping a ``\\r`` before it). A trailing newline does
    not produce an extra empty line; an empty string has no lines at all.

    Unlike ``str.splitlines`` this leaves lone ``\\r``, form feeds and the other
    Unicode separators inside the line, where they are shown as symbols.
    """
    if not text:
        return []
    parts = text.split("\n")
    tail = parts.pop()
    lines = [p[:-1] if p.endswith("\r") else p for p in parts]
    if tail:
        lines.append(tail)
    return lines


def newline_count(body: str) -> int:
    return max(len(split_lines(body)) - 1, 0)


def num_decimal_digits(num: int) -> int:
    return len(str(max(num, 0)))


# ────────────────────────── UTF-8 ──────────────────────────


def utf8_len(text: str) -> int:
    return len(text.encode("utf-8"))


def byte_slice(text: str, start: int, end: int | None = None) -> str:
    """Slice ``text`` by UTF-8 byte offsets; both ends must fall on character boundaries."""
    raw = text.encode("utf-8")
    stop = len(raw) if end is None else min(end, len(raw))
    for offset in (start, stop):
        if 0 < offset < len(raw) and (raw[offset] & 0xC0) == 0x80:
            raise SpanBoundaryError(offset)
    return raw[start:stop].decode("utf-8")
