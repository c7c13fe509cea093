"""
A grid of characters, each tagged with an ``ElementStyle``.

Layout code writes at absolute (row, column) positions in whatever order is
convenient; ``render`` flattens the grid into text once the whole group is
drawn.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby

from diagframe.level import LevelKind
from diagframe.renderer.stylesheet import ElementStyle, Stylesheet

__all__ = ["StyledChar", "StyledBuffer"]


@dataclass(frozen=True, slots=True)
class StyledChar:
    ch: str
    style: ElementStyle


_SPACE = StyledChar(" ", ElementStyle.NO_STYLE)


class StyledBuffer:
    def __init__(self) -> None:
        self._lines: list[list[StyledChar]] = []

    def __repr__(self) -> str:
        return f"StyledBuffer(lines={len(self._lines)})"

    def num_lines(self) -> int:
        return len(self._lines)

    def row_text(self, line: int) -> str:
        return "".join(c.ch for c in self._lines[line])

    def _ensure_lines(self, line: int) -> None:
        if line >= len(self._lines):
            self._lines.extend([] for _ in range(line - len(self._lines) + 1))

    # ---- writing ----------------------------------------------------------------

    def putc(self, line: int, col: int, ch: str, style: ElementStyle) -> None:
        """Set one cell, growing the grid with blank cells as needed."""
        if col < 0:
            return
        self._ensure_lines(line)
        row = self._lines[line]
        if col >= len(row):
            row.extend([_SPACE] * (col - len(row) + 1))
        row[col] = StyledChar(ch, style)

    def puts(self, line: int, col: int, text: str, style: ElementStyle) -> None:
        for n, ch in enumerate(text):
            self.putc(line, col + n, ch, style)

    def replace(self, line: int, start: int, end: int, text: str) -> None:
        """Collapse columns ``[start, end)`` into ``text``; ignored when out of range."""
        if start == end or line >= len(self._lines):
            return
        row = self._lines[line]
        if start > len(row) or end > len(row):
            return
        del row[start : end - len(text)]
        for n, ch in enumerate(text):
            self.putc(line, start + n, ch, ElementStyle.LINE_NUMBER)

    def prepend(self, line: int, text: str, style: ElementStyle) -> None:
        """Shift the row right by ``len(text)`` and write ``text`` at column 0."""
        self._ensure_lines(line)
        self._lines[line][:0] = [_SPACE] * len(text)
        self.puts(line, 0, text, style)

    def append(self, line: int, text: str, style: ElementStyle) -> None:
        if line >= len(self._lines):
            self.puts(line, 0, text, style)
        else:
            self.puts(line, len(self._lines[line]), text, style)

    def set_style_range(
        self, line: int, col_start: int, col_end: int, style: ElementStyle, overwrite: bool = False
    ) -> None:
        for col in range(col_start, col_end):
            self.set_style(line, col, style, overwrite)

    def set_style(self, line: int, col: int, style: ElementStyle, overwrite: bool = False) -> None:
        """
        Restyle an existing cell. Without ``overwrite`` only unstyled text
        (``NO_STYLE`` / ``QUOTATION``) is touched.
        """
        if line >= len(self._lines) or col < 0:
            return
        row = self._lines[line]
        if col >= len(row):
            return
        cell = row[col]
        if overwrite or cell.style in (ElementStyle.NO_STYLE, ElementStyle.QUOTATION):
            row[col] = StyledChar(cell.ch, style)

    # ---- output -----------------------------------------------------------------

    def render(self, level: LevelKind, stylesheet: Stylesheet) -> str:
        """
        Flatten to text. Runs of cells that resolve to the same rich style are
        emitted together, so plain stylesheets produce no escape codes at all.
        """
        out: list[str] = []
        for row in self._lines:
            parts: list[str] = []
            for style, run in groupby(row, key=lambda c: stylesheet.resolve(c.style, level)):
                parts.append(style.render("".join(c.ch for c in run)))
            out.append("".join(parts))
        return "\n".join(out)
