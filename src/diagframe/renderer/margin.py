"""
Horizontal window selection for excerpts wider than the terminal.
"""

from __future__ import annotations

from diagframe.constants import ELLIPSIS_PASSING, LONG_WHITESPACE, LONG_WHITESPACE_PADDING

__all__ = ["Margin"]


class Margin:
    """
    Decides which display columns of an excerpt's code lines are shown.

    All inputs are display columns shared by every line of one excerpt, so
    each line is cut at the same place and underlines stay aligned.
    """

    __slots__ = (
        "whitespace_left",
        "span_left",
        "span_right",
        "computed_left",
        "computed_right",
        "term_width",
        "label_right",
    )

    def __init__(
        self,
        whitespace_left: int,
        span_left: int,
        span_right: int,
        label_right: int,
        column_width: int,
        max_line_len: int,
    ) -> None:
        # The ellipsis takes some room, so only cut when that still saves at
        # least ELLIPSIS_PASSING columns.
        self.whitespace_left = max(whitespace_left - ELLIPSIS_PASSING, 0)
        self.span_left = max(span_left - ELLIPSIS_PASSING, 0)
        self.span_right = span_right + ELLIPSIS_PASSING
        self.computed_left = 0
        self.computed_right = 0
        self.term_width = column_width
        self.label_right = label_right + ELLIPSIS_PASSING
        self._compute(max_line_len)

    def __repr__(self) -> str:
        return (
            f"Margin(left={self.computed_left}, right={self.computed_right}, "
            f"width={self.term_width})"
        )

    def was_cut_left(self) -> bool:
        return self.computed_left > 0

    def _compute(self, max_line_len: int) -> None:
        # When there's a lot of whitespace (>20), we want to trim it as it is useless.
        if self.whitespace_left > LONG_WHITESPACE:
            self.computed_left = self.whitespace_left - (LONG_WHITESPACE - LONG_WHITESPACE_PADDING)
        else:
            self.computed_left = 0
        # We want to show as much as possible, max_line_len is the rightmost boundary.
        self.computed_right = max(max_line_len, self.computed_left)

        if self.computed_right - self.computed_left > self.term_width:
            if self.label_right - self.whitespace_left <= self.term_width:
                # Attempt to fit the code window only trimming whitespace.
                self.computed_left = self.whitespace_left
                self.computed_right = self.computed_left + self.term_width
            elif self.label_right - self.span_left <= self.term_width:
                # Attempt to fit the code window considering only the spans and labels.
                padding_left = (self.term_width - (self.label_right - self.span_left)) // 2
                self.computed_left = max(self.span_left - padding_left, 0)
                self.computed_right = self.computed_left + self.term_width
            elif self.span_right - self.span_left <= self.term_width:
                # Attempt to fit the code window considering the spans and labels plus padding.
                padding_left = (self.term_width - (self.span_right - self.span_left)) // 5 * 2
                self.computed_left = max(self.span_left - padding_left, 0)
                self.computed_right = self.computed_left + self.term_width
            else:
                # Mostly give up but still don't show the full line.
                self.computed_left = self.span_left
                self.computed_right = self.span_right

    def left(self, line_len: int) -> int:
        """First display column shown for a line of ``line_len`` columns."""
        return min(self.computed_left, line_len)

    def right(self, line_len: int) -> int:
        """One past the last display column shown for a line of ``line_len`` columns."""
        if max(line_len - self.computed_left, 0) <= self.term_width:
            return line_len
        return min(line_len, self.computed_right)
