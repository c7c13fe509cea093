"""
diagframe.constants
===================

Single place for the numbers and placeholder strings shared by the layout code,
so the margin policy and the gutter never disagree about them.
"""

from __future__ import annotations

# ---- terminal ------------------------------------------------------------------

DEFAULT_TERM_WIDTH = 140

# gutter text used instead of real line numbers (stable snapshot output)
ANONYMIZED_LINE_NUM = "LL"

# display width of a tab, both when measuring and when printing
TAB_WIDTH = 4

# ---- margin policy -------------------------------------------------------------

# a cut must hide at least this many columns to be worth an ellipsis
ELLIPSIS_PASSING = 6

# leading whitespace wider than this gets trimmed ...
LONG_WHITESPACE = 20
# ... down to this many columns
LONG_WHITESPACE_PADDING = 4

# ---- multi-line annotations ----------------------------------------------------

# lines after a multi-line start that still get a bracket placeholder
MULTILINE_CONTEXT_LINES = 4
