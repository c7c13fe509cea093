"""
diagframe.renderer
==================

Unified import surface for the layout side: the ``Renderer`` plus the
configuration types callers pass to it.
"""

from __future__ import annotations

from diagframe.renderer.glyphs import OutputTheme
from diagframe.renderer.render import Renderer
from diagframe.renderer.stylesheet import ElementStyle, Stylesheet

__all__ = ["Renderer", "OutputTheme", "Stylesheet", "ElementStyle"]
