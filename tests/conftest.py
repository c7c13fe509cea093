from __future__ import annotations

import pytest

from diagframe import OutputTheme, Renderer


@pytest.fixture
def plain_renderer() -> Renderer:
    return Renderer.plain()


@pytest.fixture
def unicode_renderer() -> Renderer:
    return Renderer.plain().evolve(theme=OutputTheme.UNICODE)
