"""Pytest configuration and fixtures."""

import io

import pytest
from pptx import Presentation

from slidegraphics.config import GraphicsSettings
from slidegraphics.document import Page, SlideDocument
from slidegraphics.slide_graphics import SlideGraphics

PAGE_WIDTH = 720.0
PAGE_HEIGHT = 540.0


def make_settings(**overrides) -> GraphicsSettings:
    """Settings isolated from the environment, with font-free text metrics."""
    values = {"font_metrics": "approximate"}
    values.update(overrides)
    return GraphicsSettings(_env_file=None, **values)


def reload(document: SlideDocument) -> Presentation:
    """Save a document and open the bytes again."""
    return Presentation(io.BytesIO(document.save()))


@pytest.fixture
def settings() -> GraphicsSettings:
    return make_settings()


@pytest.fixture
def document() -> SlideDocument:
    return SlideDocument()


@pytest.fixture
def page(document: SlideDocument) -> Page:
    return document.create_slide(PAGE_WIDTH, PAGE_HEIGHT)


@pytest.fixture
def graphics(page: Page, settings: GraphicsSettings) -> SlideGraphics:
    g = SlideGraphics(page, settings=settings)
    yield g
    g.dispose()


@pytest.fixture
def make_graphics(page: Page):
    """Factory for a context on the shared page with overridden settings."""
    created = []

    def _make(**overrides) -> SlideGraphics:
        g = SlideGraphics(page, settings=make_settings(**overrides))
        created.append(g)
        return g

    yield _make
    for g in created:
        g.dispose()
