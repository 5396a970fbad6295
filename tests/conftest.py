import base64
from io import BytesIO

import pytest
from PIL import Image

from mdtoword_mcp.converter import create_markdown_parser
from mdtoword_mcp.image_resolver import ImageResolver
from mdtoword_mcp.style_engine import StyleCache, StyleEngine
from mdtoword_mcp.templates import PresetTemplateLoader
from mdtoword_mcp.tree_builder import DocumentTreeBuilder


def make_png(width: int = 4, height: int = 3, color=(200, 30, 30)) -> bytes:
    stream = BytesIO()
    Image.new("RGB", (width, height), color).save(stream, format="PNG")
    return stream.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_uri(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def engine():
    """Engine with its own cache so tests never share cached configs."""
    return StyleEngine(template_loader=PresetTemplateLoader(), cache=StyleCache(max_entries=8))


@pytest.fixture
def effective_style(engine):
    return engine.get_effective_style_config()


@pytest.fixture
def parser():
    return create_markdown_parser()


@pytest.fixture
def resolver(tmp_path):
    return ImageResolver(base_dir=str(tmp_path))


@pytest.fixture
def builder(effective_style, resolver, engine):
    return DocumentTreeBuilder(effective_style, resolver, engine)
