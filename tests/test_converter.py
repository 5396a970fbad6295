from io import BytesIO

import pytest
from docx import Document
from docx.shared import Twips

from mdtoword_mcp.config import settings
from mdtoword_mcp.converter import MarkdownConverter, create_markdown_parser, resolve_style_config
from mdtoword_mcp.document_model import CodeBlock, Heading, ListItem, Paragraph
from mdtoword_mcp.errors import MarkdownTooLargeError, TemplateNotFoundError
from mdtoword_mcp.monitoring import HealthMonitor
from mdtoword_mcp.templates import preset_template_loader
from mdtoword_mcp.tree_builder import DocumentTreeBuilder


def test_parser_enables_tables_and_strikethrough():
    tokens = create_markdown_parser().parse("| a |\n| - |\n| b |\n\n~~x~~")
    types = [token.type for token in tokens]

    assert "table_open" in types
    assert any(child.type == "s_open" for token in tokens for child in (token.children or []))


class TestResolveStyleConfig:
    def test_nothing_given_returns_default_template(self):
        assert resolve_style_config() == preset_template_loader.get_default_style_config()

    def test_style_config_only(self):
        config = {"document": {"defaultFont": "Arial"}}
        assert resolve_style_config(style_config=config) == config

    def test_preset_only(self):
        config = resolve_style_config(template="academic")
        assert config["document"]["page"]["margins"]["left"] == 1800

    def test_preset_object_form(self):
        config = resolve_style_config(template={"type": "preset", "presetId": "business"})
        assert config["headingStyles"]["h1"]["color"] == "2E74B5"

    def test_style_config_wins_over_preset(self):
        config = resolve_style_config(
            template="business",
            style_config={"headingStyles": {"h1": {"color": "FF0000"}}},
        )
        assert config["headingStyles"]["h1"]["color"] == "FF0000"
        assert config["headingStyles"]["h1"]["font"] == "微软雅黑"

    def test_unknown_preset_raises_with_id(self):
        with pytest.raises(TemplateNotFoundError) as exc:
            resolve_style_config(template="no-such-template")
        assert "no-such-template" in str(exc.value)


@pytest.mark.asyncio
async def test_build_end_to_end_example(engine):
    converter = MarkdownConverter(engine=engine)
    nodes = await converter.build("# Title\n\nBody **bold** text.\n\n- a\n- b")

    assert [type(node) for node in nodes] == [Heading, Paragraph, ListItem, ListItem]
    assert [run.text for run in nodes[0].runs] == ["Title"]
    body = nodes[1].runs
    assert [(run.text, run.style.bold) for run in body] == [("Body ", None), ("bold", True), (" text.", None)]
    assert [(node.level, node.runs[0].text) for node in nodes[2:]] == [(0, "a"), (0, "b")]


@pytest.mark.asyncio
async def test_convert_produces_docx(engine, monkeypatch):
    monitor = HealthMonitor(memory_threshold_percent=99)
    monkeypatch.setattr("mdtoword_mcp.converter.health_monitor", monitor)

    converter = MarkdownConverter(resolve_style_config(template="academic"), engine=engine)
    content = await converter.convert("# 标题\n\n正文 *斜体*\n\n![x](missing.png)")

    document = Document(BytesIO(content))
    assert document.paragraphs[0].text == "标题"
    assert document.sections[0].left_margin == Twips(1800)
    assert monitor.conversions_completed == 1
    assert monitor.images_resolved == 1
    assert monitor.image_placeholders == 1


@pytest.mark.asyncio
async def test_convert_rejects_oversized_input(engine, monkeypatch):
    monkeypatch.setattr(settings, "MAX_MARKDOWN_SIZE", 10)

    with pytest.raises(MarkdownTooLargeError):
        await MarkdownConverter(engine=engine).convert("x" * 11)


def test_effective_style_is_resolved_once(engine):
    converter = MarkdownConverter({"paragraphStyles": {"normal": {"color": "bad"}}}, engine=engine)
    assert converter.effective_style["paragraphStyles"]["normal"]["color"] == "000000"
    assert converter.effective_style["headingStyles"]["h6"]["size"] == 20


MIXED_MARKDOWN = "Use `code` here.\n\n```\nx = 1\n```\n\n> quoted\n\n- item\n\n1. first\n\n| a | b |\n| - | - |\n| 1 | 2 |\n\n![pic](missing.png)\n"


@pytest.mark.asyncio
@pytest.mark.parametrize("style_config", [
    {"codeBlockStyle": {"color": "#FF0000", "size": 1000, "backgroundColor": "grey"}},
    {"inlineCodeStyle": {"color": "blue", "size": "small"}},
    {"blockquoteStyle": {"size": "big", "shading": {"fill": "#EEE"}}},
    {"listStyles": {"bullet": {"color": "red"}, "ordered": {"size": 2, "spacing": {"line": "double"}}}},
    {"tableStyles": {"default": {
        "headerStyle": {"shading": "light", "textStyle": {"color": "#000", "size": -4}},
        "borders": {"top": {"size": "thick", "color": "black"}},
        "cellMargin": {"left": "wide"},
    }}},
    {"emphasisStyles": {"strong": {"color": "ff00", "bold": "yes"}}},
    {"imageStyles": {"default": {"width": "wide"}}},
])
async def test_malformed_values_outside_sanitized_groups_do_not_fail(engine, monkeypatch, style_config):
    monkeypatch.setattr("mdtoword_mcp.converter.health_monitor", HealthMonitor(memory_threshold_percent=99))

    content = await MarkdownConverter(style_config, engine=engine).convert(MIXED_MARKDOWN + "\n**bold**")

    document = Document(BytesIO(content))
    assert len(document.tables) == 1


@pytest.mark.asyncio
async def test_malformed_code_block_values_fall_back(engine):
    converter = MarkdownConverter(
        {"codeBlockStyle": {"color": "#FF0000", "size": "huge", "backgroundColor": "grey"}},
        engine=engine,
    )
    code = next(node for node in await converter.build("```\nx\n```") if isinstance(node, CodeBlock))

    assert code.style.text.color == "000000"
    assert code.style.text.size == 20
    assert code.style.shading_fill == "F5F5F5"


@pytest.mark.asyncio
async def test_unexpected_failure_is_counted(engine, monkeypatch):
    monitor = HealthMonitor(memory_threshold_percent=99)
    monkeypatch.setattr("mdtoword_mcp.converter.health_monitor", monitor)

    async def broken_build(self, tokens):
        raise RuntimeError("boom")

    monkeypatch.setattr(DocumentTreeBuilder, "build", broken_build)

    with pytest.raises(RuntimeError):
        await MarkdownConverter(engine=engine).convert("# Title")
    assert monitor.conversions_failed == 1
    assert monitor.conversions_completed == 0
