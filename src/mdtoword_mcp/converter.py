"""
Markdown to DOCX conversion pipeline.

Wires the pieces together for one request:

    markdown -> markdown-it tokens -> DocumentTreeBuilder -> nodes -> DocxWriter -> bytes

The effective style is resolved once when the converter is created and shared
by every stage. A bad preset id fails in resolve_style_config, before any
node is built; image problems never fail a conversion.
"""

import copy
from typing import Optional, Union

import httpx
from markdown_it import MarkdownIt

from .docx_writer import DocxWriter
from .errors import ConversionError, validate_markdown_size
from .image_resolver import ImageResolver
from .logging_config import conversion_context, get_logger
from .monitoring import health_monitor
from .style_engine import StyleEngine, style_engine as default_style_engine
from .templates import PresetTemplateLoader, preset_template_loader
from .tree_builder import DocumentTreeBuilder

logger = get_logger(__name__)


def create_markdown_parser() -> MarkdownIt:
    """CommonMark parser with raw HTML, hard line breaks, GFM tables and strikethrough."""
    return (
        MarkdownIt("commonmark", {"html": True, "breaks": True})
        .enable("table")
        .enable("strikethrough")
    )


def _preset_id(template: Union[str, dict, None]) -> Optional[str]:
    if not template:
        return None
    if isinstance(template, str):
        return template
    if template.get("type", "preset") == "preset":
        return template.get("presetId")
    return None


def resolve_style_config(
    template: Union[str, dict, None] = None,
    style_config: Optional[dict] = None,
    loader: PresetTemplateLoader = None,
    engine: StyleEngine = None
) -> Optional[dict]:
    """
    Combine a preset template and a user style config into one override config.

    Args:
        template: Preset id, or ``{"type": "preset", "presetId": id}``
        style_config: User overrides, applied on top of the preset
        loader: Template registry (default: preset_template_loader)
        engine: Style engine used for merging (default: style_engine)

    Returns:
        The config to hand to StyleEngine.get_effective_style_config. With
        neither argument this is the default template's config.

    Raises:
        TemplateNotFoundError: If the preset id is unknown
    """
    loader = loader or preset_template_loader
    engine = engine or default_style_engine
    preset_id = _preset_id(template)

    if preset_id is None:
        if style_config:
            return style_config
        return loader.get_default_style_config()

    preset = loader.require_preset_template(preset_id)
    if style_config:
        return engine.merge_style_configs(preset.style_config, style_config)
    return copy.deepcopy(preset.style_config)


class MarkdownConverter:
    """
    Converts Markdown text to DOCX bytes.

    Args:
        style_config: Override config (see resolve_style_config); None for defaults
        base_dir: Directory relative image paths are resolved against
        engine: Style engine (default: module singleton)
        http_client: Optional shared httpx.AsyncClient for remote images
        image_resolver: Optional resolver, replaces base_dir/http_client

    Example:
        >>> converter = MarkdownConverter(resolve_style_config(template="academic"))
        >>> content = await converter.convert("# Title")
    """

    def __init__(
        self,
        style_config: Optional[dict] = None,
        base_dir: Optional[str] = None,
        engine: StyleEngine = None,
        http_client: Optional[httpx.AsyncClient] = None,
        image_resolver: ImageResolver = None
    ):
        self.engine = engine or default_style_engine
        self.effective_style = self.engine.get_effective_style_config(style_config)
        self.image_resolver = image_resolver or ImageResolver(base_dir=base_dir, http_client=http_client)
        self.parser = create_markdown_parser()

    def tokenize(self, markdown: str) -> list:
        try:
            return self.parser.parse(markdown)
        except Exception as e:
            raise ConversionError(f"Failed to parse Markdown: {e}") from e

    async def build(self, markdown: str) -> list:
        """Parse and build the document node sequence without serializing it."""
        builder = DocumentTreeBuilder(self.effective_style, self.image_resolver, self.engine)
        return await builder.build(self.tokenize(markdown))

    async def convert(self, markdown: str) -> bytes:
        """
        Convert Markdown to .docx bytes.

        Raises:
            MarkdownTooLargeError: If the input exceeds settings.MAX_MARKDOWN_SIZE
            ConversionError: If tokenizing or serializing fails
        """
        validate_markdown_size(markdown)

        with conversion_context():
            return await self._convert(markdown)

    async def _convert(self, markdown: str) -> bytes:
        builder = DocumentTreeBuilder(self.effective_style, self.image_resolver, self.engine)
        try:
            nodes = await builder.build(self.tokenize(markdown))
            try:
                content = DocxWriter(self.effective_style).render(nodes)
            except Exception as e:
                raise ConversionError(f"Failed to write DOCX: {e}") from e
        except Exception as e:
            images, placeholders = builder.image_stats
            health_monitor.record_conversion(False, images, placeholders)
            logger.error("conversion_failed", error=str(e), error_type=type(e).__name__)
            raise

        images, placeholders = builder.image_stats
        health_monitor.record_conversion(True, images, placeholders)
        logger.info(
            "conversion_completed",
            markdown_bytes=len(markdown.encode("utf-8")),
            node_count=len(nodes),
            images=images,
            placeholders=placeholders,
            size_bytes=len(content),
        )
        return content
