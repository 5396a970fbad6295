"""
Markdown token stream to document tree.

DocumentTreeBuilder walks a markdown-it token stream left to right and emits
document nodes in source order. Inline content becomes run sequences with
resolved text styles; images are resolved through ImageResolver and always
yield exactly one image (the real one or a placeholder).

Token conventions followed here:
- Block content sits in an ``inline`` token right after its open marker
- Emphasis arrives as paired ``strong_open``/``strong_close`` (``em``, ``s``)
  markers around ``text`` children
- List nesting comes from the ``level`` attribute when present, otherwise
  from the depth of currently open lists
- A literal backslash-n sequence inside text is a line break within the
  paragraph
"""

import html
import re
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .document_model import (
    Blockquote,
    CodeBlock,
    Heading,
    Image,
    ImageReference,
    ImageRun,
    LineBreakRun,
    ListItem,
    Paragraph,
    Runs,
    Table,
    TextRun,
)
from .image_resolver import DEFAULT_IMAGE_WIDTH, ImageResolver, default_image_height
from .logging_config import get_logger
from .style_engine import StyleContext, StyleEngine, style_engine as default_style_engine
from .style_models import (
    BorderStyle,
    HeadingStyle,
    ParagraphStyle,
    TextStyle,
    checked_color,
    checked_number,
    merge_text_styles,
)
from .table_extractor import TableExtractor

logger = get_logger(__name__)

ESCAPED_NEWLINE_RE = re.compile(r"\\n")
IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
HTML_ATTR_RE = re.compile(r"""([A-Za-z_:][-A-Za-z0-9_:.]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""")

# Inline open/close markers and the emphasisStyles key each applies
EMPHASIS_MARKERS = {
    "strong": ("strong", TextStyle(bold=True)),
    "em": ("emphasis", TextStyle(italic=True)),
    "s": ("strikethrough", TextStyle(strike=True)),
}

LIST_OPEN_TYPES = {"bullet_list_open": False, "ordered_list_open": True}
LIST_CLOSE_TYPES = ("bullet_list_close", "ordered_list_close")


def extract_html_images(markup: str) -> List[ImageReference]:
    """
    Find every ``<img>`` tag with a src in an HTML fragment.

    Examples:
        >>> extract_html_images('<p><img src="a.png" alt="A &amp; B"></p>')
        [ImageReference(src='a.png', alt='A & B', title='')]
    """
    references = []
    for tag in IMG_TAG_RE.findall(markup or ""):
        attrs = {}
        for name, double_quoted, single_quoted in HTML_ATTR_RE.findall(tag):
            value = double_quoted if double_quoted else single_quoted
            attrs[name.lower()] = html.unescape(value)
        if attrs.get("src"):
            references.append(ImageReference(
                src=attrs["src"],
                alt=attrs.get("alt", ""),
                title=attrs.get("title", ""),
            ))
    return references


def _token_attr(token, name: str) -> Optional[str]:
    attrs = getattr(token, "attrs", None)
    if not attrs:
        return None
    if isinstance(attrs, dict):
        value = attrs.get(name)
    else:
        value = next((pair[1] for pair in attrs if pair[0] == name), None)
    return None if value is None else str(value)


def _image_reference(token) -> ImageReference:
    # markdown-it keeps the alt text in content; the alt attr is empty
    alt = getattr(token, "content", "") or _token_attr(token, "alt") or ""
    return ImageReference(
        src=_token_attr(token, "src") or "",
        alt=alt,
        title=_token_attr(token, "title") or "",
    )


def _inline_at(tokens: Sequence, index: int):
    if 0 <= index < len(tokens) and tokens[index].type == "inline":
        return tokens[index]
    return None


class DocumentTreeBuilder:
    """
    Builds document nodes for one conversion.

    Args:
        effective_style: Resolved style configuration (StyleEngine output). It is
                         read, never modified.
        image_resolver: Resolver for image references (default: one resolving
                        local paths against the working directory)
        engine: StyleEngine used for context style lookup
    """

    def __init__(
        self,
        effective_style: dict,
        image_resolver: ImageResolver = None,
        engine: StyleEngine = None
    ):
        self.effective_style = effective_style
        self.image_resolver = image_resolver or ImageResolver()
        self.engine = engine or default_style_engine
        self.table_extractor = TableExtractor(self.process_inline_content)

        self._base_text = self._body_text_style()
        self._image_count = 0
        self._placeholder_count = 0

    @property
    def image_stats(self) -> Tuple[int, int]:
        """(images resolved, of which placeholders) since the builder was created."""
        return self._image_count, self._placeholder_count

    # Style lookups

    def _style(self, element_type: str, **context) -> dict:
        return self.engine.get_style_for_context(
            StyleContext(element_type=element_type, **context), self.effective_style
        ) or {}

    def _body_text_style(self) -> TextStyle:
        document = self.effective_style.get("document") or {}
        normal = TextStyle.from_record(self._style("paragraph"))
        return replace(
            normal,
            font=normal.font or document.get("defaultFont"),
            size=normal.size or document.get("defaultSize"),
            color=normal.color or document.get("defaultColor"),
        )

    def _heading_style(self, level: int) -> HeadingStyle:
        headings = self.effective_style.get("headingStyles") or {}
        record = headings.get(f"h{level}") or headings.get("h1")
        style = HeadingStyle.from_record(level, record)
        paragraph = style.paragraph.with_defaults(spacing_before=240, spacing_after=120, line=360)
        if not record:
            paragraph = replace(paragraph, text=self._base_text)
        return replace(style, level=level, paragraph=paragraph)

    def _emphasis_override(self, marker: str) -> TextStyle:
        key, fallback = EMPHASIS_MARKERS[marker]
        record = (self.effective_style.get("emphasisStyles") or {}).get(key)
        return TextStyle.from_record(record) if record else fallback

    def _image_dimensions(self) -> Tuple[int, int, str]:
        image_style = self._style("image")
        width = checked_number(image_style.get("width")) or DEFAULT_IMAGE_WIDTH
        height = checked_number(image_style.get("height")) or default_image_height(width)
        return int(width), int(height), image_style.get("alignment") or "center"

    # Inline content

    async def process_inline_content(self, token, base_style: TextStyle = None) -> Runs:
        """
        Map an inline token's children to runs, in source order.

        A missing token yields no runs. Unsupported inline types (links
        markers, non-image HTML) are skipped; link text still renders.
        """
        if token is None:
            return ()
        base = base_style or self._base_text
        runs: list = []
        active: List[Tuple[str, TextStyle]] = []

        def current_style() -> TextStyle:
            style = base
            for _, override in active:
                style = merge_text_styles(style, override)
            return style

        for child in getattr(token, "children", None) or ():
            child_type = child.type

            if child_type in ("text", "text_special"):
                parts = ESCAPED_NEWLINE_RE.split(child.content)
                style = current_style()
                for index, part in enumerate(parts):
                    if part:
                        runs.append(TextRun(text=part, style=style))
                    if index < len(parts) - 1:
                        runs.append(LineBreakRun())

            elif child_type.endswith("_open") and child_type[:-5] in EMPHASIS_MARKERS:
                marker = child_type[:-5]
                active.append((marker, self._emphasis_override(marker)))

            elif child_type.endswith("_close") and child_type[:-6] in EMPHASIS_MARKERS:
                marker = child_type[:-6]
                for position in range(len(active) - 1, -1, -1):
                    if active[position][0] == marker:
                        del active[position]
                        break

            elif child_type == "code_inline":
                code_style = TextStyle.from_record(self._style("inline"))
                runs.append(TextRun(text=child.content, style=merge_text_styles(current_style(), code_style)))

            elif child_type in ("softbreak", "hardbreak"):
                runs.append(LineBreakRun())

            elif child_type == "image":
                runs.append(await self._image_run(_image_reference(child)))

            elif child_type == "html_inline":
                for reference in extract_html_images(child.content):
                    runs.append(await self._image_run(reference))

        return tuple(runs)

    async def _resolve(self, reference: ImageReference):
        width, height, alignment = self._image_dimensions()
        result = await self.image_resolver.resolve(reference, width=width, height=height)
        self._image_count += 1
        if result.is_placeholder:
            self._placeholder_count += 1
        return result, alignment

    async def _image_run(self, reference: ImageReference) -> ImageRun:
        result, _ = await self._resolve(reference)
        return ImageRun(
            data=result.data,
            format=result.format,
            width=result.width,
            height=result.height,
            alt=reference.alt,
            title=reference.title,
            placeholder=result.is_placeholder,
            diagnostic=result.reason,
        )

    async def _image_node(self, reference: ImageReference) -> Image:
        result, alignment = await self._resolve(reference)
        return Image(
            data=result.data,
            format=result.format,
            width=result.width,
            height=result.height,
            alt=reference.alt,
            caption=reference.title,
            placeholder=result.is_placeholder,
            diagnostic=result.reason,
            alignment=alignment,
        )

    # Block nodes

    def _paragraph_style(self) -> ParagraphStyle:
        return ParagraphStyle.from_record(self._style("paragraph")).with_defaults(line=360)

    def _list_style(self, ordered: bool) -> ParagraphStyle:
        record = self._style("list", in_list=True, ordered=ordered)
        return ParagraphStyle.from_record(record).with_defaults(indent_left=360, line=360)

    def _blockquote_style(self) -> ParagraphStyle:
        style = ParagraphStyle.from_record(self._style("blockquote")).with_defaults(indent_left=720, line=360)
        if "left" not in style.borders:
            borders = dict(style.borders)
            borders["left"] = BorderStyle(size=4, color="CCCCCC", style="single")
            style = replace(style, borders=borders)
        return style

    def _code_block_style(self) -> ParagraphStyle:
        record = self._style("code")
        base = TextStyle.from_record(record)
        code_font = record.get("codeFont")
        text = TextStyle(
            font=code_font if isinstance(code_font, str) and code_font else base.font or "Courier New",
            size=base.size or 20,
            color=base.color or "000000",
            bold=base.bold,
            italic=base.italic,
        )
        style = ParagraphStyle.from_record(record).with_defaults(line=240)
        return replace(
            style,
            text=text,
            shading_fill=checked_color(record.get("backgroundColor")) or style.shading_fill or "F5F5F5",
            shading_type=style.shading_type or "solid",
        )

    async def build(self, tokens: Sequence) -> list:
        """
        Build the document node sequence for a token stream.

        Args:
            tokens: Flat block-level token stream (markdown-it ``Token`` objects
                    or anything with the same attributes)

        Returns:
            Document nodes in source order
        """
        nodes: list = []
        pending: list = []
        list_stack: List[bool] = []

        def emit(node) -> None:
            # Everything inside an open list is held back and flushed with it
            (pending if list_stack else nodes).append(node)

        index = 0
        while index < len(tokens):
            token = tokens[index]
            token_type = token.type

            if token_type == "heading_open":
                level = int(token.tag[1:]) if token.tag[1:].isdigit() else 1
                level = min(max(level, 1), 6)
                style = self._heading_style(level)
                inline = _inline_at(tokens, index + 1)
                runs = await self.process_inline_content(inline, style.text)
                emit(Heading(level=level, runs=runs, style=style))
                if inline is not None:
                    index += 1

            elif token_type == "paragraph_open":
                inline = _inline_at(tokens, index + 1)
                runs = await self.process_inline_content(inline)
                emit(Paragraph(runs=runs, style=self._paragraph_style()))
                if inline is not None:
                    index += 1

            elif token_type in LIST_OPEN_TYPES:
                list_stack.append(LIST_OPEN_TYPES[token_type])

            elif token_type in LIST_CLOSE_TYPES:
                if list_stack:
                    list_stack.pop()
                if not list_stack and pending:
                    nodes.extend(pending)
                    pending = []

            elif token_type == "list_item_open":
                ordered = list_stack[-1] if list_stack else False
                level_attr = _token_attr(token, "level")
                if level_attr is not None and level_attr.isdigit():
                    level = int(level_attr)
                else:
                    level = max(len(list_stack) - 1, 0)

                inline = None
                if index + 1 < len(tokens) and tokens[index + 1].type == "paragraph_open":
                    inline = _inline_at(tokens, index + 2)
                    if inline is not None:
                        index += 2
                runs = await self.process_inline_content(inline)
                item = ListItem(runs=runs, ordered=ordered, level=level, style=self._list_style(ordered))
                if list_stack:
                    emit(item)
                else:
                    emit(Paragraph(runs=runs, style=self._paragraph_style()))

            elif token_type == "table_open":
                extraction = await self.table_extractor.extract(tokens, index)
                emit(Table(rows=extraction.rows, style=self._style("table")))
                index = extraction.end_index

            elif token_type == "blockquote_open":
                depth = 1
                first_inline = None
                index += 1
                while index < len(tokens):
                    inner_type = tokens[index].type
                    if inner_type == "blockquote_open":
                        depth += 1
                    elif inner_type == "blockquote_close":
                        depth -= 1
                        if depth == 0:
                            break
                    elif inner_type == "inline" and first_inline is None:
                        first_inline = tokens[index]
                    index += 1
                style = self._blockquote_style()
                runs = await self.process_inline_content(
                    first_inline, merge_text_styles(self._base_text, style.text)
                )
                emit(Blockquote(runs=runs, style=style))

            elif token_type in ("fence", "code_block"):
                content = token.content or ""
                if content.endswith("\n"):
                    content = content[:-1]
                info = (getattr(token, "info", "") or "").strip()
                language = info.split()[0] if info else ""
                emit(CodeBlock(text=content, language=language, style=self._code_block_style()))

            elif token_type == "image":
                emit(await self._image_node(_image_reference(token)))

            elif token_type == "html_block":
                for reference in extract_html_images(token.content):
                    emit(await self._image_node(reference))

            index += 1

        # Unterminated list
        nodes.extend(pending)

        logger.debug(
            "document_tree_built",
            node_count=len(nodes),
            images=self._image_count,
            placeholders=self._placeholder_count,
        )
        return nodes
