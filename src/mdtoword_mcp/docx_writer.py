"""
DOCX serialization of the document tree using python-docx.

DocxWriter renders the node sequence produced by DocumentTreeBuilder into a
.docx byte string: document defaults and heading styles from the effective
style configuration, page setup, header/footer, then one block per node.

Units: style sizes are half-points (Pt(size / 2)), spacing and indents are
twips, image sizes are pixels (1 px = 9525 EMU).

SVG images (every placeholder included) are embedded the way Word 2016+ does
it: a PNG picture whose blip carries an svgBlip extension pointing at the SVG
part. Readers without SVG support show the PNG.
"""

from dataclasses import replace
from io import BytesIO
from typing import Iterable, Optional, Sequence, Tuple

from docx import Document
from docx.enum.section import WD_ORIENT
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_LINE_SPACING
from docx.image.exceptions import UnrecognizedImageError
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.part import Part
from docx.oxml import parse_xml
from docx.oxml.ns import nsdecls, qn
from docx.oxml.shared import OxmlElement
from docx.shared import Emu, Pt, RGBColor, Twips
from PIL import Image as PILImage
from PIL import ImageDraw, ImageFont

from .document_model import (
    Blockquote,
    CodeBlock,
    Heading,
    Image,
    ImageRun,
    LineBreakRun,
    ListItem,
    Paragraph,
    Table,
    TextRun,
)
from .image_resolver import PLACEHOLDER_BANNER
from .logging_config import get_logger
from .style_models import (
    BorderStyle,
    ParagraphStyle,
    TextStyle,
    checked_color,
    checked_number,
    merge_text_styles,
)

logger = get_logger(__name__)

EMU_PER_PIXEL = 9525
DEFAULT_MARGIN = 1440

# Page sizes in twips (width, height), portrait
PAGE_SIZES = {
    "A4": (11906, 16838),
    "A3": (16838, 23811),
    "Letter": (12240, 15840),
    "Legal": (12240, 20160),
}

ALIGNMENTS = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
    "justify": WD_ALIGN_PARAGRAPH.JUSTIFY,
    "both": WD_ALIGN_PARAGRAPH.JUSTIFY,
}

PAGE_NUMBER_FORMATS = {
    "decimal": "decimal",
    "upperRoman": "upperRoman",
    "lowerRoman": "lowerRoman",
    "upperLetter": "upperLetter",
    "lowerLetter": "lowerLetter",
}

THEME_FONT_ATTRS = ("w:asciiTheme", "w:hAnsiTheme", "w:eastAsiaTheme", "w:cstheme")

SVG_CONTENT_TYPE = "image/svg+xml"
SVG_PARTNAME_TEMPLATE = "/word/media/image%d.svg"
SVG_BLIP_EXTENSION_URI = "{96DAC541-7B7A-43D3-8B79-37D633B846F1}"
SVG_NAMESPACE = "http://schemas.microsoft.com/office/drawing/2016/SVG/main"

# Schema order successors, for inserting elements python-docx has no API for
PPR_SUCCESSORS_OF_PBDR = (
    "w:shd", "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap",
    "w:overflowPunct", "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN",
    "w:bidi", "w:adjustRightInd", "w:snapToGrid", "w:spacing", "w:ind",
    "w:contextualSpacing", "w:mirrorIndents", "w:suppressOverlap", "w:jc",
    "w:textDirection", "w:textAlignment", "w:textboxTightWrap",
    "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr", "w:sectPr", "w:pPrChange",
)
PPR_SUCCESSORS_OF_SHD = PPR_SUCCESSORS_OF_PBDR[1:]
TBLPR_SUCCESSORS_OF_BORDERS = (
    "w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook", "w:tblCaption",
    "w:tblDescription", "w:tblPrChange",
)
TBLPR_SUCCESSORS_OF_CELLMAR = ("w:tblLook", "w:tblCaption", "w:tblDescription", "w:tblPrChange")
TCPR_SUCCESSORS_OF_SHD = (
    "w:noWrap", "w:tcMar", "w:textDirection", "w:tcFitText", "w:vAlign",
    "w:hideMark", "w:headers", "w:cellIns", "w:cellDel", "w:cellMerge", "w:tcPrChange",
)
SECTPR_SUCCESSORS_OF_PGNUMTYPE = (
    "w:cols", "w:formProt", "w:vAlign", "w:noEndnote", "w:titlePg",
    "w:textDirection", "w:bidi", "w:rtlGutter", "w:docGrid",
    "w:printerSettings", "w:sectPrChange",
)


def page_dimensions(size: Optional[str] = "A4", orientation: Optional[str] = "portrait") -> Tuple[int, int]:
    """
    Physical page size in twips.

    Unknown size names fall back to A4. Landscape swaps width and height.

    Examples:
        >>> page_dimensions("Letter")
        (12240, 15840)
        >>> page_dimensions("A4", "landscape")
        (16838, 11906)
    """
    width, height = PAGE_SIZES.get(size or "A4", PAGE_SIZES["A4"])
    if orientation == "landscape":
        return height, width
    return width, height


def render_svg_fallback(width: int, height: int, lines: Sequence[str] = ()) -> bytes:
    """PNG stand-in for an SVG picture: gray bordered box with optional centered text lines."""
    width, height = max(int(width), 1), max(int(height), 1)
    image = PILImage.new("RGB", (width, height), (240, 240, 240))
    draw = ImageDraw.Draw(image)
    draw.rectangle([0, 0, width - 1, height - 1], outline=(204, 204, 204), width=2)

    font = ImageFont.load_default()
    for fraction, text in zip((0.4, 0.5, 0.6, 0.7), lines):
        if not text:
            continue
        # The bitmap default font is latin-1 only
        text = text.encode("latin-1", "replace").decode("latin-1")
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = max((width - (right - left)) / 2, 0)
        y = height * fraction - (bottom - top) / 2
        draw.text((x, y), text, fill=(102, 102, 102), font=font)

    stream = BytesIO()
    image.save(stream, format="PNG")
    return stream.getvalue()


def _border_element(tag: str, border: BorderStyle):
    element = OxmlElement(tag)
    element.set(qn("w:val"), "dashed" if border.style == "dash" else border.style)
    element.set(qn("w:sz"), str(border.size))
    element.set(qn("w:space"), "0")
    element.set(qn("w:color"), border.color)
    return element


def _shading_element(fill: str):
    element = OxmlElement("w:shd")
    element.set(qn("w:val"), "clear")
    element.set(qn("w:color"), "auto")
    element.set(qn("w:fill"), fill)
    return element


def apply_text_style(font, r_pr, style: TextStyle) -> None:
    """Apply a TextStyle to a python-docx Font (run or style) and its rPr element."""
    if style.font:
        font.name = style.font
        r_fonts = r_pr.get_or_add_rFonts()
        r_fonts.set(qn("w:eastAsia"), style.font)
        for attr in THEME_FONT_ATTRS:
            r_fonts.attrib.pop(qn(attr), None)
    if style.size:
        font.size = Pt(style.size / 2)
    if style.color:
        font.color.rgb = RGBColor.from_string(style.color.upper())
    if style.bold is not None:
        font.bold = style.bold
    if style.italic is not None:
        font.italic = style.italic
    if style.underline is not None:
        font.underline = style.underline
    if style.strike is not None:
        font.strike = style.strike


def apply_paragraph_style(paragraph_format, p_pr, style: ParagraphStyle, decorate: bool = True) -> None:
    """
    Apply spacing, line spacing, alignment, indentation and (optionally)
    borders and shading to a paragraph or paragraph style.
    """
    if style.spacing_before is not None:
        paragraph_format.space_before = Twips(style.spacing_before)
    if style.spacing_after is not None:
        paragraph_format.space_after = Twips(style.spacing_after)
    if style.line:
        if style.line_rule == "exact":
            paragraph_format.line_spacing_rule = WD_LINE_SPACING.EXACTLY
            paragraph_format.line_spacing = Twips(style.line)
        elif style.line_rule == "atLeast":
            paragraph_format.line_spacing_rule = WD_LINE_SPACING.AT_LEAST
            paragraph_format.line_spacing = Twips(style.line)
        else:
            paragraph_format.line_spacing = style.line / 240
    if style.alignment in ALIGNMENTS:
        paragraph_format.alignment = ALIGNMENTS[style.alignment]
    if style.indent_left is not None:
        paragraph_format.left_indent = Twips(style.indent_left)
    if style.indent_right is not None:
        paragraph_format.right_indent = Twips(style.indent_right)
    if style.hanging:
        paragraph_format.first_line_indent = Twips(-style.hanging)
    elif style.first_line is not None:
        paragraph_format.first_line_indent = Twips(style.first_line)

    if not decorate:
        return
    if style.borders:
        p_bdr = OxmlElement("w:pBdr")
        for side in ("top", "left", "bottom", "right"):
            if side in style.borders:
                p_bdr.append(_border_element(f"w:{side}", style.borders[side]))
        p_pr.insert_element_before(p_bdr, *PPR_SUCCESSORS_OF_PBDR)
    fill = style.shading_fill or style.shading_color
    if fill:
        p_pr.insert_element_before(_shading_element(fill), *PPR_SUCCESSORS_OF_SHD)


class DocxWriter:
    """
    Renders document nodes to DOCX bytes.

    Args:
        effective_style: Resolved style configuration for the conversion
    """

    def __init__(self, effective_style: dict):
        self.effective_style = effective_style
        self._renderers = {
            Heading: self._render_heading,
            Paragraph: self._render_paragraph,
            ListItem: self._render_list_item,
            Table: self._render_table,
            Blockquote: self._render_blockquote,
            CodeBlock: self._render_code_block,
            Image: self._render_image,
        }

    def render(self, nodes: Iterable) -> bytes:
        """Render nodes in order and return the .docx file content."""
        document = Document()
        self._apply_document_defaults(document)
        self._apply_heading_styles(document)
        section = document.sections[0]
        self._apply_page_setup(section)
        self._apply_header_footer(document, section)

        count = 0
        for node in nodes:
            renderer = self._renderers.get(type(node))
            if renderer is None:
                logger.warning("node_type_unsupported", node_type=type(node).__name__)
                continue
            renderer(document, node)
            count += 1

        stream = BytesIO()
        document.save(stream)
        content = stream.getvalue()
        logger.debug("docx_rendered", node_count=count, size_bytes=len(content))
        return content

    # Document level

    def _apply_document_defaults(self, document) -> None:
        doc_config = self.effective_style.get("document") or {}
        normal = document.styles["Normal"]
        apply_text_style(normal.font, normal.element.get_or_add_rPr(), TextStyle(
            font=doc_config.get("defaultFont") or "宋体",
            size=doc_config.get("defaultSize") or 24,
            color=doc_config.get("defaultColor") or "000000",
        ))

    def _apply_heading_styles(self, document) -> None:
        headings = self.effective_style.get("headingStyles") or {}
        for level in range(1, 7):
            record = headings.get(f"h{level}")
            if not record:
                continue
            style = document.styles[f"Heading {level}"]
            apply_text_style(style.font, style.element.get_or_add_rPr(), TextStyle.from_record(record))
            apply_paragraph_style(
                style.paragraph_format,
                style.element.get_or_add_pPr(),
                ParagraphStyle.from_record(record),
                decorate=False,
            )

    def _apply_page_setup(self, section) -> None:
        page = (self.effective_style.get("document") or {}).get("page") or {}
        orientation = page.get("orientation") or "portrait"
        width, height = page_dimensions(page.get("size"), orientation)
        section.orientation = WD_ORIENT.LANDSCAPE if orientation == "landscape" else WD_ORIENT.PORTRAIT
        section.page_width = Twips(width)
        section.page_height = Twips(height)

        margins = page.get("margins") or {}
        section.top_margin = Twips(checked_number(margins.get("top")) or DEFAULT_MARGIN)
        section.bottom_margin = Twips(checked_number(margins.get("bottom")) or DEFAULT_MARGIN)
        section.left_margin = Twips(checked_number(margins.get("left")) or DEFAULT_MARGIN)
        section.right_margin = Twips(checked_number(margins.get("right")) or DEFAULT_MARGIN)

    def _apply_header_footer(self, document, section) -> None:
        config = self.effective_style.get("headerFooter") or {}
        if not config:
            return

        # Enable the variant layouts before filling their content
        if config.get("differentFirstPage"):
            section.different_first_page_header_footer = True
        if config.get("differentOddEven"):
            document.settings.odd_and_even_pages_header_footer = True

        self._fill_header_footer(section.header, config.get("header"))
        self._fill_header_footer(section.footer, config.get("footer"))
        if config.get("differentFirstPage"):
            self._fill_header_footer(section.first_page_header, config.get("firstPageHeader"))
            self._fill_header_footer(section.first_page_footer, config.get("firstPageFooter"))
        if config.get("differentOddEven"):
            self._fill_header_footer(section.even_page_header, config.get("evenPageHeader"))
            self._fill_header_footer(section.even_page_footer, config.get("evenPageFooter"))

        start = config.get("pageNumberStart")
        number_format = PAGE_NUMBER_FORMATS.get(config.get("pageNumberFormatType"))
        if start is not None or number_format:
            sect_pr = section._sectPr
            pg_num_type = sect_pr.find(qn("w:pgNumType"))
            if pg_num_type is None:
                pg_num_type = OxmlElement("w:pgNumType")
                sect_pr.insert_element_before(pg_num_type, *SECTPR_SUCCESSORS_OF_PGNUMTYPE)
            if start is not None:
                pg_num_type.set(qn("w:start"), str(int(start)))
            if number_format:
                pg_num_type.set(qn("w:fmt"), number_format)

    def _fill_header_footer(self, part, record: Optional[dict]) -> None:
        if not record:
            return
        part.is_linked_to_previous = False
        paragraph = part.paragraphs[0]
        if record.get("alignment") in ALIGNMENTS:
            paragraph.alignment = ALIGNMENTS[record["alignment"]]
        if record.get("content"):
            paragraph.add_run(record["content"])
        if record.get("showPageNumber"):
            self._add_field(paragraph, "PAGE")
            if record.get("pageNumberFormat"):
                paragraph.add_run(record["pageNumberFormat"])
        if record.get("showTotalPages"):
            if record.get("totalPagesFormat"):
                paragraph.add_run(record["totalPagesFormat"])
            self._add_field(paragraph, "NUMPAGES")

    @staticmethod
    def _add_field(paragraph, instruction: str) -> None:
        paragraph._p.append(parse_xml(
            f'<w:fldSimple {nsdecls("w")} w:instr=" {instruction} ">'
            f"<w:r><w:t>1</w:t></w:r></w:fldSimple>"
        ))

    # Runs

    def _add_runs(self, paragraph, runs, override: TextStyle = None) -> None:
        for run in runs:
            if isinstance(run, TextRun):
                docx_run = paragraph.add_run(run.text)
                style = merge_text_styles(run.style, override) if override else run.style
                apply_text_style(docx_run.font, docx_run._r.get_or_add_rPr(), style)
            elif isinstance(run, LineBreakRun):
                paragraph.add_run().add_break()
            elif isinstance(run, ImageRun):
                lines = (PLACEHOLDER_BANNER, run.diagnostic, run.alt) if run.placeholder else ()
                self._add_picture(paragraph.add_run(), run.data, run.format, run.width, run.height, lines)

    def _add_picture(self, run, data: bytes, image_format: str, width: int, height: int, lines=()) -> None:
        size = {"width": Emu(int(width) * EMU_PER_PIXEL), "height": Emu(int(height) * EMU_PER_PIXEL)}
        if image_format == "svg":
            inline_shape = run.add_picture(BytesIO(render_svg_fallback(width, height, lines)), **size)
            self._attach_svg(run, inline_shape, data)
            return
        try:
            run.add_picture(BytesIO(data), **size)
        except UnrecognizedImageError as e:
            logger.warning("image_embed_failed", format=image_format, error=str(e))
            run.add_picture(BytesIO(render_svg_fallback(width, height, (PLACEHOLDER_BANNER,))), **size)

    @staticmethod
    def _attach_svg(run, inline_shape, svg: bytes) -> None:
        package = run.part.package
        svg_part = Part(package.next_partname(SVG_PARTNAME_TEMPLATE), SVG_CONTENT_TYPE, svg, package)
        r_id = run.part.relate_to(svg_part, RT.IMAGE)
        blip = inline_shape._inline.graphic.graphicData.pic.blipFill.blip
        blip.append(parse_xml(
            f'<a:extLst {nsdecls("a", "r")}>'
            f'<a:ext uri="{SVG_BLIP_EXTENSION_URI}">'
            f'<asvg:svgBlip xmlns:asvg="{SVG_NAMESPACE}" r:embed="{r_id}"/>'
            f"</a:ext></a:extLst>"
        ))

    # Blocks

    def _render_heading(self, document, node: Heading) -> None:
        paragraph = document.add_paragraph(style=f"Heading {node.level}")
        apply_paragraph_style(paragraph.paragraph_format, paragraph._p.get_or_add_pPr(), node.style.paragraph)
        self._add_runs(paragraph, node.runs)

    def _render_paragraph(self, document, node: Paragraph) -> None:
        paragraph = document.add_paragraph()
        apply_paragraph_style(
            paragraph.paragraph_format,
            paragraph._p.get_or_add_pPr(),
            node.style,
            decorate=not node.has_images,
        )
        self._add_runs(paragraph, node.runs)

    def _render_list_item(self, document, node: ListItem) -> None:
        base = "List Number" if node.ordered else "List Bullet"
        style_name = base if node.level == 0 else f"{base} {min(node.level, 2) + 1}"
        paragraph = document.add_paragraph(style=style_name)
        style = node.style
        if node.level and style.indent_left is not None:
            style = replace(style, indent_left=style.indent_left + 360 * node.level)
        apply_paragraph_style(paragraph.paragraph_format, paragraph._p.get_or_add_pPr(), style)
        self._add_runs(paragraph, node.runs)

    def _render_blockquote(self, document, node: Blockquote) -> None:
        paragraph = document.add_paragraph()
        apply_paragraph_style(paragraph.paragraph_format, paragraph._p.get_or_add_pPr(), node.style)
        self._add_runs(paragraph, node.runs)

    def _render_code_block(self, document, node: CodeBlock) -> None:
        paragraph = document.add_paragraph()
        apply_paragraph_style(paragraph.paragraph_format, paragraph._p.get_or_add_pPr(), node.style)
        lines = node.text.split("\n")
        for index, line in enumerate(lines):
            run = paragraph.add_run(line)
            apply_text_style(run.font, run._r.get_or_add_rPr(), node.style.text)
            if index < len(lines) - 1:
                run.add_break()

    def _render_image(self, document, node: Image) -> None:
        paragraph = document.add_paragraph()
        paragraph.alignment = ALIGNMENTS.get(node.alignment, WD_ALIGN_PARAGRAPH.CENTER)
        lines = (PLACEHOLDER_BANNER, node.diagnostic, node.alt) if node.placeholder else ()
        self._add_picture(paragraph.add_run(), node.data, node.format, node.width, node.height, lines)

        if node.caption:
            caption = document.add_paragraph()
            caption.alignment = WD_ALIGN_PARAGRAPH.CENTER
            caption.add_run(node.caption).italic = True

    def _render_table(self, document, node: Table) -> None:
        if not node.rows:
            return
        style = node.style or {}
        column_count = node.column_count
        table = document.add_table(rows=len(node.rows), cols=column_count)
        tbl_pr = table._tbl.tblPr

        width = style.get("width") or {"size": 100, "type": "pct"}
        tbl_w = tbl_pr.find(qn("w:tblW"))
        if tbl_w is not None:
            if width.get("type") == "pct":
                # pct widths are stored in fiftieths of a percent
                tbl_w.set(qn("w:w"), str(int(checked_number(width.get("size"), 100)) * 50))
                tbl_w.set(qn("w:type"), "pct")
            else:
                tbl_w.set(qn("w:w"), str(int(checked_number(width.get("size"), 0))))
                tbl_w.set(qn("w:type"), width.get("type") or "dxa")

        borders = style.get("borders") or {
            "top": {"size": 4, "color": "000000", "style": "single"},
            "bottom": {"size": 4, "color": "000000", "style": "single"},
            "left": {"size": 4, "color": "000000", "style": "single"},
            "right": {"size": 4, "color": "000000", "style": "single"},
            "insideHorizontal": {"size": 2, "color": "DDDDDD", "style": "single"},
            "insideVertical": {"size": 2, "color": "DDDDDD", "style": "single"},
        }
        tbl_borders = OxmlElement("w:tblBorders")
        for side in ("top", "left", "bottom", "right", "insideHorizontal", "insideVertical"):
            border = BorderStyle.from_record(borders.get(side))
            if border is not None:
                tbl_borders.append(_border_element(f"w:{side}", border))
        tbl_pr.insert_element_before(tbl_borders, *TBLPR_SUCCESSORS_OF_BORDERS)

        margins = style.get("cellMargin") or {"top": 100, "bottom": 100, "left": 100, "right": 100}
        cell_mar = OxmlElement("w:tblCellMar")
        for side in ("top", "left", "bottom", "right"):
            if checked_number(margins.get(side)) is not None:
                margin = OxmlElement(f"w:{side}")
                margin.set(qn("w:w"), str(int(margins[side])))
                margin.set(qn("w:type"), "dxa")
                cell_mar.append(margin)
        tbl_pr.insert_element_before(cell_mar, *TBLPR_SUCCESSORS_OF_CELLMAR)

        header = style.get("headerStyle") or {}
        header_fill = checked_color(header.get("shading"), "E0E0E0")
        header_text = TextStyle.from_record(header.get("textStyle"))
        alignment = ALIGNMENTS.get(style.get("alignment") or "center")

        for row_index, row in enumerate(node.rows):
            is_header = row_index == 0
            if is_header:
                tr_pr = table.rows[0]._tr.get_or_add_trPr()
                tr_pr.append(OxmlElement("w:tblHeader"))
            for column_index in range(column_count):
                cell = table.cell(row_index, column_index)
                runs = row[column_index] if column_index < len(row) else ()
                paragraph = cell.paragraphs[0]
                paragraph.alignment = alignment
                paragraph.paragraph_format.line_spacing = 1.5
                self._add_runs(paragraph, runs, override=header_text if is_header else None)
                if is_header:
                    tc_pr = cell._tc.get_or_add_tcPr()
                    tc_pr.insert_element_before(_shading_element(header_fill), *TCPR_SUCCESSORS_OF_SHD)
