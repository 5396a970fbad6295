from io import BytesIO

import pytest
from docx import Document
from docx.oxml.ns import qn
from docx.shared import Pt, Twips

from mdtoword_mcp.document_model import (
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
from mdtoword_mcp.docx_writer import DocxWriter, page_dimensions, render_svg_fallback
from mdtoword_mcp.image_resolver import build_placeholder_svg
from mdtoword_mcp.style_models import HeadingStyle, ParagraphStyle, TextStyle


def reopen(content: bytes):
    return Document(BytesIO(content))


@pytest.mark.parametrize("size, orientation, expected", [
    ("A4", "portrait", (11906, 16838)),
    ("A3", "portrait", (16838, 23811)),
    ("Letter", "landscape", (15840, 12240)),
    ("Legal", None, (12240, 20160)),
    ("B5", "portrait", (11906, 16838)),
])
def test_page_dimensions(size, orientation, expected):
    assert page_dimensions(size, orientation) == expected


def test_svg_fallback_is_png():
    data = render_svg_fallback(120, 80, ["Image could not be loaded", "HTTP 404", "alt 图"])
    assert data.startswith(b"\x89PNG")


def test_page_setup_and_defaults(effective_style):
    document = reopen(DocxWriter(effective_style).render([]))
    section = document.sections[0]

    assert section.page_width == Twips(11906)
    assert section.page_height == Twips(16838)
    assert section.left_margin == Twips(1440)
    normal = document.styles["Normal"]
    assert normal.font.size == Pt(12)
    assert normal.font.name == "宋体"


def test_landscape_page(engine):
    style = engine.get_effective_style_config({"document": {"page": {"size": "Letter", "orientation": "landscape"}}})
    section = reopen(DocxWriter(style).render([])).sections[0]

    assert section.page_width == Twips(15840)
    assert section.page_height == Twips(12240)


def test_blocks_render_in_order(effective_style):
    heading_style = HeadingStyle.from_record(1, effective_style["headingStyles"]["h1"])
    nodes = [
        Heading(level=1, runs=(TextRun("Title", TextStyle(bold=True, size=32)),), style=heading_style),
        Paragraph(runs=(TextRun("Body "), TextRun("bold", TextStyle(bold=True)), LineBreakRun(), TextRun("next"))),
        ListItem(runs=(TextRun("a"),), ordered=False, level=0, style=ParagraphStyle(indent_left=480)),
        ListItem(runs=(TextRun("b"),), ordered=True, level=1, style=ParagraphStyle(indent_left=480)),
        Blockquote(runs=(TextRun("quoted"),), style=ParagraphStyle.from_record(effective_style["blockquoteStyle"])),
        CodeBlock(text="x = 1\ny = 2", language="python",
                  style=ParagraphStyle(text=TextStyle(font="Courier New", size=20), shading_fill="F5F5F5")),
    ]
    document = reopen(DocxWriter(effective_style).render(nodes))
    paragraphs = document.paragraphs

    assert [p.text for p in paragraphs] == ["Title", "Body bold\nnext", "a", "b", "quoted", "x = 1\ny = 2"]
    assert paragraphs[0].style.name == "Heading 1"
    assert paragraphs[1].runs[1].bold is True
    assert paragraphs[2].style.name == "List Bullet"
    assert paragraphs[3].style.name == "List Number 2"
    assert paragraphs[3].paragraph_format.left_indent == Twips(840)

    quote_ppr = paragraphs[4]._p.pPr
    assert quote_ppr.find(qn("w:pBdr")) is not None
    assert quote_ppr.find(qn("w:shd")).get(qn("w:fill")) == "F8F9FA"

    code_run = paragraphs[5].runs[0]
    assert code_run.font.name == "Courier New"
    assert code_run.font.size == Pt(10)


def test_table_header_row(effective_style):
    rows = (
        ((TextRun("Name"),), (TextRun("Age"),)),
        ((TextRun("Alice"),), (TextRun("30"),)),
        ((TextRun("Bob"),),),
    )
    document = reopen(DocxWriter(effective_style).render([
        Table(rows=rows, style=effective_style["tableStyles"]["default"]),
    ]))
    table = document.tables[0]

    assert len(table.rows) == 3
    assert len(table.columns) == 2
    assert table.cell(2, 1).text == ""
    header_cell = table.cell(0, 0)
    assert header_cell._tc.tcPr.find(qn("w:shd")).get(qn("w:fill")) == "F0F0F0"
    assert header_cell.paragraphs[0].runs[0].bold is True
    assert table.cell(1, 0)._tc.tcPr.find(qn("w:shd")) is None
    tbl_pr = table._tbl.tblPr
    assert tbl_pr.find(qn("w:tblW")).get(qn("w:w")) == "5000"
    assert tbl_pr.find(qn("w:tblBorders")) is not None


def test_images_and_placeholders(effective_style, png_bytes):
    placeholder = build_placeholder_svg("missing.png", "logo", "File not found", 400, 267)
    nodes = [
        Image(data=png_bytes, format="png", width=40, height=30, caption="Figure 1"),
        Image(data=placeholder, format="svg", width=400, height=267, alt="logo",
              placeholder=True, diagnostic="File not found"),
        Paragraph(runs=(TextRun("inline "), ImageRun(data=png_bytes, format="png", width=20, height=15))),
    ]
    content = DocxWriter(effective_style).render(nodes)
    document = reopen(content)

    assert len(document.inline_shapes) == 3
    assert document.paragraphs[1].text == "Figure 1"
    assert document.paragraphs[1].runs[0].italic is True
    assert b"svgBlip" in document.part.blob
    svg_parts = [part for part in document.part.package.iter_parts() if part.content_type == "image/svg+xml"]
    assert len(svg_parts) == 1
    assert b"File not found" in svg_parts[0].blob


def test_header_footer(engine):
    style = engine.get_effective_style_config({
        "headerFooter": {
            "header": {"content": "Quarterly report", "alignment": "right"},
            "footer": {
                "content": "Page ",
                "showPageNumber": True,
                "showTotalPages": True,
                "totalPagesFormat": " of ",
                "alignment": "center",
            },
            "differentFirstPage": True,
            "firstPageHeader": {"content": "Cover"},
            "pageNumberStart": 3,
            "pageNumberFormatType": "upperRoman",
        },
    })
    section = reopen(DocxWriter(style).render([])).sections[0]

    assert section.header.paragraphs[0].text == "Quarterly report"
    assert section.different_first_page_header_footer
    assert section.first_page_header.paragraphs[0].text == "Cover"

    footer_xml = section.footer._element.xml
    assert "Page " in footer_xml
    assert footer_xml.index("PAGE") < footer_xml.index(" of ") < footer_xml.index("NUMPAGES")

    pg_num_type = section._sectPr.find(qn("w:pgNumType"))
    assert pg_num_type.get(qn("w:start")) == "3"
    assert pg_num_type.get(qn("w:fmt")) == "upperRoman"
