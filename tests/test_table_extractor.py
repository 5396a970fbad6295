import pytest
from markdown_it.token import Token

from mdtoword_mcp.document_model import TextRun
from mdtoword_mcp.table_extractor import TableExtractor


async def plain_text(token):
    if token is None:
        return ()
    return (TextRun(text=token.content),)


def cell_texts(rows):
    return [[run.text for cell in row for run in cell] for row in rows]


@pytest.mark.asyncio
async def test_extracts_rows_from_markdown(parser):
    tokens = parser.parse("| Name | Age |\n| --- | --- |\n| Alice | 30 |\n| Bob | 25 |\n\nAfter")
    table_open = next(i for i, token in enumerate(tokens) if token.type == "table_open")

    extraction = await TableExtractor(plain_text).extract(tokens, table_open)

    assert cell_texts(extraction.rows) == [["Name", "Age"], ["Alice", "30"], ["Bob", "25"]]
    assert tokens[extraction.end_index].type == "table_close"
    assert tokens[extraction.end_index + 1].type == "paragraph_open"


@pytest.mark.asyncio
async def test_td_header_row_is_still_row_zero():
    tokens = [
        Token("table_open", "table", 1),
        Token("tr_open", "tr", 1),
        Token("td_open", "td", 1),
        Token("inline", "", 0, content="first"),
        Token("td_close", "td", -1),
        Token("tr_close", "tr", -1),
        Token("tr_open", "tr", 1),
        Token("td_open", "td", 1),
        Token("inline", "", 0, content="second"),
        Token("td_close", "td", -1),
        Token("tr_close", "tr", -1),
        Token("table_close", "table", -1),
    ]

    extraction = await TableExtractor(plain_text).extract(tokens, 0)

    assert cell_texts(extraction.rows) == [["first"], ["second"]]
    assert extraction.end_index == 11


@pytest.mark.asyncio
async def test_missing_inline_gives_empty_cell():
    tokens = [
        Token("table_open", "table", 1),
        Token("tr_open", "tr", 1),
        Token("th_open", "th", 1),
        Token("th_close", "th", -1),
        Token("th_open", "th", 1),
        Token("inline", "", 0, content="b"),
        Token("th_close", "th", -1),
        Token("tr_close", "tr", -1),
        Token("table_close", "table", -1),
    ]

    extraction = await TableExtractor(plain_text).extract(tokens, 0)

    assert extraction.rows == (((), (TextRun(text="b"),)),)


@pytest.mark.asyncio
async def test_unterminated_table_stops_at_end():
    tokens = [
        Token("table_open", "table", 1),
        Token("tr_open", "tr", 1),
        Token("td_open", "td", 1),
        Token("inline", "", 0, content="x"),
        Token("td_close", "td", -1),
        Token("tr_close", "tr", -1),
    ]

    extraction = await TableExtractor(plain_text).extract(tokens, 0)

    assert cell_texts(extraction.rows) == [["x"]]
    assert extraction.end_index == len(tokens) - 1
