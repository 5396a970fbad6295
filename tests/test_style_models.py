import pytest

from mdtoword_mcp.style_models import (
    BorderStyle,
    HeadingStyle,
    ParagraphStyle,
    TextStyle,
    checked_color,
    checked_number,
    merge_text_styles,
)


def test_merge_text_styles_override_wins_on_set_fields():
    base = TextStyle(font="宋体", size=24, color="000000", bold=False)
    override = TextStyle(bold=True, color="FF0000")

    assert merge_text_styles(base, override) == TextStyle(font="宋体", size=24, color="FF0000", bold=True)


def test_paragraph_style_from_record():
    style = ParagraphStyle.from_record({
        "font": "Arial",
        "size": 22,
        "alignment": "justify",
        "spacing": {"before": 120, "after": 60, "line": 400, "lineRule": "exact"},
        "indent": {"left": 720, "firstLine": 480},
        "border": {"left": {"size": 8, "color": "CCCCCC"}, "top": {}},
        "shading": {"fill": "F8F9FA"},
    })

    assert style.text == TextStyle(font="Arial", size=22)
    assert (style.spacing_before, style.spacing_after, style.line, style.line_rule) == (120, 60, 400, "exact")
    assert (style.indent_left, style.first_line) == (720, 480)
    assert style.borders == {"left": BorderStyle(size=8, color="CCCCCC", style="single")}
    assert style.shading_fill == "F8F9FA"


def test_with_defaults_only_fills_unset_fields():
    style = ParagraphStyle(line=400).with_defaults(line=360, indent_left=360)
    assert (style.line, style.indent_left) == (400, 360)


def test_heading_style_composes_paragraph_and_text():
    heading = HeadingStyle.from_record(2, {"font": "黑体", "size": 28, "bold": True, "numbering": True})

    assert heading.level == 2
    assert heading.text.font == "黑体"
    assert heading.paragraph.text is heading.text
    assert heading.numbering


def test_empty_records():
    assert ParagraphStyle.from_record(None) == ParagraphStyle()
    assert HeadingStyle.from_record(4, None).level == 4
    assert BorderStyle.from_record({}) is None


def test_text_style_drops_malformed_values():
    style = TextStyle.from_record({"font": 12, "size": "big", "color": "#FF0000", "bold": "yes", "italic": True})
    assert style == TextStyle(italic=True)


@pytest.mark.parametrize("size", [7, 145, -1, True, None])
def test_text_style_drops_out_of_range_sizes(size):
    assert TextStyle.from_record({"size": size, "color": "00ff00"}) == TextStyle(color="00ff00")


def test_paragraph_style_drops_malformed_lengths_and_colors():
    style = ParagraphStyle.from_record({
        "spacing": {"before": "lots", "after": 60, "line": None},
        "indent": "deep",
        "shading": {"fill": "grey", "color": "ABCDEF"},
        "border": {"left": {"size": "thick", "color": "red"}, "top": "solid"},
    })

    assert (style.spacing_before, style.spacing_after, style.line) == (None, 60, None)
    assert style.indent_left is None
    assert (style.shading_fill, style.shading_color) == (None, "ABCDEF")
    assert style.borders == {"left": BorderStyle(size=4, color="000000", style="single")}


@pytest.mark.parametrize("value, expected", [("1a2B3c", "1a2B3c"), ("#1a2b3c", "FFFFFF"), (None, "FFFFFF")])
def test_checked_color(value, expected):
    assert checked_color(value, "FFFFFF") == expected


def test_checked_number_rejects_bools_and_strings():
    assert checked_number(12.5) == 12.5
    assert checked_number(True, 3) == 3
    assert checked_number("12", 3) == 3
