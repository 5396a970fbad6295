"""Built-in default style configuration.

Chinese business-document defaults: SimSun (宋体) body text at 12pt, black,
A4 portrait with 1-inch margins, justified body paragraphs with a two
character first-line indent, and bold black headings stepping down in size
by level. This is also the fallback for every sanitized field.
"""

import copy

DEFAULT_COLOR = "000000"
DEFAULT_SIZE = 24  # half-points (12pt)

_DEFAULT_STYLE_CONFIG = {
    "document": {
        "defaultFont": "宋体",
        "defaultSize": DEFAULT_SIZE,
        "defaultColor": DEFAULT_COLOR,
        "page": {
            "size": "A4",
            "orientation": "portrait",
            "margins": {"top": 1440, "bottom": 1440, "left": 1440, "right": 1440},
        },
    },
    "paragraphStyles": {
        "normal": {
            "name": "正文",
            "font": "宋体",
            "size": 24,
            "color": DEFAULT_COLOR,
            "spacing": {"line": 400, "lineRule": "auto", "after": 120},
            "alignment": "justify",
            # 2 characters at 12pt
            "indent": {"firstLine": 480},
        },
    },
    "headingStyles": {
        "h1": {
            "name": "一级标题", "level": 1, "font": "黑体", "size": 32,
            "color": DEFAULT_COLOR, "bold": True,
            "spacing": {"before": 480, "after": 240, "line": 400},
            "alignment": "center",
        },
        "h2": {
            "name": "二级标题", "level": 2, "font": "黑体", "size": 28,
            "color": DEFAULT_COLOR, "bold": True,
            "spacing": {"before": 360, "after": 180, "line": 380},
        },
        "h3": {
            "name": "三级标题", "level": 3, "font": "宋体", "size": 26,
            "color": DEFAULT_COLOR, "bold": True,
            "spacing": {"before": 240, "after": 120, "line": 360},
        },
        "h4": {
            "name": "四级标题", "level": 4, "font": "宋体", "size": 24,
            "color": DEFAULT_COLOR, "bold": True,
            "spacing": {"before": 180, "after": 90, "line": 340},
        },
        "h5": {
            "name": "五级标题", "level": 5, "font": "宋体", "size": 22,
            "color": DEFAULT_COLOR, "bold": True,
            "spacing": {"before": 120, "after": 60, "line": 320},
        },
        "h6": {
            "name": "六级标题", "level": 6, "font": "宋体", "size": 20,
            "color": DEFAULT_COLOR, "bold": True,
            "spacing": {"before": 120, "after": 60, "line": 320},
        },
    },
    "listStyles": {
        "bullet": {
            "name": "项目符号列表", "type": "bullet", "font": "宋体", "size": 24,
            "color": DEFAULT_COLOR,
            "spacing": {"line": 400, "after": 60},
            "indent": {"left": 480},
        },
        "ordered": {
            "name": "编号列表", "type": "number", "font": "宋体", "size": 24,
            "color": DEFAULT_COLOR,
            "spacing": {"line": 400, "after": 60},
            "indent": {"left": 480},
        },
    },
    "tableStyles": {
        "default": {
            "name": "默认表格",
            "width": {"size": 100, "type": "pct"},
            "borders": {
                "top": {"size": 8, "color": DEFAULT_COLOR, "style": "single"},
                "bottom": {"size": 8, "color": DEFAULT_COLOR, "style": "single"},
                "left": {"size": 4, "color": DEFAULT_COLOR, "style": "single"},
                "right": {"size": 4, "color": DEFAULT_COLOR, "style": "single"},
                "insideHorizontal": {"size": 4, "color": DEFAULT_COLOR, "style": "single"},
                "insideVertical": {"size": 4, "color": DEFAULT_COLOR, "style": "single"},
            },
            "cellMargin": {"top": 100, "bottom": 100, "left": 100, "right": 100},
            "headerStyle": {
                "shading": "F0F0F0",
                "textStyle": {"font": "宋体", "bold": True, "color": DEFAULT_COLOR, "size": 24},
            },
        },
    },
    "codeBlockStyle": {
        "name": "代码块",
        "font": "Courier New",
        "size": 20,
        "color": DEFAULT_COLOR,
        "backgroundColor": "F8F9FA",
        "spacing": {"before": 240, "after": 240, "line": 240},
        "indent": {"left": 240},
        "border": {"left": {"size": 4, "color": "CCCCCC", "style": "single"}},
    },
    "blockquoteStyle": {
        "name": "引用",
        "font": "宋体",
        "size": 24,
        "color": DEFAULT_COLOR,
        "italic": True,
        "indent": {"left": 720},
        "border": {"left": {"size": 4, "color": "CCCCCC", "style": "single"}},
        "spacing": {"before": 240, "after": 240, "line": 400},
        "shading": {"fill": "F8F9FA", "type": "solid"},
    },
    "inlineCodeStyle": {
        "font": "Courier New",
        "size": 22,
        "color": DEFAULT_COLOR,
    },
    "emphasisStyles": {
        "strong": {"bold": True},
        "emphasis": {"italic": True},
        "strikethrough": {"strike": True},
    },
}


def create_default_style_config() -> dict:
    """Return a fresh deep copy of the built-in default style configuration."""
    return copy.deepcopy(_DEFAULT_STYLE_CONFIG)
