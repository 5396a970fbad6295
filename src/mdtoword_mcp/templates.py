"""Preset style templates.

Each preset is a named StyleConfig bundle. The default preset
(customer-analysis) carries the full built-in configuration; the others are
partial overrides that the StyleEngine deep-merges over it.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .default_styles import create_default_style_config
from .errors import TemplateNotFoundError
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TEMPLATE_ID = "customer-analysis"


@dataclass(frozen=True)
class PresetTemplate:
    id: str
    name: str
    category: str
    description: str
    style_config: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "styleConfig": copy.deepcopy(self.style_config),
        }


def _heading(font: str, size: int, color: str, **extra) -> dict:
    record = {"font": font, "size": size, "color": color, "bold": True}
    record.update(extra)
    return record


_PRESETS = [
    PresetTemplate(
        id="customer-analysis",
        name="客户分析",
        category="business",
        description="默认模板：宋体正文，首行缩进2字符，黑色标题，符合中文公文排版习惯",
        style_config=create_default_style_config(),
    ),
    PresetTemplate(
        id="academic",
        name="学术论文",
        category="academic",
        description="学术论文格式：宋体小四正文，1.5倍行距，标题居中，页码居中",
        style_config={
            "document": {
                "defaultFont": "宋体",
                "defaultSize": 24,
                "page": {
                    "size": "A4",
                    "orientation": "portrait",
                    "margins": {"top": 1440, "bottom": 1440, "left": 1800, "right": 1800},
                },
            },
            "paragraphStyles": {
                "normal": {
                    "font": "宋体",
                    "size": 24,
                    "spacing": {"line": 360, "lineRule": "auto", "after": 0},
                    "alignment": "justify",
                    "indent": {"firstLine": 480},
                },
            },
            "headingStyles": {
                "h1": _heading("黑体", 32, "000000", alignment="center",
                               spacing={"before": 480, "after": 360, "line": 360}),
                "h2": _heading("黑体", 28, "000000",
                               spacing={"before": 360, "after": 240, "line": 360}),
                "h3": _heading("黑体", 24, "000000",
                               spacing={"before": 240, "after": 120, "line": 360}),
            },
            "headerFooter": {
                "footer": {
                    "content": "第 ",
                    "showPageNumber": True,
                    "pageNumberFormat": " 页",
                    "alignment": "center",
                },
            },
        },
    ),
    PresetTemplate(
        id="business",
        name="商务报告",
        category="business",
        description="商务报告格式：微软雅黑，蓝色标题，1.15倍行距，无首行缩进",
        style_config={
            "document": {"defaultFont": "微软雅黑", "defaultSize": 22, "defaultColor": "333333"},
            "paragraphStyles": {
                "normal": {
                    "font": "微软雅黑",
                    "size": 22,
                    "color": "333333",
                    "spacing": {"line": 276, "lineRule": "auto", "after": 160},
                    "alignment": "left",
                    "indent": {"firstLine": 0},
                },
            },
            "headingStyles": {
                "h1": _heading("微软雅黑", 36, "2E74B5", alignment="left",
                               spacing={"before": 360, "after": 240}),
                "h2": _heading("微软雅黑", 30, "2E74B5",
                               spacing={"before": 300, "after": 160}),
                "h3": _heading("微软雅黑", 26, "2E74B5",
                               spacing={"before": 240, "after": 120}),
            },
            "tableStyles": {
                "default": {
                    "headerStyle": {
                        "shading": "2E74B5",
                        "textStyle": {"font": "微软雅黑", "bold": True, "color": "FFFFFF", "size": 22},
                    },
                },
            },
            "headerFooter": {
                "footer": {
                    "showPageNumber": True,
                    "showTotalPages": True,
                    "totalPagesFormat": " / ",
                    "alignment": "right",
                },
            },
        },
    ),
    PresetTemplate(
        id="technical",
        name="技术文档",
        category="technical",
        description="技术文档格式：等宽代码块带背景，蓝灰色标题，适合API与设计文档",
        style_config={
            "document": {"defaultFont": "Arial", "defaultSize": 22},
            "paragraphStyles": {
                "normal": {
                    "font": "Arial",
                    "size": 22,
                    "spacing": {"line": 300, "lineRule": "auto", "after": 120},
                    "alignment": "left",
                    "indent": {"firstLine": 0},
                },
            },
            "headingStyles": {
                "h1": _heading("Arial", 32, "1F3864", alignment="left"),
                "h2": _heading("Arial", 28, "1F3864"),
                "h3": _heading("Arial", 24, "2F5496"),
            },
            "codeBlockStyle": {
                "font": "Consolas",
                "size": 20,
                "backgroundColor": "F2F2F2",
                "border": {"left": {"size": 12, "color": "2F5496", "style": "single"}},
            },
            "inlineCodeStyle": {"font": "Consolas", "size": 20, "color": "C7254E"},
        },
    ),
    PresetTemplate(
        id="minimal",
        name="极简风格",
        category="general",
        description="极简风格：无首行缩进，左对齐标题，单倍行距，浅色表格边框",
        style_config={
            "paragraphStyles": {
                "normal": {
                    "spacing": {"line": 240, "lineRule": "auto", "after": 120},
                    "alignment": "left",
                    "indent": {"firstLine": 0},
                },
            },
            "headingStyles": {
                "h1": {"alignment": "left"},
            },
            "tableStyles": {
                "default": {
                    "borders": {
                        "top": {"size": 4, "color": "BFBFBF", "style": "single"},
                        "bottom": {"size": 4, "color": "BFBFBF", "style": "single"},
                        "left": {"size": 0, "color": "FFFFFF", "style": "none"},
                        "right": {"size": 0, "color": "FFFFFF", "style": "none"},
                        "insideHorizontal": {"size": 4, "color": "BFBFBF", "style": "single"},
                        "insideVertical": {"size": 0, "color": "FFFFFF", "style": "none"},
                    },
                    "headerStyle": {"shading": "FFFFFF"},
                },
            },
        },
    ),
]


class PresetTemplateLoader:
    """Registry of preset templates, keyed by id."""

    def __init__(self, templates: List[PresetTemplate] = None, default_id: str = DEFAULT_TEMPLATE_ID):
        self._templates: Dict[str, PresetTemplate] = {
            template.id: template for template in (templates if templates is not None else _PRESETS)
        }
        self._default_id = default_id

    def get_preset_template(self, template_id: str) -> Optional[PresetTemplate]:
        return self._templates.get(template_id)

    def require_preset_template(self, template_id: str) -> PresetTemplate:
        """Like get_preset_template, but raises TemplateNotFoundError for unknown ids."""
        template = self._templates.get(template_id)
        if template is None:
            logger.warning("preset_template_not_found", template_id=template_id)
            raise TemplateNotFoundError(template_id)
        return template

    def get_default_template_id(self) -> str:
        return self._default_id

    def get_default_template(self) -> Optional[PresetTemplate]:
        return self._templates.get(self._default_id)

    def get_default_style_config(self) -> Optional[dict]:
        """Deep copy of the default template's style config, or None if there is no default."""
        template = self.get_default_template()
        if template is None:
            return None
        return copy.deepcopy(template.style_config)

    def get_template_list(self) -> List[dict]:
        return [
            {
                "id": template.id,
                "name": template.name,
                "category": template.category,
                "description": template.description,
                "isDefault": template.id == self._default_id,
            }
            for template in self._templates.values()
        ]


# Module-level singleton
preset_template_loader = PresetTemplateLoader()
