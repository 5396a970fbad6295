"""Typed leaf style records.

Style configurations travel as plain JSON-shaped dicts (camelCase keys, the
shape clients send). The records here are the typed views the tree builder
and the DOCX writer work with. They compose instead of inheriting: a
ParagraphStyle holds a TextStyle, a HeadingStyle holds a ParagraphStyle.

Units: sizes are half-points, spacing and indents are twips, colors are
6-digit hex strings without '#'.

Building a record drops malformed leaf values (bad colors, out-of-range
sizes, non-numeric lengths) so they fall back to the inherited or default
value instead of reaching python-docx.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Dict, Optional

COLOR_RE = re.compile(r"^[0-9A-Fa-f]{6}$")
MIN_SIZE = 8
MAX_SIZE = 144

TEXT_FIELDS = ("font", "size", "color", "bold", "italic", "underline", "strike")
FLAG_FIELDS = ("bold", "italic", "underline", "strike")


def is_valid_color(value) -> bool:
    return isinstance(value, str) and COLOR_RE.match(value) is not None


def is_valid_size(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return MIN_SIZE <= value <= MAX_SIZE


def checked_color(value, default: Optional[str] = None) -> Optional[str]:
    return value if is_valid_color(value) else default


def checked_size(value, default: Optional[int] = None) -> Optional[int]:
    return value if is_valid_size(value) else default


def checked_number(value, default=None):
    """Return value if it is a real number (not a bool), else default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _checked_flag(value) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _mapping(value) -> dict:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class TextStyle:
    font: Optional[str] = None
    size: Optional[int] = None
    color: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strike: Optional[bool] = None

    @classmethod
    def from_record(cls, record: Optional[dict]) -> "TextStyle":
        """Build a TextStyle from a style record, ignoring non-text keys."""
        if not record:
            return cls()
        font = record.get("font")
        return cls(
            font=font if isinstance(font, str) and font else None,
            size=checked_size(record.get("size")),
            color=checked_color(record.get("color")),
            **{name: _checked_flag(record.get(name)) for name in FLAG_FIELDS},
        )


@dataclass(frozen=True)
class BorderStyle:
    size: int = 4
    color: str = "000000"
    style: str = "single"

    @classmethod
    def from_record(cls, record: Optional[dict]) -> Optional["BorderStyle"]:
        if not record or not isinstance(record, dict):
            return None
        return cls(
            size=int(checked_number(record.get("size"), 4)),
            color=checked_color(record.get("color"), "000000"),
            style=record.get("style") if isinstance(record.get("style"), str) else "single",
        )


@dataclass(frozen=True)
class ParagraphStyle:
    text: TextStyle = field(default_factory=TextStyle)
    name: Optional[str] = None
    alignment: Optional[str] = None
    spacing_before: Optional[int] = None
    spacing_after: Optional[int] = None
    line: Optional[int] = None
    line_rule: str = "auto"
    indent_left: Optional[int] = None
    indent_right: Optional[int] = None
    first_line: Optional[int] = None
    hanging: Optional[int] = None
    borders: Dict[str, BorderStyle] = field(default_factory=dict)
    shading_fill: Optional[str] = None
    shading_type: Optional[str] = None
    shading_color: Optional[str] = None

    @classmethod
    def from_record(cls, record: Optional[dict]) -> "ParagraphStyle":
        if not record:
            return cls()
        spacing = _mapping(record.get("spacing"))
        indent = _mapping(record.get("indent"))
        shading = _mapping(record.get("shading"))
        borders = {}
        for side, border in _mapping(record.get("border")).items():
            parsed = BorderStyle.from_record(border)
            if parsed is not None:
                borders[side] = parsed
        return cls(
            text=TextStyle.from_record(record),
            name=record.get("name"),
            alignment=record.get("alignment"),
            spacing_before=checked_number(spacing.get("before")),
            spacing_after=checked_number(spacing.get("after")),
            line=checked_number(spacing.get("line")),
            line_rule=spacing.get("lineRule") or "auto",
            indent_left=checked_number(indent.get("left")),
            indent_right=checked_number(indent.get("right")),
            first_line=checked_number(indent.get("firstLine")),
            hanging=checked_number(indent.get("hanging")),
            borders=borders,
            shading_fill=checked_color(shading.get("fill")),
            shading_type=shading.get("type"),
            shading_color=checked_color(shading.get("color")),
        )

    def with_defaults(self, **defaults) -> "ParagraphStyle":
        """Return a copy where each unset field named in defaults takes the default."""
        updates = {
            name: value for name, value in defaults.items()
            if getattr(self, name) is None
        }
        return replace(self, **updates) if updates else self


@dataclass(frozen=True)
class HeadingStyle:
    level: int
    paragraph: ParagraphStyle = field(default_factory=ParagraphStyle)
    numbering: bool = False
    numbering_format: Optional[str] = None

    @property
    def text(self) -> TextStyle:
        return self.paragraph.text

    @classmethod
    def from_record(cls, level: int, record: Optional[dict]) -> "HeadingStyle":
        record = record or {}
        return cls(
            level=record.get("level", level),
            paragraph=ParagraphStyle.from_record(record),
            numbering=bool(record.get("numbering", False)),
            numbering_format=record.get("numberingFormat"),
        )


def merge_text_styles(base: TextStyle, override: TextStyle) -> TextStyle:
    """One-level override merge of two text styles.

    Every field explicitly set on ``override`` wins; the rest come from
    ``base``. This is not the deep configuration merge done by StyleEngine.
    """
    return TextStyle(**{
        name: getattr(override, name) if getattr(override, name) is not None else getattr(base, name)
        for name in TEXT_FIELDS
    })
