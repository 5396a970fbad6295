"""Document tree produced by DocumentTreeBuilder and consumed by DocxWriter.

Nodes and runs are frozen dataclasses; run and row sequences are tuples, so a
built tree cannot be mutated before serialization.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .style_models import HeadingStyle, ParagraphStyle, TextStyle


@dataclass(frozen=True)
class ImageReference:
    """An image source, whether it came from Markdown image syntax or an HTML <img> tag."""
    src: str
    alt: str = ""
    title: str = ""


# Inline runs

@dataclass(frozen=True)
class TextRun:
    text: str
    style: TextStyle = field(default_factory=TextStyle)


@dataclass(frozen=True)
class LineBreakRun:
    pass


@dataclass(frozen=True)
class ImageRun:
    data: bytes
    format: str
    width: int
    height: int
    alt: str = ""
    title: str = ""
    placeholder: bool = False
    diagnostic: Optional[str] = None


InlineRun = Union[TextRun, LineBreakRun, ImageRun]
Runs = Tuple[InlineRun, ...]


# Block nodes

@dataclass(frozen=True)
class Heading:
    level: int
    runs: Runs
    style: HeadingStyle


@dataclass(frozen=True)
class Paragraph:
    runs: Runs
    style: ParagraphStyle = field(default_factory=ParagraphStyle)

    @property
    def has_images(self) -> bool:
        return any(isinstance(run, ImageRun) for run in self.runs)


@dataclass(frozen=True)
class ListItem:
    runs: Runs
    ordered: bool
    level: int
    style: ParagraphStyle = field(default_factory=ParagraphStyle)


@dataclass(frozen=True)
class Table:
    """Row-major grid; each cell is a run sequence. Row 0 is the header row."""
    rows: Tuple[Tuple[Runs, ...], ...]
    style: dict = field(default_factory=dict, hash=False, compare=False)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)


@dataclass(frozen=True)
class Blockquote:
    runs: Runs
    style: ParagraphStyle = field(default_factory=ParagraphStyle)


@dataclass(frozen=True)
class CodeBlock:
    text: str
    language: str = ""
    style: ParagraphStyle = field(default_factory=ParagraphStyle)


@dataclass(frozen=True)
class Image:
    data: bytes
    format: str
    width: int
    height: int
    alt: str = ""
    caption: str = ""
    placeholder: bool = False
    diagnostic: Optional[str] = None
    alignment: str = "center"


DocumentNode = Union[Heading, Paragraph, ListItem, Table, Blockquote, CodeBlock, Image]
