"""Table data tools.

Turns CSV or JSON records into validated table data and a Markdown table
snippet that can be pasted into markdown_to_docx input. Row 0 is the header
row when the data has one, matching how converted tables are rendered.
"""

import csv
import io
import json
from dataclasses import dataclass, field
from typing import List, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

PRESET_TABLE_STYLES = [
    {"name": "minimal", "description": "Light horizontal rules only, no vertical borders"},
    {"name": "professional", "description": "Dark header row with white bold text, thin grid"},
    {"name": "striped", "description": "Alternating light gray body rows"},
    {"name": "grid", "description": "Full single-line grid on every cell"},
    {"name": "academic", "description": "Three-line table: thick top and bottom rules, thin rule under header"},
]

PREVIEW_ROWS = 3


@dataclass
class TableData:
    rows: List[List[str]] = field(default_factory=list)
    has_header: bool = True
    style_name: str = "minimal"

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def to_markdown(self) -> str:
        """Render as a GFM pipe table. A header row is synthesized when missing."""
        if not self.rows:
            return ""

        def line(cells):
            escaped = [str(cell).replace("|", "\\|").replace("\n", " ") for cell in cells]
            return "| " + " | ".join(escaped) + " |"

        if self.has_header:
            header, body = self.rows[0], self.rows[1:]
        else:
            header, body = [f"Column {i + 1}" for i in range(self.column_count)], self.rows
        lines = [line(header), "| " + " | ".join("---" for _ in header) + " |"]
        lines.extend(line(row) for row in body)
        return "\n".join(lines)


def parse_csv_table(csv_data: str, has_header: bool = True, delimiter: str = ",", style_name: str = "minimal") -> TableData:
    """Parse CSV text into TableData. Blank lines are skipped."""
    if len(delimiter) != 1:
        raise ValueError(f"delimiter must be a single character (got {delimiter!r})")
    reader = csv.reader(io.StringIO(csv_data.strip()), delimiter=delimiter)
    rows = [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]
    return TableData(rows=rows, has_header=has_header, style_name=style_name)


def parse_json_table(json_data: str, columns: Optional[List[str]] = None, style_name: str = "minimal") -> TableData:
    """
    Parse a JSON array of objects into TableData with a header row.

    Columns default to every key, in first-seen order. Missing values render
    as empty cells.
    """
    records = json.loads(json_data)
    if not isinstance(records, list):
        raise ValueError("JSON data must be an array of objects")
    if not all(isinstance(record, dict) for record in records):
        raise ValueError("Every JSON array item must be an object")

    if not columns:
        columns = []
        for record in records:
            for key in record:
                if key not in columns:
                    columns.append(key)

    rows = [list(columns)]
    for record in records:
        rows.append(["" if record.get(column) is None else str(record.get(column)) for column in columns])
    return TableData(rows=rows, has_header=True, style_name=style_name)


def validate_table_data(table: TableData) -> List[str]:
    """Return a list of problems; empty when the table is usable."""
    errors = []
    if not table.rows:
        errors.append("table has no rows")
        return errors
    expected = len(table.rows[0])
    if expected == 0:
        errors.append("table has no columns")
    for index, row in enumerate(table.rows[1:], start=1):
        if len(row) != expected:
            errors.append(f"row {index} has {len(row)} cells, expected {expected}")
    return errors


def _check_style_name(style_name: str) -> Optional[str]:
    names = [style["name"] for style in PRESET_TABLE_STYLES]
    if style_name not in names:
        return f"Error: Unknown table style '{style_name}'. Available styles: {', '.join(names)}"
    return None


def _summary(kind: str, table: TableData) -> str:
    preview = "\n".join(
        f"{index}. " + " | ".join(row)
        for index, row in enumerate(table.rows[:PREVIEW_ROWS], start=1)
    )
    return (
        f"{kind} table created: {len(table.rows)} rows x {table.column_count} columns\n"
        f"Style: {table.style_name}\n"
        f"\n"
        f"Preview (first {PREVIEW_ROWS} rows):\n"
        f"{preview or '(empty table)'}\n"
        f"\n"
        f"Markdown:\n"
        f"{table.to_markdown()}"
    )


def create_table_from_csv(csv_data: str, has_header: bool = True, delimiter: str = ",", style_name: str = "minimal") -> str:
    """Convert CSV text to table data.

    Args:
        csv_data: CSV text
        has_header: Whether the first row is the header (default: True)
        delimiter: Single-character field separator (default: ",")
        style_name: Preset table style name (see list_table_styles)

    Returns:
        Row/column counts, a three-row preview and a Markdown table, or error message

    Example:
        create_table_from_csv("Name,Age\\nAlice,30\\nBob,25")
    """
    style_error = _check_style_name(style_name)
    if style_error:
        return style_error

    try:
        table = parse_csv_table(csv_data, has_header=has_header, delimiter=delimiter, style_name=style_name)
    except (csv.Error, ValueError) as e:
        logger.error("tool_operation_failed", tool="create_table_from_csv", error=str(e), error_type=type(e).__name__)
        return f"Error: Could not parse CSV: {str(e)}"

    errors = validate_table_data(table)
    if errors:
        return f"Error: Table data validation failed: {', '.join(errors)}"

    return _summary("CSV", table)


def create_table_from_json(json_data: str, columns: Optional[List[str]] = None, style_name: str = "minimal") -> str:
    """Convert a JSON array of objects to table data.

    Args:
        json_data: JSON text, an array of objects
        columns: Optional column names to include, in order (default: all keys)
        style_name: Preset table style name (see list_table_styles)

    Returns:
        Row/column counts, a three-row preview and a Markdown table, or error message

    Example:
        create_table_from_json('[{"name": "Alice", "age": 30}]', columns=["name"])
    """
    style_error = _check_style_name(style_name)
    if style_error:
        return style_error

    try:
        table = parse_json_table(json_data, columns=columns, style_name=style_name)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        logger.error("tool_operation_failed", tool="create_table_from_json", error=str(e), error_type=type(e).__name__)
        return f"Error: Could not parse JSON: {str(e)}"

    errors = validate_table_data(table)
    if errors:
        return f"Error: Table data validation failed: {', '.join(errors)}"

    return _summary("JSON", table)


def list_table_styles() -> str:
    """List the preset table styles.

    Returns:
        One line per style with its description
    """
    lines = [f"Available table styles ({len(PRESET_TABLE_STYLES)}):", ""]
    lines.extend(f"- {style['name']}: {style['description']}" for style in PRESET_TABLE_STYLES)
    lines.append("")
    lines.append("Pass style_name when creating a table to choose a style.")
    return "\n".join(lines)
