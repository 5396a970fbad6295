"""Markdown to DOCX conversion tool.

Reads Markdown from an argument or a file, converts it with the preset
template and/or style config, and writes the .docx to disk.
"""

from pathlib import Path
from typing import Optional

from ..config import settings
from ..converter import MarkdownConverter, resolve_style_config
from ..errors import MdToWordError, format_size
from ..logging_config import get_logger

logger = get_logger(__name__)


async def markdown_to_docx(
    filename: str,
    markdown: Optional[str] = None,
    input_path: Optional[str] = None,
    output_path: Optional[str] = None,
    template: Optional[str] = None,
    style_config: Optional[dict] = None
) -> str:
    """Convert Markdown to a styled Word document and save it.

    Args:
        filename: Output file name, must end with .docx
        markdown: Markdown source text (exclusive with input_path)
        input_path: Path to a Markdown file (exclusive with markdown). Relative
                    image paths resolve against the file's directory.
        output_path: Output directory (default: settings.OUTPUT_DIR, else cwd)
        template: Preset template id (academic, business, customer-analysis,
                  technical, minimal)
        style_config: Style overrides, merged over the preset

    Returns:
        Success message with output path and size, or error message

    Example:
        await markdown_to_docx("report.docx", markdown="# Title")
        await markdown_to_docx("paper.docx", input_path="paper.md", template="academic")
    """
    if markdown is not None and input_path is not None:
        return "Error: Provide either markdown or input_path, not both."
    if markdown is None and input_path is None:
        return "Error: Either markdown or input_path is required."
    if not filename or not filename.lower().endswith(".docx"):
        return f"Error: filename must end with .docx (got '{filename}')."

    if input_path is not None:
        source = Path(input_path).expanduser().resolve()
        if not source.is_file():
            return f"Error: File not found: {input_path}"
        try:
            markdown = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("tool_operation_failed", tool="markdown_to_docx", error=str(e), error_type=type(e).__name__)
            return f"Error: Could not read {input_path}: {str(e)}"
        base_dir = str(source.parent)
    else:
        base_dir = str(Path.cwd())

    try:
        config = resolve_style_config(template=template, style_config=style_config)
        converter = MarkdownConverter(config, base_dir=base_dir)
        content = await converter.convert(markdown)
    except (MdToWordError, ValueError) as e:
        logger.error("tool_operation_failed", tool="markdown_to_docx", error=str(e), error_type=type(e).__name__)
        return f"Error: {str(e)}"

    out_dir = Path(output_path or settings.OUTPUT_DIR or Path.cwd()).expanduser().resolve()
    target = out_dir / filename
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as e:
        logger.error("tool_operation_failed", tool="markdown_to_docx", error=str(e), error_type=type(e).__name__)
        return f"Error: Could not write {target}: {str(e)}"

    logger.info("document_saved", path=str(target), size_bytes=len(content), template=template)

    return (
        f"Converted Markdown to '{filename}'\n"
        f"Path: {target}\n"
        f"Size: {format_size(len(content))} ({len(content)} bytes)"
    )
