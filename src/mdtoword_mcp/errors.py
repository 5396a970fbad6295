"""Error types and input validation for mdtoword-mcp.

Only hard failures live here. Malformed style values and unresolvable images
are recovered locally (sanitized to defaults, replaced by placeholders) and
never surface as exceptions.
"""

from .config import settings


class MdToWordError(Exception):
    """Base exception for all mdtoword-mcp errors."""
    pass


class TemplateNotFoundError(MdToWordError):
    """Raised when a requested preset template id is unknown.

    Attributes:
        template_id: The id that was requested
    """

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f'Preset template "{template_id}" not found')


class ConversionError(MdToWordError):
    """Raised when tokenizing or serializing a document fails."""
    pass


class MarkdownTooLargeError(ValueError):
    """Raised when Markdown input exceeds the configured size limit.

    Attributes:
        size_bytes: Actual size of the input in bytes (UTF-8 encoded)
        max_bytes: Maximum allowed size in bytes
    """

    def __init__(self, size_bytes: int, max_bytes: int):
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f"Markdown input ({format_size(size_bytes)}) exceeds "
            f"maximum size limit of {format_size(max_bytes)}"
        )


def format_size(bytes_count: int) -> str:
    """Format byte count as human-readable size string.

    Args:
        bytes_count: Number of bytes

    Returns:
        Human-readable size string (e.g., "5.2 MB", "1.5 KB")
    """
    if bytes_count < 1024:
        return f"{bytes_count} B"
    elif bytes_count < 1024 * 1024:
        return f"{bytes_count / 1024:.1f} KB"
    elif bytes_count < 1024 * 1024 * 1024:
        return f"{bytes_count / (1024 * 1024):.1f} MB"
    else:
        return f"{bytes_count / (1024 * 1024 * 1024):.1f} GB"


def validate_markdown_size(markdown: str, max_bytes: int = None) -> None:
    """Validate that Markdown input does not exceed the size limit.

    Args:
        markdown: Markdown source text
        max_bytes: Optional override for settings.MAX_MARKDOWN_SIZE

    Raises:
        MarkdownTooLargeError: If the encoded input is larger than the limit
    """
    limit = settings.MAX_MARKDOWN_SIZE if max_bytes is None else max_bytes
    size = len(markdown.encode("utf-8"))
    if size > limit:
        raise MarkdownTooLargeError(size, limit)
