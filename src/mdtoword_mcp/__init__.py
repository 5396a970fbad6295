"""
mdtoword-mcp: MCP server for Markdown to Word (DOCX) conversion.

This package provides a FastMCP-based server that converts Markdown text into
styled Word documents. Markdown is tokenized with markdown-it-py, mapped onto a
typed document tree using a fully resolved style configuration, and written
out with python-docx. An optional FastAPI gateway exposes the same conversion
over HTTP.
"""

__version__ = "0.1.0"
