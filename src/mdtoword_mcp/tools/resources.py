"""Read-only MCP resources and prompt text.

Template listings, template details, the style configuration guide and the
supported format description.
"""

import json

from ..templates import preset_template_loader

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def get_template_list() -> str:
    """Markdown list of preset templates, default marked."""
    entries = []
    for template in preset_template_loader.get_template_list():
        marker = " (default)" if template["isDefault"] else ""
        entries.append(
            f"- **{template['id']}**: {template['name']}{marker}\n"
            f"  Category: {template['category']}\n"
            f"  Description: {template['description']}"
        )
    return (
        "# Available Templates\n\n"
        + "\n\n".join(entries)
        + "\n\n## Usage\n\n"
        "Pass the template id as the `template` argument of `markdown_to_docx_tool`, "
        "or `{\"type\": \"preset\", \"presetId\": \"<id>\"}` to the HTTP gateway.\n"
    )


def get_default_template() -> str:
    template = preset_template_loader.get_default_template()
    if template is None:
        return "# Default Template\n\nNo default template is configured."
    return (
        "# Default Template\n\n"
        f"ID: {preset_template_loader.get_default_template_id()}\n"
        f"Name: {template.name}\n"
        f"Category: {template.category}\n"
        f"Description: {template.description}\n\n"
        "Features:\n"
        "- Body text indented by 2 characters on the first line\n"
        "- Black text in SimSun (宋体)\n"
        "- Follows Chinese document layout conventions\n"
    )


def get_template_details(template_id: str) -> str:
    """JSON for one template, or a not-found message."""
    template = preset_template_loader.get_preset_template(template_id)
    if template is None:
        return f'Template "{template_id}" not found'
    return json.dumps(template.to_dict(), ensure_ascii=False, indent=2)


def get_style_guide() -> str:
    return """# Markdown to Word Style Guide

## Units
- **Twip**: 1/1440 inch = 1/20 point, used for spacing, indents and margins
- **Half-point**: font size unit, 24 half-points = 12pt
- Examples: 2-character indent = 480 twips, 1 inch margin = 1440 twips

## Colors (6-digit hex, no '#')
- `000000` black
- `333333` dark gray
- `666666` medium gray
- `2E74B5` professional blue

## Validation
- Colors must match `^[0-9A-Fa-f]{6}$`
- Sizes must lie between 8 and 144 half-points
- Invalid values are replaced with the built-in defaults, never rejected

## Style config sections
- `document`: defaultFont, defaultSize, defaultColor, page (size A4/A3/Letter/Legal, orientation, margins)
- `paragraphStyles.normal`, `headingStyles.h1`..`h6`, `listStyles.bullet|ordered`
- `tableStyles.default`: width, borders, cellMargin, headerStyle, alignment
- `codeBlockStyle`, `blockquoteStyle`, `inlineCodeStyle`, `emphasisStyles`
- `imageStyles.default`: width, height (pixels), alignment
- `headerFooter`: header, footer, firstPageHeader/Footer, evenPageHeader/Footer,
  differentFirstPage, differentOddEven, pageNumberStart, pageNumberFormatType
"""


def get_supported_formats() -> str:
    formats = {
        "input": {
            "markdown": {
                "name": "Markdown",
                "extensions": [".md", ".markdown"],
                "mimeType": "text/markdown",
                "features": [
                    "headings", "paragraphs", "lists", "tables", "code blocks",
                    "blockquotes", "images", "emphasis", "strikethrough",
                ],
            }
        },
        "output": {
            "docx": {
                "name": "Microsoft Word",
                "extension": ".docx",
                "mimeType": DOCX_MIME_TYPE,
                "features": ["full styling", "header/footer", "page numbers", "tables", "images"],
            }
        },
    }
    return json.dumps(formats, indent=2)


def markdown_to_docx_help() -> str:
    return (
        "Convert Markdown to Word with markdown_to_docx_tool. Pass either `markdown` "
        "or `input_path`, a `filename` ending in .docx, and optionally a preset "
        "`template` (see templates://list) and a `style_config` override "
        "(see style-guide://complete)."
    )
