"""
HTTP gateway for mdtoword-mcp.

A small FastAPI app for callers that do not speak MCP. POST /convert takes
JSON and answers with the .docx bytes as an attachment.

Entry point: `mdtoword-http` command, served by uvicorn.
"""

from typing import Optional, Union
from urllib.parse import quote

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from . import __version__
from .config import settings
from .converter import MarkdownConverter, resolve_style_config
from .errors import MarkdownTooLargeError, MdToWordError, TemplateNotFoundError
from .image_resolver import ImageResolver
from .logging_config import get_logger
from .monitoring import health_monitor
from .tools.resources import DOCX_MIME_TYPE

logger = get_logger(__name__)

DEFAULT_FILENAME = "document.docx"


class ConvertRequest(BaseModel):
    markdown: str
    filename: Optional[str] = None
    template: Union[str, dict, None] = None
    style_config: Optional[dict] = Field(default=None, alias="styleConfig")

    model_config = {"populate_by_name": True}


def _attachment_filename(filename: Optional[str]) -> str:
    name = (filename or DEFAULT_FILENAME).strip() or DEFAULT_FILENAME
    if not name.lower().endswith(".docx"):
        name += ".docx"
    return name


app = FastAPI(title="Markdown to Word Converter API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def service_info():
    return {
        "name": "mdtoword-mcp",
        "version": __version__,
        "endpoints": {
            "convert": "POST /convert",
            "health": "GET /health",
        },
    }


@app.get("/health")
def health_check():
    return health_monitor.check_health()


@app.post("/convert")
async def convert(request: ConvertRequest):
    if not request.markdown.strip():
        raise HTTPException(status_code=400, detail="No markdown content provided")

    filename = _attachment_filename(request.filename)
    try:
        config = resolve_style_config(template=request.template, style_config=request.style_config)
        resolver = ImageResolver(allow_local=settings.HTTP_ALLOW_LOCAL_IMAGES)
        content = await MarkdownConverter(config, image_resolver=resolver).convert(request.markdown)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MarkdownTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MdToWordError as e:
        logger.error("http_conversion_failed", error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("http_conversion_completed", filename=filename, size_bytes=len(content))
    return Response(
        content=content,
        media_type=DOCX_MIME_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


def main():
    """Serve the gateway with uvicorn on settings.HTTP_HOST:HTTP_PORT."""
    import uvicorn

    uvicorn.run(app, host=settings.HTTP_HOST, port=settings.HTTP_PORT)


if __name__ == "__main__":
    main()
