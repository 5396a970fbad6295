"""
Image acquisition for Markdown image references.

ImageResolver turns an ImageReference (data URI, http(s) URL or local path)
into image bytes plus a format tag. It never raises: any failure produces a
placeholder SVG whose on-page text names the failure reason, the alt text and
a truncated copy of the source.

Format classification is a policy table (data-URI subtype, known URL patterns,
file extension, known extensionless photo hosts), not content sniffing. Raster
bytes are still opened with Pillow so a corrupt payload becomes a placeholder
instead of a broken picture part.
"""

import asyncio
import base64
import binascii
import re
import time
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse
from xml.sax.saxutils import escape

import httpx
from PIL import Image, UnidentifiedImageError

from .config import settings
from .document_model import ImageReference
from .errors import format_size
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_IMAGE_WIDTH = 400
DEFAULT_ASPECT_RATIO = 0.667  # 3:2

PLACEHOLDER_BANNER = "Image could not be loaded"
SOURCE_DISPLAY_LIMIT = 50

DATA_URI_FORMATS = {
    "jpeg": "jpg",
    "jpg": "jpg",
    "png": "png",
    "gif": "gif",
    "bmp": "bmp",
    "svg+xml": "svg",
}

EXTENSION_FORMATS = {
    "jpg": "jpg",
    "jpeg": "jpg",
    "png": "png",
    "gif": "gif",
    "bmp": "bmp",
    "svg": "svg",
}

# CDNs that serve images without a file extension
URL_PATTERN_FORMATS = [
    (re.compile(r"mdn\.alipayobjects\.com/one_clip/afts/img/[^/]+/original$", re.IGNORECASE), "png"),
]

# Photo hosts whose extensionless URLs are JPEG
JPEG_DEFAULT_HOSTS = ("unsplash.com", "placeholder.com")

# Pillow format names python-docx can embed
EMBEDDABLE_RASTER_FORMATS = {"JPEG", "PNG", "GIF", "BMP", "TIFF"}

_DATA_URI_RE = re.compile(r"^data:image/([A-Za-z0-9.+-]+)", re.IGNORECASE)


class ResolutionStatus(str, Enum):
    LOADED = "loaded"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class ImageResolutionResult:
    status: ResolutionStatus
    data: bytes
    format: str
    width: int
    height: int
    reason: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.status == ResolutionStatus.PLACEHOLDER


def default_image_height(width: int) -> int:
    return int(round(width * DEFAULT_ASPECT_RATIO))


def classify_image_format(src: str) -> Optional[str]:
    """
    Map an image source to one of jpg/png/gif/bmp/svg, or None if unknown.

    Examples:
        >>> classify_image_format("data:image/svg+xml;base64,PHN2Zz4=")
        'svg'
        >>> classify_image_format("https://example.com/a/photo.JPEG?w=300")
        'jpg'
        >>> classify_image_format("https://images.unsplash.com/photo-1500")
        'jpg'
        >>> classify_image_format("https://example.com/download")
    """
    if src.startswith("data:"):
        match = _DATA_URI_RE.match(src)
        if not match:
            return None
        return DATA_URI_FORMATS.get(match.group(1).lower())

    for pattern, image_format in URL_PATTERN_FORMATS:
        if pattern.search(src):
            return image_format

    path = src.split("?", 1)[0].split("#", 1)[0]
    last_segment = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." in last_segment:
        extension = last_segment.rsplit(".", 1)[-1].lower()
        if extension in EXTENSION_FORMATS:
            return EXTENSION_FORMATS[extension]

    if src.lower().startswith(("http://", "https://")):
        try:
            hostname = (urlparse(src).hostname or "").lower()
        except ValueError:
            return None
        if any(hostname == host or hostname.endswith("." + host) for host in JPEG_DEFAULT_HOSTS):
            return "jpg"
    return None


def _display_source(src: str) -> str:
    if len(src) > SOURCE_DISPLAY_LIMIT:
        return src[:47] + "..."
    return src


def build_placeholder_svg(src: str, alt: str, reason: str, width: int, height: int) -> bytes:
    """
    Build the placeholder graphic shown for an unresolvable image.

    Pure function: a bordered light gray box with four centered text lines
    (banner, failure reason, alt text, truncated source).
    """
    lines = [
        (40, 14, "#666666", PLACEHOLDER_BANNER),
        (50, 12, "#999999", reason),
        (60, 10, "#999999", alt),
        (70, 8, "#bbbbbb", _display_source(src)),
    ]
    texts = "".join(
        f'<text x="50%" y="{y}%" text-anchor="middle" font-family="Arial, sans-serif" '
        f'font-size="{size}" fill="{fill}">{escape(text)}</text>'
        for y, size, fill, text in lines
    )
    svg = (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" '
        f'xmlns="http://www.w3.org/2000/svg">'
        f'<rect width="{width}" height="{height}" fill="#f0f0f0" stroke="#cccccc" stroke-width="2"/>'
        f"{texts}</svg>"
    )
    return svg.encode("utf-8")


class ImageResolver:
    """
    Resolves image references for one conversion.

    Args:
        base_dir: Directory relative local paths are resolved against (default: cwd)
        http_client: Optional shared httpx.AsyncClient; a short-lived client is
                     created per fetch when omitted
        timeout: Remote fetch timeout in seconds (default: settings.IMAGE_FETCH_TIMEOUT)
        max_bytes: Largest accepted image payload (default: settings.IMAGE_MAX_BYTES)
        allow_local: Whether local file paths may be read; when False every
                     local reference becomes a placeholder
    """

    def __init__(
        self,
        base_dir: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        allow_local: bool = True
    ):
        self.base_dir = Path(base_dir) if base_dir else None
        self.http_client = http_client
        self.timeout = httpx.Timeout(timeout if timeout is not None else settings.IMAGE_FETCH_TIMEOUT)
        self.max_bytes = max_bytes if max_bytes is not None else settings.IMAGE_MAX_BYTES
        self.allow_local = allow_local

    async def resolve(
        self,
        ref: ImageReference,
        width: int = DEFAULT_IMAGE_WIDTH,
        height: Optional[int] = None
    ) -> ImageResolutionResult:
        """
        Resolve one image reference. Never raises.

        Args:
            ref: Image source with alt/title
            width: Target width in pixels
            height: Target height in pixels (default: 3:2 ratio of width)

        Returns:
            LOADED result with the image bytes, or PLACEHOLDER result with an
            SVG placeholder and the failure reason
        """
        height = height or default_image_height(width)
        src = (ref.src or "").strip()
        start = time.monotonic()

        if not src:
            return self._placeholder(ref, "Empty image source", width, height)

        image_format = classify_image_format(src)

        if src.startswith("data:"):
            if image_format is None:
                return self._placeholder(ref, "Unrecognized image format", width, height)
            data, error = self._decode_data_uri(src)
        elif src.lower().startswith(("http://", "https://")):
            data, error = await self._fetch(src)
        else:
            data, error = await self._read_local(src)

        if error is None and not data:
            error = "Empty image data"
        if error is None and len(data) > self.max_bytes:
            error = f"Image too large ({format_size(len(data))})"
        if error is None and image_format is None:
            error = "Unrecognized image format"
        if error is None:
            error = self._verify(data, image_format)

        if error is not None:
            return self._placeholder(ref, error, width, height)

        logger.debug(
            "image_loaded",
            source=_display_source(src),
            format=image_format,
            size_bytes=len(data),
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        return ImageResolutionResult(
            status=ResolutionStatus.LOADED,
            data=data,
            format=image_format,
            width=width,
            height=height,
        )

    def _placeholder(self, ref: ImageReference, reason: str, width: int, height: int) -> ImageResolutionResult:
        logger.warning("image_placeholder_created", source=_display_source(ref.src or ""), reason=reason)
        return ImageResolutionResult(
            status=ResolutionStatus.PLACEHOLDER,
            data=build_placeholder_svg(ref.src or "", ref.alt or "Image", reason, width, height),
            format="svg",
            width=width,
            height=height,
            reason=reason,
        )

    def _decode_data_uri(self, src: str) -> Tuple[Optional[bytes], Optional[str]]:
        header, sep, payload = src.partition("base64,")
        if not sep:
            return None, "Missing base64 marker"
        try:
            return base64.b64decode(payload.strip(), validate=True), None
        except (binascii.Error, ValueError):
            return None, "Invalid base64 data"

    async def _fetch(self, url: str) -> Tuple[Optional[bytes], Optional[str]]:
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("image_fetch_failed", url=_display_source(url), error=str(e), error_type=type(e).__name__)
            return None, "Network error"

        if not response.is_success:
            return None, f"HTTP {response.status_code}"
        return response.content, None

    async def _read_local(self, src: str) -> Tuple[Optional[bytes], Optional[str]]:
        if not self.allow_local:
            return None, "Local files not allowed"

        try:
            path = Path(src).expanduser()
            if not path.is_absolute() and self.base_dir is not None:
                path = self.base_dir / path
            if not path.is_file():
                return None, "File not found"
            return await asyncio.to_thread(path.read_bytes), None
        except (OSError, ValueError, RuntimeError) as e:
            logger.warning("image_read_failed", path=_display_source(src), error=str(e), error_type=type(e).__name__)
            return None, "File read failed"

    def _verify(self, data: bytes, image_format: str) -> Optional[str]:
        if image_format == "svg":
            if b"<svg" not in data.lower():
                return "Invalid SVG data"
            return None
        try:
            with Image.open(BytesIO(data)) as image:
                detected = image.format
                image.verify()
        except Image.DecompressionBombError:
            return "Image too large"
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            return "Invalid image data"
        if detected not in EMBEDDABLE_RASTER_FORMATS:
            return f"Unsupported image encoding ({detected})"
        return None
