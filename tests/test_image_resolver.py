import base64
import struct
import zlib

import httpx
import pytest
import respx
from httpx import Response

from mdtoword_mcp.document_model import ImageReference
from mdtoword_mcp.image_resolver import (
    PLACEHOLDER_BANNER,
    ImageResolver,
    ResolutionStatus,
    build_placeholder_svg,
    classify_image_format,
    default_image_height,
)


class TestClassifyImageFormat:
    @pytest.mark.parametrize("src, expected", [
        ("data:image/png;base64,AAAA", "png"),
        ("data:image/jpeg;base64,AAAA", "jpg"),
        ("data:image/svg+xml;base64,AAAA", "svg"),
        ("data:image/webp;base64,AAAA", None),
        ("https://example.com/a/b/photo.JPG?size=large#top", "jpg"),
        ("images/diagram.svg", "svg"),
        ("C:\\pictures\\chart.bmp", "bmp"),
        ("https://mdn.alipayobjects.com/one_clip/afts/img/AbCd123/original", "png"),
        ("https://images.unsplash.com/photo-1500000000000", "jpg"),
        ("https://example.com/download", None),
        ("photos/unsplash.com/holiday", None),
        ("https://example.com/view?ref=unsplash.com", None),
        ("https://via.placeholder.com/150", "jpg"),
        ("https://[broken/download", None),
        ("https://example.com/file.webp", None),
    ])
    def test_policy_table(self, src, expected):
        assert classify_image_format(src) == expected


def test_default_height_is_three_to_two():
    assert default_image_height(400) == 267


def test_placeholder_svg_content():
    src = "https://example.com/" + "x" * 80
    svg = build_placeholder_svg(src, "A <b> & c", "HTTP 404", 400, 267).decode("utf-8")

    assert svg.startswith('<svg width="400" height="267"')
    assert PLACEHOLDER_BANNER in svg
    assert "HTTP 404" in svg
    assert "A &lt;b&gt; &amp; c" in svg
    assert src[:47] + "..." in svg
    assert src not in svg


@pytest.mark.asyncio
async def test_data_uri_loads(resolver, png_data_uri, png_bytes):
    result = await resolver.resolve(ImageReference(src=png_data_uri, alt="dot"))

    assert result.status == ResolutionStatus.LOADED
    assert result.data == png_bytes
    assert result.format == "png"
    assert (result.width, result.height) == (400, 267)
    assert result.reason is None


@pytest.mark.asyncio
@pytest.mark.parametrize("src, reason", [
    ("data:image/png;base64,!!!not-base64!!!", "Invalid base64 data"),
    ("data:image/png;base64,", "Empty image data"),
    ("data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\ntruncated").decode(), "Invalid image data"),
    ("data:image/png,rawbytes", "Missing base64 marker"),
    ("data:image/webp;base64,AAAA", "Unrecognized image format"),
    ("", "Empty image source"),
])
async def test_bad_data_uris_become_placeholders(resolver, src, reason):
    result = await resolver.resolve(ImageReference(src=src, alt="broken"))

    assert result.is_placeholder
    assert result.reason == reason
    assert result.format == "svg"
    assert b"<svg" in result.data
    assert reason.encode() in result.data


@pytest.mark.asyncio
async def test_missing_local_file(resolver):
    result = await resolver.resolve(ImageReference(src="nowhere/missing.png", alt="gone"), width=300, height=100)

    assert result.is_placeholder
    assert result.reason == "File not found"
    assert (result.width, result.height) == (300, 100)
    assert b"gone" in result.data


@pytest.mark.asyncio
async def test_local_file_relative_to_base_dir(tmp_path, png_bytes):
    (tmp_path / "img").mkdir()
    (tmp_path / "img" / "dot.png").write_bytes(png_bytes)
    resolver = ImageResolver(base_dir=str(tmp_path))

    result = await resolver.resolve(ImageReference(src="img/dot.png"))

    assert result.status == ResolutionStatus.LOADED
    assert result.data == png_bytes


@pytest.mark.asyncio
async def test_local_svg(tmp_path):
    (tmp_path / "logo.svg").write_text('<svg xmlns="http://www.w3.org/2000/svg"/>')
    result = await ImageResolver(base_dir=str(tmp_path)).resolve(ImageReference(src="logo.svg"))

    assert not result.is_placeholder
    assert result.format == "svg"


@pytest.mark.asyncio
async def test_unrecognized_local_extension(tmp_path):
    (tmp_path / "notes.txt").write_text("hello")
    result = await ImageResolver(base_dir=str(tmp_path)).resolve(ImageReference(src="notes.txt"))

    assert result.reason == "Unrecognized image format"


@pytest.mark.asyncio
async def test_size_limit(tmp_path, png_bytes):
    (tmp_path / "big.png").write_bytes(png_bytes)
    result = await ImageResolver(base_dir=str(tmp_path), max_bytes=10).resolve(ImageReference(src="big.png"))

    assert result.is_placeholder
    assert result.reason.startswith("Image too large")


def png_header_only(width: int, height: int) -> bytes:
    """PNG signature and IHDR declaring the given size, with no pixel data."""
    def chunk(kind: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", b"") + chunk(b"IEND", b"")


@pytest.mark.asyncio
@pytest.mark.parametrize("src", ["a" * 300 + ".png", "bad\x00name.png"])
async def test_unreadable_local_path_becomes_placeholder(resolver, src):
    result = await resolver.resolve(ImageReference(src=src, alt="odd"))

    assert result.is_placeholder
    assert result.reason in ("File not found", "File read failed")


@pytest.mark.asyncio
async def test_decompression_bomb_becomes_placeholder(tmp_path):
    (tmp_path / "huge.png").write_bytes(png_header_only(60000, 60000))
    result = await ImageResolver(base_dir=str(tmp_path)).resolve(ImageReference(src="huge.png"))

    assert result.is_placeholder
    assert result.reason == "Image too large"


@pytest.mark.asyncio
async def test_local_files_can_be_disabled(tmp_path, png_bytes):
    (tmp_path / "dot.png").write_bytes(png_bytes)
    resolver = ImageResolver(base_dir=str(tmp_path), allow_local=False)

    for src in ("dot.png", str(tmp_path / "dot.png")):
        result = await resolver.resolve(ImageReference(src=src))
        assert result.is_placeholder
        assert result.reason == "Local files not allowed"


@pytest.mark.asyncio
async def test_data_uris_still_load_when_local_files_are_disabled(png_data_uri, png_bytes):
    result = await ImageResolver(allow_local=False).resolve(ImageReference(src=png_data_uri))
    assert result.data == png_bytes


@pytest.mark.asyncio
@respx.mock
async def test_remote_image_loads(resolver, png_bytes):
    respx.get("https://cdn.example.com/pic.png").mock(return_value=Response(200, content=png_bytes))

    result = await resolver.resolve(ImageReference(src="https://cdn.example.com/pic.png"))

    assert result.status == ResolutionStatus.LOADED
    assert result.data == png_bytes


@pytest.mark.asyncio
@respx.mock
async def test_remote_404(resolver):
    respx.get("https://cdn.example.com/missing.png").mock(return_value=Response(404))

    result = await resolver.resolve(ImageReference(src="https://cdn.example.com/missing.png", alt="logo"))

    assert result.is_placeholder
    assert result.reason == "HTTP 404"
    assert b"HTTP 404" in result.data


@pytest.mark.asyncio
@respx.mock
async def test_remote_network_error(resolver):
    respx.get("https://cdn.example.com/slow.png").mock(side_effect=httpx.ConnectTimeout)

    result = await resolver.resolve(ImageReference(src="https://cdn.example.com/slow.png"))

    assert result.is_placeholder
    assert result.reason == "Network error"


@pytest.mark.asyncio
@respx.mock
async def test_shared_client_is_used(png_bytes):
    route = respx.get("https://images.unsplash.com/photo-1").mock(return_value=Response(200, content=png_bytes))

    async with httpx.AsyncClient() as client:
        result = await ImageResolver(http_client=client).resolve(ImageReference(src="https://images.unsplash.com/photo-1"))

    assert route.called
    # Extension policy says jpg; the embedded bytes are whatever the host sent
    assert result.format == "jpg"
    assert not result.is_placeholder


@pytest.mark.asyncio
async def test_malformed_url_becomes_placeholder(resolver):
    result = await resolver.resolve(ImageReference(src="https://[not-a-host/pic.png"))

    assert result.is_placeholder
    assert result.reason == "Network error"
