"""Image signature sniffing for uploaded and fetched assets."""

from __future__ import annotations

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

CONTENT_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


def detect_image_content_type(data: bytes) -> str | None:
    """Detect image content type from magic bytes.

    Returns ``None`` if the data does not match a known image signature.
    """
    if data[:8] == PNG_SIGNATURE:
        return "image/png"
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def is_png(data: bytes) -> bool:
    return data[:8] == PNG_SIGNATURE


def sniff_extension(data: bytes) -> str | None:
    """Return the file extension matching the data's image signature, if any."""
    content_type = detect_image_content_type(data)
    if content_type is None:
        return None
    return CONTENT_TYPE_EXTENSIONS[content_type]
