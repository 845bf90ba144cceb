"""Shared imaging helpers."""

from __future__ import annotations

import base64
from io import BytesIO

from PIL import Image


def image_to_bytes(image: Image.Image, format: str = "PNG") -> bytes:
    buf = BytesIO()
    image.save(buf, format=format)
    return buf.getvalue()


def png_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


__all__ = ["image_to_bytes", "png_base64"]
