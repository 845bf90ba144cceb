"""Common IO helpers for plugins."""

from __future__ import annotations

import zipfile
from io import BytesIO
from typing import Iterable, Tuple


def buffer_from_bytes(data: bytes) -> BytesIO:
    buffer = BytesIO()
    buffer.write(data)
    buffer.seek(0)
    return buffer


def zip_buffer(entries: Iterable[Tuple[str, bytes]]) -> BytesIO:
    """Pack ``(name, data)`` pairs into an in-memory zip archive."""

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries:
            archive.writestr(name, content)
    buffer.seek(0)
    return buffer


__all__ = ["buffer_from_bytes", "zip_buffer"]
