"""PDF decoding, preview rendering and output assembly."""

from __future__ import annotations

from io import BytesIO
from typing import Iterable, Sequence, Tuple

import fitz  # pymupdf
from PIL import Image
from PyPDF2 import PasswordType, PdfReader, PdfWriter
from PyPDF2.generic import NameObject, NumberObject

from common.imaging import image_to_bytes

from .limits import AssemblyError, DecodeError, ensure_page, ensure_rotation
from .models import PlannedPage

PDF_MIME = "application/pdf"
PDF_EXTENSION = ".pdf"

Run = Tuple[bytes, Sequence[PlannedPage]]


def is_pdf_upload(name: str | None, content_type: str | None) -> bool:
    """Return ``True`` when the declared type or the extension says PDF."""

    if content_type and content_type.split(";", 1)[0].strip().lower() == PDF_MIME:
        return True
    return bool(name) and name.lower().endswith(PDF_EXTENSION)


def _open_reader(data: bytes) -> PdfReader:
    try:
        reader = PdfReader(BytesIO(data), strict=False)
        if reader.is_encrypted:
            # Owner-password-only files still open with an empty user password.
            if reader.decrypt("") == PasswordType.NOT_DECRYPTED:
                raise DecodeError("PDF is protected by a password")
        # Touch the page tree so broken files fail here rather than later.
        len(reader.pages)
    except DecodeError:
        raise
    except Exception as exc:
        raise DecodeError("Unable to read PDF. The file may be corrupted or encrypted.") from exc
    return reader


def probe_page_count(data: bytes) -> int:
    reader = _open_reader(data)
    page_count = len(reader.pages)
    if page_count < 1:
        raise DecodeError("PDF contains no pages")
    return page_count


def render_thumbnail(data: bytes, page: int, scale: float = 0.3) -> bytes:
    """Render ``page`` (1-indexed) to PNG bytes at ``scale`` times 72 DPI."""

    try:
        document = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise DecodeError("Unable to render PDF preview") from exc
    try:
        ensure_page(page, document.page_count)
        pixmap = document[page - 1].get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
    finally:
        document.close()
    return image_to_bytes(image)


def extract_and_assemble(runs: Iterable[Run]) -> bytes:
    """Build one PDF from ``(source bytes, pages)`` runs, in the given order.

    A non-zero rotation replaces the page's ``/Rotate`` entry outright.
    """

    writer = PdfWriter()
    readers: dict[int, tuple[bytes, PdfReader]] = {}
    try:
        for data, pages in runs:
            cached = readers.get(id(data))
            if cached is None:
                cached = readers[id(data)] = (data, _open_reader(data))
            reader = cached[1]
            total = len(reader.pages)
            for planned in pages:
                ensure_page(planned.page, total)
                added = writer.add_page(reader.pages[planned.page - 1])
                if planned.rotation:
                    added[NameObject("/Rotate")] = NumberObject(ensure_rotation(planned.rotation))
        if not writer.pages:
            raise AssemblyError("No pages to assemble")
        buffer = BytesIO()
        writer.write(buffer)
    except AssemblyError:
        raise
    except Exception as exc:
        raise AssemblyError("Failed to build PDF. Some files may be corrupted or encrypted.") from exc
    return buffer.getvalue()


__all__ = [
    "PDF_MIME",
    "is_pdf_upload",
    "probe_page_count",
    "render_thumbnail",
    "extract_and_assemble",
]
