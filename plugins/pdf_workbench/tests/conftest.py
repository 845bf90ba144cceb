from io import BytesIO

import pytest
from PyPDF2 import PdfReader, PdfWriter


def build_pdf(pages: int, *, rotate: dict[int, int] | None = None) -> bytes:
    """Blank PDF whose page N is ``100 + N`` points wide, so order is checkable."""

    writer = PdfWriter()
    for number in range(1, pages + 1):
        writer.add_blank_page(width=100 + number, height=200)
        if rotate and number in rotate:
            writer.pages[number - 1].rotate(rotate[number])
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


def page_widths(data: bytes) -> list[int]:
    reader = PdfReader(BytesIO(data))
    return [int(float(page.mediabox.width)) for page in reader.pages]


def page_rotations(data: bytes) -> list[int]:
    reader = PdfReader(BytesIO(data))
    return [int(page.get("/Rotate", 0)) for page in reader.pages]


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def widths():
    return page_widths


@pytest.fixture
def rotations():
    return page_rotations
