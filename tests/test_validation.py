from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from common.validation import FileLimit, ValidationError, enforce_limits, validate_mime


def _file(data: bytes, name: str = "doc.pdf") -> FileStorage:
    return FileStorage(stream=BytesIO(data), filename=name)


def test_validate_mime_accepts_pdf_signature_and_keeps_position():
    upload = _file(b"%PDF-1.7\n...")
    validate_mime([upload], {"application/pdf"})
    assert upload.stream.tell() == 0


def test_validate_mime_only_knows_pdf():
    png = _file(b"\x89PNG\r\n\x1a\n0000", "image.png")
    with pytest.raises(ValidationError, match="signature"):
        validate_mime([png], {"application/pdf", "image/png"})


def test_enforce_limits_checks_count_and_size():
    limit = FileLimit(max_files=1, max_size=8)
    enforce_limits([_file(b"%PDF-1.7")], limit)

    with pytest.raises(ValidationError, match="Too many files"):
        enforce_limits([_file(b"a"), _file(b"b")], limit)
    with pytest.raises(ValidationError, match="exceeds"):
        enforce_limits([_file(b"%PDF-1.7 too long")], limit)
