"""Limits, error types and shared checks for page planning."""

from __future__ import annotations

from typing import Iterable, List

MAX_SOURCES = 5
MIN_MERGE_SOURCES = 2
MAX_CUT_POINTS = 4
# Upper bound for client-supplied page counts in stateless session requests.
MAX_SESSION_PAGES = 2000
ROTATION_STEP = 90
VALID_ROTATIONS = (90, 180, 270)


class WorkbenchError(ValueError):
    """Base class for recoverable merge/split failures."""

    code = "pdf.error"


class InputRejectedError(WorkbenchError):
    """Raised when no acceptable PDF was supplied."""

    code = "pdf.input_rejected"


class DecodeError(WorkbenchError):
    """Raised when a document cannot be opened, even permissively."""

    code = "pdf.decode_failed"


class LimitExceededError(WorkbenchError):
    """Raised when an action would exceed a configured limit."""

    code = "pdf.limit_exceeded"


class InvalidCutPointError(WorkbenchError):
    """Raised when a cut point lies outside ``[1, page_count - 1]``."""

    code = "pdf.invalid_cut_point"


class AllPagesDeletedError(WorkbenchError):
    """Raised when no page would survive deletion."""

    code = "pdf.all_pages_deleted"


class InvalidPageError(WorkbenchError):
    """Raised for page numbers or rotations that make no sense."""

    code = "pdf.invalid_page"


class AssemblyError(WorkbenchError):
    """Raised when output bytes could not be produced."""

    code = "pdf.assembly_failed"


def ensure_page_count(page_count: int) -> int:
    if isinstance(page_count, bool) or not isinstance(page_count, int) or page_count < 1:
        raise InvalidPageError(f"Page count must be a positive integer, got {page_count!r}")
    return page_count


def ensure_page(page: int, page_count: int) -> int:
    """Return ``page`` if it is a valid 1-indexed page of the document."""

    if isinstance(page, bool) or not isinstance(page, int):
        raise InvalidPageError(f"Page numbers must be integers, got {page!r}")
    if page < 1 or page > page_count:
        raise InvalidPageError(f"Page {page} is outside 1-{page_count}")
    return page


def ensure_cut_point(page: int, page_count: int) -> int:
    # A cut after the last page would produce nothing.
    if isinstance(page, bool) or not isinstance(page, int) or page < 1 or page > page_count - 1:
        raise InvalidCutPointError(
            f"Cut point {page!r} must be between 1 and {page_count - 1}"
            if page_count > 1
            else "A single-page document cannot be split"
        )
    return page


def normalize_rotation(degrees: int) -> int:
    """Fold any multiple of 90 into ``0``, ``90``, ``180`` or ``270``."""

    if isinstance(degrees, bool) or not isinstance(degrees, int) or degrees % ROTATION_STEP:
        raise InvalidPageError(f"Rotation must be a multiple of {ROTATION_STEP}, got {degrees!r}")
    return degrees % 360


def ensure_rotation(degrees: int) -> int:
    if degrees not in VALID_ROTATIONS:
        raise InvalidPageError(f"Stored rotations must be one of {VALID_ROTATIONS}, got {degrees!r}")
    return degrees


def surviving_pages(page_count: int, deleted_pages: Iterable[int]) -> List[int]:
    """Return pages ``1..page_count`` minus ``deleted_pages`` in original order."""

    deleted = set(deleted_pages)
    return [page for page in range(1, page_count + 1) if page not in deleted]


__all__ = [
    "MAX_SOURCES",
    "MIN_MERGE_SOURCES",
    "MAX_CUT_POINTS",
    "MAX_SESSION_PAGES",
    "ROTATION_STEP",
    "VALID_ROTATIONS",
    "WorkbenchError",
    "InputRejectedError",
    "DecodeError",
    "LimitExceededError",
    "InvalidCutPointError",
    "AllPagesDeletedError",
    "InvalidPageError",
    "AssemblyError",
    "ensure_page_count",
    "ensure_page",
    "ensure_cut_point",
    "normalize_rotation",
    "ensure_rotation",
    "surviving_pages",
]
