"""Output filename conventions."""

from __future__ import annotations

import os

MERGE_PREFIX = "merged"


def merge_filename(now: float) -> str:
    return f"{MERGE_PREFIX}-{int(now * 1000)}.pdf"


def base_name(filename: str | None) -> str:
    """Return the uploaded name with directories, control characters and its
    final extension removed. Spaces and punctuation are kept as typed."""

    leaf = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = "".join(ch for ch in leaf if ch.isprintable()).strip()
    stem, _ = os.path.splitext(cleaned)
    return stem.strip() or "document"


def part_filename(source_name: str | None, index: int, total: int) -> str:
    if total == 1:
        return f"{base_name(source_name)}-trimmed.pdf"
    return f"{base_name(source_name)}-part{index}.pdf"


__all__ = ["MERGE_PREFIX", "merge_filename", "base_name", "part_filename"]
