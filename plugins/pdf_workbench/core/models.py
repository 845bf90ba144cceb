"""Value types shared by the planners and the workbench shell."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Upload:
    """A raw file handed to the workbench before any validation."""

    name: str
    data: bytes = field(repr=False)
    content_type: str | None = None


@dataclass(frozen=True)
class SourceDocument:
    """A probed PDF with a known page count."""

    token: str
    name: str
    page_count: int
    data: bytes = field(default=b"", repr=False, compare=False)


@dataclass(frozen=True)
class PlannedPage:
    """One original page and the rotation to apply to it (0 keeps it as-is)."""

    page: int
    rotation: int = 0


@dataclass(frozen=True)
class OutputPart:
    """A contiguous run of surviving pages destined for one output file."""

    index: int
    pages: Tuple[PlannedPage, ...]

    @property
    def ordinals(self) -> list[int]:
        return [item.page for item in self.pages]

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "pages": [{"page": item.page, "rotation": item.rotation} for item in self.pages],
        }


@dataclass(frozen=True)
class MergeEntry:
    """Page ``page`` of the source at ``source_index`` in the merge order."""

    source_index: int
    page: int


__all__ = ["Upload", "SourceDocument", "PlannedPage", "OutputPart", "MergeEntry"]
