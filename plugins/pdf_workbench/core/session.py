"""Immutable editing state for split/trim and merge sessions.

Every user action returns a new value; a failed action raises and leaves the
previous value untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Mapping, Tuple

from .limits import (
    MAX_CUT_POINTS,
    MAX_SOURCES,
    InvalidPageError,
    LimitExceededError,
    ensure_cut_point,
    ensure_page,
    ensure_page_count,
    normalize_rotation,
    surviving_pages,
)
from .merge_plan import plan_merge
from .models import MergeEntry, OutputPart, SourceDocument
from .partition import plan_partition

ACTIONS = ("toggle_cut", "toggle_delete", "rotate")


@dataclass(frozen=True)
class SplitSession:
    page_count: int
    cut_points: FrozenSet[int] = frozenset()
    deleted_pages: FrozenSet[int] = frozenset()
    rotations: Tuple[Tuple[int, int], ...] = ()
    max_cut_points: int = MAX_CUT_POINTS

    @classmethod
    def start(cls, page_count: int, *, max_cut_points: int = MAX_CUT_POINTS) -> "SplitSession":
        return cls(page_count=ensure_page_count(page_count), max_cut_points=max_cut_points)

    @classmethod
    def from_edits(
        cls,
        page_count: int,
        cut_points: Iterable[int] = (),
        deleted_pages: Iterable[int] = (),
        rotations: Mapping[int, int] | None = None,
        *,
        max_cut_points: int = MAX_CUT_POINTS,
    ) -> "SplitSession":
        """Rebuild a session by replaying edits as individual actions.

        Each edit goes through the same checks as an interactive action, so
        a state that breaks a limit is rejected rather than silently accepted.
        """

        session = cls.start(page_count, max_cut_points=max_cut_points)
        for page in sorted(set(deleted_pages)):
            session = session.toggle_delete(page)
        for page in sorted(set(cut_points)):
            session = session.toggle_cut(page)
        for page, degrees in sorted((rotations or {}).items()):
            session = session.rotate(page, degrees)
        return session

    @property
    def rotation_map(self) -> Dict[int, int]:
        return dict(self.rotations)

    def rotation_for(self, page: int) -> int:
        return self.rotation_map.get(page, 0)

    @property
    def surviving_pages(self) -> List[int]:
        return surviving_pages(self.page_count, self.deleted_pages)

    @property
    def inert_cut_points(self) -> List[int]:
        """Cut points attached to deleted pages; kept so a restore revives them."""

        return sorted(self.cut_points & self.deleted_pages)

    def toggle_cut(self, page: int) -> "SplitSession":
        if page in self.cut_points:
            return replace(self, cut_points=self.cut_points - {page})
        ensure_cut_point(page, self.page_count)
        if len(self.cut_points) >= self.max_cut_points:
            raise LimitExceededError(
                f"At most {self.max_cut_points} split points are allowed"
            )
        return replace(self, cut_points=self.cut_points | {page})

    def toggle_delete(self, page: int) -> "SplitSession":
        if page in self.deleted_pages:
            return replace(self, deleted_pages=self.deleted_pages - {page})
        ensure_page(page, self.page_count)
        if len(self.deleted_pages) >= self.page_count - 1:
            raise LimitExceededError("At least one page must remain")
        return replace(self, deleted_pages=self.deleted_pages | {page})

    def rotate(self, page: int, degrees: int = 90) -> "SplitSession":
        ensure_page(page, self.page_count)
        rotation_map = self.rotation_map
        total = normalize_rotation(rotation_map.get(page, 0) + normalize_rotation(degrees))
        if total:
            rotation_map[page] = total
        else:
            rotation_map.pop(page, None)
        return replace(self, rotations=tuple(sorted(rotation_map.items())))

    def plan(self) -> List[OutputPart]:
        return plan_partition(
            self.page_count, self.cut_points, self.deleted_pages, self.rotation_map
        )

    def to_dict(self) -> dict:
        return {
            "page_count": self.page_count,
            "cut_points": sorted(self.cut_points),
            "deleted_pages": sorted(self.deleted_pages),
            "rotations": {str(page): degrees for page, degrees in self.rotations},
        }


def apply_action(session: SplitSession, kind: str, page: int, degrees: int = 90) -> SplitSession:
    """Apply one named user action to ``session``."""

    if kind == "toggle_cut":
        return session.toggle_cut(page)
    if kind == "toggle_delete":
        return session.toggle_delete(page)
    if kind == "rotate":
        return session.rotate(page, degrees)
    raise InvalidPageError(f"Unknown action {kind!r}")


@dataclass(frozen=True)
class MergeQueue:
    sources: Tuple[SourceDocument, ...] = field(default_factory=tuple)
    max_sources: int = MAX_SOURCES

    @property
    def available_slots(self) -> int:
        return max(self.max_sources - len(self.sources), 0)

    def add(self, document: SourceDocument) -> "MergeQueue":
        if not self.available_slots:
            raise LimitExceededError(f"Maximum {self.max_sources} files allowed")
        return replace(self, sources=self.sources + (document,))

    def _position(self, token: str) -> int:
        for index, source in enumerate(self.sources):
            if source.token == token:
                return index
        raise InvalidPageError(f"Unknown document {token!r}")

    def remove(self, token: str) -> "MergeQueue":
        index = self._position(token)
        return replace(self, sources=self.sources[:index] + self.sources[index + 1 :])

    def move(self, token: str, index: int) -> "MergeQueue":
        current = self._position(token)
        remaining = list(self.sources)
        document = remaining.pop(current)
        index = min(max(index, 0), len(remaining))
        remaining.insert(index, document)
        return replace(self, sources=tuple(remaining))

    @property
    def total_pages(self) -> int:
        return sum(source.page_count for source in self.sources)

    def plan(self) -> List[MergeEntry]:
        return plan_merge(self.sources)


__all__ = ["ACTIONS", "SplitSession", "MergeQueue", "apply_action"]
