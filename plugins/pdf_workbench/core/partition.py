"""Partition planning for split and trim exports."""

from __future__ import annotations

from typing import Iterable, List, Mapping

from .limits import (
    AllPagesDeletedError,
    ensure_cut_point,
    ensure_page,
    ensure_page_count,
    ensure_rotation,
    surviving_pages,
)
from .models import OutputPart, PlannedPage


def plan_partition(
    page_count: int,
    cut_points: Iterable[int] = (),
    deleted_pages: Iterable[int] = (),
    rotations: Mapping[int, int] | None = None,
) -> List[OutputPart]:
    """Split the surviving pages of a document into ordered output parts.

    Pages listed in ``deleted_pages`` are removed first. The remaining pages
    are walked in original order and a part is closed right after every page
    that is also a cut point. A cut point on a deleted page is therefore never
    reached and produces no boundary. Empty parts cannot occur and part
    indices are contiguous from 1.

    Rotations are attached per page; pages without an entry, or with an
    explicit ``0``, get ``0``.
    """

    page_count = ensure_page_count(page_count)
    cuts = {ensure_cut_point(page, page_count) for page in cut_points}
    deleted = {ensure_page(page, page_count) for page in deleted_pages}
    rotation_map: dict[int, int] = {}
    for page, degrees in (rotations or {}).items():
        ensure_page(page, page_count)
        # 0 means "leave as is", the same as no entry.
        if degrees != 0:
            rotation_map[page] = ensure_rotation(degrees)

    survivors = surviving_pages(page_count, deleted)
    if not survivors:
        raise AllPagesDeletedError("At least one page must remain")

    groups: List[List[int]] = []
    current: List[int] = []
    for page in survivors:
        current.append(page)
        if page in cuts:
            groups.append(current)
            current = []
    if current:
        groups.append(current)

    return [
        OutputPart(
            index=index,
            pages=tuple(PlannedPage(page=page, rotation=rotation_map.get(page, 0)) for page in group),
        )
        for index, group in enumerate(groups, start=1)
    ]


__all__ = ["plan_partition"]
