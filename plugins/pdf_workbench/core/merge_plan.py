"""Merge planning: concatenate every page of every source in user order."""

from __future__ import annotations

from itertools import groupby
from typing import List, Sequence, Tuple

from .limits import ensure_page_count
from .models import MergeEntry, PlannedPage, SourceDocument


def plan_merge(sources: Sequence[SourceDocument]) -> List[MergeEntry]:
    """Return one entry per page of each source, sources kept in the given order."""

    entries: List[MergeEntry] = []
    for index, source in enumerate(sources):
        page_count = ensure_page_count(source.page_count)
        entries.extend(MergeEntry(source_index=index, page=page) for page in range(1, page_count + 1))
    return entries


def merge_runs(
    sources: Sequence[SourceDocument], entries: Sequence[MergeEntry]
) -> List[Tuple[bytes, Tuple[PlannedPage, ...]]]:
    """Group consecutive entries of the same source for assembly."""

    runs: List[Tuple[bytes, Tuple[PlannedPage, ...]]] = []
    for source_index, group in groupby(entries, key=lambda entry: entry.source_index):
        pages = tuple(PlannedPage(page=entry.page) for entry in group)
        runs.append((sources[source_index].data, pages))
    return runs


__all__ = ["plan_merge", "merge_runs"]
