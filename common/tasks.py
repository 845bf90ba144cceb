"""Small thread pool helpers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Hashable, Iterable, TypeVar


K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


def map_ordered(func: Callable[[K], T], keys: Iterable[K], *, max_workers: int = 4) -> Dict[K, T]:
    """Run ``func`` for every key on at most ``max_workers`` threads.

    The returned mapping follows the order of ``keys`` no matter which call
    finishes first. The first exception raised by ``func`` propagates.
    """

    ordered = list(dict.fromkeys(keys))
    if not ordered:
        return {}
    results: Dict[K, T] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(ordered)))) as executor:
        futures = {executor.submit(func, key): key for key in ordered}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return {key: results[key] for key in ordered}


__all__ = ["map_ordered"]
