"""Configuration helpers for the PDF workbench."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .limits import MAX_CUT_POINTS, MAX_SESSION_PAGES, MAX_SOURCES


@dataclass(frozen=True)
class WorkbenchSettings:
    max_sources: int = MAX_SOURCES
    max_cut_points: int = MAX_CUT_POINTS
    max_session_pages: int = MAX_SESSION_PAGES
    download_pacing_ms: int = 400
    preview_workers: int = 4
    preview_scale: float = 0.3
    upload: Mapping[str, Any] | None = None

    @property
    def pacing_seconds(self) -> float:
        return self.download_pacing_ms / 1000.0


def _as_int(value: Any, default: int, *, minimum: int) -> int:
    try:
        result = int(float(value))
    except (TypeError, ValueError):
        return default
    return max(result, minimum)


def _as_float(value: Any, default: float, *, minimum: float, maximum: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(result, minimum), maximum)


def load_settings(raw: Mapping[str, Any] | None) -> WorkbenchSettings:
    """Build settings from the ``plugins.pdf_workbench`` section of ``config.yml``.

    Malformed values fall back to defaults instead of failing at request time.
    """

    raw = raw or {}
    upload = raw.get("upload")
    return WorkbenchSettings(
        max_sources=_as_int(raw.get("max_sources"), MAX_SOURCES, minimum=2),
        max_cut_points=_as_int(raw.get("max_cut_points"), MAX_CUT_POINTS, minimum=1),
        max_session_pages=_as_int(
            raw.get("max_session_pages"), MAX_SESSION_PAGES, minimum=1
        ),
        download_pacing_ms=_as_int(raw.get("download_pacing_ms"), 400, minimum=0),
        preview_workers=_as_int(raw.get("preview_workers"), 4, minimum=1),
        preview_scale=_as_float(raw.get("preview_scale"), 0.3, minimum=0.05, maximum=4.0),
        upload=upload if isinstance(upload, Mapping) else None,
    )


__all__ = ["WorkbenchSettings", "load_settings"]
