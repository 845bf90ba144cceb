from __future__ import annotations

from .documents import (
    PDF_MIME,
    extract_and_assemble,
    is_pdf_upload,
    probe_page_count,
    render_thumbnail,
)
from .limits import (
    MAX_CUT_POINTS,
    MAX_SESSION_PAGES,
    MAX_SOURCES,
    MIN_MERGE_SOURCES,
    AllPagesDeletedError,
    AssemblyError,
    DecodeError,
    InputRejectedError,
    InvalidCutPointError,
    InvalidPageError,
    LimitExceededError,
    WorkbenchError,
)
from .merge_plan import merge_runs, plan_merge
from .models import MergeEntry, OutputPart, PlannedPage, SourceDocument, Upload
from .naming import merge_filename, part_filename
from .partition import plan_partition
from .session import ACTIONS, MergeQueue, SplitSession, apply_action
from .settings import WorkbenchSettings, load_settings
from .workbench import CollectingSink, ExportReport, Workbench

__all__ = [
    "PDF_MIME",
    "extract_and_assemble",
    "is_pdf_upload",
    "probe_page_count",
    "render_thumbnail",
    "MAX_CUT_POINTS",
    "MAX_SESSION_PAGES",
    "MAX_SOURCES",
    "MIN_MERGE_SOURCES",
    "AllPagesDeletedError",
    "AssemblyError",
    "DecodeError",
    "InputRejectedError",
    "InvalidCutPointError",
    "InvalidPageError",
    "LimitExceededError",
    "WorkbenchError",
    "merge_runs",
    "plan_merge",
    "MergeEntry",
    "OutputPart",
    "PlannedPage",
    "SourceDocument",
    "Upload",
    "merge_filename",
    "part_filename",
    "plan_partition",
    "ACTIONS",
    "MergeQueue",
    "SplitSession",
    "apply_action",
    "WorkbenchSettings",
    "load_settings",
    "CollectingSink",
    "ExportReport",
    "Workbench",
]
