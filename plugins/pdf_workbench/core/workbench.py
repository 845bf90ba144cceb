"""Interactive merge/split session wiring planners to the PDF backend.

The workbench owns the transient state of one user session: the merge queue
or the document being split, its edit session and the last user-facing
message. Planner and backend failures are recovered here and surfaced as a
single message; the session stays usable afterwards.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from common.logging import get_logger
from common.tasks import map_ordered

from .documents import extract_and_assemble, is_pdf_upload, probe_page_count, render_thumbnail
from .limits import (
    MIN_MERGE_SOURCES,
    AssemblyError,
    DecodeError,
    InputRejectedError,
    LimitExceededError,
    WorkbenchError,
)
from .merge_plan import merge_runs
from .models import SourceDocument, Upload
from .naming import merge_filename, part_filename
from .session import MergeQueue, SplitSession
from .settings import WorkbenchSettings

logger = get_logger()

MODES = ("merge", "split")

Deliver = Callable[[bytes, str], None]


@dataclass
class ExportReport:
    """Outcome of a merge or split export."""

    filenames: List[str] = field(default_factory=list)
    total: int = 0
    error: Optional[WorkbenchError] = None

    @property
    def complete(self) -> bool:
        return self.error is None and len(self.filenames) == self.total

    @property
    def message(self) -> Optional[str]:
        if self.error is None:
            return None
        if self.filenames:
            return (
                f"{self.error} Only {len(self.filenames)} of {self.total} files were saved."
            )
        return str(self.error)


class CollectingSink:
    """Delivery target that keeps artifacts in memory, in delivery order."""

    def __init__(self) -> None:
        self.artifacts: List[tuple[str, bytes]] = []

    def __call__(self, data: bytes, filename: str) -> None:
        self.artifacts.append((filename, data))


class Workbench:
    def __init__(
        self,
        settings: WorkbenchSettings | None = None,
        *,
        deliver: Deliver | None = None,
        probe: Callable[[bytes], int] = probe_page_count,
        render: Callable[[bytes, int, float], bytes] = render_thumbnail,
        assemble: Callable[[Sequence], bytes] = extract_and_assemble,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or WorkbenchSettings()
        self.deliver = deliver or CollectingSink()
        self._probe = probe
        self._render = render
        self._assemble = assemble
        self._sleep = sleep
        self._clock = clock
        self.mode = "merge"
        self.error: Optional[WorkbenchError] = None
        self._notice: Optional[str] = None
        self.reset()

    # -- state -----------------------------------------------------------

    def reset(self) -> None:
        self.queue = MergeQueue(max_sources=self.settings.max_sources)
        self.document: Optional[SourceDocument] = None
        self.session: Optional[SplitSession] = None
        self._report(None)

    def switch_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown mode {mode!r}")
        self.mode = mode
        self.reset()

    @property
    def message(self) -> Optional[str]:
        if self._notice is not None:
            return self._notice
        return str(self.error) if self.error is not None else None

    def _report(self, error: Optional[WorkbenchError], notice: Optional[str] = None) -> None:
        self.error = error
        self._notice = notice
        if error is not None:
            logger.info("workbench reported %s: %s", error.code, notice or error)

    # -- ingestion -------------------------------------------------------

    def add_files(self, uploads: Iterable[Upload]) -> List[SourceDocument]:
        """Probe and accept PDF uploads for the current mode.

        Returns the documents that were accepted. Rejections are reported via
        :attr:`message` without touching the existing state.
        """

        self._report(None)
        candidates = [item for item in uploads if is_pdf_upload(item.name, item.content_type)]
        if not candidates:
            self._report(InputRejectedError("Only PDF files are accepted"))
            return []

        if self.mode == "split":
            slots = 1
        else:
            slots = self.queue.available_slots
            if not slots:
                self._report(LimitExceededError(f"Maximum {self.settings.max_sources} files allowed"))
                return []
        selected = candidates[:slots]
        problems: List[WorkbenchError] = []
        if len(candidates) > slots and self.mode == "split":
            problems.append(LimitExceededError("Only one PDF can be split at a time"))
        elif len(candidates) > slots:
            plural = "" if slots == 1 else "s"
            problems.append(LimitExceededError(f"Only {slots} more file{plural} can be added"))

        accepted: List[SourceDocument] = []
        for upload in selected:
            try:
                page_count = self._probe(upload.data)
            except DecodeError as exc:
                logger.info("rejected %s: %s", upload.name, exc)
                problems.append(DecodeError(f"{upload.name}: {exc}"))
                continue
            accepted.append(
                SourceDocument(
                    token=uuid.uuid4().hex,
                    name=upload.name,
                    page_count=page_count,
                    data=upload.data,
                )
            )

        if self.mode == "split":
            if accepted:
                self.document = accepted[0]
                self.session = SplitSession.start(
                    accepted[0].page_count, max_cut_points=self.settings.max_cut_points
                )
        else:
            for document in accepted:
                self.queue = self.queue.add(document)

        if problems:
            notice = " ".join(str(problem) for problem in problems) if len(problems) > 1 else None
            self._report(problems[0], notice)
        logger.info("accepted %d of %d uploads (%s mode)", len(accepted), len(candidates), self.mode)
        return accepted

    def remove_source(self, token: str) -> bool:
        self._report(None)
        try:
            self.queue = self.queue.remove(token)
        except WorkbenchError as exc:
            self._report(exc)
            return False
        return True

    def move_source(self, token: str, index: int) -> bool:
        self._report(None)
        try:
            self.queue = self.queue.move(token, index)
        except WorkbenchError as exc:
            self._report(exc)
            return False
        return True

    def remove_document(self) -> None:
        self.document = None
        self.session = None
        self._report(None)

    # -- editing ---------------------------------------------------------

    def _edit(self, change: Callable[[SplitSession], SplitSession]) -> bool:
        self._report(None)
        if self.session is None:
            self._report(InputRejectedError("Load a PDF before editing pages"))
            return False
        try:
            self.session = change(self.session)
        except WorkbenchError as exc:
            self._report(exc)
            return False
        return True

    def load_edits(
        self,
        cut_points: Iterable[int] = (),
        deleted_pages: Iterable[int] = (),
        rotations: Mapping[int, int] | None = None,
    ) -> bool:
        """Replace the edit session with one rebuilt from a batch of edits."""

        return self._edit(
            lambda session: SplitSession.from_edits(
                session.page_count,
                cut_points,
                deleted_pages,
                rotations,
                max_cut_points=session.max_cut_points,
            )
        )

    def toggle_cut(self, page: int) -> bool:
        return self._edit(lambda session: session.toggle_cut(page))

    def toggle_delete(self, page: int) -> bool:
        return self._edit(lambda session: session.toggle_delete(page))

    def rotate(self, page: int, degrees: int = 90) -> bool:
        return self._edit(lambda session: session.rotate(page, degrees))

    # -- previews --------------------------------------------------------

    def previews(self, scale: float | None = None, pages: Iterable[int] | None = None) -> Dict[int, bytes]:
        """Render thumbnails for the split document, keyed by page in page order."""

        self._report(None)
        if self.document is None:
            return {}
        document = self.document
        scale = self.settings.preview_scale if scale is None else scale
        wanted = sorted(set(pages)) if pages is not None else range(1, document.page_count + 1)
        try:
            return map_ordered(
                lambda page: self._render(document.data, page, scale),
                wanted,
                max_workers=self.settings.preview_workers,
            )
        except WorkbenchError as exc:
            self._report(exc)
            return {}

    # -- exports ---------------------------------------------------------

    def _deliver(self, data: bytes, filename: str) -> None:
        try:
            self.deliver(data, filename)
        except OSError as exc:
            raise AssemblyError(f"Failed to save {filename}.") from exc

    def merge(self) -> Optional[ExportReport]:
        """Merge the queued sources into one PDF; a no-op with fewer than two."""

        self._report(None)
        sources = self.queue.sources
        if len(sources) < MIN_MERGE_SOURCES:
            return None
        report = ExportReport(total=1)
        try:
            entries = self.queue.plan()
            data = self._assemble(merge_runs(sources, entries))
            filename = merge_filename(self._clock())
            self._deliver(data, filename)
        except WorkbenchError as exc:
            logger.warning("merge of %d files failed: %s", len(sources), exc)
            report.error = exc
            self._report(exc, report.message)
            return report
        report.filenames.append(filename)
        logger.info("merged %d files (%d pages) into %s", len(sources), len(entries), filename)
        self.queue = MergeQueue(max_sources=self.settings.max_sources)
        return report

    def export(self) -> Optional[ExportReport]:
        """Assemble and deliver every planned part, one after another."""

        self._report(None)
        if self.document is None or self.session is None:
            self._report(InputRejectedError("Load a PDF before exporting"))
            return None
        document = self.document
        report = ExportReport()
        try:
            parts = self.session.plan()
        except WorkbenchError as exc:
            report.error = exc
            self._report(exc)
            return report

        report.total = len(parts)
        for part in parts:
            if part.index > 1:
                # Back-to-back deliveries can be dropped by the receiving side.
                self._sleep(self.settings.pacing_seconds)
            filename = part_filename(document.name, part.index, report.total)
            try:
                data = self._assemble([(document.data, part.pages)])
                self._deliver(data, filename)
            except WorkbenchError as exc:
                logger.warning("export of %s stopped at part %d: %s", document.name, part.index, exc)
                report.error = exc
                self._report(exc, report.message)
                return report
            report.filenames.append(filename)

        logger.info("exported %s as %d file(s)", document.name, report.total)
        self.document = None
        self.session = None
        return report


__all__ = ["MODES", "ExportReport", "CollectingSink", "Workbench"]
