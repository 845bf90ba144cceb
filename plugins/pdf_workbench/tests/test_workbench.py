import time

import pytest

from plugins.pdf_workbench.core import (
    AssemblyError,
    CollectingSink,
    DecodeError,
    InputRejectedError,
    InvalidPageError,
    LimitExceededError,
    Upload,
    Workbench,
    WorkbenchSettings,
)
from plugins.pdf_workbench.core.naming import base_name, part_filename


def _pdf_upload(make_pdf, name: str, pages: int) -> Upload:
    return Upload(name=name, data=make_pdf(pages), content_type="application/pdf")


def _workbench(**kwargs) -> tuple[Workbench, CollectingSink, list[float]]:
    sink = CollectingSink()
    sleeps: list[float] = []
    settings = kwargs.pop("settings", WorkbenchSettings(download_pacing_ms=250))
    workbench = Workbench(
        settings,
        deliver=sink,
        sleep=sleeps.append,
        clock=lambda: 1700000000.5,
        **kwargs,
    )
    return workbench, sink, sleeps


def test_non_pdf_uploads_are_rejected_without_touching_state(make_pdf):
    workbench, _, _ = _workbench()
    workbench.add_files([_pdf_upload(make_pdf, "a.pdf", 1)])
    accepted = workbench.add_files([Upload(name="notes.txt", data=b"hello", content_type="text/plain")])
    assert accepted == []
    assert isinstance(workbench.error, InputRejectedError)
    assert workbench.message == "Only PDF files are accepted"
    assert [source.name for source in workbench.queue.sources] == ["a.pdf"]


def test_extension_is_enough_when_type_is_missing(make_pdf):
    workbench, _, _ = _workbench()
    accepted = workbench.add_files([Upload(name="scan.PDF", data=make_pdf(2))])
    assert [doc.page_count for doc in accepted] == [2]
    assert workbench.error is None


def test_only_available_slots_are_filled(make_pdf):
    workbench, _, _ = _workbench()
    workbench.add_files([_pdf_upload(make_pdf, f"{index}.pdf", 1) for index in range(4)])
    accepted = workbench.add_files([_pdf_upload(make_pdf, f"x{index}.pdf", 1) for index in range(3)])
    assert [doc.name for doc in accepted] == ["x0.pdf"]
    assert len(workbench.queue.sources) == 5
    assert isinstance(workbench.error, LimitExceededError)
    assert workbench.message == "Only 1 more file can be added"

    workbench.add_files([_pdf_upload(make_pdf, "late.pdf", 1)])
    assert workbench.message == "Maximum 5 files allowed"


def test_undecodable_files_are_excluded(make_pdf):
    workbench, _, _ = _workbench()
    accepted = workbench.add_files(
        [
            Upload(name="broken.pdf", data=b"nope", content_type="application/pdf"),
            _pdf_upload(make_pdf, "good.pdf", 2),
        ]
    )
    assert [doc.name for doc in accepted] == ["good.pdf"]
    assert isinstance(workbench.error, DecodeError)
    assert workbench.message.startswith("broken.pdf:")


def test_next_action_replaces_previous_message(make_pdf):
    workbench, _, _ = _workbench()
    workbench.add_files([Upload(name="notes.txt", data=b"x")])
    assert workbench.message
    workbench.add_files([_pdf_upload(make_pdf, "a.pdf", 1)])
    assert workbench.message is None


def test_merge_with_one_source_is_a_no_op(make_pdf):
    workbench, sink, _ = _workbench()
    workbench.add_files([_pdf_upload(make_pdf, "a.pdf", 2)])
    assert workbench.merge() is None
    assert sink.artifacts == []
    assert len(workbench.queue.sources) == 1


def test_merge_follows_queue_order(make_pdf, widths):
    workbench, sink, sleeps = _workbench()
    workbench.add_files([_pdf_upload(make_pdf, "a.pdf", 3), _pdf_upload(make_pdf, "b.pdf", 1)])
    token_b = workbench.queue.sources[1].token
    assert workbench.move_source(token_b, 0)

    report = workbench.merge()
    assert report.complete
    assert report.filenames == ["merged-1700000000500.pdf"]
    filename, data = sink.artifacts[0]
    assert filename == "merged-1700000000500.pdf"
    assert widths(data) == [101, 101, 102, 103]
    assert sleeps == []
    assert workbench.queue.sources == ()


def test_merge_failure_is_reported_and_queue_kept(make_pdf):
    def _broken(_runs):
        raise AssemblyError("Failed to build PDF.")

    workbench, sink, _ = _workbench(assemble=_broken)
    workbench.add_files([_pdf_upload(make_pdf, "a.pdf", 1), _pdf_upload(make_pdf, "b.pdf", 1)])
    report = workbench.merge()
    assert not report.complete
    assert workbench.message == "Failed to build PDF."
    assert sink.artifacts == []
    assert len(workbench.queue.sources) == 2


def test_remove_unknown_source_reports_error(make_pdf):
    workbench, _, _ = _workbench()
    assert not workbench.remove_source("missing")
    assert workbench.error is not None


def test_split_exports_parts_in_order_with_pacing(make_pdf, widths, rotations):
    workbench, sink, sleeps = _workbench()
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "Quarterly Report.pdf", 5)])
    assert workbench.toggle_cut(2)
    assert workbench.toggle_cut(3)
    assert workbench.toggle_delete(3)
    assert workbench.rotate(4)

    report = workbench.export()
    assert report.complete
    assert report.filenames == ["Quarterly Report-part1.pdf", "Quarterly Report-part2.pdf"]
    assert [name for name, _ in sink.artifacts] == report.filenames
    assert widths(sink.artifacts[0][1]) == [101, 102]
    assert widths(sink.artifacts[1][1]) == [104, 105]
    assert rotations(sink.artifacts[1][1]) == [90, 0]
    assert sleeps == [0.25]
    assert workbench.session is None
    assert workbench.document is None


def test_split_without_cuts_is_a_trim(make_pdf, widths):
    workbench, sink, sleeps = _workbench()
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "scan.pdf", 3)])
    workbench.toggle_delete(2)

    report = workbench.export()
    assert report.filenames == ["scan-trimmed.pdf"]
    assert widths(sink.artifacts[0][1]) == [101, 103]
    assert sleeps == []


def test_each_delivery_waits_for_the_previous_one(make_pdf):
    events: list[str] = []

    def _assemble(runs):
        events.append("assemble")
        return b"%PDF-fake"

    def _deliver(data, filename):
        events.append(f"deliver:{filename}")

    workbench = Workbench(
        WorkbenchSettings(download_pacing_ms=10),
        deliver=_deliver,
        assemble=_assemble,
        sleep=lambda seconds: events.append(f"sleep:{seconds}"),
    )
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "doc.pdf", 3)])
    workbench.toggle_cut(1)
    workbench.toggle_cut(2)
    workbench.export()
    assert events == [
        "assemble",
        "deliver:doc-part1.pdf",
        "sleep:0.01",
        "assemble",
        "deliver:doc-part2.pdf",
        "sleep:0.01",
        "assemble",
        "deliver:doc-part3.pdf",
    ]


def test_partial_export_failure_keeps_delivered_parts(make_pdf):
    calls = {"count": 0}

    def _flaky(runs):
        calls["count"] += 1
        if calls["count"] == 2:
            raise AssemblyError("Failed to build PDF.")
        return b"%PDF-fake"

    workbench, sink, _ = _workbench(assemble=_flaky)
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "doc.pdf", 3)])
    workbench.toggle_cut(1)
    workbench.toggle_cut(2)

    report = workbench.export()
    assert not report.complete
    assert report.filenames == ["doc-part1.pdf"]
    assert report.total == 3
    assert workbench.message == "Failed to build PDF. Only 1 of 3 files were saved."
    assert [name for name, _ in sink.artifacts] == ["doc-part1.pdf"]
    # The session survives so the user can retry.
    assert workbench.session is not None


def test_failed_edit_keeps_previous_session(make_pdf):
    workbench, _, _ = _workbench()
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "doc.pdf", 2)])
    assert workbench.toggle_delete(1)
    before = workbench.session
    assert not workbench.toggle_delete(2)
    assert workbench.session is before
    assert isinstance(workbench.error, LimitExceededError)


def test_editing_without_document_is_rejected():
    workbench, _, _ = _workbench()
    workbench.switch_mode("split")
    assert not workbench.toggle_cut(1)
    assert isinstance(workbench.error, InputRejectedError)
    assert workbench.export() is None


def test_loading_a_new_document_starts_a_fresh_session(make_pdf):
    workbench, _, _ = _workbench()
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "one.pdf", 4)])
    workbench.toggle_cut(1)
    workbench.add_files([_pdf_upload(make_pdf, "two.pdf", 2)])
    assert workbench.document.name == "two.pdf"
    assert workbench.session.cut_points == frozenset()


def test_switching_mode_discards_state(make_pdf):
    workbench, _, _ = _workbench()
    workbench.add_files([_pdf_upload(make_pdf, "a.pdf", 1)])
    workbench.switch_mode("split")
    assert workbench.queue.sources == ()
    with pytest.raises(ValueError):
        workbench.switch_mode("collage")


def test_previews_are_ordered_by_page(make_pdf):
    def _slow_render(data, page, scale):
        time.sleep(0.02 * (4 - page))
        return f"{page}@{scale}".encode()

    workbench, _, _ = _workbench(render=_slow_render)
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "doc.pdf", 3)])
    previews = workbench.previews(scale=0.5)
    assert list(previews) == [1, 2, 3]
    assert previews[3] == b"3@0.5"
    assert list(workbench.previews(pages=[3, 1])) == [1, 3]


def test_preview_of_unknown_page_is_reported(make_pdf):
    workbench, _, _ = _workbench()
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "doc.pdf", 2)])
    assert workbench.previews(pages=[99]) == {}
    assert isinstance(workbench.error, InvalidPageError)
    assert workbench.message == "Page 99 is outside 1-2"
    # The document stays loaded and the next preview clears the message.
    assert list(workbench.previews(pages=[2])) == [2]
    assert workbench.error is None


def test_failing_delivery_target_is_reported_with_partial_progress(make_pdf):
    delivered: list[str] = []

    def _deliver(data, filename):
        if delivered:
            raise OSError("disk full")
        delivered.append(filename)

    workbench = Workbench(
        WorkbenchSettings(download_pacing_ms=0),
        deliver=_deliver,
        assemble=lambda runs: b"%PDF-fake",
        sleep=lambda seconds: None,
    )
    workbench.switch_mode("split")
    workbench.add_files([_pdf_upload(make_pdf, "doc.pdf", 3)])
    workbench.toggle_cut(1)

    report = workbench.export()
    assert isinstance(report.error, AssemblyError)
    assert report.filenames == ["doc-part1.pdf"]
    assert workbench.message == "Failed to save doc-part2.pdf. Only 1 of 2 files were saved."
    assert workbench.session is not None


def test_failing_delivery_keeps_merge_queue(make_pdf):
    def _deliver(data, filename):
        raise OSError("read-only file system")

    workbench = Workbench(deliver=_deliver, clock=lambda: 1.0)
    workbench.add_files([_pdf_upload(make_pdf, "a.pdf", 1), _pdf_upload(make_pdf, "b.pdf", 1)])
    report = workbench.merge()
    assert isinstance(report.error, AssemblyError)
    assert workbench.message == "Failed to save merged-1000.pdf."
    assert len(workbench.queue.sources) == 2


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Quarterly Report.pdf", "Quarterly Report"),
        ("C:\\scans\\Invoice (1).PDF", "Invoice (1)"),
        ("../../etc/notes.pdf", "notes"),
        ("bad\x00\nname.pdf", "badname"),
        ("archive.tar.pdf", "archive.tar"),
        ("", "document"),
        ("/tmp/", "document"),
    ],
)
def test_base_name_keeps_the_uploaded_name(name, expected):
    assert base_name(name) == expected


def test_part_filenames_follow_the_uploaded_name():
    assert part_filename("Quarterly Report.pdf", 1, 1) == "Quarterly Report-trimmed.pdf"
    assert part_filename("Quarterly Report.pdf", 2, 3) == "Quarterly Report-part2.pdf"
