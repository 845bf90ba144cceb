"""PDF workbench API blueprint with standardized responses."""

from __future__ import annotations

import base64
import json
from typing import Literal

from flask import Blueprint, Response, current_app, request, send_file
from pydantic import Field
from werkzeug.datastructures import FileStorage

from common.errors import InternalAppError, ValidationAppError
from common.forms import get_bool, get_float, get_int_list
from common.imaging import png_base64
from common.io import buffer_from_bytes, zip_buffer
from common.responses import fail, ok
from common.validation import (
    FileLimit,
    SchemaModel,
    ValidationError,
    enforce_limits,
    parse_model,
    validate_mime,
)

from ..core import (
    ACTIONS,
    MIN_MERGE_SOURCES,
    PDF_MIME,
    AssemblyError,
    CollectingSink,
    LimitExceededError,
    SplitSession,
    Upload,
    Workbench,
    WorkbenchError,
    WorkbenchSettings,
    apply_action,
    load_settings,
    probe_page_count,
)
from ..core.naming import base_name


class SessionState(SchemaModel):
    page_count: int = Field(ge=1)
    cut_points: list[int] = Field(default_factory=list)
    deleted_pages: list[int] = Field(default_factory=list)
    rotations: dict[int, int] = Field(default_factory=dict)


class SessionAction(SchemaModel):
    kind: Literal["toggle_cut", "toggle_delete", "rotate"]
    page: int
    degrees: int = 90


class SessionPayload(SchemaModel):
    state: SessionState
    action: SessionAction | None = None


class SplitEdits(SchemaModel):
    cut_points: list[int] = Field(default_factory=list)
    deleted_pages: list[int] = Field(default_factory=list)
    rotations: dict[int, int] = Field(default_factory=dict)


api_bp = Blueprint("pdf_workbench_api", __name__, url_prefix="/api/pdf_workbench")


def _settings() -> WorkbenchSettings:
    raw = current_app.config.get("PLUGIN_SETTINGS", {}).get("pdf_workbench", {})
    return load_settings(raw)


def _merge_limit(settings: WorkbenchSettings) -> FileLimit:
    limit = FileLimit.from_settings(
        settings.upload, default_max_files=settings.max_sources, default_max_mb=20
    )
    return FileLimit(max_files=min(limit.max_files, settings.max_sources), max_size=limit.max_size)


def _single_limit(settings: WorkbenchSettings) -> FileLimit:
    return FileLimit(max_files=1, max_size=_merge_limit(settings).max_size)


def _invalid_upload(exc: ValidationError) -> Response:
    return fail(
        ValidationAppError(
            message=str(exc),
            code="pdf.invalid_upload",
            details=getattr(exc, "details", None),
        )
    )


def _workbench_failure(
    error: WorkbenchError, message: str | None = None, *, details: dict | None = None
) -> Response:
    if isinstance(error, AssemblyError):
        return fail(InternalAppError(message=message or str(error), code=error.code, details=details))
    return fail(ValidationAppError(message=message or str(error), code=error.code, details=details))


def _to_upload(file: FileStorage) -> Upload:
    return Upload(
        name=file.filename or "document.pdf",
        data=file.read(),
        content_type=file.mimetype or None,
    )


def _new_workbench(settings: WorkbenchSettings, mode: str) -> tuple[Workbench, CollectingSink]:
    sink = CollectingSink()
    workbench = Workbench(settings, deliver=sink)
    workbench.switch_mode(mode)
    return workbench, sink


def _plan_payload(session: SplitSession) -> dict:
    return {
        "state": session.to_dict(),
        "surviving_pages": session.surviving_pages,
        "inert_cut_points": session.inert_cut_points,
        "parts": [part.to_dict() for part in session.plan()],
    }


@api_bp.get("/limits")
def limits() -> Response:
    settings = _settings()
    return ok(
        {
            "max_sources": settings.max_sources,
            "min_merge_sources": MIN_MERGE_SOURCES,
            "max_cut_points": settings.max_cut_points,
            "max_session_pages": settings.max_session_pages,
            "download_pacing_ms": settings.download_pacing_ms,
            "actions": list(ACTIONS),
        }
    )


@api_bp.post("/metadata")
def metadata() -> Response:
    file = request.files.get("file")
    if not file:
        return fail(ValidationAppError(message="No file provided", code="pdf.file_missing"))

    try:
        enforce_limits([file], _single_limit(_settings()))
        validate_mime([file], {PDF_MIME})
    except ValidationError as exc:
        return _invalid_upload(exc)

    data = file.read()
    try:
        pages = probe_page_count(data)
    except WorkbenchError as exc:
        return _workbench_failure(exc)
    return ok({"pages": pages, "size_bytes": len(data)})


@api_bp.post("/thumbnails")
def thumbnails() -> Response:
    settings = _settings()
    file = request.files.get("file")
    if not file:
        return fail(ValidationAppError(message="No file provided", code="pdf.file_missing"))

    try:
        enforce_limits([file], _single_limit(settings))
        validate_mime([file], {PDF_MIME})
        scale = get_float(
            request.form, "scale", settings.preview_scale, minimum=0.05, maximum=4.0
        )
        pages = get_int_list(request.form, "pages")
    except ValidationError as exc:
        return _invalid_upload(exc)

    workbench, _ = _new_workbench(settings, "split")
    workbench.add_files([_to_upload(file)])
    if workbench.error is not None:
        return _workbench_failure(workbench.error, workbench.message)
    rendered = workbench.previews(scale=scale, pages=pages)
    if workbench.error is not None:
        return _workbench_failure(workbench.error)

    payload = {
        "page_count": workbench.document.page_count,
        "scale": scale,
        "thumbnails": [
            {"page": page, "png_base64": png_base64(image)} for page, image in rendered.items()
        ],
    }
    return ok(payload)


@api_bp.post("/merge")
def merge() -> Response:
    settings = _settings()
    files = request.files.getlist("files")
    try:
        enforce_limits(files, _merge_limit(settings))
    except ValidationError as exc:
        return _invalid_upload(exc)

    workbench, sink = _new_workbench(settings, "merge")
    workbench.add_files([_to_upload(file) for file in files])
    if workbench.error is not None:
        return _workbench_failure(workbench.error, workbench.message)
    if len(workbench.queue.sources) < MIN_MERGE_SOURCES:
        return fail(
            ValidationAppError(
                message=f"At least {MIN_MERGE_SOURCES} PDF files are required to merge",
                code="pdf.not_enough_files",
            )
        )

    names = [source.name for source in workbench.queue.sources]
    total_pages = workbench.queue.total_pages
    report = workbench.merge()
    if report.error is not None:
        return _workbench_failure(report.error, report.message)

    filename, merged = sink.artifacts[0]
    if get_bool(request.args, "download"):
        return send_file(
            buffer_from_bytes(merged),
            mimetype=PDF_MIME,
            as_attachment=True,
            download_name=filename,
            max_age=0,
        )
    payload = {
        "filename": filename,
        "pdf_base64": base64.b64encode(merged).decode("ascii"),
        "sources": names,
        "total_files": len(names),
        "total_pages": total_pages,
    }
    return ok(payload)


@api_bp.post("/session")
def session() -> Response:
    settings = _settings()
    try:
        payload = parse_model(SessionPayload, request.get_json(silent=True))
    except ValidationError as exc:
        return fail(
            ValidationAppError(
                message=str(exc),
                code="pdf.invalid_session",
                details={"errors": getattr(exc, "details", None)},
            )
        )

    state = payload.state
    try:
        if state.page_count > settings.max_session_pages:
            raise LimitExceededError(
                f"Sessions are limited to {settings.max_session_pages} pages"
            )
        current = SplitSession.from_edits(
            state.page_count,
            state.cut_points,
            state.deleted_pages,
            state.rotations,
            max_cut_points=settings.max_cut_points,
        )
        if payload.action is not None:
            action = payload.action
            current = apply_action(current, action.kind, action.page, action.degrees)
        return ok(_plan_payload(current))
    except WorkbenchError as exc:
        return _workbench_failure(exc)


def _load_edits() -> SplitEdits:
    raw = request.form.get("edits")
    if not raw:
        return SplitEdits()
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError("Invalid edits format", details={"error": str(exc)}) from exc
    if not isinstance(decoded, dict):
        raise ValidationError("Edits must be an object")
    return parse_model(SplitEdits, decoded)


@api_bp.post("/split")
def split() -> Response:
    settings = _settings()
    file = request.files.get("file")
    if not file:
        return fail(ValidationAppError(message="No file provided", code="pdf.file_missing"))
    try:
        enforce_limits([file], _single_limit(settings))
    except ValidationError as exc:
        return _invalid_upload(exc)
    try:
        edits = _load_edits()
    except ValidationError as exc:
        return fail(
            ValidationAppError(
                message=str(exc),
                code="pdf.invalid_edits",
                details={"errors": getattr(exc, "details", None)},
            )
        )

    workbench, sink = _new_workbench(settings, "split")
    workbench.add_files([_to_upload(file)])
    if workbench.error is not None:
        return _workbench_failure(workbench.error, workbench.message)
    if not workbench.load_edits(edits.cut_points, edits.deleted_pages, edits.rotations):
        return _workbench_failure(workbench.error, workbench.message)

    document = workbench.document
    planned = workbench.session.plan()
    report = workbench.export()
    if report.error is not None:
        return _workbench_failure(
            report.error, report.message, details={"delivered": list(report.filenames)}
        )

    if get_bool(request.args, "download"):
        if len(sink.artifacts) == 1:
            filename, data = sink.artifacts[0]
            return send_file(
                buffer_from_bytes(data),
                mimetype=PDF_MIME,
                as_attachment=True,
                download_name=filename,
                max_age=0,
            )
        return send_file(
            zip_buffer(sink.artifacts),
            mimetype="application/zip",
            as_attachment=True,
            download_name=f"{base_name(document.name)}-split.zip",
            max_age=0,
        )

    files_payload = [
        {
            "name": filename,
            "pdf_base64": base64.b64encode(data).decode("ascii"),
            "pages": part.ordinals,
        }
        for (filename, data), part in zip(sink.artifacts, planned, strict=True)
    ]
    payload = {"files": files_payload, "page_count": document.page_count, "parts": len(files_payload)}
    return ok(payload)


blueprints = [api_bp]


__all__ = ["blueprints", "limits", "metadata", "thumbnails", "merge", "session", "split"]
