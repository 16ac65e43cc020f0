"""FastAPI application exposing transcript editing and pagination.

WHY: The review UI edits speaker attribution interactively and the export
back-ends (PDF, Word) need the finished page model. Both talk HTTP, so
the core engine is exposed as a small JSON API with OpenAPI docs.

HOW: One FastAPI app with endpoints grouped by tags:
  documents: stateless render, utterances + operations → document
  sessions: an EditStore kept between requests, edited in batches,
            rendered, and exported through the formatter registry
  formats / health: discovery and liveness
Sessions live in a module-level SessionStore; a lifespan task removes
idle sessions periodically.

RULES:
- Error responses use the ErrorResponse schema
- PreconditionError (bad offsets, unknown op, invalid records) → 422
- Unknown session → 404; unknown utterance in the URL path → 404
- Full session store → 429
- Every request renders from its own snapshot of the session
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response

from transcript_editor import __version__, config
from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.errors import PreconditionError, UnknownUtteranceError
from transcript_editor.core.flatten import find_active_segment, flatten
from transcript_editor.core.ir import TranscriptMetadata
from transcript_editor.core.operations import apply_operations, parse_operations
from transcript_editor.core.pagination import render_document
from transcript_editor.core.search import search_transcript
from transcript_editor.core.speakers import list_speakers
from transcript_editor.core.statistics import transcript_statistics
from transcript_editor.core.transcript import load_label_map, load_utterances
from transcript_editor.formatters import FORMATTERS
from transcript_editor.formatters.json_document import document_payload
from transcript_editor.server.models import (
    CreateSessionRequest,
    DocumentRequest,
    DocumentResponse,
    EditSummaryModel,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    MetadataModel,
    OperationsRequest,
    OperationsResponse,
    RenderedSegmentModel,
    RenderedSegmentsResponse,
    RevertResponse,
    SearchResponse,
    SegmentsResponse,
    SessionResponse,
    SpeakerLabelsRequest,
    SpeakerModel,
    SpeakersResponse,
    StatisticsResponse,
    TextSegmentModel,
)
from transcript_editor.server.sessions import Session, SessionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore(
    ttl_seconds=config.SESSION_TTL_SECONDS,
    max_sessions=config.MAX_SESSIONS,
)


async def _periodic_cleanup() -> None:
    """Drop idle sessions every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Transcript Editor API",
    description=(
        "Speaker-attribution editing and court-style pagination for "
        "diarized transcripts. Split and reassign utterance text, delete "
        "or restore segments, and render a page- and line-numbered "
        "document shared by every export format."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Session not found"}}
_INVALID = {422: {"model": ErrorResponse, "description": "Invalid records or edit preconditions"}}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unprocessable(exc: Exception) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


def _session_not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail="Session not found: {}".format(session_id))


def _snapshot(session_id: str) -> Session:
    session = session_store.snapshot(session_id)
    if session is None:
        raise _session_not_found(session_id)
    return session


def _summary(store: EditStore) -> EditSummaryModel:
    return EditSummaryModel.model_validate(store.summary().to_dict())


def _metadata(model: Optional[MetadataModel]) -> TranscriptMetadata:
    return model.to_metadata() if model is not None else TranscriptMetadata()


def _document_response(
    store: EditStore,
    label_map: dict,
    metadata: TranscriptMetadata,
) -> DocumentResponse:
    document = render_document(store, config.load_pagination_config(), label_map)
    payload = document_payload(document, metadata)
    payload["summary"] = store.summary().to_dict()
    return DocumentResponse.model_validate(payload)


def _session_to_response(session: Session) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        created_at=session.created_at,
        updated_at=session.updated_at,
        utterance_count=len(session.store.utterances),
        speaker_labels=session.label_map,
        metadata=MetadataModel.model_validate(session.metadata.to_dict()),
        summary=_summary(session.store),
    )


def _export_filename(session: Session, suffix: str) -> str:
    source = session.metadata.source_filename
    stem = Path(source).stem if source else "transcript-{}".format(session.id[:8])
    return "{}{}".format(stem, suffix)


# ---------------------------------------------------------------------------
# Endpoints: Documents
# ---------------------------------------------------------------------------


@app.post(
    "/documents",
    response_model=DocumentResponse,
    response_model_exclude_none=True,
    tags=["documents"],
    summary="Render a transcript without a session",
    description=(
        "Apply the given edit operations to the utterances and return the "
        "paginated document. Nothing is stored."
    ),
    responses=_INVALID,
)
async def create_document(request: DocumentRequest) -> DocumentResponse:
    try:
        store = EditStore(load_utterances(request.utterances))
        store = apply_operations(store, parse_operations(request.operations))
        label_map = load_label_map(request.speaker_labels)
    except PreconditionError as exc:
        raise _unprocessable(exc)
    return _document_response(store, label_map, _metadata(request.metadata))


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Start an editing session",
    description="Load a transcript into a new session with no edits.",
    responses={
        **_INVALID,
        429: {"model": ErrorResponse, "description": "Too many concurrent sessions"},
    },
)
async def create_session(request: CreateSessionRequest) -> SessionResponse:
    try:
        utterances = load_utterances(request.utterances)
        label_map = load_label_map(request.speaker_labels)
    except PreconditionError as exc:
        raise _unprocessable(exc)

    try:
        session = session_store.create_session(
            utterances,
            label_map=label_map,
            metadata=_metadata(request.metadata),
        )
    except PreconditionError as exc:
        raise _unprocessable(exc)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    return _session_to_response(session)


@app.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Get session overview",
    responses=_NOT_FOUND,
)
async def get_session(session_id: str) -> SessionResponse:
    return _session_to_response(_snapshot(session_id))


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="Discard a session",
    responses=_NOT_FOUND,
)
async def delete_session(session_id: str) -> Response:
    if not session_store.delete_session(session_id):
        raise _session_not_found(session_id)
    return Response(status_code=204)


@app.post(
    "/sessions/{session_id}/operations",
    response_model=OperationsResponse,
    tags=["edits"],
    summary="Apply edit operations",
    description=(
        "Apply a batch of edit operations in order. The batch is atomic: if "
        "any operation is rejected, none of them take effect."
    ),
    responses={**_NOT_FOUND, **_INVALID},
)
async def apply_session_operations(
    session_id: str,
    request: OperationsRequest,
) -> OperationsResponse:
    try:
        operations = parse_operations(request.operations)
        session = session_store.apply(session_id, operations)
    except PreconditionError as exc:
        raise _unprocessable(exc)
    if session is None:
        raise _session_not_found(session_id)
    return OperationsResponse(applied=len(operations), summary=_summary(session.store))


@app.delete(
    "/sessions/{session_id}/edits",
    response_model=RevertResponse,
    tags=["edits"],
    summary="Revert every edit",
    responses=_NOT_FOUND,
)
async def revert_all_edits(session_id: str) -> RevertResponse:
    reverted = session_store.write(session_id, lambda store: store.revert_all())
    if reverted is None:
        raise _session_not_found(session_id)
    return RevertResponse(reverted=reverted, summary=_summary(_snapshot(session_id).store))


@app.delete(
    "/sessions/{session_id}/edits/{utterance_id}",
    response_model=RevertResponse,
    tags=["edits"],
    summary="Revert one utterance",
    description="Restore the utterance's original speaker attribution.",
    responses={404: {"model": ErrorResponse, "description": "Session or utterance not found"}},
)
async def revert_utterance_edit(session_id: str, utterance_id: str) -> RevertResponse:
    try:
        removed = session_store.write(session_id, lambda store: store.revert(utterance_id))
    except UnknownUtteranceError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    if removed is None:
        raise _session_not_found(session_id)
    return RevertResponse(
        reverted=int(removed),
        summary=_summary(_snapshot(session_id).store),
    )


@app.get(
    "/sessions/{session_id}/utterances/{utterance_id}/segments",
    response_model=SegmentsResponse,
    tags=["edits"],
    summary="Get an utterance's current segments",
    responses={404: {"model": ErrorResponse, "description": "Session or utterance not found"}},
)
async def get_utterance_segments(session_id: str, utterance_id: str) -> SegmentsResponse:
    store = _snapshot(session_id).store
    try:
        segments = store.get(utterance_id)
        edit = store.get_edit(utterance_id)
    except UnknownUtteranceError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    return SegmentsResponse(
        utterance_id=utterance_id,
        edited=edit is not None,
        deleted=edit is not None and edit.deleted,
        trimmed=edit is not None and edit.trimmed,
        segments=[TextSegmentModel.model_validate(s.to_dict()) for s in segments],
    )


# ---------------------------------------------------------------------------
# Endpoints: Rendering
# ---------------------------------------------------------------------------


@app.get(
    "/sessions/{session_id}/rendered-segments",
    response_model=RenderedSegmentsResponse,
    tags=["rendering"],
    summary="Get flattened speaker turns",
    description=(
        "The session's speaker turns after edits, with same-speaker turns "
        "merged across utterances. Pass positionMs to locate the turn "
        "playing at that time."
    ),
    responses=_NOT_FOUND,
)
async def get_rendered_segments(
    session_id: str,
    position_ms: Annotated[
        Optional[int],
        Query(alias="positionMs", ge=0, description="Playback position in milliseconds."),
    ] = None,
) -> RenderedSegmentsResponse:
    rendered = flatten(_snapshot(session_id).store)
    active = None
    if position_ms is not None:
        active = find_active_segment(rendered, position_ms)
    return RenderedSegmentsResponse(
        segments=[RenderedSegmentModel.model_validate(r.to_dict()) for r in rendered],
        active_index=active,
    )


@app.get(
    "/sessions/{session_id}/document",
    response_model=DocumentResponse,
    response_model_exclude_none=True,
    tags=["rendering"],
    summary="Get the paginated document",
    responses=_NOT_FOUND,
)
async def get_document(session_id: str) -> DocumentResponse:
    session = _snapshot(session_id)
    return _document_response(session.store, session.label_map, session.metadata)


@app.get(
    "/sessions/{session_id}/exports/{format_key}",
    tags=["rendering"],
    summary="Download an export",
    description="Render the session through one registered formatter. See GET /formats.",
    responses={404: {"model": ErrorResponse, "description": "Session or format not found"}},
)
async def export_session(session_id: str, format_key: str) -> Response:
    if format_key not in FORMATTERS:
        available = ", ".join(sorted(FORMATTERS.keys()))
        raise HTTPException(
            status_code=404,
            detail="Unknown format '{}'. Available: {}".format(format_key, available),
        )

    session = _snapshot(session_id)
    document = render_document(
        session.store, config.load_pagination_config(), session.label_map
    )
    output = FORMATTERS[format_key]().format(document, session.metadata)[0]
    filename = _export_filename(session, output.suffix)

    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


# ---------------------------------------------------------------------------
# Endpoints: Search and statistics
# ---------------------------------------------------------------------------


@app.get(
    "/sessions/{session_id}/search",
    response_model=SearchResponse,
    tags=["search"],
    summary="Search the current transcript text",
    description=(
        "Case-insensitive search over each utterance's text after edits. "
        "Deleted utterances and removed segments are not searched. "
        "Highlight ranges are character offsets into the returned text and "
        "can be used directly as split selections."
    ),
    responses={**_NOT_FOUND, **_INVALID},
)
async def search_session(
    session_id: str,
    q: Annotated[str, Query(min_length=1, description="Text to search for.")],
) -> SearchResponse:
    session = _snapshot(session_id)
    try:
        results = search_transcript(session.store, q, session.label_map)
    except PreconditionError as exc:
        raise _unprocessable(exc)
    return SearchResponse.model_validate({
        "query": q,
        "resultCount": len(results),
        "results": [r.to_dict() for r in results],
    })


@app.get(
    "/sessions/{session_id}/statistics",
    response_model=StatisticsResponse,
    tags=["search"],
    summary="Get transcript statistics",
    description="Utterance, speaker and word counts for the transcript after edits.",
    responses=_NOT_FOUND,
)
async def get_statistics(session_id: str) -> StatisticsResponse:
    session = _snapshot(session_id)
    stats = transcript_statistics(session.store, session.metadata.duration_s)
    return StatisticsResponse.model_validate(stats.to_dict())


# ---------------------------------------------------------------------------
# Endpoints: Speakers
# ---------------------------------------------------------------------------


def _speakers_response(session: Session) -> SpeakersResponse:
    return SpeakersResponse(
        speakers=[
            SpeakerModel.model_validate(info.to_dict())
            for info in list_speakers(session.store, session.label_map)
        ],
        speaker_labels=session.label_map,
    )


@app.get(
    "/sessions/{session_id}/speakers",
    response_model=SpeakersResponse,
    tags=["speakers"],
    summary="List speakers with display labels",
    responses=_NOT_FOUND,
)
async def get_speakers(session_id: str) -> SpeakersResponse:
    return _speakers_response(_snapshot(session_id))


@app.put(
    "/sessions/{session_id}/speakers",
    response_model=SpeakersResponse,
    tags=["speakers"],
    summary="Replace user-defined speaker names",
    description="Blank labels are dropped, falling back to the default 'Speaker <id>'.",
    responses=_NOT_FOUND,
)
async def put_speakers(session_id: str, request: SpeakerLabelsRequest) -> SpeakersResponse:
    if session_store.set_label_map(session_id, load_label_map(request.labels)) is None:
        raise _session_not_found(session_id)
    return _speakers_response(_snapshot(session_id))


# ---------------------------------------------------------------------------
# Endpoints: Formats and health
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available export formats",
)
async def list_formats() -> List[FormatInfo]:
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        result.append(FormatInfo(key=key, name=formatter.name, suffix=formatter.suffix))
    return result


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the transcript-editor-api console script."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
