"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization and the OpenAPI docs. The review UI and the
export back-ends already speak camelCase JSON, so the wire format keeps
those keys while the Python side stays snake_case.

HOW: Every model derives from ApiModel, which generates camelCase
aliases and still accepts snake_case names. Utterance and operation
records are passed through as plain dicts and validated by the core
(transcript.load_utterances, operations.parse_operation), so the key
rules live in one place.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Responses are serialized by alias (camelCase)
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from transcript_editor.core.ir import TranscriptMetadata


class ApiModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class MetadataModel(ApiModel):
    """Recording details printed in exported document headers."""

    title: str = Field(
        default="OFFICIAL TRANSCRIPT",
        description="Document title.",
    )
    subtitle: Optional[str] = Field(
        default="Court Recording Transcription",
        description="Line printed under the title.",
    )
    source_filename: Optional[str] = Field(default=None, description="Recording filename.")
    case_number: Optional[str] = Field(default=None, description="Case number.")
    court_name: Optional[str] = Field(default=None, description="Court name.")
    recording_date: Optional[str] = Field(default=None, description="Recording date.")
    duration_seconds: Optional[float] = Field(
        default=None,
        ge=0,
        description="Recording duration in seconds.",
    )

    def to_metadata(self) -> TranscriptMetadata:
        return TranscriptMetadata(
            title=self.title,
            subtitle=self.subtitle,
            source_filename=self.source_filename,
            case_number=self.case_number,
            court_name=self.court_name,
            recording_date=self.recording_date,
            duration_s=self.duration_seconds,
        )


class EditSummaryModel(ApiModel):
    edited_utterance_count: int = Field(description="Utterances whose attribution deviates from the original.")
    deleted_utterance_count: int = Field(description="Utterances excluded from output.")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class DocumentRequest(ApiModel):
    """One-shot render: transcript, edits and metadata in, document out.

    RULES:
    - utterances: records with id, speakerId, text, startMs, endMs and
      optional speakerLabel / sequenceIndex
    - operations: edit operations applied in order before rendering
    """

    utterances: List[Dict[str, Any]] = Field(description="Utterance records from the transcription service.")
    operations: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Edit operations to apply before rendering.",
    )
    speaker_labels: Optional[Dict[str, str]] = Field(
        default=None,
        description="User-defined speaker names keyed by speaker id.",
    )
    metadata: Optional[MetadataModel] = Field(default=None, description="Header details.")


class CreateSessionRequest(ApiModel):
    """Start an editing session on a transcript."""

    utterances: List[Dict[str, Any]] = Field(description="Utterance records from the transcription service.")
    speaker_labels: Optional[Dict[str, str]] = Field(
        default=None,
        description="User-defined speaker names keyed by speaker id.",
    )
    metadata: Optional[MetadataModel] = Field(default=None, description="Header details for exports.")


class OperationsRequest(ApiModel):
    """A batch of edit operations, applied all-or-nothing.

    Each record has an "op" key (split_and_reassign, reassign_utterance,
    reassign_segment, delete_segment, delete_utterance, restore_utterance,
    revert, revert_all) plus the fields that operation needs.
    """

    operations: List[Dict[str, Any]] = Field(description="Edit operations in application order.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "operations": [
                    {
                        "op": "split_and_reassign",
                        "utteranceId": "u1",
                        "startOffset": 10,
                        "endOffset": 14,
                        "newSpeakerId": "B",
                        "newSpeakerLabel": "Judge",
                    },
                    {"op": "delete_utterance", "utteranceId": "u7"},
                ]
            }
        ]
    }}


class SpeakerLabelsRequest(ApiModel):
    labels: Dict[str, str] = Field(description="Speaker names keyed by speaker id; replaces the current map.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TextSegmentModel(ApiModel):
    speaker_id: str = Field(description="Speaker owning this span.")
    speaker_label: Optional[str] = Field(default=None, description="Label given with the reassignment.")
    text: str = Field(description="Span text.")
    start_char_index: int = Field(description="Start offset within the current segment text.")
    end_char_index: int = Field(description="End offset (exclusive).")


class SegmentsResponse(ApiModel):
    """Current segments of one utterance."""

    utterance_id: str = Field(description="Utterance id.")
    edited: bool = Field(description="True if the utterance deviates from its original attribution.")
    deleted: bool = Field(description="True if the utterance is excluded from output.")
    trimmed: bool = Field(description="True if segments were removed from the utterance.")
    segments: List[TextSegmentModel] = Field(description="Current partition of the utterance text.")


class RenderedSegmentModel(ApiModel):
    speaker_id: str = Field(description="Speaker of this turn.")
    speaker_label: Optional[str] = Field(default=None, description="Label carried by the turn, if any.")
    text: str = Field(description="Turn text.")
    start_ms: int = Field(description="Start of the first contributing utterance.")
    end_ms: int = Field(description="End of the last contributing utterance.")


class RenderedSegmentsResponse(ApiModel):
    segments: List[RenderedSegmentModel] = Field(description="Flattened speaker turns in order.")
    active_index: Optional[int] = Field(
        default=None,
        description="Index of the turn containing positionMs, when positionMs was given.",
    )


class HighlightModel(ApiModel):
    start: int = Field(description="First matched character.")
    end: int = Field(description="End of the match (exclusive).")


class SearchResultModel(ApiModel):
    utterance_id: str = Field(description="Utterance id.")
    speaker_id: str = Field(description="Speaker owning the start of the utterance.")
    speaker_label: str = Field(description="Resolved display label of that speaker.")
    text: str = Field(description="Current utterance text after edits.")
    start_ms: int = Field(description="Utterance start in milliseconds.")
    end_ms: int = Field(description="Utterance end in milliseconds.")
    sequence_index: int = Field(description="Position of the utterance in the transcript.")
    highlights: List[HighlightModel] = Field(description="Matched ranges within text, overlaps included.")


class SearchResponse(ApiModel):
    """Utterances matching a search query, in transcript order."""

    query: str = Field(description="The query as given.")
    result_count: int = Field(description="Number of matching utterances.")
    results: List[SearchResultModel] = Field(description="Matching utterances.")


class StatisticsResponse(ApiModel):
    """Counts over the current transcript, excluding deleted text."""

    utterance_count: int = Field(description="Utterances still in the output.")
    speaker_count: int = Field(description="Distinct speakers owning text.")
    word_count: int = Field(description="Whitespace-separated words.")
    average_utterance_length: int = Field(description="Mean utterance length in characters.")
    duration_seconds: Optional[float] = Field(default=None, description="Recording duration, when known.")
    words_per_minute: Optional[int] = Field(
        default=None,
        description="Speaking rate; null without a recording duration.",
    )


class DocumentLineModel(ApiModel):
    line_number: int = Field(description="Global 1-based line number.")
    speaker: Optional[str] = Field(default=None, description="Speaker id (first lines only).")
    speaker_label: Optional[str] = Field(default=None, description="Display label (first lines only).")
    timestamp: Optional[str] = Field(default=None, description="Turn start time (first lines only).")
    text: str = Field(description="Line text, excluding the prefix.")
    is_continuation: bool = Field(description="True for wrapped lines after the first.")


class DocumentPageModel(ApiModel):
    page_number: int = Field(description="1-based page number.")
    lines: List[DocumentLineModel] = Field(description="Lines on this page.")


class DocumentResponse(ApiModel):
    """The paginated document every renderer consumes."""

    metadata: MetadataModel = Field(description="Header details.")
    page_count: int = Field(description="Number of pages.")
    line_count: int = Field(description="Number of lines across all pages.")
    pages: List[DocumentPageModel] = Field(description="Pages in order.")
    summary: EditSummaryModel = Field(description="Edit counts for the rendered state.")


class SessionResponse(ApiModel):
    """Editing session overview."""

    id: str = Field(description="Session id.")
    created_at: float = Field(description="Creation time (Unix epoch seconds).")
    updated_at: float = Field(description="Last access time (Unix epoch seconds).")
    utterance_count: int = Field(description="Utterances in the transcript.")
    speaker_labels: Dict[str, str] = Field(description="User-defined speaker names.")
    metadata: MetadataModel = Field(description="Header details for exports.")
    summary: EditSummaryModel = Field(description="Current edit counts.")


class OperationsResponse(ApiModel):
    applied: int = Field(description="Number of operations applied.")
    summary: EditSummaryModel = Field(description="Edit counts after the batch.")


class RevertResponse(ApiModel):
    reverted: int = Field(description="Number of utterance edits removed.")
    summary: EditSummaryModel = Field(description="Edit counts after reverting.")


class SpeakerModel(ApiModel):
    speaker_id: str = Field(description="Speaker id.")
    label: str = Field(description="Resolved display label.")
    utterance_count: int = Field(description="Utterances in which the speaker currently owns text.")


class SpeakersResponse(ApiModel):
    speakers: List[SpeakerModel] = Field(description="Speakers in order of first appearance.")
    speaker_labels: Dict[str, str] = Field(description="User-defined speaker names.")


class FormatInfo(ApiModel):
    """Description of an available export format."""

    key: str = Field(description="Format identifier used in export URLs.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '-transcript.txt').")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
