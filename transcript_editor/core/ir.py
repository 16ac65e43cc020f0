"""Intermediate representation dataclasses for editing and pagination.

WHY: The transcription service hands us a flat list of utterances. The
review UI, the export path and every renderer need the same view of who
said what after a reviewer has corrected speaker attribution. The IR is
the single typed contract between editing, flattening, pagination and
formatting.

HOW: Three groups of dataclasses:
  Utterance, TextSegment, UtteranceEdit: editing state
  RenderedSegment: flattened speaker turns
  DocumentLine, DocumentPage, PaginatedDocument: the format-independent page model

RULES:
- Utterance is frozen; nothing in the package mutates one after ingestion
- Character offsets are Python string indices into the utterance text
- Times are integer milliseconds, as delivered by the transcription service
- to_dict() emits the camelCase keys external collaborators expect
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from transcript_editor.core.errors import PreconditionError


def format_prefix(timestamp: str, speaker_label: str) -> str:
    """Render the ``"[ts] LABEL: "`` prefix carried by a turn's first line."""
    return "[{}] {}: ".format(timestamp, speaker_label.upper())


@dataclass(frozen=True)
class Utterance:
    """One diarized speech turn as returned by the transcription service.

    RULES:
    - id: unique within the transcript
    - speaker_id: diarization label ("A", "B", ...)
    - speaker_label: optional display name assigned at ingestion
    - text: non-empty; edits never change it
    - start_ms < end_ms
    - sequence_index: defines global ordering, unique per transcript
    """

    id: str
    speaker_id: str
    text: str
    start_ms: int
    end_ms: int
    sequence_index: int
    speaker_label: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise PreconditionError(
                "Utterance {} text must be a string, got {!r}".format(self.id, self.text)
            )
        if not self.text:
            raise PreconditionError(
                "Utterance {} has empty text".format(self.id)
            )
        if self.start_ms < 0:
            raise PreconditionError(
                "Utterance {} starts before 0 ms ({})".format(self.id, self.start_ms)
            )
        if self.start_ms >= self.end_ms:
            raise PreconditionError(
                "Utterance {} has start_ms {} >= end_ms {}".format(
                    self.id, self.start_ms, self.end_ms
                )
            )


@dataclass
class TextSegment:
    """A span of one utterance's text attributed to a single speaker.

    WHY: A reviewer can hand part of an utterance to another speaker.
    Segments record that partition while keeping the offsets needed to
    map later selections back onto the text.

    RULES:
    - 0 <= start_char_index < end_char_index
    - end_char_index - start_char_index == len(text)
    - speaker_label overrides the display name for this speaker
    """

    speaker_id: str
    text: str
    start_char_index: int
    end_char_index: int
    speaker_label: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speakerId": self.speaker_id,
            "speakerLabel": self.speaker_label,
            "text": self.text,
            "startCharIndex": self.start_char_index,
            "endCharIndex": self.end_char_index,
        }


@dataclass
class UtteranceEdit:
    """The current segment list of an utterance that deviates from its original.

    RULES:
    - An empty segments list means the utterance is deleted from output
    - trimmed is True once a segment was removed; the segments then cover
      an in-order subset of the original text instead of all of it
    - Only stored when different from the single-segment default
    """

    utterance_id: str
    segments: List[TextSegment] = field(default_factory=list)
    trimmed: bool = False

    @property
    def deleted(self) -> bool:
        return not self.segments

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utteranceId": self.utterance_id,
            "segments": [s.to_dict() for s in self.segments],
            "trimmed": self.trimmed,
        }


@dataclass
class RenderedSegment:
    """A flattened speaker turn, possibly spanning several utterances.

    start_ms belongs to the first contributing utterance and end_ms to the
    last, so timing is approximate once utterances have been merged.
    """

    speaker_id: str
    text: str
    start_ms: int
    end_ms: int
    speaker_label: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speakerId": self.speaker_id,
            "speakerLabel": self.speaker_label,
            "text": self.text,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
        }


@dataclass
class DocumentLine:
    """One numbered output line.

    RULES:
    - line_number is global and 1-based; it never resets per page
    - speaker, speaker_label and timestamp are set only on the first line
      of a rendered segment; continuation lines leave them None
    - speaker_label holds the resolved display name, so every renderer
      prints the same label
    """

    line_number: int
    text: str
    is_continuation: bool = False
    speaker: str | None = None
    speaker_label: str | None = None
    timestamp: str | None = None

    @property
    def prefix(self) -> str:
        if self.is_continuation or self.timestamp is None:
            return ""
        return format_prefix(self.timestamp, self.speaker_label or self.speaker or "")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"lineNumber": self.line_number}
        if not self.is_continuation:
            data["speaker"] = self.speaker
            data["speakerLabel"] = self.speaker_label
            data["timestamp"] = self.timestamp
        data["text"] = self.text
        data["isContinuation"] = self.is_continuation
        return data


@dataclass
class DocumentPage:
    """A fixed-size group of lines; only the last page may be short."""

    page_number: int
    lines: List[DocumentLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageNumber": self.page_number,
            "lines": [line.to_dict() for line in self.lines],
        }


@dataclass
class PaginatedDocument:
    """The complete page model handed to every renderer.

    A document with zero pages is an empty transcript, not an error.
    """

    pages: List[DocumentPage] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def line_count(self) -> int:
        return sum(len(page.lines) for page in self.pages)

    @property
    def is_empty(self) -> bool:
        return not self.pages

    def lines(self) -> Iterator[DocumentLine]:
        for page in self.pages:
            yield from page.lines

    def to_dict(self) -> Dict[str, Any]:
        return {"pages": [page.to_dict() for page in self.pages]}


@dataclass
class EditSummary:
    """Counts for UI badges."""

    edited_utterance_count: int
    deleted_utterance_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "editedUtteranceCount": self.edited_utterance_count,
            "deletedUtteranceCount": self.deleted_utterance_count,
        }


@dataclass
class TranscriptMetadata:
    """Recording details printed in a rendered document's header.

    Pagination never looks at this; only formatters do.
    """

    title: str = "OFFICIAL TRANSCRIPT"
    subtitle: str = "Court Recording Transcription"
    source_filename: str | None = None
    case_number: str | None = None
    court_name: str | None = None
    recording_date: str | None = None
    duration_s: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "sourceFilename": self.source_filename,
            "caseNumber": self.case_number,
            "courtName": self.court_name,
            "recordingDate": self.recording_date,
            "durationSeconds": self.duration_s,
        }
