"""Ingestion of utterance records from the transcription service.

WHY: The transcription service and the record store hand over plain
dicts, with camelCase keys from the web client and snake_case keys from
Python callers. The core works on validated, ordered Utterance objects.

HOW: utterance_from_dict() maps one record (accepting either key style)
onto an Utterance, whose constructor validates text and timing.
load_utterances() converts a list, checks id and sequence uniqueness and
sorts by sequence_index.

RULES:
- Required: id, speaker id, text, start/end milliseconds
- sequence_index defaults to the record's position in the list
- Duplicate ids or sequence indices raise PreconditionError
- Speaker ids and utterance ids are coerced to str
- Integer fields reject fractional values instead of truncating them
- Non-object records raise PreconditionError
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from transcript_editor.core.errors import PreconditionError
from transcript_editor.core.ir import TextSegment, TranscriptMetadata, Utterance

_MISSING = object()


def pick(record: Mapping[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    """Return the first present key of record, or default.

    Raises PreconditionError when nothing matches and no default is given.
    """
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    if default is _MISSING:
        raise PreconditionError(
            "Record is missing required field '{}'".format(keys[0])
        )
    return default


def as_int(value: Any, name: str) -> int:
    """Coerce an integer field; "14" and 14.0 pass, 14.2 and True do not.

    Raises PreconditionError instead of truncating, so a request is never
    applied to a range other than the one it named.
    """
    if isinstance(value, bool):
        raise PreconditionError("{} must be an integer, got {!r}".format(name, value))
    if isinstance(value, float):
        if not value.is_integer():
            raise PreconditionError(
                "{} must be an integer, got {!r}".format(name, value)
            )
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PreconditionError(
            "{} must be an integer, got {!r}".format(name, value)
        ) from None


def require_mapping(record: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise PreconditionError(
            "{} must be an object, got {}".format(what, type(record).__name__)
        )
    return record


def utterance_from_dict(
    record: Mapping[str, Any],
    sequence_index: Optional[int] = None,
) -> Utterance:
    """Build an Utterance from one external record.

    Args:
        record: Dict with id, speakerId (or speaker), text, startMs, endMs
                and optional speakerLabel / sequenceIndex.
        sequence_index: Fallback ordering when the record has none.
    """
    record = require_mapping(record, "Utterance record")
    seq = pick(record, "sequenceIndex", "sequence_index", default=sequence_index)
    if seq is None:
        raise PreconditionError(
            "Utterance {} has no sequenceIndex".format(record.get("id"))
        )
    label = pick(record, "speakerLabel", "speaker_label", default=None)
    return Utterance(
        id=str(pick(record, "id")),
        speaker_id=str(pick(record, "speakerId", "speaker_id", "speaker")),
        speaker_label=str(label) if label else None,
        text=pick(record, "text"),
        start_ms=as_int(pick(record, "startMs", "start_ms"), "startMs"),
        end_ms=as_int(pick(record, "endMs", "end_ms"), "endMs"),
        sequence_index=as_int(seq, "sequenceIndex"),
    )


def load_utterances(records: Iterable[Mapping[str, Any]]) -> List[Utterance]:
    """Convert utterance records into a validated list ordered by sequence_index."""
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Iterable):
        raise PreconditionError("Utterances must be a list of records")
    utterances: List[Utterance] = []
    seen_ids = set()
    seen_sequence = set()
    for position, record in enumerate(records):
        utterance = utterance_from_dict(record, sequence_index=position)
        if utterance.id in seen_ids:
            raise PreconditionError("Duplicate utterance id: {}".format(utterance.id))
        if utterance.sequence_index in seen_sequence:
            raise PreconditionError(
                "Duplicate sequenceIndex {} (utterance {})".format(
                    utterance.sequence_index, utterance.id
                )
            )
        seen_ids.add(utterance.id)
        seen_sequence.add(utterance.sequence_index)
        utterances.append(utterance)

    utterances.sort(key=lambda u: u.sequence_index)
    return utterances


def segment_from_dict(record: Mapping[str, Any]) -> TextSegment:
    """Build a TextSegment from a persisted edit record."""
    record = require_mapping(record, "Segment record")
    text = pick(record, "text")
    if not isinstance(text, str):
        raise PreconditionError("Segment text must be a string, got {!r}".format(text))
    return TextSegment(
        speaker_id=str(pick(record, "speakerId", "speaker_id", "speaker")),
        speaker_label=pick(record, "speakerLabel", "speaker_label", default=None),
        text=text,
        start_char_index=as_int(
            pick(record, "startCharIndex", "start_char_index"), "startCharIndex"
        ),
        end_char_index=as_int(
            pick(record, "endCharIndex", "end_char_index"), "endCharIndex"
        ),
    )


def load_label_map(records: Any) -> Dict[str, str]:
    """Normalize user-defined speaker names into {speaker_id: label}.

    Accepts either a mapping or a list of {speakerId, label} records, the
    shape the record store returns. Blank labels are dropped.
    """
    if not records:
        return {}
    if isinstance(records, Mapping):
        items = records.items()
    elif isinstance(records, (str, bytes)) or not isinstance(records, Iterable):
        raise PreconditionError("Speaker labels must be an object or a list of records")
    else:
        items = []
        for record in records:
            record = require_mapping(record, "Speaker label record")
            items.append((
                pick(record, "speakerId", "speaker_id", "speaker"),
                pick(record, "label", default=""),
            ))
    return {str(speaker): str(label) for speaker, label in items if label}


def metadata_from_dict(record: Optional[Mapping[str, Any]]) -> TranscriptMetadata:
    """Build TranscriptMetadata from a header record; missing keys keep defaults."""
    defaults = TranscriptMetadata()
    if not record:
        return defaults
    record = require_mapping(record, "Metadata")
    duration = pick(record, "durationSeconds", "duration_seconds", "duration_s", default=None)
    try:
        duration = float(duration) if duration is not None else None
    except (TypeError, ValueError):
        raise PreconditionError(
            "durationSeconds must be a number, got {!r}".format(duration)
        ) from None
    return TranscriptMetadata(
        title=pick(record, "title", default=defaults.title),
        subtitle=pick(record, "subtitle", default=defaults.subtitle),
        source_filename=pick(record, "sourceFilename", "source_filename", default=None),
        case_number=pick(record, "caseNumber", "case_number", default=None),
        court_name=pick(record, "courtName", "court_name", default=None),
        recording_date=pick(record, "recordingDate", "recording_date", default=None),
        duration_s=duration,
    )
