"""Resolved edit-operation requests and their atomic application.

WHY: The review UI, the HTTP API and the CLI all describe edits as small
records ({"op": "split_and_reassign", "utteranceId": ..., ...}). One
parser and one dispatcher keep the three entry points in agreement.

HOW: parse_operation() validates a record into an EditOperation.
apply_operations() copies the store, applies every operation to the
copy and returns it; the caller swaps it in. A failing operation raises
and the caller's store is never touched.

RULES:
- Op names and keys may be camelCase or snake_case
- Offsets and indices must be whole numbers; 9.9 is rejected, not truncated
- Missing required fields raise PreconditionError
- A batch is all-or-nothing
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.errors import PreconditionError
from transcript_editor.core.transcript import as_int, pick, require_mapping


class OperationType(str, enum.Enum):
    """Edit operations a reviewer can request."""

    SPLIT_AND_REASSIGN = "split_and_reassign"
    REASSIGN_UTTERANCE = "reassign_utterance"
    REASSIGN_SEGMENT = "reassign_segment"
    DELETE_SEGMENT = "delete_segment"
    DELETE_UTTERANCE = "delete_utterance"
    RESTORE_UTTERANCE = "restore_utterance"
    REVERT = "revert"
    REVERT_ALL = "revert_all"


_NEEDS_SPEAKER = frozenset({
    OperationType.SPLIT_AND_REASSIGN,
    OperationType.REASSIGN_UTTERANCE,
    OperationType.REASSIGN_SEGMENT,
})

_NEEDS_INDEX = frozenset({
    OperationType.REASSIGN_SEGMENT,
    OperationType.DELETE_SEGMENT,
})


@dataclass(frozen=True)
class EditOperation:
    """One fully resolved edit request."""

    op: OperationType
    utterance_id: Optional[str] = None
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    segment_index: Optional[int] = None
    speaker_id: Optional[str] = None
    speaker_label: Optional[str] = None


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _snake_case(name: str) -> str:
    """Convert camelCase op names (splitAndReassign) to their snake_case value."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def parse_operation(record: Mapping[str, Any]) -> EditOperation:
    """Validate one operation record.

    Raises:
        PreconditionError: Unknown op or missing/invalid fields.
    """
    record = require_mapping(record, "Operation")
    raw_op = pick(record, "op", "type")
    try:
        op = OperationType(_snake_case(str(raw_op)))
    except ValueError:
        available = ", ".join(t.value for t in OperationType)
        raise PreconditionError(
            "Unknown operation '{}'. Available: {}".format(raw_op, available)
        ) from None

    if op is OperationType.REVERT_ALL:
        return EditOperation(op=op)

    utterance_id = str(pick(record, "utteranceId", "utterance_id"))
    start_offset = end_offset = segment_index = None
    speaker_id = speaker_label = None

    if op is OperationType.SPLIT_AND_REASSIGN:
        start_offset = as_int(pick(record, "startOffset", "start_offset"), "startOffset")
        end_offset = as_int(pick(record, "endOffset", "end_offset"), "endOffset")
    if op in _NEEDS_INDEX:
        segment_index = as_int(
            pick(record, "segmentIndex", "segment_index", "index"), "segmentIndex"
        )
    if op in _NEEDS_SPEAKER:
        speaker_id = str(pick(
            record, "newSpeakerId", "new_speaker_id", "speakerId", "speaker_id"
        ))
        speaker_label = pick(
            record, "newSpeakerLabel", "new_speaker_label", "speakerLabel", "speaker_label",
            default=None,
        ) or None

    return EditOperation(
        op=op,
        utterance_id=utterance_id,
        start_offset=start_offset,
        end_offset=end_offset,
        segment_index=segment_index,
        speaker_id=speaker_id,
        speaker_label=speaker_label,
    )


def parse_operations(records: Iterable[Mapping[str, Any]]) -> List[EditOperation]:
    return [parse_operation(r) for r in records]


def apply_operation(store: EditStore, operation: EditOperation) -> None:
    """Apply one operation to store in place."""
    op = operation.op
    uid = operation.utterance_id

    if op is OperationType.SPLIT_AND_REASSIGN:
        store.split_and_reassign(
            uid, operation.start_offset, operation.end_offset,
            operation.speaker_id, operation.speaker_label,
        )
    elif op is OperationType.REASSIGN_UTTERANCE:
        store.reassign_utterance(uid, operation.speaker_id, operation.speaker_label)
    elif op is OperationType.REASSIGN_SEGMENT:
        store.reassign_segment(
            uid, operation.segment_index, operation.speaker_id, operation.speaker_label,
        )
    elif op is OperationType.DELETE_SEGMENT:
        store.delete_segment(uid, operation.segment_index)
    elif op is OperationType.DELETE_UTTERANCE:
        store.delete_utterance(uid)
    elif op is OperationType.RESTORE_UTTERANCE:
        store.restore_utterance(uid)
    elif op is OperationType.REVERT:
        store.revert(uid)
    elif op is OperationType.REVERT_ALL:
        store.revert_all()


def apply_operations(
    store: EditStore,
    operations: Iterable[EditOperation],
) -> EditStore:
    """Apply a batch to a snapshot of store and return the snapshot.

    The original store is never modified; swap the returned store in to
    commit, or drop it to discard.
    """
    staged = store.copy()
    for operation in operations:
        apply_operation(staged, operation)
    return staged
