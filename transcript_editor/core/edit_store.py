"""In-memory edit store for one editing session.

WHY: Flattening, pagination and the review UI all need to know the
current segments of every utterance, but only a few utterances are ever
edited. The store keeps just the deviations from the original
attribution, so reverting is a removal and the edit count is the size of
the map.

HOW: EditStore wraps the ordered utterance list and a dict of
utterance id → UtteranceEdit. Operation methods resolve the current
segments, compute a new list with the pure functions in segments.py and
write it back through set(), which checks invariants and drops edits
that collapsed back to the original state.

RULES:
- Original utterances are always the baseline; the store starts empty
- Only deviations are stored (no-op collapse in set())
- An edit with no segments means the utterance is deleted
- get() and edits() return copies; callers cannot mutate store state
- Not thread-safe; one store per session, see server.sessions
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from transcript_editor.core import segments as seg
from transcript_editor.core.errors import PreconditionError, UnknownUtteranceError
from transcript_editor.core.ir import EditSummary, TextSegment, Utterance, UtteranceEdit
from transcript_editor.core.transcript import pick, segment_from_dict

logger = logging.getLogger(__name__)


def _copy_segments(segments: Iterable[TextSegment]) -> List[TextSegment]:
    return [replace(s) for s in segments]


class EditStore:
    """Mapping of utterance id → current UtteranceEdit for one transcript.

    WHY: Replaces component-local edit lists with an explicit object that
    pure functions can take and tests can build without a UI.

    HOW: Utterances are held in sequence order and indexed by id. Edits
    live in a plain dict. copy() gives an independent snapshot, which is
    how batches of operations are applied atomically.

    RULES:
    - Construction rejects duplicate ids and duplicate sequence indices
    - Unknown utterance ids raise UnknownUtteranceError
    - Invalid offsets or indices raise PreconditionError before any write
    """

    def __init__(self, utterances: Iterable[Utterance]) -> None:
        ordered = sorted(utterances, key=lambda u: u.sequence_index)
        by_id: Dict[str, Utterance] = {}
        seen_sequence = set()
        for utterance in ordered:
            if utterance.id in by_id:
                raise PreconditionError("Duplicate utterance id: {}".format(utterance.id))
            if utterance.sequence_index in seen_sequence:
                raise PreconditionError(
                    "Duplicate sequence index: {}".format(utterance.sequence_index)
                )
            by_id[utterance.id] = utterance
            seen_sequence.add(utterance.sequence_index)

        self._utterances: Tuple[Utterance, ...] = tuple(ordered)
        self._by_id = by_id
        self._edits: Dict[str, UtteranceEdit] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def utterances(self) -> Tuple[Utterance, ...]:
        """All utterances in ascending sequence_index order."""
        return self._utterances

    def utterance(self, utterance_id: str) -> Utterance:
        try:
            return self._by_id[utterance_id]
        except KeyError:
            raise UnknownUtteranceError(utterance_id) from None

    def get(self, utterance_id: str) -> List[TextSegment]:
        """Current segments: the edit's if present, else the default single segment."""
        utterance = self.utterance(utterance_id)
        edit = self._edits.get(utterance_id)
        if edit is None:
            return seg.default_segments(utterance)
        return _copy_segments(edit.segments)

    def get_edit(self, utterance_id: str) -> Optional[UtteranceEdit]:
        self.utterance(utterance_id)
        edit = self._edits.get(utterance_id)
        if edit is None:
            return None
        return UtteranceEdit(edit.utterance_id, _copy_segments(edit.segments), edit.trimmed)

    def is_edited(self, utterance_id: str) -> bool:
        self.utterance(utterance_id)
        return utterance_id in self._edits

    def is_deleted(self, utterance_id: str) -> bool:
        self.utterance(utterance_id)
        edit = self._edits.get(utterance_id)
        return edit is not None and edit.deleted

    def edits(self) -> List[UtteranceEdit]:
        """Copies of all stored edits, in sequence order."""
        return [
            UtteranceEdit(e.utterance_id, _copy_segments(e.segments), e.trimmed)
            for e in (self._edits.get(u.id) for u in self._utterances)
            if e is not None
        ]

    def edited_count(self) -> int:
        return len(self._edits)

    def summary(self) -> EditSummary:
        deleted = sum(1 for e in self._edits.values() if e.deleted)
        return EditSummary(
            edited_utterance_count=len(self._edits),
            deleted_utterance_count=deleted,
        )

    def copy(self) -> EditStore:
        """Independent snapshot sharing only the immutable utterances."""
        clone = copy.copy(self)
        clone._edits = {
            uid: UtteranceEdit(e.utterance_id, _copy_segments(e.segments), e.trimmed)
            for uid, e in self._edits.items()
        }
        return clone

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(
        self,
        utterance_id: str,
        segments: List[TextSegment],
        trimmed: bool = False,
    ) -> bool:
        """Store segments for an utterance.

        WHY: Single write path, so every edit is checked and the no-op
        collapse cannot be forgotten at a call site.

        HOW: Check the partition invariants, then either drop the edit
        (segments equal the original state) or store a copy.

        RULES:
        - Raises InvariantError for a corrupted partition
        - [] is stored as the deleted sentinel
        - Returns True if an edit is now stored, False if it collapsed
        """
        utterance = self.utterance(utterance_id)
        seg.check_segments(utterance, segments, trimmed=trimmed)

        if segments and seg.is_trivial(utterance, segments):
            if self._edits.pop(utterance_id, None) is not None:
                logger.debug("Edit for %s collapsed to original", utterance_id)
            return False

        self._edits[utterance_id] = UtteranceEdit(
            utterance_id=utterance_id,
            segments=_copy_segments(segments),
            trimmed=trimmed and bool(segments),
        )
        logger.debug(
            "Stored edit for %s (%d segments)", utterance_id, len(segments)
        )
        return True

    def revert(self, utterance_id: str) -> bool:
        """Revert one utterance to its original attribution."""
        self.utterance(utterance_id)
        removed = self._edits.pop(utterance_id, None) is not None
        if removed:
            logger.debug("Reverted edit for %s", utterance_id)
        return removed

    def revert_all(self) -> int:
        """Drop every edit; returns how many were removed."""
        count = len(self._edits)
        self._edits.clear()
        if count:
            logger.debug("Reverted %d edits", count)
        return count

    # ------------------------------------------------------------------
    # Segment operations
    # ------------------------------------------------------------------

    def _trimmed(self, utterance_id: str) -> bool:
        edit = self._edits.get(utterance_id)
        return edit.trimmed if edit is not None else False

    def split_and_reassign(
        self,
        utterance_id: str,
        start_offset: int,
        end_offset: int,
        new_speaker_id: str,
        new_speaker_label: str | None = None,
    ) -> List[TextSegment]:
        """Reattribute [start_offset, end_offset) of an utterance; returns the new segments."""
        utterance = self.utterance(utterance_id)
        current = self.get(utterance_id)
        seg.validate_range(current, start_offset, end_offset)
        updated = seg.split_and_reassign(
            utterance, current, start_offset, end_offset,
            new_speaker_id, new_speaker_label,
        )
        self.set(utterance_id, updated, trimmed=self._trimmed(utterance_id))
        return self.get(utterance_id)

    def reassign_utterance(
        self,
        utterance_id: str,
        new_speaker_id: str,
        new_speaker_label: str | None = None,
    ) -> List[TextSegment]:
        """Give the whole utterance to one speaker.

        Handing it back to the original speaker removes the edit, which
        also undoes segment and utterance deletions.
        """
        utterance = self.utterance(utterance_id)
        if new_speaker_id == utterance.speaker_id:
            self.revert(utterance_id)
        else:
            self.set(
                utterance_id,
                seg.reassign_entire_utterance(utterance, new_speaker_id, new_speaker_label),
            )
        return self.get(utterance_id)

    def reassign_segment(
        self,
        utterance_id: str,
        index: int,
        new_speaker_id: str,
        new_speaker_label: str | None = None,
    ) -> List[TextSegment]:
        current = self.get(utterance_id)
        updated = seg.reassign_segment(current, index, new_speaker_id, new_speaker_label)
        self.set(utterance_id, updated, trimmed=self._trimmed(utterance_id))
        return self.get(utterance_id)

    def delete_segment(self, utterance_id: str, index: int) -> List[TextSegment]:
        """Remove one segment; removing the last one deletes the utterance."""
        current = self.get(utterance_id)
        updated = seg.delete_segment(current, index)
        self.set(utterance_id, updated, trimmed=True)
        return self.get(utterance_id)

    def delete_utterance(self, utterance_id: str) -> None:
        self.set(utterance_id, [])

    def restore_utterance(self, utterance_id: str) -> bool:
        """Clear the deleted sentinel; other edits are left alone."""
        if not self.is_deleted(utterance_id):
            return False
        return self.revert(utterance_id)

    # ------------------------------------------------------------------
    # Persistence hand-off
    # ------------------------------------------------------------------

    def export_edits(self) -> List[Dict[str, Any]]:
        """Edits as plain dicts for an external record store."""
        return [edit.to_dict() for edit in self.edits()]

    def import_edits(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Replace all edits with persisted records, atomically.

        Every record is validated on a snapshot first; on any error the
        store is left unchanged.
        """
        staged = self.copy()
        staged.revert_all()
        for record in records:
            utterance_id = str(pick(record, "utteranceId", "utterance_id"))
            segments = [segment_from_dict(s) for s in pick(record, "segments", default=[])]
            staged.set(utterance_id, segments, trimmed=bool(pick(record, "trimmed", default=False)))
        self._edits = staged._edits
