"""Flattening stage: edited utterances → one ordered stream of speaker turns.

WHY: Playback highlighting and every export need a single list of
speaker turns. After reattribution, the tail of one utterance and the
head of the next may belong to the same speaker and should read as one
turn.

HOW: Walk utterances in sequence order, resolve each through the edit
store, emit one RenderedSegment per TextSegment with the utterance's
time bounds, then merge adjacent same-speaker segments, joining text
with a single space.

RULES:
- Deleted utterances emit nothing
- Segments have no timing of their own; they inherit the utterance's
- A merged segment keeps the first start_ms and the last end_ms
- Output never has two consecutive segments with the same speaker_id
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.ir import RenderedSegment, Utterance


def merge_rendered(segments: Iterable[RenderedSegment]) -> List[RenderedSegment]:
    """Merge consecutive same-speaker rendered segments across utterance boundaries."""
    merged: List[RenderedSegment] = []
    for segment in segments:
        if merged and merged[-1].speaker_id == segment.speaker_id:
            last = merged[-1]
            merged[-1] = RenderedSegment(
                speaker_id=last.speaker_id,
                speaker_label=(
                    last.speaker_label
                    if last.speaker_label is not None
                    else segment.speaker_label
                ),
                text=last.text + " " + segment.text,
                start_ms=last.start_ms,
                end_ms=segment.end_ms,
            )
        else:
            merged.append(replace(segment))
    return merged


def flatten_utterances(
    utterances: Iterable[Utterance],
    store: EditStore,
) -> List[RenderedSegment]:
    """Resolve and merge the given utterances through the store's edits."""
    rendered: List[RenderedSegment] = []
    for utterance in sorted(utterances, key=lambda u: u.sequence_index):
        for segment in store.get(utterance.id):
            rendered.append(RenderedSegment(
                speaker_id=segment.speaker_id,
                speaker_label=segment.speaker_label,
                text=segment.text,
                start_ms=utterance.start_ms,
                end_ms=utterance.end_ms,
            ))
    return merge_rendered(rendered)


def flatten(store: EditStore) -> List[RenderedSegment]:
    """The rendered segment stream for the whole transcript."""
    return flatten_utterances(store.utterances, store)


def find_active_segment(
    rendered: List[RenderedSegment],
    position_ms: int,
) -> Optional[int]:
    """Index of the segment playing at position_ms, or None between turns.

    Approximate after merges: a merged segment spans from its first
    utterance's start to its last utterance's end, gaps included.
    """
    for index, segment in enumerate(rendered):
        if segment.start_ms <= position_ms < segment.end_ms:
            return index
    return None
