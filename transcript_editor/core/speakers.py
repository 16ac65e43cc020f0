"""Speaker display labels and speaker listing.

WHY: A speaker id ("B") is what diarization produces; documents print a
name ("JUDGE SMITH"). Names come from three places: labels attached when
a reviewer reassigned text, labels stored on the utterance, and the
per-recording label map a user maintains. Every renderer must pick the
same one.

HOW: SpeakerLabels collects edit-provided labels from an EditStore once,
then resolves a display label per (speaker id, segment label) pair.
list_speakers() walks the current segments of every utterance.

RULES:
- Resolution order: edit label for that speaker, the segment's own
  label, the label map, "Speaker <id>"
- The first edit label found in sequence order wins
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from transcript_editor.core.edit_store import EditStore


@dataclass
class SpeakerInfo:
    """One speaker known to the session."""

    speaker_id: str
    label: str
    utterance_count: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "speakerId": self.speaker_id,
            "label": self.label,
            "utteranceCount": self.utterance_count,
        }


class SpeakerLabels:
    """Resolves the display label for a speaker."""

    def __init__(
        self,
        label_map: Optional[Mapping[str, str]] = None,
        edit_labels: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._label_map = dict(label_map or {})
        self._edit_labels = dict(edit_labels or {})

    @classmethod
    def from_store(
        cls,
        store: EditStore,
        label_map: Optional[Mapping[str, str]] = None,
    ) -> SpeakerLabels:
        edit_labels: Dict[str, str] = {}
        for edit in store.edits():
            for segment in edit.segments:
                if segment.speaker_label and segment.speaker_id not in edit_labels:
                    edit_labels[segment.speaker_id] = segment.speaker_label
        return cls(label_map=label_map, edit_labels=edit_labels)

    def display_label(self, speaker_id: str, speaker_label: str | None = None) -> str:
        if speaker_id in self._edit_labels:
            return self._edit_labels[speaker_id]
        if speaker_label:
            return speaker_label
        if speaker_id in self._label_map:
            return self._label_map[speaker_id]
        return "Speaker {}".format(speaker_id)


def list_speakers(
    store: EditStore,
    label_map: Optional[Mapping[str, str]] = None,
) -> List[SpeakerInfo]:
    """Every speaker in original utterances or edits, in order of first appearance.

    utterance_count is the number of utterances in which the speaker
    currently owns at least one segment; speakers whose text was all
    reassigned away are still listed, with a count of 0.
    """
    labels = SpeakerLabels.from_store(store, label_map)
    order: List[str] = []
    own_labels: Dict[str, Optional[str]] = {}
    counts: Counter = Counter()

    for utterance in store.utterances:
        if utterance.speaker_id not in own_labels:
            order.append(utterance.speaker_id)
            own_labels[utterance.speaker_id] = utterance.speaker_label
        for speaker_id in {s.speaker_id for s in store.get(utterance.id)}:
            counts[speaker_id] += 1

    for edit in store.edits():
        for segment in edit.segments:
            if segment.speaker_id not in own_labels:
                order.append(segment.speaker_id)
                own_labels[segment.speaker_id] = segment.speaker_label

    return [
        SpeakerInfo(
            speaker_id=speaker_id,
            label=labels.display_label(speaker_id, own_labels[speaker_id]),
            utterance_count=counts[speaker_id],
        )
        for speaker_id in order
    ]
