"""Case-insensitive search over the current transcript text.

WHY: A reviewer looking for "objection" needs to jump to every utterance
that says it, and the review UI highlights the matched characters. The
highlight offsets are then reused as split_and_reassign selections, so
they must index the text the reviewer currently sees.

HOW: search_transcript() walks the utterances in sequence order, joins
each one's current segment texts and collects every match of the query
with find_highlights().

RULES:
- Matching ignores case; offsets index the unmodified text
- Overlapping matches are all reported ("aa" in "aaa" gives 0-2 and 1-3)
- Deleted utterances never match
- Text removed by delete_segment is not searched
- An empty or blank query raises PreconditionError
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.errors import PreconditionError
from transcript_editor.core.speakers import SpeakerLabels


@dataclass(frozen=True)
class Highlight:
    """A matched character range [start, end) in an utterance's text."""

    start: int
    end: int

    def to_dict(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass
class SearchResult:
    """One utterance containing the query.

    speaker_id is the speaker owning the utterance's first current
    segment, which is who the document prints in front of the text.
    """

    utterance_id: str
    speaker_id: str
    speaker_label: str
    text: str
    start_ms: int
    end_ms: int
    sequence_index: int
    highlights: List[Highlight] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utteranceId": self.utterance_id,
            "speakerId": self.speaker_id,
            "speakerLabel": self.speaker_label,
            "text": self.text,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
            "sequenceIndex": self.sequence_index,
            "highlights": [h.to_dict() for h in self.highlights],
        }


def find_highlights(text: str, query: str) -> List[Highlight]:
    """Every case-insensitive occurrence of query in text, overlaps included."""
    if not query:
        return []
    # Zero-width lookahead so the next match may start inside this one
    pattern = re.compile("(?=({}))".format(re.escape(query)), re.IGNORECASE)
    return [Highlight(m.start(1), m.end(1)) for m in pattern.finditer(text)]


def search_transcript(
    store: EditStore,
    query: str,
    label_map: Optional[Mapping[str, str]] = None,
) -> List[SearchResult]:
    """Utterances whose current text contains query, in sequence order."""
    if not query or not query.strip():
        raise PreconditionError("Search query must not be empty")

    labels = SpeakerLabels.from_store(store, label_map)
    results: List[SearchResult] = []
    for utterance in store.utterances:
        segments = store.get(utterance.id)
        if not segments:
            continue
        text = "".join(s.text for s in segments)
        highlights = find_highlights(text, query)
        if not highlights:
            continue
        first = segments[0]
        results.append(SearchResult(
            utterance_id=utterance.id,
            speaker_id=first.speaker_id,
            speaker_label=labels.display_label(first.speaker_id, first.speaker_label),
            text=text,
            start_ms=utterance.start_ms,
            end_ms=utterance.end_ms,
            sequence_index=utterance.sequence_index,
            highlights=highlights,
        ))
    return results
