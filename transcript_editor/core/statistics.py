"""Transcript statistics for the review dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from transcript_editor.core.edit_store import EditStore


@dataclass
class TranscriptStatistics:
    """Counts over the current (edited) transcript.

    RULES:
    - Deleted utterances and removed segments are not counted
    - word_count splits on whitespace
    - words_per_minute is None without a positive recording duration
    - average_utterance_length is in characters, rounded to an integer
    """

    utterance_count: int
    speaker_count: int
    word_count: int
    average_utterance_length: int
    duration_s: Optional[float] = None
    words_per_minute: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utteranceCount": self.utterance_count,
            "speakerCount": self.speaker_count,
            "wordCount": self.word_count,
            "averageUtteranceLength": self.average_utterance_length,
            "durationSeconds": self.duration_s,
            "wordsPerMinute": self.words_per_minute,
        }


def transcript_statistics(
    store: EditStore,
    duration_s: Optional[float] = None,
) -> TranscriptStatistics:
    speakers = set()
    utterance_count = word_count = char_count = 0

    for utterance in store.utterances:
        segments = store.get(utterance.id)
        if not segments:
            continue
        text = "".join(s.text for s in segments)
        utterance_count += 1
        word_count += len(text.split())
        char_count += len(text)
        speakers.update(s.speaker_id for s in segments)

    words_per_minute = None
    if duration_s and word_count:
        words_per_minute = round(word_count / duration_s * 60)

    return TranscriptStatistics(
        utterance_count=utterance_count,
        speaker_count=len(speakers),
        word_count=word_count,
        average_utterance_length=round(char_count / utterance_count) if utterance_count else 0,
        duration_s=duration_s,
        words_per_minute=words_per_minute,
    )
