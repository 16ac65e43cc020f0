"""Shared test fixtures for the transcript_editor test suite.

WHY: Most modules work on the same small court-hearing transcript.
Centralizing it here keeps expected offsets and texts in one place.

HOW: Pytest fixtures provide the raw utterance records (camelCase, as the
transcription service sends them), the validated Utterance list and a
fresh EditStore for each test.

RULES:
- Records are returned as fresh copies; tests may mutate them
- Times are in milliseconds; u1 starts at 0, u4 starts after an hour
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List

import pytest

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.ir import Utterance
from transcript_editor.core.transcript import load_utterances


# ---------------------------------------------------------------------------
# Sample hearing
# ---------------------------------------------------------------------------

HEARING_RECORDS: List[Dict[str, Any]] = [
    {"id": "u1", "speakerId": "A", "text": "Objection your honor",
     "startMs": 0, "endMs": 2000, "sequenceIndex": 0},
    {"id": "u2", "speakerId": "B", "text": "Sustained",
     "startMs": 2500, "endMs": 3200, "sequenceIndex": 1},
    {"id": "u3", "speakerId": "A", "text": "Thank you",
     "startMs": 3500, "endMs": 4100, "sequenceIndex": 2},
    {"id": "u4", "speakerId": "C", "speakerLabel": "Witness",
     "text": "I was at home that night", "startMs": 3_661_000, "endMs": 3_665_000,
     "sequenceIndex": 3},
]

HEARING_LABELS: Dict[str, str] = {"A": "Mr. Jones", "B": "The Court"}


@pytest.fixture
def hearing_records() -> List[Dict[str, Any]]:
    """Raw utterance records for the sample hearing."""
    return copy.deepcopy(HEARING_RECORDS)


@pytest.fixture
def hearing_utterances(hearing_records) -> List[Utterance]:
    return load_utterances(hearing_records)


@pytest.fixture
def store(hearing_utterances) -> EditStore:
    """An EditStore over the sample hearing with no edits."""
    return EditStore(hearing_utterances)


@pytest.fixture
def hearing_labels() -> Dict[str, str]:
    return dict(HEARING_LABELS)


def make_utterance(
    uid: str = "u1",
    speaker_id: str = "A",
    text: str = "Objection your honor",
    start_ms: int = 0,
    end_ms: int = 2000,
    sequence_index: int = 0,
    speaker_label: str = None,
) -> Utterance:
    """Build a single Utterance with sensible defaults."""
    return Utterance(
        id=uid,
        speaker_id=speaker_id,
        text=text,
        start_ms=start_ms,
        end_ms=end_ms,
        sequence_index=sequence_index,
        speaker_label=speaker_label,
    )


@pytest.fixture
def make_utt():
    """Factory fixture for one-off utterances."""
    return make_utterance
