"""Tests for transcript search and highlight ranges."""

from __future__ import annotations

import pytest

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.errors import PreconditionError
from transcript_editor.core.search import Highlight, find_highlights, search_transcript


def _ranges(highlights):
    return [(h.start, h.end) for h in highlights]


class TestFindHighlights:

    def test_single_match(self):
        assert _ranges(find_highlights("Objection your honor", "honor")) == [(15, 20)]

    def test_case_insensitive(self):
        assert _ranges(find_highlights("Objection your honor", "OBJECTION")) == [(0, 9)]

    def test_every_occurrence(self):
        assert _ranges(find_highlights("Objection your honor", "o")) == [
            (0, 1), (7, 8), (11, 12), (16, 17), (18, 19),
        ]

    def test_overlapping_matches(self):
        assert _ranges(find_highlights("aaa", "aa")) == [(0, 2), (1, 3)]

    def test_regex_characters_are_literal(self):
        assert _ranges(find_highlights("costs $5.00 (approx)", "$5.00 (")) == [(6, 13)]
        assert find_highlights("costs 5500", "5.0") == []

    def test_no_match(self):
        assert find_highlights("Sustained", "overruled") == []

    def test_empty_query(self):
        assert find_highlights("Sustained", "") == []


class TestSearchTranscript:

    def test_results_in_sequence_order(self, store, hearing_labels):
        results = search_transcript(store, "you", hearing_labels)
        assert [r.utterance_id for r in results] == ["u1", "u3"]
        assert results[0].to_dict() == {
            "utteranceId": "u1",
            "speakerId": "A",
            "speakerLabel": "Mr. Jones",
            "text": "Objection your honor",
            "startMs": 0,
            "endMs": 2000,
            "sequenceIndex": 0,
            "highlights": [{"start": 10, "end": 13}],
        }
        assert results[1].highlights == [Highlight(6, 9)]

    def test_utterance_label_used(self, store):
        results = search_transcript(store, "home")
        assert results[0].speaker_label == "Witness"

    def test_default_label(self, store):
        assert search_transcript(store, "sustained")[0].speaker_label == "Speaker B"

    def test_no_results(self, store):
        assert search_transcript(store, "overruled") == []

    def test_deleted_utterance_skipped(self, store):
        store.delete_utterance("u3")
        assert [r.utterance_id for r in search_transcript(store, "you")] == ["u1"]

    def test_removed_segment_not_searched(self, store):
        store.split_and_reassign("u1", 10, 14, "B")
        store.delete_segment("u1", 1)
        assert search_transcript(store, "your") == []
        result = search_transcript(store, "n  h")[0]
        assert result.text == "Objection  honor"
        assert result.highlights == [Highlight(8, 12)]

    def test_speaker_follows_first_segment(self, store, hearing_labels):
        store.split_and_reassign("u1", 0, 9, "B", "Judge Smith")
        result = search_transcript(store, "objection", hearing_labels)[0]
        assert (result.speaker_id, result.speaker_label) == ("B", "Judge Smith")
        assert result.text == "Objection your honor"

    def test_highlight_usable_as_split_selection(self, store):
        highlight = search_transcript(store, "honor")[0].highlights[0]
        store.split_and_reassign("u1", highlight.start, highlight.end, "B")
        assert [s.text for s in store.get("u1")] == ["Objection your ", "honor"]

    def test_empty_store(self):
        assert search_transcript(EditStore([]), "anything") == []

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query_rejected(self, store, query):
        with pytest.raises(PreconditionError, match="must not be empty"):
            search_transcript(store, query)
