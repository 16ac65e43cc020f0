"""Tests for the segment model (split, reassign, delete, merge, invariants).

HOW: Tests are organized by class, one per operation:
  - TestSplitAndReassign: range splitting, spans, no-op ranges
  - TestMergeAdjacent: merging and idempotence
  - TestReassignSegment / TestDeleteSegment: per-segment edits
  - TestCheckSegments: invariant checker accepts and rejects partitions
  - TestValidateRange / TestIsTrivial

RULES:
- "Objection your honor" is the working text: "your" is [10, 14)
"""

from __future__ import annotations

import pytest

from transcript_editor.core import segments as seg
from transcript_editor.core.errors import InvariantError, PreconditionError
from transcript_editor.core.ir import TextSegment


def _shape(segments):
    return [(s.speaker_id, s.text, s.start_char_index, s.end_char_index) for s in segments]


# ---------------------------------------------------------------------------
# TestSplitAndReassign
# ---------------------------------------------------------------------------


class TestSplitAndReassign:

    def test_middle_range_produces_three_segments(self, make_utt):
        utterance = make_utt()
        result = seg.split_and_reassign(utterance, None, 10, 14, "B")
        assert _shape(result) == [
            ("A", "Objection ", 0, 10),
            ("B", "your", 10, 14),
            ("A", " honor", 14, 20),
        ]

    def test_full_range_reassigns_everything(self, make_utt):
        utterance = make_utt()
        result = seg.split_and_reassign(utterance, None, 0, 20, "B", "Judge")
        assert _shape(result) == [("B", "Objection your honor", 0, 20)]
        assert result[0].speaker_label == "Judge"

    def test_prefix_range_gives_two_segments(self, make_utt):
        utterance = make_utt()
        result = seg.split_and_reassign(utterance, None, 0, 9, "B")
        assert _shape(result) == [
            ("B", "Objection", 0, 9),
            ("A", " your honor", 9, 20),
        ]

    def test_range_spanning_several_segments(self, make_utt):
        utterance = make_utt()
        first = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.split_and_reassign(utterance, first, 5, 17, "C")
        assert _shape(result) == [
            ("A", "Objec", 0, 5),
            ("C", "tion your ho", 5, 17),
            ("A", "nor", 17, 20),
        ]

    def test_reassigning_to_the_neighbour_speaker_merges(self, make_utt):
        utterance = make_utt()
        first = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.split_and_reassign(utterance, first, 9, 10, "B")
        assert _shape(result) == [
            ("A", "Objection", 0, 9),
            ("B", " your", 9, 14),
            ("A", " honor", 14, 20),
        ]

    def test_splitting_back_to_original_collapses(self, make_utt):
        utterance = make_utt()
        first = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.split_and_reassign(utterance, first, 10, 14, "A")
        assert _shape(result) == [("A", "Objection your honor", 0, 20)]
        assert seg.is_trivial(utterance, result)

    @pytest.mark.parametrize("start,end", [(0, 0), (5, 3), (-1, 4), (10, 21)])
    def test_invalid_range_returns_unchanged_copy(self, make_utt, start, end):
        utterance = make_utt()
        current = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.split_and_reassign(utterance, current, start, end, "C")
        assert _shape(result) == _shape(current)
        assert result[0] is not current[0]

    def test_input_is_not_modified(self, make_utt):
        utterance = make_utt()
        current = seg.split_and_reassign(utterance, None, 10, 14, "B")
        before = _shape(current)
        seg.split_and_reassign(utterance, current, 0, 20, "C")
        assert _shape(current) == before

    def test_result_always_covers_the_text(self, make_utt):
        utterance = make_utt()
        current = None
        for start, end, speaker in [(0, 3, "B"), (2, 12, "C"), (15, 20, "B"), (1, 19, "A")]:
            current = seg.split_and_reassign(utterance, current, start, end, speaker)
            seg.check_segments(utterance, current)
            assert "".join(s.text for s in current) == utterance.text


# ---------------------------------------------------------------------------
# TestMergeAdjacent
# ---------------------------------------------------------------------------


class TestMergeAdjacent:

    def test_merges_same_speaker_runs(self):
        merged = seg.merge_adjacent([
            TextSegment("A", "Objection ", 0, 10),
            TextSegment("A", "your", 10, 14, speaker_label="Counsel"),
            TextSegment("B", " honor", 14, 20),
        ])
        assert _shape(merged) == [("A", "Objection your", 0, 14), ("B", " honor", 14, 20)]
        assert merged[0].speaker_label == "Counsel"

    def test_is_idempotent(self, make_utt):
        utterance = make_utt()
        once = seg.merge_adjacent(seg.split_and_reassign(utterance, None, 10, 14, "B"))
        assert _shape(seg.merge_adjacent(once)) == _shape(once)

    def test_empty_list(self):
        assert seg.merge_adjacent([]) == []


# ---------------------------------------------------------------------------
# TestReassignSegment
# ---------------------------------------------------------------------------


class TestReassignSegment:

    def test_reassign_middle_segment_back_merges_all(self, make_utt):
        utterance = make_utt()
        current = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.reassign_segment(current, 1, "A")
        assert _shape(result) == [("A", "Objection your honor", 0, 20)]

    def test_reassign_first_segment(self, make_utt):
        utterance = make_utt()
        current = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.reassign_segment(current, 0, "C", "Clerk")
        assert [s.speaker_id for s in result] == ["C", "B", "A"]
        assert result[0].speaker_label == "Clerk"

    def test_index_out_of_range(self, make_utt):
        current = seg.default_segments(make_utt())
        with pytest.raises(PreconditionError):
            seg.reassign_segment(current, 1, "B")


# ---------------------------------------------------------------------------
# TestDeleteSegment
# ---------------------------------------------------------------------------


class TestDeleteSegment:

    def test_delete_middle_merges_survivors_and_reindexes(self, make_utt):
        utterance = make_utt()
        current = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.delete_segment(current, 1)
        assert _shape(result) == [("A", "Objection  honor", 0, 16)]
        seg.check_segments(utterance, result, trimmed=True)

    def test_delete_first_reindexes_from_zero(self, make_utt):
        utterance = make_utt()
        current = seg.split_and_reassign(utterance, None, 10, 14, "B")
        result = seg.delete_segment(current, 0)
        assert _shape(result) == [("B", "your", 0, 4), ("A", " honor", 4, 10)]

    def test_delete_only_segment_gives_sentinel(self, make_utt):
        assert seg.delete_segment(seg.default_segments(make_utt()), 0) == []

    def test_index_out_of_range(self, make_utt):
        with pytest.raises(PreconditionError):
            seg.delete_segment(seg.default_segments(make_utt()), 3)


# ---------------------------------------------------------------------------
# TestCheckSegments
# ---------------------------------------------------------------------------


class TestCheckSegments:

    def test_deleted_sentinel_is_valid(self, make_utt):
        seg.check_segments(make_utt(), [])

    def test_rejects_adjacent_same_speaker(self, make_utt):
        with pytest.raises(InvariantError, match="share speaker"):
            seg.check_segments(make_utt(), [
                TextSegment("A", "Objection ", 0, 10),
                TextSegment("A", "your honor", 10, 20),
            ])

    def test_rejects_gap_in_offsets(self, make_utt):
        with pytest.raises(InvariantError, match="starts at"):
            seg.check_segments(make_utt(), [
                TextSegment("A", "Objection ", 0, 10),
                TextSegment("B", "your honor", 11, 21),
            ])

    def test_rejects_offsets_not_matching_text(self, make_utt):
        with pytest.raises(InvariantError, match="offsets"):
            seg.check_segments(make_utt(), [TextSegment("A", "Objection your honor", 0, 19)])

    def test_rejects_empty_segment(self, make_utt):
        with pytest.raises(InvariantError, match="empty"):
            seg.check_segments(make_utt(), [
                TextSegment("B", "", 0, 0),
                TextSegment("A", "Objection your honor", 0, 20),
            ])

    def test_rejects_text_that_differs_from_original(self, make_utt):
        with pytest.raises(InvariantError, match="reproduce"):
            seg.check_segments(make_utt(), [TextSegment("B", "Objection your honour", 0, 21)])

    def test_trimmed_accepts_in_order_subset(self, make_utt):
        seg.check_segments(make_utt(), [TextSegment("B", "your honor", 0, 10)], trimmed=True)

    def test_trimmed_rejects_reordered_text(self, make_utt):
        with pytest.raises(InvariantError, match="in-order subset"):
            seg.check_segments(make_utt(), [TextSegment("B", "honor your", 0, 10)], trimmed=True)


# ---------------------------------------------------------------------------
# TestValidateRange / TestIsTrivial
# ---------------------------------------------------------------------------


class TestValidateRange:

    def test_accepts_full_range(self, make_utt):
        seg.validate_range(seg.default_segments(make_utt()), 0, 20)

    @pytest.mark.parametrize("start,end", [(0, 0), (4, 2), (-1, 3), (0, 21)])
    def test_rejects_bad_ranges(self, make_utt, start, end):
        with pytest.raises(PreconditionError, match="Invalid character range"):
            seg.validate_range(seg.default_segments(make_utt()), start, end)

    def test_rejects_deleted_utterance(self):
        with pytest.raises(PreconditionError, match="deleted"):
            seg.validate_range([], 0, 1)


class TestIsTrivial:

    def test_default_segments_are_trivial(self, make_utt):
        utterance = make_utt()
        assert seg.is_trivial(utterance, seg.default_segments(utterance))

    def test_label_is_ignored(self, make_utt):
        utterance = make_utt()
        assert seg.is_trivial(utterance, [TextSegment("A", utterance.text, 0, 20, "Counsel")])

    def test_other_speaker_is_not_trivial(self, make_utt):
        utterance = make_utt()
        assert not seg.is_trivial(utterance, seg.reassign_entire_utterance(utterance, "B"))
