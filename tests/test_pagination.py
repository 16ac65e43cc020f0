"""Tests for the pagination stage: prefixes, wrapping, numbering, pages.

HOW: Tests are organized by class, one per concern:
  - TestFormatTimestamp / TestWrapWords / TestSplitFirstLine: helpers
  - TestPaginationConfig: validation
  - TestBuildLines: prefixes, first-line width and the long-word rules
  - TestPaginate: page cutting, global numbering, empty input
  - TestRenderDocument: edits flowing through flatten + paginate

RULES:
- "[0:00] SPEAKER A: " is 18 characters, so the default first-line
  width for speaker A at 0 ms is 65 - 18 = 47
"""

from __future__ import annotations

import pytest

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.errors import PreconditionError
from transcript_editor.core.ir import RenderedSegment, Utterance
from transcript_editor.core.pagination import (
    PaginationConfig,
    build_lines,
    first_line_width,
    format_timestamp,
    paginate,
    render_document,
    split_first_line,
    wrap_words,
)
from transcript_editor.core.speakers import SpeakerLabels


def _segment(text, speaker="A", start_ms=0, label=None):
    return RenderedSegment(speaker, text, start_ms, start_ms + 1000, speaker_label=label)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestFormatTimestamp:

    @pytest.mark.parametrize("ms,expected", [
        (0, "0:00"),
        (999, "0:00"),
        (59_999, "0:59"),
        (61_000, "1:01"),
        (3_599_999, "59:59"),
        (3_600_000, "1:00:00"),
        (3_661_000, "1:01:01"),
    ])
    def test_format(self, ms, expected):
        assert format_timestamp(ms) == expected


class TestWrapWords:

    def test_greedy_wrap(self):
        assert wrap_words("aa bb cc dd", 5) == ["aa bb", "cc dd"]

    def test_long_word_alone_on_its_line(self):
        assert wrap_words("aa bbbbbbbbbbbb cc", 5) == ["aa", "bbbbbbbbbbbb", "cc"]

    def test_exact_fit(self):
        assert wrap_words("abcde", 5) == ["abcde"]


class TestSplitFirstLine:

    def test_takes_words_that_fit(self):
        assert split_first_line("alpha beta gamma", 10) == ("alpha beta", "gamma")

    def test_first_word_too_long(self):
        assert split_first_line("alphabet soup", 4) == ("", "alphabet soup")

    def test_everything_fits(self):
        assert split_first_line("alpha", 30) == ("alpha", "")


class TestPaginationConfig:

    def test_defaults(self):
        config = PaginationConfig()
        assert (config.chars_per_line, config.lines_per_page, config.min_first_line_width) == (65, 25, 30)

    @pytest.mark.parametrize("kwargs", [
        {"chars_per_line": 0},
        {"lines_per_page": -1},
        {"min_first_line_width": 0},
        {"chars_per_line": True},
        {"lines_per_page": "25"},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(PreconditionError, match="positive integer"):
            PaginationConfig(**kwargs)

    def test_first_line_width_floor(self):
        config = PaginationConfig()
        assert first_line_width("x" * 18, config) == 47
        assert first_line_width("x" * 59, config) == 30


# ---------------------------------------------------------------------------
# TestBuildLines
# ---------------------------------------------------------------------------


class TestBuildLines:

    def test_single_line_carries_prefix_fields(self):
        [line] = build_lines([_segment("Objection your honor", start_ms=1000)], PaginationConfig())
        assert line.line_number == 1
        assert line.text == "Objection your honor"
        assert line.speaker == "A"
        assert line.speaker_label == "Speaker A"
        assert line.timestamp == "0:01"
        assert line.prefix == "[0:01] SPEAKER A: "
        assert not line.is_continuation

    def test_wrapped_segment_first_line_shares_room_with_prefix(self):
        text = " ".join(["word"] * 30)
        lines = build_lines([_segment(text)], PaginationConfig())
        assert [len(line.text) for line in lines] == [44, 64, 39]
        assert [line.is_continuation for line in lines] == [False, True, True]
        assert lines[1].speaker is None
        assert lines[1].timestamp is None
        assert lines[1].prefix == ""
        assert " ".join(line.text for line in lines) == text

    def test_repeated_short_words_wrap_within_width(self):
        lines = build_lines([_segment("a " * 40)], PaginationConfig(chars_per_line=65))
        assert len(lines) >= 2
        assert all(len(line.text) <= 65 for line in lines)
        assert len(lines[0].prefix) + len(lines[0].text) <= 65

    def test_long_label_uses_minimum_first_line_width(self):
        labels = SpeakerLabels({"A": "X" * 50})
        text = " ".join(["word"] * 20)
        lines = build_lines([_segment(text)], PaginationConfig(), labels)
        assert len(lines[0].prefix) == 59
        assert len(lines[0].text) == 29
        assert len(lines[0].prefix) + len(lines[0].text) > 65

    def test_configurable_first_line_floor(self):
        labels = SpeakerLabels({"A": "X" * 50})
        text = " ".join(["word"] * 20)
        config = PaginationConfig(min_first_line_width=10)
        lines = build_lines([_segment(text)], config, labels)
        assert len(lines[0].text) == 9

    def test_first_word_wider_than_first_line(self):
        word = "Supercalifragilisticexpialidocious"
        config = PaginationConfig(chars_per_line=45, min_first_line_width=10)
        lines = build_lines([_segment(word + " indeed")], config)
        assert lines[0].text == ""
        assert lines[0].prefix == "[0:00] SPEAKER A: "
        assert [line.text for line in lines[1:]] == [word + " indeed"]
        assert lines[1].is_continuation

    def test_word_longer_than_line_is_not_split(self):
        word = "x" * 80
        lines = build_lines([_segment("short " + word + " end")], PaginationConfig())
        assert [line.text for line in lines] == ["short", word, "end"]

    def test_display_label_resolution(self):
        labels = SpeakerLabels({"B": "The Court"})
        lines = build_lines(
            [_segment("Overruled", speaker="B"), _segment("Thanks", speaker="C", label="Witness")],
            PaginationConfig(),
            labels,
        )
        assert lines[0].prefix == "[0:00] THE COURT: "
        assert lines[1].speaker_label == "Witness"

    def test_line_numbers_are_global(self):
        lines = build_lines(
            [_segment(" ".join(["word"] * 30)), _segment("Yes", speaker="B")],
            PaginationConfig(),
        )
        assert [line.line_number for line in lines] == [1, 2, 3, 4]


# ---------------------------------------------------------------------------
# TestPaginate
# ---------------------------------------------------------------------------


class TestPaginate:

    def _segments(self, count):
        speakers = ["A", "B"]
        return [_segment("Line {}".format(i), speaker=speakers[i % 2]) for i in range(count)]

    def test_pages_of_fixed_size(self):
        document = paginate(self._segments(7), PaginationConfig(lines_per_page=3))
        assert [len(p.lines) for p in document.pages] == [3, 3, 1]
        assert [p.page_number for p in document.pages] == [1, 2, 3]

    def test_numbering_continues_across_pages(self):
        document = paginate(self._segments(5), PaginationConfig(lines_per_page=2))
        assert [line.line_number for line in document.pages[1].lines] == [3, 4]
        last = document.pages[-1].lines[-1]
        assert last.line_number == sum(len(p.lines) for p in document.pages)
        assert document.line_count == 5

    def test_default_page_size(self):
        document = paginate(self._segments(26))
        assert document.page_count == 2
        assert len(document.pages[1].lines) == 1

    def test_empty_input_gives_zero_pages(self):
        document = paginate([])
        assert document.pages == []
        assert document.is_empty
        assert document.to_dict() == {"pages": []}

    def test_deterministic(self):
        segments = self._segments(30)
        config = PaginationConfig(lines_per_page=4)
        assert paginate(segments, config).to_dict() == paginate(segments, config).to_dict()

    def test_to_dict_shape(self):
        document = paginate([_segment(" ".join(["word"] * 12))])
        lines = document.to_dict()["pages"][0]["lines"]
        assert lines[0] == {
            "lineNumber": 1,
            "speaker": "A",
            "speakerLabel": "Speaker A",
            "timestamp": "0:00",
            "text": " ".join(["word"] * 9),
            "isContinuation": False,
        }
        assert lines[1] == {
            "lineNumber": 2,
            "text": "word word word",
            "isContinuation": True,
        }


# ---------------------------------------------------------------------------
# TestRenderDocument
# ---------------------------------------------------------------------------


class TestRenderDocument:

    def test_end_to_end_unedited(self):
        store = EditStore([Utterance("u1", "A", "Objection your honor", 1000, 3000, 0)])
        document = render_document(store)
        [line] = list(document.lines())
        assert line.prefix + line.text == "[0:01] SPEAKER A: Objection your honor"

    def test_end_to_end_split_to_end(self):
        store = EditStore([Utterance("u1", "A", "Objection your honor", 1000, 3000, 0)])
        segments = store.split_and_reassign("u1", 10, 20, "B")
        assert [(s.speaker_id, s.text) for s in segments] == [("A", "Objection "), ("B", "your honor")]
        assert sum(len(s.text) for s in segments) == 20

    def test_end_to_end_split_in_middle(self):
        store = EditStore([Utterance("u1", "A", "Objection your honor", 1000, 3000, 0)])
        store.split_and_reassign("u1", 10, 14, "B")
        lines = list(render_document(store).lines())
        assert [(line.speaker, line.text) for line in lines] == [
            ("A", "Objection "),
            ("B", "your"),
            ("A", " honor"),
        ]
        assert all(line.timestamp == "0:01" for line in lines)

    def test_edit_label_and_label_map(self, store, hearing_labels):
        store.split_and_reassign("u1", 10, 14, "B", "Judge Smith")
        document = render_document(store, label_map=hearing_labels)
        prefixes = [line.prefix for line in document.lines()]
        assert prefixes[:3] == [
            "[0:00] MR. JONES: ",
            "[0:00] JUDGE SMITH: ",
            "[0:00] MR. JONES: ",
        ]
        assert prefixes[3] == "[0:02] JUDGE SMITH: "

    def test_hour_timestamp(self, store):
        lines = list(render_document(store).lines())
        assert lines[-1].prefix == "[1:01:01] WITNESS: "

    def test_deleted_utterance_not_rendered(self, store):
        store.delete_utterance("u2")
        texts = [line.text for line in render_document(store).lines()]
        assert not any("Sustained" in t for t in texts)
        store.restore_utterance("u2")
        texts = [line.text for line in render_document(store).lines()]
        assert "Sustained" in texts

    def test_all_deleted_is_empty_document(self, store):
        for utterance in store.utterances:
            store.delete_utterance(utterance.id)
        assert render_document(store).page_count == 0
