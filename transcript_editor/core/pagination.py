"""Pagination stage: rendered segments → numbered lines → fixed-size pages.

WHY: A court transcript is cited by page and line. The plain text file,
the PDF and the Word document must therefore break lines and pages in
exactly the same places. Doing the wrapping once, here, and handing the
result to every renderer is what guarantees that.

HOW: For each rendered segment, build the "[ts] LABEL: " prefix, pack
words greedily onto a first line whose width is reduced by the prefix,
wrap the rest at full width, and number every line with a global
counter. Lines are then cut into pages of lines_per_page.

RULES:
- Widths count raw characters, not visual width
- First-line width = chars_per_line - len(prefix), floored at
  min_first_line_width (so a long label can overflow chars_per_line)
- Words split on single spaces and are never broken; a word longer than
  the width sits alone on its own, overflowing line
- If even the first word does not fit the first line, the first line is
  empty and carries only the prefix
- Line numbers start at 1 and never reset; the last page may be short
- Pure function of (segments, config, labels): no hidden state
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import List, Mapping, Optional, Tuple

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.errors import PreconditionError
from transcript_editor.core.flatten import flatten
from transcript_editor.core.ir import (
    DocumentLine,
    DocumentPage,
    PaginatedDocument,
    RenderedSegment,
    format_prefix,
)
from transcript_editor.core.speakers import SpeakerLabels

DEFAULT_CHARS_PER_LINE = 65
DEFAULT_LINES_PER_PAGE = 25  # standard legal transcript page
DEFAULT_MIN_FIRST_LINE_WIDTH = 30


@dataclass(frozen=True)
class PaginationConfig:
    """Line and page geometry shared by every renderer.

    RULES:
    - All values are positive integers
    - min_first_line_width is the floor applied to the first line of a
      turn when the prefix leaves less room than that
    """

    chars_per_line: int = DEFAULT_CHARS_PER_LINE
    lines_per_page: int = DEFAULT_LINES_PER_PAGE
    min_first_line_width: int = DEFAULT_MIN_FIRST_LINE_WIDTH

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise PreconditionError(
                    "{} must be a positive integer, got {!r}".format(f.name, value)
                )


def format_timestamp(ms: int) -> str:
    """Render milliseconds as H:MM:SS, or M:SS under an hour; sub-seconds are dropped."""
    total_seconds = ms // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return "{}:{:02d}:{:02d}".format(hours, minutes, seconds)
    return "{}:{:02d}".format(minutes, seconds)


def wrap_words(text: str, width: int) -> List[str]:
    """Greedy word wrap at width; over-long words get a line of their own."""
    lines: List[str] = []
    current = ""
    for word in text.split(" "):
        candidate = "{} {}".format(current, word) if current else word
        if len(candidate) <= width:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def split_first_line(text: str, width: int) -> Tuple[str, str]:
    """Take as many leading words as fit in width.

    Returns (first_line, remaining_text). first_line is "" when the
    first word alone is wider than width.
    """
    words = text.split(" ")
    taken = 0
    length = 0
    while taken < len(words):
        needed = length + (1 if length > 0 else 0) + len(words[taken])
        if needed > width:
            break
        length = needed
        taken += 1
    return " ".join(words[:taken]), " ".join(words[taken:])


def first_line_width(prefix: str, config: PaginationConfig) -> int:
    return max(config.chars_per_line - len(prefix), config.min_first_line_width)


def wrap_segment(text: str, prefix: str, config: PaginationConfig) -> List[str]:
    """Wrap one turn's text into line texts, the first one sharing room with prefix."""
    first, remaining = split_first_line(text, first_line_width(prefix, config))
    lines = [first]
    if remaining:
        lines.extend(wrap_words(remaining, config.chars_per_line))
    return lines


def build_lines(
    rendered: List[RenderedSegment],
    config: PaginationConfig,
    labels: Optional[SpeakerLabels] = None,
) -> List[DocumentLine]:
    """Turn rendered segments into globally numbered DocumentLines."""
    labels = labels or SpeakerLabels()
    lines: List[DocumentLine] = []
    line_number = 1

    for segment in rendered:
        display = labels.display_label(segment.speaker_id, segment.speaker_label)
        timestamp = format_timestamp(segment.start_ms)
        prefix = format_prefix(timestamp, display)

        for index, text in enumerate(wrap_segment(segment.text, prefix, config)):
            if index == 0:
                lines.append(DocumentLine(
                    line_number=line_number,
                    text=text,
                    is_continuation=False,
                    speaker=segment.speaker_id,
                    speaker_label=display,
                    timestamp=timestamp,
                ))
            else:
                lines.append(DocumentLine(
                    line_number=line_number,
                    text=text,
                    is_continuation=True,
                ))
            line_number += 1

    return lines


def paginate_lines(lines: List[DocumentLine], lines_per_page: int) -> List[DocumentPage]:
    """Cut lines into pages of lines_per_page; the last page keeps the remainder."""
    if lines_per_page <= 0:
        raise PreconditionError("lines_per_page must be positive")
    return [
        DocumentPage(
            page_number=page_index + 1,
            lines=lines[start:start + lines_per_page],
        )
        for page_index, start in enumerate(range(0, len(lines), lines_per_page))
    ]


def paginate(
    rendered: List[RenderedSegment],
    config: Optional[PaginationConfig] = None,
    labels: Optional[SpeakerLabels] = None,
) -> PaginatedDocument:
    """Build the page model for a rendered segment stream.

    Zero segments produce a document with zero pages.
    """
    config = config or PaginationConfig()
    lines = build_lines(rendered, config, labels)
    return PaginatedDocument(pages=paginate_lines(lines, config.lines_per_page))


def render_document(
    store: EditStore,
    config: Optional[PaginationConfig] = None,
    label_map: Optional[Mapping[str, str]] = None,
) -> PaginatedDocument:
    """Flatten the store's current state and paginate it."""
    labels = SpeakerLabels.from_store(store, label_map)
    return paginate(flatten(store), config, labels)
