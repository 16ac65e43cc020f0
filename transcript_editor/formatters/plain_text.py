"""Plain text transcript formatter with page banners and line numbers.

WHY: Courts and reviewers cite transcripts by page and line. The plain
text export is the simplest format that carries those numbers, and it
must agree with the PDF and Word exports line for line.

HOW: Prints a header block (title, subtitle, recording metadata), then
every page of the PaginatedDocument under a "Page N of M" banner. Each
line is printed as its global line number, right-aligned to the widest
number, followed by the line's prefix (first lines only) and text. A
closing summary line reports page and line counts.

RULES:
- Lines and pages come from the document unchanged; no re-wrapping
- Line numbers are right-aligned to the width of the largest number
- Continuation lines carry no prefix
- No trailing whitespace on any line
- A zero-page document prints "No transcript content."
- Output suffix: "-transcript.txt"; media type: "text/plain"
"""

from __future__ import annotations

from typing import List, Optional

from transcript_editor.core.ir import DocumentLine, PaginatedDocument, TranscriptMetadata
from transcript_editor.formatters.base import BaseFormatter, FormatterOutput

_RULE_WIDTH = 50


def format_duration(seconds: float) -> str:
    """Render a recording duration as "1h 2m 3s", "2m 3s" or "3s"."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return "{}h {}m {}s".format(hours, minutes, secs)
    if minutes > 0:
        return "{}m {}s".format(minutes, secs)
    return "{}s".format(secs)


def _header_lines(metadata: TranscriptMetadata) -> List[str]:
    lines = [metadata.title]
    if metadata.subtitle:
        lines.append(metadata.subtitle)
    lines.append("=" * _RULE_WIDTH)

    details: List[str] = []
    if metadata.source_filename:
        details.append("Recording: {}".format(metadata.source_filename))
    if metadata.case_number:
        details.append("Case Number: {}".format(metadata.case_number))
    if metadata.court_name:
        details.append("Court: {}".format(metadata.court_name))
    if metadata.recording_date:
        details.append("Date: {}".format(metadata.recording_date))
    if metadata.duration_s:
        details.append("Duration: {}".format(format_duration(metadata.duration_s)))
    if details:
        lines.append("")
        lines.extend(details)

    return lines


def _format_line(line: DocumentLine, number_width: int) -> str:
    return "{number:>{width}}  {prefix}{text}".format(
        number=line.line_number,
        width=number_width,
        prefix=line.prefix,
        text=line.text,
    ).rstrip()


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces a paginated, line-numbered plain text transcript."""

    @property
    def name(self) -> str:
        return "Plain Text"

    @property
    def suffix(self) -> str:
        return "-transcript.txt"

    def format(
        self,
        document: PaginatedDocument,
        metadata: Optional[TranscriptMetadata] = None,
    ) -> List[FormatterOutput]:
        metadata = metadata or TranscriptMetadata()
        out = _header_lines(metadata)

        if document.is_empty:
            out.append("")
            out.append("No transcript content.")
        else:
            number_width = len(str(document.line_count))
            for page in document.pages:
                out.append("")
                out.append("-" * _RULE_WIDTH)
                out.append("Page {} of {}".format(page.page_number, document.page_count))
                out.append("-" * _RULE_WIDTH)
                for line in page.lines:
                    out.append(_format_line(line, number_width))

        out.append("")
        out.append("=" * _RULE_WIDTH)
        out.append("End of transcript: {} page{}, {} line{}".format(
            document.page_count, "" if document.page_count == 1 else "s",
            document.line_count, "" if document.line_count == 1 else "s",
        ))

        return [
            FormatterOutput(
                suffix=self.suffix,
                content="\n".join(out) + "\n",
                media_type="text/plain",
            )
        ]
