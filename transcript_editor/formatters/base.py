"""Abstract base formatter and output container.

WHY: Every output format consumes the same PaginatedDocument but produces
different file content. This base class enforces a consistent interface
so the CLI and the HTTP API can work with any formatter generically, and
so no formatter is tempted to re-wrap lines on its own.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content (string or bytes) and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; most formatters return one item
- ``suffix`` starts with a hyphen, e.g. ``"-transcript.txt"``
- Formatters print lines and pages exactly as given; they never re-wrap
- A document with zero pages is an empty transcript, not an error
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from transcript_editor.core.ir import PaginatedDocument, TranscriptMetadata


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-transcript.txt"`` → ``"hearing-transcript.txt"``.
        content: The file content as a string (text, JSON) or bytes
                 (binary formats rendered by external back-ends).
        media_type: MIME type for the content, e.g. ``"text/plain"``.
    """

    suffix: str
    content: str | bytes
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Plain Text'."""

    @property
    @abstractmethod
    def suffix(self) -> str:
        """Suffix of the (first) produced file."""

    @abstractmethod
    def format(
        self,
        document: PaginatedDocument,
        metadata: Optional[TranscriptMetadata] = None,
    ) -> List[FormatterOutput]:
        """Render the page model into one or more output files.

        Args:
            document: Pages and numbered lines from the pagination stage.
            metadata: Recording details for the header; defaults apply
                      when None.

        Returns:
            List of FormatterOutput objects, each containing a file suffix,
            content string/bytes, and MIME type.
        """
