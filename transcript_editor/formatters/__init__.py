"""Output formatter registry: pluggable format hub.

WHY: The CLI and the HTTP API need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["plain_text"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and URLs)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
- PDF and Word back-ends live outside this package and consume the
  json_document output
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from transcript_editor.formatters.json_document import JSONDocumentFormatter
from transcript_editor.formatters.plain_text import PlainTextFormatter

if TYPE_CHECKING:
    from transcript_editor.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "plain_text": PlainTextFormatter,
    "json_document": JSONDocumentFormatter,
}
