"""JSON page-model formatter for external PDF and Word back-ends.

WHY: The PDF and Word renderers run outside this package. They must not
wrap or paginate on their own, or their line numbers drift from the
plain text export. Handing them the finished page model as JSON is the
contract that keeps every format in step.

HOW: Serializes TranscriptMetadata and PaginatedDocument.to_dict() into
one JSON object with page and line totals. The structure is described
by paginated_document_schema.json next to this module.

RULES:
- Keys are camelCase, matching the rest of the external interface
- speaker, speakerLabel and timestamp appear only on first lines
- pages is [] for an empty transcript
- Output suffix: "-document.json"; media type: "application/json"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from transcript_editor.core.ir import PaginatedDocument, TranscriptMetadata
from transcript_editor.formatters.base import BaseFormatter, FormatterOutput

SCHEMA_PATH = Path(__file__).resolve().parent / "paginated_document_schema.json"


def document_payload(
    document: PaginatedDocument,
    metadata: Optional[TranscriptMetadata] = None,
) -> Dict[str, Any]:
    """The JSON-ready dict written by JSONDocumentFormatter."""
    metadata = metadata or TranscriptMetadata()
    payload: Dict[str, Any] = {
        "metadata": metadata.to_dict(),
        "pageCount": document.page_count,
        "lineCount": document.line_count,
    }
    payload.update(document.to_dict())
    return payload


class JSONDocumentFormatter(BaseFormatter):
    """Formatter that writes the paginated line model as JSON."""

    @property
    def name(self) -> str:
        return "Paginated Document JSON"

    @property
    def suffix(self) -> str:
        return "-document.json"

    def format(
        self,
        document: PaginatedDocument,
        metadata: Optional[TranscriptMetadata] = None,
    ) -> List[FormatterOutput]:
        content = json.dumps(
            document_payload(document, metadata),
            indent=2,
            ensure_ascii=False,
        )
        return [
            FormatterOutput(
                suffix=self.suffix,
                content=content + "\n",
                media_type="application/json",
            )
        ]
