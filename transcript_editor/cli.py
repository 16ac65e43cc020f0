"""Command-line interface for the transcript editor.

WHY: Transcripts are often finalized in batch: a JSON export from the
transcription service plus a file of reviewer edits goes in, the
paginated transcript comes out. The CLI runs the same engine as the HTTP
API without a server.

HOW: Uses argparse to accept the transcript JSON, an optional edits file,
format selection, output directory and header overrides. Loads the
utterances into an EditStore, applies the edits atomically, renders the
paginated document and runs each selected formatter. Status messages go
to stderr; output files are saved next to the input (or to --output-dir).

RULES:
- Positional argument: transcript JSON, either a list of utterance
  records or an object with "utterances", optional "speakerLabels" and
  optional "metadata"
- --edits: JSON list of edit operations (or an object with "operations")
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts
  (-transcript-2.txt)
- Invalid input or edits: "Error: ..." on stderr, exit code 1
- Python 3.9 compatible: no match/case, no X | Y unions
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from transcript_editor.config import load_pagination_config
from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.errors import PreconditionError
from transcript_editor.core.ir import TranscriptMetadata, Utterance
from transcript_editor.core.operations import apply_operations, parse_operations
from transcript_editor.core.pagination import render_document
from transcript_editor.core.transcript import (
    load_label_map,
    load_utterances,
    metadata_from_dict,
)
from transcript_editor.formatters import FORMATTERS
from transcript_editor.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


def _read_json(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise PreconditionError("{} is not valid JSON: {}".format(path.name, exc)) from None


def load_transcript_file(
    path: Path,
) -> Tuple[List[Utterance], Dict[str, str], TranscriptMetadata]:
    """Read utterances, speaker labels and header metadata from a JSON file.

    RULES:
    - A top-level list is taken as the utterance records
    - A top-level object must have "utterances"; "speakerLabels" and
      "metadata" are optional
    """
    data = _read_json(path)
    if isinstance(data, list):
        return load_utterances(data), {}, TranscriptMetadata()
    if not isinstance(data, dict) or "utterances" not in data:
        raise PreconditionError(
            "{} must contain a list of utterances or an object with 'utterances'".format(
                path.name
            )
        )
    return (
        load_utterances(data["utterances"]),
        load_label_map(data.get("speakerLabels") or data.get("speaker_labels")),
        metadata_from_dict(data.get("metadata")),
    )


def load_edits_file(path: Path) -> List[Dict[str, Any]]:
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("operations")
    if not isinstance(data, list):
        raise PreconditionError(
            "{} must contain a list of operations".format(path.name)
        )
    return data


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Return {stem}{suffix}, or the first free numbered variant.

    RULES:
    - First attempt: {stem}{suffix} (e.g. hearing-transcript.txt)
    - Conflict: the counter goes before the extension
      (hearing-transcript-2.txt), starting at 2
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name, suffix_ext = suffix[:dot_idx], suffix[dot_idx:]
    else:
        suffix_name, suffix_ext = suffix, ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")
    return path


def _parse_format_keys(raw: Optional[str]) -> List[str]:
    if not raw:
        return list(FORMATTERS.keys())
    keys = [k.strip() for k in raw.split(",") if k.strip()]
    for key in keys:
        if key not in FORMATTERS:
            raise PreconditionError(
                "Unknown format '{}'. Available: {}".format(
                    key, ", ".join(sorted(FORMATTERS.keys()))
                )
            )
    return keys


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def run(args: argparse.Namespace) -> List[Path]:
    """Load, edit, paginate and format; returns the saved paths.

    Raises PreconditionError or ValueError for invalid input, and OSError
    when a file cannot be read or written.
    """
    input_path = Path(args.input_file)
    if not input_path.is_file():
        raise PreconditionError("File not found: {}".format(input_path))

    format_keys = _parse_format_keys(args.formats)
    output_dir = Path(args.output_dir) if args.output_dir else input_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    _status("Loading transcript: {}".format(input_path.name))
    utterances, label_map, metadata = load_transcript_file(input_path)
    if args.title:
        metadata.title = args.title
    if args.subtitle:
        metadata.subtitle = args.subtitle
    store = EditStore(utterances)
    _status("  {} utterances".format(len(store.utterances)))

    if args.edits:
        records = load_edits_file(Path(args.edits))
        store = apply_operations(store, parse_operations(records))
        summary = store.summary()
        _status("  Applied {} edit(s): {} utterance(s) edited, {} deleted".format(
            len(records),
            summary.edited_utterance_count,
            summary.deleted_utterance_count,
        ))

    document = render_document(store, load_pagination_config(), label_map)
    _status("  {} page(s), {} line(s)".format(document.page_count, document.line_count))

    _status("Formatting output...")
    saved: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        for output in formatter.format(document, metadata):
            path = _save_output(output, input_path.stem, output_dir)
            saved.append(path)
            _status("  Saved: {}".format(path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))
    return saved


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser; tests inspect it without running anything."""
    parser = argparse.ArgumentParser(
        prog="transcript-editor",
        description="Apply speaker-attribution edits to a diarized transcript and "
                    "render a page- and line-numbered document.",
    )

    parser.add_argument(
        "input_file",
        help="Transcript JSON: a list of utterances, or an object with "
             "'utterances', 'speakerLabels' and 'metadata'.",
    )

    parser.add_argument(
        "--edits",
        default=None,
        help="JSON file with a list of edit operations to apply.",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--title",
        default=None,
        help="Document title (overrides the input metadata).",
    )

    parser.add_argument(
        "--subtitle",
        default=None,
        help="Document subtitle (overrides the input metadata).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the transcript-editor console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        run(args)
    except (ValueError, OSError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
