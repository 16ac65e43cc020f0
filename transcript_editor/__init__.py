"""Transcript Editor: speaker reattribution and paginated transcript export.

WHY: Machine diarization gets speaker turns wrong, sometimes in the middle
of an utterance. Reviewers need to move spans of text to the right speaker
and then export a court-style transcript whose page and line numbers are
the same in every output format.

HOW: Four-stage pipeline: segment editing (per-utterance speaker spans),
the edit store (deviations from the original attribution), flattening
(one ordered stream of speaker turns) and pagination (numbered lines and
pages). Formatters render the page model; they never re-wrap text.

RULES:
- Utterances are immutable; edits only reassign speakers, never wording
- Every renderer consumes the same PaginatedDocument
- Adding a new output format = one new formatter module, no core changes
"""

__version__ = "0.1.0"
