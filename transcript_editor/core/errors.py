"""Exception types raised by the editing and pagination core.

WHY: Callers must be able to tell a rejected request (bad offsets, unknown
utterance, bad configuration) apart from an internal bug that produced a
corrupted segment list. The first is the caller's to report, the second
must never be swallowed.

RULES:
- PreconditionError is raised before any state is touched
- InvariantError means a bug; it is raised as soon as it is detected
"""

from __future__ import annotations


class PreconditionError(ValueError):
    """Raised when a request is invalid for the current state.

    Examples: an empty or out-of-range character range, a segment index
    that does not exist, a non-positive pagination setting.
    """


class UnknownUtteranceError(PreconditionError):
    """Raised when an utterance id is not part of the transcript."""

    def __init__(self, utterance_id: str) -> None:
        self.utterance_id = utterance_id
        super().__init__("Unknown utterance: {}".format(utterance_id))


class InvariantError(RuntimeError):
    """Raised when a segment list breaks the coverage or merge invariants."""
