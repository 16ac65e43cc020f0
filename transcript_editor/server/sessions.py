"""In-memory editing sessions with atomic edit batches and TTL cleanup.

WHY: A reviewer works on one transcript for a while, sending many small
edits from the review UI. The HTTP API needs to keep that transcript's
EditStore between requests, apply each batch of edits all-or-nothing,
and forget abandoned sessions.

HOW: Two components work together:
  Session: dataclass holding the EditStore, the user-defined speaker
    label map, document metadata and timing
  SessionStore: thread-safe dict-based store with create/snapshot,
    mutate-on-copy helpers and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock
- Writers copy the session's EditStore, change the copy and swap it in;
  a failing write leaves the session unchanged
- Readers get a snapshot, so rendering never races a concurrent edit
- snapshot/write helpers return None for unknown session ids
- TTL is measured from the last access (updated_at)
- Session IDs are UUID4 hex strings generated at creation time
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from transcript_editor.core.edit_store import EditStore
from transcript_editor.core.ir import TranscriptMetadata, Utterance
from transcript_editor.core.operations import EditOperation, apply_operations

logger = logging.getLogger(__name__)

# Default idle time before a session is discarded (seconds)
DEFAULT_TTL_SECONDS = 3600

T = TypeVar("T")


@dataclass
class Session:
    """State of one editing session.

    RULES:
    - id: UUID4 hex string, immutable after creation
    - store: the session's EditStore; replaced wholesale on every write
    - label_map: user-defined speaker names {speaker_id: label}
    - metadata: header details used by exports
    - created_at / updated_at: epoch seconds
    """

    id: str
    store: EditStore
    created_at: float
    updated_at: float
    label_map: Dict[str, str] = field(default_factory=dict)
    metadata: TranscriptMetadata = field(default_factory=TranscriptMetadata)


class SessionStore:
    """Thread-safe in-memory store for editing sessions.

    WHY: Concurrent requests may read and edit the same session. A
    central store with a lock and copy-then-swap writes keeps every
    request working on a consistent EditStore.

    HOW: Sessions live in a plain dict keyed by id. Writes run a callable
    against a copy of the session's EditStore under the lock and swap the
    copy in only if the callable returns normally.

    RULES:
    - create_session() raises ValueError when max_sessions is reached
    - Unknown session ids give None, never an exception
    - Exceptions raised by a write propagate and nothing is committed
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_sessions: int = 100,
    ) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create_session(
        self,
        utterances: Iterable[Utterance],
        label_map: Optional[Mapping[str, str]] = None,
        metadata: Optional[TranscriptMetadata] = None,
    ) -> Session:
        """Start a session on a transcript with no edits.

        RULES:
        - Raises PreconditionError for duplicate utterance ids or sequence
          indices (from EditStore)
        - Raises ValueError when the store is full
        """
        store = EditStore(utterances)

        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of concurrent sessions ({}) reached".format(
                        self.max_sessions
                    )
                )

            now = time.time()
            session = Session(
                id=uuid.uuid4().hex,
                store=store,
                created_at=now,
                updated_at=now,
                label_map=dict(label_map or {}),
                metadata=metadata or TranscriptMetadata(),
            )
            self._sessions[session.id] = session

        logger.info(
            "Created session %s (%d utterances)", session.id, len(store.utterances)
        )
        return session

    def snapshot(self, session_id: str) -> Optional[Session]:
        """An independent copy of the session for rendering, or None."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.updated_at = time.time()
            return replace(
                session,
                store=session.store.copy(),
                label_map=dict(session.label_map),
                metadata=replace(session.metadata),
            )

    def write(
        self,
        session_id: str,
        change: Callable[[EditStore], T],
    ) -> Optional[T]:
        """Run change() on a copy of the session's store and commit it.

        Returns change()'s result, or None for an unknown session. If
        change() raises, the session keeps its previous store.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            staged = session.store.copy()
            result = change(staged)
            session.store = staged
            session.updated_at = time.time()
        return result

    def apply(
        self,
        session_id: str,
        operations: List[EditOperation],
    ) -> Optional[Session]:
        """Apply a batch of operations atomically; returns the updated session."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.store = apply_operations(session.store, operations)
            session.updated_at = time.time()

        logger.info(
            "Applied %d operation(s) to session %s", len(operations), session_id
        )
        return session

    def set_label_map(
        self,
        session_id: str,
        label_map: Mapping[str, str],
    ) -> Optional[Session]:
        """Replace the session's user-defined speaker names."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.label_map = dict(label_map)
            session.updated_at = time.time()
            return session

    def delete_session(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        logger.info("Deleted session %s", session_id)
        return True

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def cleanup_expired(self, now: Optional[float] = None) -> int:
        """Remove sessions idle for longer than the TTL; returns how many."""
        now = time.time() if now is None else now
        expired: List[Session] = []

        with self._lock:
            for session_id, session in list(self._sessions.items()):
                if now - session.updated_at > self._ttl_seconds:
                    expired.append(self._sessions.pop(session_id))

        for session in expired:
            logger.info(
                "Expired session %s (idle %.0fs)", session.id, now - session.updated_at
            )

        return len(expired)
