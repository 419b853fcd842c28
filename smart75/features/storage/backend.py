"""
Storage protocols.

Defines the interfaces for the local tier (authoritative on write) and the
optional remote tier (best-effort mirror keyed by an opaque user id), so that
local-only and local+remote configurations share one transition engine.
"""
from typing import Optional, Protocol

from smart75.models.challenge import ChallengeState


class PersistenceBackend(Protocol):
    """
    Protocol for a single-record local store.

    Implementations must:
    - treat an unreadable or malformed record as "no data"
    - write the whole aggregate on every save
    """

    key: str

    def load(self) -> Optional[ChallengeState]:
        """
        Load the stored state.

        Returns:
            ChallengeState, or None when nothing (valid) is stored
        """
        ...

    def save(self, state: ChallengeState) -> bool:
        """
        Replace the stored record with `state`.

        Returns:
            True if written, False on storage failure
        """
        ...

    def clear(self) -> bool:
        """Remove the stored record. Returns False on storage failure."""
        ...

    def is_available(self) -> bool:
        """Capability probe, run once at startup."""
        ...


class RemoteStore(Protocol):
    """
    Protocol for the remote tier: one record per user, upsert semantics.

    Read failures raise RemoteUnavailableError; writes return False instead.
    """

    def load_remote(self, user_id: str) -> Optional[ChallengeState]:
        ...

    def save_remote(self, user_id: str, state: ChallengeState) -> bool:
        ...

    def delete_remote(self, user_id: str) -> bool:
        ...

    def ping(self) -> bool:
        """True when the remote tier can be reached."""
        ...
