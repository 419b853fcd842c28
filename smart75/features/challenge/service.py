from __future__ import annotations

import threading
from datetime import tzinfo
from typing import Callable, Optional, Sequence

from smart75.core import clock
from smart75.core.errors import NotFoundError, StorageUnavailableError
from smart75.core.logging import log_event
from smart75.features.challenge import transitions
from smart75.features.storage.repository import ChallengeRepository
from smart75.models.challenge import DEFAULT_RULES, ChallengeState, Rule


class ChallengeService:
    """
    Session holder for one challenge record.

    Reads go straight to the repository. Writes load, apply one transition and
    save the whole aggregate under a lock, so two requests never transform the
    same stale snapshot.
    """

    def __init__(self, repository: ChallengeRepository, tz: Optional[tzinfo] = None):
        self.repository = repository
        self._tz = tz
        self._lock = threading.Lock()
        self._available: Optional[bool] = None

    def today(self) -> str:
        return clock.today(self._tz)

    def is_available(self) -> bool:
        if self._available is None:
            self._available = self.repository.is_available()
        return self._available

    def ensure_available(self) -> None:
        if not self.is_available():
            raise StorageUnavailableError(
                "Storage is unavailable. This app needs writable local storage to run."
            )

    def load(self, user_id: Optional[str] = None) -> Optional[ChallengeState]:
        return self.repository.load(user_id)

    def start(
        self,
        *,
        rules: Optional[Sequence[Rule]] = None,
        start_date: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ChallengeState:
        with self._lock:
            existing = self.repository.load(user_id)
            state = transitions.initialize(
                rules if rules is not None else DEFAULT_RULES,
                start_date or self.today(),
                existing=existing,
            )
            self._persist(state, user_id, "challenge.initialize")
            return state

    def toggle_task(self, rule_id: int, *, today: str, user_id: Optional[str] = None) -> ChallengeState:
        return self._apply(user_id, "challenge.toggle_task", lambda s: transitions.toggle_task(s, rule_id, today))

    def set_reflection(self, text: str, *, today: str, user_id: Optional[str] = None) -> ChallengeState:
        return self._apply(user_id, "challenge.set_reflection", lambda s: transitions.set_reflection(s, text, today))

    def reset(self, *, today: str, user_id: Optional[str] = None) -> ChallengeState:
        return self._apply(user_id, "challenge.reset", lambda s: transitions.reset_challenge(s, today))

    def update_start_date(self, new_date: str, *, today: str, user_id: Optional[str] = None) -> ChallengeState:
        return self._apply(
            user_id, "challenge.update_start_date", lambda s: transitions.update_start_date(s, new_date, today)
        )

    def update_rules(
        self, new_rules: Sequence[Rule], *, reset: bool, today: str, user_id: Optional[str] = None
    ) -> ChallengeState:
        if reset:
            return self._apply(user_id, "challenge.update_rules", lambda s: transitions.update_rules(s, new_rules, today))
        return self._apply(
            user_id, "challenge.update_rules_without_reset", lambda s: transitions.update_rules_without_reset(s, new_rules)
        )

    def acknowledge_victory(self, *, today: str, user_id: Optional[str] = None) -> ChallengeState:
        return self._apply(user_id, "challenge.acknowledge_victory", lambda s: transitions.acknowledge_victory(s, today))

    def clear(self, *, user_id: Optional[str] = None) -> None:
        with self._lock:
            if not transitions.clear_all_data(self.repository, user_id):
                log_event(
                    "warning",
                    "challenge.clear_failed",
                    user_id=user_id,
                    event_type="challenge.clear_all_data",
                    error_code="storage_unavailable",
                )
                raise StorageUnavailableError("Stored data could not be cleared")
            log_event("info", "challenge.cleared", user_id=user_id, event_type="challenge.clear_all_data")

    def migrate(self, user_id: str, *, overwrite: bool = False) -> bool:
        with self._lock:
            return self.repository.migrate(user_id, overwrite=overwrite)

    # Internal helpers -------------------------------------------------
    def _apply(
        self,
        user_id: Optional[str],
        event_type: str,
        transition: Callable[[ChallengeState], ChallengeState],
    ) -> ChallengeState:
        with self._lock:
            state = self.repository.load(user_id)
            if state is None or not state.is_active:
                raise NotFoundError("No active challenge. Start one first.")
            updated = transition(state)
            self._persist(updated, user_id, event_type)
            return updated

    def _persist(self, state: ChallengeState, user_id: Optional[str], event_type: str) -> None:
        saved = self.repository.save(state, user_id)
        log_event(
            "info" if saved else "warning",
            "challenge.saved" if saved else "challenge.save_failed",
            user_id=user_id,
            event_type=event_type,
            extra={"current_streak": state.challenge.current_streak},
        )
