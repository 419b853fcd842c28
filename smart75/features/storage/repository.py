"""
Two-tier challenge repository.

The local tier is authoritative on write and is always written. The remote
tier, when configured and a user id is given, is preferred on read and
mirrored best-effort on write. A failed mirror is logged and otherwise
indistinguishable from a local-only save.
"""

import logging
from typing import Optional

from smart75.core.config import Settings, settings
from smart75.core.errors import RemoteConflictError, RemoteUnavailableError
from smart75.features.storage.backend import PersistenceBackend, RemoteStore
from smart75.features.storage.local import LocalFileStorage
from smart75.models.challenge import ChallengeState

logger = logging.getLogger(__name__)


class ChallengeRepository:
    """Load/save/clear the whole ChallengeState aggregate."""

    def __init__(self, local: PersistenceBackend, remote: Optional[RemoteStore] = None):
        self.local = local
        self.remote = remote

    def is_available(self) -> bool:
        return self.local.is_available()

    def load(self, user_id: Optional[str] = None) -> Optional[ChallengeState]:
        if user_id and self.remote is not None:
            try:
                state = self.remote.load_remote(user_id)
            except RemoteUnavailableError:
                logger.warning("remote.load.fallback", extra={"user_id": user_id, "event_type": "storage.load"})
            else:
                if state is not None:
                    return state
        return self.local.load()

    def save(self, state: ChallengeState, user_id: Optional[str] = None) -> bool:
        saved = self.local.save(state)
        if user_id and self.remote is not None:
            if not self.remote.save_remote(user_id, state):
                logger.warning("remote.save.local_only", extra={"user_id": user_id, "event_type": "storage.save"})
        return saved

    def remote_status(self) -> str:
        if self.remote is None:
            return "disabled"
        return "ok" if self.remote.ping() else "unreachable"

    def clear(self, user_id: Optional[str] = None) -> bool:
        cleared = self.local.clear()
        if user_id and self.remote is not None and not self.remote.delete_remote(user_id):
            logger.warning("remote.clear.failed", extra={"user_id": user_id, "event_type": "storage.clear"})
        return cleared

    def migrate(self, user_id: str, overwrite: bool = False) -> bool:
        """
        Copy the local record to remote storage for `user_id`.

        Returns:
            True if copied, False if there is no local record

        Raises:
            RemoteUnavailableError: no remote tier, or it cannot be reached
            RemoteConflictError: remote already holds data and overwrite is False
        """
        if self.remote is None:
            raise RemoteUnavailableError("Remote storage is not configured")

        local_state = self.local.load()
        if local_state is None:
            return False

        if not overwrite and self.remote.load_remote(user_id) is not None:
            raise RemoteConflictError("Remote storage already has data for this user")

        if not self.remote.save_remote(user_id, local_state):
            raise RemoteUnavailableError("Remote storage rejected the migration")
        logger.info("remote.migrated", extra={"user_id": user_id, "event_type": "storage.migrate"})
        return True


def build_repository(settings_obj: Optional[Settings] = None) -> ChallengeRepository:
    """Wire the local tier and, when enabled, the SQL remote tier from configuration."""
    cfg = settings_obj or settings
    local = LocalFileStorage(cfg.STORAGE_DIR, cfg.STORAGE_KEY)

    remote = None
    if cfg.REMOTE_SYNC_ENABLED and cfg.DATABASE_URL:
        from smart75.core.database import init_engine
        from smart75.features.storage.remote import SqlRemoteStore

        try:
            remote = SqlRemoteStore(init_engine(cfg.DATABASE_URL))
        except Exception:
            logger.error("remote.init.failed", exc_info=True, extra={"event_type": "storage.remote"})
            remote = None

    return ChallengeRepository(local, remote)
