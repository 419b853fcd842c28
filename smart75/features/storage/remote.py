"""
SQL-backed remote tier.

One row per user in `challenge_states`. Saves are upserts: the last writer
wins and nothing is merged.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from smart75.core.database import challenge_states, check_connection, create_all_tables, get_db_session
from smart75.core.errors import RemoteUnavailableError, SerializationError
from smart75.core.logging import get_logger
from smart75.models.challenge import ChallengeState, decode_state, encode_state

logger = get_logger("storage.remote")


class SqlRemoteStore:
    """Remote store over any SQLAlchemy engine (PostgreSQL in production)."""

    def __init__(self, engine: Optional[Engine] = None, *, create_tables: bool = True):
        self._engine = engine
        if create_tables:
            create_all_tables(engine)

    def load_remote(self, user_id: str) -> Optional[ChallengeState]:
        """
        Fetch the user's record.

        Returns:
            ChallengeState, or None if nothing valid is stored

        Raises:
            RemoteUnavailableError: if the database cannot be queried
        """
        try:
            with get_db_session(self._engine) as session:
                row = session.execute(
                    select(challenge_states.c.state).where(challenge_states.c.user_id == user_id)
                ).first()
        except SQLAlchemyError as exc:
            raise RemoteUnavailableError("Remote storage is unavailable") from exc

        if row is None:
            return None
        try:
            return decode_state(row.state)
        except SerializationError:
            logger.warning("remote.load.corrupt", extra={"user_id": user_id, "event_type": "storage.corrupt"})
            return None

    def save_remote(self, user_id: str, state: ChallengeState) -> bool:
        document = encode_state(state)
        now = datetime.now(timezone.utc)
        try:
            with get_db_session(self._engine) as session:
                exists = session.execute(
                    select(challenge_states.c.user_id).where(challenge_states.c.user_id == user_id)
                ).first()
                if exists:
                    session.execute(
                        update(challenge_states)
                        .where(challenge_states.c.user_id == user_id)
                        .values(state=document, updated_at=now)
                    )
                else:
                    session.execute(
                        insert(challenge_states).values(user_id=user_id, state=document, updated_at=now)
                    )
        except SQLAlchemyError:
            logger.error("remote.save.failed", exc_info=True, extra={"user_id": user_id, "event_type": "storage.save"})
            return False
        return True

    def delete_remote(self, user_id: str) -> bool:
        try:
            with get_db_session(self._engine) as session:
                session.execute(delete(challenge_states).where(challenge_states.c.user_id == user_id))
        except SQLAlchemyError:
            logger.error("remote.delete.failed", exc_info=True, extra={"user_id": user_id, "event_type": "storage.clear"})
            return False
        return True

    def ping(self) -> bool:
        return check_connection(self._engine)
