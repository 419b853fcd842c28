"""
Local storage tier.

One JSON document per storage key. Malformed documents load as "no data"
and are left on disk untouched.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from smart75.core.errors import SerializationError
from smart75.models.challenge import ChallengeState, decode_state, encode_state

logger = logging.getLogger(__name__)

PROBE_KEY = "__storage_test__"


def _decode_or_none(raw: Any, key: str) -> Optional[ChallengeState]:
    try:
        return decode_state(raw)
    except SerializationError as exc:
        logger.warning("storage.load.corrupt", extra={"event_type": "storage.corrupt", "error_code": exc.code})
        logger.debug("Discarding record %s: %s", key, exc.message)
        return None


class LocalFileStorage:
    """JSON file at `<directory>/<key>.json`."""

    def __init__(self, directory: str, key: str):
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def load(self) -> Optional[ChallengeState]:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError:
            logger.error("storage.load.failed", exc_info=True, extra={"event_type": "storage.load"})
            return None
        try:
            raw = json.loads(data.decode("utf-8"))
        except ValueError:
            # undecodable bytes or invalid JSON
            logger.warning("storage.load.corrupt", extra={"event_type": "storage.corrupt"})
            return None
        return _decode_or_none(raw, self.key)

    def save(self, state: ChallengeState) -> bool:
        tmp = self.path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(encode_state(state)), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError:
            logger.error("storage.save.failed", exc_info=True, extra={"event_type": "storage.save"})
            return False
        return True

    def clear(self) -> bool:
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.error("storage.clear.failed", exc_info=True, extra={"event_type": "storage.clear"})
            return False
        return True

    def is_available(self) -> bool:
        probe = self.directory / PROBE_KEY
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            probe.write_text(PROBE_KEY, encoding="utf-8")
            probe.unlink()
        except OSError:
            logger.error("storage.probe.failed", extra={"event_type": "storage.probe"})
            return False
        return True


class InMemoryStorage:
    """
    Process-local storage.

    Records are kept as encoded documents so a load always goes through the
    same validation as a file read.
    """

    def __init__(self, key: str = "75smartrules", available: bool = True):
        self.key = key
        self.available = available
        self._records: Dict[str, Any] = {}

    def load(self) -> Optional[ChallengeState]:
        if self.key not in self._records:
            return None
        return _decode_or_none(self._records[self.key], self.key)

    def save(self, state: ChallengeState) -> bool:
        if not self.available:
            return False
        self._records[self.key] = encode_state(state)
        return True

    def clear(self) -> bool:
        self._records.pop(self.key, None)
        return True

    def is_available(self) -> bool:
        return self.available

    def put_raw(self, raw: Any) -> None:
        """Store an arbitrary document, bypassing encoding. FOR TESTING ONLY."""
        self._records[self.key] = raw
