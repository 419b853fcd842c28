"""
Challenge aggregate: rules, challenge metadata and per-day logs.

All models are frozen. Attributes are snake_case; aliases match the
persisted JSON document field for field.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator, model_validator

from smart75.core.clock import is_day_key
from smart75.core.errors import SerializationError

CHALLENGE_DAYS = 75
MIN_RULES = 3
MAX_RULES = 8


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Rule(_Record):
    id: int
    text: str


DEFAULT_RULES: List[Rule] = [
    Rule(id=1, text="Deep Learning Session 1 (30-45 min)"),
    Rule(id=2, text="Deep Learning Session 2 (30-45 min)"),
    Rule(id=3, text="15 min Meta-Learning"),
    Rule(id=4, text="Create 1 Intellectual Output"),
    Rule(id=5, text="Read 10 Pages Non-Fiction"),
    Rule(id=6, text="No Low-Value Dopamine Before 8pm"),
]


class DailyLog(_Record):
    completed: List[int] = Field(default_factory=list)
    all_complete: bool = Field(default=False, alias="allComplete")
    reflection: str = ""

    @field_validator("completed")
    @classmethod
    def _no_duplicates(cls, value: List[int]) -> List[int]:
        if len(set(value)) != len(value):
            raise ValueError("completed must not contain duplicate rule ids")
        return value


class ChallengeMeta(_Record):
    start_date: Optional[str] = Field(default=None, alias="startDate")
    current_day: int = Field(default=0, alias="currentDay")  # informational only
    current_streak: int = Field(default=0, ge=0, alias="currentStreak")
    longest_streak: int = Field(default=0, ge=0, alias="longestStreak")
    total_resets: int = Field(default=0, ge=0, alias="totalResets")
    failure_fund: int = Field(default=0, alias="failureFund")  # reserved
    victory_shown: bool = Field(default=False, alias="victoryShown")
    total_completions: int = Field(default=0, ge=0, alias="totalCompletions")

    @field_validator("start_date")
    @classmethod
    def _start_is_day_key(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_day_key(value):
            raise ValueError(f"startDate is not a YYYY-MM-DD day key: {value!r}")
        return value

    @model_validator(mode="after")
    def _longest_covers_current(self) -> "ChallengeMeta":
        if self.longest_streak < self.current_streak:
            raise ValueError("longestStreak must be >= currentStreak")
        return self


class ChallengeState(_Record):
    rules: List[Rule] = Field(default_factory=list)
    challenge: ChallengeMeta = Field(default_factory=ChallengeMeta)
    daily_logs: Dict[str, DailyLog] = Field(default_factory=dict, alias="dailyLogs")

    @field_validator("rules")
    @classmethod
    def _unique_rule_ids(cls, value: List[Rule]) -> List[Rule]:
        ids = [rule.id for rule in value]
        if len(set(ids)) != len(ids):
            raise ValueError("rule ids must be unique")
        return value

    @field_validator("daily_logs")
    @classmethod
    def _keys_are_day_keys(cls, value: Dict[str, DailyLog]) -> Dict[str, DailyLog]:
        bad = [key for key in value if not is_day_key(key)]
        if bad:
            raise ValueError(f"dailyLogs keys must be YYYY-MM-DD day keys: {bad}")
        return value

    @property
    def is_active(self) -> bool:
        return self.challenge.start_date is not None

    def rule_ids(self) -> set[int]:
        return {rule.id for rule in self.rules}


def encode_state(state: ChallengeState) -> Dict[str, Any]:
    """Persisted JSON document for a state."""
    return state.model_dump(mode="json", by_alias=True)


def decode_state(raw: Any) -> ChallengeState:
    """Validate a persisted document. Raises SerializationError when malformed."""
    if not isinstance(raw, dict):
        raise SerializationError(f"Expected a JSON object, got {type(raw).__name__}")
    try:
        return ChallengeState.model_validate(raw)
    except PydanticValidationError as exc:
        raise SerializationError(f"Malformed challenge record: {exc.error_count()} error(s)") from exc
