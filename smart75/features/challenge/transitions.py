"""
State transitions for the 75-day challenge.

Each transition takes the current ChallengeState plus the action's
parameters and returns a new ChallengeState. Inputs are never mutated.
Precondition violations raise ValidationError before anything is built.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from smart75.core.clock import is_day_key
from smart75.core.errors import ValidationError
from smart75.features.challenge.derivation import check_for_victory, current_day
from smart75.models.challenge import (
    MAX_RULES,
    MIN_RULES,
    ChallengeMeta,
    ChallengeState,
    DailyLog,
    Rule,
)

if TYPE_CHECKING:
    from smart75.features.storage.repository import ChallengeRepository


def validate_rules(rules: Sequence[Rule]) -> List[Rule]:
    if len(rules) < MIN_RULES:
        raise ValidationError(f"Please add at least {MIN_RULES} rules")
    if len(rules) > MAX_RULES:
        raise ValidationError(f"A challenge holds at most {MAX_RULES} rules")
    if any(not rule.text.strip() for rule in rules):
        raise ValidationError("Please fill in all rules or remove empty ones")
    ids = [rule.id for rule in rules]
    if len(set(ids)) != len(ids):
        raise ValidationError("Rule ids must be unique")
    return list(rules)


def _require_day(value: str, field: str) -> str:
    if not is_day_key(value):
        raise ValidationError(f"{field} must be a YYYY-MM-DD date")
    return value


def _write_completion(log: DailyLog, completed: Iterable[int], rule_ids: set[int]) -> DailyLog:
    """The only writer of `completed`/`allComplete`; keeps the pair consistent."""
    kept = [rule_id for rule_id in completed if rule_id in rule_ids]
    return log.model_copy(update={"completed": kept, "all_complete": set(kept) == rule_ids})


def _with_meta(state: ChallengeState, **changes) -> ChallengeState:
    return state.model_copy(update={"challenge": state.challenge.model_copy(update=changes)})


def initialize(
    rules: Sequence[Rule],
    start_date: str,
    existing: Optional[ChallengeState] = None,
) -> ChallengeState:
    """Create a fresh challenge starting on `start_date`."""
    if existing is not None and existing.is_active:
        raise ValidationError("A challenge is already active")
    checked = validate_rules(rules)
    _require_day(start_date, "start_date")
    return ChallengeState(
        rules=checked,
        challenge=ChallengeMeta(start_date=start_date, current_day=1),
        daily_logs={},
    )


def toggle_task(state: ChallengeState, rule_id: int, today: str) -> ChallengeState:
    """Flip one rule in today's log and move the streak on complete/incomplete edges."""
    rule_ids = state.rule_ids()
    if rule_id not in rule_ids:
        raise ValidationError(f"Unknown rule id {rule_id}")

    log = state.daily_logs.get(today) or DailyLog()
    if rule_id in log.completed:
        completed = [done for done in log.completed if done != rule_id]
    else:
        completed = [*log.completed, rule_id]
    updated = _write_completion(log, completed, rule_ids)

    meta = state.challenge
    streak = meta.current_streak
    longest = meta.longest_streak
    if updated.all_complete and not log.all_complete:
        streak += 1
        longest = max(longest, streak)
    elif log.all_complete and not updated.all_complete:
        streak = max(0, streak - 1)

    return state.model_copy(
        update={
            "daily_logs": {**state.daily_logs, today: updated},
            "challenge": meta.model_copy(update={"current_streak": streak, "longest_streak": longest}),
        }
    )


def set_reflection(state: ChallengeState, text: str, today: str) -> ChallengeState:
    log = state.daily_logs.get(today) or DailyLog()
    return state.model_copy(
        update={"daily_logs": {**state.daily_logs, today: log.model_copy(update={"reflection": text})}}
    )


def reset_challenge(state: ChallengeState, today: str) -> ChallengeState:
    """Restart at day 1 today. History is discarded, the longest streak is kept."""
    meta = state.challenge
    return state.model_copy(
        update={
            "daily_logs": {},
            "challenge": meta.model_copy(
                update={
                    "start_date": today,
                    "current_day": 1,
                    "current_streak": 0,
                    "total_resets": meta.total_resets + 1,
                    "victory_shown": False,
                }
            ),
        }
    )


def update_start_date(state: ChallengeState, new_date: str, today: Optional[str] = None) -> ChallengeState:
    # Day indexes shift with the start date, so old logs no longer line up.
    _require_day(new_date, "start_date")
    changes = {"start_date": new_date}
    if today is not None:
        changes["current_day"] = current_day(new_date, today)
    updated = _with_meta(state, **changes)
    return updated.model_copy(update={"daily_logs": {}})


def update_rules(state: ChallengeState, new_rules: Sequence[Rule], today: str) -> ChallengeState:
    """Replace the rules and restart the challenge."""
    checked = validate_rules(new_rules)
    return reset_challenge(state, today).model_copy(update={"rules": checked})


def update_rules_without_reset(state: ChallengeState, new_rules: Sequence[Rule]) -> ChallengeState:
    """Replace the rules only. Logs may keep ids of removed rules."""
    checked = validate_rules(new_rules)
    return state.model_copy(update={"rules": checked})


def acknowledge_victory(state: ChallengeState, today: Optional[str] = None) -> ChallengeState:
    """Record that the 75-day victory was shown and count the completion."""
    if state.challenge.victory_shown:
        return state
    if today is not None and not check_for_victory(state, today):
        raise ValidationError("The challenge has not reached day 75 yet")
    meta = state.challenge
    return _with_meta(state, victory_shown=True, total_completions=meta.total_completions + 1)


def clear_all_data(repository: "ChallengeRepository", user_id: Optional[str] = None) -> bool:
    """Destroy the aggregate. False when the local record could not be removed."""
    return repository.clear(user_id=user_id)
