"""Statistics rollups over the daily log map. Recomputed on every call."""

from typing import List

from pydantic import BaseModel, ConfigDict

from smart75.features.challenge.derivation import current_day, display_day, round_half_up
from smart75.models.challenge import ChallengeState


class RuleStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    completed_count: int
    percentage: int


class ChallengeStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_day: int
    current_streak: int
    longest_streak: int
    total_resets: int
    total_completions: int
    total_logged_days: int
    complete_days: int
    completion_rate: int
    rule_stats: List[RuleStats]


def _percent(count: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(100 * count / total)


def compute_stats(state: ChallengeState, today: str) -> ChallengeStats:
    logs = list(state.daily_logs.values())
    total = len(logs)
    complete = sum(1 for log in logs if log.all_complete)

    rule_stats = []
    for rule in state.rules:
        count = sum(1 for log in logs if rule.id in log.completed)
        rule_stats.append(
            RuleStats(id=rule.id, text=rule.text, completed_count=count, percentage=_percent(count, total))
        )

    meta = state.challenge
    return ChallengeStats(
        current_day=display_day(current_day(meta.start_date, today)),
        current_streak=meta.current_streak,
        longest_streak=meta.longest_streak,
        total_resets=meta.total_resets,
        total_completions=meta.total_completions,
        total_logged_days=total,
        complete_days=complete,
        completion_rate=_percent(complete, total),
        rule_stats=rule_stats,
    )
