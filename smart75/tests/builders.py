"""State builders shared by the tests."""

from typing import Dict, Iterable, Optional, Sequence

from smart75.core.clock import day_offset
from smart75.models.challenge import DEFAULT_RULES, ChallengeMeta, ChallengeState, DailyLog, Rule

ALL_DEFAULT_IDS = [rule.id for rule in DEFAULT_RULES]


def make_rules(count: int) -> list:
    return [Rule(id=i, text=f"Rule {i}") for i in range(1, count + 1)]


def full_log(rules: Sequence[Rule] = DEFAULT_RULES, reflection: str = "") -> DailyLog:
    return DailyLog(completed=[r.id for r in rules], all_complete=True, reflection=reflection)


def partial_log(completed: Iterable[int]) -> DailyLog:
    return DailyLog(completed=list(completed), all_complete=False)


def make_state(
    *,
    today: str,
    started_days_ago: Optional[int] = 0,
    logs: Optional[Dict[int, DailyLog]] = None,
    rules: Sequence[Rule] = DEFAULT_RULES,
    **meta,
) -> ChallengeState:
    """
    Build a state relative to `today`.

    `logs` maps "days ago" (1 = yesterday) to a DailyLog.
    """
    start = day_offset(today, -started_days_ago) if started_days_ago is not None else None
    daily_logs = {day_offset(today, -ago): log for ago, log in (logs or {}).items()}
    return ChallengeState(
        rules=list(rules),
        challenge=ChallengeMeta(start_date=start, current_day=1 if start else 0, **meta),
        daily_logs=daily_logs,
    )
