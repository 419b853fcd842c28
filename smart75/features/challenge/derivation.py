"""
Read-only views over a ChallengeState.

Every function takes `today` explicitly and is pure. A missing state or a
missing log never raises: a day without a log counts as incomplete.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from smart75.core.clock import day_offset, days_between
from smart75.models.challenge import CHALLENGE_DAYS, ChallengeState, DailyLog


@dataclass(frozen=True)
class WarningCheck:
    show_warning: bool


@dataclass(frozen=True)
class ResetCheck:
    needs_reset: bool
    missed_days: int = 0


@dataclass(frozen=True)
class ChallengeSummary:
    today: str
    current_day: int
    display_day: int
    progress_percent: int
    show_warning: bool
    needs_reset: bool
    missed_days: int
    victory: bool
    today_log: DailyLog


def current_day(start_date: Optional[str], today: str) -> int:
    """1-indexed challenge day; the start date itself is day 1. Not capped."""
    if not start_date:
        return 0
    return days_between(start_date, today) + 1


def display_day(day: int) -> int:
    return min(day, CHALLENGE_DAYS)


def _day_of(state: Optional[ChallengeState], today: str) -> int:
    if state is None:
        return 0
    return current_day(state.challenge.start_date, today)


def is_day_complete(state: ChallengeState, day: str) -> bool:
    log = state.daily_logs.get(day)
    return log is not None and log.all_complete


def today_log(state: Optional[ChallengeState], today: str) -> DailyLog:
    if state is None:
        return DailyLog()
    return state.daily_logs.get(today) or DailyLog()


def check_for_warning(state: Optional[ChallengeState], today: str) -> WarningCheck:
    """Fires on the first missed day after the start or after a complete day."""
    day = _day_of(state, today)
    if day <= 1:
        return WarningCheck(show_warning=False)

    yesterday = day_offset(today, -1)
    if is_day_complete(state, yesterday):
        return WarningCheck(show_warning=False)

    day_before = day_offset(today, -2)
    return WarningCheck(show_warning=day <= 2 or is_day_complete(state, day_before))


def check_for_reset(state: Optional[ChallengeState], today: str) -> ResetCheck:
    """Two consecutive incomplete days (yesterday and the day before) force a reset."""
    day = _day_of(state, today)
    if day <= 2:
        return ResetCheck(needs_reset=False)

    yesterday = day_offset(today, -1)
    day_before = day_offset(today, -2)
    if not is_day_complete(state, yesterday) and not is_day_complete(state, day_before):
        return ResetCheck(needs_reset=True, missed_days=2)
    return ResetCheck(needs_reset=False)


def check_for_victory(state: Optional[ChallengeState], today: str) -> bool:
    if state is None:
        return False
    return _day_of(state, today) >= CHALLENGE_DAYS and not state.challenge.victory_shown


def progress_percent(state: Optional[ChallengeState], today: str) -> int:
    """Share of today's rules already checked off, 0-100."""
    if state is None or not state.rules:
        return 0
    done = len(set(today_log(state, today).completed) & state.rule_ids())
    return round_half_up(100 * done / len(state.rules))


def round_half_up(value: float) -> int:
    return int(value + 0.5)


def summarize(state: Optional[ChallengeState], today: str) -> ChallengeSummary:
    day = _day_of(state, today)
    reset = check_for_reset(state, today)
    return ChallengeSummary(
        today=today,
        current_day=day,
        display_day=display_day(day),
        progress_percent=progress_percent(state, today),
        show_warning=check_for_warning(state, today).show_warning,
        needs_reset=reset.needs_reset,
        missed_days=reset.missed_days,
        victory=check_for_victory(state, today),
        today_log=today_log(state, today),
    )
