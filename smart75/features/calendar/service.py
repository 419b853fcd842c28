"""
Month calendar view of a challenge.

Weeks run Sunday to Saturday and cover the whole month. Today is never
marked complete or incomplete: the day is not over yet.
"""

import calendar
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from smart75.core.clock import format_day, parse_day
from smart75.core.errors import ValidationError
from smart75.models.challenge import ChallengeState, DailyLog

DayStatus = Literal["outside", "today", "future", "complete", "incomplete"]

_SYMBOLS = {"future": "○", "complete": "✓", "incomplete": "✗"}

_weeks = calendar.Calendar(firstweekday=calendar.SUNDAY)


class CalendarDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: str
    in_month: bool
    status: DayStatus
    symbol: str
    selectable: bool


class CalendarMonth(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    title: str
    weeks: List[List[CalendarDay]]


class DayDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: str
    completed: List[int]
    all_complete: bool
    reflection: str
    logged: bool


def day_status(state: ChallengeState, day: date, today: date) -> DayStatus:
    start = state.challenge.start_date
    if start is None or day < parse_day(start):
        return "outside"
    if day == today:
        return "today"
    if day > today:
        return "future"
    log = state.daily_logs.get(format_day(day))
    if log is not None and log.all_complete:
        return "complete"
    return "incomplete"


def month_grid(state: ChallengeState, year: int, month: int, today: str) -> CalendarMonth:
    current = parse_day(today)
    try:
        month_weeks = _weeks.monthdatescalendar(year, month)
    except (ValueError, OverflowError) as exc:
        # padding weeks reach outside the supported date range
        raise ValidationError(f"No calendar available for {year}-{month:02d}") from exc
    weeks = []
    for week in month_weeks:
        cells = []
        for day in week:
            status = day_status(state, day, current)
            in_month = day.month == month
            cells.append(
                CalendarDay(
                    day=format_day(day),
                    in_month=in_month,
                    status=status,
                    symbol=_SYMBOLS.get(status, str(day.day)),
                    selectable=in_month and status != "outside",
                )
            )
        weeks.append(cells)
    return CalendarMonth(
        year=year,
        month=month,
        title=f"{calendar.month_name[month]} {year}",
        weeks=weeks,
    )


def day_detail(state: ChallengeState, day: str) -> DayDetail:
    log: Optional[DailyLog] = state.daily_logs.get(day)
    if log is None:
        return DayDetail(day=day, completed=[], all_complete=False, reflection="", logged=False)
    return DayDetail(
        day=day,
        completed=list(log.completed),
        all_complete=log.all_complete,
        reflection=log.reflection,
        logged=True,
    )
