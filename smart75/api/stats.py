from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import Response

from smart75.api.deps import get_active_state, get_today
from smart75.core.clock import is_day_key, parse_day
from smart75.core.errors import ValidationError
from smart75.features.calendar.service import day_detail, month_grid
from smart75.features.export.service import build_export
from smart75.features.stats.service import compute_stats
from smart75.models.challenge import ChallengeState

router = APIRouter()


@router.get("/v1/stats")
def get_stats(
    state: ChallengeState = Depends(get_active_state),
    today: str = Depends(get_today),
):
    return compute_stats(state, today).model_dump()


@router.get("/v1/calendar")
def get_calendar(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    state: ChallengeState = Depends(get_active_state),
    today: str = Depends(get_today),
):
    """Month grid; defaults to the month containing today."""
    current: date = parse_day(today)
    return month_grid(state, year or current.year, month or current.month, today).model_dump()


@router.get("/v1/calendar/days/{day}")
def get_calendar_day(
    day: str = Path(..., description="Day key YYYY-MM-DD"),
    state: ChallengeState = Depends(get_active_state),
):
    if not is_day_key(day):
        raise ValidationError("day must be a YYYY-MM-DD date")
    return day_detail(state, day).model_dump()


@router.get("/v1/export")
def export_backup(state: ChallengeState = Depends(get_active_state)):
    """Download the whole record as `75-smart-backup-<date>.json`."""
    result = build_export(state)
    return Response(
        content=result.content,
        media_type=result.content_type,
        headers={"content-disposition": f'attachment; filename="{result.filename}"'},
    )
