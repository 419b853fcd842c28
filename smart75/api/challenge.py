from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from smart75.api.deps import get_service, get_today, get_user_id
from smart75.features.challenge.derivation import summarize
from smart75.features.challenge.service import ChallengeService
from smart75.models.challenge import ChallengeState, Rule, encode_state

router = APIRouter()


class RuleIn(BaseModel):
    id: int
    text: str


class StartRequest(BaseModel):
    rules: Optional[List[RuleIn]] = None  # defaults to the built-in rule set
    start_date: Optional[str] = None  # defaults to today


class ReflectionRequest(BaseModel):
    text: str = Field(..., max_length=10_000)


class StartDateRequest(BaseModel):
    start_date: str = Field(..., min_length=10, max_length=10)


class RulesRequest(BaseModel):
    rules: List[RuleIn]
    reset: bool = False


def _rules(items: List[RuleIn]) -> List[Rule]:
    return [Rule(id=item.id, text=item.text) for item in items]


def challenge_payload(state: Optional[ChallengeState], today: str) -> dict:
    """State document plus everything derived from it for `today`."""
    summary = summarize(state, today)
    return {
        "state": encode_state(state) if state is not None else None,
        "summary": {
            "today": summary.today,
            "current_day": summary.current_day,
            "display_day": summary.display_day,
            "progress_percent": summary.progress_percent,
            "show_warning": summary.show_warning,
            "needs_reset": summary.needs_reset,
            "missed_days": summary.missed_days,
            "victory": summary.victory,
            "today_log": summary.today_log.model_dump(by_alias=True),
        },
    }


@router.get("/v1/challenge")
def get_challenge(
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    """Current state with warning, reset and victory checks for today."""
    return challenge_payload(service.load(user_id), today)


@router.post("/v1/challenge", status_code=201)
def start_challenge(
    req: StartRequest,
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    rules = _rules(req.rules) if req.rules is not None else None
    state = service.start(rules=rules, start_date=req.start_date or today, user_id=user_id)
    return challenge_payload(state, today)


@router.post("/v1/challenge/tasks/{rule_id}/toggle")
def toggle_task(
    rule_id: int,
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    state = service.toggle_task(rule_id, today=today, user_id=user_id)
    return challenge_payload(state, today)


@router.put("/v1/challenge/reflection")
def set_reflection(
    req: ReflectionRequest,
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    state = service.set_reflection(req.text, today=today, user_id=user_id)
    return challenge_payload(state, today)


@router.post("/v1/challenge/reset")
def reset_challenge(
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    """Restart at day 1. Used both for the automatic two-miss reset and a manual one."""
    state = service.reset(today=today, user_id=user_id)
    return challenge_payload(state, today)


@router.put("/v1/challenge/start-date")
def update_start_date(
    req: StartDateRequest,
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    state = service.update_start_date(req.start_date, today=today, user_id=user_id)
    return challenge_payload(state, today)


@router.put("/v1/challenge/rules")
def update_rules(
    req: RulesRequest,
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    state = service.update_rules(_rules(req.rules), reset=req.reset, today=today, user_id=user_id)
    return challenge_payload(state, today)


@router.post("/v1/challenge/victory/ack")
def acknowledge_victory(
    service: ChallengeService = Depends(get_service),
    today: str = Depends(get_today),
    user_id: Optional[str] = Depends(get_user_id),
):
    state = service.acknowledge_victory(today=today, user_id=user_id)
    return challenge_payload(state, today)


@router.delete("/v1/challenge")
def clear_all_data(
    service: ChallengeService = Depends(get_service),
    user_id: Optional[str] = Depends(get_user_id),
):
    service.clear(user_id=user_id)
    return {"state": None}
