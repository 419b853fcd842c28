"""Shared FastAPI dependencies."""

from typing import Optional

from fastapi import Depends, Query, Request

from smart75.core.errors import NotFoundError
from smart75.features.challenge.service import ChallengeService
from smart75.models.challenge import ChallengeState


def get_service(request: Request) -> ChallengeService:
    """The app's ChallengeService; refuses every call while storage is unavailable."""
    service: ChallengeService = request.app.state.challenge_service
    service.ensure_available()
    return service


def get_today(service: ChallengeService = Depends(get_service)) -> str:
    return service.today()


def get_user_id(user_id: Optional[str] = Query(None, min_length=1)) -> Optional[str]:
    return user_id


def get_active_state(
    service: ChallengeService = Depends(get_service),
    user_id: Optional[str] = Depends(get_user_id),
) -> ChallengeState:
    state = service.load(user_id)
    if state is None or not state.is_active:
        raise NotFoundError("No active challenge. Start one first.")
    return state
