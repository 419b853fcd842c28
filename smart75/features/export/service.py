"""Export service: the persisted document as a downloadable backup."""

import json
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict

from smart75.models.challenge import ChallengeState, encode_state

PRODUCT_SLUG = "75-smart"


class ExportResponse(BaseModel):
    """Export response model."""
    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: str
    content: str


def backup_filename(now: datetime) -> str:
    return f"{PRODUCT_SLUG}-backup-{now.date().isoformat()}.json"


def build_export(state: ChallengeState, now: Optional[datetime] = None) -> ExportResponse:
    """
    Export a state with an `exportDate` timestamp.

    Args:
        state: State to export
        now: Fixed timestamp for deterministic testing (optional)

    Returns:
        ExportResponse with filename and pretty-printed JSON content
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    document = {"exportDate": now.isoformat().replace("+00:00", "Z"), **encode_state(state)}
    return ExportResponse(
        filename=backup_filename(now),
        content_type="application/json",
        content=json.dumps(document, indent=2, ensure_ascii=False),
    )
