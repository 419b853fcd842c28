from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from smart75.api.deps import get_service
from smart75.features.challenge.service import ChallengeService

router = APIRouter()


class MigrateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    overwrite: bool = False


@router.post("/v1/sync/migrate")
def migrate_to_remote(req: MigrateRequest, service: ChallengeService = Depends(get_service)):
    """
    Copy the local record to remote storage for a user.

    Refuses with 409 when remote already holds data unless `overwrite` is set.
    """
    migrated = service.migrate(req.user_id, overwrite=req.overwrite)
    return {"migrated": migrated}
