"""
Job trigger endpoints.

Lets an external cron service run the regeneration job. Protected by a
shared secret instead of user authentication.
"""

from fastapi import APIRouter, HTTPException, status

from gatherly.api.deps import CronAuthorized, EventRepo, GroupRepo
from gatherly.core.logger import logger
from gatherly.services.event_regeneration_service import (
    EventRegenerationJob,
    RegenerationResult,
)

router = APIRouter()


@router.post("/regenerate-events", response_model=RegenerationResult)
async def regenerate_events(
    _: CronAuthorized,
    group_repo: GroupRepo,
    event_repo: EventRepo,
):
    """Delete expired generated events and create each group's next one."""
    job = EventRegenerationJob(group_repo, event_repo)
    try:
        return await job.run()
    except Exception as e:
        logger.exception("Event regeneration run failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Event regeneration failed: {e}",
        ) from e
