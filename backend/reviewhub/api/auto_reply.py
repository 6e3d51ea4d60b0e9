"""Auto-reply API: run one batch on demand (the celery sweep runs the same scheduler)."""
import logging

from fastapi import APIRouter, Depends

from reviewhub.api.deps import get_auto_reply_scheduler
from reviewhub.core.security import get_current_user_id
from reviewhub.schemas.review import AutoReplyRequest, BatchResult
from reviewhub.services.auto_reply_scheduler import AutoReplyScheduler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auto-reply", tags=["auto-reply"])


@router.post("", response_model=BatchResult)
def run_auto_reply(
    data: AutoReplyRequest,
    user_id: str = Depends(get_current_user_id),
    scheduler: AutoReplyScheduler = Depends(get_auto_reply_scheduler),
):
    """Reply to eligible unreplied reviews. ``force`` skips the delay and business-hours gates."""
    if data.force:
        logger.info(f"Forced auto-reply requested by user={user_id} store={data.store_id}")
    return scheduler.run(user_id, data.store_id, force=data.force)
