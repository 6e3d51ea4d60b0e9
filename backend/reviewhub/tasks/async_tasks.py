import logging

from reviewhub.celery_app import celery_app
from reviewhub.core.database import SessionLocal
from reviewhub.core.errors import ReviewHubError
from reviewhub.repositories.sql import SqlAISettingsRepository, SqlReviewRepository, SqlStoreLookup
from reviewhub.services.auto_reply_scheduler import AutoReplyScheduler
from reviewhub.services.reply_generator import ReplyGenerator

logger = logging.getLogger(__name__)


def _scheduler(db) -> AutoReplyScheduler:
    return AutoReplyScheduler(
        ai_settings=SqlAISettingsRepository(db),
        reviews=SqlReviewRepository(db),
        stores=SqlStoreLookup(db),
        generator=ReplyGenerator.from_settings(),
    )


@celery_app.task(name="run_auto_reply")
def run_auto_reply(user_id: str, store_id: str = None, force: bool = False):
    """
    Async task to run one auto-reply batch for a user (optionally one store)
    """
    db = SessionLocal()
    try:
        result = _scheduler(db).run(user_id, store_id, force=force)
        return result.model_dump()
    finally:
        db.close()


@celery_app.task(name="sweep_auto_replies")
def sweep_auto_replies():
    """
    Periodic task: run a batch for every settings row with auto-reply enabled.
    One failing user never stops the sweep.
    """
    db = SessionLocal()
    summary = {"batches": 0, "processed": 0, "failed": 0}
    try:
        scheduler = _scheduler(db)
        for ai_settings in SqlAISettingsRepository(db).list_auto_reply_enabled():
            try:
                result = scheduler.run(ai_settings.user_id, ai_settings.store_id)
            except ReviewHubError as e:
                logger.error(f"Auto-reply sweep failed for user={ai_settings.user_id} "
                             f"store={ai_settings.store_id}: {e.message}")
                summary["failed"] += 1
                continue
            summary["batches"] += 1
            summary["processed"] += result.processed
        logger.info(f"Auto-reply sweep finished: {summary}")
        return summary
    finally:
        db.close()
