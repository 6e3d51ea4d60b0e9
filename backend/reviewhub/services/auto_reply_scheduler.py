"""Batch auto-reply over a user's (or one store's) unreplied reviews."""
import logging
import time
from datetime import datetime
from typing import Callable, Optional

from reviewhub.core.config import settings as app_settings
from reviewhub.core.errors import ConfigurationMissing
from reviewhub.repositories.base import AISettingsRepository, ReviewRepository, StoreLookup
from reviewhub.schemas.review import AutoReplyResult, BatchResult, PromptContext
from reviewhub.services.auto_reply import (
    FALLBACK_STORE_NAME,
    is_eligible,
    is_within_business_hours,
    select_prompt_template,
)
from reviewhub.services.reply_generator import ReplyGenerator

logger = logging.getLogger(__name__)

SKIP_DISABLED = "Auto-reply is disabled"
SKIP_OUTSIDE_HOURS = "Outside business hours, auto-reply skipped"


class AutoReplyScheduler:
    """
    Runs one batch:
    1. Settings must exist (ConfigurationMissing otherwise)
    2. Disabled or outside business hours -> nothing processed, unless forced
    3. Eligible reviews are answered one at a time with a fixed pause between
       them so the generation API never sees a burst
    4. One review failing never stops the others
    """

    def __init__(
        self,
        ai_settings: AISettingsRepository,
        reviews: ReviewRepository,
        stores: StoreLookup,
        generator: ReplyGenerator,
        interval_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.ai_settings = ai_settings
        self.reviews = reviews
        self.stores = stores
        self.generator = generator
        self.interval_seconds = (
            app_settings.AUTO_REPLY_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        )
        self.sleep = sleep

    def run(self, user_id: str, store_id: Optional[str] = None, force: bool = False,
            now: Optional[datetime] = None) -> BatchResult:
        now = now or datetime.now().astimezone()
        logger.info(f"Auto-reply starting for user={user_id} store={store_id} force={force}")

        settings = self.ai_settings.get(user_id, store_id)
        if settings is None:
            logger.error(f"Auto-reply aborted: no AI settings for user={user_id} store={store_id}")
            raise ConfigurationMissing("AI settings not found")

        if not settings.auto_reply_enabled and not force:
            logger.info(f"Auto-reply disabled for user={user_id} store={store_id}, skipping")
            return BatchResult(success=False, message=SKIP_DISABLED)

        if settings.auto_reply_business_hours_only and not force and not is_within_business_hours(settings, now):
            logger.info(
                f"Outside business hours ({settings.business_hours_start}-{settings.business_hours_end}) "
                f"for user={user_id}, skipping"
            )
            return BatchResult(success=False, message=SKIP_OUTSIDE_HOURS)

        unreplied = self.reviews.list_unreplied(user_id, store_id)
        if store_id is None:
            # Stores with their own settings row are governed by that row only
            own_settings = set(self.ai_settings.list_store_ids_with_settings(user_id))
            unreplied = [r for r in unreplied if r.store_id not in own_settings]
        eligible = [r for r in unreplied if is_eligible(r, settings, now, force=force)]
        logger.info(f"Auto-reply: {len(eligible)} of {len(unreplied)} unreplied reviews eligible")

        results = []
        processed = 0
        for index, review in enumerate(eligible):
            if index > 0 and self.interval_seconds > 0:
                self.sleep(self.interval_seconds)
            result = self._reply_to(review, settings)
            if result.success:
                processed += 1
            results.append(result)

        logger.info(f"Auto-reply completed: {processed}/{len(eligible)} reviews processed")
        return BatchResult(
            success=True,
            message=f"Auto-replied to {processed} review(s)",
            processed=processed,
            total=len(eligible),
            results=results,
        )

    def _reply_to(self, review, settings) -> AutoReplyResult:
        try:
            store_name = self.stores.get_display_name(review.store_id) or FALLBACK_STORE_NAME
            template = select_prompt_template(review, settings, store_name)
            generated = self.generator.generate(
                review.text,
                review.rating,
                store_name,
                PromptContext(
                    custom_prompt=template,
                    use_custom_prompt=settings.custom_prompt_enabled,
                    business_type=self.stores.get_category(review.store_id),
                ),
            )
            metadata = dict(generated.metadata)
            metadata["auto_generated"] = True

            if not self.reviews.mark_replied(review.id, generated.reply):
                logger.warning(f"Review {review.id} could not be marked replied (missing or already replied)")
                return AutoReplyResult(review_id=review.id, success=False, error="Failed to save the reply")

            logger.info(f"Auto-replied to review {review.id}")
            return AutoReplyResult(review_id=review.id, success=True, reply=generated.reply, metadata=metadata)
        except Exception as e:
            logger.error(f"Auto-reply failed for review {review.id}: {e}")
            return AutoReplyResult(review_id=review.id, success=False, error=str(e) or type(e).__name__)
