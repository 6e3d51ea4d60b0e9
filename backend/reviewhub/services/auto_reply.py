"""Auto-reply eligibility and prompt template selection.

A review qualifies for an automatic AI reply when:
- it has not been replied to yet
- auto-reply is enabled in the AI settings (unless forced)
- its rating lies within [min_rating, max_rating] (forcing never bypasses this)
- the current time is within business hours, if restricted (unless forced)
- at least ``auto_reply_delay_minutes`` have passed since it was posted (unless forced)

Business hours compare zero-padded "HH:MM" strings taken from ``now`` as
given. There is no timezone conversion: the caller's clock is authoritative.
"""
import enum
from datetime import datetime, timezone
from typing import Optional

from reviewhub.schemas.ai_settings import (
    DEFAULT_NEGATIVE_PROMPT,
    DEFAULT_NEUTRAL_PROMPT,
    DEFAULT_NO_COMMENT_PROMPT,
    DEFAULT_POSITIVE_PROMPT,
    STORE_NAME_PLACEHOLDER,
    AISettingsBase,
)
from reviewhub.schemas.review import ReviewData

FALLBACK_STORE_NAME = "当店"


class ReviewCategory(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    NO_COMMENT = "no_comment"


DEFAULT_TEMPLATES = {
    ReviewCategory.POSITIVE: DEFAULT_POSITIVE_PROMPT,
    ReviewCategory.NEUTRAL: DEFAULT_NEUTRAL_PROMPT,
    ReviewCategory.NEGATIVE: DEFAULT_NEGATIVE_PROMPT,
    ReviewCategory.NO_COMMENT: DEFAULT_NO_COMMENT_PROMPT,
}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def minutes_since(created_at: datetime, now: datetime) -> float:
    if (created_at.tzinfo is None) != (now.tzinfo is None):
        created_at, now = _as_utc(created_at), _as_utc(now)
    return (now - created_at).total_seconds() / 60


def is_within_business_hours(settings: AISettingsBase, now: datetime) -> bool:
    current = now.strftime("%H:%M")
    return settings.business_hours_start <= current <= settings.business_hours_end


def is_rating_in_range(review: ReviewData, settings: AISettingsBase) -> bool:
    return settings.auto_reply_min_rating <= review.rating <= settings.auto_reply_max_rating


def is_eligible(review: ReviewData, settings: AISettingsBase, now: datetime, force: bool = False) -> bool:
    if review.replied:
        return False
    if not force and not settings.auto_reply_enabled:
        return False
    if not is_rating_in_range(review, settings):
        return False
    if force:
        return True
    if settings.auto_reply_business_hours_only and not is_within_business_hours(settings, now):
        return False
    return minutes_since(review.created_at, now) >= settings.auto_reply_delay_minutes


def categorize_review(review: ReviewData) -> ReviewCategory:
    if not (review.text or "").strip():
        return ReviewCategory.NO_COMMENT
    if review.rating >= 4:
        return ReviewCategory.POSITIVE
    if review.rating == 3:
        return ReviewCategory.NEUTRAL
    return ReviewCategory.NEGATIVE


def _custom_template(settings: AISettingsBase, category: ReviewCategory) -> str:
    return {
        ReviewCategory.POSITIVE: settings.positive_review_prompt,
        ReviewCategory.NEUTRAL: settings.neutral_review_prompt,
        ReviewCategory.NEGATIVE: settings.negative_review_prompt,
        ReviewCategory.NO_COMMENT: settings.no_comment_review_prompt,
    }[category]


def select_prompt_template(review: ReviewData, settings: AISettingsBase,
                           store_name: Optional[str] = None) -> str:
    category = categorize_review(review)
    if settings.custom_prompt_enabled:
        template = _custom_template(settings, category)
    else:
        template = DEFAULT_TEMPLATES[category]
    return template.replace(STORE_NAME_PLACEHOLDER, store_name or FALLBACK_STORE_NAME)
