"""Per-user (optionally per-store) AI reply settings."""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, UniqueConstraint
from sqlalchemy.sql import func
from reviewhub.core.database import Base
from reviewhub.schemas.ai_settings import (
    DEFAULT_NEGATIVE_PROMPT,
    DEFAULT_NEUTRAL_PROMPT,
    DEFAULT_NO_COMMENT_PROMPT,
    DEFAULT_POSITIVE_PROMPT,
)


class AISettings(Base):
    __tablename__ = "ai_settings"
    __table_args__ = (
        UniqueConstraint("user_id", "store_id", name="uq_ai_settings_user_store"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    store_id = Column(String, nullable=True, index=True)  # NULL = user-wide settings

    # Prompt templates ({店舗名} is replaced with the store name)
    custom_prompt_enabled = Column(Boolean, default=False)
    positive_review_prompt = Column(Text, default=DEFAULT_POSITIVE_PROMPT)
    neutral_review_prompt = Column(Text, default=DEFAULT_NEUTRAL_PROMPT)
    negative_review_prompt = Column(Text, default=DEFAULT_NEGATIVE_PROMPT)
    no_comment_review_prompt = Column(Text, default=DEFAULT_NO_COMMENT_PROMPT)

    # Auto-reply gates
    auto_reply_enabled = Column(Boolean, default=False)
    auto_reply_delay_minutes = Column(Integer, default=60)
    auto_reply_business_hours_only = Column(Boolean, default=True)
    business_hours_start = Column(String(5), default="09:00")
    business_hours_end = Column(String(5), default="18:00")
    auto_reply_min_rating = Column(Integer, default=1)
    auto_reply_max_rating = Column(Integer, default=5)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
