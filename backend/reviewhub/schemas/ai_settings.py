from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime


STORE_NAME_PLACEHOLDER = "{店舗名}"

DEFAULT_POSITIVE_PROMPT = (
    "この度は{店舗名}をご利用いただき、ありがとうございます。お客様からの温かいお言葉を頂戴し、"
    "スタッフ一同大変嬉しく思っております。今後もより良いサービスを提供できるよう努めてまいります。"
    "またのご利用を心よりお待ちしております。"
)
DEFAULT_NEUTRAL_PROMPT = (
    "この度は{店舗名}をご利用いただき、ありがとうございます。貴重なご意見をいただき、"
    "サービス向上のための参考にさせていただきます。何かご不明点がございましたら、お気軽にお問い合わせください。"
)
DEFAULT_NEGATIVE_PROMPT = (
    "この度は{店舗名}をご利用いただき、ありがとうございました。ご不便をおかけし申し訳ございません。"
    "ご指摘いただいた点について早急に改善いたします。詳細についてお話を伺いたいので、"
    "よろしければご連絡いただけますと幸いです。"
)
DEFAULT_NO_COMMENT_PROMPT = (
    "この度は{店舗名}をご利用いただき、ありがとうございます。評価をいただき、スタッフ一同大変嬉しく思っております。"
    "今後もお客様にご満足いただけるよう、サービス向上に努めてまいります。またのご利用を心よりお待ちしております。"
)

HH_MM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class AISettingsBase(BaseModel):
    custom_prompt_enabled: bool = False
    positive_review_prompt: str = DEFAULT_POSITIVE_PROMPT
    neutral_review_prompt: str = DEFAULT_NEUTRAL_PROMPT
    negative_review_prompt: str = DEFAULT_NEGATIVE_PROMPT
    no_comment_review_prompt: str = DEFAULT_NO_COMMENT_PROMPT

    auto_reply_enabled: bool = False
    auto_reply_delay_minutes: int = Field(60, ge=0)
    auto_reply_business_hours_only: bool = True
    business_hours_start: str = Field("09:00", pattern=HH_MM_PATTERN)
    business_hours_end: str = Field("18:00", pattern=HH_MM_PATTERN)
    auto_reply_min_rating: int = Field(1, ge=1, le=5)
    auto_reply_max_rating: int = Field(5, ge=1, le=5)

    @model_validator(mode="after")
    def check_rating_range(self):
        if self.auto_reply_min_rating > self.auto_reply_max_rating:
            raise ValueError("auto_reply_min_rating must not exceed auto_reply_max_rating")
        return self


class AISettingsUpdate(AISettingsBase):
    """Full replacement payload; omitted fields fall back to defaults."""
    store_id: Optional[str] = Field(None, alias="storeId")

    class Config:
        populate_by_name = True


class AISettingsData(AISettingsBase):
    user_id: str
    store_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AISettingsResponse(BaseModel):
    success: bool = True
    settings: AISettingsBase
    is_default: bool = False
    message: Optional[str] = None
