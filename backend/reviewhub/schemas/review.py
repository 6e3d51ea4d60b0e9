from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional, Union
from datetime import datetime


STAR_RATINGS = {"ONE": 1, "TWO": 2, "THREE": 3, "FOUR": 4, "FIVE": 5}


def convert_star_rating(value: Union[int, str, None]) -> int:
    """Google returns starRating as "ONE".."FIVE"; older payloads send ints."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value.strip().isdigit():
            return int(value.strip())
        return STAR_RATINGS.get(value.strip().upper(), 0)
    return 0


class ReviewData(BaseModel):
    id: str
    user_id: str
    store_id: str
    rating: int
    text: str = ""
    author_name: Optional[str] = None
    created_at: datetime
    replied: bool = False
    reply_text: Optional[str] = None
    replied_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReviewCreate(BaseModel):
    store_id: str = Field(..., alias="storeId")
    rating: int
    text: str = ""
    author_name: Optional[str] = Field(None, alias="authorName")
    google_review_id: Optional[str] = Field(None, alias="googleReviewId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True

    @field_validator("rating", mode="before")
    @classmethod
    def parse_star_rating(cls, v: Any) -> int:
        rating = convert_star_rating(v)
        if rating < 1 or rating > 5:
            raise ValueError("Rating must be between 1 and 5")
        return rating

    @field_validator("text", mode="before")
    @classmethod
    def empty_text(cls, v: Any) -> str:
        return v or ""


class ManualReplyRequest(BaseModel):
    reply_text: str = Field(..., min_length=1, alias="replyText")

    class Config:
        populate_by_name = True


class PromptContext(BaseModel):
    """Template guidance handed to the reply generator."""
    custom_prompt: str = ""
    use_custom_prompt: bool = False
    business_type: Optional[str] = None


class GeneratedReply(BaseModel):
    reply: str
    metadata: Dict[str, Any] = {}


class AutoReplyRequest(BaseModel):
    store_id: Optional[str] = Field(None, alias="storeId")
    force: bool = False

    class Config:
        populate_by_name = True


class AutoReplyResult(BaseModel):
    review_id: str
    success: bool
    reply: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    success: bool
    message: str
    processed: int = 0
    total: int = 0
    results: List[AutoReplyResult] = []
