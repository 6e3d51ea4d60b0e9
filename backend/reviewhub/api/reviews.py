import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from reviewhub.api.deps import get_reply_generator
from reviewhub.core.database import get_db
from reviewhub.core.security import get_current_user_id
from reviewhub.models.store import Store
from reviewhub.repositories.sql import SqlAISettingsRepository, SqlReviewRepository, SqlStoreLookup
from reviewhub.schemas.ai_settings import AISettingsBase
from reviewhub.schemas.review import (
    GeneratedReply,
    ManualReplyRequest,
    PromptContext,
    ReviewCreate,
    ReviewData,
)
from reviewhub.services.auto_reply import FALLBACK_STORE_NAME, select_prompt_template
from reviewhub.services.reply_generator import ReplyGenerator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/reviews", tags=["reviews"])


def _owned_review(repo: SqlReviewRepository, review_id: str, user_id: str) -> ReviewData:
    review = repo.get(review_id)
    if not review or review.user_id != user_id:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@router.get("", response_model=List[ReviewData])
def list_reviews(
    store_id: Optional[str] = Query(None, alias="storeId"),
    unreplied: bool = False,
    limit: int = Query(50, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return SqlReviewRepository(db).list_reviews(user_id, store_id, unreplied_only=unreplied, limit=limit)


@router.post("", response_model=ReviewData, status_code=201)
def create_review(
    data: ReviewCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Record a review pulled from Google (the sync job posts here)."""
    store = db.query(Store).filter(Store.id == data.store_id, Store.user_id == user_id).first()
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")

    review = SqlReviewRepository(db).add(user_id, data)
    logger.info(f"Review {review.id} stored for store {store.id} (rating {review.rating})")
    return review


@router.post("/{review_id}/generate-reply", response_model=GeneratedReply)
def generate_reply(
    review_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    generator: ReplyGenerator = Depends(get_reply_generator),
):
    """Draft a reply without posting it."""
    review = _owned_review(SqlReviewRepository(db), review_id, user_id)
    ai_settings = SqlAISettingsRepository(db).get(user_id, review.store_id) or AISettingsBase()

    stores = SqlStoreLookup(db)
    store_name = stores.get_display_name(review.store_id) or FALLBACK_STORE_NAME
    context = PromptContext(
        custom_prompt=select_prompt_template(review, ai_settings, store_name),
        use_custom_prompt=ai_settings.custom_prompt_enabled,
        business_type=stores.get_category(review.store_id),
    )
    return generator.generate(review.text, review.rating, store_name, context)


@router.post("/{review_id}/reply", response_model=ReviewData)
def post_reply(
    review_id: str,
    data: ManualReplyRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    repo = SqlReviewRepository(db)
    _owned_review(repo, review_id, user_id)

    if not repo.mark_replied(review_id, data.reply_text):
        raise HTTPException(status_code=409, detail="Review has already been replied to")

    logger.info(f"Manual reply saved for review {review_id}")
    return repo.get(review_id)
