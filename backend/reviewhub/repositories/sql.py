"""SQLAlchemy implementations of the repository interfaces."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from reviewhub.core.errors import PersistenceError
from reviewhub.models.ai_settings import AISettings
from reviewhub.models.review import Review
from reviewhub.models.store import Store
from reviewhub.models.survey import Survey, SurveyResponse
from reviewhub.schemas.ai_settings import AISettingsBase, AISettingsData
from reviewhub.schemas.review import ReviewCreate, ReviewData
from reviewhub.schemas.survey import (
    NewSurveyResponse,
    SurveyCreate,
    SurveyData,
    SurveyResponseData,
    SurveyUpdate,
)

logger = logging.getLogger(__name__)


class SqlSurveyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, survey_id: str) -> Optional[SurveyData]:
        survey = self.db.query(Survey).filter(Survey.id == survey_id).first()
        return SurveyData.model_validate(survey) if survey else None

    def list_surveys(self, user_id: str) -> List[SurveyData]:
        surveys = (
            self.db.query(Survey)
            .filter(Survey.user_id == user_id)
            .order_by(Survey.created_at.desc())
            .all()
        )
        return [SurveyData.model_validate(s) for s in surveys]

    def count_responses(self, survey_id: str) -> int:
        return self.db.query(SurveyResponse).filter(SurveyResponse.survey_id == survey_id).count()

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Survey {action} failed: {e}")
            raise PersistenceError(f"Failed to {action} the survey") from e

    def create_survey(self, user_id: str, data: SurveyCreate) -> SurveyData:
        survey = Survey(
            user_id=user_id,
            store_id=data.store_id,
            title=data.title,
            description=data.description,
            questions=[q.model_dump(mode="json") for q in data.questions],
            is_active=data.is_active,
        )
        self.db.add(survey)
        self._commit("create")
        self.db.refresh(survey)
        return SurveyData.model_validate(survey)

    def update_survey(self, survey_id: str, data: SurveyUpdate) -> Optional[SurveyData]:
        survey = self.db.query(Survey).filter(Survey.id == survey_id).first()
        if survey is None:
            return None
        changes = data.model_dump(exclude_unset=True, mode="json")
        for field, value in changes.items():
            if value is None and field != "description":
                continue
            setattr(survey, field, value)
        self._commit("update")
        self.db.refresh(survey)
        return SurveyData.model_validate(survey)

    def delete_survey(self, survey_id: str) -> bool:
        survey = self.db.query(Survey).filter(Survey.id == survey_id).first()
        if survey is None:
            return False
        # Responses go with the survey (cascade on the relationship)
        self.db.delete(survey)
        self._commit("delete")
        return True

    def find_by_token(self, survey_id: str, token: str) -> Optional[SurveyResponseData]:
        existing = (
            self.db.query(SurveyResponse)
            .filter(
                SurveyResponse.survey_id == survey_id,
                SurveyResponse.submission_token == token,
            )
            .first()
        )
        return SurveyResponseData.model_validate(existing) if existing else None

    def list_responses(self, survey_id: str) -> List[SurveyResponseData]:
        rows = (
            self.db.query(SurveyResponse)
            .filter(SurveyResponse.survey_id == survey_id)
            .order_by(SurveyResponse.submitted_at.desc())
            .all()
        )
        return [SurveyResponseData.model_validate(r) for r in rows]

    def append_response(self, survey_id: str, record: NewSurveyResponse) -> SurveyResponseData:
        row = SurveyResponse(
            survey_id=survey_id,
            answers=dict(record.answers),
            average_rating=record.average_rating,
            submission_token=record.submission_token,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            submitted_at=record.submitted_at,
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except IntegrityError:
            # Lost a race against a resubmit carrying the same token
            self.db.rollback()
            if record.submission_token:
                existing = self.find_by_token(survey_id, record.submission_token)
                if existing:
                    return existing
            raise PersistenceError("Failed to save the survey response")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Survey response insert failed for survey {survey_id}: {e}")
            raise PersistenceError("Failed to save the survey response") from e
        return SurveyResponseData.model_validate(row)


class SqlStoreLookup:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, store_id: str) -> Optional[Store]:
        if not store_id:
            return None
        return self.db.query(Store).filter(Store.id == store_id).first()

    def get_google_review_url(self, store_id: str) -> Optional[str]:
        store = self._get(store_id)
        return (store.google_review_url or None) if store else None

    def get_display_name(self, store_id: str) -> Optional[str]:
        store = self._get(store_id)
        return (store.display_name or None) if store else None

    def get_category(self, store_id: str) -> Optional[str]:
        store = self._get(store_id)
        return store.category if store else None


class SqlReviewRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, review_id: str) -> Optional[ReviewData]:
        review = self.db.query(Review).filter(Review.id == review_id).first()
        return ReviewData.model_validate(review) if review else None

    def list_reviews(self, user_id: str, store_id: Optional[str] = None,
                     unreplied_only: bool = False, limit: Optional[int] = None) -> List[ReviewData]:
        query = self.db.query(Review).filter(Review.user_id == user_id)
        if store_id:
            query = query.filter(Review.store_id == store_id)
        if unreplied_only:
            query = query.filter(Review.replied == False)  # noqa: E712
        query = query.order_by(Review.created_at.desc())
        if limit:
            query = query.limit(limit)
        return [ReviewData.model_validate(r) for r in query.all()]

    def list_unreplied(self, user_id: str, store_id: Optional[str] = None) -> List[ReviewData]:
        return self.list_reviews(user_id, store_id, unreplied_only=True)

    def add(self, user_id: str, data: ReviewCreate) -> ReviewData:
        review = Review(
            user_id=user_id,
            store_id=data.store_id,
            google_review_id=data.google_review_id,
            rating=data.rating,
            text=data.text,
            author_name=data.author_name,
        )
        if data.created_at:
            review.created_at = data.created_at
        try:
            self.db.add(review)
            self.db.commit()
            self.db.refresh(review)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to save review: {e}") from e
        return ReviewData.model_validate(review)

    def mark_replied(self, review_id: str, reply_text: str) -> bool:
        # Conditional update so two concurrent replies cannot both win
        try:
            updated = (
                self.db.query(Review)
                .filter(Review.id == review_id, Review.replied == False)  # noqa: E712
                .update(
                    {
                        Review.replied: True,
                        Review.reply_text: reply_text,
                        Review.replied_at: datetime.now(timezone.utc),
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to save reply for review {review_id}") from e
        return updated == 1


class SqlAISettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def _query(self, user_id: str, store_id: Optional[str]):
        query = self.db.query(AISettings).filter(AISettings.user_id == user_id)
        if store_id:
            return query.filter(AISettings.store_id == store_id)
        return query.filter(AISettings.store_id.is_(None))

    def get(self, user_id: str, store_id: Optional[str] = None) -> Optional[AISettingsData]:
        row = self._query(user_id, store_id).first()
        if row is None and store_id:
            # Stores without their own settings inherit the user-wide row
            row = self._query(user_id, None).first()
        return AISettingsData.model_validate(row) if row else None

    def save(self, user_id: str, store_id: Optional[str], data: AISettingsBase) -> AISettingsData:
        row = self._query(user_id, store_id).first()
        if row is None:
            row = AISettings(user_id=user_id, store_id=store_id)
            self.db.add(row)
        for field in AISettingsBase.model_fields:
            setattr(row, field, getattr(data, field))
        try:
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to save AI settings: {e}") from e
        return AISettingsData.model_validate(row)

    def delete(self, user_id: str, store_id: Optional[str] = None) -> bool:
        row = self._query(user_id, store_id).first()
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to delete AI settings: {e}") from e
        return True

    def list_auto_reply_enabled(self) -> List[AISettingsData]:
        rows = self.db.query(AISettings).filter(AISettings.auto_reply_enabled == True).all()  # noqa: E712
        return [AISettingsData.model_validate(r) for r in rows]

    def list_store_ids_with_settings(self, user_id: str) -> List[str]:
        rows = (
            self.db.query(AISettings.store_id)
            .filter(AISettings.user_id == user_id, AISettings.store_id.isnot(None))
            .all()
        )
        return [row.store_id for row in rows]
