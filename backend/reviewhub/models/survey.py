"""Survey definitions and their append-only responses."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Boolean, Float, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from reviewhub.core.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Survey(Base):
    """Satisfaction survey shared through a public /s/{id} link."""
    __tablename__ = "surveys"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String, nullable=False, index=True)
    store_id = Column(String, ForeignKey("stores.id"), nullable=True, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    # Ordered list of {id, type, question, required, options?, scale?}
    questions = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    store = relationship("Store", foreign_keys=[store_id])
    responses = relationship("SurveyResponse", back_populates="survey", cascade="all, delete-orphan")


class SurveyResponse(Base):
    """One submitted answer set. Never updated after insert."""
    __tablename__ = "survey_responses"
    __table_args__ = (
        UniqueConstraint("survey_id", "submission_token", name="uq_survey_responses_token"),
    )

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    survey_id = Column(String, ForeignKey("surveys.id"), nullable=False, index=True)

    # Keyed by question id (as string) plus optional "improvement"
    answers = Column(JSON, nullable=False)
    average_rating = Column(Float, nullable=False, default=0.0)

    # Client-generated idempotency key; resubmits with the same token are no-ops
    submission_token = Column(String, nullable=True)

    # Tracking
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)

    submitted_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    survey = relationship("Survey", back_populates="responses")
