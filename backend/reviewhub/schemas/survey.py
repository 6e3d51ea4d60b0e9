from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
import enum

from reviewhub.schemas.redirect import DeviceClass, RedirectPlan


IMPROVEMENT_KEY = "improvement"


class QuestionType(str, enum.Enum):
    RATING = "rating"
    TEXT = "text"
    CHOICE = "choice"


class Question(BaseModel):
    id: int
    type: QuestionType
    question: str
    required: bool = False
    options: List[str] = []
    scale: int = Field(5, ge=1)


class SurveyData(BaseModel):
    id: str
    user_id: str
    store_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    questions: List[Question] = []
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _check_question_ids(questions: Optional[List[Question]]) -> Optional[List[Question]]:
    if questions is None:
        return questions
    ids = [q.id for q in questions]
    if len(ids) != len(set(ids)):
        raise ValueError("Question ids must be unique")
    for q in questions:
        if q.type == QuestionType.CHOICE and not q.options:
            raise ValueError(f"Choice question {q.id} needs at least one option")
    return questions


class SurveyCreate(BaseModel):
    store_id: str = Field(..., alias="storeId")
    title: str = Field("New survey", min_length=1)
    description: Optional[str] = None
    questions: List[Question] = Field(..., min_length=1)
    is_active: bool = Field(True, alias="isActive")

    class Config:
        populate_by_name = True

    @field_validator("questions")
    @classmethod
    def unique_question_ids(cls, v):
        return _check_question_ids(v)


class SurveyUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    store_id: Optional[str] = Field(None, alias="storeId")
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    questions: Optional[List[Question]] = Field(None, min_length=1)
    is_active: Optional[bool] = Field(None, alias="isActive")

    class Config:
        populate_by_name = True

    @field_validator("questions")
    @classmethod
    def unique_question_ids(cls, v):
        return _check_question_ids(v)


class SurveySummary(SurveyData):
    response_count: int = 0
    share_url: str


class PublicSurvey(BaseModel):
    """What the public response page needs to render a survey."""
    id: str
    title: str
    description: Optional[str] = None
    questions: List[Question]
    store_id: Optional[str] = None
    store_name: Optional[str] = None
    google_review_url: Optional[str] = None


def _normalize_answers(value: Any) -> Any:
    """JSON clients send ratings as numbers; answers are stored as strings."""
    if not isinstance(value, dict):
        return value
    normalized = {}
    for k, v in value.items():
        if v is None:
            continue
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        normalized[str(k)] = str(v)
    return normalized


class NewSurveyResponse(BaseModel):
    """A response record about to be appended."""
    survey_id: str
    answers: Dict[str, str]
    average_rating: float = 0.0
    submitted_at: datetime
    submission_token: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class SurveyResponseData(NewSurveyResponse):
    id: str

    class Config:
        from_attributes = True


class SubmitResponseRequest(BaseModel):
    answers: Dict[str, str] = {}
    submission_token: Optional[str] = None
    viewport_width: Optional[int] = None

    @field_validator("answers", mode="before")
    @classmethod
    def normalize_answers(cls, v: Any) -> Any:
        return _normalize_answers(v)


class ImprovementRequest(SubmitResponseRequest):
    improvement: str = ""


class Outcome(str, enum.Enum):
    REDIRECT_TO_GOOGLE_REVIEW = "redirect_to_google_review"
    SHOW_IMPROVEMENT_FORM = "show_improvement_form"
    SHOW_THANK_YOU = "show_thank_you"


class FlowState(str, enum.Enum):
    ANSWERING_QUESTIONS = "answering_questions"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ANSWERING_IMPROVEMENT = "answering_improvement"
    VALIDATING_IMPROVEMENT = "validating_improvement"
    SUBMITTING_IMPROVEMENT = "submitting_improvement"
    REDIRECTING = "redirecting"
    COMPLETED = "completed"
    UNAVAILABLE = "unavailable"


class SubmissionResult(BaseModel):
    state: FlowState
    outcome: Outcome
    average_rating: float
    response_id: Optional[str] = None
    google_review_url: Optional[str] = None
    already_submitted: bool = False
    message: str = ""
    device: Optional[DeviceClass] = None
    redirect: Optional[RedirectPlan] = None


class QuestionStatistics(BaseModel):
    question: str
    type: QuestionType
    total_responses: int
    responses: List[str]
    option_counts: Optional[Dict[str, int]] = None
    average: Optional[float] = None
    distribution: Optional[Dict[str, int]] = None


class ImprovementFeedback(BaseModel):
    id: str
    survey_id: str
    survey_title: Optional[str] = None
    improvement_text: str
    average_rating: float
    submitted_at: datetime


class SurveyStatistics(BaseModel):
    survey_id: str
    title: str
    is_active: bool
    total_responses: int
    statistics: Dict[str, QuestionStatistics]
    responses_by_date: Dict[str, int]
    responses_by_hour: Dict[int, int]
    improvement_feedbacks: List[ImprovementFeedback]
