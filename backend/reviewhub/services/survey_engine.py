"""Survey response engine: validate answers, average the ratings, route the respondent.

Routing rules:
1. Average rating >= 4.0 and the store has a Google review URL -> redirect to Google
2. Average rating >= 4.0 without a review URL -> thank-you screen
3. Average rating < 4.0 -> improvement form first, thank-you once it is sent

Low-rated answers are only persisted together with the improvement text, so
every stored low rating carries the "what could we do better" feedback.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from reviewhub.core.errors import NotFoundError, ValidationError
from reviewhub.repositories.base import StoreLookup, SurveyRepository
from reviewhub.schemas.survey import (
    IMPROVEMENT_KEY,
    FlowState,
    NewSurveyResponse,
    Outcome,
    PublicSurvey,
    QuestionType,
    SubmissionResult,
    SurveyData,
)

logger = logging.getLogger(__name__)

REDIRECT_RATING_THRESHOLD = 4.0

REQUIRED_MESSAGE = "This field is required"
INVALID_CHOICE_MESSAGE = "Please choose one of the listed options"
INVALID_ANSWERS_MESSAGE = "Please correct the highlighted answers"
UNAVAILABLE_MESSAGE = "This survey is currently unavailable"
THANK_YOU_MESSAGE = "Thank you for answering the survey!"
REDIRECT_MESSAGE = "Thank you! Opening the Google review page..."
IMPROVEMENT_PROMPT = "Please tell us what we could improve"


@dataclass
class ValidationResult:
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _parse_rating(value: Optional[str]) -> Optional[int]:
    if value is None or not str(value).strip():
        return None
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    # "5.0" from clients that send every number as a float
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def validate(survey: SurveyData, answers: Dict[str, str]) -> ValidationResult:
    """Check every question and report all problems at once."""
    result = ValidationResult()
    for question in survey.questions:
        key = str(question.id)
        answer = answers.get(key)
        blank = answer is None or not str(answer).strip()

        if blank:
            if question.required:
                result.errors[key] = REQUIRED_MESSAGE
            continue

        if question.type == QuestionType.RATING:
            rating = _parse_rating(answer)
            if rating is None or rating < 1 or rating > question.scale:
                result.errors[key] = f"Please choose a rating between 1 and {question.scale}"
        elif question.type == QuestionType.CHOICE and question.options:
            if answer not in question.options:
                result.errors[key] = INVALID_CHOICE_MESSAGE
    return result


def compute_average_rating(survey: SurveyData, answers: Dict[str, str]) -> float:
    """Mean of the answered rating questions, 0.0 when none was answered."""
    total = 0
    count = 0
    for question in survey.questions:
        if question.type != QuestionType.RATING:
            continue
        rating = _parse_rating(answers.get(str(question.id)))
        if rating is None:
            continue
        total += rating
        count += 1
    return total / count if count else 0.0


def classify(
    average_rating: float,
    google_review_url: Optional[str] = None,
    improvement_completed: bool = False,
    threshold: float = REDIRECT_RATING_THRESHOLD,
) -> Outcome:
    if average_rating >= threshold:
        if google_review_url:
            return Outcome.REDIRECT_TO_GOOGLE_REVIEW
        return Outcome.SHOW_THANK_YOU
    if improvement_completed:
        return Outcome.SHOW_THANK_YOU
    return Outcome.SHOW_IMPROVEMENT_FORM


class SurveyResponseEngine:
    """Runs one public survey submission from answers to a terminal outcome."""

    def __init__(self, surveys: SurveyRepository, stores: StoreLookup,
                 threshold: float = REDIRECT_RATING_THRESHOLD):
        self.surveys = surveys
        self.stores = stores
        self.threshold = threshold

    def _load_active(self, survey_id: str) -> SurveyData:
        survey = self.surveys.get_by_id(survey_id)
        if survey is None:
            logger.info(f"Survey {survey_id} not found")
            raise NotFoundError(UNAVAILABLE_MESSAGE)
        if not survey.is_active:
            logger.info(f"Survey {survey_id} is inactive, refusing responses")
            raise NotFoundError(UNAVAILABLE_MESSAGE)
        return survey

    def _review_url(self, survey: SurveyData) -> Optional[str]:
        if not survey.store_id:
            return None
        return self.stores.get_google_review_url(survey.store_id)

    def load_public_survey(self, survey_id: str) -> PublicSurvey:
        survey = self._load_active(survey_id)
        store_name = None
        if survey.store_id:
            store_name = self.stores.get_display_name(survey.store_id)
        return PublicSurvey(
            id=survey.id,
            title=survey.title,
            description=survey.description,
            questions=survey.questions,
            store_id=survey.store_id,
            store_name=store_name,
            google_review_url=self._review_url(survey),
        )

    def evaluate(self, survey: SurveyData, answers: Dict[str, str]):
        """Return (average_rating, outcome) for answers that already validated."""
        average = compute_average_rating(survey, answers)
        improvement = answers.get(IMPROVEMENT_KEY, "")
        outcome = classify(
            average,
            self._review_url(survey),
            improvement_completed=bool(improvement and improvement.strip()),
            threshold=self.threshold,
        )
        return average, outcome

    def submit_response(
        self,
        survey_id: str,
        answers: Dict[str, str],
        submission_token: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmissionResult:
        survey = self._load_active(survey_id)

        # Validating
        validation = validate(survey, answers)
        if not validation.is_valid:
            logger.info(f"Survey {survey_id}: {len(validation.errors)} invalid answer(s)")
            if all(msg == REQUIRED_MESSAGE for msg in validation.errors.values()):
                raise ValidationError(validation.errors)
            raise ValidationError(validation.errors, message=INVALID_ANSWERS_MESSAGE)

        average, outcome = self.evaluate(survey, answers)
        logger.info(f"Survey {survey_id}: average rating {average:.2f} -> {outcome.value}")

        if outcome == Outcome.SHOW_IMPROVEMENT_FORM:
            return SubmissionResult(
                state=FlowState.ANSWERING_IMPROVEMENT,
                outcome=outcome,
                average_rating=average,
                message=IMPROVEMENT_PROMPT,
            )

        # Submitting
        if submission_token:
            existing = self.surveys.find_by_token(survey_id, submission_token)
            if existing:
                logger.info(f"Survey {survey_id}: duplicate submission {submission_token}, returning stored response")
                return self._result_for(survey, existing.id, outcome, existing.average_rating, already_submitted=True)

        record = NewSurveyResponse(
            survey_id=survey_id,
            answers=dict(answers),
            average_rating=average,
            submitted_at=datetime.now(timezone.utc),
            submission_token=submission_token,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        # PersistenceError propagates; the respondent may resubmit
        saved = self.surveys.append_response(survey_id, record)
        logger.info(f"Survey response saved: survey_id={survey_id}, response_id={saved.id}")
        return self._result_for(survey, saved.id, outcome, average)

    def submit_improvement(
        self,
        survey_id: str,
        answers: Dict[str, str],
        improvement: str,
        submission_token: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmissionResult:
        # ValidatingImprovement
        if not improvement or not improvement.strip():
            raise ValidationError({IMPROVEMENT_KEY: REQUIRED_MESSAGE})
        merged = dict(answers)
        merged[IMPROVEMENT_KEY] = improvement.strip()
        return self.submit_response(
            survey_id,
            merged,
            submission_token=submission_token,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def _result_for(self, survey: SurveyData, response_id: str, outcome: Outcome,
                    average: float, already_submitted: bool = False) -> SubmissionResult:
        if outcome == Outcome.REDIRECT_TO_GOOGLE_REVIEW:
            return SubmissionResult(
                state=FlowState.REDIRECTING,
                outcome=outcome,
                average_rating=average,
                response_id=response_id,
                google_review_url=self._review_url(survey),
                already_submitted=already_submitted,
                message=REDIRECT_MESSAGE,
            )
        return SubmissionResult(
            state=FlowState.COMPLETED,
            outcome=outcome,
            average_rating=average,
            response_id=response_id,
            already_submitted=already_submitted,
            message=THANK_YOU_MESSAGE,
        )
