"""Survey result aggregation for the dashboard."""
from collections import Counter
from typing import Dict, List

from reviewhub.repositories.base import SurveyRepository
from reviewhub.schemas.survey import (
    IMPROVEMENT_KEY,
    ImprovementFeedback,
    QuestionStatistics,
    QuestionType,
    SurveyData,
    SurveyResponseData,
    SurveyStatistics,
)
from reviewhub.services.survey_engine import REDIRECT_RATING_THRESHOLD


def _question_statistics(survey: SurveyData, responses: List[SurveyResponseData]) -> Dict[str, QuestionStatistics]:
    stats = {}
    for question in survey.questions:
        key = str(question.id)
        answers = [r.answers[key] for r in responses if r.answers.get(key, "") != ""]
        entry = QuestionStatistics(
            question=question.question,
            type=question.type,
            total_responses=len(answers),
            responses=answers,
        )

        if question.type == QuestionType.CHOICE and question.options:
            counts = Counter(answers)
            entry.option_counts = {option: counts.get(option, 0) for option in question.options}

        if question.type == QuestionType.RATING:
            numeric = []
            for answer in answers:
                try:
                    numeric.append(float(answer))
                except ValueError:
                    continue
            if numeric:
                entry.average = sum(numeric) / len(numeric)
                entry.distribution = {
                    str(i): sum(1 for n in numeric if n == i) for i in range(1, question.scale + 1)
                }

        stats[key] = entry
    return stats


def improvement_feedbacks(survey: SurveyData, responses: List[SurveyResponseData]) -> List[ImprovementFeedback]:
    """Improvement texts from below-threshold responses, newest first."""
    feedbacks = []
    for response in responses:
        text = (response.answers.get(IMPROVEMENT_KEY) or "").strip()
        if not text or response.average_rating >= REDIRECT_RATING_THRESHOLD:
            continue
        feedbacks.append(ImprovementFeedback(
            id=response.id,
            survey_id=survey.id,
            survey_title=survey.title,
            improvement_text=text,
            average_rating=response.average_rating,
            submitted_at=response.submitted_at,
        ))
    feedbacks.sort(key=lambda f: f.submitted_at, reverse=True)
    return feedbacks


def build_statistics(survey: SurveyData, responses: List[SurveyResponseData]) -> SurveyStatistics:
    by_date = Counter(r.submitted_at.date().isoformat() for r in responses)
    by_hour = Counter(r.submitted_at.hour for r in responses)
    return SurveyStatistics(
        survey_id=survey.id,
        title=survey.title,
        is_active=survey.is_active,
        total_responses=len(responses),
        statistics=_question_statistics(survey, responses),
        responses_by_date=dict(by_date),
        responses_by_hour=dict(by_hour),
        improvement_feedbacks=improvement_feedbacks(survey, responses),
    )


def list_improvement_feedbacks(surveys: SurveyRepository, user_id: str, limit: int = 10) -> List[ImprovementFeedback]:
    """Improvement feedback across all of a user's surveys."""
    collected = []
    for survey in surveys.list_surveys(user_id):
        collected.extend(improvement_feedbacks(survey, surveys.list_responses(survey.id)))
    collected.sort(key=lambda f: f.submitted_at, reverse=True)
    return collected[:limit]
