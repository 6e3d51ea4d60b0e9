"""Survey API: public response flow (/s/{id} page) plus owner-side results."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from reviewhub.api.deps import get_device_classifier, get_redirect_dispatcher, get_survey_engine
from reviewhub.core.config import settings
from reviewhub.core.database import get_db
from reviewhub.core.security import get_current_user_id
from reviewhub.models.store import Store
from reviewhub.repositories.sql import SqlSurveyRepository
from reviewhub.schemas.survey import (
    ImprovementRequest,
    Outcome,
    PublicSurvey,
    SubmissionResult,
    SubmitResponseRequest,
    SurveyCreate,
    SurveyData,
    SurveySummary,
    SurveyUpdate,
)
from reviewhub.services.device import DeviceClassifier
from reviewhub.services.redirect_dispatcher import RedirectDispatcher
from reviewhub.services.survey_engine import SurveyResponseEngine
from reviewhub.services.survey_stats import build_statistics, list_improvement_feedbacks

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/surveys", tags=["surveys"])


def _client_ip(request: Request):
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _with_redirect_plan(
    result: SubmissionResult,
    request: Request,
    viewport_width,
    classifier: DeviceClassifier,
    dispatcher: RedirectDispatcher,
) -> SubmissionResult:
    if result.outcome != Outcome.REDIRECT_TO_GOOGLE_REVIEW or not result.google_review_url:
        return result
    device = classifier.classify(
        user_agent=request.headers.get("user-agent"),
        viewport_width=viewport_width,
        mobile_hint=request.headers.get("sec-ch-ua-mobile"),
    )
    result.device = device
    result.redirect = dispatcher.plan(result.google_review_url, device)
    return result


def _summary(repo: SqlSurveyRepository, survey: SurveyData) -> SurveySummary:
    return SurveySummary(
        **survey.model_dump(),
        response_count=repo.count_responses(survey.id),
        share_url=f"{settings.FRONTEND_URL}/s/{survey.id}",
    )


def _owned_survey(repo: SqlSurveyRepository, survey_id: str, user_id: str) -> SurveyData:
    survey = repo.get_by_id(survey_id)
    if not survey or survey.user_id != user_id:
        raise HTTPException(status_code=404, detail="Survey not found")
    return survey


def _check_store(db: Session, store_id: str, user_id: str):
    store = db.query(Store).filter(Store.id == store_id, Store.user_id == user_id).first()
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")


# ── Owner endpoints ──────────────────────────────────────────────────

@router.get("")
def list_surveys(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Owner: every survey with its response count and share link."""
    repo = SqlSurveyRepository(db)
    surveys = [_summary(repo, s) for s in repo.list_surveys(user_id)]
    return {"success": True, "surveys": surveys, "count": len(surveys)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_survey(
    data: SurveyCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _check_store(db, data.store_id, user_id)
    repo = SqlSurveyRepository(db)
    survey = repo.create_survey(user_id, data)
    logger.info(f"Created survey {survey.id} for store {data.store_id}")
    return {"survey": _summary(repo, survey), "message": "Survey created"}


@router.put("/{survey_id}")
def update_survey(
    survey_id: str,
    data: SurveyUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Owner: partial update. isActive=false takes the public page offline."""
    repo = SqlSurveyRepository(db)
    _owned_survey(repo, survey_id, user_id)
    if data.store_id:
        _check_store(db, data.store_id, user_id)
    survey = repo.update_survey(survey_id, data)
    logger.info(f"Updated survey {survey_id}")
    return {"survey": _summary(repo, survey), "message": "Survey updated"}


@router.delete("/{survey_id}")
def delete_survey(
    survey_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    repo = SqlSurveyRepository(db)
    _owned_survey(repo, survey_id, user_id)
    repo.delete_survey(survey_id)
    logger.info(f"Deleted survey {survey_id}")
    return {"success": True, "message": "Survey deleted"}


@router.get("/improvement-feedbacks")
def get_improvement_feedbacks(
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Latest improvement requests from low-rated responses across all surveys."""
    feedbacks = list_improvement_feedbacks(SqlSurveyRepository(db), user_id, limit=limit)
    return {"success": True, "feedbacks": feedbacks, "total": len(feedbacks)}


@router.get("/{survey_id}/responses")
def get_survey_responses(
    survey_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Owner: all responses of a survey with per-question statistics."""
    repo = SqlSurveyRepository(db)
    survey = _owned_survey(repo, survey_id, user_id)

    responses = repo.list_responses(survey_id)
    logger.info(f"Survey {survey_id}: {len(responses)} responses")
    stats = build_statistics(survey, responses)
    body = stats.model_dump()
    body["responses"] = [r.model_dump(exclude={"submission_token"}) for r in responses]
    return body


# ── Public endpoints ─────────────────────────────────────────────────

@router.get("/{survey_id}", response_model=PublicSurvey)
def get_public_survey(
    survey_id: str,
    engine: SurveyResponseEngine = Depends(get_survey_engine),
):
    """Public: survey definition plus the store's review link."""
    return engine.load_public_survey(survey_id)


@router.post("/{survey_id}/responses", response_model=SubmissionResult)
def submit_survey_response(
    survey_id: str,
    data: SubmitResponseRequest,
    request: Request,
    engine: SurveyResponseEngine = Depends(get_survey_engine),
    classifier: DeviceClassifier = Depends(get_device_classifier),
    dispatcher: RedirectDispatcher = Depends(get_redirect_dispatcher),
):
    """Public: submit answers. Low ratings come back asking for improvement feedback."""
    result = engine.submit_response(
        survey_id,
        data.answers,
        submission_token=data.submission_token,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _with_redirect_plan(result, request, data.viewport_width, classifier, dispatcher)


@router.post("/{survey_id}/improvement", response_model=SubmissionResult)
def submit_improvement(
    survey_id: str,
    data: ImprovementRequest,
    request: Request,
    engine: SurveyResponseEngine = Depends(get_survey_engine),
    classifier: DeviceClassifier = Depends(get_device_classifier),
    dispatcher: RedirectDispatcher = Depends(get_redirect_dispatcher),
):
    """Public: second step for low ratings, answers plus the improvement text."""
    result = engine.submit_improvement(
        survey_id,
        data.answers,
        data.improvement,
        submission_token=data.submission_token,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _with_redirect_plan(result, request, data.viewport_width, classifier, dispatcher)
