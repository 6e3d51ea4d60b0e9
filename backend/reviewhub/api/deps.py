"""
Shared FastAPI dependencies: repositories and engines built per request.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from reviewhub.core.database import get_db
from reviewhub.repositories.sql import (
    SqlAISettingsRepository,
    SqlReviewRepository,
    SqlStoreLookup,
    SqlSurveyRepository,
)
from reviewhub.services.auto_reply_scheduler import AutoReplyScheduler
from reviewhub.services.device import DeviceClassifier
from reviewhub.services.redirect_dispatcher import RedirectDispatcher
from reviewhub.services.reply_generator import ReplyGenerator
from reviewhub.services.survey_engine import SurveyResponseEngine


def get_survey_engine(db: Session = Depends(get_db)) -> SurveyResponseEngine:
    return SurveyResponseEngine(SqlSurveyRepository(db), SqlStoreLookup(db))


def get_device_classifier() -> DeviceClassifier:
    return DeviceClassifier()


def get_redirect_dispatcher() -> RedirectDispatcher:
    return RedirectDispatcher()


def get_reply_generator() -> ReplyGenerator:
    return ReplyGenerator.from_settings()


def get_auto_reply_scheduler(
    db: Session = Depends(get_db),
    generator: ReplyGenerator = Depends(get_reply_generator),
) -> AutoReplyScheduler:
    return AutoReplyScheduler(
        ai_settings=SqlAISettingsRepository(db),
        reviews=SqlReviewRepository(db),
        stores=SqlStoreLookup(db),
        generator=generator,
    )
