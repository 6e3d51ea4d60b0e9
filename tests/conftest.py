"""Pytest configuration and fixtures."""
import os
from datetime import datetime, timedelta, timezone

import pytest

# Keep tests on an in-memory database and away from real AI providers
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["AUTO_REPLY_INTERVAL_SECONDS"] = "0"
os.environ["REDIRECT_COMPLETION_DELAY_SECONDS"] = "0"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reviewhub.api.deps import get_reply_generator
from reviewhub.core.database import Base, get_db
from reviewhub.main import app
from reviewhub.models import AISettings, Review, Store, Survey
from reviewhub.services.reply_generator import ReplyGenerator

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
REVIEW_URL = "https://search.google.com/local/writereview?placeid=TEST"

DEFAULT_QUESTIONS = [
    {"id": 1, "type": "rating", "question": "Overall satisfaction", "required": True, "scale": 5},
    {"id": 2, "type": "rating", "question": "Staff", "required": True, "scale": 5},
    {"id": 3, "type": "choice", "question": "How did you find us?", "required": False,
     "options": ["Search", "Friend"]},
    {"id": 4, "type": "text", "question": "Anything else?", "required": False},
]


@pytest.fixture
def test_engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def reply_generator():
    """Template-only generator: no provider keys configured."""
    return ReplyGenerator(openai_api_key=None, gemini_api_key=None, fallback_enabled=True)


@pytest.fixture
def client(test_engine, reply_generator):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reply_generator] = lambda: reply_generator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER_ID}


@pytest.fixture
def make_store(db_session):
    def _make(user_id=USER_ID, display_name="Test Cafe", google_review_url=REVIEW_URL, category="カフェ"):
        store = Store(
            user_id=user_id,
            display_name=display_name,
            google_review_url=google_review_url,
            category=category,
        )
        db_session.add(store)
        db_session.commit()
        db_session.refresh(store)
        return store
    return _make


@pytest.fixture
def make_survey(db_session):
    def _make(store=None, user_id=USER_ID, questions=None, is_active=True, title="Visit survey"):
        survey = Survey(
            user_id=user_id,
            store_id=store.id if store else None,
            title=title,
            questions=questions if questions is not None else DEFAULT_QUESTIONS,
            is_active=is_active,
        )
        db_session.add(survey)
        db_session.commit()
        db_session.refresh(survey)
        return survey
    return _make


@pytest.fixture
def make_review(db_session):
    def _make(store, rating=5, text="Great coffee!", minutes_ago=120, replied=False, user_id=None):
        review = Review(
            user_id=user_id or store.user_id,
            store_id=store.id,
            rating=rating,
            text=text,
            author_name="Taro",
            created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
            replied=replied,
        )
        db_session.add(review)
        db_session.commit()
        db_session.refresh(review)
        return review
    return _make


@pytest.fixture
def make_ai_settings(db_session):
    def _make(user_id=USER_ID, store_id=None, **fields):
        values = {
            "auto_reply_enabled": True,
            "auto_reply_delay_minutes": 60,
            "auto_reply_business_hours_only": False,
            "business_hours_start": "09:00",
            "business_hours_end": "18:00",
            "auto_reply_min_rating": 1,
            "auto_reply_max_rating": 5,
            "custom_prompt_enabled": False,
            "positive_review_prompt": "",
            "neutral_review_prompt": "",
            "negative_review_prompt": "",
            "no_comment_review_prompt": "",
        }
        values.update(fields)
        row = AISettings(user_id=user_id, store_id=store_id, **values)
        db_session.add(row)
        db_session.commit()
        db_session.refresh(row)
        return row
    return _make
