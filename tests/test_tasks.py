"""Celery tasks run synchronously against the test database."""
import pytest
from sqlalchemy.orm import sessionmaker

from reviewhub.celery_app import celery_app
from reviewhub.models import Review
from reviewhub.tasks import async_tasks


@pytest.fixture
def task_sessions(test_engine, monkeypatch):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    monkeypatch.setattr(async_tasks, "SessionLocal", Session)
    return Session


def test_sweep_is_scheduled():
    schedule = celery_app.conf.beat_schedule["sweep-auto-replies"]
    assert schedule["task"] == "sweep_auto_replies"
    assert schedule["schedule"] > 0


def test_run_auto_reply_task(task_sessions, db_session, make_ai_settings, make_store, make_review):
    make_ai_settings()
    review = make_review(make_store(), minutes_ago=120)

    result = async_tasks.run_auto_reply("user-1", None, False)

    assert result["processed"] == 1
    db_session.expire_all()
    assert db_session.get(Review, review.id).replied is True


def test_sweep_runs_every_enabled_user(task_sessions, make_ai_settings, make_store, make_review):
    make_ai_settings(user_id="user-1")
    make_ai_settings(user_id="user-2")
    make_ai_settings(user_id="user-3", auto_reply_enabled=False)
    make_review(make_store(user_id="user-1"))
    make_review(make_store(user_id="user-2"))
    make_review(make_store(user_id="user-3"))

    summary = async_tasks.sweep_auto_replies()

    assert summary == {"batches": 2, "processed": 2, "failed": 0}


def test_sweep_honours_store_level_settings(task_sessions, db_session, make_ai_settings, make_store, make_review):
    make_ai_settings(user_id="user-1")
    shared = make_store(user_id="user-1", display_name="Shared")
    disabled = make_store(user_id="user-1", display_name="Disabled")
    narrowed = make_store(user_id="user-1", display_name="Narrowed")
    make_ai_settings(user_id="user-1", store_id=disabled.id, auto_reply_enabled=False)
    make_ai_settings(user_id="user-1", store_id=narrowed.id, auto_reply_min_rating=4)
    shared_review = make_review(shared, minutes_ago=120)
    disabled_review = make_review(disabled, minutes_ago=120)
    low_review = make_review(narrowed, rating=1, text="Cold food", minutes_ago=120)
    high_review = make_review(narrowed, rating=5, minutes_ago=120)

    summary = async_tasks.sweep_auto_replies()

    assert summary == {"batches": 2, "processed": 2, "failed": 0}
    db_session.expire_all()
    assert db_session.get(Review, shared_review.id).replied is True
    assert db_session.get(Review, high_review.id).replied is True
    assert db_session.get(Review, disabled_review.id).replied is False
    assert db_session.get(Review, low_review.id).replied is False
