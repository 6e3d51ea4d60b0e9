"""Tests for the auto-reply batch scheduler with in-memory collaborators."""
from datetime import datetime, timedelta, timezone

import pytest

from reviewhub.core.errors import ConfigurationMissing, ExternalServiceError
from reviewhub.schemas.ai_settings import AISettingsData
from reviewhub.schemas.review import GeneratedReply, ReviewData
from reviewhub.services.auto_reply_scheduler import (
    SKIP_DISABLED,
    SKIP_OUTSIDE_HOURS,
    AutoReplyScheduler,
)

JST = timezone(timedelta(hours=9))
NOON = datetime(2025, 1, 15, 12, 0, tzinfo=JST)


class FakeSettingsRepo:
    def __init__(self, settings=None, store_ids=()):
        self.settings = settings
        self.store_ids = list(store_ids)

    def get(self, user_id, store_id=None):
        return self.settings

    def list_store_ids_with_settings(self, user_id):
        return self.store_ids


class FakeReviews:
    def __init__(self, reviews):
        self.reviews = {r.id: r for r in reviews}
        self.replies = {}

    def list_unreplied(self, user_id, store_id=None):
        return [r for r in self.reviews.values() if not r.replied and r.id not in self.replies]

    def mark_replied(self, review_id, reply_text):
        if review_id not in self.reviews or review_id in self.replies:
            return False
        self.replies[review_id] = reply_text
        return True

    def get(self, review_id):
        return self.reviews.get(review_id)


class FakeStores:
    def get_google_review_url(self, store_id):
        return None

    def get_display_name(self, store_id):
        return "Cafe Mori"

    def get_category(self, store_id):
        return "カフェ"


class FakeGenerator:
    def __init__(self, failing_ids=()):
        self.failing_texts = {f"review {i}" for i in failing_ids}
        self.calls = []

    def generate(self, review_text, rating, store_name, prompt_context=None):
        self.calls.append((review_text, rating, store_name, prompt_context))
        if review_text in self.failing_texts:
            raise ExternalServiceError("OpenAI API error (500)", provider="OpenAI")
        return GeneratedReply(reply=f"Thanks from {store_name}", metadata={"provider": "Fake"})


def make_settings(**overrides):
    values = {
        "user_id": "u1",
        "auto_reply_enabled": True,
        "auto_reply_delay_minutes": 60,
        "auto_reply_business_hours_only": True,
        "business_hours_start": "09:00",
        "business_hours_end": "18:00",
    }
    values.update(overrides)
    return AISettingsData(**values)


def make_reviews(count=5, minutes_ago=120, rating=5):
    return [
        ReviewData(
            id=f"r{i}",
            user_id="u1",
            store_id="store-1",
            rating=rating,
            text=f"review {i}",
            created_at=NOON - timedelta(minutes=minutes_ago),
        )
        for i in range(1, count + 1)
    ]


def build(settings=None, reviews=None, generator=None):
    sleeps = []
    scheduler = AutoReplyScheduler(
        ai_settings=FakeSettingsRepo(settings),
        reviews=FakeReviews(reviews if reviews is not None else make_reviews()),
        stores=FakeStores(),
        generator=generator or FakeGenerator(),
        interval_seconds=1.0,
        sleep=sleeps.append,
    )
    return scheduler, sleeps


def test_one_failure_does_not_stop_the_batch():
    scheduler, sleeps = build(make_settings(), generator=FakeGenerator(failing_ids=[3]))

    result = scheduler.run("u1", now=NOON)

    assert result.success is True
    assert result.total == 5
    assert result.processed == 4
    assert len(result.results) == 5
    failed = [r for r in result.results if not r.success]
    assert [r.review_id for r in failed] == ["r3"]
    assert "OpenAI" in failed[0].error
    assert set(scheduler.reviews.replies) == {"r1", "r2", "r4", "r5"}


def test_pauses_between_reviews_only():
    scheduler, sleeps = build(make_settings(), reviews=make_reviews(3))
    scheduler.run("u1", now=NOON)
    assert sleeps == [1.0, 1.0]


def test_successful_results_are_marked_auto_generated():
    scheduler, _ = build(make_settings(), reviews=make_reviews(1))
    result = scheduler.run("u1", now=NOON)

    assert result.results[0].reply == "Thanks from Cafe Mori"
    assert result.results[0].metadata["auto_generated"] is True
    assert result.message == "Auto-replied to 1 review(s)"


def test_prompt_context_carries_template_and_business_type():
    generator = FakeGenerator()
    scheduler, _ = build(make_settings(custom_prompt_enabled=True, positive_review_prompt="{店舗名}より感謝"),
                         reviews=make_reviews(1), generator=generator)
    scheduler.run("u1", now=NOON)

    context = generator.calls[0][3]
    assert context.custom_prompt == "Cafe Moriより感謝"
    assert context.use_custom_prompt is True
    assert context.business_type == "カフェ"


def test_missing_settings_aborts():
    scheduler, _ = build(settings=None)
    with pytest.raises(ConfigurationMissing):
        scheduler.run("u1", now=NOON)


def test_disabled_skips_without_processing():
    generator = FakeGenerator()
    scheduler, _ = build(make_settings(auto_reply_enabled=False), generator=generator)

    result = scheduler.run("u1", now=NOON)

    assert result.success is False
    assert result.message == SKIP_DISABLED
    assert result.processed == 0
    assert generator.calls == []


def test_outside_business_hours_skips():
    scheduler, _ = build(make_settings())
    result = scheduler.run("u1", now=datetime(2025, 1, 15, 20, 0, tzinfo=JST))
    assert result.success is False
    assert result.message == SKIP_OUTSIDE_HOURS


def test_force_runs_when_disabled_and_after_hours():
    scheduler, _ = build(make_settings(auto_reply_enabled=False), reviews=make_reviews(2, minutes_ago=5))
    result = scheduler.run("u1", force=True, now=datetime(2025, 1, 15, 23, 0, tzinfo=JST))
    assert result.processed == 2


def test_force_still_respects_rating_range():
    scheduler, _ = build(make_settings(auto_reply_min_rating=4), reviews=make_reviews(2, rating=2))
    result = scheduler.run("u1", force=True, now=NOON)
    assert result.total == 0
    assert result.results == []


def test_reviews_within_delay_are_left_alone():
    scheduler, _ = build(make_settings(), reviews=make_reviews(2, minutes_ago=30))
    result = scheduler.run("u1", now=NOON)
    assert result.success is True
    assert result.total == 0


def test_lost_reply_race_is_reported():
    reviews = make_reviews(1)
    scheduler, _ = build(make_settings(), reviews=reviews)
    scheduler.reviews.replies["r1"] = "already answered elsewhere"
    # Still listed as unreplied when the batch read it
    scheduler.reviews.list_unreplied = lambda user_id, store_id=None: reviews

    result = scheduler.run("u1", now=NOON)

    assert result.processed == 0
    assert result.results[0].error == "Failed to save the reply"


def test_user_wide_batch_skips_stores_with_own_settings():
    reviews = make_reviews(2)
    reviews[1] = reviews[1].model_copy(update={"store_id": "store-2"})
    scheduler, _ = build(make_settings(), reviews=reviews)
    scheduler.ai_settings.store_ids = ["store-2"]

    result = scheduler.run("u1", now=NOON)

    assert [r.review_id for r in result.results] == ["r1"]
    assert "r2" not in scheduler.reviews.replies
