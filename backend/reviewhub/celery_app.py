from celery import Celery

from reviewhub.core.config import settings

celery_app = Celery(
    "reviewhub",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["reviewhub.tasks.async_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "sweep-auto-replies": {
            "task": "sweep_auto_replies",
            "schedule": settings.AUTO_REPLY_SWEEP_MINUTES * 60.0,
        },
    },
)
