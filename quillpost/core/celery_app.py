"""Celery application for background tasks (counter reconciliation)."""
from celery import Celery

from quillpost.core.config import settings

celery_app = Celery(
    "quillpost",
    broker=settings.CELERY_BROKER_URL,
    include=["quillpost.workers.counters"],
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "reconcile-all-counters": {
            "task": "quillpost.workers.counters.reconcile_all_counters",
            "schedule": 3600.0,
        },
    },
)
