"""
Celery application configuration for background housekeeping.

This module defines a single Celery instance:

    celery_app = Celery(...)

It is used by:
- youthlink.services.tasks (for task definitions)
- the worker / beat entrypoints via
  `celery -A youthlink.services.celery_app.celery_app worker -B -Q housekeeping`
"""

from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from youthlink.config import get_settings

settings = get_settings()

celery_app = Celery(
    "youthlink_tasks",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["youthlink.services.tasks"],
)

celery_app.conf.task_routes = {
    "youthlink.services.tasks.*": {"queue": "housekeeping"},
}

# Deadlines are enforced at apply time; this only keeps listings tidy
celery_app.conf.beat_schedule = {
    "close-expired-opportunities": {
        "task": "youthlink.services.tasks.close_expired_opportunities_task",
        "schedule": crontab(minute=0),
    },
}
