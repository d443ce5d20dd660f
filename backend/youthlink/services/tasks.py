"""
Celery tasks for the YouthLink backend.

Currently provides:
- close_expired_opportunities_task: deactivate opportunities past their deadline.
"""

from __future__ import annotations

from celery import Task

from youthlink.db.session import SessionLocal
from youthlink.services.celery_app import celery_app
from youthlink.services.opportunities import close_expired_opportunities


def run_close_expired() -> int:
    """Run the housekeeping job in its own session; returns rows closed."""
    db = SessionLocal()
    try:
        return close_expired_opportunities(db)
    finally:
        db.close()


@celery_app.task(bind=True, name="youthlink.services.tasks.close_expired_opportunities_task")
def close_expired_opportunities_task(self: Task) -> int:
    return run_close_expired()
