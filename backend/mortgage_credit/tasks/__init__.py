"""Celery task definitions for async processing.

The retention tasks have no beat entries: an external scheduler enqueues
``purge_expired_credit_reports`` and ``warn_expiring_credit_reports`` on its
own cadence.
"""

from celery import Celery

from mortgage_credit.config import settings

celery_app = Celery(
    "mortgage_credit",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

# Import tasks so they get registered
from mortgage_credit.tasks.retention_tasks import *  # noqa
