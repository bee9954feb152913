"""Celery application: scheduled opt-out submission."""

from celery import Celery
from celery.schedules import crontab

from broker_remover.config import get_settings

settings = get_settings()

celery_app = Celery(
    "broker_remover",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["broker_remover.workers.tasks.submit_requests"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # a batch submits one request at a time by default, each bounded by the automation timeout
    task_time_limit=30 * 60,
    task_soft_time_limit=25 * 60,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    result_expires=24 * 3600,
)

celery_app.conf.beat_schedule = {
    "process-pending-requests": {
        "task": "broker_remover.workers.tasks.submit_requests.process_pending_requests",
        "schedule": crontab(minute="*/15"),
    },
}
