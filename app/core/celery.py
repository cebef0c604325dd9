"""
Celery configuration for background tasks
"""
from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging
import logging

from app.core.config import settings
from app.core.logging_config import configure_logging

logger = logging.getLogger(__name__)

# Create Celery instance
celery_app = Celery(
    "facturas",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.modules.facturas.tasks",
    ]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # crontab hours below are wall-clock times in this zone
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # Result backend settings
    result_expires=3600,  # 1 hour

    # Beat schedule for periodic tasks
    beat_schedule={
        "promote-overdue-facturas": {
            "task": "facturas.promote_overdue",
            "schedule": crontab(
                hour=settings.OVERDUE_SWEEP_HOUR,
                minute=settings.OVERDUE_SWEEP_MINUTE,
            ),
        },
        "notify-facturas-due-today": {
            "task": "facturas.notify_due_today",
            "schedule": crontab(
                hour=settings.DUE_TODAY_SWEEP_HOUR,
                minute=settings.DUE_TODAY_SWEEP_MINUTE,
            ),
        },
    }
)


@setup_logging.connect
def configure_worker_logging(**kwargs):
    """Use the application log format in workers instead of Celery's own."""
    configure_logging()


if __name__ == "__main__":
    celery_app.start()
