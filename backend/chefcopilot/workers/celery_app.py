"""
Celery application instance and configuration.
"""

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging

from chefcopilot.core.config import settings
from chefcopilot.core.logging import setup_logging

# Create Celery application
celery_app = Celery(
    "chefcopilot",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

# Configure Celery
celery_app.conf.update(
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    accept_content=settings.celery_accept_content_list,
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=settings.CELERY_ENABLE_UTC,
    task_track_started=True,
    task_time_limit=10 * 60,  # 10 minutes
    task_soft_time_limit=8 * 60,  # 8 minutes
    result_expires=3600,  # 1 hour
)

# Celery Beat Schedule (Periodic Tasks)
celery_app.conf.beat_schedule = {
    'index-pending-products': {
        'task': 'indexing.index_pending_products',
        'schedule': crontab(minute=f'*/{settings.INDEXING_INTERVAL_MINUTES}'),
        'options': {'queue': 'indexing'},
    },
}

# Task routing
celery_app.conf.task_routes = {
    'indexing.*': {'queue': 'indexing'},
}


@celery_setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    """Use the application's log format in workers instead of Celery's."""
    setup_logging()


# Auto-discover tasks from chefcopilot.tasks
celery_app.autodiscover_tasks(['chefcopilot.tasks'])
