"""
Celery Application Configuration
Background refresh of lifetime analytics
"""

from celery import Celery
from kombu import Queue, Exchange

from getcito.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    settings.APP_NAME,
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "getcito.workers.tasks.analytics_tasks",
    ]
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Result backend settings
    result_expires=86400,  # 24 hours

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,
    task_soft_time_limit=240,

    worker_prefetch_multiplier=1,

    # Retry settings
    task_default_retry_delay=30,

    task_queues=(
        Queue("default", Exchange("default"), routing_key="default"),
        Queue("analytics", Exchange("analytics"), routing_key="analytics"),
    ),

    task_default_queue="default",
    task_default_exchange="default",
    task_default_routing_key="default",

    task_routes={
        "getcito.workers.tasks.analytics_tasks.*": {"queue": "analytics"},
    },

    # Beat scheduler for periodic tasks
    beat_schedule={
        "refresh-lifetime-analytics": {
            "task": "getcito.workers.tasks.analytics_tasks.refresh_all_lifetime_analytics",
            "schedule": float(settings.LIFETIME_REFRESH_INTERVAL),
        },
    },
)
