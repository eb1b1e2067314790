"""
Celery application configuration for DispatchFlow.

Celery runs the recurring workflow reconciliation passes outside the
request path. Each sync phase is scheduled independently by Celery beat.

Usage:
    # Start worker (from project root):
    celery -A dispatchflow.core.celery_app worker --loglevel=info

    # Start the beat scheduler:
    celery -A dispatchflow.core.celery_app beat --loglevel=info
"""
from celery import Celery

from dispatchflow.core.config import settings

# Create Celery application
celery_app = Celery(
    "dispatchflow",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["dispatchflow.services.tasks"],  # Auto-discover tasks
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution
    task_acks_late=True,  # Acknowledge after task completes (safety)
    task_reject_on_worker_lost=True,

    # Result backend
    result_expires=86400,  # Results expire after 24 hours

    # Worker settings
    worker_prefetch_multiplier=1,

    # Task routing
    task_routes={
        "dispatchflow.services.tasks.*": {"queue": "workflow"},
    },

    # Task time limits
    task_soft_time_limit=240,
    task_time_limit=300,

    # Retry settings
    task_default_retry_delay=30,
    task_max_retries=3,
)

# Define task queues
celery_app.conf.task_queues = {
    "workflow": {
        "exchange": "workflow",
        "routing_key": "workflow",
    },
}

# One schedule entry per sync phase; each scans its own status subset.
celery_app.conf.beat_schedule = {
    f"reconcile-{phase}": {
        "task": "dispatchflow.services.tasks.reconcile_workflow",
        "schedule": float(settings.reconcile_interval_seconds),
        "args": (phase,),
    }
    for phase in ("packing", "loading", "delivery")
}
