"""Celery application configuration."""

import os

from celery import Celery, Task
from flask import has_app_context

_flask_app = None


class ContextTask(Task):
    """Task that runs within Flask app context."""

    def __call__(self, *args, **kwargs):
        # Eager tasks run inside the request that queued them
        if has_app_context() or _flask_app is None:
            return self.run(*args, **kwargs)
        with _flask_app.app_context():
            return self.run(*args, **kwargs)


celery = Celery(
    "badboys",
    broker=os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/1"),
    backend=os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1"),
    include=[
        "badboys.tasks.ledger_tasks",
        "badboys.tasks.notification_tasks",
        "badboys.tasks.marketplace_tasks",
    ],
    task_cls=ContextTask,
)

celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=60,
    task_soft_time_limit=45,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=3600,
    broker_connection_retry_on_startup=True,
    beat_schedule={
        "expire-marketplace-listings": {
            "task": "badboys.tasks.marketplace_tasks.expire_marketplace_listings",
            "schedule": 300.0,
        },
    },
)


def init_celery(app):
    """Bind Celery to the Flask app."""
    global _flask_app
    _flask_app = app

    celery.conf.update(
        broker_url=app.config["CELERY_BROKER_URL"],
        result_backend=app.config["CELERY_RESULT_BACKEND"],
        task_always_eager=app.config["CELERY_TASK_ALWAYS_EAGER"],
        task_store_eager_result=False,
    )
    return celery
