"""Celery setup for the campus events project."""

import os
import typing as t

import structlog
from celery import Celery
from celery.signals import task_postrun, task_prerun

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "campus.settings")

app = Celery("campus")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()


@task_prerun.connect
def celery_task_prerun(task_id: str, task: t.Any, *args: t.Any, **kwargs: t.Any) -> None:
    """Bind Celery task context to structlog before task execution.

    Args:
        task_id: Unique ID of the Celery task
        task: The Celery task instance
        args: Task positional arguments
        kwargs: Task keyword arguments
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        task_id=task_id,
        task_name=task.name,
        retries=getattr(task.request, "retries", 0),
    )


@task_postrun.connect
def celery_task_postrun(*args: t.Any, **kwargs: t.Any) -> None:
    """Clear structlog context after task execution."""
    structlog.contextvars.clear_contextvars()


# run:
# celery -A campus worker -l INFO
# celery -A campus beat -l INFO
