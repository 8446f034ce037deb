"""
Celery backend: publishes jobs to the Redis broker for a worker to run.

The web process only needs the task names, not the task modules. Start a
worker that consumes every queue used by the routes in config/celery.py:

    celery -A config worker -Q celery,email,webhook,image-processing
"""
import uuid
import logging
from typing import Any, Dict

from apps.core.task_service import TaskServiceInterface

logger = logging.getLogger(__name__)

# Job name -> registered Celery task name
TASK_NAMES = {
    "process_media": "apps.media.tasks.process_media_task",
    "send_email": "apps.notifications.tasks.send_email_task",
    "send_webhook": "apps.notifications.tasks.send_webhook_task",
}


class CeleryTaskService(TaskServiceInterface):
    """Payload keys become the Celery task's keyword arguments."""

    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        celery_name = TASK_NAMES.get(task_name)
        if celery_name is None:
            raise ValueError(f"No Celery task mapped for: {task_name}")

        from config.celery import app

        task_id = str(uuid.uuid4())
        app.send_task(
            celery_name,
            kwargs=payload,
            task_id=task_id,
            countdown=delay_seconds or None,
        )
        logger.info(f"[CELERY] Queued {celery_name} (id={task_id})")
        return task_id
