"""
Local backend: runs jobs inline in the calling process.

Used for development and tests (TASK_BACKEND=local), so no broker is
needed. The caller waits for the job and sees its exceptions.
"""
import uuid
import logging
from typing import Any, Callable, Dict
from uuid import UUID

from apps.core.task_service import TaskServiceInterface

logger = logging.getLogger(__name__)

TASK_HANDLERS: Dict[str, Callable[..., Any]] = {}


def register_handler(task_name: str):
    def decorator(func):
        TASK_HANDLERS[task_name] = func
        return func
    return decorator


class LocalTaskService(TaskServiceInterface):

    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        task_id = str(uuid.uuid4())

        handler = TASK_HANDLERS.get(task_name)
        if handler is None:
            logger.warning(f"[LOCAL] No handler registered for task: {task_name}")
            return task_id

        if delay_seconds:
            logger.debug(f"[LOCAL] Ignoring delay of {delay_seconds}s for {task_name}")

        result = handler(**payload)
        logger.info(f"[LOCAL] {task_name} (id={task_id}) -> {result}")
        return task_id


@register_handler("process_media")
def handle_process_media(media_id: str):
    from apps.media.services import process_media
    return process_media(UUID(media_id))


@register_handler("send_email")
def handle_send_email(to: str, subject: str, template: str, context: dict):
    from apps.notifications.services import send_templated_email
    return send_templated_email(to=to, subject=subject, template=template, context=context)


@register_handler("send_webhook")
def handle_send_webhook(url: str, payload: dict, headers: dict):
    from apps.notifications.services import deliver_webhook
    return deliver_webhook(url=url, payload=payload, headers=headers)
