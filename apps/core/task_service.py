"""
TaskService - Abstraction layer for async task execution.

This module provides a platform-agnostic interface for executing background tasks.
The actual backend is determined by the TASK_BACKEND setting.

Usage:
    from apps.core.task_service import TaskService

    # Queue post-upload processing for a media record
    TaskService.process_media(media_id=uuid)

    # Queue a templated email
    TaskService.send_email(to="dev@example.com", subject="Hi", template="welcome", context={})

Environment Configuration:
    TASK_BACKEND=local   # Sync execution (development, tests)
    TASK_BACKEND=celery  # Celery + Redis
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction

logger = logging.getLogger(__name__)


class TaskServiceInterface(ABC):
    """
    Abstract interface for async task execution.

    Implementations:
    - LocalTaskService: Sync execution for development/testing
    - CeleryTaskService: Celery + Redis
    """

    @abstractmethod
    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """
        Queue a task for async execution.

        Args:
            task_name: Identifier for the task handler
            payload: Data to pass to the task
            delay_seconds: Delay before execution (0 = immediate)

        Returns:
            Task ID for tracking
        """
        pass


def _get_backend() -> TaskServiceInterface:
    """Get the configured task backend based on the TASK_BACKEND setting."""
    backend = getattr(settings, 'TASK_BACKEND', 'local')

    if backend == 'local':
        from apps.core.backends.local_backend import LocalTaskService
        return LocalTaskService()
    elif backend == 'celery':
        from apps.core.backends.celery_backend import CeleryTaskService
        return CeleryTaskService()
    else:
        raise ValueError(f"Unknown TASK_BACKEND: {backend}")


class TaskService:
    """
    Facade for sending async tasks.

    This class provides static methods for each task type,
    delegating to the configured backend.
    """

    @staticmethod
    def process_media(media_id: UUID) -> str:
        """
        Queue post-upload processing for a media record.

        Used by: Media app after a file lands in object storage.
        """
        logger.info(f"Queueing process_media task for media {media_id}")
        return _get_backend().send_task(
            task_name="process_media",
            payload={"media_id": str(media_id)}
        )

    @staticmethod
    def send_email(
        to: str,
        subject: str,
        template: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Queue a templated email.

        Used by: Identity (welcome) and Catalog (app published).
        """
        logger.info(f"Queueing send_email task ({template}) for {to}")
        return _get_backend().send_task(
            task_name="send_email",
            payload={
                "to": to,
                "subject": subject,
                "template": template,
                "context": context or {},
            }
        )

    @staticmethod
    def send_webhook(
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Queue a JSON webhook delivery.

        Used by: Catalog when an app is published.
        """
        logger.info(f"Queueing send_webhook task for {url}")
        return _get_backend().send_task(
            task_name="send_webhook",
            payload={
                "url": url,
                "payload": payload,
                "headers": headers or {},
            }
        )


def queue_after_commit(job, **kwargs):
    """
    Run ``job(**kwargs)`` once the current transaction commits.

    For notifications: a job that cannot be dispatched is logged and does
    not fail the request that triggered it.
    """
    def dispatch():
        try:
            job(**kwargs)
        except Exception:
            logger.exception(f"Failed to dispatch {job.__name__}")

    transaction.on_commit(dispatch)
