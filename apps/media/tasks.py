import logging
from uuid import UUID

from celery import shared_task

from .services import process_media

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def process_media_task(self, media_id):
    """
    Verify an uploaded media object. Retries with exponential backoff while
    the object has not reached storage yet.
    """
    result = process_media(UUID(media_id))
    if result is False:
        countdown = 2 ** self.request.retries
        logger.info(f"Media {media_id} not in storage yet, retrying in {countdown}s")
        raise self.retry(countdown=countdown)
    return result
