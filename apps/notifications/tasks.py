"""Celery tasks for Notifications app."""
from celery import shared_task

from . import services


@shared_task(autoretry_for=(Exception,), retry_backoff=True, max_retries=3)
def send_email_task(to, subject, template, context=None):
    sent = services.send_templated_email(to=to, subject=subject, template=template, context=context)
    return f"Sent {sent} email(s) to {to}"


@shared_task(autoretry_for=(Exception,), retry_backoff=True, max_retries=3)
def send_webhook_task(url, payload, headers=None):
    """Deliver a webhook; non-2xx responses raise and are retried with backoff."""
    status = services.deliver_webhook(url=url, payload=payload, headers=headers)
    return f"Webhook delivered to {url} ({status})"
