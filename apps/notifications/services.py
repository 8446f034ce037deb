"""
Outbound notifications: templated email and JSON webhooks.

These run inside background jobs (see apps.core.task_service). Failures
propagate so the job backend can retry.
"""
import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import get_template
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)

WEBHOOK_USER_AGENT = 'Showcase-Apps-Webhook/1.0'


class WebhookDeliveryError(Exception):
    """Raised when a webhook endpoint answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Webhook to {url} failed with status {status_code}")


def render_email(template: str, context: Optional[Dict[str, Any]] = None) -> str:
    """Render ``notifications/<template>.html``, falling back to the default template."""
    context = {'site_url': settings.PUBLIC_SITE_URL, **(context or {})}
    try:
        email_template = get_template(f'notifications/{template}.html')
    except TemplateDoesNotExist:
        logger.warning(f"Unknown email template '{template}', using default")
        email_template = get_template('notifications/default.html')
    return email_template.render(context)


def send_templated_email(to: str, subject: str, template: str, context: Optional[Dict[str, Any]] = None) -> int:
    """Send an HTML email with a plain-text alternative. Returns the number sent."""
    html = render_email(template, context)
    message = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html).strip(),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
    )
    message.attach_alternative(html, 'text/html')
    sent = message.send()
    logger.info(f"Email '{template}' sent to {to}")
    return sent


def deliver_webhook(url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> int:
    """
    POST ``payload`` as JSON to ``url``.

    Caller-supplied headers override the defaults.

    Raises:
        WebhookDeliveryError: on a non-2xx response
        requests.RequestException: on connection errors or timeout
    """
    response = requests.post(
        url,
        json=payload,
        headers={
            'Content-Type': 'application/json',
            'User-Agent': WEBHOOK_USER_AGENT,
            **(headers or {}),
        },
        timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
    )
    if not 200 <= response.status_code < 300:
        logger.error(f"Webhook to {url} returned {response.status_code}")
        raise WebhookDeliveryError(url, response.status_code)

    logger.info(f"Webhook sent to {url}: {response.status_code}")
    return response.status_code
