"""
Celery configuration for the Showcase project.
"""
import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('config')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

# Route each job family to its own queue
app.conf.task_routes = {
    'apps.media.tasks.*': {'queue': 'image-processing'},
    'apps.notifications.tasks.send_email_task': {'queue': 'email'},
    'apps.notifications.tasks.send_webhook_task': {'queue': 'webhook'},
}
