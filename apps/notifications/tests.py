from unittest import mock

import requests
from django.core import mail
from django.test import TestCase, override_settings

from apps.core.task_service import TaskService
from . import services
from .services import WebhookDeliveryError


@override_settings(DEFAULT_FROM_EMAIL="noreply@showcase.test", PUBLIC_SITE_URL="https://showcase.test")
class TemplatedEmailTest(TestCase):
    def test_welcome_email(self):
        sent = services.send_templated_email(
            to="ada@example.com", subject="Welcome", template="welcome", context={"name": "Ada"}
        )

        self.assertEqual(sent, 1)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["ada@example.com"])
        self.assertEqual(message.from_email, "noreply@showcase.test")
        self.assertIn("Hi Ada", message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, "text/html")
        self.assertIn('href="https://showcase.test"', html)

    def test_app_published_email(self):
        html = services.render_email("app-published", {
            "name": "Ada", "app_title": "Rocket", "app_url": "https://showcase.test/apps/rocket",
        })
        self.assertIn('"Rocket"', html)
        self.assertIn("https://showcase.test/apps/rocket", html)

    def test_unknown_template_uses_default(self):
        html = services.render_email("password-reset", {"message": "Hello there"})
        self.assertIn("Hello there", html)

        html = services.render_email("nope")
        self.assertIn("Thank you for using Showcase Apps!", html)

    def test_context_is_escaped(self):
        html = services.render_email("welcome", {"name": "<script>x</script>"})
        self.assertNotIn("<script>", html)

    def test_task_service_sends_inline(self):
        TaskService.send_email(to="bob@example.com", subject="Hi", template="default")
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Hi")


@override_settings(WEBHOOK_TIMEOUT_SECONDS=10)
class WebhookTest(TestCase):
    @mock.patch("apps.notifications.services.requests.post")
    def test_posts_json_with_headers(self, post):
        post.return_value.status_code = 202

        status = services.deliver_webhook(
            "https://hooks.example.com/in", {"event": "app.published"}, {"X-Token": "abc"}
        )

        self.assertEqual(status, 202)
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://hooks.example.com/in")
        self.assertEqual(kwargs["json"], {"event": "app.published"})
        self.assertEqual(kwargs["timeout"], 10)
        self.assertEqual(kwargs["headers"], {
            "Content-Type": "application/json",
            "User-Agent": "Showcase-Apps-Webhook/1.0",
            "X-Token": "abc",
        })

    @mock.patch("apps.notifications.services.requests.post")
    def test_custom_headers_override_defaults(self, post):
        post.return_value.status_code = 200
        services.deliver_webhook("https://hooks.example.com/in", {}, {"User-Agent": "Custom"})
        self.assertEqual(post.call_args.kwargs["headers"]["User-Agent"], "Custom")

    @mock.patch("apps.notifications.services.requests.post")
    def test_non_2xx_raises(self, post):
        post.return_value.status_code = 500
        with self.assertRaises(WebhookDeliveryError) as ctx:
            services.deliver_webhook("https://hooks.example.com/in", {})
        self.assertEqual(ctx.exception.status_code, 500)

    @mock.patch("apps.notifications.services.requests.post")
    def test_timeout_propagates(self, post):
        post.side_effect = requests.Timeout("slow")
        with self.assertRaises(requests.Timeout):
            services.deliver_webhook("https://hooks.example.com/in", {})


class TaskRetryConfigTest(TestCase):
    def test_tasks_retry_with_backoff(self):
        from .tasks import send_email_task, send_webhook_task

        for task in (send_email_task, send_webhook_task):
            self.assertEqual(task.max_retries, 3)
            self.assertTrue(task.retry_backoff)
            self.assertEqual(task.autoretry_for, (Exception,))
