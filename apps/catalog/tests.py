import json
from unittest import mock
from uuid import uuid4

import requests
from django.core import mail
from django.test import TestCase, Client, override_settings

from apps.identity.models import User, UserRole
from .models import App, AppLike, AppStatus, AppVersion, AppView, AppVisibility
from . import services


def make_user(username, role=UserRole.DEVELOPER, **kwargs):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="pw",
        name=username.title(),
        role=role,
        **kwargs
    )


def make_app(owner, slug, **kwargs):
    defaults = {
        "title": slug.replace("-", " ").title(),
        "short_desc": f"About {slug}",
        "status": AppStatus.PUBLISHED,
        "visibility": AppVisibility.PUBLIC,
    }
    defaults.update(kwargs)
    return App.objects.create(slug=slug, created_by_id=owner.id, **defaults)


class AppAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.org_id = uuid4()
        self.admin = make_user("admin", role=UserRole.ADMIN)
        self.dev = make_user("dev", org_id=self.org_id)
        self.other_dev = make_user("other")
        self.viewer = make_user("viewer", role=UserRole.VIEWER)

    def _json(self, method, url, data):
        return getattr(self.client, method)(url, json.dumps(data), content_type="application/json")

    def test_create_app_sets_owner_and_org(self):
        self.client.force_login(self.dev)
        response = self._json("post", "/api/apps/", {
            "title": "My Great App",
            "short_desc": "Does things",
            "platforms": ["WEB", "IOS"],
            "tags": ["productivity"],
        })
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["slug"], "my-great-app")
        self.assertEqual(body["status"], AppStatus.DRAFT)
        self.assertEqual(body["created_by_id"], str(self.dev.id))
        self.assertEqual(body["organization_id"], str(self.org_id))

    def test_generated_slug_is_unique(self):
        make_app(self.dev, "my-great-app")
        app = services.create_app(self.dev, services.AppIn(title="My Great App", short_desc="x"))
        self.assertEqual(app.slug, "my-great-app-2")

    def test_viewer_cannot_create_app(self):
        self.client.force_login(self.viewer)
        response = self._json("post", "/api/apps/", {"title": "Nope", "short_desc": "x"})
        self.assertEqual(response.status_code, 403)

    def test_create_app_validation(self):
        self.client.force_login(self.dev)
        make_app(self.dev, "taken")
        response = self._json("post", "/api/apps/", {
            "title": "",
            "slug": "taken",
            "short_desc": "x",
            "platforms": ["SMARTWATCH"],
            "website": "example.com",
        })
        self.assertEqual(response.status_code, 400)
        codes = {e["code"] for e in response.json()["field_errors"]}
        self.assertEqual(codes, {"REQUIRED_FIELD", "DUPLICATE_SLUG", "INVALID_PLATFORM", "INVALID_URL"})

    def test_only_owner_or_admin_can_update(self):
        app = make_app(self.dev, "owned")

        self.client.force_login(self.other_dev)
        response = self._json("put", f"/api/apps/{app.id}", {"title": "Hijacked"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "You can only update your own apps")

        self.client.force_login(self.dev)
        response = self._json("put", f"/api/apps/{app.id}", {"title": "Renamed"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Renamed")

        self.client.force_login(self.admin)
        response = self.client.delete(f"/api/apps/{app.id}")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(App.objects.filter(id=app.id).exists())

    def test_update_can_clear_release_date(self):
        from datetime import datetime, timezone
        app = make_app(self.dev, "dated", release_date=datetime(2024, 5, 1, tzinfo=timezone.utc))
        self.client.force_login(self.dev)

        response = self._json("put", f"/api/apps/{app.id}", {"release_date": None, "title": None})

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["release_date"])
        app.refresh_from_db()
        self.assertIsNone(app.release_date)
        self.assertEqual(app.title, "Dated")

    def test_get_by_slug_and_missing(self):
        make_app(self.dev, "findme")
        response = self.client.get("/api/apps/slug/FindMe")
        self.assertEqual(response.status_code, 200)
        response = self.client.get(f"/api/apps/{uuid4()}")
        self.assertEqual(response.status_code, 404)

    def test_drafts_hidden_from_public(self):
        draft = make_app(self.dev, "draft", status=AppStatus.DRAFT)
        self.assertEqual(self.client.get(f"/api/apps/{draft.id}").status_code, 404)

        self.client.force_login(self.dev)
        self.assertEqual(self.client.get(f"/api/apps/{draft.id}").status_code, 200)

    def test_list_filters(self):
        make_app(self.dev, "alpha", platforms=["WEB"], tags=["games"])
        make_app(self.dev, "beta", platforms=["IOS"], tags=["finance"], long_desc="budget tracker")
        make_app(self.dev, "gamma", platforms=["ANDROID"], tags=["games", "kids"])
        make_app(self.dev, "hidden", visibility=AppVisibility.PRIVATE, tags=["games"])

        response = self.client.get("/api/apps/?tags=games")
        self.assertEqual({a["slug"] for a in response.json()}, {"alpha", "gamma"})

        response = self.client.get("/api/apps/?platforms=WEB&platforms=IOS")
        self.assertEqual({a["slug"] for a in response.json()}, {"alpha", "beta"})

        response = self.client.get("/api/apps/?search=budget")
        self.assertEqual([a["slug"] for a in response.json()], ["beta"])

        response = self.client.get("/api/apps/paginated?limit=2&offset=0")
        body = response.json()
        self.assertEqual(body["total_count"], 3)
        self.assertEqual(len(body["items"]), 2)
        self.assertEqual(body["limit"], 2)

    def test_rejects_out_of_range_paging(self):
        for query in ("limit=-1", "limit=0", "limit=101", "offset=-5"):
            self.assertEqual(self.client.get(f"/api/apps/?{query}").status_code, 422, query)
            self.assertEqual(self.client.get(f"/api/apps/paginated?{query}").status_code, 422, query)
        self.assertEqual(self.client.get("/api/apps/timeline?limit=-1").status_code, 422)

    def test_all_tags(self):
        make_app(self.dev, "one", tags=["b", "a"])
        make_app(self.dev, "two", tags=["a", "c"])
        response = self.client.get("/api/apps/tags")
        self.assertEqual(response.json(), ["a", "b", "c"])

    def test_timeline_orders_by_release_date(self):
        from datetime import datetime, timezone
        make_app(self.dev, "old", release_date=datetime(2020, 1, 1, tzinfo=timezone.utc))
        make_app(self.dev, "new", release_date=datetime(2024, 1, 1, tzinfo=timezone.utc))
        make_app(self.dev, "draft", status=AppStatus.DRAFT)
        response = self.client.get("/api/apps/timeline")
        self.assertEqual([a["slug"] for a in response.json()], ["new", "old"])


class ViewLikeTest(TestCase):
    def setUp(self):
        self.client = Client()
        self.dev = make_user("dev")
        self.viewer = make_user("viewer", role=UserRole.VIEWER)
        self.app = make_app(self.dev, "popular")

    def test_view_counted_once_per_user(self):
        self.assertTrue(services.increment_view(self.app.id, self.viewer.id))
        self.assertFalse(services.increment_view(self.app.id, self.viewer.id))
        self.assertTrue(services.increment_view(self.app.id, self.dev.id))

        self.app.refresh_from_db()
        self.assertEqual(self.app.view_count, 2)
        self.assertEqual(AppView.objects.count(), 2)

    def test_like_via_api(self):
        self.client.force_login(self.viewer)
        response = self.client.post(f"/api/apps/{self.app.id}/like")
        self.assertEqual(response.json(), {"changed": True})
        response = self.client.post(f"/api/apps/{self.app.id}/like")
        self.assertEqual(response.json(), {"changed": False})

        self.app.refresh_from_db()
        self.assertEqual(self.app.like_count, 1)
        self.assertEqual(AppLike.objects.get().reaction, "like")

        response = self.client.get(f"/api/apps/{self.app.id}/liked")
        self.assertEqual(response.json(), {"value": True})
        response = self.client.get("/api/apps/liked")
        self.assertEqual(response.json(), [str(self.app.id)])

    def test_anonymous_view_not_counted(self):
        response = self.client.post(f"/api/apps/{self.app.id}/view")
        self.assertEqual(response.json(), {"changed": False})
        self.app.refresh_from_db()
        self.assertEqual(self.app.view_count, 0)


class AppVersionTest(TestCase):
    def setUp(self):
        self.client = Client()
        self.dev = make_user("dev")
        self.app = make_app(self.dev, "versioned")
        self.client.force_login(self.dev)

    def _create(self, version, **extra):
        return self.client.post(
            f"/api/apps/{self.app.id}/versions",
            json.dumps({"version": version, **extra}),
            content_type="application/json",
        )

    def test_latest_flag_is_exclusive(self):
        first = self._create("1.0.0", is_latest=True).json()
        second = self._create("1.1.0", is_latest=True).json()

        self.assertFalse(AppVersion.objects.get(id=first["id"]).is_latest)
        self.assertTrue(AppVersion.objects.get(id=second["id"]).is_latest)

        response = self.client.post(f"/api/apps/{self.app.id}/versions/{first['id']}/latest")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(AppVersion.objects.filter(is_latest=True).count(), 1)
        self.assertTrue(AppVersion.objects.get(id=first["id"]).is_latest)

    def test_duplicate_version_rejected(self):
        self._create("2.0")
        response = self._create("2.0")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field_errors"][0]["code"], "DUPLICATE_FIELD")

    def test_list_and_delete(self):
        version_id = self._create("1.0").json()["id"]
        response = self.client.get(f"/api/apps/{self.app.id}/versions")
        self.assertEqual([v["version"] for v in response.json()], ["1.0"])

        response = self.client.delete(f"/api/apps/{self.app.id}/versions/{version_id}")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(AppVersion.objects.exists())


class PublishNotificationTest(TestCase):
    def setUp(self):
        self.dev = make_user("dev")
        self.app = make_app(self.dev, "launch", status=AppStatus.DRAFT)

    @override_settings(APP_WEBHOOK_URLS=["https://hooks.example.com/a"])
    @mock.patch("apps.notifications.services.requests.post")
    def test_publishing_sends_email_and_webhook(self, mock_post):
        mock_post.return_value.status_code = 200

        with self.captureOnCommitCallbacks(execute=True):
            services.update_app(self.app.id, self.dev, {"status": AppStatus.PUBLISHED})

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["dev@example.com"])
        self.assertIn("Launch", mail.outbox[0].subject)

        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://hooks.example.com/a")
        self.assertEqual(kwargs["json"]["event"], "app.published")
        self.assertEqual(kwargs["json"]["app"]["slug"], "launch")

    @override_settings(APP_WEBHOOK_URLS=[])
    def test_notifications_wait_for_commit(self):
        with self.captureOnCommitCallbacks() as callbacks:
            services.update_app(self.app.id, self.dev, {"status": AppStatus.PUBLISHED})
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(len(callbacks), 1)

    def test_no_notification_when_already_published(self):
        with self.captureOnCommitCallbacks(execute=True):
            services.update_app(self.app.id, self.dev, {"status": AppStatus.PUBLISHED})
        mail.outbox.clear()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            services.update_app(self.app.id, self.dev, {"title": "Launch 2"})
        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(APP_WEBHOOK_URLS=["https://hooks.down.example"])
    @mock.patch("apps.notifications.services.requests.post")
    def test_unreachable_webhook_does_not_fail_create(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("connection refused")
        client = Client()
        client.force_login(self.dev)

        with self.assertLogs("apps.core.task_service", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                response = client.post("/api/apps/", json.dumps({
                    "title": "Live Now",
                    "short_desc": "Published on create",
                    "status": AppStatus.PUBLISHED,
                }), content_type="application/json")

        self.assertEqual(response.status_code, 201)
        self.assertTrue(App.objects.filter(slug="live-now").exists())
        mock_post.assert_called_once()
        # The email job still went out
        self.assertEqual(len(mail.outbox), 1)


class DashboardTest(TestCase):
    def test_dashboard_stats(self):
        admin = make_user("admin", role=UserRole.ADMIN)
        dev = make_user("dev")
        make_app(dev, "one", view_count=5, like_count=2)
        make_app(dev, "two", status=AppStatus.DRAFT, view_count=1)

        client = Client()
        client.force_login(dev)
        self.assertEqual(client.get("/api/apps/dashboard").status_code, 403)

        client.force_login(admin)
        body = client.get("/api/apps/dashboard").json()
        self.assertEqual(body["total_apps"], 2)
        self.assertEqual(body["published_apps"], 1)
        self.assertEqual(body["draft_apps"], 1)
        self.assertEqual(body["total_views"], 6)
        self.assertEqual(body["total_likes"], 2)
        self.assertEqual(body["total_users"], 2)
        self.assertEqual(len(body["recent_apps"]), 2)
