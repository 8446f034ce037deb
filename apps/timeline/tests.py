import json
from datetime import timedelta
from uuid import uuid4

from django.test import TestCase, Client
from django.utils import timezone

from apps.catalog.models import App, AppStatus, AppVisibility
from apps.identity.models import User, UserRole
from .models import EventType, TimelineEvent
from . import services


def make_user(username, role=UserRole.DEVELOPER):
    return User.objects.create_user(
        username=username, email=f"{username}@example.com", password="pw", role=role
    )


def make_event(app, user, days_ago=0, **kwargs):
    return TimelineEvent.objects.create(
        app_id=app.id,
        created_by_id=user.id,
        title=kwargs.pop("title", f"Event {days_ago}"),
        date=timezone.now() - timedelta(days=days_ago),
        **kwargs
    )


class TimelineAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = make_user("admin", role=UserRole.ADMIN)
        self.owner = make_user("owner")
        self.other = make_user("other")
        self.viewer = make_user("viewer", role=UserRole.VIEWER)
        self.app = App.objects.create(
            title="Rocket", slug="rocket", short_desc="x", created_by_id=self.owner.id,
            status=AppStatus.PUBLISHED, visibility=AppVisibility.PUBLIC,
        )

    def _json(self, method, url, data):
        return getattr(self.client, method)(url, json.dumps(data), content_type="application/json")

    def _event_payload(self, **kwargs):
        payload = {
            "app_id": str(self.app.id),
            "title": "v1.0 released",
            "type": "RELEASE",
            "date": timezone.now().isoformat(),
            "version": "1.0.0",
        }
        payload.update(kwargs)
        return payload

    def test_create_event_sets_creator(self):
        self.client.force_login(self.owner)
        response = self._json("post", "/api/timeline/", self._event_payload())
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["created_by_id"], str(self.owner.id))
        self.assertEqual(body["type"], EventType.RELEASE)
        self.assertTrue(body["is_public"])

    def test_create_defaults_to_announcement(self):
        self.client.force_login(self.owner)
        payload = self._event_payload()
        del payload["type"]
        response = self._json("post", "/api/timeline/", payload)
        self.assertEqual(response.json()["type"], EventType.ANNOUNCEMENT)

    def test_create_permissions(self):
        self.assertEqual(self._json("post", "/api/timeline/", self._event_payload()).status_code, 401)

        self.client.force_login(self.viewer)
        self.assertEqual(self._json("post", "/api/timeline/", self._event_payload()).status_code, 403)

        self.client.force_login(self.other)
        self.assertEqual(self._json("post", "/api/timeline/", self._event_payload()).status_code, 403)

        response = self._json("post", "/api/timeline/", self._event_payload(app_id=str(uuid4())))
        self.assertEqual(response.status_code, 404)

    def test_create_validation(self):
        self.client.force_login(self.owner)
        response = self._json("post", "/api/timeline/", self._event_payload(
            title="  ", type="PARTY", url="ftp://example.com"
        ))
        self.assertEqual(response.status_code, 400)
        codes = {e["code"] for e in response.json()["field_errors"]}
        self.assertEqual(codes, {"REQUIRED_FIELD", "INVALID_EVENT_TYPE", "INVALID_URL"})

    def test_public_list_is_paginated_newest_first(self):
        old = make_event(self.app, self.owner, days_ago=10)
        new = make_event(self.app, self.owner, days_ago=1)
        make_event(self.app, self.owner, days_ago=0, is_public=False)

        response = self.client.get("/api/timeline/?limit=1")
        body = response.json()
        self.assertEqual(body["total_count"], 2)
        self.assertEqual([e["id"] for e in body["items"]], [str(new.id)])

        body = self.client.get("/api/timeline/?limit=1&offset=1").json()
        self.assertEqual([e["id"] for e in body["items"]], [str(old.id)])

    def test_negative_paging_is_rejected(self):
        self.assertEqual(self.client.get("/api/timeline/?limit=-1").status_code, 422)
        self.assertEqual(self.client.get("/api/timeline/?offset=-1").status_code, 422)

    def test_app_events_private_only_for_managers(self):
        make_event(self.app, self.owner, days_ago=2)
        make_event(self.app, self.owner, days_ago=1, is_public=False)
        url = f"/api/timeline/apps/{self.app.id}?include_private=true"

        self.assertEqual(len(self.client.get(url).json()), 1)

        self.client.force_login(self.other)
        self.assertEqual(len(self.client.get(url).json()), 1)

        self.client.force_login(self.owner)
        self.assertEqual(len(self.client.get(url).json()), 2)
        self.assertEqual(len(self.client.get(f"/api/timeline/apps/{self.app.id}").json()), 1)

    def test_private_event_hidden_from_others(self):
        event = make_event(self.app, self.owner, is_public=False)
        self.assertEqual(self.client.get(f"/api/timeline/{event.id}").status_code, 404)
        self.client.force_login(self.owner)
        self.assertEqual(self.client.get(f"/api/timeline/{event.id}").status_code, 200)

    def test_update_and_delete(self):
        event = make_event(self.app, self.owner)

        self.client.force_login(self.other)
        response = self._json("put", f"/api/timeline/{event.id}", {"title": "Hijack"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.delete(f"/api/timeline/{event.id}").status_code, 403)

        self.client.force_login(self.admin)
        response = self._json("put", f"/api/timeline/{event.id}", {"title": "Launch", "is_public": False})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Launch")
        self.assertFalse(response.json()["is_public"])

        self.client.force_login(self.owner)
        self.assertEqual(self.client.delete(f"/api/timeline/{event.id}").status_code, 204)
        self.assertFalse(TimelineEvent.objects.filter(id=event.id).exists())
        self.assertEqual(self.client.delete(f"/api/timeline/{event.id}").status_code, 404)


class TimelineServiceTest(TestCase):
    def test_list_app_events_order(self):
        owner = make_user("owner")
        app = App.objects.create(title="A", slug="a", short_desc="x", created_by_id=owner.id)
        first = make_event(app, owner, days_ago=5)
        second = make_event(app, owner, days_ago=3)
        self.assertEqual(
            [e.id for e in services.list_app_events(app.id)], [second.id, first.id]
        )
