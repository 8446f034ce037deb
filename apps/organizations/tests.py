import json

from django.test import TestCase, Client

from apps.catalog.models import App
from apps.core.exceptions import ValidationFailed
from apps.identity.models import User, UserRole
from .models import Organization
from .validation import validate_organization_data


def make_user(username, role=UserRole.DEVELOPER, **kwargs):
    return User.objects.create_user(
        username=username, email=f"{username}@example.com", password="pw", role=role, **kwargs
    )


class OrganizationValidationTest(TestCase):
    def _codes(self, data, **kwargs):
        with self.assertRaises(ValidationFailed) as ctx:
            validate_organization_data(data, **kwargs)
        return {(e.field, e.code) for e in ctx.exception.field_errors}

    def test_required_fields(self):
        self.assertEqual(self._codes({}), {("name", "REQUIRED_FIELD"), ("slug", "REQUIRED_FIELD")})

    def test_all_errors_reported_together(self):
        codes = self._codes({
            "name": "A",
            "slug": "Bad Slug!",
            "description": "x" * 501,
            "website": "example",
            "logo": "https://cdn.example.com/logo.txt",
        })
        self.assertEqual(codes, {
            ("name", "NAME_TOO_SHORT"),
            ("slug", "INVALID_SLUG_FORMAT"),
            ("description", "DESCRIPTION_TOO_LONG"),
            ("website", "INVALID_WEBSITE_FORMAT"),
            ("logo", "INVALID_IMAGE_FORMAT"),
        })

    def test_duplicates(self):
        org = Organization.objects.create(name="Acme", slug="acme")
        codes = self._codes({"name": "ACME", "slug": "acme"})
        self.assertEqual(codes, {("name", "DUPLICATE_NAME"), ("slug", "DUPLICATE_SLUG")})

        # Updating the same organization does not clash with itself
        validate_organization_data({"name": "Acme", "slug": "acme"}, exclude_org_id=org.id)

    def test_partial_update_only_checks_given_fields(self):
        validate_organization_data({"description": "New"}, partial=True)
        self.assertEqual(
            self._codes({"slug": "x"}, partial=True), {("slug", "SLUG_TOO_SHORT")}
        )


class OrganizationAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = make_user("admin", role=UserRole.ADMIN)
        self.owner = make_user("owner")
        self.other = make_user("other")

    def _json(self, method, url, data):
        return getattr(self.client, method)(url, json.dumps(data), content_type="application/json")

    def test_create_sets_owner(self):
        self.assertEqual(
            self._json("post", "/api/organizations/", {"name": "Acme", "slug": "acme"}).status_code, 401
        )

        self.client.force_login(self.owner)
        response = self._json("post", "/api/organizations/", {
            "name": "Acme", "slug": "acme", "website": "https://acme.example.com",
        })
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["owner_id"], str(self.owner.id))
        self.assertTrue(body["is_active"])

    def test_create_validation_error_shape(self):
        self.client.force_login(self.owner)
        response = self._json("post", "/api/organizations/", {"name": "", "slug": "ok"})
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["message"], "Validation failed")
        self.assertEqual(body["field_errors"], [
            {"field": "name", "message": "Organization name is required", "code": "REQUIRED_FIELD"}
        ])

    def test_public_reads(self):
        org = Organization.objects.create(name="Acme", slug="acme")
        self.assertEqual(len(self.client.get("/api/organizations/").json()), 1)
        self.assertEqual(self.client.get(f"/api/organizations/{org.id}").json()["slug"], "acme")
        self.assertEqual(self.client.get("/api/organizations/slug/ACME").json()["id"], str(org.id))
        self.assertEqual(self.client.get("/api/organizations/slug/nope").status_code, 404)

    def test_update_owner_or_admin(self):
        org = Organization.objects.create(name="Acme", slug="acme", owner_id=self.owner.id)
        url = f"/api/organizations/{org.id}"

        self.client.force_login(self.other)
        self.assertEqual(self._json("put", url, {"description": "Hi"}).status_code, 403)

        self.client.force_login(self.owner)
        response = self._json("put", url, {"description": "Makers of things"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["description"], "Makers of things")

        self.client.force_login(self.admin)
        self.assertEqual(self._json("put", url, {"is_active": False}).json()["is_active"], False)

    def test_delete_cascades_to_members_and_their_apps(self):
        org = Organization.objects.create(name="Acme", slug="acme", owner_id=self.owner.id)
        member = make_user("member", org_id=org.id)
        App.objects.create(title="Member App", slug="member-app", short_desc="x", created_by_id=member.id)
        App.objects.create(title="Other App", slug="other-app", short_desc="x", created_by_id=self.other.id)

        self.client.force_login(self.owner)
        self.assertEqual(self.client.delete(f"/api/organizations/{org.id}").status_code, 403)

        self.client.force_login(self.admin)
        self.assertEqual(self.client.delete(f"/api/organizations/{org.id}").status_code, 204)

        self.assertFalse(Organization.objects.filter(id=org.id).exists())
        self.assertFalse(User.objects.filter(id=member.id).exists())
        self.assertEqual(list(App.objects.values_list("slug", flat=True)), ["other-app"])
        self.assertEqual(self.client.delete(f"/api/organizations/{org.id}").status_code, 404)
