import json
from unittest import mock

from django.core import mail
from django.test import TestCase, Client

from .models import User, UserRole
from .permissions import get_user_permissions, Permissions
from .jwt_auth import create_access_token, decode_token
from apps.core.exceptions import ValidationFailed
from .validation import validate_user_data


class RBACTest(TestCase):
    def test_viewer_permissions(self):
        user = User.objects.create_user(username="viewer", email="v@example.com", password="pw")
        perms = get_user_permissions(user)
        self.assertEqual(user.role, UserRole.VIEWER)
        self.assertNotIn(Permissions.CATALOG_CREATE_APP, perms)

    def test_developer_permissions(self):
        user = User.objects.create_user(
            username="dev", email="d@example.com", password="pw", role=UserRole.DEVELOPER
        )
        perms = get_user_permissions(user)
        self.assertIn(Permissions.CATALOG_CREATE_APP, perms)
        self.assertIn(Permissions.MEDIA_UPLOAD, perms)
        self.assertNotIn(Permissions.ENUM_MANAGE, perms)
        self.assertNotIn(Permissions.IDENTITY_MANAGE_USER, perms)

    def test_admin_permissions(self):
        user = User.objects.create_user(
            username="admin", email="a@example.com", password="pw", role=UserRole.ADMIN
        )
        perms = get_user_permissions(user)
        self.assertIn(Permissions.IDENTITY_MANAGE_USER, perms)
        self.assertIn(Permissions.ENUM_MANAGE, perms)

    def test_inactive_user_has_no_permissions(self):
        user = User.objects.create_user(
            username="gone", email="g@example.com", password="pw",
            role=UserRole.ADMIN, is_active=False,
        )
        self.assertEqual(get_user_permissions(user), [])


class UserValidationTest(TestCase):
    def setUp(self):
        User.objects.create_user(username="taken", email="taken@example.com", password="pw")

    def _codes(self, data):
        with self.assertRaises(ValidationFailed) as ctx:
            validate_user_data(data)
        return {e.code for e in ctx.exception.field_errors}

    def test_collects_all_field_errors(self):
        codes = self._codes({"email": "nope", "username": "ab", "name": "x", "role": "owner"})
        self.assertEqual(
            codes,
            {"INVALID_EMAIL_FORMAT", "USERNAME_TOO_SHORT", "NAME_TOO_SHORT", "INVALID_ROLE"},
        )

    def test_duplicates_are_case_insensitive(self):
        codes = self._codes({"email": "TAKEN@example.com", "username": "Taken"})
        self.assertEqual(codes, {"DUPLICATE_EMAIL", "DUPLICATE_USERNAME"})

    def test_username_format(self):
        self.assertEqual(self._codes({"username": "bad-name!"}), {"INVALID_USERNAME_FORMAT"})

    def test_avatar_must_be_url(self):
        self.assertEqual(self._codes({"avatar": "not a url"}), {"INVALID_AVATAR_URL"})

    def test_update_excludes_self_from_uniqueness(self):
        user = User.objects.get(username="taken")
        validate_user_data({"email": "taken@example.com"}, exclude_user_id=user.id)


class AuthAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_user(
            username="alice", email="alice@example.com", password="secret123",
            name="Alice", role=UserRole.DEVELOPER,
        )

    def _post(self, url, data):
        return self.client.post(url, json.dumps(data), content_type="application/json")

    def test_register_returns_token_and_sends_welcome_email(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self._post("/api/identity/register", {
                "username": "bob_1",
                "email": "Bob@Example.com",
                "password": "secret123",
                "name": "Bob",
            })
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["access_token"])
        self.assertEqual(body["user"]["email"], "bob@example.com")
        self.assertEqual(body["user"]["role"], UserRole.VIEWER)
        self.assertIn("access_token", response.cookies)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["bob@example.com"])

    @mock.patch("apps.notifications.services.EmailMultiAlternatives.send")
    def test_register_succeeds_when_mail_server_is_down(self, mock_send):
        mock_send.side_effect = ConnectionRefusedError("no mail server")

        with self.assertLogs("apps.core.task_service", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                response = self._post("/api/identity/register", {
                    "username": "carol",
                    "email": "carol@example.com",
                    "password": "secret123",
                    "name": "Carol",
                })

        self.assertEqual(response.status_code, 201)
        self.assertTrue(User.objects.filter(username="carol").exists())
        mock_send.assert_called_once()

    def test_register_reports_field_errors(self):
        response = self._post("/api/identity/register", {
            "username": "alice",
            "email": "alice@example.com",
            "password": "secret123",
            "name": "Al",
        })
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["message"], "Validation failed")
        codes = {e["code"] for e in body["field_errors"]}
        self.assertEqual(codes, {"DUPLICATE_EMAIL", "DUPLICATE_USERNAME"})

    def test_login_with_username_or_email(self):
        for identifier in ("alice", "alice@example.com"):
            response = self._post("/api/identity/login", {"username": identifier, "password": "secret123"})
            self.assertEqual(response.status_code, 200)
            payload = decode_token(response.json()["access_token"])
            self.assertEqual(payload["sub"], str(self.user.id))
            self.assertEqual(payload["role"], UserRole.DEVELOPER)

        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login)

    def test_login_rejects_bad_credentials(self):
        response = self._post("/api/identity/login", {"username": "alice", "password": "wrong"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid credentials")

        response = self._post("/api/identity/login", {"username": "nobody", "password": "secret123"})
        self.assertEqual(response.status_code, 401)

    def test_login_rejects_deactivated_account(self):
        self.user.is_active = False
        self.user.save()
        response = self._post("/api/identity/login", {"username": "alice", "password": "secret123"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Account is deactivated")

    def test_me_with_bearer_token(self):
        token = create_access_token(self.user.id, self.user.username, self.user.role)
        response = self.client.get("/api/identity/me", HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["username"], "alice")

    def test_me_requires_auth(self):
        response = self.client.get("/api/identity/me")
        self.assertEqual(response.status_code, 401)

    def test_refresh_uses_cookie(self):
        self._post("/api/identity/login", {"username": "alice", "password": "secret123"})
        response = self.client.post("/api/identity/refresh")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["access_token"])

    def test_logout_clears_cookies(self):
        self._post("/api/identity/login", {"username": "alice", "password": "secret123"})
        response = self.client.post("/api/identity/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.cookies["access_token"].value, "")

    def test_change_password(self):
        self.client.force_login(self.user)
        response = self._post("/api/identity/change-password", {
            "current_password": "wrong", "new_password": "newsecret1",
        })
        self.assertEqual(response.status_code, 409)

        response = self._post("/api/identity/change-password", {
            "current_password": "secret123", "new_password": "newsecret1",
        })
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("newsecret1"))


class UserManagementAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create_user(
            username="admin", email="admin@example.com", password="pw", role=UserRole.ADMIN
        )
        self.dev = User.objects.create_user(
            username="dev", email="dev@example.com", password="pw",
            name="Dana Developer", role=UserRole.DEVELOPER,
        )
        self.viewer = User.objects.create_user(
            username="viewer", email="viewer@example.com", password="pw", is_active=False
        )

    def test_non_admin_cannot_list_users(self):
        self.client.force_login(self.dev)
        response = self.client.get("/api/identity/users")
        self.assertEqual(response.status_code, 403)

    def test_list_users_rejects_negative_offset(self):
        self.client.force_login(self.admin)
        self.assertEqual(self.client.get("/api/identity/users?offset=-1").status_code, 422)

    def test_list_users_with_filters(self):
        self.client.force_login(self.admin)

        response = self.client.get("/api/identity/users?limit=2")
        body = response.json()
        self.assertEqual(body["total_count"], 3)
        self.assertEqual(len(body["items"]), 2)

        response = self.client.get("/api/identity/users?search=dana")
        self.assertEqual([u["username"] for u in response.json()["items"]], ["dev"])

        response = self.client.get("/api/identity/users?role=viewer&is_active=false")
        self.assertEqual([u["username"] for u in response.json()["items"]], ["viewer"])

    def test_create_update_delete_user(self):
        self.client.force_login(self.admin)

        response = self.client.post("/api/identity/users", json.dumps({
            "username": "newdev",
            "email": "newdev@example.com",
            "password": "pw123456",
            "name": "New Dev",
            "role": "developer",
        }), content_type="application/json")
        self.assertEqual(response.status_code, 201)
        user_id = response.json()["id"]

        response = self.client.put(f"/api/identity/users/{user_id}", json.dumps({
            "role": "admin", "name": "Promoted",
        }), content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "admin")

        response = self.client.put(f"/api/identity/users/{user_id}", json.dumps({
            "email": "dev@example.com",
        }), content_type="application/json")
        self.assertEqual(response.status_code, 400)

        response = self.client.delete(f"/api/identity/users/{user_id}")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(User.objects.filter(id=user_id).exists())

    def test_get_missing_user(self):
        self.client.force_login(self.admin)
        response = self.client.get("/api/identity/users/00000000-0000-0000-0000-000000000000")
        self.assertEqual(response.status_code, 404)
