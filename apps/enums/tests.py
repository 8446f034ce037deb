import json

from django.test import TestCase, Client

from apps.catalog.models import App, AppStatus
from apps.identity.models import User, UserRole
from .dtos import EnumCreate, EnumOptionIn
from .models import EnumDefinition
from . import services


def make_user(username, role=UserRole.DEVELOPER):
    return User.objects.create_user(
        username=username, email=f"{username}@example.com", password="pw", role=role
    )


def make_app(owner, slug, **kwargs):
    return App.objects.create(
        title=slug.title(), slug=slug, short_desc="x", created_by_id=owner.id, **kwargs
    )


def option(value, label, id=None):
    return EnumOptionIn(value=value, label=label, id=id)


class DefaultEnumTest(TestCase):
    def test_list_seeds_defaults(self):
        keys = [e.key for e in services.list_enums()]
        self.assertEqual(keys, ["APP_LANGUAGE", "APP_PLATFORM"])
        platform = services.get_enum("APP_PLATFORM")
        self.assertEqual(
            [o.value for o in platform.options],
            ["WEB", "MOBILE", "DESKTOP", "API", "IOS", "ANDROID"],
        )
        self.assertTrue(all(o.id for o in platform.options))

    def test_seeding_is_idempotent(self):
        self.assertEqual(services.ensure_defaults(), 2)
        self.assertEqual(services.ensure_defaults(), 0)

    def test_option_values_fall_back_to_defaults(self):
        self.assertIn("Python", services.get_option_values("APP_LANGUAGE"))
        self.assertEqual(services.get_option_values("UNKNOWN"), [])

    def test_reset_restores_defaults(self):
        services.ensure_defaults()
        services.update_enum("APP_PLATFORM", [option("WEB", "Web")])
        reset = services.reset_enum("APP_PLATFORM")
        self.assertEqual(len(reset.options), 6)

        with self.assertRaises(KeyError):
            services.reset_enum("APP_STATUS")

    def test_reset_all_recreates_deleted(self):
        services.ensure_defaults()
        services.delete_enum("APP_LANGUAGE")
        services.reset_all_enums()
        self.assertEqual(EnumDefinition.objects.count(), 2)


class EnumCrudTest(TestCase):
    def test_create_rejects_duplicates(self):
        services.create_enum(EnumCreate(key="APP_STATUS", options=[option("DRAFT", "Draft")]))

        with self.assertRaises(services.EnumConflict):
            services.create_enum(EnumCreate(key="APP_STATUS", options=[]))
        with self.assertRaises(ValueError):
            services.create_enum(EnumCreate(
                key="OTHER", options=[option("A", "A"), option("A", "Again")]
            ))

    def test_option_add_update_remove(self):
        created = services.create_enum(EnumCreate(key="COLOR", options=[option("RED", "Red")]))

        updated = services.add_option("COLOR", option("BLUE", "Blue"))
        self.assertEqual([o.value for o in updated.options], ["RED", "BLUE"])
        with self.assertRaises(services.EnumConflict):
            services.add_option("COLOR", option("RED", "Again"))

        red_id = created.options[0].id
        updated = services.update_option("COLOR", red_id, option("CRIMSON", "Crimson"))
        self.assertEqual(updated.options[0].id, red_id)
        self.assertEqual(updated.options[0].value, "CRIMSON")

        updated = services.remove_option("COLOR", red_id)
        self.assertEqual([o.value for o in updated.options], ["BLUE"])
        self.assertIsNone(services.remove_option("COLOR", "missing"))
        self.assertIsNone(services.add_option("NOPE", option("X", "X")))


class EnumValueMigrationTest(TestCase):
    def setUp(self):
        self.owner = make_user("owner")
        services.ensure_defaults()

    def test_platform_rename_migrates_apps(self):
        both = make_app(self.owner, "both", platforms=["WEB", "IOS"])
        already = make_app(self.owner, "already", platforms=["WEB", "BROWSER"])
        untouched = make_app(self.owner, "untouched", platforms=["ANDROID"])

        current = services.get_enum("APP_PLATFORM").options
        new_options = [
            option("BROWSER" if o.value == "WEB" else o.value, o.label, o.id) for o in current
        ]
        services.update_enum("APP_PLATFORM", new_options)

        both.refresh_from_db()
        already.refresh_from_db()
        untouched.refresh_from_db()
        self.assertEqual(both.platforms, ["IOS", "BROWSER"])
        self.assertEqual(already.platforms, ["BROWSER"])
        self.assertEqual(untouched.platforms, ["ANDROID"])
        self.assertIn("BROWSER", services.get_option_values("APP_PLATFORM"))

    def test_relabelled_option_is_not_migrated(self):
        app = make_app(self.owner, "web", platforms=["WEB"])
        services.update_enum("APP_PLATFORM", [option("WWW", "World Wide Web")])
        app.refresh_from_db()
        self.assertEqual(app.platforms, ["WEB"])

    def test_builtin_status_and_role_values_cannot_be_renamed(self):
        draft = make_app(self.owner, "draft", status=AppStatus.DRAFT)
        services.create_enum(EnumCreate(
            key="APP_STATUS", options=[option("DRAFT", "Draft"), option("REVIEW", "In review")]
        ))
        with self.assertRaisesMessage(ValueError, "DRAFT"):
            services.update_enum("APP_STATUS", [option("WIP", "Draft")])
        draft.refresh_from_db()
        self.assertEqual(draft.status, AppStatus.DRAFT)
        self.assertEqual(services.get_option_values("APP_STATUS"), ["DRAFT", "REVIEW"])

        # Relabelling and renaming custom values are fine
        updated = services.update_enum(
            "APP_STATUS", [option("DRAFT", "Work in progress"), option("IN_REVIEW", "In review")]
        )
        self.assertEqual([o.value for o in updated.options], ["DRAFT", "IN_REVIEW"])

        roles = services.create_enum(EnumCreate(key="USER_ROLE", options=[option("admin", "Administrator")]))
        with self.assertRaises(ValueError):
            services.update_option("USER_ROLE", roles.options[0].id, option("root", "Administrator"))
        self.assertEqual(services.get_option_values("USER_ROLE"), ["admin"])

    def test_update_option_migrates_value(self):
        app = make_app(self.owner, "mobile", platforms=["MOBILE"])
        mobile = next(o for o in services.get_enum("APP_PLATFORM").options if o.value == "MOBILE")
        services.update_option("APP_PLATFORM", mobile.id, option("HANDHELD", "Mobile"))
        app.refresh_from_db()
        self.assertEqual(app.platforms, ["HANDHELD"])

    def test_usage_counts(self):
        make_app(self.owner, "a", platforms=["WEB", "IOS"])
        make_app(self.owner, "b", platforms=["WEB"], status=AppStatus.PUBLISHED)

        self.assertEqual(services.get_usage("APP_PLATFORM").counts, {"WEB": 2, "IOS": 1})
        self.assertEqual(
            services.get_usage("APP_STATUS").counts, {"DRAFT": 1, "PUBLISHED": 1}
        )
        self.assertEqual(services.get_usage("USER_ROLE").counts, {"developer": 1})
        self.assertIsNotNone(services.get_usage("APP_LANGUAGE").message)


class EnumAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = make_user("admin", role=UserRole.ADMIN)
        self.dev = make_user("dev")

    def _json(self, method, url, data):
        return getattr(self.client, method)(url, json.dumps(data), content_type="application/json")

    def test_reads_are_public(self):
        response = self.client.get("/api/enums/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 2)
        self.assertEqual(self.client.get("/api/enums/APP_LANGUAGE").status_code, 200)
        self.assertEqual(self.client.get("/api/enums/MISSING").status_code, 404)

    def test_writes_need_admin(self):
        payload = {"key": "TIER", "options": [{"value": "FREE", "label": "Free"}]}
        self.assertEqual(self._json("post", "/api/enums/", payload).status_code, 401)

        self.client.force_login(self.dev)
        self.assertEqual(self._json("post", "/api/enums/", payload).status_code, 403)

        self.client.force_login(self.admin)
        response = self._json("post", "/api/enums/", payload)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["options"][0]["value"], "FREE")
        self.assertEqual(self._json("post", "/api/enums/", payload).status_code, 409)

    def test_defaults_can_be_changed_before_first_read(self):
        self.client.force_login(self.admin)
        self.assertFalse(EnumDefinition.objects.exists())

        response = self._json("post", "/api/enums/APP_PLATFORM/options", {"value": "TV", "label": "TV"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.json()["options"]), 7)

        response = self._json("put", "/api/enums/APP_LANGUAGE", {
            "options": [{"value": "Python", "label": "Python"}]
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._json("post", "/api/enums/", {"key": "APP_LANGUAGE", "options": []}).status_code, 409)

    def test_renaming_builtin_role_is_rejected(self):
        self.client.force_login(self.admin)
        created = self._json("post", "/api/enums/", {
            "key": "USER_ROLE", "options": [{"value": "admin", "label": "Administrator"}]
        }).json()
        response = self._json(
            "put", f"/api/enums/USER_ROLE/options/{created['options'][0]['id']}",
            {"value": "superuser", "label": "Administrator"},
        )
        self.assertEqual(response.status_code, 400)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.role, UserRole.ADMIN)

    def test_update_rejects_duplicate_values(self):
        self.client.force_login(self.admin)
        response = self._json("put", "/api/enums/APP_PLATFORM", {
            "options": [{"value": "WEB", "label": "Web"}, {"value": "WEB", "label": "Site"}]
        })
        self.assertEqual(response.status_code, 400)

    def test_option_endpoints(self):
        self.client.force_login(self.admin)

        response = self._json("post", "/api/enums/APP_PLATFORM/options", {"value": "TV", "label": "TV"})
        self.assertEqual(response.status_code, 201)
        tv = response.json()["options"][-1]

        response = self._json(
            "put", f"/api/enums/APP_PLATFORM/options/{tv['id']}", {"value": "SMART_TV", "label": "Smart TV"}
        )
        self.assertEqual(response.json()["options"][-1]["value"], "SMART_TV")

        response = self.client.delete(f"/api/enums/APP_PLATFORM/options/{tv['id']}")
        self.assertEqual(len(response.json()["options"]), 6)

        response = self.client.post("/api/enums/APP_PLATFORM/reset")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.post("/api/enums/TIER/reset").status_code, 404)

        self.assertEqual(self.client.get("/api/enums/APP_PLATFORM/usage").status_code, 200)
        self.assertEqual(self.client.delete("/api/enums/APP_PLATFORM").status_code, 204)
