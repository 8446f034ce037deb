import io
import json
import re
from unittest import mock
from uuid import uuid4

from django.core.files.base import ContentFile
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, Client, override_settings
from PIL import Image

from apps.catalog.models import App, AppStatus
from apps.identity.models import User, UserRole
from apps.organizations.models import Organization
from .models import Media, MediaType, MEDIA_TYPE_PRIORITY
from . import services, storage_service


def make_user(username, role=UserRole.DEVELOPER, **kwargs):
    return User.objects.create_user(
        username=username, email=f"{username}@example.com", password="pw", role=role, **kwargs
    )


def png_bytes(width=800, height=600):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "navy").save(buffer, "PNG")
    return buffer.getvalue()


def fake_storage(storage, image=None):
    """Configure a mocked default_storage holding one readable image."""
    image = image if image is not None else png_bytes()
    storage.exists.return_value = True
    storage.size.return_value = 2048
    storage.open.side_effect = lambda key, mode="rb": ContentFile(image)
    storage.save.side_effect = lambda key, content: key


def make_media(app, user, media_type=MediaType.SCREENSHOT, **kwargs):
    defaults = {
        "filename": f"apps/{app.id}/screenshots/{uuid4()}.png",
        "url": "https://cdn.example.com/x.png",
        "mime_type": "image/png",
    }
    defaults.update(kwargs)
    return Media.objects.create(
        app_id=app.id, type=media_type, uploaded_by_id=user.id, created_by_id=user.id, **defaults
    )


@override_settings(MEDIA_PUBLIC_BASE_URL="https://cdn.example.com/showcase-media")
class PresignedUploadTest(TestCase):
    def setUp(self):
        self.client = Client()
        self.owner = make_user("owner")
        self.stranger = make_user("stranger")
        self.app = App.objects.create(
            title="Pics", slug="pics", short_desc="x", created_by_id=self.owner.id,
            status=AppStatus.PUBLISHED,
        )
        patcher = mock.patch.object(storage_service, "s3_client")
        self.s3 = patcher.start()
        self.s3.return_value.generate_presigned_url.return_value = "https://s3.example.com/signed"
        self.addCleanup(patcher.stop)

    def _presign(self, kind, content_type):
        return self.client.post(
            f"/api/apps/{self.app.id}/media/{kind}",
            json.dumps({"content_type": content_type}),
            content_type="application/json",
        )

    def test_logo_presigned_url(self):
        self.client.force_login(self.owner)
        response = self._presign("logo", "image/PNG")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["upload_url"], "https://s3.example.com/signed")
        self.assertEqual(body["expires_in"], 3600)
        self.assertRegex(
            body["filename"],
            rf"^apps/{self.app.id}/logos/[0-9a-f-]{{36}}\.png$",
        )

        _, kwargs = self.s3.return_value.generate_presigned_url.call_args
        self.assertEqual(kwargs["Params"]["Key"], body["filename"])
        self.assertEqual(kwargs["Params"]["ContentType"], "image/png")
        self.assertEqual(kwargs["ExpiresIn"], 3600)

    def test_screenshot_key_layout(self):
        self.client.force_login(self.owner)
        body = self._presign("screenshot", "image/webp").json()
        self.assertTrue(re.match(rf"^apps/{self.app.id}/screenshots/.+\.webp$", body["filename"]))

    def test_rejects_unsupported_content_type(self):
        self.client.force_login(self.owner)
        response = self._presign("logo", "image/gif")
        self.assertEqual(response.status_code, 400)
        self.assertIn("Invalid file type", response.json()["detail"])

    def test_only_one_logo(self):
        make_media(self.app, self.owner, MediaType.LOGO)
        self.client.force_login(self.owner)
        response = self._presign("logo", "image/png")
        self.assertEqual(response.status_code, 400)
        self.assertIn("already has a logo", response.json()["detail"])

    def test_non_owner_forbidden(self):
        self.client.force_login(self.stranger)
        self.assertEqual(self._presign("logo", "image/png").status_code, 403)

    def test_organization_owner_allowed(self):
        org = Organization.objects.create(name="Acme", slug="acme", owner_id=self.stranger.id)
        self.app.organization_id = org.id
        self.app.save()
        self.client.force_login(self.stranger)
        self.assertEqual(self._presign("screenshot", "image/png").status_code, 200)

    def test_missing_app(self):
        self.client.force_login(self.owner)
        response = self.client.post(
            f"/api/apps/{uuid4()}/media/logo",
            json.dumps({"content_type": "image/png"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 404)


@override_settings(MEDIA_PUBLIC_BASE_URL="https://cdn.example.com/showcase-media")
class MediaRecordTest(TestCase):
    def setUp(self):
        self.client = Client()
        self.owner = make_user("owner")
        self.app = App.objects.create(
            title="Pics", slug="pics", short_desc="x", created_by_id=self.owner.id,
            status=AppStatus.PUBLISHED,
        )
        patcher = mock.patch.object(storage_service, "default_storage")
        self.storage = patcher.start()
        fake_storage(self.storage)
        self.addCleanup(patcher.stop)
        self.client.force_login(self.owner)

    def test_create_media_queues_processing(self):
        key = f"apps/{self.app.id}/screenshots/abc.png"
        response = self.client.post("/api/media/", json.dumps({
            "app_id": str(self.app.id),
            "type": "SCREENSHOT",
            "filename": key,
            "mime_type": "image/png",
        }), content_type="application/json")
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["url"], f"https://cdn.example.com/showcase-media/{key}")
        self.assertEqual(body["uploaded_by_id"], str(self.owner.id))
        # Local task backend ran process_media inline
        self.assertTrue(body["meta"]["processed"])
        self.assertEqual(body["size"], 2048)
        self.assertEqual((body["width"], body["height"]), (800, 600))
        self.assertEqual(
            body["meta"]["thumbnails"],
            [
                {"size": size, "url": f"https://cdn.example.com/showcase-media/apps/{self.app.id}/screenshots/abc_{size}.jpg"}
                for size in ("small", "medium", "large")
            ],
        )

    def test_rejects_key_outside_the_app_folder(self):
        victim = App.objects.create(
            title="Victim", slug="victim", short_desc="x", created_by_id=make_user("victim").id,
        )
        bad_keys = [
            f"apps/{victim.id}/logos/abc.png",
            f"apps/{self.app.id}/screenshots/abc.png",
            f"apps/{self.app.id}/logos/../../{victim.id}/logos/abc.png",
            f"apps/{self.app.id}/logos/",
        ]
        for key in bad_keys:
            response = self.client.post("/api/media/", json.dumps({
                "app_id": str(self.app.id),
                "type": "LOGO",
                "filename": key,
                "mime_type": "image/png",
            }), content_type="application/json")
            self.assertEqual(response.status_code, 400, key)
            self.assertIn("Invalid filename", response.json()["detail"])

        self.assertFalse(Media.objects.exists())
        self.storage.delete.assert_not_called()

    def test_new_logo_replaces_old(self):
        old = make_media(self.app, self.owner, MediaType.LOGO, filename="apps/x/logos/old.png")
        services.create_media(self.owner, services.MediaIn(
            app_id=self.app.id, type="LOGO", filename=f"apps/{self.app.id}/logos/new.png", mime_type="image/png",
        ))
        old.refresh_from_db()
        self.assertFalse(old.is_active)
        self.storage.delete.assert_any_call("apps/x/logos/old.png")
        self.assertEqual(Media.objects.filter(type=MediaType.LOGO, is_active=True).count(), 1)

    def test_multipart_upload(self):
        file = SimpleUploadedFile("shot.png", b"png-bytes", content_type="image/png")
        response = self.client.post(
            f"/api/apps/{self.app.id}/media/upload",
            {"media_type": "SCREENSHOT", "order": 3, "file": file},
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["original_name"], "shot.png")
        self.assertEqual(body["order"], 3)
        self.assertRegex(body["filename"], rf"^apps/{self.app.id}/screenshots/[0-9a-f-]{{36}}\.png$")
        self.assertEqual(len(body["meta"]["thumbnails"]), 3)

    def test_multipart_upload_too_large(self):
        file = SimpleUploadedFile(
            "huge.png", b"x" * (services.MAX_FILE_SIZE + 1), content_type="image/png"
        )
        response = self.client.post(
            f"/api/apps/{self.app.id}/media/upload", {"media_type": "LOGO", "file": file}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("File too large", response.json()["detail"])
        self.storage.save.assert_not_called()

    def test_list_orders_and_filters(self):
        second = make_media(self.app, self.owner, order=2)
        first = make_media(self.app, self.owner, order=1)
        make_media(self.app, self.owner, MediaType.LOGO)
        make_media(self.app, self.owner, is_active=False)

        response = self.client.get(f"/api/apps/{self.app.id}/media?media_type=SCREENSHOT")
        self.assertEqual([m["id"] for m in response.json()], [str(first.id), str(second.id)])

        response = self.client.get(f"/api/apps/{self.app.id}/media")
        self.assertEqual(len(response.json()), 3)

    def test_update_merges_meta(self):
        media = make_media(self.app, self.owner, meta={"alt": "old", "processed": True})
        response = self.client.put(
            f"/api/media/{media.id}",
            json.dumps({"meta": {"alt": "Home screen", "caption": "Dark mode"}}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()["meta"],
            {"alt": "Home screen", "caption": "Dark mode", "processed": True},
        )

    def test_delete_tolerates_storage_failures(self):
        base = "https://cdn.example.com/showcase-media"
        media = make_media(self.app, self.owner, meta={"thumbnails": [
            {"size": "small", "url": f"{base}/apps/{self.app.id}/screenshots/shot_small.jpg"},
            {"size": "medium", "url": "https://elsewhere.example.com/unknown.jpg"},
            {"size": "large", "url": f"{base}/apps/{uuid4()}/screenshots/other_large.jpg"},
        ]})
        self.storage.delete.side_effect = [OSError("boom"), None]

        response = self.client.delete(f"/api/media/{media.id}")

        self.assertEqual(response.status_code, 204)
        self.assertFalse(Media.objects.filter(id=media.id).exists())
        deleted = [call.args[0] for call in self.storage.delete.call_args_list]
        self.assertEqual(deleted, [media.filename, f"apps/{self.app.id}/screenshots/shot_small.jpg"])


@override_settings(MEDIA_PUBLIC_BASE_URL="https://cdn.example.com/showcase-media")
class ProcessMediaTest(TestCase):
    def setUp(self):
        owner = make_user("owner")
        self.app = App.objects.create(title="P", slug="p", short_desc="x", created_by_id=owner.id)
        self.media = make_media(self.app, owner, filename=f"apps/{self.app.id}/screenshots/shot.png")
        self.document = make_media(
            self.app, owner, MediaType.DOCUMENT,
            filename=f"apps/{self.app.id}/documents/guide.pdf", mime_type="application/pdf",
        )

    @mock.patch.object(storage_service, "default_storage")
    def test_renders_thumbnails(self, storage):
        fake_storage(storage, png_bytes(2400, 1000))

        self.assertTrue(services.process_media(self.media.id))

        self.media.refresh_from_db()
        self.assertEqual(self.media.size, 2048)
        self.assertEqual((self.media.width, self.media.height), (2400, 1000))
        self.assertTrue(self.media.meta["processed"])
        self.assertEqual([t["size"] for t in self.media.meta["thumbnails"]], ["small", "medium", "large"])

        saved = {call.args[0]: call.args[1] for call in storage.save.call_args_list}
        prefix = f"apps/{self.app.id}/screenshots/shot"
        self.assertEqual(set(saved), {f"{prefix}_small.jpg", f"{prefix}_medium.jpg", f"{prefix}_large.jpg"})
        for key, (width, height) in [
            (f"{prefix}_small.jpg", (300, 200)),
            (f"{prefix}_medium.jpg", (600, 400)),
            (f"{prefix}_large.jpg", (1200, 800)),
        ]:
            with Image.open(io.BytesIO(saved[key].read())) as thumb:
                self.assertEqual(thumb.format, "JPEG")
                self.assertEqual(thumb.size, (width, height))

    @mock.patch.object(storage_service, "default_storage")
    def test_unreadable_image_is_still_processed(self, storage):
        fake_storage(storage, b"not an image")
        self.assertTrue(services.process_media(self.media.id))
        self.media.refresh_from_db()
        self.assertEqual(self.media.meta, {"processed": True})
        storage.save.assert_not_called()

    @mock.patch.object(storage_service, "default_storage")
    def test_non_image_skips_thumbnails(self, storage):
        fake_storage(storage)
        self.assertTrue(services.process_media(self.document.id))
        self.document.refresh_from_db()
        self.assertEqual(self.document.meta, {"processed": True})
        storage.open.assert_not_called()

    @mock.patch.object(storage_service, "default_storage")
    def test_missing_object(self, storage):
        storage.exists.return_value = False
        self.assertFalse(services.process_media(self.media.id))
        self.assertIsNone(services.process_media(uuid4()))

class MediaTypePriorityTest(TestCase):
    def test_priority_order(self):
        ordered = sorted(MediaType.values, key=lambda t: MEDIA_TYPE_PRIORITY[t])
        self.assertEqual(ordered, ["LOGO", "SCREENSHOT", "COVER", "ICON", "VIDEO", "DOCUMENT"])
