import uuid
from django.db import models
from django.utils import timezone


class AppStatus(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    PUBLISHED = 'PUBLISHED', 'Published'
    ARCHIVED = 'ARCHIVED', 'Archived'


class AppVisibility(models.TextChoices):
    PUBLIC = 'PUBLIC', 'Public'
    PRIVATE = 'PRIVATE', 'Private'
    UNLISTED = 'UNLISTED', 'Unlisted'


class Platform(models.TextChoices):
    WEB = 'WEB', 'Web'
    MOBILE = 'MOBILE', 'Mobile'
    IOS = 'IOS', 'iOS'
    ANDROID = 'ANDROID', 'Android'
    DESKTOP = 'DESKTOP', 'Desktop'
    API = 'API', 'API'


class App(models.Model):
    """
    A showcased software product.

    platforms, languages and tags are JSON lists of strings. Platform and
    language values come from the APP_PLATFORM / APP_LANGUAGE enum
    definitions.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    short_desc = models.CharField(max_length=300)
    long_desc = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=AppStatus.choices,
        default=AppStatus.DRAFT,
        db_index=True
    )
    visibility = models.CharField(
        max_length=20,
        choices=AppVisibility.choices,
        default=AppVisibility.PUBLIC,
        db_index=True
    )
    release_date = models.DateTimeField(null=True, blank=True)
    platforms = models.JSONField(default=list, blank=True)
    languages = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)

    # Cross-app references (no FK to maintain app independence)
    organization_id = models.UUIDField(null=True, blank=True, db_index=True)
    created_by_id = models.UUIDField(db_index=True)

    website = models.URLField(max_length=500, blank=True)
    repository = models.URLField(max_length=500, blank=True)
    demo_url = models.URLField(max_length=500, blank=True)
    download_url = models.URLField(max_length=500, blank=True)
    app_store_url = models.URLField(max_length=500, blank=True)
    play_store_url = models.URLField(max_length=500, blank=True)

    view_count = models.PositiveIntegerField(default=0)
    like_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        self.slug = self.slug.lower()
        super().save(*args, **kwargs)


class AppVersion(models.Model):
    """A released version of an app. At most one version per app is latest."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    app = models.ForeignKey(App, on_delete=models.CASCADE, related_name='versions')
    version = models.CharField(max_length=50)
    changelog = models.TextField(blank=True)
    released_at = models.DateTimeField(default=timezone.now)
    released_by_id = models.UUIDField()
    is_latest = models.BooleanField(default=False)
    download_url = models.URLField(max_length=500, blank=True)
    release_notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-released_at']
        unique_together = ['app', 'version']

    def __str__(self):
        return f"{self.app.title} {self.version}"


class AppLike(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    app = models.ForeignKey(App, on_delete=models.CASCADE, related_name='likes')
    user_id = models.UUIDField(db_index=True)
    reaction = models.CharField(max_length=20, default='like')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ['app', 'user_id']  # One like per user per app


class AppView(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    app = models.ForeignKey(App, on_delete=models.CASCADE, related_name='views')
    user_id = models.UUIDField(db_index=True)
    viewed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ['app', 'user_id']  # One view per user per app
