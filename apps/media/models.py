import uuid
from django.db import models


class MediaType(models.TextChoices):
    LOGO = 'LOGO', 'Logo'
    SCREENSHOT = 'SCREENSHOT', 'Screenshot'
    COVER = 'COVER', 'Cover'
    ICON = 'ICON', 'Icon'
    VIDEO = 'VIDEO', 'Video'
    DOCUMENT = 'DOCUMENT', 'Document'


# Display ordering when media of several types is shown together
MEDIA_TYPE_PRIORITY = {
    MediaType.LOGO: 1,
    MediaType.SCREENSHOT: 2,
    MediaType.COVER: 3,
    MediaType.ICON: 4,
    MediaType.VIDEO: 5,
    MediaType.DOCUMENT: 6,
}


class Media(models.Model):
    """
    A file attached to an app and stored in object storage.

    ``filename`` is the object key inside the bucket; ``meta`` holds
    free-form data such as alt text, caption, thumbnails and the
    ``processed`` flag set by the post-upload job.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Cross-app references (no FK to maintain app independence)
    app_id = models.UUIDField(db_index=True)
    organization_id = models.UUIDField(null=True, blank=True)
    user_id = models.UUIDField(null=True, blank=True)

    type = models.CharField(max_length=20, choices=MediaType.choices, db_index=True)
    url = models.URLField(max_length=1000)
    filename = models.CharField(max_length=500)
    original_name = models.CharField(max_length=255, blank=True)
    mime_type = models.CharField(max_length=100)
    size = models.PositiveIntegerField(default=0)
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    meta = models.JSONField(default=dict, blank=True)

    uploaded_by_id = models.UUIDField()
    created_by_id = models.UUIDField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'created_at']
        verbose_name_plural = 'media'

    def __str__(self):
        return f"{self.type} {self.filename}"

    @property
    def priority(self) -> int:
        return MEDIA_TYPE_PRIORITY.get(self.type, len(MEDIA_TYPE_PRIORITY) + 1)
