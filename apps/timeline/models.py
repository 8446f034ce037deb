import uuid
from django.db import models


class EventType(models.TextChoices):
    RELEASE = 'RELEASE', 'Release'
    UPDATE = 'UPDATE', 'Update'
    MILESTONE = 'MILESTONE', 'Milestone'
    ANNOUNCEMENT = 'ANNOUNCEMENT', 'Announcement'
    FEATURE = 'FEATURE', 'Feature'
    BUGFIX = 'BUGFIX', 'Bug fix'


class TimelineEvent(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Cross-app references (no FK to maintain app independence)
    app_id = models.UUIDField()
    created_by_id = models.UUIDField(db_index=True)

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=EventType.choices, default=EventType.ANNOUNCEMENT)
    date = models.DateTimeField(db_index=True)
    is_public = models.BooleanField(default=True, db_index=True)
    version = models.CharField(max_length=50, blank=True)
    url = models.URLField(max_length=500, blank=True)
    # Free-form extras such as tags or priority
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date']
        indexes = [
            models.Index(fields=['app_id', '-date'], name='timeline_app_date_idx'),
            models.Index(fields=['app_id', 'type'], name='timeline_app_type_idx'),
        ]

    def __str__(self):
        return f"{self.type}: {self.title}"
